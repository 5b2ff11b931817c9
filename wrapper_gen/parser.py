"""
Binding output parser

Extracts function signatures from generated binding text. Two declaration
shapes are recognized:

    /** doc */ public static function name(int $a, ?string $b): int { ... }
    int name(int a, const char *b);

A C prototype ends with ';', an opening brace, or the end of its line.

Parameter lists are split with the depth-aware tokenizer, and doc-comment
@param/@return annotations fill in types the declaration leaves out.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .ir import FunctionSignature, ParamInfo
from .tokenizer import (
    Token, tokenize, split_top_level, find_closing,
    IDENT, VARIABLE, NULLABLE, STAR, OPEN, CLOSE, NUMBER, OP,
)

logger = logging.getLogger(__name__)

PHP_FUNCTION_PATTERN = re.compile(
    r'(?:\b(?:public|protected|private|static|final|abstract)\s+)*'
    r'\bfunction\s+&?\s*(?P<name>[A-Za-z_]\w*)\s*\('
)

# Return type and name share one line, so a failed attempt never scans past it
C_PROTOTYPE_PATTERN = re.compile(
    r'^[ \t]*(?P<ret>(?:[A-Za-z_]\w*[ \t]+)*?[A-Za-z_]\w*(?:[ \t]*\*+[ \t]*|[ \t]+))'
    r'(?P<name>[A-Za-z_]\w*)[ \t]*\(',
    re.MULTILINE,
)

RETURN_ANNOTATION_PATTERN = re.compile(r'\s*:\s*(?P<ret>[^{;\n]+)')
# ';', a body, or nothing more on the line (brace on the next line, bare prototype)
PROTOTYPE_END_PATTERN = re.compile(r'[ \t]*(?:[;{]|\r?\n|$)')

DOC_PARAM_PATTERN = re.compile(r'^@param\s+(?:(?P<type>[^\s$]+)\s+)?\$(?P<name>\w+)(?:\s+(?P<desc>.+))?$')
DOC_RETURN_PATTERN = re.compile(r'^@return\s+(?P<type>\S+)(?:\s+(?P<desc>.+))?$')

# Words that start statements, never a return type
NON_TYPE_WORDS = {
    'return', 'else', 'if', 'while', 'for', 'foreach', 'switch', 'do', 'case',
    'goto', 'sizeof', 'typedef', 'define', 'function', 'new', 'throw', 'echo',
    'public', 'protected', 'private', 'static', 'use', 'namespace', 'class',
    'trait', 'interface', 'include', 'require',
}

# Words that can only be part of a C type, never a parameter name
C_TYPE_WORDS = {
    'void', 'char', 'short', 'int', 'long', 'float', 'double', 'signed',
    'unsigned', 'const', 'volatile', 'struct', 'union', 'enum', 'bool',
    '_Bool', 'restrict',
}

TAG_WORDS = ('struct', 'union', 'enum')

# C storage specifiers, dropped from return types
STORAGE_WORDS = ('extern', 'static', 'inline')

# Bounds keep corrupt input from turning every match into a full-text scan
MAX_PARAM_TEXT = 8192
MAX_DOC_TEXT = 65536


@dataclass
class DocInfo:
    """Parsed doc comment"""
    params: dict[str, tuple[Optional[str], str]] = field(default_factory=dict)
    return_type: Optional[str] = None
    lines: list[str] = field(default_factory=list)


def parse_doc_comment(doc: str) -> DocInfo:
    """Parse a doc comment body into annotations and free-text lines"""
    info = DocInfo()
    for raw in doc.splitlines():
        line = raw.strip(' \t\r\n*/')
        if not line:
            continue
        m = DOC_PARAM_PATTERN.match(line)
        if m:
            info.params[m.group('name')] = (m.group('type'), m.group('desc') or '')
            continue
        m = DOC_RETURN_PATTERN.match(line)
        if m:
            info.return_type = m.group('type')
            continue
        info.lines.append(line)
    return info


def split_nullable(type_str: str) -> tuple[str, bool]:
    """Split '?T', 'T|null' and 'null|T' into (T, True)"""
    type_str = type_str.strip()
    if type_str.startswith('?'):
        return type_str[1:].strip(), True
    if '|' in type_str:
        members = [m.strip() for m in type_str.split('|') if m.strip()]
        others = [m for m in members if m.lower() != 'null']
        if len(others) < len(members):
            return '|'.join(others) or 'mixed', True
    return type_str, False


def join_type(tokens: list[Token]) -> str:
    """Render type tokens back to canonical text, e.g. 'const char*'"""
    out = ''
    for tok in tokens:
        if tok.kind == STAR:
            out = out.rstrip() + '*'
        elif tok.kind == OPEN and tok.value == '(':
            if out and (out[-1].isalnum() or out[-1] == '_'):
                out += ' '
            out += tok.value
        elif tok.kind == OP and tok.value == ',':
            out = out.rstrip() + ', '
        elif tok.kind in (OPEN, CLOSE) or (tok.kind == OP and tok.value == '|'):
            out += tok.value
        else:
            if out and out[-1] not in '|([ ':
                out += ' '
            out += tok.value
    return out.strip()


def _strip_default(tokens: list[Token]) -> tuple[list[Token], list[Token]]:
    """Split tokens at a top-level '=' into (declaration, default)"""
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.kind == OPEN:
            depth += 1
        elif tok.kind == CLOSE and depth > 0:
            depth -= 1
        elif tok.kind == OP and tok.value == '=' and depth == 0:
            return tokens[:i], tokens[i + 1:]
    return tokens, []


def parse_parameter(text: str, index: int = 0) -> Optional[ParamInfo]:
    """Parse one parameter: '[?]type $name [= default]' or 'type name'"""
    tokens, default = _strip_default(tokenize(text))
    tokens = [t for t in tokens if not (t.kind == OP and t.value in ('&', '...'))]
    if not tokens:
        return None

    nullable = False
    if tokens[0].kind == NULLABLE:
        nullable = True
        tokens = tokens[1:]

    variables = [i for i, t in enumerate(tokens) if t.kind == VARIABLE]
    if variables:
        pos = variables[0]
        type_str = join_type(tokens[:pos]) or 'mixed'
        type_str, union_null = split_nullable(type_str)
        implicit_null = len(default) == 1 and default[0].value.lower() == 'null'
        return ParamInfo(
            name=tokens[pos].value,
            type=type_str,
            nullable=nullable or union_null or implicit_null,
        )

    return _parse_c_parameter(tokens, index, nullable)


def _parse_c_parameter(tokens: list[Token], index: int, nullable: bool) -> Optional[ParamInfo]:
    """Parse a C-style parameter: 'const char *name', 'int v[4]', 'void (*cb)(int)'"""
    # Function pointer: type (*name)(args)
    for i in range(len(tokens) - 3):
        if (tokens[i].kind == OPEN and tokens[i].value == '('
                and tokens[i + 1].kind == STAR and tokens[i + 2].kind == IDENT
                and tokens[i + 3].kind == CLOSE):
            name = tokens[i + 2].value
            rest = tokens[:i + 2] + tokens[i + 3:]
            return ParamInfo(name=name, type=join_type(rest), nullable=True)

    # Array declarator: type name[N]
    for i, tok in enumerate(tokens):
        if tok.kind == OPEN and tok.value == '[':
            head, dims = tokens[:i], tokens[i:]
            if head and head[-1].kind == IDENT and not _is_type_word(head, len(head) - 1):
                return ParamInfo(name=head[-1].value, type=join_type(head[:-1] + dims), nullable=nullable)
            return ParamInfo(name=f'arg{index}', type=join_type(tokens), nullable=nullable)

    last = len(tokens) - 1
    if tokens[last].kind == IDENT and last > 0 and not _is_type_word(tokens, last):
        return ParamInfo(name=tokens[last].value, type=join_type(tokens[:last]), nullable=nullable)

    if all(t.kind in (IDENT, STAR, NUMBER) for t in tokens):
        return ParamInfo(name=f'arg{index}', type=join_type(tokens), nullable=nullable)
    return None


def _is_type_word(tokens: list[Token], i: int) -> bool:
    """Whether tokens[i] must belong to the type rather than name the parameter"""
    if tokens[i].value in C_TYPE_WORDS:
        return True
    if i > 0 and tokens[i - 1].kind == IDENT and tokens[i - 1].value in TAG_WORDS:
        return True
    # A lone identifier with nothing but qualifiers before it is a type name
    return all(t.kind == IDENT and t.value in ('const', 'volatile') for t in tokens[:i])


def parse_parameters(params_text: str) -> list[ParamInfo]:
    """Parse a raw parameter list; unparseable entries are skipped"""
    parts = split_top_level(params_text)
    if len(parts) == 1 and parts[0] == 'void':
        return []
    params = []
    for i, part in enumerate(parts):
        param = parse_parameter(part, i)
        if param is None:
            logger.debug('skipping unparseable parameter %r', part)
            continue
        params.append(param)
    return params


def _preceding_doc(text: str, pos: int) -> Optional[str]:
    """Body of a /** */ block that immediately precedes pos, if any"""
    j = pos
    while j > 0 and text[j - 1].isspace():
        j -= 1
    if j < 2 or text[j - 2:j] != '*/':
        return None
    k = text.rfind('/**', max(0, j - 2 - MAX_DOC_TEXT), j - 2)
    if k < 0:
        return None
    body = text[k + 3:j - 2]
    if '*/' in body:
        return None
    return body


class BindingOutputParser:
    """Parses generated binding text into function signatures"""

    def parse(self, text: str) -> dict[str, FunctionSignature]:
        """Map raw function name -> FunctionSignature

        The first declaration of a name wins; later ones are skipped.
        """
        functions: dict[str, FunctionSignature] = {}
        if not text:
            return functions

        for m in PHP_FUNCTION_PATTERN.finditer(text):
            func = self._parse_php_function(text, m)
            self._add(functions, func)

        for m in C_PROTOTYPE_PATTERN.finditer(text):
            func = self._parse_c_prototype(text, m)
            self._add(functions, func)

        return functions

    def parse_file(self, path: Union[str, Path]) -> dict[str, FunctionSignature]:
        """Parse a binding output file; a missing file yields no functions"""
        path = Path(path)
        if not path.is_file():
            return {}
        return self.parse(path.read_text(encoding='utf-8', errors='replace'))

    @staticmethod
    def _add(functions: dict[str, FunctionSignature], func: Optional[FunctionSignature]):
        if func is None:
            return
        if func.name in functions:
            logger.debug('duplicate declaration of %s ignored', func.name)
            return
        functions[func.name] = func

    def _parse_php_function(self, text: str, m: re.Match) -> Optional[FunctionSignature]:
        name = m.group('name')
        open_idx = m.end() - 1
        close_idx = find_closing(text, open_idx, limit=MAX_PARAM_TEXT)
        if close_idx < 0:
            logger.debug('unterminated parameter list for %s', name)
            return None

        end = close_idx + 1
        declared_return = None
        ret = RETURN_ANNOTATION_PATTERN.match(text, end)
        if ret:
            declared_return = ret.group('ret').strip()
            end = ret.end()

        doc_text = _preceding_doc(text, m.start())
        doc = parse_doc_comment(doc_text) if doc_text else DocInfo()
        params = self._merge_doc_params(parse_parameters(text[open_idx + 1:close_idx]), doc)

        return_type = declared_return or doc.return_type or 'void'
        return FunctionSignature(
            name=name,
            return_type=return_type,
            parameters=tuple(params),
            documentation=tuple(doc.lines),
            raw_declaration=text[m.start():end].strip(),
        )

    def _parse_c_prototype(self, text: str, m: re.Match) -> Optional[FunctionSignature]:
        ret_words = [w for w in m.group('ret').replace('*', ' ').split() if w not in STORAGE_WORDS]
        if not ret_words or any(w in NON_TYPE_WORDS for w in ret_words) or m.group('name') in NON_TYPE_WORDS:
            return None

        name = m.group('name')
        open_idx = m.end() - 1
        close_idx = find_closing(text, open_idx, limit=MAX_PARAM_TEXT)
        if close_idx < 0 or not PROTOTYPE_END_PATTERN.match(text, close_idx + 1):
            return None

        return_type = join_type(tokenize(' '.join(
            w for w in m.group('ret').split() if w not in STORAGE_WORDS
        )))
        doc_text = _preceding_doc(text, m.start())
        doc = parse_doc_comment(doc_text) if doc_text else DocInfo()
        params = self._merge_doc_params(parse_parameters(text[open_idx + 1:close_idx]), doc)

        return FunctionSignature(
            name=name,
            return_type=return_type,
            parameters=tuple(params),
            documentation=tuple(doc.lines),
            raw_declaration=text[m.start():close_idx + 1].strip(),
        )

    @staticmethod
    def _merge_doc_params(params: list[ParamInfo], doc: DocInfo) -> list[ParamInfo]:
        """Fill missing types and descriptions from @param annotations"""
        merged = []
        for param in params:
            if param.name not in doc.params:
                merged.append(param)
                continue
            doc_type, desc = doc.params[param.name]
            type_str, nullable = param.type, param.nullable
            # Declared types win; doc types only fill untyped parameters
            if type_str == 'mixed' and doc_type:
                type_str, doc_nullable = split_nullable(doc_type)
                nullable = nullable or doc_nullable
            merged.append(ParamInfo(name=param.name, type=type_str, nullable=nullable, description=desc))
        return merged
