"""
Binding processor

Turns a BindingResult into ProcessedBindings: functions from the binding
output, constants from the constants artifact, and struct/union layouts from
either.
"""

import logging
import re
from typing import Any, Optional

from .errors import AnalysisError
from .ir import BindingResult, FieldInfo, ProcessedBindings, StructureDefinition
from .parser import BindingOutputParser, parse_parameter
from .tokenizer import VALUE_PAIRS, find_closing, find_terminator, split_top_level

logger = logging.getLogger(__name__)

CONST_PATTERN = re.compile(r'\bconst\s+(?P<name>[A-Za-z_]\w*)\s*=')
CONST_ITEM_PATTERN = re.compile(r'^(?P<name>[A-Za-z_]\w*)\s*=(?P<value>.*)$', re.S)
DEFINE_CALL_PATTERN = re.compile(r'\bdefine\s*(?P<open>\()\s*(?P<q>[\'"])(?P<name>\w+)(?P=q)\s*,')
C_DEFINE_PATTERN = re.compile(
    r'^[ \t]*#[ \t]*define[ \t]+(?P<name>[A-Za-z_]\w*)\b(?!\()[ \t]*(?P<value>[^\n]*)$',
    re.MULTILINE,
)

STRUCT_PATTERN = re.compile(
    r'\b(?P<typedef>typedef\s+)?(?P<kind>struct|union)\s+(?:(?P<tag>[A-Za-z_]\w*)\s*)?\{'
)
STRUCT_ALIAS_PATTERN = re.compile(r'\s*(?P<alias>[A-Za-z_]\w*)?')
OPAQUE_TYPEDEF_PATTERN = re.compile(
    r'\btypedef\s+(?P<kind>struct|union)\s+[A-Za-z_]\w*\s+(?P<alias>[A-Za-z_]\w*)\s*;'
)
STRUCT_MARKER_PATTERN = re.compile(r'/\*\*\s*(?P<kind>struct|union)\s+(?P<name>[A-Za-z_]\w*)\s*\*/')
COMMENT_PATTERN = re.compile(r'/\*.*?(?:\*/|\Z)|//[^\n]*', re.DOTALL)
BITFIELD_PATTERN = re.compile(r'\s*:\s*\w+\s*$')

INT_PATTERN = re.compile(
    r'^(?P<sign>[+-]?)(?P<digits>0[xX][0-9a-fA-F][0-9a-fA-F_]*|0[bB][01][01_]*|0[oO][0-7][0-7_]*'
    r'|0_*[0-7][0-7_]*|[1-9][0-9_]*|0)'
    r'(?:[uU]?[lL]{0,2}|[lL]{1,2}[uU])$'
)
FLOAT_PATTERN = re.compile(r'^[+-]?(?:\d[\d_]*\.\d*|\.\d+|\d[\d_]*)(?:[eE][+-]?\d+)?[fFlL]?$')
CAST_PATTERN = re.compile(r'^\(\s*(?:const\s+)?[A-Za-z_]\w*(?:\s+[A-Za-z_]\w*)*\s*\**\s*\)\s*(?P<rest>\S.*)$', re.S)
ESCAPE_PATTERN = re.compile(r'\\(x[0-9A-Fa-f]{1,2}|[0-7]{1,3}|.)', re.DOTALL)
SINGLE_QUOTE_ESCAPE_PATTERN = re.compile(r"\\([\\'])")

ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', 'v': '\v', 'f': '\f', 'e': '\x1b',
    '\\': '\\', '"': '"', "'": "'", '$': '$',
}

MAX_VALUE_TEXT = 65536
MAX_BODY_TEXT = 262144
MAX_LITERAL_DEPTH = 32
# CPython's default int/str conversion limit
MAX_INT_DIGITS = 4300


def _unescape(body: str, quote: str) -> str:
    """Resolve escape sequences inside a quoted literal"""
    if quote == "'":
        return SINGLE_QUOTE_ESCAPE_PATTERN.sub(lambda m: m.group(1), body)

    def repl(m):
        seq = m.group(1)
        if seq[0] == 'x':
            return chr(int(seq[1:], 16))
        if seq[0] in '01234567':
            return chr(int(seq, 8))
        return ESCAPES.get(seq, '\\' + seq)
    return ESCAPE_PATTERN.sub(repl, body)


def _parse_int(m: re.Match) -> int:
    digits = m.group('digits').replace('_', '')
    lower = digits.lower()
    if lower.startswith('0x'):
        value = int(digits[2:], 16)
    elif lower.startswith('0b'):
        value = int(digits[2:], 2)
    elif lower.startswith('0o'):
        value = int(digits[2:], 8)
    elif len(digits) > 1 and digits.startswith('0'):
        value = int(digits[1:], 8)
    else:
        value = int(digits)
    return -value if m.group('sign') == '-' else value


def _parse_array(inner: str, depth: int) -> Any:
    """Parse the items of an array literal into a list, or a dict if keyed"""
    items = split_top_level(inner, ',', VALUE_PAIRS)
    keyed = []
    has_keys = False
    for item in items:
        idx = find_terminator(item, 0, '=')
        if idx >= 0 and item[idx + 1:idx + 2] == '>':
            has_keys = True
            keyed.append((parse_literal(item[:idx], depth + 1), parse_literal(item[idx + 2:], depth + 1)))
        else:
            keyed.append((None, parse_literal(item, depth + 1)))
    if not has_keys:
        return [value for _, value in keyed]

    # Unkeyed items take the next integer key, as in PHP
    result: dict = {}
    next_index = 0
    for key, value in keyed:
        if key is None:
            key = next_index
        result[key] = value
        if isinstance(key, int) and not isinstance(key, bool) and key >= next_index:
            next_index = key + 1
    return result


def _string_end(text: str) -> int:
    """Index of the quote closing the string literal that starts text, or -1"""
    quote = text[0]
    i = 1
    while i < len(text):
        if text[i] == '\\':
            i += 2
            continue
        if text[i] == quote:
            return i
        i += 1
    return -1


def _enclosed(text: str, open_index: int = 0) -> bool:
    """Whether the delimiter at open_index closes at the very end of text"""
    return find_closing(text, open_index, VALUE_PAIRS) == len(text) - 1


def parse_literal(text: str, depth: int = 0) -> Any:
    """Coerce a literal's source text into a Python value

    Unrecognized expressions are kept as their stripped source text.
    """
    text = text.strip()
    if not text or depth > MAX_LITERAL_DEPTH:
        return text

    while text.startswith('(') and _enclosed(text):
        text = text[1:-1].strip()

    lower = text.lower()
    if lower == 'true':
        return True
    if lower == 'false':
        return False
    if lower in ('null', 'nullptr'):
        return None

    if text[0] in ('"', "'") and len(text) >= 2 and text[-1] == text[0]:
        # "a" . "b" concatenations are expressions, not literals
        if _string_end(text) == len(text) - 1:
            return _unescape(text[1:-1], text[0])

    if text.startswith('[') and _enclosed(text):
        return _parse_array(text[1:-1], depth)
    if lower.startswith('array') and text[5:].lstrip().startswith('('):
        open_index = text.index('(', 5)
        if _enclosed(text, open_index):
            return _parse_array(text[open_index + 1:-1], depth)

    m = INT_PATTERN.match(text)
    if m:
        if len(m.group('digits')) > MAX_INT_DIGITS:
            logger.debug('integer literal of %d chars kept as text', len(text))
            return text
        return _parse_int(m)
    m = FLOAT_PATTERN.match(text)
    if m and ('.' in text or 'e' in lower):
        return float(text.rstrip('fFlL').replace('_', ''))

    m = CAST_PATTERN.match(text)
    if m:
        value = parse_literal(m.group('rest'), depth + 1)
        if not isinstance(value, str):
            return value
    return text


def strip_comments(text: str) -> str:
    return COMMENT_PATTERN.sub(' ', text)


class BindingProcessor:
    """Orchestrates parsing of a full binding result"""

    def __init__(self, parser: Optional[BindingOutputParser] = None):
        self.parser = parser or BindingOutputParser()

    def process(self, result: BindingResult) -> ProcessedBindings:
        """Build ProcessedBindings from a successful binding result"""
        if not result.success:
            raise AnalysisError.upstream_failed(list(result.errors) or ['unknown error'])

        constants_text = result.read_constants()
        methods_text = result.read_methods()

        functions = self.parser.parse(methods_text)
        constants = self.extract_constants(constants_text)
        structures = self.extract_structures(methods_text, constants_text)

        logger.info('processed %d functions, %d structures, %d constants',
                    len(functions), len(structures), len(constants))
        return ProcessedBindings.build(functions.values(), structures, constants)

    def extract_constants(self, text: str) -> dict[str, Any]:
        """Map constant name -> coerced value; the first definition wins"""
        constants: dict[str, Any] = {}
        if not text:
            return constants

        def add(name, raw):
            if name in constants:
                logger.debug('duplicate constant %s ignored', name)
                return
            constants[name] = parse_literal(raw)

        for m in CONST_PATTERN.finditer(text):
            end = find_terminator(text, m.end(), limit=MAX_VALUE_TEXT)
            if end < 0:
                logger.debug('unterminated constant %s', m.group('name'))
                continue
            # const A = 1, B = 2;
            parts = split_top_level(text[m.end():end], ',', VALUE_PAIRS)
            if not parts:
                continue
            add(m.group('name'), parts[0])
            for part in parts[1:]:
                item = CONST_ITEM_PATTERN.match(part)
                if item:
                    add(item.group('name'), item.group('value'))

        for m in DEFINE_CALL_PATTERN.finditer(text):
            close = find_closing(text, m.start('open'), limit=MAX_VALUE_TEXT)
            if close < 0:
                continue
            add(m.group('name'), text[m.end():close])

        for m in C_DEFINE_PATTERN.finditer(text):
            value = strip_comments(m.group('value')).strip()
            if not value or value.endswith('\\'):
                # Include guards and multi-line macros
                continue
            add(m.group('name'), value)

        return constants

    def extract_structures(self, *texts: str) -> list[StructureDefinition]:
        """Collect struct/union definitions; the first definition of a name wins"""
        structures: dict[str, StructureDefinition] = {}

        def add(struct):
            existing = structures.get(struct.name)
            # A full body replaces an earlier empty forward declaration
            if existing is None or (not existing.fields and struct.fields):
                structures[struct.name] = struct

        for text in texts:
            if not text:
                continue
            for m in STRUCT_MARKER_PATTERN.finditer(text):
                add(StructureDefinition(m.group('name'), (), m.group('kind') == 'union'))

            code = strip_comments(text)
            for m in OPAQUE_TYPEDEF_PATTERN.finditer(code):
                add(StructureDefinition(m.group('alias'), (), m.group('kind') == 'union'))
            for m in STRUCT_PATTERN.finditer(code):
                struct = self._parse_structure(code, m)
                if struct is not None:
                    add(struct)

        return list(structures.values())

    def _parse_structure(self, code: str, m: re.Match) -> Optional[StructureDefinition]:
        brace = m.end() - 1
        close = find_closing(code, brace, limit=MAX_BODY_TEXT)
        if close < 0:
            logger.debug('unterminated %s body', m.group('kind'))
            return None

        alias = None
        if m.group('typedef'):
            am = STRUCT_ALIAS_PATTERN.match(code, close + 1)
            alias = am.group('alias') if am else None
        name = alias or m.group('tag')
        if not name:
            return None

        fields = self.parse_fields(code[brace + 1:close])
        return StructureDefinition(name=name, fields=tuple(fields), is_union=m.group('kind') == 'union')

    @staticmethod
    def parse_fields(body: str) -> list[FieldInfo]:
        """Parse a struct body into fields, one per declarator"""
        fields = []
        for decl in split_top_level(body, ';'):
            if '{' in decl:
                # Nested aggregate: keep it as an opaque member named after its declarator
                close = decl.rfind('}')
                declarator = decl[close + 1:].strip()
                kind = decl.split(None, 1)[0]
                if declarator and declarator.isidentifier():
                    fields.append(FieldInfo(declarator, kind))
                else:
                    logger.debug('skipping anonymous member in %r', decl[:40])
                continue

            parts = [BITFIELD_PATTERN.sub('', p) for p in split_top_level(decl, ',')]
            if not parts:
                continue
            first = parse_parameter(parts[0])
            if first is None:
                logger.debug('skipping unparseable field %r', parts[0])
                continue
            fields.append(FieldInfo(first.name, first.type))

            base = first.type.split('[', 1)[0].rstrip('*').strip()
            for part in parts[1:]:
                extra = parse_parameter(f'{base} {part}')
                if extra is not None:
                    fields.append(FieldInfo(extra.name, extra.type))
        return fields
