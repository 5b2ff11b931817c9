"""
Code generation utilities

Line builder for PHP source plus identifier-case and literal helpers shared
by the generators and the template filters.
"""

import math
import re
from typing import Any, Iterable, Optional

WORD_PATTERN = re.compile(r'[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+')
IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class CodeGen:
    """Code generation helper with indentation support"""

    def __init__(self, indent_str: str = '    '):
        self._lines: list[str] = []
        self._indent: int = 0
        self._indent_str: str = indent_str

    def line(self, text: str = ''):
        """Add a line with current indentation"""
        if text:
            self._lines.append(self._indent_str * self._indent + text)
        else:
            self._lines.append('')

    def lines(self, *texts: str):
        """Add multiple lines"""
        for text in texts:
            self.line(text)

    def extend(self, text: str):
        """Add pre-rendered multi-line text at the current indentation"""
        for line in text.splitlines():
            self.line(line)

    def raw(self, text: str):
        """Add raw text without indentation processing"""
        self._lines.append(text)

    def indent(self):
        """Increase indentation"""
        self._indent += 1

    def dedent(self):
        """Decrease indentation"""
        if self._indent > 0:
            self._indent -= 1

    def block(self, header: str, footer: str = '}', brace_on_own_line: bool = False):
        """Context manager for code blocks

        Class and method bodies put the opening brace on its own line,
        control structures keep it on the header line.
        """
        return _BlockContext(self, header, footer, brace_on_own_line)

    def docblock(self, lines: Iterable[str]):
        """Add a /** */ doc comment; nothing is emitted for no lines"""
        lines = list(lines)
        if not lines:
            return
        self.line('/**')
        for text in lines:
            self.line(f' * {text}' if text else ' *')
        self.line(' */')

    def output(self) -> str:
        """Get generated code as string"""
        return '\n'.join(self._lines)

    def clear(self):
        """Clear all generated code"""
        self._lines.clear()
        self._indent = 0


class _BlockContext:
    """Context manager for indented code blocks"""

    def __init__(self, gen: CodeGen, header: str, footer: str, brace_on_own_line: bool):
        self._gen = gen
        self._header = header
        self._footer = footer
        self._brace_on_own_line = brace_on_own_line

    def __enter__(self):
        if self._brace_on_own_line:
            self._gen.line(self._header)
            self._gen.line('{')
        else:
            self._gen.line(f'{self._header} {{')
        self._gen.indent()
        return self

    def __exit__(self, *args):
        self._gen.dedent()
        self._gen.line(self._footer)


def split_words(name: str) -> list[str]:
    """Split an identifier on underscores, camelCase and acronym boundaries

    Examples:
        uiWindowSetTitle -> ['ui', 'Window', 'Set', 'Title']
        HTTPServer_start -> ['HTTP', 'Server', 'start']
    """
    return WORD_PATTERN.findall(name)


def ucfirst(name: str) -> str:
    return name[:1].upper() + name[1:]


def lcfirst(name: str) -> str:
    return name[:1].lower() + name[1:]


def strip_prefix(name: str, prefix: str) -> str:
    """Remove prefix (case-sensitive) if name starts with it"""
    if prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


def as_pascal_case(name: str, prefix: str = '') -> str:
    """Convert C name to PascalCase, removing prefix

    Inner capitals are kept, a trailing 't' part is skipped.

    Examples:
        ui_font_descriptor_t -> UiFontDescriptor
        uiDrawBrush -> UiDrawBrush
        sg_buffer (prefix 'sg_') -> Buffer
    """
    parts = [p for p in re.split(r'[^A-Za-z0-9]+', strip_prefix(name, prefix)) if p]
    if len(parts) > 1 and parts[-1] == 't':
        parts = parts[:-1]
    return ''.join(ucfirst(part) for part in parts)


def as_camel_case(name: str, prefix: str = '') -> str:
    """Convert C name to camelCase, removing prefix

    Examples:
        set_title -> setTitle
        SetTitle -> setTitle
    """
    return lcfirst(as_pascal_case(name, prefix))


def as_snake_case(name: str, prefix: str = '') -> str:
    """Convert C or camelCase name to snake_case, removing prefix

    Examples:
        setTitle -> set_title
        SG_LOADACTION_CLEAR (prefix 'SG_') -> loadaction_clear
    """
    return '_'.join(word.lower() for word in split_words(strip_prefix(name, prefix)))


def get_type_prefix(type_name: str, all_prefixes: list[str]) -> Optional[str]:
    """Get the original prefix for a type name

    Examples:
        uiWindow -> ui
        sapp_event -> sapp_
    """
    for prefix in sorted(all_prefixes, key=len, reverse=True):
        if type_name.startswith(prefix):
            return prefix
    return None


def is_identifier(name: str) -> bool:
    return IDENTIFIER_PATTERN.match(name) is not None


def php_string(value: str) -> str:
    """Single-quoted PHP string literal"""
    return "'" + value.replace('\\', '\\\\').replace("'", "\\'") + "'"


def php_literal(value: Any) -> str:
    """Render a Python value as a PHP literal"""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return 'NAN'
        if math.isinf(value):
            return 'INF' if value > 0 else '-INF'
        text = repr(value)
        return text if ('.' in text or 'e' in text or 'E' in text) else text + '.0'
    if isinstance(value, str):
        return php_string(value)
    if isinstance(value, dict):
        items = ', '.join(f'{php_literal(k)} => {php_literal(v)}' for k, v in value.items())
        return f'[{items}]'
    if isinstance(value, (list, tuple)):
        return '[' + ', '.join(php_literal(v) for v in value) + ']'
    return php_string(str(value))
