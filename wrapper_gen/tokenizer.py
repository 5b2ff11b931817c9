"""
Tokenizer module

Small scanner used by the parsers: depth-aware splitting of parameter and
literal lists, delimiter matching, and tokenizing a single declaration
fragment into identifiers, type markers, delimiters and quoted strings.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

# Nesting pairs tracked when splitting parameter lists
PARAM_PAIRS = {'(': ')', '[': ']', '<': '>', '{': '}'}

# Angle brackets are shift/compare operators in values, so they do not nest there
VALUE_PAIRS = {'(': ')', '[': ']', '{': '}'}

QUOTES = ('"', "'")

IDENT = 'ident'          # int, const, \FFI\CData
VARIABLE = 'variable'    # $name
NULLABLE = 'nullable'    # ?
STAR = 'star'            # *
OPEN = 'open'            # ( [ < {
CLOSE = 'close'          # ) ] > }
STRING = 'string'        # "..." or '...'
NUMBER = 'number'
OP = 'op'                # = | & , : ...
OTHER = 'other'


@dataclass(frozen=True)
class Token:
    kind: str
    value: str


def _scan(text: str, pairs: dict[str, str], start: int = 0,
          end: Optional[int] = None) -> Iterator[tuple[int, str, int]]:
    """Yield (index, char, depth) for every char outside quoted strings

    Characters inside a string literal (quotes included) are not yielded.
    Depth is the nesting level before the char is applied and never drops
    below zero, so stray closers are tolerated.
    """
    closers = set(pairs.values())
    depth = 0
    quote = ''
    i = start
    n = len(text) if end is None else min(end, len(text))
    while i < n:
        ch = text[i]
        if quote:
            if ch == '\\':
                i += 2
                continue
            if ch == quote:
                quote = ''
            i += 1
            continue
        if ch in QUOTES:
            quote = ch
            i += 1
            continue
        yield i, ch, depth
        if ch in pairs:
            depth += 1
        elif ch in closers and depth > 0:
            depth -= 1
        i += 1


def split_top_level(text: str, sep: str = ',', pairs: dict[str, str] = PARAM_PAIRS) -> list[str]:
    """Split text on sep, ignoring separators nested in brackets or strings

    Empty pieces are dropped.
    """
    parts = []
    start = 0
    for i, ch, depth in _scan(text, pairs):
        if ch == sep and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    parts.append(text[start:].strip())
    return [p for p in parts if p]


def find_closing(text: str, open_index: int, pairs: dict[str, str] = PARAM_PAIRS,
                 limit: Optional[int] = None) -> int:
    """Index of the delimiter closing the one at open_index, or -1

    limit bounds how far past open_index the search may go.
    """
    opener = text[open_index]
    closer = pairs.get(opener)
    if closer is None:
        return -1
    level = 0
    for i, ch, _ in _scan(text, {opener: closer}, open_index,
                          None if limit is None else open_index + limit):
        if ch == opener:
            level += 1
        elif ch == closer:
            level -= 1
            if level == 0:
                return i
    return -1


def find_terminator(text: str, start: int = 0, terminator: str = ';',
                    pairs: dict[str, str] = VALUE_PAIRS, limit: Optional[int] = None) -> int:
    """Index of the first top-level terminator at or after start, or -1"""
    end = None if limit is None else start + limit
    for i, ch, depth in _scan(text, pairs, start, end):
        if ch == terminator and depth == 0:
            return i
    return -1


def tokenize(text: str) -> list[Token]:
    """Tokenize a declaration fragment such as a single parameter"""
    tokens = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif ch.isalpha() or ch in '_\\':
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] in '_\\'):
                j += 1
            tokens.append(Token(IDENT, text[i:j]))
            i = j
        elif ch == '$':
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] == '_'):
                j += 1
            tokens.append(Token(VARIABLE, text[i + 1:j]))
            i = j
        elif ch.isdigit():
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] in '._'):
                j += 1
            tokens.append(Token(NUMBER, text[i:j]))
            i = j
        elif ch in QUOTES:
            j = i + 1
            while j < n and text[j] != ch:
                j += 2 if text[j] == '\\' else 1
            tokens.append(Token(STRING, text[i:j + 1]))
            i = j + 1
        elif text.startswith('...', i):
            tokens.append(Token(OP, '...'))
            i += 3
        elif ch == '?':
            tokens.append(Token(NULLABLE, ch))
            i += 1
        elif ch == '*':
            tokens.append(Token(STAR, ch))
            i += 1
        elif ch in PARAM_PAIRS:
            tokens.append(Token(OPEN, ch))
            i += 1
        elif ch in PARAM_PAIRS.values():
            tokens.append(Token(CLOSE, ch))
            i += 1
        elif ch in '=|&,:':
            tokens.append(Token(OP, ch))
            i += 1
        else:
            tokens.append(Token(OTHER, ch))
            i += 1
    return tokens
