"""
Naming and grouping heuristics

Turns a flat list of native functions into named groups (one wrapper class
each) and derives PHP member, class and type names from raw identifiers.

    group_key('mathAdd')                               -> 'math'
    derive_member_name('uiWindowSetTitle', ctx(Window)) -> 'setTitle'
    derive_member_name('uiNewWindow', ctx(Window))      -> 'new'
    derive_type_name('struct point_t')                 -> 'Point'
"""

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Union

from .codegen import as_pascal_case, as_snake_case, lcfirst, ucfirst
from .errors import ConfigurationError
from .ir import FunctionSignature

GROUP_KEY_PATTERN = re.compile(r'^_*([A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z0-9]+|[A-Z]+)')
TAG_PATTERN = re.compile(r'^(?:(?:const|volatile)\s+)*(?:struct|union|enum)\s+')

FALLBACK_MEMBER = 'invoke'
FACTORY_NAME = 'new'
DEFAULT_CONSTRUCTOR_PATTERN = 'New{type}'

PHP_KEYWORDS = frozenset({
    'abstract', 'and', 'array', 'as', 'break', 'callable', 'case', 'catch', 'class', 'clone',
    'const', 'continue', 'declare', 'default', 'die', 'do', 'echo', 'else', 'elseif', 'empty',
    'enddeclare', 'endfor', 'endforeach', 'endif', 'endswitch', 'endwhile', 'eval', 'exit',
    'extends', 'final', 'finally', 'fn', 'for', 'foreach', 'function', 'global', 'goto', 'if',
    'implements', 'include', 'include_once', 'instanceof', 'insteadof', 'interface', 'isset',
    'list', 'match', 'namespace', 'new', 'or', 'print', 'private', 'protected', 'public',
    'readonly', 'require', 'require_once', 'return', 'static', 'switch', 'throw', 'trait', 'try',
    'unset', 'use', 'var', 'while', 'xor', 'yield',
})

# Built-in type names PHP refuses as class names
PHP_RESERVED_TYPES = frozenset({
    'bool', 'false', 'float', 'int', 'iterable', 'mixed', 'never', 'null', 'numeric',
    'object', 'parent', 'resource', 'self', 'string', 'true', 'void',
})

# Only 'class' is reserved among class constant names
RESERVED_CONSTANTS = ('CLASS',)

CLASS_SUFFIX = 'Functions'
STRUCT_SUFFIX = 'Struct'

PatternSpec = Union[Mapping[str, str], Sequence[tuple[str, str]]]


@dataclass(frozen=True)
class GroupPattern:
    """Ordered domain pattern: functions matching regex belong to group"""
    group: str
    regex: re.Pattern

    def matches(self, name: str) -> bool:
        return self.regex.search(name) is not None


def compile_patterns(patterns: Optional[PatternSpec]) -> tuple[GroupPattern, ...]:
    """Compile {group: regex} or [(group, regex), ...] keeping their order"""
    if not patterns:
        return ()
    items = patterns.items() if isinstance(patterns, Mapping) else patterns
    compiled = []
    for item in items:
        if isinstance(item, GroupPattern):
            compiled.append(item)
            continue
        group, regex = item
        if isinstance(regex, re.Pattern):
            compiled.append(GroupPattern(group, regex))
            continue
        try:
            compiled.append(GroupPattern(group, re.compile(regex)))
        except re.error as e:
            raise ConfigurationError(
                f"Invalid grouping pattern for '{group}': {e}",
                context={'group': group, 'pattern': regex},
            ) from e
    return tuple(compiled)


def group_key(name: str) -> str:
    """Token before the first '_', camelCase or acronym boundary"""
    m = GROUP_KEY_PATTERN.match(name)
    if m:
        return m.group(1)
    return name.strip('_') or name


def semantic_group(name: str, patterns: Sequence[GroupPattern]) -> Optional[str]:
    for pattern in patterns:
        if pattern.matches(name):
            return pattern.group
    return None


def group_functions(functions: Iterable[FunctionSignature],
                    patterns: Optional[PatternSpec] = None) -> dict[str, list[FunctionSignature]]:
    """Group functions by domain pattern, falling back to group_key

    Groups and their members keep first-seen order.
    """
    compiled = compile_patterns(patterns)
    groups: dict[str, list[FunctionSignature]] = {}
    for func in functions:
        key = semantic_group(func.name, compiled) or group_key(func.name)
        groups.setdefault(key, []).append(func)
    return groups


@dataclass(frozen=True)
class NamingContext:
    """What derive_member_name needs to know about the target class"""
    group: str
    prefixes: tuple[str, ...] = ()
    constructor_pattern: str = DEFAULT_CONSTRUCTOR_PATTERN


def _starts_on_boundary(name: str, head: str) -> bool:
    """Whether name starts with head (first letter case-insensitive) at a word boundary"""
    if not head or len(name) < len(head):
        return False
    if name[:1].lower() != head[:1].lower() or name[1:len(head)] != head[1:]:
        return False
    rest = name[len(head):]
    return not rest or not rest[0].islower() or head.endswith('_')


def strip_known_prefix(name: str, prefixes: Iterable[str]) -> str:
    """Strip the longest recognized prefix that ends on a word boundary"""
    for prefix in sorted(prefixes, key=len, reverse=True):
        if name.startswith(prefix) and _starts_on_boundary(name, prefix) and len(name) > len(prefix):
            return name[len(prefix):]
    return name


def _camel(text: str) -> str:
    parts = [p for p in text.split('_') if p]
    if not parts:
        return ''
    return lcfirst(parts[0]) + ''.join(ucfirst(p) for p in parts[1:])


def derive_member_name(raw_name: str, context: NamingContext) -> str:
    """Derive a PHP method name for raw_name inside the given group"""
    remainder = strip_known_prefix(raw_name, context.prefixes)

    group = context.group
    if context.constructor_pattern and group:
        constructor = context.constructor_pattern.format(type=ucfirst(group))
        if remainder.strip('_') == constructor:
            return FACTORY_NAME

    if group and _starts_on_boundary(remainder, group):
        remainder = remainder[len(group):]

    member = _camel(remainder.lstrip('_'))
    if not member:
        return FALLBACK_MEMBER
    if member[0].isdigit():
        member = lcfirst(group or 'n') + member
    return member


def requalify(member: str, group: str) -> str:
    """Rebuild a raw-style name from a member name and its group

    group_key(requalify(m, g)) == group_key(g) for any group key g.
    """
    return f'{group}_{as_snake_case(member)}'


def derive_type_name(raw_name: str) -> str:
    """PHP class name for a struct/union/enum type name"""
    name = TAG_PATTERN.sub('', raw_name.replace('*', ' ').strip()).strip()
    if name.endswith('_t') and len(name) > 2:
        name = name[:-2]
    result = as_pascal_case(name)
    if not result:
        return 'Struct'
    if result[0].isdigit():
        result = 'T' + result
    if is_reserved_class_name(result):
        result += STRUCT_SUFFIX
    return result


def derive_class_name(group: str, class_prefix: str = '') -> str:
    """PHP class name for a function group"""
    name = as_pascal_case(group) or 'General'
    if class_prefix and not name.startswith(class_prefix):
        name = class_prefix + name
    if is_reserved_class_name(name):
        name += CLASS_SUFFIX
    return name


def is_reserved_class_name(name: str) -> bool:
    lower = name.lower()
    return lower in PHP_KEYWORDS or lower in PHP_RESERVED_TYPES


def derive_constant_name(name: str) -> str:
    """Upper-case constant name with only [A-Z0-9_]"""
    upper = re.sub(r'[^A-Z0-9_]', '_', name.upper())
    if not upper:
        return '_'
    if upper[0].isdigit():
        upper = '_' + upper
    return upper


class NameAllocator:
    """Hands out unique names; the first claimant keeps the plain name

    PHP method and constant names collide case-insensitively, so lookups
    ignore case.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._used: set[str] = {n.lower() for n in reserved}

    def allocate(self, name: str) -> str:
        candidate = name
        n = 2
        while candidate.lower() in self._used:
            candidate = f'{name}{n}'
            n += 1
        self._used.add(candidate.lower())
        return candidate

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._used
