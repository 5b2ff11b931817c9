"""
Type mapping module

Maps raw native (C) type strings to PHP host types and back. Also holds the
C type predicates and integer width table shared by the converter and the
validation rules.
"""

import re
from typing import Iterable, Optional

HOST_INT = 'int'
HOST_FLOAT = 'float'
HOST_STRING = 'string'
HOST_BOOL = 'bool'
HOST_ARRAY = 'array'
HOST_MIXED = 'mixed'
HOST_VOID = 'void'
HOST_HANDLE = '\\FFI\\CData'

HOST_TYPES = (HOST_INT, HOST_FLOAT, HOST_STRING, HOST_BOOL, HOST_ARRAY, HOST_MIXED, HOST_VOID, HOST_HANDLE)

# Host spellings emitted by binding generators
HOST_ALIASES = {
    'int': HOST_INT,
    'integer': HOST_INT,
    'float': HOST_FLOAT,
    'double': HOST_FLOAT,
    'string': HOST_STRING,
    'bool': HOST_BOOL,
    'boolean': HOST_BOOL,
    'array': HOST_ARRAY,
    'iterable': HOST_ARRAY,
    'mixed': HOST_MIXED,
    'callable': HOST_MIXED,
    'object': HOST_MIXED,
    'resource': HOST_MIXED,
    'void': HOST_VOID,
    'CData': HOST_HANDLE,
    'FFI\\CData': HOST_HANDLE,
    '\\FFI\\CData': HOST_HANDLE,
}

HOST_TO_NATIVE = {
    HOST_INT: 'int',
    HOST_FLOAT: 'double',
    HOST_STRING: 'char*',
    HOST_BOOL: 'bool',
    HOST_ARRAY: 'void*',
    HOST_MIXED: 'void*',
}

DEFAULT_VALUES = {
    HOST_INT: '0',
    HOST_FLOAT: '0.0',
    HOST_STRING: "''",
    HOST_BOOL: 'false',
    HOST_ARRAY: '[]',
}


def _signed(bits: int) -> tuple[int, int]:
    return -(1 << (bits - 1)), (1 << (bits - 1)) - 1


def _unsigned(bits: int) -> tuple[int, int]:
    return 0, (1 << bits) - 1


# LP64 widths
INTEGER_RANGES: dict[str, tuple[int, int]] = {
    'char': _signed(8),
    'signed char': _signed(8),
    'unsigned char': _unsigned(8),
    'short': _signed(16),
    'short int': _signed(16),
    'signed short': _signed(16),
    'unsigned short': _unsigned(16),
    'unsigned short int': _unsigned(16),
    'int': _signed(32),
    'signed': _signed(32),
    'signed int': _signed(32),
    'unsigned': _unsigned(32),
    'unsigned int': _unsigned(32),
    'long': _signed(64),
    'long int': _signed(64),
    'signed long': _signed(64),
    'unsigned long': _unsigned(64),
    'unsigned long int': _unsigned(64),
    'long long': _signed(64),
    'long long int': _signed(64),
    'signed long long': _signed(64),
    'unsigned long long': _unsigned(64),
    'unsigned long long int': _unsigned(64),
    'int8_t': _signed(8),
    'uint8_t': _unsigned(8),
    'int16_t': _signed(16),
    'uint16_t': _unsigned(16),
    'int32_t': _signed(32),
    'uint32_t': _unsigned(32),
    'int64_t': _signed(64),
    'uint64_t': _unsigned(64),
    'size_t': _unsigned(64),
    'ssize_t': _signed(64),
    'intptr_t': _signed(64),
    'uintptr_t': _unsigned(64),
    'ptrdiff_t': _signed(64),
    'off_t': _signed(64),
    'wchar_t': _signed(32),
}

FLOAT_TYPES = {'float', 'double', 'long double'}
BOOL_TYPES = {'bool', '_Bool'}
STRING_POINTEE_TYPES = {'char'}
QUALIFIER_PATTERN = re.compile(r'\b(?:const|volatile|restrict|__restrict)\b')

ARRAY_PATTERN = re.compile(r'\[[^\]]*\]$')


def normalize_type(type_str: str) -> str:
    """Collapse whitespace and pointer spacing

    Examples:
        'const  char *' -> 'const char*'
        'int [4]' -> 'int[4]'
    """
    t = ' '.join(type_str.split())
    t = re.sub(r'\s*\*\s*', '*', t)
    t = re.sub(r'\s*\[\s*', '[', t)
    t = re.sub(r'\s*\]', ']', t)
    t = re.sub(r'\(\s+', '(', t)
    t = re.sub(r'\s+\)', ')', t)
    # Put back the space before a function pointer declarator
    t = re.sub(r'(\w)\(\*\)', r'\1 (*)', t)
    return t


def strip_qualifiers(type_str: str) -> str:
    """Remove const/volatile qualifiers from a normalized type"""
    return normalize_type(QUALIFIER_PATTERN.sub(' ', type_str))


def is_int_type(type_str: str) -> bool:
    """Check if type is an integer type"""
    return type_str in INTEGER_RANGES or type_str.startswith('enum ')


def is_float_type(type_str: str) -> bool:
    """Check if type is a float type"""
    return type_str in FLOAT_TYPES


def is_bool_type(type_str: str) -> bool:
    return type_str in BOOL_TYPES


def is_prim_type(type_str: str) -> bool:
    """Check if type is a primitive type"""
    return is_bool_type(type_str) or is_int_type(type_str) or is_float_type(type_str)


def is_pointer(type_str: str) -> bool:
    return type_str.endswith('*')


def is_string_ptr(type_str: str) -> bool:
    """Check if type is a C string (char* with any qualifiers)"""
    return is_pointer(type_str) and strip_qualifiers(type_str[:-1]) in STRING_POINTEE_TYPES


def is_void_ptr(type_str: str) -> bool:
    """Check if type is void* or const void*"""
    return is_pointer(type_str) and strip_qualifiers(type_str[:-1]) == 'void'


def is_func_ptr(type_str: str) -> bool:
    """Check if type is a function pointer"""
    return '(*)' in type_str


def is_array_type(type_str: str) -> bool:
    return ARRAY_PATTERN.search(type_str) is not None and not is_func_ptr(type_str)


def extract_array_type(type_str: str) -> str:
    """Extract base type from array type"""
    return type_str[:type_str.index('[')].strip()


def extract_array_sizes(type_str: str) -> list[int]:
    """Extract array dimensions"""
    return [int(m) for m in re.findall(r'\[(\d+)\]', type_str)]


def extract_ptr_type(type_str: str) -> str:
    """Extract pointed-to type from pointer type

    Examples:
        'const uiWindow*' -> 'uiWindow'
        'struct foo**' -> 'struct foo'
    """
    return strip_qualifiers(type_str.replace('*', ' ')).strip()


def split_host_nullable(type_str: str) -> tuple[str, bool]:
    """Split '?T' and 'T|null' host spellings into (T, True)"""
    if type_str.startswith('?'):
        return type_str[1:].strip(), True
    if '|' in type_str:
        members = [m.strip() for m in type_str.split('|') if m.strip()]
        others = [m for m in members if m.lower() != 'null']
        if len(others) < len(members):
            return '|'.join(others), True
    return type_str, False


class TypeMapper:
    """Maps native type strings to PHP host types

    opaque_types names handle types known from the bindings (struct names);
    opaque_prefixes marks a library's handle family (e.g. 'ui' for uiWindow).
    """

    def __init__(self, opaque_types: Iterable[str] = (), opaque_prefixes: Iterable[str] = (),
                 enum_types: Iterable[str] = ()):
        self.opaque_types = set(opaque_types)
        self.opaque_prefixes = tuple(opaque_prefixes)
        self.enum_types = set(enum_types)

    def map_native_to_host(self, raw_type, allow_null: bool = False) -> str:
        """Map a raw type to a host type; never raises"""
        if not isinstance(raw_type, str):
            return HOST_MIXED
        host = self._map(normalize_type(raw_type), 0)
        return self.make_nullable(host) if allow_null else host

    def map_host_to_native(self, host_type: str) -> str:
        host, _ = split_host_nullable(host_type.strip())
        return HOST_TO_NATIVE.get(HOST_ALIASES.get(host, host), 'void*')

    @staticmethod
    def make_nullable(host_type: str) -> str:
        if host_type in (HOST_MIXED, HOST_VOID) or host_type.startswith('?'):
            return host_type
        return '?' + host_type

    def is_opaque_handle(self, raw_type: str) -> bool:
        """Whether a pointer type refers to a known handle type"""
        t = normalize_type(raw_type)
        if not is_pointer(t):
            return False
        return self._is_opaque_name(extract_ptr_type(t))

    def is_nullable_native(self, raw_type: str) -> bool:
        t = normalize_type(raw_type)
        return is_pointer(t) or is_func_ptr(t)

    def _is_opaque_name(self, name: str) -> bool:
        bare = re.sub(r'^(?:struct|union)\s+', '', name)
        return bare in self.opaque_types or any(bare.startswith(p) for p in self.opaque_prefixes if p)

    def _map(self, t: str, depth: int) -> str:
        if not t or depth > 4:
            return HOST_MIXED

        base, nullable = split_host_nullable(t)
        if nullable:
            mapped = self._map(base, depth + 1)
            return self.make_nullable(mapped)
        if '|' in t:
            members = {self._map(m.strip(), depth + 1) for m in t.split('|') if m.strip()}
            return members.pop() if len(members) == 1 else HOST_MIXED

        bare = strip_qualifiers(t)

        if is_bool_type(bare):
            return HOST_BOOL
        if bare == 'void':
            return HOST_VOID
        if bare in INTEGER_RANGES:
            return HOST_INT
        if is_float_type(bare):
            return HOST_FLOAT

        if is_func_ptr(bare):
            return HOST_HANDLE
        if is_pointer(bare):
            if is_string_ptr(t):
                return HOST_STRING
            if is_void_ptr(t):
                return HOST_MIXED
            return HOST_HANDLE

        if is_array_type(bare):
            return HOST_ARRAY

        if bare.startswith(('struct ', 'union ')):
            return HOST_HANDLE
        if bare.startswith('enum ') or bare in self.enum_types:
            return HOST_INT

        if bare in HOST_ALIASES:
            return HOST_ALIASES[bare]
        if bare in self.opaque_types:
            return HOST_HANDLE
        return HOST_MIXED


def default_value(host_type: str) -> str:
    """PHP default literal for a host type; nullable and handle types default to null"""
    if host_type.startswith('?'):
        return 'null'
    return DEFAULT_VALUES.get(host_type, 'null')


def native_range(raw_type: str) -> Optional[tuple[int, int]]:
    """(min, max) for a bounded integer type, or None"""
    t = strip_qualifiers(normalize_type(raw_type))
    if t.startswith('enum '):
        return INTEGER_RANGES['int']
    return INTEGER_RANGES.get(t)
