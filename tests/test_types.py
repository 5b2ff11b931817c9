"""
Tests for types.py

Validates:
- Native to host type mapping, including nullability
- Totality of the mapping on malformed input
- Type normalization and integer ranges
"""

import pytest

from wrapper_gen.types import (
    HOST_TYPES, TypeMapper, default_value, is_array_type, is_func_ptr, is_string_ptr,
    is_void_ptr, extract_array_sizes, extract_ptr_type, native_range, normalize_type,
)


@pytest.fixture
def mapper():
    return TypeMapper()


# ---------------------------------------------------------------------------
# map_native_to_host
# ---------------------------------------------------------------------------


@pytest.mark.parametrize('raw, expected', [
    ('int', 'int'),
    ('unsigned char', 'int'),
    ('const uint32_t', 'int'),
    ('size_t', 'int'),
    ('float', 'float'),
    ('double', 'float'),
    ('bool', 'bool'),
    ('_Bool', 'bool'),
    ('void', 'void'),
    ('char*', 'string'),
    ('const char *', 'string'),
    ('void*', 'mixed'),
    ('const void *', 'mixed'),
    ('uiWindow*', '\\FFI\\CData'),
    ('struct point*', '\\FFI\\CData'),
    ('int**', '\\FFI\\CData'),
    ('void (*)(int)', '\\FFI\\CData'),
    ('int[4]', 'array'),
    ('struct point', '\\FFI\\CData'),
    ('enum color', 'int'),
    ('integer', 'int'),
    ('string', 'string'),
    ('\\FFI\\CData', '\\FFI\\CData'),
    ('callable', 'mixed'),
    ('SomethingUnknown', 'mixed'),
])
def test_map_native_to_host(mapper, raw, expected):
    assert mapper.map_native_to_host(raw) == expected


def test_host_nullable_spellings(mapper):
    assert mapper.map_native_to_host('?int') == '?int'
    assert mapper.map_native_to_host('string|null') == '?string'
    assert mapper.map_native_to_host('int|integer') == 'int'
    assert mapper.map_native_to_host('int|float') == 'mixed'


def test_allow_null(mapper):
    assert mapper.map_native_to_host('const char*', allow_null=True) == '?string'
    assert mapper.map_native_to_host('uiWindow*', allow_null=True) == '?\\FFI\\CData'
    assert mapper.map_native_to_host('?int', allow_null=True) == '?int'
    # mixed and void already admit null
    assert mapper.map_native_to_host('void*', allow_null=True) == 'mixed'
    assert mapper.map_native_to_host('void', allow_null=True) == 'void'


def test_known_handle_and_enum_names():
    mapper = TypeMapper(opaque_types=['point_t'], enum_types=['Color'])
    assert mapper.map_native_to_host('point_t') == '\\FFI\\CData'
    assert mapper.map_native_to_host('Color') == 'int'
    assert TypeMapper().map_native_to_host('point_t') == 'mixed'


def test_opaque_prefixes():
    mapper = TypeMapper(opaque_prefixes=['ui'])
    assert mapper.is_opaque_handle('uiWindow *')
    assert mapper.is_opaque_handle('const struct uiArea*')
    assert not mapper.is_opaque_handle('uiWindow')
    assert not mapper.is_opaque_handle('float*')


@pytest.mark.parametrize('raw', [
    None, 42, '', ' ', '*', '***', '?', '??x', '?????int', '|', '|||', '[', '[]', '(*', ')(',
    'const', 'struct', 'enum', 'unsigned unsigned', '\x00\xff', 'int[', 'void (*', '<T>',
    'a' * 5000,
])
def test_mapping_is_total(mapper, raw):
    """Malformed input maps to some host type instead of raising"""
    for allow_null in (False, True):
        host = mapper.map_native_to_host(raw, allow_null)
        assert host.lstrip('?') in HOST_TYPES


def test_map_host_to_native(mapper):
    assert mapper.map_host_to_native('int') == 'int'
    assert mapper.map_host_to_native('?string') == 'char*'
    assert mapper.map_host_to_native('float') == 'double'
    assert mapper.map_host_to_native('Whatever') == 'void*'


def test_make_nullable_is_idempotent():
    assert TypeMapper.make_nullable('int') == '?int'
    assert TypeMapper.make_nullable('?int') == '?int'
    assert TypeMapper.make_nullable('mixed') == 'mixed'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_normalize_type():
    assert normalize_type('const  char *') == 'const char*'
    assert normalize_type('int [ 4 ]') == 'int[4]'
    assert normalize_type('void ( * )( int )') == 'void (*)(int)'
    assert normalize_type('void(*)(int)') == 'void (*)(int)'


def test_type_predicates():
    assert is_string_ptr('const char*')
    assert not is_string_ptr('char**')
    assert is_void_ptr('const void*')
    assert is_func_ptr('void (*)(int)')
    assert is_array_type('uint8_t[4]')
    assert not is_array_type('void (*)(int[2])')


def test_type_extraction():
    assert extract_ptr_type('const uiWindow*') == 'uiWindow'
    assert extract_ptr_type('struct foo**') == 'struct foo'
    assert extract_array_sizes('float[4][4]') == [4, 4]


def test_native_range():
    assert native_range('uint8_t') == (0, 255)
    assert native_range('const int') == (-2 ** 31, 2 ** 31 - 1)
    assert native_range('unsigned long long') == (0, 2 ** 64 - 1)
    assert native_range('enum color') == native_range('int')
    assert native_range('float') is None
    assert native_range('char*') is None


def test_default_value():
    assert default_value('int') == '0'
    assert default_value('float') == '0.0'
    assert default_value('string') == "''"
    assert default_value('bool') == 'false'
    assert default_value('array') == '[]'
    assert default_value('?int') == 'null'
    assert default_value('\\FFI\\CData') == 'null'
    assert default_value('mixed') == 'null'
