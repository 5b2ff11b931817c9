"""
Tests for naming.py

Validates:
- Prefix grouping and ordered domain patterns
- Member, type, class and constant name derivation
- The group_key / requalify round trip
- Case-insensitive collision handling
"""

import pytest

from wrapper_gen.errors import ConfigurationError
from wrapper_gen.ir import FunctionSignature
from wrapper_gen.naming import (
    NameAllocator, NamingContext, compile_patterns, derive_class_name, derive_constant_name,
    derive_member_name, derive_type_name, group_functions, group_key, requalify,
    strip_known_prefix,
)


def funcs(*names):
    return [FunctionSignature(name, 'void') for name in names]


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize('name, key', [
    ('mathAdd', 'math'),
    ('strLen', 'str'),
    ('sg_make_buffer', 'sg'),
    ('HTTPServerStart', 'HTTP'),
    ('__internal_call', 'internal'),
    ('Window', 'Window'),
    ('vec3Add', 'vec3'),
])
def test_group_key(name, key):
    assert group_key(name) == key


def test_group_functions_by_prefix():
    groups = group_functions(funcs('mathAdd', 'strLen', 'mathSub'))
    assert list(groups) == ['math', 'str']
    assert [f.name for f in groups['math']] == ['mathAdd', 'mathSub']
    assert [f.name for f in groups['str']] == ['strLen']


def test_group_functions_with_ordered_patterns():
    patterns = [
        ('Window', r'^ui(?:New)?Window'),
        ('Ui', r'^ui'),
    ]
    groups = group_functions(funcs('uiWindowSetTitle', 'uiNewWindow', 'uiMain', 'other'), patterns)
    assert {k: [f.name for f in v] for k, v in groups.items()} == {
        'Window': ['uiWindowSetTitle', 'uiNewWindow'],
        'Ui': ['uiMain'],
        'other': ['other'],
    }


def test_first_matching_pattern_wins():
    groups = group_functions(funcs('uiWindowShow'), {'Ui': '^ui', 'Window': 'Window'})
    assert list(groups) == ['Ui']


def test_invalid_pattern():
    with pytest.raises(ConfigurationError) as excinfo:
        compile_patterns([('Broken', '(')])
    assert excinfo.value.message.startswith("Invalid grouping pattern for 'Broken'")


# ---------------------------------------------------------------------------
# Member names
# ---------------------------------------------------------------------------


def window():
    return NamingContext('Window', ('ui',))


def test_member_name_strips_prefix_and_group():
    assert derive_member_name('uiWindowSetTitle', window()) == 'setTitle'


def test_constructor_becomes_factory():
    assert derive_member_name('uiNewWindow', window()) == 'new'


def test_custom_constructor_pattern():
    ctx = NamingContext('Window', ('ui',), constructor_pattern='{type}Create')
    assert derive_member_name('uiWindowCreate', ctx) == 'new'
    assert derive_member_name('uiNewWindow', ctx) == 'newWindow'


def test_empty_remainder_falls_back():
    assert derive_member_name('uiWindow', window()) == 'invoke'


def test_snake_case_member():
    assert derive_member_name('sg_make_buffer', NamingContext('sg')) == 'makeBuffer'


def test_group_is_only_stripped_on_word_boundary():
    assert derive_member_name('mathematics', NamingContext('math')) == 'mathematics'
    assert derive_member_name('mathAdd', NamingContext('math')) == 'add'


def test_leading_digit_keeps_group():
    assert derive_member_name('math2d', NamingContext('math')) == 'math2d'


def test_strip_known_prefix_prefers_longest():
    assert strip_known_prefix('uiDrawPathNew', ['ui', 'uiDraw']) == 'PathNew'
    assert strip_known_prefix('uinteger', ['ui']) == 'uinteger'
    assert strip_known_prefix('ui', ['ui']) == 'ui'


@pytest.mark.parametrize('group', ['math', 'str', 'Window', 'sg', 'HTTP', 'ui2'])
@pytest.mark.parametrize('member', ['setTitle', 'new', 'invoke', 'x2', 'getHTTPCode'])
def test_requalify_round_trip(group, member):
    assert group_key(requalify(member, group)) == group_key(group)


# ---------------------------------------------------------------------------
# Type, class and constant names
# ---------------------------------------------------------------------------


@pytest.mark.parametrize('raw, expected', [
    ('struct point_t', 'Point'),
    ('point', 'Point'),
    ('uiFontDescriptor', 'UiFontDescriptor'),
    ('const struct node *', 'Node'),
    ('ui_font_descriptor_t', 'UiFontDescriptor'),
    ('3d_vec', 'T3dVec'),
    ('', 'Struct'),
    ('_t', 'T'),
])
def test_derive_type_name(raw, expected):
    assert derive_type_name(raw) == expected


def test_derive_class_name():
    assert derive_class_name('math') == 'Math'
    assert derive_class_name('Window', 'Ui') == 'UiWindow'
    assert derive_class_name('ui', 'Ui') == 'Ui'
    assert derive_class_name('') == 'General'


@pytest.mark.parametrize('group, expected', [
    ('string', 'StringFunctions'),
    ('list', 'ListFunctions'),
    ('self', 'SelfFunctions'),
    ('echo', 'EchoFunctions'),
    ('strings', 'Strings'),
])
def test_derive_class_name_avoids_reserved_words(group, expected):
    assert derive_class_name(group) == expected


def test_reserved_check_follows_class_prefix():
    assert derive_class_name('ing', 'Str') == 'StrIngFunctions'
    assert derive_class_name('list', 'Ui') == 'UiList'


@pytest.mark.parametrize('raw, expected', [
    ('list', 'ListStruct'),
    ('struct object', 'ObjectStruct'),
    ('int_t', 'IntStruct'),
    ('linked_list', 'LinkedList'),
])
def test_derive_type_name_avoids_reserved_words(raw, expected):
    assert derive_type_name(raw) == expected


def test_derive_constant_name():
    assert derive_constant_name('MATH_MAX') == 'MATH_MAX'
    assert derive_constant_name('math-max') == 'MATH_MAX'
    assert derive_constant_name('1st') == '_1ST'
    assert derive_constant_name('') == '_'


# ---------------------------------------------------------------------------
# Collisions
# ---------------------------------------------------------------------------


def test_name_allocator_suffixes_collisions():
    names = NameAllocator()
    assert names.allocate('add') == 'add'
    assert names.allocate('Add') == 'Add2'
    assert names.allocate('add') == 'add3'
    assert 'ADD2' in names


def test_name_allocator_reserved():
    names = NameAllocator(['getFFI'])
    assert names.allocate('getffi') == 'getffi2'
