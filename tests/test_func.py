"""
Tests for func.py

Validates:
- Wrapper method source for object and functional modes
- Return and parameter type mapping in signatures
- Guard emission switches
"""

import pytest

from wrapper_gen.checks import ValidationCodeEmitter
from wrapper_gen.errors import ConfigurationError
from wrapper_gen.func import MethodGenerator, doc_type
from wrapper_gen.ir import FunctionSignature, ParamInfo
from wrapper_gen.naming import NamingContext
from wrapper_gen.parser import BindingOutputParser
from wrapper_gen.rules import RuleTable, ValidationRule, ValidationRuleEngine


@pytest.fixture
def functions(methods_text):
    return BindingOutputParser().parse(methods_text)


@pytest.fixture
def method_gen():
    return MethodGenerator(emitter=ValidationCodeEmitter(ValidationRuleEngine()))


INT_GUARD = "throw new \\InvalidArgumentException('Parameter {p} must be between -2147483648 and 2147483647');"


def test_object_method(method_gen, functions):
    code = method_gen.render(functions['mathAdd'], 'add')
    assert code.splitlines() == [
        '    /**',
        '     * Add two numbers',
        '     *',
        '     * @param int $a',
        '     * @param int $b',
        '     * @return int',
        '     */',
        '    public static function add(int $a, int $b): int',
        '    {',
        '        if ($a < -2147483648 || $a > 2147483647) {',
        '            ' + INT_GUARD.format(p='a'),
        '        }',
        '        if ($b < -2147483648 || $b > 2147483647) {',
        '            ' + INT_GUARD.format(p='b'),
        '        }',
        '        return static::getFFI()->mathAdd($a, $b);',
        '    }',
    ]


def test_void_method(method_gen, functions):
    code = method_gen.render(functions['pointReset'], 'reset', indent=0)
    assert code.splitlines() == [
        '/**',
        ' * Wrapper for pointReset',
        ' *',
        ' * @param mixed $point point to reset',
        ' */',
        'public static function reset($point)',
        '{',
        '    static::getFFI()->pointReset($point);',
        '}',
    ]


def test_nullable_parameter(method_gen, functions):
    code = method_gen.render(functions['strLen'], 'len', indent=0)
    assert 'public static function len(?string $s): int' in code
    assert ' * @param string|null $s the input' in code
    assert 'if (' not in code


def test_without_validation(functions):
    gen = MethodGenerator(emitter=ValidationCodeEmitter(ValidationRuleEngine()), validate=False)
    code = gen.render(functions['mathAdd'], 'add', indent=0)
    assert 'if (' not in code
    assert 'return static::getFFI()->mathAdd($a, $b);' in code


def test_without_emitter_no_guards(functions):
    gen = MethodGenerator()
    assert not gen.validate
    assert 'if (' not in gen.render(functions['mathAdd'], 'add')


def test_type_guards_only_for_untyped_parameters():
    table = RuleTable().add('Handle', ValidationRule.type_check('int'))
    emitter = ValidationCodeEmitter(ValidationRuleEngine(table))
    func = FunctionSignature('use', 'void', (ParamInfo('h', 'Handle'),))

    with_types = MethodGenerator(emitter=emitter).render(func, 'use', indent=0)
    assert 'if (!is_int($h)) {' in with_types
    assert 'public static function use($h)' in with_types

    without_types = MethodGenerator(emitter=emitter, check_types=False).render(func, 'use', indent=0)
    assert 'if (' not in without_types


@pytest.mark.parametrize('raw, host', [
    ('int', 'int'),
    ('void', 'void'),
    ('', 'void'),
    ('const char*', '?string'),
    ('uiWindow *', '?\\FFI\\CData'),
    ('void*', 'mixed'),
    ('double', 'float'),
])
def test_return_type(raw, host):
    assert MethodGenerator().return_type(raw) == host


def test_parameter_names_are_sanitized():
    func = FunctionSignature('f', 'void', (
        ParamInfo('this', 'int'),
        ParamInfo('a', 'int'),
        ParamInfo('A', 'int'),
        ParamInfo('bad name', 'int'),
    ))
    names = [p.name for p in MethodGenerator().parameters(func)]
    assert names == ['this2', 'a', 'A2', 'arg3']


def test_mixed_parameter_is_undeclared():
    func = FunctionSignature('f', 'void', (ParamInfo('v', 'void*'),))
    [param] = MethodGenerator().parameters(func)
    assert param.declaration == '$v'
    assert not param.typed


def test_method_names_per_mode(functions):
    context = NamingContext('math')
    assert MethodGenerator().method_name(functions['mathAdd'], context) == 'add'
    functional = MethodGenerator(mode='functional')
    assert functional.method_name(functions['mathAdd'], context) == 'mathAdd'


def test_unknown_mode():
    with pytest.raises(ConfigurationError) as excinfo:
        MethodGenerator(mode='procedural')
    assert excinfo.value.message == 'Unknown generation type: procedural'


def test_doc_type():
    assert doc_type('?string') == 'string|null'
    assert doc_type('int') == 'int'
