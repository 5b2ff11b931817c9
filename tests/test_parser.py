"""
Tests for parser.py

Validates:
- PHP method declarations with doc-comment annotations
- Bare and terminated C prototypes
- Parameter edge cases (unnamed, void, nullable, function pointers)
- Resilience against empty, binary and very large input
"""

import time

from wrapper_gen.parser import (
    BindingOutputParser, join_type, parse_doc_comment, parse_parameter, parse_parameters,
    split_nullable,
)
from wrapper_gen.tokenizer import tokenize


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def parse(text):
    return BindingOutputParser().parse(text)


# ---------------------------------------------------------------------------
# C prototypes
# ---------------------------------------------------------------------------


def test_bare_prototype():
    """A prototype without terminator is still a declaration"""
    functions = parse('int add(int a, int b)')
    assert list(functions) == ['add']
    add = functions['add']
    assert add.return_type == 'int'
    assert [(p.name, p.type) for p in add.parameters] == [('a', 'int'), ('b', 'int')]
    assert add.raw_declaration == 'int add(int a, int b)'


def test_prototype_with_semicolon_and_pointer_return():
    functions = parse('const char *get_name(const struct item *it);\n')
    func = functions['get_name']
    assert func.return_type == 'const char*'
    assert func.parameters[0].name == 'it'
    assert func.parameters[0].type == 'const struct item*'


def test_prototype_with_body_on_next_line():
    text = 'static inline float scale(float v)\n{\n    return v * 2;\n}\n'
    func = parse(text)['scale']
    assert func.return_type == 'float'
    assert func.param_types == ['float']


def test_prototype_extern_is_dropped_from_return_type():
    func = parse('extern unsigned long counter(void);')['counter']
    assert func.return_type == 'unsigned long'
    assert func.parameters == ()


def test_statements_are_not_prototypes():
    text = '''
    return compute(a, b);
    if (x) {
    }
    typedef int (*handler)(int);
    '''
    assert parse(text) == {}


def test_call_followed_by_expression_is_ignored():
    assert parse('int make(1) + 2;') == {}


def test_c_doc_comment_is_attached():
    text = '/**\n * Reset the counter\n */\nvoid reset(void);'
    func = parse(text)['reset']
    assert func.documentation == ('Reset the counter',)
    assert func.returns_void


# ---------------------------------------------------------------------------
# PHP declarations
# ---------------------------------------------------------------------------


def test_php_methods(methods_text):
    functions = parse(methods_text)
    assert list(functions) == ['mathAdd', 'mathSub', 'strLen', 'pointReset']

    add = functions['mathAdd']
    assert add.return_type == 'int'
    assert add.param_types == ['int', 'int']
    assert add.documentation == ('Add two numbers',)
    assert add.raw_declaration == 'public static function mathAdd(int $a, int $b): int'

    assert functions['mathSub'].documentation == ()


def test_php_nullable_parameter(methods_text):
    s = parse(methods_text)['strLen'].parameters[0]
    assert s.name == 's'
    assert s.type == 'string'
    assert s.nullable
    assert s.description == 'the input'


def test_php_untyped_parameter_stays_mixed(methods_text):
    func = parse(methods_text)['pointReset']
    point = func.parameters[0]
    assert point.type == 'mixed'
    assert point.description == 'point to reset'
    assert func.returns_void


def test_php_doc_type_fills_untyped_parameter():
    text = '''
    /**
     * @param int|null $count
     * @return string
     */
    function label($count) {}
    '''
    func = parse(text)['label']
    assert func.return_type == 'string'
    count = func.parameters[0]
    assert count.type == 'int'
    assert count.nullable


def test_php_declaration_wins_over_c_prototype():
    text = '''
    int area(int w, int h);
    public static function area(float $w, float $h): float {}
    '''
    func = parse(text)['area']
    assert func.return_type == 'float'
    assert func.param_types == ['float', 'float']


def test_first_declaration_wins():
    text = 'int twice(int a);\nlong twice(long a, long b);\n'
    assert parse(text)['twice'].param_types == ['int']


def test_php_default_null_is_nullable():
    func = parse('function open(string $path, array $opts = null): bool {}')['open']
    assert not func.parameters[0].nullable
    assert func.parameters[1].nullable


def test_php_nested_defaults_and_references():
    text = "function f(array $a = [1, 2], string $s = 'x,y', int &$out, string ...$rest) {}"
    func = parse(text)['f']
    assert [p.name for p in func.parameters] == ['a', 's', 'out', 'rest']
    assert func.return_type == 'void'


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def test_void_parameter_list_is_empty():
    assert parse_parameters('void') == []
    assert parse_parameters('') == []


def test_unnamed_c_parameters():
    params = parse_parameters('int, const char *, struct point')
    assert [(p.name, p.type) for p in params] == [
        ('arg0', 'int'), ('arg1', 'const char*'), ('arg2', 'struct point'),
    ]


def test_function_pointer_parameter():
    param = parse_parameter('void (*callback)(int, void *)')
    assert param.name == 'callback'
    assert param.type == 'void (*)(int, void*)'
    assert param.nullable


def test_array_parameter():
    param = parse_parameter('float values[16]')
    assert param.name == 'values'
    assert param.type == 'float[16]'


def test_typedef_name_is_a_type_not_a_name():
    param = parse_parameter('const size_t', 3)
    assert param.name == 'arg3'
    assert param.type == 'const size_t'


def test_split_nullable_forms():
    assert split_nullable('?int') == ('int', True)
    assert split_nullable('string|null') == ('string', True)
    assert split_nullable('null|int|float') == ('int|float', True)
    assert split_nullable('null') == ('mixed', True)
    assert split_nullable('int|float') == ('int|float', False)


def test_join_type_canonical_spacing():
    assert join_type(tokenize('unsigned   char * *')) == 'unsigned char**'
    assert join_type(tokenize('\\FFI\\CData|int')) == '\\FFI\\CData|int'


def test_parse_doc_comment_separates_annotations():
    info = parse_doc_comment('\n * First line\n * @param int $x the x\n * @return bool\n * Second\n ')
    assert info.lines == ['First line', 'Second']
    assert info.params == {'x': ('int', 'the x')}
    assert info.return_type == 'bool'


# ---------------------------------------------------------------------------
# Resilience
# ---------------------------------------------------------------------------


def test_empty_input():
    assert parse('') == {}
    assert parse('   \n\t') == {}


def test_binary_noise_does_not_raise():
    noise = bytes(range(256)).decode('latin-1') * 8
    assert isinstance(parse(noise), dict)


def test_unterminated_parameter_list():
    assert parse('public static function broken(int $a, ') == {}
    assert parse('int broken(int a') == {}


def test_unterminated_doc_comment():
    func = parse('/** never closed\nint ok(int a);')['ok']
    assert func.documentation == ()


def test_many_declarations():
    text = '\n'.join(f'int fn{i}(int a, int b);' for i in range(10000))
    functions = parse(text)
    assert len(functions) == 10000
    assert functions['fn9999'].param_types == ['int', 'int']


def test_many_plain_text_lines():
    text = '\n'.join('alpha beta gamma delta epsilon zeta eta theta' for _ in range(20000))
    start = time.perf_counter()
    assert parse(text) == {}
    assert time.perf_counter() - start < 3


def test_return_type_does_not_span_lines():
    functions = parse('unsigned\nint split(int a);')
    assert list(functions) == ['split']
    assert functions['split'].return_type == 'int'


def test_parse_file_missing(tmp_path):
    assert BindingOutputParser().parse_file(tmp_path / 'absent.php') == {}


def test_parse_file(artifact_dir):
    functions = BindingOutputParser().parse_file(artifact_dir / 'Methods.php')
    assert 'mathAdd' in functions
