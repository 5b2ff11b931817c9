"""
Tests for struct.py

Validates:
- Field typing and defaults
- Constructor, accessors, toArray and fromArray source
- Name sanitizing for fields and accessors
"""

import pytest

from wrapper_gen.ir import FieldInfo, StructureDefinition
from wrapper_gen.processor import BindingProcessor
from wrapper_gen.struct import StructGenerator


@pytest.fixture
def point(header_text):
    return BindingProcessor().extract_structures(header_text)[0]


@pytest.fixture
def generator():
    return StructGenerator()


def test_field_types_and_defaults(generator, point):
    fields = generator.fields(point)
    assert [(f.name, f.host_type, f.default) for f in fields] == [
        ('x', 'int', '0'),
        ('y', 'int', '0'),
        ('label', 'string', "''"),
        ('on_change', '?\\FFI\\CData', 'null'),
        ('flags', 'array', '[]'),
    ]


def test_generate_point(generator, point):
    wrapper = generator.generate(point, 'Geo\\Struct')
    assert wrapper.name == 'Point'
    assert wrapper.kind == 'struct'
    assert wrapper.structure is point
    assert wrapper.qualified_name == 'Geo\\Struct\\Point'
    assert wrapper.properties[0] == (
        '    /**\n'
        '     * x field (C type: int)\n'
        '     */\n'
        '    private int $x;'
    )
    # constructor, getter + setter per field, toArray, fromArray
    assert len(wrapper.methods) == 1 + 2 * 5 + 2


def test_constructor(generator, point):
    constructor = generator.generate(point, 'Ns').methods[0]
    assert (
        "    public function __construct(int $x = 0, int $y = 0, string $label = '', "
        "?\\FFI\\CData $on_change = null, array $flags = [])"
    ) in constructor
    assert '        $this->on_change = $on_change;' in constructor


def test_accessors(generator, point):
    methods = generator.generate(point, 'Ns').methods
    getter, setter = methods[1], methods[2]
    assert '    public function getX(): int' in getter
    assert '        return $this->x;' in getter
    assert '    public function setX(int $x): void' in setter
    assert any('public function getOnChange(): ?\\FFI\\CData' in m for m in methods)


def test_to_and_from_array(generator, point):
    methods = generator.generate(point, 'Ns').methods
    to_array, from_array = methods[-2], methods[-1]
    assert to_array.splitlines()[-9:] == [
        '    {',
        '        return [',
        "            'x' => $this->x,",
        "            'y' => $this->y,",
        "            'label' => $this->label,",
        "            'on_change' => $this->on_change,",
        "            'flags' => $this->flags,",
        '        ];',
        '    }',
    ]
    assert from_array.splitlines()[-9:] == [
        '    {',
        '        return new self(',
        "            $data['x'] ?? 0,",
        "            $data['y'] ?? 0,",
        "            $data['label'] ?? '',",
        "            $data['on_change'] ?? null,",
        "            $data['flags'] ?? [],",
        '        );',
        '    }',
    ]


def test_empty_struct(generator):
    wrapper = generator.generate(StructureDefinition('point'), 'Ns')
    assert wrapper.properties == []
    assert len(wrapper.methods) == 3
    assert 'public function __construct()' in wrapper.methods[0]
    assert 'return [];' in wrapper.methods[1]
    assert 'return new self();' in wrapper.methods[2]


def test_untyped_field(generator):
    structure = StructureDefinition('holder', (FieldInfo('value', 'SomeTypedef'),))
    wrapper = generator.generate(structure, 'Ns')
    assert wrapper.properties[0].endswith('private $value;')
    assert 'public function __construct($value = null)' in wrapper.methods[0]
    assert 'public function getValue()\n' in wrapper.methods[1]


def test_field_and_accessor_names_are_sanitized(generator):
    structure = StructureDefinition('odd', (
        FieldInfo('this', 'int'),
        FieldInfo('bad-name', 'int'),
        FieldInfo('on_change', 'int'),
        FieldInfo('onChange', 'int'),
    ))
    fields = generator.fields(structure)
    assert [f.name for f in fields] == ['this2', 'field1', 'on_change', 'onChange']
    methods = generator.generate(structure, 'Ns').methods
    assert any('public function getOnChange(): int' in m for m in methods)
    assert any('public function getOnChange2(): int' in m for m in methods)
