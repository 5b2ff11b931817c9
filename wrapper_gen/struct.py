"""
Struct binding generation module

Generates PHP value classes for C structs and unions: typed properties, a
constructor with per-type defaults, getters/setters, toArray and fromArray.
"""

from dataclasses import dataclass
from typing import Optional

from .codegen import CodeGen, as_pascal_case, is_identifier, php_string, ucfirst
from .ir import FieldInfo, StructureDefinition, WrapperClass
from .naming import NameAllocator, derive_type_name
from .types import HOST_MIXED, TypeMapper, default_value


@dataclass(frozen=True)
class StructField:
    """Field as it appears on the generated class"""
    name: str
    raw_type: str
    host_type: str
    default: str

    @property
    def declared_type(self) -> str:
        return '' if self.host_type == HOST_MIXED else self.host_type


class StructGenerator:
    """Generates struct wrapper classes"""

    def __init__(self, mapper: Optional[TypeMapper] = None):
        self.mapper = mapper or TypeMapper()

    def fields(self, structure: StructureDefinition) -> list[StructField]:
        names = NameAllocator(('this',))
        result = []
        for i, field in enumerate(structure.fields):
            name = names.allocate(field.name if is_identifier(field.name) else f'field{i}')
            result.append(self._field(name, field))
        return result

    def _field(self, name: str, field: FieldInfo) -> StructField:
        host = self.mapper.map_native_to_host(field.type)
        default = default_value(host)
        # Handle-typed fields start out empty
        if default == 'null' and host != HOST_MIXED:
            host = self.mapper.make_nullable(host)
        return StructField(name, field.type, host, default)

    def generate(self, structure: StructureDefinition, namespace: str) -> WrapperClass:
        """Assemble the wrapper class for one struct"""
        fields = self.fields(structure)
        class_name = derive_type_name(structure.name)
        properties = [self._property(f) for f in fields]

        methods = [self._constructor(fields)]
        accessors = NameAllocator(('__construct', 'toArray', 'fromArray'))
        for f in fields:
            suffix = as_pascal_case(f.name) or ucfirst(f.name)
            methods.append(self._getter(f, accessors.allocate('get' + suffix)))
            methods.append(self._setter(f, accessors.allocate('set' + suffix)))
        methods.append(self._to_array(fields))
        methods.append(self._from_array(fields))

        return WrapperClass(
            name=class_name,
            namespace=namespace,
            methods=methods,
            properties=properties,
            kind='struct',
            structure=structure,
        )

    @staticmethod
    def _gen() -> CodeGen:
        gen = CodeGen()
        gen.indent()
        return gen

    def _property(self, f: StructField) -> str:
        gen = self._gen()
        gen.docblock([f'{f.name} field (C type: {f.raw_type})'])
        declared = f'{f.declared_type} ' if f.declared_type else ''
        gen.line(f'private {declared}${f.name};')
        return gen.output()

    def _constructor(self, fields: list[StructField]) -> str:
        gen = self._gen()
        gen.docblock(['Constructor'] + [f'@param {f.host_type} ${f.name}' for f in fields])
        params = ', '.join(
            f'{f.declared_type + " " if f.declared_type else ""}${f.name} = {f.default}' for f in fields
        )
        with gen.block(f'public function __construct({params})', brace_on_own_line=True):
            for f in fields:
                gen.line(f'$this->{f.name} = ${f.name};')
        return gen.output()

    def _getter(self, f: StructField, method: str) -> str:
        gen = self._gen()
        gen.docblock([f'Get {f.name} field', f'@return {f.host_type}'])
        ret = f': {f.declared_type}' if f.declared_type else ''
        with gen.block(f'public function {method}(){ret}', brace_on_own_line=True):
            gen.line(f'return $this->{f.name};')
        return gen.output()

    def _setter(self, f: StructField, method: str) -> str:
        gen = self._gen()
        gen.docblock([f'Set {f.name} field', f'@param {f.host_type} ${f.name}'])
        declared = f'{f.declared_type} ' if f.declared_type else ''
        with gen.block(f'public function {method}({declared}${f.name}): void', brace_on_own_line=True):
            gen.line(f'$this->{f.name} = ${f.name};')
        return gen.output()

    def _to_array(self, fields: list[StructField]) -> str:
        gen = self._gen()
        gen.docblock(['Convert struct to array', '@return array<string, mixed>'])
        with gen.block('public function toArray(): array', brace_on_own_line=True):
            if not fields:
                gen.line('return [];')
            else:
                gen.line('return [')
                gen.indent()
                for f in fields:
                    gen.line(f'{php_string(f.name)} => $this->{f.name},')
                gen.dedent()
                gen.line('];')
        return gen.output()

    def _from_array(self, fields: list[StructField]) -> str:
        gen = self._gen()
        gen.docblock(['Create struct from array', '@param array<string, mixed> $data', '@return self'])
        with gen.block('public static function fromArray(array $data): self', brace_on_own_line=True):
            if not fields:
                gen.line('return new self();')
            else:
                gen.line('return new self(')
                gen.indent()
                args = [f'$data[{php_string(f.name)}] ?? {f.default}' for f in fields]
                for i, arg in enumerate(args):
                    gen.line(arg + (',' if i < len(args) - 1 else ''))
                gen.dedent()
                gen.line(');')
        return gen.output()
