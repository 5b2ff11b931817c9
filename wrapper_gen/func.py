"""
Method generation module

Generates PHP static wrapper methods for native functions.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .codegen import CodeGen, is_identifier
from .errors import ConfigurationError
from .naming import NameAllocator, NamingContext, derive_member_name
from .types import HOST_MIXED, HOST_VOID, TypeMapper, is_pointer, normalize_type

if TYPE_CHECKING:
    from .checks import ValidationCodeEmitter
    from .ir import FunctionSignature

OBJECT_MODE = 'object'
FUNCTIONAL_MODE = 'functional'
GENERATION_MODES = (OBJECT_MODE, FUNCTIONAL_MODE)

# Variables PHP reserves inside methods
RESERVED_VARIABLES = {'this', 'GLOBALS'}


@dataclass(frozen=True)
class PhpParam:
    """Parameter as it appears in the generated signature"""
    name: str
    raw_type: str
    host_type: str
    nullable: bool
    description: str = ''

    @property
    def declaration(self) -> str:
        # mixed is left undeclared
        if self.host_type == HOST_MIXED:
            return f'${self.name}'
        return f'{self.host_type} ${self.name}'

    @property
    def typed(self) -> bool:
        return self.host_type != HOST_MIXED


def doc_type(host_type: str) -> str:
    """Docblock spelling: ?T becomes T|null"""
    if host_type.startswith('?'):
        return host_type[1:] + '|null'
    return host_type


class MethodGenerator:
    """Generates one wrapper method per native function"""

    def __init__(self, mapper: Optional[TypeMapper] = None,
                 emitter: Optional['ValidationCodeEmitter'] = None,
                 mode: str = OBJECT_MODE, validate: bool = True, check_types: bool = True):
        if mode not in GENERATION_MODES:
            raise ConfigurationError(f'Unknown generation type: {mode}', context={'generationType': mode})
        self.mapper = mapper or TypeMapper()
        self.emitter = emitter
        self.mode = mode
        self.validate = validate and emitter is not None
        # Without type checks only range guards are emitted
        self.check_types = check_types

    def method_name(self, func: 'FunctionSignature', context: NamingContext) -> str:
        if self.mode == FUNCTIONAL_MODE:
            return func.name
        return derive_member_name(func.name, context)

    def return_type(self, raw_type: str) -> str:
        """Host return type; pointers may come back NULL"""
        t = normalize_type(raw_type) if raw_type else 'void'
        host = self.mapper.map_native_to_host(t)
        if host == HOST_VOID:
            return HOST_VOID
        return self.mapper.make_nullable(host) if is_pointer(t) else host

    def parameters(self, func: 'FunctionSignature') -> list[PhpParam]:
        """Signature parameters with sanitized, unique variable names"""
        names = NameAllocator(RESERVED_VARIABLES)
        params = []
        for i, param in enumerate(func.parameters):
            name = param.name if is_identifier(param.name) else f'arg{i}'
            name = names.allocate(name)
            host = self.mapper.map_native_to_host(param.type, allow_null=param.nullable)
            params.append(PhpParam(name, param.type, host, param.nullable, param.description))
        return params

    def generate(self, func: 'FunctionSignature', gen: CodeGen, name: str):
        """Generate wrapper method for a function"""
        params = self.parameters(func)
        return_type = self.return_type(func.return_type)

        doc = list(func.documentation) or [f'Wrapper for {func.name}']
        tags = []
        for p in params:
            tag = f'@param {doc_type(p.host_type)} ${p.name}'
            tags.append(f'{tag} {p.description}' if p.description else tag)
        if return_type != HOST_VOID:
            tags.append(f'@return {doc_type(return_type)}')
        gen.docblock(doc + ([''] if tags else []) + tags)

        signature = f"public static function {name}({', '.join(p.declaration for p in params)})"
        if return_type != HOST_VOID:
            signature += f': {return_type}'

        with gen.block(signature, brace_on_own_line=True):
            if self.validate:
                for p in params:
                    typed = p.typed or not self.check_types
                    for line in self.emitter.emit(p.name, p.raw_type, nullable=p.nullable, typed=typed):
                        gen.line(line)
            call = f"static::getFFI()->{func.name}({', '.join('$' + p.name for p in params)})"
            gen.line(f'return {call};' if return_type != HOST_VOID else f'{call};')

    def render(self, func: 'FunctionSignature', name: str, indent: int = 1) -> str:
        """Method source indented for a class body"""
        gen = CodeGen()
        for _ in range(indent):
            gen.indent()
        self.generate(func, gen, name)
        return gen.output()
