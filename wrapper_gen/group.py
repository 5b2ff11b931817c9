"""
Class assembly module

Assembles one WrapperClass per function group: derived method names with
collisions suffixed, rendered methods, and handle properties for the
structures the class wraps.
"""

import logging
from typing import Iterable, Optional, Sequence

from .codegen import CodeGen, lcfirst
from .func import FUNCTIONAL_MODE, MethodGenerator
from .ir import FunctionSignature, StructureDefinition, WrapperClass
from .naming import (
    DEFAULT_CONSTRUCTOR_PATTERN, NameAllocator, NamingContext,
    derive_class_name, derive_type_name,
)

logger = logging.getLogger(__name__)

FUNCTIONAL_CLASS = 'Functions'

# Defined by the wrapper class template itself
TEMPLATE_METHODS = ('getFFI',)


class ClassGenerator:
    """Builds wrapper classes from grouped functions"""

    def __init__(self, method_gen: MethodGenerator, prefixes: Sequence[str] = (),
                 class_prefix: str = '', constructor_pattern: str = DEFAULT_CONSTRUCTOR_PATTERN):
        self.method_gen = method_gen
        self.prefixes = tuple(prefixes)
        self.class_prefix = class_prefix
        self.constructor_pattern = constructor_pattern

    def class_name(self, group: str) -> str:
        if self.method_gen.mode == FUNCTIONAL_MODE:
            return FUNCTIONAL_CLASS
        return derive_class_name(group, self.class_prefix)

    def naming_context(self, group: str) -> NamingContext:
        return NamingContext(group=group, prefixes=self.prefixes,
                             constructor_pattern=self.constructor_pattern)

    def assemble(self, group: str, functions: Iterable[FunctionSignature], namespace: str,
                 structures: Iterable[StructureDefinition] = (),
                 class_name: Optional[str] = None) -> WrapperClass:
        """Assemble the wrapper class for one group"""
        name = class_name or self.class_name(group)
        context = self.naming_context(group)
        names = NameAllocator(TEMPLATE_METHODS)

        methods = []
        for func in functions:
            derived = self.method_gen.method_name(func, context)
            method_name = names.allocate(derived)
            if method_name != derived:
                logger.info('%s: %s renamed to %s to avoid a collision', name, func.name, method_name)
            methods.append(self.method_gen.render(func, method_name))

        properties = [self.handle_property(s) for s in self.related_structures(name, structures)]
        return WrapperClass(name=name, namespace=namespace, methods=methods, properties=properties)

    def assemble_functional(self, functions: Iterable[FunctionSignature], namespace: str) -> WrapperClass:
        """Single class holding every function under its raw name"""
        return self.assemble(FUNCTIONAL_CLASS, functions, namespace)

    def related_structures(self, class_name: str,
                           structures: Iterable[StructureDefinition]) -> list[StructureDefinition]:
        """Structures whose derived type name is the class name"""
        return [s for s in structures if derive_type_name(s.name) == class_name]

    @staticmethod
    def handle_property(structure: StructureDefinition) -> str:
        gen = CodeGen()
        gen.indent()
        kind = 'union' if structure.is_union else 'struct'
        gen.docblock([f'{structure.name} {kind}'])
        gen.line(f'private ?\\FFI\\CData ${lcfirst(structure.name)} = null;')
        return gen.output()
