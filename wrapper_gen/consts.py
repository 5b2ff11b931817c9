"""
Constant generation module

Collects preprocessor-style constants into a single holder class with
normalized names and lookup helpers.
"""

import logging
from typing import Any, Mapping

from .codegen import CodeGen, php_string
from .ir import WrapperClass
from .naming import RESERVED_CONSTANTS, NameAllocator, derive_constant_name

logger = logging.getLogger(__name__)

CONSTANTS_CLASS = 'Constants'


class ConstantGenerator:
    """Generates the constants holder class"""

    def normalize(self, constants: Mapping[str, Any]) -> dict[str, Any]:
        """Normalized name -> value; later collisions get a numeric suffix"""
        names = NameAllocator(RESERVED_CONSTANTS)
        result = {}
        for raw, value in constants.items():
            normalized = derive_constant_name(raw)
            name = names.allocate(normalized)
            if name != normalized:
                logger.info('constant %s renamed to %s to avoid a collision', raw, name)
            result[name] = value
        return result

    def generate(self, constants: Mapping[str, Any], namespace: str,
                 class_name: str = CONSTANTS_CLASS) -> WrapperClass:
        normalized = self.normalize(constants)
        methods = [
            self._get_all_constants(normalized),
            self._get_constant(),
            self._has_constant(),
        ]
        return WrapperClass(
            name=class_name,
            namespace=namespace,
            methods=methods,
            constants=normalized,
            kind='constants',
        )

    @staticmethod
    def _gen() -> CodeGen:
        gen = CodeGen()
        gen.indent()
        return gen

    def _get_all_constants(self, constants: Mapping[str, Any]) -> str:
        gen = self._gen()
        gen.docblock(['Get all constants as an array', '@return array<string, mixed>'])
        with gen.block('public static function getAllConstants(): array', brace_on_own_line=True):
            if not constants:
                gen.line('return [];')
            else:
                gen.line('return [')
                gen.indent()
                for name in constants:
                    gen.line(f'{php_string(name)} => self::{name},')
                gen.dedent()
                gen.line('];')
        return gen.output()

    def _get_constant(self) -> str:
        gen = self._gen()
        gen.docblock([
            'Get a constant value by name',
            '@param string $name Constant name',
            '@return mixed Constant value',
            "@throws \\InvalidArgumentException If constant doesn't exist",
        ])
        with gen.block('public static function getConstant(string $name): mixed', brace_on_own_line=True):
            gen.line('$constants = self::getAllConstants();')
            gen.line()
            with gen.block('if (!array_key_exists($name, $constants))'):
                gen.line('throw new \\InvalidArgumentException("Constant \'{$name}\' does not exist");')
            gen.line()
            gen.line('return $constants[$name];')
        return gen.output()

    def _has_constant(self) -> str:
        gen = self._gen()
        gen.docblock([
            'Check if a constant exists',
            '@param string $name Constant name',
            '@return bool True if constant exists',
        ])
        with gen.block('public static function hasConstant(string $name): bool', brace_on_own_line=True):
            gen.line('return array_key_exists($name, self::getAllConstants());')
        return gen.output()
