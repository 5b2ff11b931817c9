"""
Validation snippet emission

Turns the rules registered for a raw type into PHP guard statements that run
before the FFI call. Only rule descriptions are used here; custom predicates
live on the Python side and produce no PHP.
"""

import logging
from typing import Optional

from .codegen import CodeGen, php_literal, php_string
from .rules import COUNT, CUSTOM, RANGE, TYPE, ValidationRule, ValidationRuleEngine
from .types import (
    HOST_ARRAY, HOST_BOOL, HOST_FLOAT, HOST_HANDLE, HOST_INT, HOST_STRING, TypeMapper,
)

logger = logging.getLogger(__name__)

PHP_INT_MIN = -(1 << 63)
PHP_INT_MAX = (1 << 63) - 1

EXCEPTION = '\\InvalidArgumentException'

TYPE_CHECKS = {
    HOST_INT: ('!is_int({v})', 'must be an integer'),
    HOST_FLOAT: ('!is_numeric({v})', 'must be numeric'),
    HOST_STRING: ('!is_string({v})', 'must be a string'),
    HOST_BOOL: ('!is_bool({v})', 'must be a boolean'),
    HOST_ARRAY: ('!is_array({v})', 'must be an array'),
    HOST_HANDLE: ('!({v} instanceof \\FFI\\CData)', 'must be an FFI\\CData handle'),
}


class ValidationCodeEmitter:
    """Emits PHP guards for a parameter from its raw type's rules"""

    def __init__(self, engine: ValidationRuleEngine, mapper: Optional[TypeMapper] = None):
        self.engine = engine
        self.mapper = mapper or TypeMapper()

    def conditions(self, param: str, raw_type: str, typed: bool = False) -> list[tuple[str, str]]:
        """(failure condition, message) pairs for one parameter

        typed means the PHP signature already enforces the host type, so
        type rules add nothing.
        """
        var = f'${param}'
        rules = self.engine.rules_for(raw_type) or (ValidationRule.type_check(raw_type),)
        result = []
        for rule in rules:
            if rule.kind == TYPE:
                if not typed:
                    result.extend(self._type_condition(var, param, rule))
            elif rule.kind == RANGE:
                result.extend(self._range_conditions(var, param, rule))
            elif rule.kind in (COUNT, CUSTOM):
                logger.debug('no PHP guard for %s rule on %s', rule.kind, raw_type)
        return result

    def emit(self, param: str, raw_type: str, nullable: bool = False, typed: bool = False) -> list[str]:
        """Guard statements as unindented lines"""
        gen = CodeGen()
        for cond, message in self.conditions(param, raw_type, typed):
            if nullable:
                cond = f'${param} !== null && ({cond})'
            with gen.block(f'if ({cond})'):
                gen.line(f'throw new {EXCEPTION}({php_string(f"Parameter {param} {message}")});')
        return gen.output().splitlines()

    def render(self, param: str, raw_type: str, nullable: bool = False, typed: bool = False) -> str:
        return '\n'.join(self.emit(param, raw_type, nullable, typed))

    def _type_condition(self, var: str, param: str, rule: ValidationRule) -> list[tuple[str, str]]:
        expected = rule.parameters.get('expected_type', 'mixed')
        host = self.mapper.map_native_to_host(expected)
        check = TYPE_CHECKS.get(host)
        if check is None:
            return []
        cond, message = check
        return [(cond.format(v=var), message)]

    @staticmethod
    def _range_conditions(var: str, param: str, rule: ValidationRule) -> list[tuple[str, str]]:
        params = rule.parameters
        out = []

        low, high = params.get('min'), params.get('max')
        # Bounds at or beyond PHP's integer limits can never fail
        if low is not None and low <= PHP_INT_MIN:
            low = None
        if high is not None and high >= PHP_INT_MAX:
            high = None
        if low is not None and high is not None:
            out.append((f'{var} < {php_literal(low)} || {var} > {php_literal(high)}',
                        f'must be between {low} and {high}'))
        elif low is not None:
            out.append((f'{var} < {php_literal(low)}', f'must be at least {low}'))
        elif high is not None:
            out.append((f'{var} > {php_literal(high)}', f'must be at most {high}'))

        length_min, length_max = params.get('length_min'), params.get('length_max')
        if length_min is not None or length_max is not None:
            length = f'(is_string({var}) ? strlen({var}) : count({var}))'
            if length_min is not None:
                out.append((f'{length} < {length_min}', f'must have a length of at least {length_min}'))
            if length_max is not None:
                out.append((f'{length} > {length_max}', f'must have a length of at most {length_max}'))

        allowed = params.get('allowed_values')
        if isinstance(allowed, (list, tuple)):
            out.append((f'!in_array({var}, {php_literal(list(allowed))}, true)',
                        'must be one of: ' + ', '.join(str(a) for a in allowed)))

        pattern = params.get('pattern')
        if isinstance(pattern, str):
            regex = php_string('/' + pattern.replace('/', '\\/') + '/')
            out.append((f'!is_string({var}) || !preg_match({regex}, {var})',
                        'does not match required pattern'))
        return out
