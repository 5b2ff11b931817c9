"""
Value conversion module

Checks whether a host value can be passed to a native parameter, coercing it
when that is safe: lossless float->int, numeric strings, bool->0/1 and the
usual truthy strings for booleans. Integer widths are range checked.
"""

import re
from typing import Any, Optional

from .ir import ValidationResult
from .types import (
    FLOAT_TYPES, BOOL_TYPES, HOST_BOOL, HOST_FLOAT, HOST_INT, HOST_MIXED, HOST_STRING,
    normalize_type, native_range, strip_qualifiers, is_string_ptr, is_pointer, is_func_ptr,
)

NUMERIC_PATTERN = re.compile(r'^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$')

TRUE_STRINGS = {'true', '1', 'yes', 'on'}
FALSE_STRINGS = {'false', '0', 'no', 'off', ''}

INTEGER = 'integer'
FLOAT = 'double'
STRING = 'string'
BOOLEAN = 'boolean'
POINTER = 'pointer'

KIND_HOST_TYPES = {INTEGER: HOST_INT, FLOAT: HOST_FLOAT, STRING: HOST_STRING, BOOLEAN: HOST_BOOL}


def type_name(value: Any) -> str:
    """Host-side name of a value's type, used in messages"""
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'double'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, (list, tuple, dict)):
        return 'array'
    return 'object'


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and NUMERIC_PATTERN.match(value) is not None


class TypeConverter:
    """Converts host values for native parameters"""

    def convert(self, value: Any, raw_type: str) -> ValidationResult:
        c_type = normalize_type(raw_type)
        kind = self.kind_of(c_type)

        if kind is None:
            # Unknown types are accepted unchanged
            return ValidationResult.valid(value)

        if value is None:
            if kind in (STRING, POINTER):
                return ValidationResult.valid(None)
            return ValidationResult.invalid(f'Null value not allowed for non-pointer type {c_type}')

        if kind == INTEGER:
            return self._to_integer(value, c_type)
        if kind == FLOAT:
            return self._to_float(value, c_type)
        if kind == STRING:
            return self._to_string(value, c_type)
        if kind == BOOLEAN:
            return self._to_boolean(value, c_type)
        return self._to_pointer(value, c_type)

    def is_compatible(self, value: Any, raw_type: str) -> bool:
        return self.convert(value, raw_type).is_valid

    def expected_host_type(self, raw_type: str) -> str:
        kind = self.kind_of(normalize_type(raw_type))
        return KIND_HOST_TYPES.get(kind, HOST_MIXED)

    @staticmethod
    def kind_of(c_type: str) -> Optional[str]:
        """Conversion family of a normalized type, or None when unknown"""
        bare = strip_qualifiers(c_type)
        if native_range(c_type) is not None:
            return INTEGER
        if bare in FLOAT_TYPES:
            return FLOAT
        if bare in BOOL_TYPES:
            return BOOLEAN
        if is_string_ptr(c_type):
            return STRING
        if is_pointer(c_type) or is_func_ptr(c_type):
            return POINTER
        return None

    def _to_integer(self, value: Any, c_type: str) -> ValidationResult:
        if isinstance(value, bool):
            converted = 1 if value else 0
        elif isinstance(value, int):
            converted = value
        elif isinstance(value, float):
            if not value.is_integer():
                return ValidationResult.invalid(f'Float value {value} cannot be safely converted to integer')
            converted = int(value)
        elif isinstance(value, str) and is_numeric(value):
            text = value.strip()
            try:
                converted = int(text)
            except ValueError:
                number = float(text)
                if not number.is_integer():
                    return ValidationResult.invalid(f'Float value {value} cannot be safely converted to integer')
                converted = int(number)
        else:
            return ValidationResult.invalid(f'Cannot convert {type_name(value)} to integer for type {c_type}')

        bounds = native_range(c_type)
        if bounds is not None:
            low, high = bounds
            if converted < low:
                return ValidationResult.invalid(f'Value {converted} is below minimum {low} for type {c_type}')
            if converted > high:
                return ValidationResult.invalid(f'Value {converted} is above maximum {high} for type {c_type}')
        return ValidationResult.valid(converted)

    def _to_float(self, value: Any, c_type: str) -> ValidationResult:
        if not isinstance(value, bool) and isinstance(value, (int, float)):
            return ValidationResult.valid(float(value))
        if isinstance(value, str) and is_numeric(value):
            return ValidationResult.valid(float(value))
        return ValidationResult.invalid(f'Cannot convert {type_name(value)} to float for type {c_type}')

    def _to_string(self, value: Any, c_type: str) -> ValidationResult:
        if isinstance(value, str):
            return ValidationResult.valid(value)
        if isinstance(value, bool):
            return ValidationResult.valid('1' if value else '')
        if isinstance(value, (int, float)):
            return ValidationResult.valid(str(value))
        return ValidationResult.invalid(f'Cannot convert {type_name(value)} to string for type {c_type}')

    def _to_boolean(self, value: Any, c_type: str) -> ValidationResult:
        if isinstance(value, bool):
            return ValidationResult.valid(value)
        if isinstance(value, int):
            return ValidationResult.valid(value != 0)
        if isinstance(value, str):
            lower = value.lower()
            if lower in TRUE_STRINGS:
                return ValidationResult.valid(True)
            if lower in FALSE_STRINGS:
                return ValidationResult.valid(False)
        return ValidationResult.invalid(f'Cannot convert {type_name(value)} to boolean for type {c_type}')

    def _to_pointer(self, value: Any, c_type: str) -> ValidationResult:
        # Integers are raw addresses; handles are opaque objects
        if isinstance(value, bool) or isinstance(value, (float, str, list, tuple, dict)):
            return ValidationResult.invalid(f'Cannot convert {type_name(value)} to pointer for type {c_type}')
        return ValidationResult.valid(value)
