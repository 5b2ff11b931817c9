"""
Validation rules module

Rules are registered per raw native type in a RuleTable. The table is built
once (usually from RuleTable.with_defaults()), frozen, and handed to the
ValidationRuleEngine, which chains the rules for a type: each rule sees the
value converted by the previous successful rule.

Rule kinds:
    type    convert with TypeConverter ('expected_type')
    range   min/max, length_min/length_max, allowed_values or pattern
    count   number of items ('expected_count')
    custom  predicate returning True, a message, a list of messages or an Outcome
"""

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .convert import TypeConverter, is_numeric
from .errors import ConfigurationError
from .ir import ValidationResult
from .types import INTEGER_RANGES, FLOAT_TYPES, BOOL_TYPES, normalize_type

logger = logging.getLogger(__name__)

TYPE = 'type'
RANGE = 'range'
COUNT = 'count'
CUSTOM = 'custom'

RULE_KINDS = (TYPE, RANGE, COUNT, CUSTOM)


@dataclass(frozen=True)
class Valid:
    """Custom predicate outcome: the value passes"""


@dataclass(frozen=True)
class Invalid:
    """Custom predicate outcome: the value fails with the given messages"""
    errors: tuple[str, ...] = ()

    def __init__(self, errors: Union[str, Iterable[str]] = ()):
        if isinstance(errors, str):
            errors = (errors,)
        object.__setattr__(self, 'errors', tuple(errors))


Outcome = Union[Valid, Invalid]
Predicate = Callable[[Any], Any]


@dataclass(frozen=True)
class ValidationRule:
    """One rule for a raw type"""
    kind: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in RULE_KINDS:
            raise ConfigurationError(
                f'Unknown validation rule type: {self.kind}',
                context={'kind': self.kind},
                suggestion='Use one of: ' + ', '.join(RULE_KINDS),
            )
        object.__setattr__(self, 'parameters', MappingProxyType(dict(self.parameters)))

    @classmethod
    def type_check(cls, expected_type: str) -> 'ValidationRule':
        return cls(TYPE, {'expected_type': expected_type})

    @classmethod
    def range(cls, min=None, max=None, length_min=None, length_max=None,
              allowed_values=None, pattern=None) -> 'ValidationRule':
        params = {
            'min': min, 'max': max,
            'length_min': length_min, 'length_max': length_max,
            'allowed_values': allowed_values, 'pattern': pattern,
        }
        return cls(RANGE, {k: v for k, v in params.items() if v is not None})

    @classmethod
    def count(cls, expected_count: int) -> 'ValidationRule':
        return cls(COUNT, {'expected_count': expected_count})

    @classmethod
    def custom(cls, predicate: Predicate, name: str = '') -> 'ValidationRule':
        return cls(CUSTOM, {'predicate': predicate, 'name': name or getattr(predicate, '__name__', '')})


def rule_key(raw_type: str) -> str:
    """Table key for a raw type: 'const char *' and 'const char*' share one"""
    return normalize_type(raw_type)


class RuleTable:
    """Ordered rules per raw type"""

    def __init__(self):
        self._rules: dict[str, list[ValidationRule]] = {}
        self._frozen = False

    @classmethod
    def with_defaults(cls) -> 'RuleTable':
        """Range bounds for every fixed-width integer and a type rule per primitive"""
        table = cls()
        for c_type, (low, high) in INTEGER_RANGES.items():
            table.add(c_type, ValidationRule.type_check(c_type))
            table.add(c_type, ValidationRule.range(min=low, max=high))
        for c_type in sorted(FLOAT_TYPES) + sorted(BOOL_TYPES):
            table.add(c_type, ValidationRule.type_check(c_type))
        for c_type in ('char*', 'const char*', 'void*', 'const void*'):
            table.add(c_type, ValidationRule.type_check(c_type))
        return table

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> 'RuleTable':
        self._frozen = True
        return self

    def copy(self) -> 'RuleTable':
        """Unfrozen copy"""
        other = RuleTable()
        other._rules = {k: list(v) for k, v in self._rules.items()}
        return other

    def _check_writable(self):
        if self._frozen:
            raise ConfigurationError(
                'Rule table is frozen',
                suggestion='Register rules before generation starts or work on copy()',
            )

    def add(self, raw_type: str, rule: ValidationRule) -> 'RuleTable':
        self._check_writable()
        self._rules.setdefault(rule_key(raw_type), []).append(rule)
        return self

    def remove(self, raw_type: str):
        self._check_writable()
        self._rules.pop(rule_key(raw_type), None)

    def rules_for(self, raw_type: str) -> tuple[ValidationRule, ...]:
        return tuple(self._rules.get(rule_key(raw_type), ()))

    def types(self) -> list[str]:
        return list(self._rules)

    def __contains__(self, raw_type: str) -> bool:
        return rule_key(raw_type) in self._rules

    def __len__(self) -> int:
        return len(self._rules)


class RangeValidator:
    """Validates range-family rules"""

    def validate(self, value: Any, rule: ValidationRule) -> ValidationResult:
        if rule.kind != RANGE:
            return ValidationResult.invalid("RangeValidator can only handle 'range' type rules")
        params = rule.parameters
        if 'min' in params or 'max' in params:
            return self._numeric(value, params)
        if 'length_min' in params or 'length_max' in params:
            return self._length(value, params)
        if 'allowed_values' in params:
            return self._allowed(value, params)
        if 'pattern' in params:
            return self._pattern(value, params)
        return ValidationResult.invalid('No valid range constraints specified')

    @staticmethod
    def _numeric(value, params) -> ValidationResult:
        if not is_numeric(value):
            return ValidationResult.invalid('Value must be numeric for range validation')
        number = float(value) if isinstance(value, str) else value
        errors = []
        if params.get('min') is not None and number < params['min']:
            errors.append(f"Value {number} is below minimum {params['min']}")
        if params.get('max') is not None and number > params['max']:
            errors.append(f"Value {number} is above maximum {params['max']}")
        return ValidationResult(not errors, tuple(errors), number)

    @staticmethod
    def _length(value, params) -> ValidationResult:
        if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
            length = len(value)
        else:
            return ValidationResult.invalid('Value must be string, array, or countable for length validation')
        errors = []
        if params.get('length_min') is not None and length < params['length_min']:
            errors.append(f"Length {length} is below minimum {params['length_min']}")
        if params.get('length_max') is not None and length > params['length_max']:
            errors.append(f"Length {length} is above maximum {params['length_max']}")
        return ValidationResult(not errors, tuple(errors), value)

    @staticmethod
    def _allowed(value, params) -> ValidationResult:
        allowed = params['allowed_values']
        if not isinstance(allowed, (list, tuple, set, frozenset)):
            return ValidationResult.invalid('allowed_values must be an array')
        # Strict comparison: True is not 1
        if any(type(value) is type(a) and value == a for a in allowed):
            return ValidationResult.valid(value)
        return ValidationResult.invalid('Value must be one of: ' + ', '.join(str(a) for a in allowed))

    @staticmethod
    def _pattern(value, params) -> ValidationResult:
        if not isinstance(value, str):
            return ValidationResult.invalid('Value must be string for pattern validation')
        pattern = params['pattern']
        if not isinstance(pattern, str):
            return ValidationResult.invalid('Pattern must be a string')
        try:
            matched = re.search(pattern, value) is not None
        except re.error as e:
            return ValidationResult.invalid(f'Invalid pattern: {e}')
        if matched:
            return ValidationResult.valid(value)
        return ValidationResult.invalid('Value does not match required pattern')


class ParameterValidator:
    """Dispatches a single rule to the matching check"""

    def __init__(self, converter: Optional[TypeConverter] = None,
                 range_validator: Optional[RangeValidator] = None):
        self.converter = converter or TypeConverter()
        self.range_validator = range_validator or RangeValidator()

    def validate(self, value: Any, rule: ValidationRule) -> ValidationResult:
        if rule.kind == TYPE:
            return self.validate_type(value, rule.parameters.get('expected_type', 'mixed'))
        if rule.kind == RANGE:
            return self.range_validator.validate(value, rule)
        if rule.kind == COUNT:
            return self._count(value, rule.parameters)
        return self._custom(value, rule.parameters)

    def validate_type(self, value: Any, expected_type: str) -> ValidationResult:
        if expected_type == 'mixed':
            return ValidationResult.valid(value)
        result = self.converter.convert(value, expected_type)
        if not result.is_valid:
            return ValidationResult.invalid('Type validation failed: ' + ', '.join(result.errors))
        return ValidationResult.valid(result.converted_value)

    def validate_parameters(self, values: Sequence[Any], expected_types: Sequence[str]) -> ValidationResult:
        """Type-check a whole argument list"""
        if len(values) != len(expected_types):
            return ValidationResult.invalid(
                f'Parameter count mismatch. Expected {len(expected_types)}, got {len(values)}'
            )
        errors = []
        converted = []
        for i, (value, expected) in enumerate(zip(values, expected_types)):
            result = self.validate_type(value, expected)
            if result.is_valid:
                converted.append(result.converted_value)
            else:
                errors.append(f'Parameter {i}: ' + ', '.join(result.errors))
        return ValidationResult(not errors, tuple(errors), None if errors else converted)

    @staticmethod
    def _count(value, params) -> ValidationResult:
        if not isinstance(value, (list, tuple)):
            return ValidationResult.invalid('Expected array for parameter count validation')
        expected = params.get('expected_count', 0)
        if len(value) != expected:
            return ValidationResult.invalid(f'Parameter count mismatch. Expected {expected}, got {len(value)}')
        return ValidationResult.valid(value)

    @staticmethod
    def _custom(value, params) -> ValidationResult:
        predicate = params.get('predicate')
        if not callable(predicate):
            return ValidationResult.invalid('Custom validator must be callable')
        try:
            outcome = predicate(value)
        except Exception as e:
            return ValidationResult.invalid(f'Custom validation error: {e}')

        if outcome is True or isinstance(outcome, Valid):
            return ValidationResult.valid(value)
        if isinstance(outcome, Invalid):
            return ValidationResult.invalid(*(outcome.errors or ('Custom validation failed',)))
        if isinstance(outcome, str):
            return ValidationResult.invalid(outcome)
        if isinstance(outcome, (list, tuple)) and outcome:
            return ValidationResult.invalid(*(str(e) for e in outcome))
        return ValidationResult.invalid('Custom validation failed')


class ValidationRuleEngine:
    """Validates values against the rules registered for their raw types"""

    def __init__(self, table: Optional[RuleTable] = None,
                 validator: Optional[ParameterValidator] = None):
        self.table = table if table is not None else RuleTable.with_defaults()
        self.validator = validator or ParameterValidator()
        self.custom_validators: dict[str, Predicate] = {}

    def add_custom_validator(self, name: str, predicate: Predicate):
        self.custom_validators[name] = predicate

    def rules_for(self, raw_type: str) -> tuple[ValidationRule, ...]:
        return self.table.rules_for(raw_type)

    def validate_parameter(self, value: Any, raw_type: str) -> ValidationResult:
        rules = self.table.rules_for(raw_type)
        if not rules:
            return self.validator.validate(value, ValidationRule.type_check(raw_type))

        errors: list[str] = []
        current = value
        for rule in rules:
            result = self.validator.validate(current, rule)
            if result.is_valid:
                if result.converted_value is not None:
                    current = result.converted_value
            else:
                errors.extend(result.errors)
        return ValidationResult(not errors, tuple(errors), current)

    def validate_function_parameters(self, values: Sequence[Any], raw_types: Sequence[str]) -> ValidationResult:
        if len(values) != len(raw_types):
            return ValidationResult.invalid(
                f'Parameter count mismatch. Expected {len(raw_types)}, got {len(values)}'
            )
        errors = []
        converted = []
        for i, (value, raw_type) in enumerate(zip(values, raw_types)):
            result = self.validate_parameter(value, raw_type)
            if result.is_valid:
                converted.append(result.converted_value)
            else:
                errors.append(f'Parameter {i} ({raw_type}): ' + ', '.join(result.errors))
        return ValidationResult(not errors, tuple(errors), None if errors else converted)

    def create_rule(self, config: Mapping[str, Any]) -> ValidationRule:
        """Build a rule from a config entry: {'type': kind, 'parameters': {...}}"""
        kind = config.get('type', config.get('kind', TYPE))
        params = dict(config.get('parameters') or {})
        if kind == CUSTOM and 'predicate' not in params:
            name = params.get('validator_name')
            if name not in self.custom_validators:
                raise ConfigurationError(
                    f"Custom validator '{name}' not found",
                    context={'validator_name': name},
                )
            params['predicate'] = self.custom_validators[name]
            params.setdefault('name', name)
        return ValidationRule(kind, params)

    def load_rules_from_config(self, config: Mapping[str, Any]) -> int:
        """Register rules from {raw_type: [rule, ...]}; returns how many were added

        Entries that cannot be built are logged and skipped.
        """
        added = 0
        for raw_type, entries in config.items():
            if not isinstance(entries, (list, tuple)):
                logger.warning('ignoring rules for %s: expected a list', raw_type)
                continue
            for entry in entries:
                if not isinstance(entry, Mapping):
                    continue
                try:
                    rule = self.create_rule(entry)
                except ConfigurationError as e:
                    logger.warning('Failed to load validation rule for type %s: %s', raw_type, e.message)
                    continue
                self.table.add(raw_type, rule)
                added += 1
        return added
