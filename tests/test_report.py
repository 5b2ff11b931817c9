"""
Tests for report.py

Validates:
- Human-readable error formatting
- Conversion of failed results into ValidationError
- Per-function reports and suggestions
"""

import pytest

from wrapper_gen.errors import ValidationError
from wrapper_gen.ir import ValidationResult
from wrapper_gen.report import ValidationErrorReporter


@pytest.fixture
def reporter():
    return ValidationErrorReporter()


def test_format_error_message(reporter):
    message = reporter.format_error_message(['first', 'second'], 'mathAdd')
    assert message == 'Validation failed for mathAdd:\n  1. first\n  2. second'


def test_format_without_errors(reporter):
    assert reporter.format_error_message([], 'ctx') == 'Validation failed'


def test_create_exception(reporter):
    error = reporter.create_exception(ValidationResult.invalid('bad'), 'param a')
    assert isinstance(error, ValidationError)
    assert error.errors == ['bad']
    assert error.context == {'target': 'param a'}
    assert str(error) == 'Validation failed for param a:\n  1. bad'


def test_create_exception_from_valid_result(reporter):
    with pytest.raises(ValueError):
        reporter.create_exception(ValidationResult.valid(1))


def test_raise_for(reporter):
    ok = ValidationResult.valid(3)
    assert reporter.raise_for(ok) is ok
    with pytest.raises(ValidationError):
        reporter.raise_for(ValidationResult.invalid('nope'))


def test_function_parameter_report_valid(reporter):
    report = reporter.function_parameter_report(ValidationResult.valid([]), 'mathAdd')
    assert report == 'All parameters valid for function mathAdd'


def test_function_parameter_report_invalid(reporter):
    result = ValidationResult.invalid('Parameter 1 (uint8_t): too big')
    report = reporter.function_parameter_report(result, 'setLevel', ['level'], ['int', 'uint8_t'])
    assert report == (
        'Parameter validation failed for function setLevel:\n'
        '\n'
        'Expected signature:\n'
        '  setLevel(int level, uint8_t param1)\n'
        '\n'
        'Errors:\n'
        '  1. Parameter 1 (uint8_t): too big\n'
    )


def test_create_suggestion(reporter):
    result = ValidationResult.invalid(
        'Type validation failed: Value 300 is above maximum 255 for type uint8_t',
        'Value 300 is above maximum 255',
    )
    assert reporter.create_suggestion(result, 'uint8_t') == (
        'Suggestions:\n'
        "  - Ensure the parameter is of the correct PHP type for C type 'uint8_t'\n"
        "  - Check that the value is within the valid range for C type 'uint8_t'"
    )


def test_create_suggestion_fallback(reporter):
    suggestion = reporter.create_suggestion(ValidationResult.invalid('odd'), 'int')
    assert suggestion == "Suggestions:\n  - Review the parameter requirements for C type 'int'"
    assert reporter.create_suggestion(ValidationResult.valid(), 'int') == ''
