"""
Validation error reporting

Formats ValidationResult errors for people and converts failed results into
ValidationError at call boundaries.
"""

from typing import Sequence

from .errors import ValidationError
from .ir import ValidationResult

SUGGESTIONS = (
    ('Type validation failed', "Ensure the parameter is of the correct PHP type for C type '{c_type}'"),
    ('below minimum', "Check that the value is within the valid range for C type '{c_type}'"),
    ('above maximum', "Check that the value is within the valid range for C type '{c_type}'"),
    ('Parameter count mismatch', 'Verify you are passing the correct number of parameters'),
    ('cannot be safely converted', 'Use explicit type casting or provide a value that can be safely converted'),
)


class ValidationErrorReporter:

    def format_error_message(self, errors: Sequence[str], context: str = '') -> str:
        message = 'Validation failed'
        if not errors:
            return message
        if context:
            message += f' for {context}'
        lines = [message + ':']
        for i, error in enumerate(errors, 1):
            lines.append(f'  {i}. {error}')
        return '\n'.join(lines)

    def create_exception(self, result: ValidationResult, context: str = '') -> ValidationError:
        if result.is_valid:
            raise ValueError('Cannot create exception from valid validation result')
        return ValidationError(
            self.format_error_message(result.errors, context),
            errors=list(result.errors),
            context={'target': context} if context else None,
        )

    def raise_for(self, result: ValidationResult, context: str = '') -> ValidationResult:
        """Return result unchanged if valid, raise ValidationError otherwise"""
        if not result.is_valid:
            raise self.create_exception(result, context)
        return result

    def function_parameter_report(self, result: ValidationResult, function_name: str,
                                  parameter_names: Sequence[str] = (),
                                  parameter_types: Sequence[str] = ()) -> str:
        if result.is_valid:
            return f'All parameters valid for function {function_name}'

        lines = [f'Parameter validation failed for function {function_name}:', '']
        if parameter_types:
            params = []
            for i, c_type in enumerate(parameter_types):
                name = parameter_names[i] if i < len(parameter_names) else f'param{i}'
                params.append(f'{c_type} {name}')
            lines += ['Expected signature:', f"  {function_name}({', '.join(params)})", '']
        lines.append('Errors:')
        for i, error in enumerate(result.errors, 1):
            lines.append(f'  {i}. {error}')
        return '\n'.join(lines) + '\n'

    def create_suggestion(self, result: ValidationResult, c_type: str) -> str:
        if result.is_valid:
            return ''
        suggestions: list[str] = []
        for error in result.errors:
            for needle, template in SUGGESTIONS:
                text = template.format(c_type=c_type)
                if needle in error and text not in suggestions:
                    suggestions.append(text)
        if not suggestions:
            suggestions.append(f"Review the parameter requirements for C type '{c_type}'")
        return 'Suggestions:\n  - ' + '\n  - '.join(suggestions)
