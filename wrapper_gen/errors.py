"""
Error types

All failures raised by the pipeline derive from WrapperGenError. Parse misses
and validation failures are returned as data and never raised from here.
"""

from typing import Any, Optional


class WrapperGenError(Exception):
    """Base class for pipeline errors"""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None,
                 suggestion: Optional[str] = None, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context or {})
        self.suggestion = suggestion
        self.recoverable = recoverable

    def add_context(self, key: str, value: Any) -> 'WrapperGenError':
        self.context[key] = value
        return self

    def describe(self) -> str:
        """Message with context and suggestion, for CLI output"""
        lines = [self.message]
        for key, value in self.context.items():
            lines.append(f'  {key}: {value}')
        if self.suggestion:
            lines.append(f'  suggestion: {self.suggestion}')
        return '\n'.join(lines)


class AnalysisError(WrapperGenError):
    """Upstream binding artifacts are missing, unreadable or reported failure"""

    @classmethod
    def artifact_missing(cls, kind: str, path: str) -> 'AnalysisError':
        return cls(
            f'{kind} file not found: {path}',
            context={'artifact': kind, 'path': path},
            suggestion='Run the binding generator first or check the output path',
        )

    @classmethod
    def upstream_failed(cls, errors: list[str]) -> 'AnalysisError':
        return cls(
            'Cannot process failed binding result: ' + ', '.join(errors),
            context={'errors': list(errors)},
        )


class GenerationError(WrapperGenError):
    """Rendering or assembling one artifact failed"""

    @classmethod
    def template_not_found(cls, template: str) -> 'GenerationError':
        return cls(
            f'Template not found: {template}',
            context={'template': template},
            suggestion='Ensure the template exists in the templates directory',
        )

    @classmethod
    def rendering_failed(cls, template: str, error: str) -> 'GenerationError':
        return cls(
            f"Failed to render template '{template}': {error}",
            context={'template': template, 'error': error},
            suggestion='Check the template syntax and ensure all required variables are provided',
        )


class ValidationError(WrapperGenError):
    """A validation result converted to an exception at a call boundary"""

    def __init__(self, message: str, errors: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])


class ConfigurationError(WrapperGenError):
    """Invalid or unreadable project configuration"""
