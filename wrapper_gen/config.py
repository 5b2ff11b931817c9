"""
Project configuration

YAML project file loading, schema checks and command-line overrides.

Example file:

    headerFiles: [include/math.h]
    libraryFile: lib/libmath.so
    outputPath: ./generated
    namespace: Math\\FFI
    generationType: object
    validation:
      enableParameterValidation: true
      customValidationRules:
        uint8_t:
          - type: range
            parameters: {min: 0, max: 100}
    naming:
      preset: libui
"""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .errors import ConfigurationError
from .func import GENERATION_MODES, OBJECT_MODE
from .naming import DEFAULT_CONSTRUCTOR_PATTERN, PHP_KEYWORDS

DEFAULT_NAMESPACE = 'Generated\\FFI'
DEFAULT_OUTPUT_PATH = './generated'

HEADER_EXTENSIONS = ('h', 'hpp', 'hxx', 'hh')
LIBRARY_EXTENSIONS = ('so', 'dll', 'dylib', 'a')

NAMESPACE_PATTERN = re.compile(r'^[A-Za-z_\x80-\xff][A-Za-z0-9_\x80-\xff\\]*$')

TOP_LEVEL_KEYS = {
    'headerFiles': list,
    'libraryFile': str,
    'outputPath': str,
    'namespace': str,
    'excludePatterns': list,
    'generationType': str,
    'validation': dict,
    'naming': dict,
    'templatesPath': str,
}
VALIDATION_KEYS = {
    'enableParameterValidation': bool,
    'enableTypeConversion': bool,
    'customValidationRules': dict,
}
NAMING_KEYS = {
    'prefixes': list,
    'classPrefix': str,
    'constructorPattern': str,
    'preset': str,
}


@dataclass
class ValidationConfig:
    enable_parameter_validation: bool = True
    enable_type_conversion: bool = True
    custom_validation_rules: dict[str, Any] = field(default_factory=dict)


@dataclass
class NamingConfig:
    prefixes: list[str] = field(default_factory=list)
    class_prefix: str = ''
    constructor_pattern: str = DEFAULT_CONSTRUCTOR_PATTERN
    preset: Optional[str] = None


@dataclass
class ProjectConfig:
    """Settings for one generation run"""
    header_files: list[str] = field(default_factory=list)
    library_file: str = ''
    output_path: str = DEFAULT_OUTPUT_PATH
    namespace: str = DEFAULT_NAMESPACE
    exclude_patterns: list[str] = field(default_factory=list)
    generation_type: str = OBJECT_MODE
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    naming: NamingConfig = field(default_factory=NamingConfig)
    templates_path: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'ProjectConfig':
        """Build from the camelCase file layout"""
        validation = data.get('validation') or {}
        naming = data.get('naming') or {}
        return cls(
            header_files=[str(h) for h in data.get('headerFiles') or []],
            library_file=str(data.get('libraryFile') or ''),
            output_path=str(data.get('outputPath') or DEFAULT_OUTPUT_PATH),
            namespace=str(data.get('namespace') or DEFAULT_NAMESPACE),
            exclude_patterns=[str(p) for p in data.get('excludePatterns') or []],
            generation_type=str(data.get('generationType') or OBJECT_MODE),
            validation=ValidationConfig(
                enable_parameter_validation=validation.get('enableParameterValidation', True),
                enable_type_conversion=validation.get('enableTypeConversion', True),
                custom_validation_rules=dict(validation.get('customValidationRules') or {}),
            ),
            naming=NamingConfig(
                prefixes=[str(p) for p in naming.get('prefixes') or []],
                class_prefix=str(naming.get('classPrefix') or ''),
                constructor_pattern=str(naming.get('constructorPattern') or DEFAULT_CONSTRUCTOR_PATTERN),
                preset=naming.get('preset'),
            ),
            templates_path=data.get('templatesPath'),
        )

    def merge(self, **overrides: Any) -> 'ProjectConfig':
        """Copy with every override that is not None applied"""
        values = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(values) - set(self.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown configuration option: {', '.join(sorted(unknown))}")
        return replace(self, **values)


class ConfigValidator:
    """Checks raw file data and built configurations"""

    def validate_schema(self, data: Mapping[str, Any]):
        self._check_keys(data, TOP_LEVEL_KEYS, 'configuration')
        if isinstance(data.get('validation'), Mapping):
            self._check_keys(data['validation'], VALIDATION_KEYS, 'validation configuration')
        if isinstance(data.get('naming'), Mapping):
            self._check_keys(data['naming'], NAMING_KEYS, 'naming configuration')

    @staticmethod
    def _check_keys(data: Mapping[str, Any], schema: Mapping[str, type], where: str):
        for key, value in data.items():
            if key not in schema:
                raise ConfigurationError(f'Unknown {where} key: {key}', context={'key': key})
            expected = schema[key]
            if value is not None and not isinstance(value, expected):
                name = {list: 'an array', dict: 'a mapping', str: 'a string', bool: 'a boolean'}[expected]
                raise ConfigurationError(f'{key} must be {name}', context={'key': key})

    def validate(self, config: ProjectConfig, check_paths: bool = True):
        """Raise ConfigurationError for the first problem found

        check_paths also requires header and library files to exist, which
        only matters when the binding generator is run.
        """
        if not config.output_path:
            raise ConfigurationError('Output path cannot be empty')
        self.validate_namespace(config.namespace)
        if config.generation_type not in GENERATION_MODES:
            raise ConfigurationError(
                f'Unknown generation type: {config.generation_type}',
                context={'generationType': config.generation_type},
                suggestion='Use one of: ' + ', '.join(GENERATION_MODES),
            )
        for pattern in config.exclude_patterns:
            self.validate_exclude_pattern(pattern)
        self.validate_constructor_pattern(config.naming.constructor_pattern)
        if check_paths:
            if not config.header_files:
                raise ConfigurationError('At least one header file must be specified')
            for header in config.header_files:
                self.validate_header_file(header)
            if config.library_file:
                self.validate_library_file(config.library_file)
        if config.templates_path and not Path(config.templates_path).is_dir():
            raise ConfigurationError(f'Templates directory not found: {config.templates_path}')

    @staticmethod
    def validate_namespace(namespace: str):
        if not namespace:
            raise ConfigurationError('Namespace cannot be empty')
        if not NAMESPACE_PATTERN.match(namespace):
            raise ConfigurationError(f'Invalid namespace format: {namespace}')
        for part in namespace.split('\\'):
            if part.lower() in PHP_KEYWORDS:
                raise ConfigurationError(f'Namespace contains reserved keyword: {part}')

    @staticmethod
    def validate_exclude_pattern(pattern: str):
        if not pattern:
            raise ConfigurationError('Exclude pattern cannot be empty')
        # /.../ marks a regular expression, anything else is a glob
        if len(pattern) > 1 and pattern.startswith('/') and pattern.endswith('/'):
            try:
                re.compile(pattern[1:-1])
            except re.error as e:
                raise ConfigurationError(f'Invalid regex pattern: {pattern}', context={'error': str(e)}) from e

    @staticmethod
    def validate_constructor_pattern(pattern: str):
        """Factory names are built with str.format and a single {type} field"""
        try:
            pattern.format(type='Type')
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(
                f'Invalid constructor pattern: {pattern}',
                context={'constructorPattern': pattern, 'error': str(e)},
                suggestion='Use {type} as the only placeholder, e.g. New{type}',
            ) from e

    @staticmethod
    def validate_header_file(path: str):
        if not path:
            raise ConfigurationError('Header file path cannot be empty')
        if not Path(path).is_file():
            raise ConfigurationError(f'Header file not found: {path}')
        if Path(path).suffix.lower().lstrip('.') not in HEADER_EXTENSIONS:
            raise ConfigurationError(
                f'Invalid header file extension: {path}. Expected .h, .hpp, .hxx, or .hh'
            )

    @staticmethod
    def validate_library_file(path: str):
        if not Path(path).is_file():
            raise ConfigurationError(f'Library file not found: {path}')
        if Path(path).suffix.lower().lstrip('.') not in LIBRARY_EXTENSIONS:
            raise ConfigurationError(
                f"Invalid library file extension: {path}. Expected one of: {', '.join(LIBRARY_EXTENSIONS)}"
            )


def load_config(path: Union[str, Path], validator: Optional[ConfigValidator] = None) -> ProjectConfig:
    """Load and schema-check a YAML project file

    Path checks are left to the caller, which knows whether headers are needed.
    """
    validator = validator or ConfigValidator()
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f'Configuration file not found: {path}')
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f'Failed to parse configuration file: {e}', context={'path': str(path)}
        ) from e
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f'Invalid YAML format in configuration file: {path}')
    validator.validate_schema(data)
    return ProjectConfig.from_mapping(data)
