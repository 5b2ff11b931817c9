"""
wrapper_gen - PHP FFI wrapper generation for C libraries

Turns the artifacts of an external binding generator (klitsche/ffigen
constants.php and Methods.php, or plain C prototypes) into validated PHP
wrapper classes. Library-specific tuning lives in presets.
"""

from .errors import WrapperGenError, AnalysisError, GenerationError, ValidationError, ConfigurationError
from .ir import (
    ParamInfo, FunctionSignature, FieldInfo, StructureDefinition, ProcessedBindings,
    BindingResult, ValidationResult, WrapperClass,
)
from .parser import BindingOutputParser
from .processor import BindingProcessor
from .types import TypeMapper
from .convert import TypeConverter
from .rules import ValidationRule, RuleTable, ValidationRuleEngine, Valid, Invalid
from .report import ValidationErrorReporter
from .naming import group_functions, derive_member_name, derive_type_name, NamingContext
from .codegen import CodeGen
from .func import MethodGenerator
from .group import ClassGenerator
from .struct import StructGenerator
from .consts import ConstantGenerator
from .templates import TemplateEngine
from .config import ProjectConfig, ConfigValidator, load_config
from .generator import WrapperGenerator, GeneratedCode
from .runner import FFIGenRunner

__all__ = [
    'WrapperGenError', 'AnalysisError', 'GenerationError', 'ValidationError', 'ConfigurationError',
    'ParamInfo', 'FunctionSignature', 'FieldInfo', 'StructureDefinition', 'ProcessedBindings',
    'BindingResult', 'ValidationResult', 'WrapperClass',
    'BindingOutputParser', 'BindingProcessor',
    'TypeMapper', 'TypeConverter',
    'ValidationRule', 'RuleTable', 'ValidationRuleEngine', 'Valid', 'Invalid',
    'ValidationErrorReporter',
    'group_functions', 'derive_member_name', 'derive_type_name', 'NamingContext',
    'CodeGen',
    'MethodGenerator', 'ClassGenerator', 'StructGenerator', 'ConstantGenerator',
    'TemplateEngine',
    'ProjectConfig', 'ConfigValidator', 'load_config',
    'WrapperGenerator', 'GeneratedCode',
    'FFIGenRunner',
]
