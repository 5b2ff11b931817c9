"""
IR (Intermediate Representation) module

Structured view of the generated binding artifacts: function signatures,
structure layouts and constants. IR values are immutable once parsed.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .errors import AnalysisError


@dataclass(frozen=True)
class ParamInfo:
    """Function parameter information"""
    name: str
    type: str
    nullable: bool = False
    description: str = ''


@dataclass(frozen=True)
class FunctionSignature:
    """Function declaration information"""
    name: str
    return_type: str
    parameters: tuple[ParamInfo, ...] = ()
    documentation: tuple[str, ...] = ()
    raw_declaration: str = ''

    @property
    def param_types(self) -> list[str]:
        return [p.type for p in self.parameters]

    @property
    def returns_void(self) -> bool:
        return self.return_type.strip() in ('', 'void')


@dataclass(frozen=True)
class FieldInfo:
    """Struct field information"""
    name: str
    type: str

    @property
    def is_array(self) -> bool:
        return '[' in self.type

    @property
    def is_func_ptr(self) -> bool:
        return '(*' in self.type


@dataclass(frozen=True)
class StructureDefinition:
    """Struct or union type information"""
    name: str
    fields: tuple[FieldInfo, ...] = ()
    is_union: bool = False


@dataclass(frozen=True)
class ProcessedBindings:
    """Aggregate IR produced once per run"""
    functions: tuple[FunctionSignature, ...]
    structures: tuple[StructureDefinition, ...]
    constants: Mapping[str, Any]

    @classmethod
    def build(cls, functions, structures, constants: Mapping[str, Any]) -> 'ProcessedBindings':
        return cls(
            functions=tuple(functions),
            structures=tuple(structures),
            constants=MappingProxyType(dict(constants)),
        )

    def get_function(self, name: str) -> Optional[FunctionSignature]:
        for func in self.functions:
            if func.name == name:
                return func
        return None

    def get_structure(self, name: str) -> Optional[StructureDefinition]:
        for struct in self.structures:
            if struct.name == name:
                return struct
        return None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of converting or validating one value"""
    is_valid: bool
    errors: tuple[str, ...] = ()
    converted_value: Any = None

    @classmethod
    def valid(cls, value: Any = None) -> 'ValidationResult':
        return cls(True, (), value)

    @classmethod
    def invalid(cls, *errors: str) -> 'ValidationResult':
        return cls(False, tuple(errors))

    def __bool__(self) -> bool:
        return self.is_valid


PathLike = Union[str, Path]


@dataclass(frozen=True)
class BindingResult:
    """Result handle of the external binding generator

    Artifacts are given either as file paths or as in-memory text; text wins
    when both are present.
    """
    success: bool
    constants_file: Optional[PathLike] = None
    methods_file: Optional[PathLike] = None
    errors: tuple[str, ...] = ()
    constants_text: Optional[str] = None
    methods_text: Optional[str] = None

    @classmethod
    def from_text(cls, constants: str, methods: str) -> 'BindingResult':
        return cls(success=True, constants_text=constants, methods_text=methods)

    @classmethod
    def failed(cls, *errors: str) -> 'BindingResult':
        return cls(success=False, errors=tuple(errors))

    def read_constants(self) -> str:
        return self._read('Constants', self.constants_text, self.constants_file)

    def read_methods(self) -> str:
        return self._read('Methods', self.methods_text, self.methods_file)

    @staticmethod
    def _read(kind: str, text: Optional[str], path: Optional[PathLike]) -> str:
        if text is not None:
            return text
        if not path:
            raise AnalysisError.artifact_missing(kind, '<none>')
        path = Path(path)
        if not path.is_file():
            raise AnalysisError.artifact_missing(kind, str(path))
        try:
            # Binary or mis-encoded artifacts degrade to replacement characters
            return path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            raise AnalysisError(
                f'Failed to read {kind.lower()} file: {path}',
                context={'path': str(path), 'error': str(e)},
            ) from e


@dataclass
class WrapperClass:
    """Assembled wrapper type, consumed once by the template engine"""
    name: str
    namespace: str
    methods: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)
    constants: dict[str, Any] = field(default_factory=dict)
    kind: str = 'wrapper'
    structure: Optional[StructureDefinition] = None

    @property
    def qualified_name(self) -> str:
        return f'{self.namespace}\\{self.name}' if self.namespace else self.name
