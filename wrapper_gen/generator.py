"""
Main generator module

Orchestrates grouping, class assembly and template rendering to turn
processed bindings into PHP wrapper sources.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from . import presets
from .checks import ValidationCodeEmitter
from .config import DEFAULT_NAMESPACE, ConfigValidator, ProjectConfig
from .consts import CONSTANTS_CLASS, ConstantGenerator
from .errors import GenerationError
from .func import FUNCTIONAL_MODE, OBJECT_MODE, MethodGenerator
from .group import ClassGenerator
from .ir import ProcessedBindings, WrapperClass
from .naming import (
    DEFAULT_CONSTRUCTOR_PATTERN, GroupPattern, NameAllocator, PatternSpec,
    compile_patterns, group_functions,
)
from .rules import RuleTable, ValidationRuleEngine
from .struct import StructGenerator
from .templates import TemplateEngine
from .types import TypeMapper

logger = logging.getLogger(__name__)

BOOTSTRAP_CLASS = 'Bootstrap'
STRUCT_NAMESPACE = 'Struct'


@dataclass
class GeneratedCode:
    """Assembled classes plus the artifacts that failed to render"""
    classes: list[WrapperClass] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    def get_class(self, name: str) -> Optional[WrapperClass]:
        for cls in self.classes:
            if cls.name == name:
                return cls
        return None


class WrapperGenerator:
    """Main wrapper generator"""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE, mode: str = OBJECT_MODE,
                 library_path: str = '', header_files: Iterable[str] = (),
                 rules: Optional[RuleTable] = None,
                 templates: Optional[TemplateEngine] = None,
                 validate: bool = True, check_types: bool = True):
        self.namespace = namespace
        self.mode = mode
        self.library_path = library_path
        self.header_files = list(header_files)
        self.validate = validate
        self.check_types = check_types

        self.prefixes: list[str] = []
        self.class_prefix = ''
        self.constructor_pattern = DEFAULT_CONSTRUCTOR_PATTERN
        self.opaque_prefixes: list[str] = []
        self._group_patterns: list[GroupPattern] = []

        self.rules = rules if rules is not None else RuleTable.with_defaults()
        self.engine = ValidationRuleEngine(self.rules)
        self.templates = templates or TemplateEngine()

    @classmethod
    def from_config(cls, config: ProjectConfig) -> 'WrapperGenerator':
        """Generator set up from a project configuration, preset included"""
        gen = cls(
            namespace=config.namespace,
            mode=config.generation_type,
            library_path=config.library_file,
            header_files=config.header_files,
            validate=config.validation.enable_parameter_validation,
            check_types=config.validation.enable_type_conversion,
        )
        if config.naming.preset:
            presets.configure(config.naming.preset, gen)
        if config.naming.prefixes:
            gen.prefixes = list(config.naming.prefixes)
        if config.naming.class_prefix:
            gen.class_prefix = config.naming.class_prefix
        ConfigValidator.validate_constructor_pattern(config.naming.constructor_pattern)
        gen.constructor_pattern = config.naming.constructor_pattern
        gen.templates = TemplateEngine(config.templates_path, prefixes=gen.prefixes)
        if config.validation.custom_validation_rules:
            added = gen.engine.load_rules_from_config(config.validation.custom_validation_rules)
            logger.info('loaded %d custom validation rules', added)
        return gen

    def group_patterns(self, patterns: PatternSpec):
        """Append ordered domain grouping patterns"""
        self._group_patterns.extend(compile_patterns(patterns))

    @property
    def struct_namespace(self) -> str:
        return f'{self.namespace}\\{STRUCT_NAMESPACE}'

    def _mapper(self, bindings: ProcessedBindings) -> TypeMapper:
        return TypeMapper(
            opaque_types=[s.name for s in bindings.structures],
            opaque_prefixes=self.opaque_prefixes,
        )

    def _class_generator(self, mapper: TypeMapper, emitter: ValidationCodeEmitter) -> ClassGenerator:
        method_gen = MethodGenerator(mapper, emitter, mode=self.mode, validate=self.validate,
                                     check_types=self.check_types)
        return ClassGenerator(method_gen, prefixes=self.prefixes, class_prefix=self.class_prefix,
                              constructor_pattern=self.constructor_pattern)

    def generate(self, bindings: ProcessedBindings) -> GeneratedCode:
        """Assemble every wrapper class for one set of bindings"""
        print('=== Generating PHP wrappers:')
        # Rules are read-only from here on
        self.rules.freeze()

        mapper = self._mapper(bindings)
        emitter = ValidationCodeEmitter(self.engine, mapper)
        class_gen = self._class_generator(mapper, emitter)
        # Template helpers see the same types and guards as the generated methods
        self.templates.bind(mapper, emitter if self.validate else None, self.prefixes)
        names = NameAllocator((CONSTANTS_CLASS, BOOTSTRAP_CLASS))
        classes: list[WrapperClass] = []

        if bindings.functions:
            if self.mode == FUNCTIONAL_MODE:
                classes.append(class_gen.assemble_functional(bindings.functions, self.namespace))
            else:
                groups = group_functions(bindings.functions, self._group_patterns)
                for group, functions in groups.items():
                    name = names.allocate(class_gen.class_name(group))
                    classes.append(class_gen.assemble(group, functions, self.namespace,
                                                      bindings.structures, class_name=name))

        struct_gen = StructGenerator(mapper)
        struct_names = NameAllocator()
        for structure in bindings.structures:
            wrapper = struct_gen.generate(structure, self.struct_namespace)
            wrapper.name = struct_names.allocate(wrapper.name)
            classes.append(wrapper)

        if bindings.constants:
            classes.append(ConstantGenerator().generate(bindings.constants, self.namespace))

        if any(c.kind == 'wrapper' for c in classes):
            classes.append(self.bootstrap_class())

        logger.info('assembled %d classes from %d functions, %d structures, %d constants',
                    len(classes), len(bindings.functions), len(bindings.structures),
                    len(bindings.constants))
        return GeneratedCode(classes)

    def bootstrap_class(self) -> WrapperClass:
        return WrapperClass(
            name=BOOTSTRAP_CLASS,
            namespace=self.namespace,
            constants={'LIBRARY_PATH': self.library_path, 'HEADER_FILES': list(self.header_files)},
            kind='bootstrap',
        )

    def filename(self, wrapper: WrapperClass) -> str:
        """Path relative to the output root, following the namespace below the base"""
        parts = []
        if wrapper.namespace.startswith(self.namespace + '\\'):
            parts = wrapper.namespace[len(self.namespace) + 1:].split('\\')
        return '/'.join(parts + [f'{wrapper.name}.php'])

    def generate_code_files(self, code: GeneratedCode) -> dict[str, str]:
        """Render each class; a failing artifact is recorded and skipped"""
        files = {}
        for wrapper in code.classes:
            filename = self.filename(wrapper)
            try:
                files[filename] = self.templates.render_class(wrapper)
            except GenerationError as e:
                logger.error('failed to generate %s: %s', filename, e.message)
                code.failures[filename] = e.message
                continue
            print(f'  {wrapper.qualified_name} => {filename}')
        return files

    def write_files(self, files: dict[str, str], output_root: Union[str, os.PathLike]) -> list[str]:
        """Write rendered sources below output_root"""
        written = []
        for filename, content in files.items():
            path = os.path.join(output_root, *filename.split('/'))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', newline='\n', encoding='utf-8') as f:
                f.write(content)
            written.append(path)
        return written
