"""
Template rendering module

Renders assembled WrapperClass values into PHP source with jinja2. The
built-in templates can be overridden per name from a templates directory.

Templates see a single `wrapper` variable plus any extra context, and a
fixed set of helpers:

    filters  method_name, class_name, constant_name, constant_value
    globals  php_type, default_value, validation_code

Undefined variables raise, so a template never silently emits a blank
section.
"""

from pathlib import Path
from typing import Any, Optional, Sequence, Union

import jinja2

from .checks import ValidationCodeEmitter
from .codegen import php_literal
from .errors import GenerationError
from .ir import WrapperClass
from .naming import NamingContext, derive_constant_name, derive_member_name, derive_type_name
from .types import TypeMapper, default_value

TEMPLATE_SUFFIX = '.php.j2'

WRAPPER_CLASS = 'wrapper_class'
STRUCT_CLASS = 'struct_class'
CONSTANTS_CLASS = 'constants_class'
BOOTSTRAP_CLASS = 'bootstrap_class'

TEMPLATE_BY_KIND = {
    'wrapper': WRAPPER_CLASS,
    'struct': STRUCT_CLASS,
    'constants': CONSTANTS_CLASS,
    'bootstrap': BOOTSTRAP_CLASS,
}

WRAPPER_CLASS_TEMPLATE = '''\
<?php

declare(strict_types=1);

namespace {{ wrapper.namespace }};

use FFI;

/**
 * Generated wrapper class for {{ wrapper.name }}
 */
class {{ wrapper.name }}
{
{% for name, value in wrapper.constants.items() %}
    public const {{ name | constant_name }} = {{ value | constant_value }};
{% endfor %}
{% if wrapper.constants %}

{% endif %}
{% for property in wrapper.properties %}
{{ property }}

{% endfor %}
    /**
     * Shared FFI instance
     */
    protected static function getFFI(): FFI
    {
        return \\{{ bootstrap }}::getFFI();
    }
{% for method in wrapper.methods %}

{{ method }}
{% endfor %}
}
'''

STRUCT_CLASS_TEMPLATE = '''\
<?php

declare(strict_types=1);

namespace {{ wrapper.namespace }};

/**
 * Generated struct class for {{ wrapper.structure.name if wrapper.structure else wrapper.name }}
 */
class {{ wrapper.name }}
{
{% for property in wrapper.properties %}
{{ property }}

{% endfor %}
{{ wrapper.methods | join('\\n\\n') }}
}
'''

CONSTANTS_CLASS_TEMPLATE = '''\
<?php

declare(strict_types=1);

namespace {{ wrapper.namespace }};

/**
 * Generated constants
 */
class {{ wrapper.name }}
{
{% for name, value in wrapper.constants.items() %}
    public const {{ name }} = {{ value | constant_value }};
{% endfor %}
{% if wrapper.constants %}

{% endif %}
{{ wrapper.methods | join('\\n\\n') }}
}
'''

BOOTSTRAP_CLASS_TEMPLATE = '''\
<?php

declare(strict_types=1);

namespace {{ wrapper.namespace }};

use FFI;
use RuntimeException;

/**
 * Bootstrap class for centralized FFI management
 */
class {{ wrapper.name }}
{
{% for name, value in wrapper.constants.items() %}
    public const {{ name }} = {{ value | constant_value }};
{% endfor %}

    private static ?FFI $ffi = null;

    /**
     * Shared FFI instance, created on first use
     */
    public static function getFFI(): FFI
    {
        if (self::$ffi === null) {
            self::initialize();
        }
        return self::$ffi;
    }

    /**
     * Load the library with the given header, or the configured headers
     *
     * @throws RuntimeException
     */
    public static function initialize(?string $headerFile = null): void
    {
        $headerFiles = $headerFile !== null ? [$headerFile] : self::HEADER_FILES;
        $headerContent = '';
        foreach ($headerFiles as $file) {
            $content = @file_get_contents($file);
            if ($content === false) {
                throw new RuntimeException("Failed to read header file: {$file}");
            }
            $headerContent .= $content . "\\n";
        }

        try {
            self::$ffi = FFI::cdef($headerContent, self::LIBRARY_PATH);
        } catch (\\Throwable $e) {
            throw new RuntimeException(
                'Failed to initialize FFI with library: ' . self::LIBRARY_PATH . '. Error: ' . $e->getMessage(),
                0,
                $e
            );
        }
    }
}
'''

BUILTIN_TEMPLATES = {
    WRAPPER_CLASS + TEMPLATE_SUFFIX: WRAPPER_CLASS_TEMPLATE,
    STRUCT_CLASS + TEMPLATE_SUFFIX: STRUCT_CLASS_TEMPLATE,
    CONSTANTS_CLASS + TEMPLATE_SUFFIX: CONSTANTS_CLASS_TEMPLATE,
    BOOTSTRAP_CLASS + TEMPLATE_SUFFIX: BOOTSTRAP_CLASS_TEMPLATE,
}


class TemplateEngine:
    """jinja2 environment with the PHP helper set registered"""

    def __init__(self, templates_path: Optional[Union[str, Path]] = None,
                 mapper: Optional[TypeMapper] = None,
                 emitter: Optional[ValidationCodeEmitter] = None,
                 prefixes: Sequence[str] = ()):
        self.mapper = mapper or TypeMapper()
        self.emitter = emitter
        self.prefixes = tuple(prefixes)

        loader: jinja2.BaseLoader = jinja2.DictLoader(BUILTIN_TEMPLATES)
        if templates_path is not None:
            loader = jinja2.ChoiceLoader([jinja2.FileSystemLoader(str(templates_path)), loader])

        self.env = jinja2.Environment(
            loader=loader,
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._register_filters()
        self._register_globals()

    def _register_filters(self):
        self.env.filters['method_name'] = self.method_name
        self.env.filters['class_name'] = derive_type_name
        self.env.filters['constant_name'] = derive_constant_name
        self.env.filters['constant_value'] = php_literal

    def _register_globals(self):
        self.env.globals['php_type'] = self.php_type
        self.env.globals['default_value'] = default_value
        self.env.globals['validation_code'] = self.validation_code

    def bind(self, mapper: TypeMapper, emitter: Optional[ValidationCodeEmitter],
             prefixes: Sequence[str] = ()):
        """Use the mapper, guards and prefixes of the current generation run"""
        self.mapper = mapper
        self.emitter = emitter
        self.prefixes = tuple(prefixes)

    def php_type(self, raw_type: str, allow_null: bool = False) -> str:
        return self.mapper.map_native_to_host(raw_type, allow_null=allow_null)

    def method_name(self, raw_name: str, group: str = '') -> str:
        return derive_member_name(raw_name, NamingContext(group=group, prefixes=self.prefixes))

    def validation_code(self, param: str, raw_type: str, nullable: bool = False) -> str:
        """PHP guard statements for a parameter, empty without an emitter"""
        if self.emitter is None:
            return ''
        return self.emitter.render(param, raw_type, nullable=nullable)

    def has_template(self, template: str) -> bool:
        try:
            self.env.get_template(template + TEMPLATE_SUFFIX)
        except jinja2.TemplateNotFound:
            return False
        return True

    def render(self, template: str, **context: Any) -> str:
        """Render a named template; any failure becomes GenerationError"""
        try:
            return self.env.get_template(template + TEMPLATE_SUFFIX).render(**context)
        except jinja2.TemplateNotFound as e:
            raise GenerationError.template_not_found(template) from e
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError.rendering_failed(template, str(e)) from e

    def render_class(self, wrapper: WrapperClass, **extra: Any) -> str:
        """Render with the template matching the wrapper's kind"""
        template = TEMPLATE_BY_KIND.get(wrapper.kind)
        if template is None:
            raise GenerationError(
                f'No template for wrapper kind: {wrapper.kind}',
                context={'class': wrapper.qualified_name, 'kind': wrapper.kind},
            )
        if wrapper.kind == 'wrapper':
            return self.render_wrapper_class(wrapper, **extra)
        return self.render(template, wrapper=wrapper, **extra)

    def render_wrapper_class(self, wrapper: WrapperClass, **extra: Any) -> str:
        extra.setdefault('bootstrap', f'{wrapper.namespace}\\Bootstrap' if wrapper.namespace else 'Bootstrap')
        return self.render(WRAPPER_CLASS, wrapper=wrapper, **extra)

    def render_struct_class(self, wrapper: WrapperClass, **extra: Any) -> str:
        return self.render(STRUCT_CLASS, wrapper=wrapper, **extra)

    def render_constants_class(self, wrapper: WrapperClass, **extra: Any) -> str:
        return self.render(CONSTANTS_CLASS, wrapper=wrapper, **extra)

    def render_bootstrap_class(self, wrapper: WrapperClass, **extra: Any) -> str:
        return self.render(BOOTSTRAP_CLASS, wrapper=wrapper, **extra)
