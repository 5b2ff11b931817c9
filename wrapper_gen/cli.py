"""
wrapper-gen - PHP FFI wrapper generator entry point

Reads the constants.php / Methods.php artifacts produced by klitsche/ffigen
(or runs ffigen first) and writes PHP wrapper classes.

Usage:
    wrapper-gen [--config wrapper.yaml] [--constants FILE] [--methods FILE]
                [--output DIR] [--namespace NS] [--preset libui] [--run-ffigen]
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import Optional, Sequence

from .config import ConfigValidator, ProjectConfig, load_config
from .errors import WrapperGenError
from .func import GENERATION_MODES
from .generator import WrapperGenerator
from .ir import BindingResult
from .presets import PRESETS
from .processor import BindingProcessor
from .runner import CONSTANTS_FILE, METHODS_FILE, FFIGenRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='wrapper-gen', description='Generate PHP FFI wrapper classes')
    parser.add_argument('headers', nargs='*', help='C header files (used with --run-ffigen)')
    parser.add_argument('-c', '--config', help='YAML project configuration file')
    parser.add_argument('--constants', help=f'constants artifact (default: OUTPUT/{CONSTANTS_FILE})')
    parser.add_argument('--methods', help=f'methods artifact (default: OUTPUT/{METHODS_FILE})')
    parser.add_argument('-o', '--output', help='output directory')
    parser.add_argument('-n', '--namespace', help='PHP namespace of the generated classes')
    parser.add_argument('-l', '--library', help='shared library the wrappers load')
    parser.add_argument('--mode', choices=GENERATION_MODES, help='generation type')
    parser.add_argument('--preset', choices=sorted(PRESETS), help='library naming preset')
    parser.add_argument('--templates', help='directory with template overrides')
    parser.add_argument('--exclude', action='append', help='symbol pattern ffigen should skip')
    parser.add_argument('--no-validation', action='store_true', help='omit parameter validation')
    parser.add_argument('--no-type-conversion', action='store_true', help='omit type checks')
    parser.add_argument('--run-ffigen', action='store_true', help='run klitsche/ffigen before generating')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='warnings and errors only')
    return parser


def build_config(args: argparse.Namespace) -> ProjectConfig:
    """File configuration with command-line overrides applied"""
    config = load_config(args.config) if args.config else ProjectConfig()
    config = config.merge(
        header_files=args.headers or None,
        library_file=args.library,
        output_path=args.output,
        namespace=args.namespace,
        exclude_patterns=args.exclude,
        generation_type=args.mode,
        templates_path=args.templates,
    )
    if args.preset:
        config.naming = replace(config.naming, preset=args.preset)
    if args.no_validation:
        config.validation = replace(config.validation, enable_parameter_validation=False)
    if args.no_type_conversion:
        config.validation = replace(config.validation, enable_type_conversion=False)
    return config


def binding_result(args: argparse.Namespace, config: ProjectConfig) -> BindingResult:
    if args.run_ffigen:
        print(f'=== Running ffigen for {len(config.header_files)} header(s):')
        return FFIGenRunner().run(config)
    return BindingResult(
        success=True,
        constants_file=args.constants or os.path.join(config.output_path, CONSTANTS_FILE),
        methods_file=args.methods or os.path.join(config.output_path, METHODS_FILE),
    )


def run(args: argparse.Namespace) -> int:
    config = build_config(args)
    ConfigValidator().validate(config, check_paths=args.run_ffigen)

    bindings = BindingProcessor().process(binding_result(args, config))
    gen = WrapperGenerator.from_config(config)
    code = gen.generate(bindings)
    files = gen.generate_code_files(code)
    gen.write_files(files, config.output_path)

    print(f'  {len(files)} file(s) written to {config.output_path}')
    for filename, error in code.failures.items():
        print(f'  >> failed: {filename}: {error}', file=sys.stderr)
    return 1 if code.failures else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format='%(levelname)s: %(name)s: %(message)s')

    try:
        return run(args)
    except WrapperGenError as e:
        print(f'error: {e.describe()}', file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
