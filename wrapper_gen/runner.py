"""
FFIGen runner

Runs the external klitsche/ffigen binding generator as a subprocess and
hands back a BindingResult pointing at its constants.php and Methods.php.
Exclude patterns are passed through to ffigen and not applied again here.
"""

import logging
import os
import subprocess
import tempfile
from typing import Optional, Sequence

import yaml

from .config import ProjectConfig
from .errors import GenerationError
from .ir import BindingResult

logger = logging.getLogger(__name__)

CONSTANTS_FILE = 'constants.php'
METHODS_FILE = 'Methods.php'
TIMEOUT = 300

# Tried in order until one can be started
DEFAULT_COMMANDS = (
    ('vendor/bin/ffigen',),
    ('./vendor/bin/ffigen',),
    ('ffigen',),
    ('php', 'vendor/bin/ffigen'),
)


def build_ffigen_config(config: ProjectConfig) -> dict:
    """ffigen's own YAML settings for a project"""
    return {
        'headerFiles': list(config.header_files),
        'libraryFile': config.library_file,
        'outputPath': config.output_path,
        'namespace': config.namespace,
        'excludeConstants': list(config.exclude_patterns),
        'excludeMethods': list(config.exclude_patterns),
    }


class FFIGenRunner:
    """Runs ffigen for a project configuration"""

    def __init__(self, commands: Optional[Sequence[Sequence[str]]] = None, timeout: int = TIMEOUT):
        self.commands = [tuple(c) for c in (commands or DEFAULT_COMMANDS)]
        self.timeout = timeout

    def run(self, config: ProjectConfig) -> BindingResult:
        """Run ffigen; a non-zero exit is a failed result, not an exception"""
        os.makedirs(config.output_path, exist_ok=True)
        config_file = self._write_config(config)
        try:
            proc = self._execute(config_file)
        finally:
            os.unlink(config_file)

        if proc.returncode != 0:
            message = (proc.stderr or proc.stdout or '').strip() or f'ffigen exited with {proc.returncode}'
            logger.error('ffigen failed: %s', message)
            return BindingResult.failed(message)

        return BindingResult(
            success=True,
            constants_file=os.path.join(config.output_path, CONSTANTS_FILE),
            methods_file=os.path.join(config.output_path, METHODS_FILE),
        )

    def _write_config(self, config: ProjectConfig) -> str:
        fd, path = tempfile.mkstemp(prefix='ffigen_config_', suffix='.yaml')
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            yaml.safe_dump(build_ffigen_config(config), f, sort_keys=False)
        return path

    def _execute(self, config_file: str) -> subprocess.CompletedProcess:
        last_error: Optional[OSError] = None
        for command in self.commands:
            cmd = [*command, config_file]
            logger.debug('running %s', ' '.join(cmd))
            try:
                return subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except FileNotFoundError as e:
                last_error = e
            except subprocess.TimeoutExpired as e:
                raise GenerationError(
                    f'ffigen timed out after {self.timeout} seconds',
                    context={'command': ' '.join(cmd)},
                ) from e
        raise GenerationError(
            'Could not execute klitsche/ffigen. Make sure it is installed via Composer.',
            context={'tried': [' '.join(c) for c in self.commands]},
        ) from last_error
