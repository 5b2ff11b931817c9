"""
Library presets

A preset tunes a WrapperGenerator for one library's naming conventions.
Each preset module exposes configure(gen).
"""

from typing import TYPE_CHECKING

from ..errors import ConfigurationError
from . import libui

if TYPE_CHECKING:
    from ..generator import WrapperGenerator

PRESETS = {
    'libui': libui.configure,
}


def configure(name: str, gen: 'WrapperGenerator'):
    """Apply the named preset to gen"""
    try:
        preset = PRESETS[name]
    except KeyError:
        raise ConfigurationError(
            f'Unknown naming preset: {name}',
            context={'preset': name},
            suggestion='Available presets: ' + ', '.join(sorted(PRESETS)),
        ) from None
    preset(gen)
