"""
libui binding configuration

Groups the flat ui* function list into one wrapper class per widget:
- uiWindowSetTitle, uiNewWindow => UiWindow::setTitle, UiWindow::new
- uiNewHorizontalBox, uiBoxAppend => UiBox
- anything else starting with ui => Ui
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..generator import WrapperGenerator

# First match wins, so specific widgets come before the ones they contain
GROUP_PATTERNS = [
    ('Window', r'^ui(?:New)?Window'),
    ('Button', r'^ui(?:New)?Button'),
    ('Entry', r'^ui(?:New)?(?:Password|Search)?Entry'),
    ('MultilineEntry', r'^ui(?:New)?(?:NonWrapping)?MultilineEntry'),
    ('Label', r'^ui(?:New)?Label'),
    ('Checkbox', r'^ui(?:New)?Checkbox'),
    ('Tab', r'^ui(?:New)?Tab(?!le)'),
    ('Group', r'^ui(?:New)?Group'),
    ('Box', r'^ui(?:New)?(?:Horizontal|Vertical)?Box'),
    ('Spinbox', r'^ui(?:New)?Spinbox'),
    ('Slider', r'^ui(?:New)?Slider'),
    ('ProgressBar', r'^ui(?:New)?ProgressBar'),
    ('Separator', r'^ui(?:New)?(?:Horizontal|Vertical)?Separator'),
    ('Combobox', r'^ui(?:New)?(?:Editable)?Combobox'),
    ('RadioButtons', r'^ui(?:New)?RadioButtons'),
    ('DateTimePicker', r'^ui(?:New)?(?:Date|Time|DateTime)Picker'),
    ('Menu', r'^ui(?:New)?Menu(?!Item)'),
    ('MenuItem', r'^uiMenuItem'),
    ('Area', r'^ui(?:New)?(?:Scrolling)?Area'),
    ('DrawPath', r'^uiDraw(?:New|Free)?Path'),
    ('DrawMatrix', r'^uiDrawMatrix'),
    ('DrawTextLayout', r'^uiDraw(?:New|Free)?TextLayout'),
    ('AttributedString', r'^ui(?:New|Free)?AttributedString'),
    ('Attribute', r'^ui(?:New|Free)?(?:Family|Size|Weight|Italic|Stretch|Color|Background|'
                  r'Underline|UnderlineColor|Features)?Attribute'),
    ('OpenTypeFeatures', r'^ui(?:New|Free)?OpenTypeFeatures'),
    ('FontDescriptor', r'^ui(?:Free|Load)?FontDescriptor'),
    ('Grid', r'^ui(?:New)?Grid'),
    ('Form', r'^ui(?:New)?Form'),
    ('Table', r'^ui(?:New)?Table(?!Value|Model|Selection)'),
    ('TableModel', r'^ui(?:New|Free)?TableModel'),
    ('TableValue', r'^ui(?:New|Free)?TableValue'),
    ('TableSelection', r'^ui(?:Free)?TableSelection'),
    ('FontButton', r'^ui(?:New)?FontButton'),
    ('ColorButton', r'^ui(?:New)?ColorButton'),
    ('Image', r'^ui(?:New|Free)?Image'),
    ('Control', r'^uiControl'),
    ('Ui', r'^ui'),
]

PREFIXES = ['ui']
CLASS_PREFIX = 'Ui'


def configure(gen: 'WrapperGenerator'):
    """Configure generator with libui-specific settings"""
    gen.prefixes = list(PREFIXES)
    gen.class_prefix = CLASS_PREFIX
    # uiWindow*, uiControl* and friends are opaque handles
    gen.opaque_prefixes = list(PREFIXES)
    gen.group_patterns(GROUP_PATTERNS)
