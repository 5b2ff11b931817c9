"""
pytest configuration for wrapper_gen tests.

Adds the repository root to sys.path so the tests run from a plain checkout,
and provides small binding artifacts shared by several test modules.
"""

import sys
from pathlib import Path

import pytest

root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from wrapper_gen.ir import BindingResult  # noqa: E402


METHODS_PHP = '''<?php
namespace Math;

trait Methods
{
    /**
     * Add two numbers
     * @param int $a
     * @param int $b
     * @return int
     */
    public static function mathAdd(int $a, int $b): int
    {
        return static::getFFI()->mathAdd($a, $b);
    }

    /**
     * @param int $a
     * @param int $b
     */
    public static function mathSub(int $a, int $b): int
    {
        return static::getFFI()->mathSub($a, $b);
    }

    /**
     * @param string|null $s the input
     */
    public static function strLen(?string $s): int
    {
        return static::getFFI()->strLen($s);
    }

    /**
     * @param $point point to reset
     */
    public static function pointReset($point): void
    {
        static::getFFI()->pointReset($point);
    }
}
'''

CONSTANTS_PHP = '''<?php
namespace Math;

const MATH_VERSION = "1.2";
const MATH_MAX = 0xFF;
const MATH_PI = 3.14159;
define('MATH_DEBUG', false);

/** struct point */
'''

HEADER_H = '''
#define POINT_DIMS 2

typedef struct point {
    int x, y;
    const char *label;
    void (*on_change)(int);
    uint8_t flags[4];
} point_t;

int mathAdd(int a, int b);
'''


@pytest.fixture
def methods_text():
    return METHODS_PHP


@pytest.fixture
def constants_text():
    return CONSTANTS_PHP


@pytest.fixture
def header_text():
    return HEADER_H


@pytest.fixture
def binding_result():
    return BindingResult.from_text(CONSTANTS_PHP, METHODS_PHP)


@pytest.fixture
def artifact_dir(tmp_path):
    """Output directory holding constants.php and Methods.php as ffigen writes them"""
    (tmp_path / 'constants.php').write_text(CONSTANTS_PHP, encoding='utf-8')
    (tmp_path / 'Methods.php').write_text(METHODS_PHP, encoding='utf-8')
    return tmp_path
