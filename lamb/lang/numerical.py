"""Numbers are the only data in lamb. Booleans are encoded as 1 and 0, and pointers are numbers used as heap indices,
so there is no native boolean or pointer type: `(cond)*a + (!cond)*b` is how a program picks between a and b.

Everything here converts between Python values and that encoding.
"""

import math

from lamb.lang.error import TypeMismatch

TRUE = 1.0
FALSE = 0.0


def boolean(condition):
    """Returns the lamb encoding of a Python truth value."""
    return TRUE if condition else FALSE


def describe(value):
    """Returns what kind of value value is, for error messages."""
    if isinstance(value, float):
        return f"number {render(value)}"
    return str(value)


def number(value, position=None):
    """Returns value if it is a number, raises TypeMismatch otherwise."""
    if not isinstance(value, float):
        raise TypeMismatch("a number", describe(value), position)
    return value


def integer(value, position=None):
    """Returns value truncated to an int. Raises TypeMismatch if value is not a finite number."""
    number(value, position)
    if not math.isfinite(value):
        raise TypeMismatch("a finite number", describe(value), position)
    return int(value)


def divide(dividend, divisor):
    """IEEE 754 division, which Python refuses to do for a zero divisor."""
    if divisor != 0:
        return dividend / divisor
    if dividend == 0 or math.isnan(dividend):
        return math.nan
    return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


def render(value):
    """Returns str(value), with whole numbers printed without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
