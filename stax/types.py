"""Runtime values for Stax.

Every value that can live on the operand stack or in a variable is one of
four frozen dataclasses: `FloatVal`, `IntVal`, `StrVal` and `BoolVal`.
Numeric literals always produce `FloatVal`; `IntVal` only appears through
the `cint` conversion. This module also holds the canonical text rendering
and the conversion rules used by the `cint`, `cfloat`, `cstr` and `cbool`
opcodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union
import math
import re


@dataclass(frozen=True)
class FloatVal:
    value: float

    def __repr__(self) -> str:
        return f"Float({to_string(self)})"


@dataclass(frozen=True)
class IntVal:
    value: int

    def __repr__(self) -> str:
        return f"Integer({self.value})"


@dataclass(frozen=True)
class StrVal:
    value: str

    def __repr__(self) -> str:
        return f"String({self.value!r})"


@dataclass(frozen=True)
class BoolVal:
    value: bool

    def __repr__(self) -> str:
        return f"Boolean({to_string(self)})"


Value = Union[FloatVal, IntVal, StrVal, BoolVal]

VALUE_TYPES = (FloatVal, IntVal, StrVal, BoolVal)

INTEGER_TEXT = re.compile(r'[+-]?\d+')


def type_name(value: Value) -> str:
    """Return the Stax type name of a runtime value."""
    if isinstance(value, FloatVal):
        return 'Float'
    if isinstance(value, IntVal):
        return 'Integer'
    if isinstance(value, StrVal):
        return 'String'
    if isinstance(value, BoolVal):
        return 'Boolean'
    raise TypeError(f"not a Stax value: {value!r}")


def format_float(x: float) -> str:
    if math.isnan(x):
        return 'NaN'
    if math.isinf(x):
        return 'Infinity' if x > 0 else '-Infinity'
    # whole numbers print without a fractional part, like the number literals
    if x.is_integer() and abs(x) < 1e16:
        return str(int(x))
    return repr(x)


def to_string(value: Value) -> str:
    """Render a value the way `print` and `cstr` show it."""
    if isinstance(value, FloatVal):
        return format_float(value.value)
    if isinstance(value, IntVal):
        return str(value.value)
    if isinstance(value, StrVal):
        return value.value
    if isinstance(value, BoolVal):
        return 'true' if value.value else 'false'
    raise TypeError(f"not a Stax value: {value!r}")


def to_number(value: Value) -> float:
    """Coerce a numeric value to float for comparisons.

    Raises TypeError for String and Boolean values.
    """
    if isinstance(value, FloatVal):
        return value.value
    if isinstance(value, IntVal):
        return float(value.value)
    raise TypeError(f"cannot convert {type_name(value)} value {to_string(value)!r} to a number")


def parse_float(text: str) -> float:
    """Parse user supplied text as a float.

    Accepts either '.' or ',' as the decimal separator. Raises ValueError
    when the text is not a number.
    """
    stripped = text.strip()
    if stripped.count(',') == 1 and '.' not in stripped:
        stripped = stripped.replace(',', '.')
    try:
        return float(stripped)
    except ValueError:
        raise ValueError(f"cannot parse Float from {text!r}")


def convert_to_integer(value: Value) -> IntVal:
    if isinstance(value, IntVal):
        return value
    if isinstance(value, FloatVal):
        if math.isnan(value.value) or math.isinf(value.value):
            raise ValueError(f"cannot convert {to_string(value)} to Integer")
        # int() truncates toward zero
        return IntVal(int(value.value))
    if isinstance(value, StrVal):
        text = value.value.strip()
        if not INTEGER_TEXT.fullmatch(text):
            raise ValueError(f"cannot parse Integer from {value.value!r}")
        return IntVal(int(text))
    if isinstance(value, BoolVal):
        return IntVal(1 if value.value else 0)
    raise TypeError(f"not a Stax value: {value!r}")


def convert_to_float(value: Value) -> FloatVal:
    if isinstance(value, FloatVal):
        return value
    if isinstance(value, IntVal):
        try:
            return FloatVal(float(value.value))
        except OverflowError:
            raise ValueError(f"Integer {value.value} is too large for Float")
    if isinstance(value, StrVal):
        return FloatVal(parse_float(value.value))
    if isinstance(value, BoolVal):
        return FloatVal(1.0 if value.value else 0.0)
    raise TypeError(f"not a Stax value: {value!r}")


def convert_to_string(value: Value) -> StrVal:
    if isinstance(value, StrVal):
        return value
    return StrVal(to_string(value))


def convert_to_boolean(value: Value) -> BoolVal:
    if isinstance(value, BoolVal):
        return value
    if isinstance(value, StrVal):
        text = value.value.strip().lower()
        if text == 'true':
            return BoolVal(True)
        if text == 'false':
            return BoolVal(False)
        raise ValueError(f"cannot parse Boolean from {value.value!r}")
    if isinstance(value, IntVal):
        return BoolVal(value.value != 0)
    if isinstance(value, FloatVal):
        return BoolVal(value.value != 0.0)
    raise TypeError(f"not a Stax value: {value!r}")
