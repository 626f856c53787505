"""
Runtime values for the MinJ interpreter.

Every value carries a closed type tag. Operators and the Cell assignability
check match on the tag, never on the Python type of the payload.
"""

import math
import struct
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List

from ..tokens import TokenType


INT32_MIN = -2**31
INT32_MAX = 2**31 - 1


class Tag(Enum):
    """Runtime type tags; the value is the MinJ spelling used in messages."""
    INT = "int"
    FLOAT = "float"
    DOUBLE = "double"
    BOOL = "boolean"
    CHAR = "char"
    STRING = "String"
    LIST = "List"
    OBJECT = "Object"
    VOID = "void"

    def __str__(self) -> str:
        return self.value


NUMERIC_TAGS = frozenset({Tag.INT, Tag.FLOAT, Tag.DOUBLE})

# Type keyword -> tag
TYPE_TAGS = {
    "int": Tag.INT,
    "float": Tag.FLOAT,
    "double": Tag.DOUBLE,
    "boolean": Tag.BOOL,
    "char": Tag.CHAR,
    "String": Tag.STRING,
}


@dataclass
class Value:
    """
    A runtime value with its type tag.

    `data` holds the Python payload: int, float, bool, str, a list of
    Values, an Obj, or None for Void. `multi` marks a list produced by a
    method returning two or more values.
    """
    data: Any
    tag: Tag
    multi: bool = False

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.tag.name})"

    @property
    def is_number(self) -> bool:
        return self.tag in NUMERIC_TAGS

    def plain(self) -> "Value":
        """Drop the multi-value marker."""
        if self.multi:
            return Value(self.data, self.tag)
        return self


# Numeric representation helpers

def wrap_int32(n: int) -> int:
    """Wrap an integer into the signed 32-bit range."""
    return ((n - INT32_MIN) % 2**32) + INT32_MIN


def to_float32(x: float) -> float:
    """Round a double to the nearest single-precision value."""
    try:
        return struct.unpack('f', struct.pack('f', x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def java_div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def java_rem(a: int, b: int) -> int:
    """Remainder whose sign follows the dividend."""
    return a - b * java_div(a, b)


# Constructors

def int_val(n: int) -> Value:
    """Create an int value, wrapping to 32 bits."""
    return Value(wrap_int32(int(n)), Tag.INT)


def float_val(x: float) -> Value:
    """Create a single-precision float value."""
    return Value(to_float32(float(x)), Tag.FLOAT)


def double_val(x: float) -> Value:
    return Value(float(x), Tag.DOUBLE)


def bool_val(b: bool) -> Value:
    return Value(bool(b), Tag.BOOL)


def char_val(c: str) -> Value:
    return Value(c, Tag.CHAR)


def string_val(s: str) -> Value:
    return Value(str(s), Tag.STRING)


def list_val(items: List[Value]) -> Value:
    return Value(list(items), Tag.LIST)


def multi_val(items: List[Value]) -> Value:
    """An ordered multi-value result of a method call."""
    return Value(list(items), Tag.LIST, multi=True)


def object_val(obj: Any) -> Value:
    return Value(obj, Tag.OBJECT)


VOID = Value(None, Tag.VOID)


# Literal decoding and defaults

def decode_literal(literal_type: TokenType, text: str) -> Value:
    """
    Decode raw literal text into a typed value.

    Quoted bodies are taken literally; no escape sequences are processed.
    """
    if literal_type == TokenType.INT_LITERAL:
        return int_val(int(text))
    if literal_type == TokenType.FLOAT_LITERAL:
        return float_val(float(text[:-1]))
    if literal_type == TokenType.DOUBLE_LITERAL:
        return double_val(float(text))
    if literal_type == TokenType.BOOL_LITERAL:
        return bool_val(text == "true")
    if literal_type == TokenType.CHAR_LITERAL:
        return char_val(text[1:-1])
    if literal_type == TokenType.STRING_LITERAL:
        return string_val(text[1:-1])
    raise ValueError(f"not a literal token: {literal_type}")


_DEFAULTS = {
    Tag.INT: 0,
    Tag.FLOAT: 0.0,
    Tag.DOUBLE: 0.0,
    Tag.BOOL: False,
    Tag.CHAR: '\0',
    Tag.STRING: "",
}


def default_value(tag: Tag = None) -> Value:
    """Initial value of a declaration without initializer; untyped is ""."""
    if tag is None:
        return string_val("")
    return Value(_DEFAULTS[tag], tag)


# Stringification

def _float32_digits(x: float) -> str:
    """Shortest decimal text that reads back as the same float32."""
    for precision in range(1, 10):
        text = f"{x:.{precision}g}"
        if to_float32(float(text)) == x:
            return text
    return repr(x)


def format_float(x: float, single: bool = False) -> str:
    """
    Format a float the way Java's Double/Float.toString do.

    Decimal notation with at least one fractional digit in [1e-3, 1e7),
    otherwise computerized scientific notation such as 1.0E20.
    """
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "-0.0" if math.copysign(1.0, x) < 0 else "0.0"

    text = _float32_digits(x) if single else repr(x)
    sign, digit_tuple, exponent = Decimal(text).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    body = "".join(str(d) for d in digits)
    point = exponent + len(body)  # decimal point position within body

    if 1e-3 <= abs(x) < 1e7:
        if point <= 0:
            out = "0." + "0" * (-point) + body
        elif point >= len(body):
            out = body + "0" * (point - len(body)) + ".0"
        else:
            out = body[:point] + "." + body[point:]
    else:
        out = f"{body[0]}.{body[1:] or '0'}E{point - 1}"

    return ("-" if sign else "") + out


def to_display(value: Value) -> str:
    """Render a value as print and string concatenation show it."""
    tag = value.tag
    if tag == Tag.INT:
        return str(value.data)
    if tag == Tag.FLOAT:
        return format_float(value.data, single=True)
    if tag == Tag.DOUBLE:
        return format_float(value.data)
    if tag == Tag.BOOL:
        return "true" if value.data else "false"
    if tag in (Tag.CHAR, Tag.STRING):
        return value.data
    if tag == Tag.LIST:
        return "[" + ", ".join(to_display(v) for v in value.data) + "]"
    if tag == Tag.VOID:
        return "null"
    return str(value.data)


# Equality and copying

def values_equal(a: Value, b: Value) -> bool:
    """Tag-strict equality; lists compare element-wise, objects by identity."""
    if a.tag != b.tag:
        return False
    if a.tag == Tag.LIST:
        return len(a.data) == len(b.data) and all(
            values_equal(x, y) for x, y in zip(a.data, b.data)
        )
    if a.tag == Tag.OBJECT:
        return a.data is b.data
    return a.data == b.data


def clone(value: Value) -> Value:
    """Copy list storage structurally; object references stay shared."""
    if value.tag == Tag.LIST:
        return Value([clone(v) for v in value.data], Tag.LIST)
    return Value(value.data, value.tag)
