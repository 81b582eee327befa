# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Coercion of scalar value tree nodes to scalar target kinds.

The rules are strict: no silent clamping, wrapping or string-to-number
guessing.  Integer targets are range-checked exactly (then a fractional
source is truncated toward zero), numeric lexemes are parsed with the
target's radix-10 grammar, and a plain string is never accepted where a
number is expected.

>>> coerce_scalar(127, INT8)
127
>>> coerce_scalar(126.9, INT8)
126
>>> coerce_scalar(NumericLexeme('-128'), INT8)
-128
>>> coerce_scalar(128, INT8)
Traceback (most recent call last):
  ...
treedecode.exceptions.RangeExceeded: value 128 exceeds the range of int8 [-128, 127]
>>> coerce_scalar('5', INT8)
Traceback (most recent call last):
  ...
treedecode.exceptions.TypeMismatch: cannot decode a string into int8: the value is a string, not a number
"""

import decimal
import math
import re
import struct

from treedecode.common_helpers import ascii_str
from treedecode.exceptions import (
    InvalidNumericLexeme,
    RangeExceeded,
    TypeMismatch,
    UnsupportedTargetShape,
)
from treedecode.kinds import (
    NATIVE_INT_BITS,
    BoolKind,
    FloatKind,
    IntKind,
    StringKind,
    # (these are for doctests)
    INT8,
)
from treedecode.value_tree import (
    NodeKind,
    NumericLexeme,
    describe_node_kind,
    node_kind,
)


_SIGNED_INTEGER_LEXEME_REGEX = re.compile(r'\A[+-]?[0-9]+\Z', re.ASCII)
_UNSIGNED_INTEGER_LEXEME_REGEX = re.compile(r'\A[0-9]+\Z', re.ASCII)
_FLOAT_LEXEME_REGEX = re.compile(r'''
    \A
    [+-]?
    (?:
        [0-9]+ (?: \. [0-9]* )?
    |
        \. [0-9]+
    )
    (?: [eE] [+-]? [0-9]+ )?
    \Z
''', re.VERBOSE | re.ASCII)


def coerce_scalar(value, kind, platform_int_bits=NATIVE_INT_BITS):
    """
    Coerce the given scalar node to the given scalar kind.

    Args:
        `value`: a value tree node.
        `kind`: a `BoolKind`, `IntKind`, `FloatKind` or `StringKind`.
        `platform_int_bits` (default: `NATIVE_INT_BITS`):
            the width of the platform-dependent integer kinds.

    Returns:
        The coerced value (`bool`, `int`, `float` or `str`).

    Raises:
        `TypeMismatch`, `RangeExceeded`, `InvalidNumericLexeme` or
        `UnsupportedTargetShape` (if `kind` is not a scalar kind).
    """
    if isinstance(kind, BoolKind):
        return _coerce_bool(value, kind)
    if isinstance(kind, IntKind):
        return _coerce_integer(value, kind, platform_int_bits)
    if isinstance(kind, FloatKind):
        return _coerce_float(value, kind)
    if isinstance(kind, StringKind):
        return _coerce_string(value, kind)
    raise UnsupportedTargetShape('{!a} is not a scalar kind'.format(kind),
                                 target_kind=ascii_str(kind))


def _coerce_bool(value, kind):
    if node_kind(value) is NodeKind.BOOL:
        return value
    raise _type_mismatch(value, kind)


def _coerce_integer(value, kind, platform_int_bits):
    source_kind = node_kind(value)
    min_value, max_value = kind.bounds(platform_int_bits)
    if source_kind is NodeKind.NUMBER:
        if isinstance(value, decimal.Decimal) and not value.is_finite():
            raise _range_exceeded(value, kind, min_value, max_value)
        if not min_value <= value <= max_value:
            raise _range_exceeded(value, kind, min_value, max_value)
        return int(value)
    if source_kind is NodeKind.NUMERIC_LEXEME:
        regex = (_SIGNED_INTEGER_LEXEME_REGEX if kind.signed
                 else _UNSIGNED_INTEGER_LEXEME_REGEX)
        if not regex.search(value):
            raise InvalidNumericLexeme(
                '{!a} is not a valid {}'.format(str(value), kind.name),
                target_kind=kind.name,
                source_kind=str(source_kind))
        number = int(value)
        if not min_value <= number <= max_value:
            raise _range_exceeded(number, kind, min_value, max_value)
        return number
    if source_kind is NodeKind.STRING:
        raise _type_mismatch(value, kind, 'the value is a string, not a number')
    raise _type_mismatch(value, kind)


def _coerce_float(value, kind):
    source_kind = node_kind(value)
    if source_kind is NodeKind.NUMBER:
        if isinstance(value, float):
            result = value
        elif isinstance(value, decimal.Decimal) and value.is_snan():
            # `float()` refuses signaling NaNs
            result = math.nan
        else:
            try:
                result = float(value)
            except OverflowError:
                raise _range_exceeded(value, kind) from None
            if math.isinf(result) and value.is_finite():
                raise _range_exceeded(value, kind)
    elif source_kind is NodeKind.NUMERIC_LEXEME:
        if not _FLOAT_LEXEME_REGEX.search(value):
            raise InvalidNumericLexeme(
                '{!a} is not a valid {}'.format(str(value), kind.name),
                target_kind=kind.name,
                source_kind=str(source_kind))
        result = float(value)
        if math.isinf(result):
            raise _range_exceeded(value, kind)
    elif source_kind is NodeKind.STRING:
        raise _type_mismatch(value, kind, 'the value is a string, not a number')
    else:
        raise _type_mismatch(value, kind)
    if kind.bits == 32:
        result = _round_to_float32(value, result, kind)
    return result


def _round_to_float32(value, result, kind):
    try:
        return struct.unpack('<f', struct.pack('<f', result))[0]
    except OverflowError:
        raise _range_exceeded(value, kind) from None


def _coerce_string(value, kind):
    if node_kind(value) in (NodeKind.STRING, NodeKind.NUMERIC_LEXEME):
        return str(value)
    raise _type_mismatch(value, kind)


def _type_mismatch(value, kind, detail=None):
    source_kind = describe_node_kind(value)
    if detail is None:
        detail = 'got {}'.format(_short_ascii_repr(value))
    message = 'cannot decode {} into {}: {}'.format(
        _with_article(source_kind), kind.name, detail)
    return TypeMismatch(message,
                        target_kind=kind.name,
                        source_kind=source_kind)


def _range_exceeded(value, kind, min_value=None, max_value=None):
    message = 'value {} exceeds the range of {}'.format(ascii_str(value), kind.name)
    if min_value is not None:
        message += ' [{}, {}]'.format(min_value, max_value)
    return RangeExceeded(message,
                         width=kind.name,
                         target_kind=kind.name,
                         source_kind=describe_node_kind(value))


def _with_article(noun):
    return ('an ' if noun[:1] in 'aeiou' else 'a ') + noun


def _short_ascii_repr(value):
    value_repr = ascii(value)
    if len(value_repr) > 40:
        value_repr = value_repr[:37] + '...'
    return value_repr
