# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Target kinds: explicit tags describing what a decoded value should be.

The set of kind classes is closed: scalars (`BoolKind`, `IntKind`,
`FloatKind`, `StringKind`), `AnyKind` (untyped, verbatim copy),
`StructKind` (a `Structure` subclass), containers (`ListKind`,
`ArrayKind`, `MapKind`), `OptionalKind` and `SelfDecodingKind` (a kind
that parses its own canonical text).

Apart from the kind instances, structure members and the decoding
functions accept some Python classes as shorthands (see `as_kind()`).
"""

import datetime
import json
import sys

from dateutil.parser import isoparse

from treedecode.common_helpers import attr_repr
from treedecode.exceptions import TypeMismatch


#: The width of the platform-dependent integer kinds (`INT`/`UINT`) on
#: this machine (note: a `TreeDecoder` can be set up to use another one).
NATIVE_INT_BITS = 64 if sys.maxsize > 2 ** 32 else 32

INT_WIDTHS = (8, 16, 32, 64)
FLOAT_WIDTHS = (32, 64)


class TargetKind(object):

    """The base class of the target kinds."""

    #: A callable taking the canonical text of a node (or `None`).
    text_hook = None

    @property
    def name(self):
        raise NotImplementedError

    def zero_value(self):
        return None

    def __str__(self):
        return self.name

    __repr__ = attr_repr('name')


#
# Scalar kinds

class ScalarKind(TargetKind):
    """The base class of the scalar kinds."""


class BoolKind(ScalarKind):

    name = 'bool'

    def zero_value(self):
        return False


class IntKind(ScalarKind):

    """
    A fixed-width integer kind.

    >>> INT8.bounds()
    (-128, 127)
    >>> UINT16.bounds()
    (0, 65535)
    >>> INT.bounds(platform_int_bits=32)
    (-2147483648, 2147483647)
    >>> IntKind(12)
    Traceback (most recent call last):
      ...
    ValueError: unsupported integer width: 12
    """

    def __init__(self, bits=None, signed=True):
        if bits is not None and bits not in INT_WIDTHS:
            raise ValueError('unsupported integer width: {!a}'.format(bits))
        self.bits = bits
        self.signed = signed

    @property
    def name(self):
        return '{}int{}'.format('' if self.signed else 'u',
                                '' if self.bits is None else self.bits)

    def resolve_bits(self, platform_int_bits=NATIVE_INT_BITS):
        return platform_int_bits if self.bits is None else self.bits

    def bounds(self, platform_int_bits=NATIVE_INT_BITS):
        bits = self.resolve_bits(platform_int_bits)
        if self.signed:
            return -(2 ** (bits - 1)), 2 ** (bits - 1) - 1
        return 0, 2 ** bits - 1

    def zero_value(self):
        return 0

    def __eq__(self, other):
        if isinstance(other, IntKind):
            return (self.bits, self.signed) == (other.bits, other.signed)
        return NotImplemented

    def __hash__(self):
        return hash((IntKind, self.bits, self.signed))


class FloatKind(ScalarKind):

    def __init__(self, bits=64):
        if bits not in FLOAT_WIDTHS:
            raise ValueError('unsupported floating-point width: {!a}'.format(bits))
        self.bits = bits

    @property
    def name(self):
        return 'float{}'.format(self.bits)

    def zero_value(self):
        return 0.0

    def __eq__(self, other):
        if isinstance(other, FloatKind):
            return self.bits == other.bits
        return NotImplemented

    def __hash__(self):
        return hash((FloatKind, self.bits))


class StringKind(ScalarKind):

    name = 'string'

    def zero_value(self):
        return ''


#
# Other kinds

class AnyKind(TargetKind):

    name = 'any'


class StructKind(TargetKind):

    def __init__(self, structure_cls):
        self.structure_cls = structure_cls

    @property
    def name(self):
        return self.structure_cls.__qualname__

    @property
    def descriptor(self):
        return self.structure_cls.__tree_descriptor__

    @property
    def text_hook(self):
        return getattr(self.structure_cls, 'decode_canonical_text', None)

    def zero_value(self):
        return self.structure_cls()


class ListKind(TargetKind):

    """
    A variable-length sequence (decoding always makes a new `list`).

    >>> ListKind(str)
    <ListKind name='list[string]'>
    """

    def __init__(self, element):
        self.element = as_kind(element)

    @property
    def name(self):
        return 'list[{}]'.format(_kind_name(self.element))

    def zero_value(self):
        return []


class ArrayKind(TargetKind):

    """
    A fixed-length sequence (a `list` of `length` items, populated in place).

    >>> ArrayKind(int, 3).zero_value()
    [0, 0, 0]
    """

    def __init__(self, element, length):
        if not isinstance(length, int) or length < 0:
            raise ValueError('array length should be a non-negative int '
                             '(got: {!a})'.format(length))
        self.element = as_kind(element)
        self.length = length

    @property
    def name(self):
        return 'array[{}, {}]'.format(_kind_name(self.element), self.length)

    def zero_value(self):
        return [_zero_value_of(self.element) for _ in range(self.length)]


class MapKind(TargetKind):

    """
    A mapping with `str` keys (populated -- *merged* -- in place).

    Note: a `key` other than `STRING` is accepted here but is reported as
    `UnsupportedTargetShape` when a decoding reaches the kind.
    """

    def __init__(self, element, key=None):
        self.element = as_kind(element)
        self.key = STRING if key is None else as_kind(key)

    @property
    def name(self):
        return 'map[{}, {}]'.format(_kind_name(self.key), _kind_name(self.element))

    def zero_value(self):
        return {}


class OptionalKind(TargetKind):

    """
    A wrapper making the value nullable (a Null node sets it to `None`).

    >>> OptionalKind(int)
    <OptionalKind name='optional[int]'>
    """

    def __init__(self, inner):
        self.inner = as_kind(inner)

    @property
    def name(self):
        return 'optional[{}]'.format(_kind_name(self.inner))


class SelfDecodingKind(TargetKind):

    """
    A kind whose values are produced by a *text hook*.

    The hook is called with the canonical text (see
    `treedecode.value_tree.to_canonical_text()`) of the source node;
    its result becomes the decoded value.  It is expected to raise
    a `DecodingError`, `ValueError` or `TypeError` if the text is
    not acceptable.
    """

    def __init__(self, hook, name=None, zero=None):
        self.text_hook = hook
        self._name = name or getattr(hook, '__qualname__', None) or repr(hook)
        self._zero = zero

    @property
    def name(self):
        return self._name

    def zero_value(self):
        return self._zero


class DateTimeKind(SelfDecodingKind):

    """
    `datetime.datetime` values, decoded from ISO-8601 strings.

    >>> DATETIME.text_hook('"2026-10-17T12:30:00Z"')
    datetime.datetime(2026, 10, 17, 12, 30, tzinfo=tzutc())
    >>> DATETIME.text_hook('"2026-10-17"')
    datetime.datetime(2026, 10, 17, 0, 0)
    """

    def __init__(self):
        super().__init__(self._decode_datetime_text, name='datetime')

    @staticmethod
    def _decode_datetime_text(text):
        value = json.loads(text)
        if not isinstance(value, str):
            raise TypeMismatch(
                'a datetime should be given as an ISO-8601 string (got: {})'.format(text),
                target_kind='datetime')
        return isoparse(value)


#
# Predefined kind instances

BOOL = BoolKind()

INT8 = IntKind(8)
INT16 = IntKind(16)
INT32 = IntKind(32)
INT64 = IntKind(64)
INT = IntKind()

UINT8 = IntKind(8, signed=False)
UINT16 = IntKind(16, signed=False)
UINT32 = IntKind(32, signed=False)
UINT64 = IntKind(64, signed=False)
UINT = IntKind(signed=False)

FLOAT32 = FloatKind(32)
FLOAT64 = FloatKind(64)

STRING = StringKind()
ANY = AnyKind()
DATETIME = DateTimeKind()


_TYPE_TO_KIND = {
    bool: BOOL,
    int: INT,
    float: FLOAT64,
    str: STRING,
    object: ANY,
    datetime.datetime: DATETIME,
}

_self_decoding_kinds_cache = {}


def as_kind(spec):
    """
    Normalize a kind declaration.

    >>> as_kind(INT8) is INT8
    True
    >>> as_kind(str) is STRING
    True
    >>> as_kind(int)
    <IntKind name='int'>

    Unknown declarations are returned unchanged (a decoding which reaches
    such a one reports the `UnsupportedTargetShape` error):

    >>> as_kind(complex)
    <class 'complex'>
    """
    if isinstance(spec, TargetKind):
        return spec
    if isinstance(spec, type):
        kind = _TYPE_TO_KIND.get(spec)
        if kind is not None:
            return kind
        if hasattr(spec, '__tree_descriptor__'):
            return spec.__tree_kind__
        hook = getattr(spec, 'decode_canonical_text', None)
        if callable(hook):
            kind = _self_decoding_kinds_cache.get(spec)
            if kind is None:
                kind = _self_decoding_kinds_cache.setdefault(
                    spec, SelfDecodingKind(hook, name=spec.__qualname__))
            return kind
    return spec


def _kind_name(kind):
    if isinstance(kind, TargetKind):
        return kind.name
    return repr(kind)


def _zero_value_of(kind):
    if isinstance(kind, TargetKind):
        return kind.zero_value()
    return None
