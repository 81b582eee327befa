# Copyright (c) 2025-2026 NASK. All rights reserved.

import datetime
import unittest

from dateutil.tz import tzutc
from unittest_expander import (
    expand,
    foreach,
    param,
)

from treedecode.exceptions import TypeMismatch
from treedecode.kinds import (
    ANY,
    BOOL,
    DATETIME,
    FLOAT32,
    FLOAT64,
    INT,
    INT8,
    INT16,
    INT32,
    INT64,
    NATIVE_INT_BITS,
    STRING,
    UINT,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    ArrayKind,
    FloatKind,
    IntKind,
    ListKind,
    MapKind,
    OptionalKind,
    SelfDecodingKind,
    StructKind,
    as_kind,
)
from treedecode.structures import (
    Member,
    Structure,
)


class Point(Structure):
    x = Member(int)
    y = Member(int)


class Color(object):

    def __init__(self, rgb):
        self.rgb = rgb

    @classmethod
    def decode_canonical_text(cls, text):
        return cls(text.strip('"'))


@expand
class TestIntKind(unittest.TestCase):

    @foreach(
        param(INT8, -2 ** 7, 2 ** 7 - 1, 'int8'),
        param(INT16, -2 ** 15, 2 ** 15 - 1, 'int16'),
        param(INT32, -2 ** 31, 2 ** 31 - 1, 'int32'),
        param(INT64, -2 ** 63, 2 ** 63 - 1, 'int64'),
        param(UINT8, 0, 2 ** 8 - 1, 'uint8'),
        param(UINT16, 0, 2 ** 16 - 1, 'uint16'),
        param(UINT32, 0, 2 ** 32 - 1, 'uint32'),
        param(UINT64, 0, 2 ** 64 - 1, 'uint64'),
    )
    def test_fixed_width_bounds(self, kind, min_value, max_value, name):
        self.assertEqual(kind.bounds(), (min_value, max_value))
        self.assertEqual(kind.bounds(platform_int_bits=32), (min_value, max_value))
        self.assertEqual(kind.name, name)
        self.assertEqual(kind.zero_value(), 0)

    def test_platform_width(self):
        self.assertEqual(INT.name, 'int')
        self.assertEqual(UINT.name, 'uint')
        self.assertEqual(INT.bounds(platform_int_bits=32), (-2 ** 31, 2 ** 31 - 1))
        self.assertEqual(INT.bounds(platform_int_bits=64), (-2 ** 63, 2 ** 63 - 1))
        self.assertEqual(UINT.bounds(platform_int_bits=64), (0, 2 ** 64 - 1))
        self.assertEqual(INT.resolve_bits(), NATIVE_INT_BITS)
        self.assertIn(NATIVE_INT_BITS, (32, 64))

    def test_equality(self):
        self.assertEqual(IntKind(8), INT8)
        self.assertNotEqual(IntKind(8, signed=False), INT8)
        self.assertEqual(hash(IntKind(64)), hash(INT64))
        self.assertEqual(FloatKind(32), FLOAT32)
        self.assertNotEqual(FLOAT32, FLOAT64)

    @foreach(0, 7, 128)
    def test_illegal_width(self, bits):
        with self.assertRaises(ValueError):
            IntKind(bits)

    def test_illegal_float_width(self):
        with self.assertRaises(ValueError):
            FloatKind(16)


@expand
class Test_as_kind(unittest.TestCase):

    @foreach(
        param(bool, BOOL),
        param(int, INT),
        param(float, FLOAT64),
        param(str, STRING),
        param(object, ANY),
        param(datetime.datetime, DATETIME),
        param(INT8, INT8),
    )
    def test_builtin_shorthands(self, spec, expected):
        self.assertIs(as_kind(spec), expected)

    def test_structure_class(self):
        kind = as_kind(Point)
        self.assertIsInstance(kind, StructKind)
        self.assertIs(kind.structure_cls, Point)
        self.assertIs(as_kind(Point), kind)
        self.assertEqual(kind.name, 'Point')
        self.assertIsNone(kind.text_hook)
        self.assertEqual(kind.zero_value(), Point(x=0, y=0))

    def test_self_decoding_class(self):
        kind = as_kind(Color)
        self.assertIsInstance(kind, SelfDecodingKind)
        self.assertIs(as_kind(Color), kind)
        self.assertEqual(kind.name, 'Color')
        self.assertEqual(kind.text_hook('"red"').rgb, 'red')
        self.assertIsNone(kind.zero_value())

    @foreach(
        param(complex),
        param(bytes),
        param('str'),
        param(None),
    )
    def test_unknown_declarations_unchanged(self, spec):
        self.assertIs(as_kind(spec), spec)


class TestCompositeKinds(unittest.TestCase):

    def test_list(self):
        kind = ListKind(int)
        self.assertIs(kind.element, INT)
        self.assertEqual(kind.name, 'list[int]')
        self.assertEqual(kind.zero_value(), [])
        self.assertIsNot(kind.zero_value(), kind.zero_value())

    def test_array(self):
        kind = ArrayKind(Point, 2)
        self.assertEqual(kind.name, 'array[Point, 2]')
        zero = kind.zero_value()
        self.assertEqual(zero, [Point(), Point()])
        self.assertIsNot(zero[0], zero[1])

    def test_array_illegal_length(self):
        with self.assertRaises(ValueError):
            ArrayKind(int, -1)

    def test_map(self):
        kind = MapKind(ListKind(str))
        self.assertIs(kind.key, STRING)
        self.assertEqual(kind.name, 'map[string, list[string]]')
        self.assertEqual(kind.zero_value(), {})
        self.assertIs(MapKind(int, key=int).key, INT)

    def test_optional(self):
        kind = OptionalKind(Point)
        self.assertEqual(kind.name, 'optional[Point]')
        self.assertIsNone(kind.zero_value())

    def test_unknown_element_kind_is_kept(self):
        self.assertIs(ListKind(complex).element, complex)
        self.assertEqual(ListKind(complex).name, "list[<class 'complex'>]")


class TestDateTimeKind(unittest.TestCase):

    def test_iso_strings(self):
        self.assertEqual(DATETIME.text_hook('"2026-10-17T12:30:45"'),
                         datetime.datetime(2026, 10, 17, 12, 30, 45))
        self.assertEqual(DATETIME.text_hook('"2026-10-17T12:30:45+00:00"'),
                         datetime.datetime(2026, 10, 17, 12, 30, 45, tzinfo=tzutc()))

    def test_non_string(self):
        with self.assertRaises(TypeMismatch):
            DATETIME.text_hook('42')

    def test_malformed_string(self):
        with self.assertRaises(ValueError):
            DATETIME.text_hook('"not a datetime"')
