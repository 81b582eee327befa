# Copyright (c) 2025-2026 NASK. All rights reserved.

import datetime
import decimal
import json
import math
import threading
import unittest
from unittest.mock import sentinel as sen

from unittest_expander import (
    expand,
    foreach,
    param,
    paramseq,
)

from treedecode.decoder import (
    TreeDecoder,
    ValueTree,
    decode,
    decode_field,
    decode_value,
)
from treedecode.exceptions import (
    ArrayLengthExceeded,
    DecodingError,
    InvalidNumericLexeme,
    MissingRequiredField,
    NotSettable,
    RangeExceeded,
    TreeTooDeep,
    TypeMismatch,
    UnsupportedTargetShape,
)
from treedecode.kinds import (
    ANY,
    DATETIME,
    FLOAT32,
    INT,
    INT8,
    INT64,
    UINT8,
    ArrayKind,
    ListKind,
    MapKind,
    OptionalKind,
    SelfDecodingKind,
)
from treedecode.structures import (
    Member,
    Structure,
)
from treedecode.tests._generic_helpers import TestCaseMixin
from treedecode.value_tree import (
    ABSENT,
    NumericLexeme,
)


#
# Target structures used in the tests

class User(Structure):
    user_id = Member(INT64, required=True)
    name = Member(str, required=True)
    tags = Member(ListKind(str))


class OnlyOptional(Structure):
    a = Member(int, default=sen.a_initial)
    b = Member(str, default=sen.b_initial)
    c = Member(OptionalKind(int), default=sen.c_initial)


class Address(Structure):
    city = Member(str, required=True)
    zipCode = Member(str)


class Person(Structure):
    fullName = Member(str)
    HTTPServer = Member(str)
    address = Member(Address)
    previous = Member(OptionalKind(Address))
    nicknames = Member(ListKind(str))
    scores = Member(ArrayKind(UINT8, 3))
    attributes = Member(MapKind(int))
    raw = Member(object)
    rawMap = Member(MapKind(ANY))
    rawList = Member(ListKind(ANY))
    homes = Member(ListKind(Address))
    dottedKey = Member(str, key='x.y')


class Frozen(Structure, frozen=True):
    value = Member(int)


class Holder(Structure):
    frozen = Member(Frozen)


class Weird(Structure):
    number = Member(complex)
    intKeyed = Member(MapKind(str, key=int))


class Version(object):

    def __init__(self, major, minor):
        self.major = major
        self.minor = minor

    def __eq__(self, other):
        return (self.major, self.minor) == (other.major, other.minor)

    @classmethod
    def decode_canonical_text(cls, text):
        value = json.loads(text)
        if value is None:
            return cls(0, 0)
        major, minor = value.split('.')
        return cls(int(major), int(minor))


class Release(Structure):
    version = Member(Version, required=True)
    published = Member(OptionalKind(DATETIME))
    texts = Member(ListKind(SelfDecodingKind(str, name='canonical text')))


class Node(Structure):
    label = Member(str)
    children = Member(ListKind(object))


#
# Actual tests

class TestPrimaryScenarios(TestCaseMixin, unittest.TestCase):

    def test_user_at_int64_max(self):
        tree = {'user_id': 9223372036854775807, 'name': 'Ada', 'tags': ['x', 'y']}
        user = User()
        result = decode(tree, user)
        self.assertIs(result, user)
        self.assertEqualIncludingTypes(user.user_id, 9223372036854775807)
        self.assertEqualIncludingTypes(user.name, 'Ada')
        self.assertEqualIncludingTypes(user.tags, ['x', 'y'])

    def test_user_beyond_int64_max(self):
        tree = {'user_id': 9223372036854775808, 'name': 'Ada', 'tags': ['x', 'y']}
        exc = self.assertDecodingError(RangeExceeded, 'user_id', decode, tree, User())
        self.assertEqual(exc.width, 'int64')
        self.assertTrue(str(exc).startswith('[user_id] '))

    def test_user_id_as_lexeme_beyond_int64_max(self):
        tree = json.loads('{"user_id": 9223372036854775808, "name": "Ada"}',
                          parse_int=NumericLexeme)
        self.assertDecodingError(RangeExceeded, 'user_id', decode, tree, User())

    def test_path_lookup_forms(self):
        tree = {'a': {'b': [1, 2, {'c': 'v'}]}}
        value_tree = ValueTree(tree)
        self.assertEqual(value_tree.get_field('a', 'b', '2', 'c'), 'v')
        self.assertEqual(value_tree.get('a.b.2.c'), 'v')
        self.assertIs(value_tree.get('a.b.5'), ABSENT)
        self.assertIs(value_tree.root, tree)

    def test_only_optional_members_with_empty_object(self):
        obj = OnlyOptional()
        decode({}, obj)
        self.assertIs(obj.a, sen.a_initial)
        self.assertIs(obj.b, sen.b_initial)
        self.assertIs(obj.c, sen.c_initial)

    def test_missing_required_member(self):
        exc = self.assertDecodingError(MissingRequiredField, 'name',
                                       decode, {'user_id': 1}, User())
        self.assertEqual(str(exc), "[name] required key 'name' is missing")


@expand
class TestStructureDecoding(TestCaseMixin, unittest.TestCase):

    def test_full_person(self):
        tree = {
            'full_name': 'Ada Lovelace',
            'http_server': 'srv',
            'address': {'city': 'London', 'zip_code': 'W1'},
            'previous': None,
            'nicknames': ['A', 'L'],
            'scores': [1, 2],
            'attributes': {'height': 165, 'age': NumericLexeme('36')},
            'raw': {'anything': [1, None, {'x': True}]},
            'raw_map': {'k': [1, 2]},
            'raw_list': [1, 'two', None],
            'homes': [{'city': 'A'}, {'city': 'B', 'zip_code': '2'}],
            'x.y': 'dotted',
            'unknown': 'ignored',
        }
        person = decode(tree, Person())
        self.assertEqual(person, Person(
            fullName='Ada Lovelace',
            HTTPServer='srv',
            address=Address(city='London', zipCode='W1'),
            previous=None,
            nicknames=['A', 'L'],
            scores=[1, 2, 0],
            attributes={'height': 165, 'age': 36},
            raw={'anything': [1, None, {'x': True}]},
            rawMap={'k': [1, 2]},
            rawList=[1, 'two', None],
            homes=[Address(city='A'), Address(city='B', zipCode='2')],
            dottedKey='dotted',
        ))

    def test_nested_structure_populated_in_place(self):
        person = Person()
        original_address = person.address
        original_address.zipCode = 'kept'
        decode({'address': {'city': 'Paris'}}, person)
        self.assertIs(person.address, original_address)
        self.assertEqual(person.address, Address(city='Paris', zipCode='kept'))

    def test_optional_nested_structure_allocated_lazily(self):
        person = Person()
        self.assertIsNone(person.previous)
        decode({'previous': {'city': 'Oslo'}}, person)
        self.assertEqual(person.previous, Address(city='Oslo'))
        existing = person.previous
        decode({'previous': {'zip_code': '0150', 'city': 'Oslo'}}, person)
        self.assertIs(person.previous, existing)
        self.assertEqual(existing.zipCode, '0150')

    def test_null_clears_optional(self):
        person = Person(previous=Address(city='X'))
        decode({'previous': None}, person)
        self.assertIsNone(person.previous)

    def test_absent_optional_untouched(self):
        person = Person(previous=Address(city='X'))
        decode({}, person)
        self.assertEqual(person.previous, Address(city='X'))

    def test_nested_missing_required(self):
        self.assertDecodingError(MissingRequiredField, 'homes.1.city',
                                 decode, {'homes': [{'city': 'A'}, {}]}, Person())
        self.assertDecodingError(MissingRequiredField, 'address.city',
                                 decode, {'address': {}}, Person())

    def test_no_lookup_interpretation_of_dotted_keys(self):
        person = decode({'x': {'y': 'nested'}}, Person())
        self.assertEqual(person.dottedKey, '')

    def test_first_error_aborts_without_rollback(self):
        person = Person()
        tree = {'full_name': 'Set before error', 'nicknames': [1]}
        self.assertDecodingError(TypeMismatch, 'nicknames.0', decode, tree, person)
        self.assertEqual(person.fullName, 'Set before error')

    def test_tree_not_mutated(self):
        tree = {'raw': {'a': [1]}, 'raw_list': [[1]], 'raw_map': {'k': {'z': 1}},
                'attributes': {'n': 1}}
        snapshot = json.dumps(tree, sort_keys=True)
        person = decode(tree, Person())
        person.raw['a'].append(2)
        person.rawList[0].append(2)
        person.rawMap['k']['z'] = 2
        person.attributes['n'] = 2
        self.assertEqual(json.dumps(tree, sort_keys=True), snapshot)

    def test_path_prefix(self):
        self.assertDecodingError(MissingRequiredField, 'response.body.user_id',
                                 decode, {}, User(), 'response.body')
        self.assertDecodingError(MissingRequiredField, 'items.3.user_id',
                                 decode, {}, User(), ['items', 3])

    @foreach(
        param([]),
        param('text'),
        param(None),
        param(42),
    )
    def test_root_not_an_object(self, tree):
        exc = self.assertDecodingError(TypeMismatch, '', decode, tree, User())
        self.assertEqual(exc.target_kind, 'User')

    def test_nested_not_an_object(self):
        exc = self.assertDecodingError(TypeMismatch, 'address',
                                       decode, {'address': ['London']}, Person())
        self.assertEqual(exc.source_kind, 'array')

    def test_null_into_non_optional(self):
        self.assertDecodingError(TypeMismatch, 'full_name',
                                 decode, {'full_name': None}, Person())
        self.assertDecodingError(TypeMismatch, 'address',
                                 decode, {'address': None}, Person())
        self.assertDecodingError(TypeMismatch, 'nicknames',
                                 decode, {'nicknames': None}, Person())

    def test_null_into_any(self):
        person = decode({'raw': None}, Person(raw='x'))
        self.assertIsNone(person.raw)


class TestContainerDecoding(TestCaseMixin, unittest.TestCase):

    def test_list_replaced(self):
        person = Person(nicknames=['old', 'older'])
        old_list = person.nicknames
        decode({'nicknames': ['new']}, person)
        self.assertEqual(person.nicknames, ['new'])
        self.assertEqual(old_list, ['old', 'older'])

    def test_list_from_tuple(self):
        person = decode({'nicknames': ('a', 'b')}, Person())
        self.assertEqualIncludingTypes(person.nicknames, ['a', 'b'])

    def test_list_not_an_array(self):
        self.assertDecodingError(TypeMismatch, 'nicknames',
                                 decode, {'nicknames': 'a'}, Person())

    def test_array_populated_in_place(self):
        person = Person(scores=[9, 9, 9])
        storage = person.scores
        decode({'scores': [1, 2]}, person)
        self.assertIs(person.scores, storage)
        self.assertEqual(storage, [1, 2, 9])

    def test_array_exact_length(self):
        person = decode({'scores': [1, 2, 3]}, Person())
        self.assertEqual(person.scores, [1, 2, 3])

    def test_array_too_long(self):
        exc = self.assertDecodingError(ArrayLengthExceeded, 'scores',
                                       decode, {'scores': [1, 2, 3, 4]}, Person())
        self.assertIn('3', str(exc))

    def test_array_element_range(self):
        self.assertDecodingError(RangeExceeded, 'scores.1',
                                 decode, {'scores': [1, 256]}, Person())

    def test_array_storage_reallocated_when_unusable(self):
        person = Person(scores=None)
        decode({'scores': [4]}, person)
        self.assertEqual(person.scores, [4, 0, 0])

    def test_map_merged(self):
        person = Person(attributes={'kept': 1, 'replaced': 2})
        storage = person.attributes
        decode({'attributes': {'replaced': 3, 'added': 4}}, person)
        self.assertIs(person.attributes, storage)
        self.assertEqual(storage, {'kept': 1, 'replaced': 3, 'added': 4})

    def test_map_allocated_if_needed(self):
        person = Person(attributes=None)
        decode({'attributes': {'a': 1}}, person)
        self.assertEqual(person.attributes, {'a': 1})

    def test_any_map_replaced(self):
        person = Person(rawMap={'old': 1})
        decode({'raw_map': {'new': 2}}, person)
        self.assertEqual(person.rawMap, {'new': 2})

    def test_map_element_error_path(self):
        self.assertDecodingError(TypeMismatch, 'attributes.age',
                                 decode, {'attributes': {'age': 'x'}}, Person())

    def test_map_not_an_object(self):
        self.assertDecodingError(TypeMismatch, 'attributes',
                                 decode, {'attributes': [1]}, Person())

    def test_map_with_non_string_keys(self):
        self.assertDecodingError(UnsupportedTargetShape, 'int_keyed',
                                 decode, {'int_keyed': {'1': 'a'}}, Weird())

    def test_map_kind_checked_after_source_kind(self):
        self.assertDecodingError(TypeMismatch, 'int_keyed',
                                 decode, {'int_keyed': 'not an object'}, Weird())

    def test_unsupported_kind(self):
        exc = self.assertDecodingError(UnsupportedTargetShape, 'number',
                                       decode, {'number': 1}, Weird())
        self.assertIn('complex', str(exc))

    def test_unsupported_kind_not_reached_when_absent(self):
        decode({}, Weird())

    def test_any_reproduces_subtree(self):
        subtree = {'a': [1, 2.5, NumericLexeme('3'), None, True, {'b': 'c'}],
                   'd': decimal.Decimal('1.10')}
        node = decode({'children': [subtree]}, Node())
        self.assertEqualIncludingTypes(node.children, [subtree])


class TestSelfDecoding(TestCaseMixin, unittest.TestCase):

    def test_hook_gets_canonical_text(self):
        release = decode({'version': '1.2'}, Release())
        self.assertEqual(release.version, Version(1, 2))

    def test_hook_gets_null(self):
        release = decode({'version': None}, Release())
        self.assertEqual(release.version, Version(0, 0))

    def test_hook_value_error_reported_as_type_mismatch(self):
        exc = self.assertDecodingError(TypeMismatch, 'version',
                                       decode, {'version': 'one.two'}, Release())
        self.assertIsInstance(exc.__cause__, ValueError)

    def test_hook_receives_canonical_text_of_composites(self):
        release = decode({'version': '0.1',
                          'texts': [{'b': 1, 'a': [NumericLexeme('1.50')]}, 'x']},
                         Release())
        self.assertEqual(release.texts, ['{"a":[1.50],"b":1}', '"x"'])

    def test_optional_datetime(self):
        release = decode({'version': '1.0', 'published': '2026-10-17T10:00:00'},
                         Release())
        self.assertEqual(release.published, datetime.datetime(2026, 10, 17, 10, 0))
        decode({'version': '1.0', 'published': None}, release)
        self.assertIsNone(release.published)

    def test_datetime_not_a_string(self):
        self.assertDecodingError(TypeMismatch, 'published',
                                 decode, {'version': '1.0', 'published': 5}, Release())

    def test_datetime_malformed(self):
        self.assertDecodingError(TypeMismatch, 'published',
                                 decode, {'version': '1.0', 'published': 'yesterday'},
                                 Release())

    def test_structure_with_hook(self):

        class Coordinates(Structure):
            lat = Member(float)
            lon = Member(float)

            @classmethod
            def decode_canonical_text(cls, text):
                lat, lon = json.loads(text).split(',')
                return cls(lat=float(lat), lon=float(lon))

        class Place(Structure):
            where = Member(Coordinates)

        place = decode({'where': '52.2,21.0'}, Place())
        self.assertEqual(place.where, Coordinates(lat=52.2, lon=21.0))


@expand
class TestTargets(unittest.TestCase):

    def test_class_instead_of_instance(self):
        with self.assertRaises(NotSettable):
            decode({}, User)

    @foreach(
        param({}),
        param([]),
        param(None),
        param(sen.whatever),
    )
    def test_non_structure_target(self, target):
        with self.assertRaises(UnsupportedTargetShape):
            decode({}, target)

    def test_frozen_target(self):
        with self.assertRaises(NotSettable) as cm:
            decode({'value': 1}, Frozen())
        self.assertEqual(cm.exception.path, 'value')

    def test_frozen_target_untouched_when_no_keys(self):
        decode({}, Frozen(value=3))

    def test_frozen_nested_target(self):
        with self.assertRaises(NotSettable) as cm:
            decode({'frozen': {'value': 1}}, Holder())
        self.assertEqual(cm.exception.path, 'frozen.value')


@expand
class TestDecodeField(TestCaseMixin, unittest.TestCase):

    TREE = {
        'response': {
            'items': [{'id': 1}, {'id': 300}],
            'count': NumericLexeme('2'),
            'user': {'user_id': 7, 'name': 'Bob'},
        },
    }

    @paramseq
    def _cases(cls):
        yield param(field='response.count', kind=int, expected=2)
        yield param(field=['response', 'items', '0', 'id'], kind=UINT8, expected=1)
        yield param(field='response.items.1.id', kind=INT, expected=300)
        yield param(field='response.items', kind=ListKind(object),
                    expected=[{'id': 1}, {'id': 300}])
        yield param(field='', kind=MapKind(object),
                    expected={'response': {'items': [{'id': 1}, {'id': 300}],
                                           'count': NumericLexeme('2'),
                                           'user': {'user_id': 7, 'name': 'Bob'}}})
        yield param(field='response.user', kind=User,
                    expected=User(user_id=7, name='Bob'))

    @foreach(_cases)
    def test_found(self, field, kind, expected):
        self.assertEqualIncludingTypes(decode_field(self.TREE, field, kind), expected)

    def test_absent(self):
        exc = self.assertDecodingError(MissingRequiredField, '',
                                       decode_field, self.TREE, 'response.items.5', int)
        self.assertIn('response.items.5', str(exc))

    def test_error_path_includes_field(self):
        self.assertDecodingError(RangeExceeded, 'response.items.1.id',
                                 decode_field, self.TREE, 'response.items.1.id', INT8)
        self.assertDecodingError(InvalidNumericLexeme, 'response.count',
                                 decode_field, {'response': {'count': NumericLexeme('2.0')}},
                                 'response.count', int)

    def test_into_structure_instance(self):
        user = User(tags=['kept'])
        result = decode_field(self.TREE, 'response.user', user)
        self.assertIs(result, user)
        self.assertEqual(user, User(user_id=7, name='Bob', tags=['kept']))

    def test_with_current_storage(self):
        storage = {'x': 1}
        result = decode_field({'m': {'y': 2}}, 'm', MapKind(int), storage)
        self.assertIs(result, storage)
        self.assertEqual(storage, {'x': 1, 'y': 2})

    def test_optional_null(self):
        self.assertIsNone(decode_field({'a': None}, 'a', OptionalKind(int)))
        self.assertEqual(decode_field({'a': 5}, 'a', OptionalKind(int)), 5)

    def test_value_tree_facade(self):
        value_tree = ValueTree(self.TREE)
        self.assertEqual(value_tree.decode_field('response.count', int), 2)
        user = ValueTree({'user_id': 1, 'name': 'A'}).decode(User())
        self.assertEqual(user, User(user_id=1, name='A'))
        with self.assertRaises(MissingRequiredField) as cm:
            ValueTree({}).decode(User(), path_prefix='body')
        self.assertEqual(cm.exception.path, 'body.user_id')


class TestDecodeValue(unittest.TestCase):

    def test_decode_value(self):
        self.assertEqual(decode_value([1, 2], ListKind(INT8)), [1, 2])
        with self.assertRaises(RangeExceeded) as cm:
            decode_value([1, 200], ListKind(INT8), path_prefix='data')
        self.assertEqual(cm.exception.path, 'data.1')

    def test_signaling_nan_into_float(self):
        self.assertTrue(math.isnan(decode_value(decimal.Decimal('sNaN'), float)))
        with self.assertRaises(RangeExceeded):
            decode_value(decimal.Decimal('sNaN'), INT64)

    def test_float32_member(self):
        self.assertEqual(decode_value(0.1, FLOAT32), 0.10000000149011612)


@expand
class TestTreeDecoder(unittest.TestCase):

    def test_platform_int_bits(self):
        decoder32 = TreeDecoder(platform_int_bits=32)
        decoder64 = TreeDecoder(platform_int_bits=64)
        self.assertEqual(decoder64.decode_value(2 ** 40, INT), 2 ** 40)
        with self.assertRaises(RangeExceeded):
            decoder32.decode_value(2 ** 40, INT)

    @foreach(
        param(16),
        param(128),
        param(None),
        param('native'),
    )
    def test_illegal_platform_int_bits(self, bits):
        with self.assertRaises(ValueError):
            TreeDecoder(platform_int_bits=bits)

    def test_max_depth(self):
        decoder = TreeDecoder(max_depth=3)
        decoder.decode({'address': {'city': 'x'}}, Person())
        with self.assertRaises(TreeTooDeep):
            decoder.decode({'raw': {'a': {'b': 1}}}, Person())
        with self.assertRaises(TreeTooDeep):
            decoder.decode_field({'a': [[[[1]]]]}, 'a', object)
        with self.assertRaises(DecodingError):
            decoder.decode_value([[[[1]]]], object)

    def test_from_config(self):
        decoder = TreeDecoder.from_config(
            settings={
                'tree_decoding.platform_int_bits': '32',
                'tree_decoding.max_depth': '10',
                'tree_decoding.record_datetime_format': '%d.%m.%Y',
            },
            config_dirs=())
        self.assertEqual(decoder.platform_int_bits, 32)
        self.assertEqual(decoder.max_depth, 10)
        self.assertEqual(decoder.record_datetime_format, '%d.%m.%Y')

    def test_from_config_defaults(self):
        decoder = TreeDecoder.from_config(config_dirs=())
        self.assertIn(decoder.platform_int_bits, (32, 64))
        self.assertEqual(decoder.max_depth, 0)
        self.assertEqual(decoder.record_datetime_format, '%Y-%m-%d %H:%M:%S')

    def test_value_tree_with_custom_decoder(self):
        decoder = TreeDecoder(platform_int_bits=32)
        value_tree = ValueTree({'n': 2 ** 33}, decoder=decoder)
        self.assertIs(value_tree.decoder, decoder)
        with self.assertRaises(RangeExceeded):
            value_tree.decode_field('n', INT)
        self.assertEqual(value_tree.decode_field('n', INT64), 2 ** 33)

    def test_decode_record(self):
        decoder = TreeDecoder(record_datetime_format='%d.%m.%Y')
        release = decoder.decode_record({'version': '1.0', 'published': '17.10.2026'},
                                        Release())
        self.assertEqual(release.published, datetime.datetime(2026, 10, 17))

    def test_shared_between_threads(self):
        decoder = TreeDecoder()
        tree = {'user_id': 1, 'name': 'Ada', 'tags': ['x']}
        results = []
        errors = []

        def work():
            try:
                for _ in range(100):
                    results.append(decoder.decode(tree, User()))
            except DecodingError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])
        self.assertEqual(len(results), 400)
        self.assertTrue(all(r == User(user_id=1, name='Ada', tags=['x']) for r in results))
