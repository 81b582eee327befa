# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
The structural decoder: populating typed targets from value trees.

>>> from treedecode.kinds import INT64, ListKind
>>> from treedecode.structures import Member, Structure
>>> class User(Structure):
...     user_id = Member(INT64, required=True)
...     name = Member(str, required=True)
...     tags = Member(ListKind(str))
...
>>> user = decode({'user_id': 9223372036854775807, 'name': 'Ada', 'tags': ['x', 'y']},
...               User())
>>> user
<User user_id=9223372036854775807, name='Ada', tags=['x', 'y']>
>>> decode({'user_id': 9223372036854775808, 'name': 'Ada'}, User())
Traceback (most recent call last):
  ...
treedecode.exceptions.RangeExceeded: [user_id] value 9223372036854775808 exceeds the range of int64 [-9223372036854775808, 9223372036854775807]
>>> decode({'name': 'Ada'}, User())
Traceback (most recent call last):
  ...
treedecode.exceptions.MissingRequiredField: [user_id] required key 'user_id' is missing
>>> decode_field({'a': {'b': [1, 2, {'c': '7'}]}}, 'a.b.2.c', str)
'7'
"""

from treedecode.coercion import coerce_scalar
from treedecode.common_helpers import (
    ascii_str,
    attr_repr,
)
from treedecode.config import Config
from treedecode.exceptions import (
    ArrayLengthExceeded,
    DecodingError,
    MissingRequiredField,
    NotSettable,
    TreeTooDeep,
    TypeMismatch,
    UnsupportedTargetShape,
)
from treedecode.kinds import (
    NATIVE_INT_BITS,
    AnyKind,
    ArrayKind,
    ListKind,
    MapKind,
    OptionalKind,
    ScalarKind,
    StringKind,
    StructKind,
    TargetKind,
    as_kind,
)
from treedecode.paths import (
    as_segments,
    get,
    get_field,
    get_path,
)
from treedecode.records import (
    DEFAULT_RECORD_DATETIME_FORMAT,
    fill_from_record,
    structures_from_records,
)
from treedecode.structures import Structure
from treedecode.value_tree import (
    ABSENT,
    NodeKind,
    copy_tree,
    describe_node_kind,
    node_kind,
    to_canonical_text,
    tree_depth,
)


def convert_platform_int_bits(s):
    """
    >>> convert_platform_int_bits('native') == NATIVE_INT_BITS
    True
    >>> convert_platform_int_bits(' 32 ')
    32
    >>> convert_platform_int_bits('16')
    Traceback (most recent call last):
      ...
    ValueError: should be 'native', '32' or '64' (got: '16')
    """
    s = s.strip()
    if s == 'native':
        return NATIVE_INT_BITS
    if s in ('32', '64'):
        return int(s)
    raise ValueError("should be 'native', '32' or '64' (got: {!a})".format(s))


class TreeDecoder(object):

    """
    The decoder of value trees into target structures.

    Kwargs (all optional):
        `platform_int_bits` (default: the native width, 32 or 64):
            The width of the platform-dependent integer kinds
            (`treedecode.kinds.INT` and `treedecode.kinds.UINT`).
        `max_depth` (default: 0):
            If positive, trees nested deeper than this value are
            rejected (with `TreeTooDeep`) before decoding.
        `record_datetime_format` (default: '%Y-%m-%d %H:%M:%S'):
            The format of datetime texts in flat records (see
            `decode_record()`).

    A decoder holds no mutable state, so one instance can be shared
    by any number of threads (provided that each of them decodes into
    its own targets).
    """

    config_spec = '''
        [tree_decoding]
        platform_int_bits = native :: platform_int_bits
        max_depth = 0 :: int
        record_datetime_format = %Y-%m-%d %H:%M:%S
    '''

    def __init__(self, *,
                 platform_int_bits=NATIVE_INT_BITS,
                 max_depth=0,
                 record_datetime_format=DEFAULT_RECORD_DATETIME_FORMAT):
        if platform_int_bits not in (32, 64):
            raise ValueError('platform_int_bits should be 32 or 64 '
                             '(got: {!a})'.format(platform_int_bits))
        self.platform_int_bits = platform_int_bits
        self.max_depth = max_depth
        self.record_datetime_format = record_datetime_format

    @classmethod
    def from_config(cls, settings=None, config_dirs=None):
        """
        Make a decoder configured with the `[tree_decoding]` config section.

        >>> decoder = TreeDecoder.from_config(
        ...     settings={'tree_decoding.platform_int_bits': '32'},
        ...     config_dirs=())
        >>> decoder
        <TreeDecoder platform_int_bits=32, max_depth=0, record_datetime_format='%Y-%m-%d %H:%M:%S'>
        """
        section = Config.section(
            cls.config_spec,
            settings=settings,
            custom_converters={'platform_int_bits': convert_platform_int_bits},
            config_dirs=config_dirs)
        return cls(platform_int_bits=section['platform_int_bits'],
                   max_depth=section['max_depth'],
                   record_datetime_format=section['record_datetime_format'])

    __repr__ = attr_repr('platform_int_bits', 'max_depth', 'record_datetime_format')

    #
    # Public interface

    def decode(self, tree, target, path_prefix=()):
        """
        Populate (in place) the given structure instance from the tree.

        Args:
            `tree`: the root node of the value tree (should be an object).
            `target`: a `treedecode.structures.Structure` instance.
            `path_prefix` (default: empty):
                A dotted path (`str`) or a sequence of path segments,
                to be prepended to paths of errors.

        Returns:
            The `target` object.

        Raises:
            `treedecode.exceptions.DecodingError` (its subclass), on the
            first failure (note: any members already populated keep
            their new values).
        """
        if isinstance(target, type):
            raise NotSettable(
                'cannot decode into a class ({}); an instance is needed'.format(
                    ascii_str(target.__qualname__)),
                target_kind=ascii_str(target.__qualname__))
        if not isinstance(target, Structure):
            raise UnsupportedTargetShape(
                'cannot decode into {!a} (not a structure instance)'.format(
                    type(target).__qualname__),
                target_kind=type(target).__qualname__)
        self._check_depth(tree)
        with DecodingError.sublocation(as_segments(path_prefix)):
            return self._decode_structure(tree, type(target).__tree_kind__, target)

    def decode_field(self, tree, field, kind, current=None):
        """
        Look up a node by its path and decode it.

        Args:
            `tree`: the root node of the value tree.
            `field`: a dotted path (`str`) or a sequence of path segments.
            `kind`:
                The target kind (or a declaration accepted by
                `treedecode.kinds.as_kind()`); alternatively, a
                `treedecode.structures.Structure` instance (to be
                populated in place).
            `current` (default: None):
                The current value of the target slot (relevant to
                kinds populated in place: structures, arrays, maps).

        Returns:
            The decoded value.

        Raises:
            `treedecode.exceptions.MissingRequiredField` if there is
            no node at the given path; other `DecodingError` subclasses
            if the node cannot be decoded.
        """
        segments = as_segments(field)
        if isinstance(kind, Structure):
            kind, current = type(kind).__tree_kind__, kind
        node = get_path(tree, segments)
        if node is ABSENT:
            raise MissingRequiredField(
                "field {!a} doesn't exist".format('.'.join(map(str, segments))),
                target_kind=_kind_name(kind))
        self._check_depth(node)
        with DecodingError.sublocation(segments):
            return self._decode_value(node, kind, current)

    def decode_value(self, node, kind, current=None, path_prefix=()):
        """
        Decode the given node (not looked up; see `decode_field()`).

        >>> TreeDecoder().decode_value([1, 2], ListKind(int))
        [1, 2]
        """
        self._check_depth(node)
        with DecodingError.sublocation(as_segments(path_prefix)):
            return self._decode_value(node, kind, current)

    def decode_record(self, record, target):
        """
        Populate (in place) the given structure instance from a flat record.

        See: `treedecode.records.fill_from_record()`.
        """
        return fill_from_record(record, target,
                                datetime_format=self.record_datetime_format,
                                platform_int_bits=self.platform_int_bits)

    def structures_from_records(self, records, structure_cls):
        """
        Make a list of structure instances from flat records.

        See: `treedecode.records.structures_from_records()`.
        """
        return structures_from_records(records, structure_cls,
                                       datetime_format=self.record_datetime_format,
                                       platform_int_bits=self.platform_int_bits)

    #
    # Internal helpers

    def _check_depth(self, tree):
        if self.max_depth > 0:
            depth = tree_depth(tree)
            if depth > self.max_depth:
                raise TreeTooDeep('the tree is too deep ({} levels; the limit '
                                  'is {})'.format(depth, self.max_depth))

    def _decode_value(self, node, kind, current):
        kind = as_kind(kind)
        if isinstance(kind, OptionalKind):
            return self._decode_optional(node, kind, current)
        if not isinstance(kind, TargetKind):
            raise UnsupportedTargetShape(
                'unsupported target kind: {}'.format(ascii_str(_kind_name(kind))),
                target_kind=_kind_name(kind),
                source_kind=describe_node_kind(node))
        if kind.text_hook is not None:
            return self._decode_with_text_hook(node, kind)
        if isinstance(kind, AnyKind):
            return copy_tree(node)
        if node is None:
            raise TypeMismatch(
                'cannot assign null to a non-optional {}'.format(ascii_str(kind.name)),
                target_kind=kind.name,
                source_kind=describe_node_kind(node))
        if isinstance(kind, ScalarKind):
            return coerce_scalar(node, kind, self.platform_int_bits)
        if isinstance(kind, StructKind):
            return self._decode_structure(node, kind, current)
        if isinstance(kind, ListKind):
            return self._decode_list(node, kind)
        if isinstance(kind, ArrayKind):
            return self._decode_array(node, kind, current)
        if isinstance(kind, MapKind):
            return self._decode_map(node, kind, current)
        raise UnsupportedTargetShape(
            'unsupported target kind: {}'.format(ascii_str(kind.name)),
            target_kind=kind.name,
            source_kind=describe_node_kind(node))

    def _decode_optional(self, node, kind, current):
        if node is None:
            return None
        if current is None:
            inner = kind.inner
            current = inner.zero_value() if isinstance(inner, TargetKind) else None
        return self._decode_value(node, kind.inner, current)

    def _decode_with_text_hook(self, node, kind):
        try:
            text = to_canonical_text(node)
        except TypeError as exc:
            raise self._mismatch(node, kind, ascii_str(exc)) from exc
        try:
            return kind.text_hook(text)
        except DecodingError:
            raise
        except (ValueError, TypeError) as exc:
            raise self._mismatch(
                node, kind, 'text {!a} rejected ({})'.format(
                    text, ascii_str(exc))) from exc

    def _decode_structure(self, node, kind, target):
        if node_kind(node) is not NodeKind.OBJECT:
            raise self._mismatch(node, kind, 'expected an object, got {}'.format(
                describe_node_kind(node)))
        if not isinstance(target, kind.structure_cls):
            target = kind.zero_value()
        for member in kind.descriptor.members:
            key = member.source_key
            try:
                subnode = node[key]
            except KeyError:
                if member.required:
                    with DecodingError.sublocation(key):
                        raise MissingRequiredField(
                            'required key {!a} is missing'.format(key),
                            target_kind=_kind_name(member.kind))
                continue
            with DecodingError.sublocation(key):
                current = getattr(target, member.name, None)
                value = self._decode_value(subnode, member.kind, current)
                self._assign(target, member.name, value)
        return target

    def _decode_list(self, node, kind):
        if node_kind(node) is not NodeKind.ARRAY:
            raise self._mismatch(node, kind, 'expected an array, got {}'.format(
                describe_node_kind(node)))
        if isinstance(kind.element, AnyKind):
            return copy_tree(list(node))
        result = []
        for index, item in enumerate(node):
            with DecodingError.sublocation(index):
                result.append(self._decode_value(item, kind.element, None))
        return result

    def _decode_array(self, node, kind, current):
        if node_kind(node) is not NodeKind.ARRAY:
            raise self._mismatch(node, kind, 'expected an array, got {}'.format(
                describe_node_kind(node)))
        if len(node) > kind.length:
            raise ArrayLengthExceeded(
                'cannot store {} items in a fixed-length array of '
                'length {}'.format(len(node), kind.length),
                target_kind=kind.name,
                source_kind=describe_node_kind(node))
        if isinstance(current, list) and len(current) == kind.length:
            storage = current
        else:
            storage = kind.zero_value()
        for index, item in enumerate(node):
            with DecodingError.sublocation(index):
                storage[index] = self._decode_value(item, kind.element, None)
        return storage

    def _decode_map(self, node, kind, current):
        if node_kind(node) is not NodeKind.OBJECT:
            raise self._mismatch(node, kind, 'expected an object, got {}'.format(
                describe_node_kind(node)))
        if not isinstance(kind.key, StringKind):
            raise UnsupportedTargetShape(
                'unsupported map key kind: {} (only string keys are '
                'supported)'.format(ascii_str(_kind_name(kind.key))),
                target_kind=kind.name,
                source_kind=describe_node_kind(node))
        if isinstance(kind.element, AnyKind):
            return copy_tree(dict(node))
        storage = current if isinstance(current, dict) else kind.zero_value()
        for key, item in node.items():
            with DecodingError.sublocation(key):
                storage[key] = self._decode_value(item, kind.element, None)
        return storage

    @staticmethod
    def _assign(target, name, value):
        try:
            setattr(target, name, value)
        except AttributeError as exc:
            raise NotSettable('cannot set member {!a} of {}: {}'.format(
                name, type(target).__qualname__, ascii_str(exc))) from exc

    @staticmethod
    def _mismatch(node, kind, detail):
        return TypeMismatch(
            'cannot decode into {}: {}'.format(ascii_str(_kind_name(kind)), detail),
            target_kind=_kind_name(kind),
            source_kind=describe_node_kind(node))


def _kind_name(kind):
    if isinstance(kind, TargetKind):
        return kind.name
    return repr(kind)


#
# Module-level shortcuts (using a decoder with the default settings)

_default_decoder = TreeDecoder()


def decode(tree, target, path_prefix=()):
    """See: `TreeDecoder.decode()`."""
    return _default_decoder.decode(tree, target, path_prefix)


def decode_field(tree, field, kind, current=None):
    """See: `TreeDecoder.decode_field()`."""
    return _default_decoder.decode_field(tree, field, kind, current)


def decode_value(node, kind, current=None, path_prefix=()):
    """See: `TreeDecoder.decode_value()`."""
    return _default_decoder.decode_value(node, kind, current, path_prefix)


class ValueTree(object):

    """
    A value tree root, wrapped together with a decoder.

    >>> tree = ValueTree({'a': {'b': [1, 2, {'c': 'v'}]}})
    >>> tree.get('a.b.2.c')
    'v'
    >>> tree.get_field('a', 'b', '2', 'c')
    'v'
    >>> tree.get('a.b.5')
    ABSENT
    >>> tree.decode_field('a.b', ListKind(object))
    [1, 2, {'c': 'v'}]
    """

    def __init__(self, root, decoder=None):
        self._root = root
        self._decoder = decoder if decoder is not None else _default_decoder

    __repr__ = attr_repr('root')

    @property
    def root(self):
        return self._root

    @property
    def decoder(self):
        return self._decoder

    def get(self, dotted_path):
        return get(self._root, dotted_path)

    def get_field(self, *segments):
        return get_field(self._root, *segments)

    def decode(self, target, path_prefix=()):
        return self._decoder.decode(self._root, target, path_prefix)

    def decode_field(self, field, kind, current=None):
        return self._decoder.decode_field(self._root, field, kind, current)
