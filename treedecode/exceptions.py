# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Exception classes raised by the `treedecode` decoding machinery.

All of them derive from `DecodingError` (which is a `ValueError`), so
that callers can catch any decoding failure with a single `except`
clause, or pick the specific condition they care about:

* `MissingRequiredField` -- a required key is absent from the tree;
* `TypeMismatch` -- the node kind is incompatible with the target kind;
* `RangeExceeded` -- a numeric value does not fit the target width;
* `InvalidNumericLexeme` -- a numeric lexeme violates the target's
  number grammar;
* `UnsupportedTargetShape` -- the target kind is not something the
  decoder knows how to populate;
* `NotSettable` -- the target storage cannot be written;
* `ArrayLengthExceeded` -- a fixed-length target cannot hold all
  source elements;
* `TreeTooDeep` -- the tree is nested deeper than the configured limit.
"""

import collections
import contextlib

from treedecode.common_helpers import (
    ascii_str,
    attr_repr,
)


class DecodingError(ValueError):

    """
    The base class of the decoding errors.

    It is expected that a user-friendly error message will be passed
    as the sole positional argument to the constructor.  Optional
    keyword arguments, `target_kind` and `source_kind`, name (as `str`)
    the kinds involved in the failure.

    The `sublocation()` class method returns a (single-use) context
    manager which should be used when entering decoding of some nested
    stuff whose relative location (within its parent) is a key (`str`)
    or an index (`int`).  Any `DecodingError` raised within one or more
    `with` blocks of such context managers gets its *location path*
    automatically prepended with these items, so that its `str()`
    representation points to the problematic node of the whole tree:

    >>> def to_int_list(input_dict):
    ...     result = []
    ...     for key, sublist in sorted(input_dict.items()):
    ...         with DecodingError.sublocation(key):
    ...             for index, value in enumerate(sublist):
    ...                 with DecodingError.sublocation(index):
    ...                     if not isinstance(value, int):
    ...                         raise DecodingError('{!r} is not an int'.format(value))
    ...                     result.append(value)
    ...     return result
    ...
    >>> to_int_list({'bar': [0, 1, 2], 'foo': [15, 101]})
    [0, 1, 2, 15, 101]
    >>> try:
    ...     to_int_list({'bar': [0, 1, 2], 'foo': [15, 'spam']})
    ... except DecodingError as exc:
    ...     print(exc)
    ...     print(exc.path)
    ...     print(exc.location_path)
    [foo.1] 'spam' is not an int
    foo.1
    ('foo', 1)

    A sequence of items can be given to `sublocation()` as well (it is
    equivalent to nested `with` blocks, one per item):

    >>> try:
    ...     with DecodingError.sublocation(['a', 'b']):
    ...         with DecodingError.sublocation(2):
    ...             raise DecodingError('Aha!')
    ... except DecodingError as exc:
    ...     print(exc)
    [a.b.2] Aha!
    """

    def __init__(self, *args, target_kind=None, source_kind=None):
        super().__init__(*args)
        self.target_kind = target_kind
        self.source_kind = source_kind
        self._location_path = collections.deque()

    @classmethod
    @contextlib.contextmanager
    def sublocation(cls, /, name_or_index_or_seq):
        path_items = cls._get_ready_path_items(name_or_index_or_seq)
        try:
            yield
        except DecodingError as exc:
            exc._location_path.extendleft(reversed(path_items))
            raise

    @classmethod
    def _get_ready_path_items(cls, name_or_index_or_seq):
        if isinstance(name_or_index_or_seq, (str, int)):
            path_items = [name_or_index_or_seq]
        else:
            path_items = list(name_or_index_or_seq)
        for name_or_index in path_items:
            cls._verify_is_name_or_index(name_or_index)
        return path_items

    @staticmethod
    def _verify_is_name_or_index(name_or_index):
        if not isinstance(name_or_index, (str, int)) or isinstance(name_or_index, bool):
            raise TypeError('{!a} is neither a name (`str`) nor an '
                            'index (`int`)'.format(name_or_index))

    @property
    def location_path(self):
        return tuple(self._location_path)

    @property
    def path(self):
        return '.'.join(map(ascii_str, self._location_path))

    __repr__ = attr_repr('args', 'location_path')

    def __str__(self):
        return self._get_location_prefix() + super().__str__()

    def _get_location_prefix(self):
        if self._location_path:
            return '[{}] '.format(self.path)
        return ''


class MissingRequiredField(DecodingError):
    """Raised when a required key (or a looked-up field) is absent."""


class TypeMismatch(DecodingError):
    """Raised when a node's kind is incompatible with the target kind."""


class RangeExceeded(DecodingError):

    """
    Raised when a numeric value does not fit the target numeric kind.

    The `width` attribute is the name of the violated kind (e.g.,
    `'int8'`, `'uint64'`, `'float32'`).
    """

    def __init__(self, *args, width=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.width = width


class InvalidNumericLexeme(DecodingError):
    """Raised when a numeric lexeme cannot be parsed as the target kind."""


class UnsupportedTargetShape(DecodingError):
    """Raised when the target kind cannot be populated by the decoder."""


class NotSettable(DecodingError):
    """Raised when the target storage is not writable."""


class ArrayLengthExceeded(DecodingError):
    """Raised when a fixed-length target is shorter than the source array."""


class TreeTooDeep(DecodingError):
    """Raised when the tree is nested deeper than the configured limit."""
