# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Declarative target structures.

A target structure is a subclass of `Structure` whose class attributes
are `Member` instances:

>>> from treedecode.kinds import INT64, ListKind
>>> class User(Structure):
...     user_id = Member(INT64, required=True)
...     display_name = Member(str, key='name')
...     tags = Member(ListKind(str))
...     homePage = Member(str)
...
>>> [(m.name, m.source_key, m.required) for m in User.__tree_descriptor__.members]
[('user_id', 'user_id', True), ('display_name', 'name', False), ('tags', 'tags', False), ('homePage', 'home_page', False)]
>>> User(user_id=42)
<User user_id=42, display_name='', tags=[], homePage=''>

The *descriptor* of a structure class (`__tree_descriptor__`) is built
once, when the class is created, and never changes afterwards.
"""

import collections
import copy
import types

from treedecode.common_helpers import ascii_str
from treedecode.kinds import (
    StructKind,
    TargetKind,
    as_kind,
)
from treedecode.log_helpers import get_logger
from treedecode.naming import (
    derive_key,
    parse_member_tag,
)


LOGGER = get_logger(__name__)


_NO_DEFAULT = object()


class Member(object):

    """
    A declaration of a structure member.

    Args:
        `kind`:
            The target kind (a `treedecode.kinds.TargetKind` instance,
            or a declaration accepted by `treedecode.kinds.as_kind()`,
            e.g., `int`, `str` or a `Structure` subclass).

    Kwargs (all optional):
        `key`:
            The source key (if not given, it is derived from the
            member's name with `treedecode.naming.derive_key()`).
        `required` (default: False):
            Whether the key must be present in the source object.
        `default`:
            The initial value of the member (copied for each new
            structure instance); if not given, the kind's zero value.
        `column`:
            The column name used by `treedecode.records` (if not
            given, the source key).
        `tag`:
            An alternative way to specify `key` and `required`:
            `'<key>'`, `'<key>,required'` or `',required'` (cannot be
            combined with `key` or `required`).
    """

    def __init__(self, kind, *, key=None, required=False, default=_NO_DEFAULT,
                 column=None, tag=None):
        if tag is not None:
            if key is not None or required:
                raise TypeError('`tag` cannot be combined with `key` or `required`')
            key, required = parse_member_tag(tag)
        self.kind = as_kind(kind)
        self.key = key
        self.required = required
        self.default = default
        self.column = column
        self.name = None

    def __set_name__(self, owner, name):
        if self.name is None:
            self.name = name

    def __repr__(self):
        return '<{} {!a} kind={!r} key={!a} required={!r}>'.format(
            type(self).__qualname__, self.name, self.kind, self.key, self.required)

    def make_initial_value(self):
        if self.default is not _NO_DEFAULT:
            return copy.deepcopy(self.default)
        if isinstance(self.kind, TargetKind):
            return self.kind.zero_value()
        return None

    def describe(self, name):
        key_overridden = self.key is not None
        source_key = self.key if key_overridden else derive_key(name)
        return MemberDescriptor(
            name=name,
            kind=self.kind,
            source_key=source_key,
            required=self.required,
            key_overridden=key_overridden,
            column_name=(self.column if self.column is not None else source_key),
            member=self)


MemberDescriptor = collections.namedtuple('MemberDescriptor', [
    'name',
    'kind',
    'source_key',
    'required',
    'key_overridden',
    'column_name',
    'member',
])


class StructureDescriptor(object):

    """
    The (immutable) metadata of a structure class.

    Attributes:
        `structure_cls`: the structure class.
        `members`: a tuple of `MemberDescriptor` instances (members
            inherited from base classes go first, then those declared
            in the class itself, in the declaration order).
        `by_name`, `by_column`: read-only mappings of member names
            and column names to `MemberDescriptor` instances.
    """

    def __init__(self, structure_cls, members):
        self.structure_cls = structure_cls
        self.members = tuple(members)
        self.by_name = types.MappingProxyType({m.name: m for m in self.members})
        self.by_column = types.MappingProxyType({m.column_name: m for m in self.members})

    @classmethod
    def from_class(cls, structure_cls):
        members = {}
        for klass in reversed(structure_cls.__mro__):
            for name, obj in vars(klass).items():
                if isinstance(obj, Member):
                    members[name] = obj
                elif name in members:
                    # (a subclass can cancel an inherited member)
                    del members[name]
        return cls(structure_cls, [member.describe(name)
                                   for name, member in members.items()])

    def __repr__(self):
        return '<{} of {}: {}>'.format(
            type(self).__qualname__,
            self.structure_cls.__qualname__,
            ', '.join('{}<-{!a}'.format(m.name, m.source_key) for m in self.members))


class Structure(object):

    """
    The base class of target structures.

    Instances get initial values of all members on construction (the
    member's `default`, or its kind's zero value), or the values passed
    as keyword arguments.  They compare equal if they are of the same
    class and their member values are equal.

    A subclass created with the `frozen=True` class keyword argument
    does not allow to assign its members after the instance creation
    (so decoding into its instances fails with `NotSettable`):

    >>> class Point(Structure, frozen=True):
    ...     x = Member(int)
    ...     y = Member(int)
    ...
    >>> p = Point(x=1)
    >>> p
    <Point x=1, y=0>
    >>> p.y = 5
    Traceback (most recent call last):
      ...
    AttributeError: cannot assign 'y' of a frozen Point
    """

    __tree_frozen__ = False

    def __init_subclass__(cls, /, *, frozen=None, **kwargs):
        super().__init_subclass__(**kwargs)
        if frozen is not None:
            cls.__tree_frozen__ = frozen
        cls.__tree_descriptor__ = StructureDescriptor.from_class(cls)
        cls.__tree_kind__ = StructKind(cls)
        LOGGER.debug('built %r', cls.__tree_descriptor__)

    def __init__(self, **kwargs):
        descriptor = self.__tree_descriptor__
        illegal_names = kwargs.keys() - descriptor.by_name.keys()
        if illegal_names:
            raise TypeError('{}() got unexpected keyword arguments: {}'.format(
                type(self).__qualname__,
                ', '.join(sorted(map(ascii_str, illegal_names)))))
        for member in descriptor.members:
            if member.name in kwargs:
                value = kwargs[member.name]
            else:
                value = member.member.make_initial_value()
            object.__setattr__(self, member.name, value)

    def __setattr__(self, name, value):
        if self.__tree_frozen__:
            raise AttributeError('cannot assign {!a} of a frozen {}'.format(
                name, type(self).__qualname__))
        super().__setattr__(name, value)

    def __delattr__(self, name):
        if self.__tree_frozen__:
            raise AttributeError('cannot delete {!a} of a frozen {}'.format(
                name, type(self).__qualname__))
        super().__delattr__(name)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.member_values() == other.member_values()

    __hash__ = None

    def __repr__(self):
        return '<{} {}>'.format(
            type(self).__qualname__,
            ', '.join('{}={!r}'.format(name, value)
                      for name, value in self.member_values().items()))

    def member_values(self):
        """Get a dict that maps member names to their current values."""
        return {member.name: getattr(self, member.name, None)
                for member in self.__tree_descriptor__.members}


Structure.__tree_descriptor__ = StructureDescriptor(Structure, ())
Structure.__tree_kind__ = StructKind(Structure)
