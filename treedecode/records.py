# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Filling target structures from flat, string-keyed records (such as
database rows fetched as `dict`s of column names to textual values).

Unlike the value tree decoding, record filling is lenient: a column
value that cannot be converted is logged and skipped, and the remaining
columns are still processed.

>>> from treedecode.kinds import DATETIME, UINT8, OptionalKind
>>> from treedecode.structures import Member, Structure
>>> class Host(Structure):
...     host_id = Member(UINT8, column='id')
...     name = Member(str)
...     active = Member(bool)
...     seen = Member(OptionalKind(DATETIME))
...
>>> fill_from_record({'id': '7', 'name': 'srv', 'active': 'yes',
...                   'seen': '2026-10-17 12:30:00', 'unknown': 'x'}, Host())
<Host host_id=7, name='srv', active=True, seen=datetime.datetime(2026, 10, 17, 12, 30)>
"""

import datetime

from treedecode.coercion import coerce_scalar
from treedecode.common_helpers import (
    ascii_str,
    str_to_bool,
)
from treedecode.exceptions import DecodingError
from treedecode.kinds import (
    NATIVE_INT_BITS,
    BoolKind,
    DateTimeKind,
    FloatKind,
    IntKind,
    OptionalKind,
    ScalarKind,
    StringKind,
)
from treedecode.log_helpers import get_logger
from treedecode.value_tree import (
    NumericLexeme,
    to_canonical_text,
)


LOGGER = get_logger(__name__)


DEFAULT_RECORD_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'


def fill_from_record(record, target, *,
                     datetime_format=DEFAULT_RECORD_DATETIME_FORMAT,
                     platform_int_bits=NATIVE_INT_BITS):
    """
    Populate (in place) the given structure instance from a record.

    Args:
        `record`:
            A mapping of column names to values (typically `str`, or
            `None` for SQL NULL).  Each column is matched against the
            column names of the target's members (see:
            `treedecode.structures.Member`); unknown columns are ignored.
        `target`:
            A `treedecode.structures.Structure` instance.

    Kwargs:
        `datetime_format` (default: '%Y-%m-%d %H:%M:%S'):
            The `datetime.strptime()` format of datetime texts.
        `platform_int_bits` (default: the native width):
            The width of the platform-dependent integer kinds.

    Returns:
        The `target` object.

    Raises:
        `ValueError` if the record is empty.
    """
    if not record:
        raise ValueError('the record is empty')
    return _fill(record, target, datetime_format, platform_int_bits)


def structures_from_records(records, structure_cls, *,
                            datetime_format=DEFAULT_RECORD_DATETIME_FORMAT,
                            platform_int_bits=NATIVE_INT_BITS):
    """
    Make a list of new structure instances, one per record.

    (Empty records give instances with initial member values.)

    >>> from treedecode.structures import Member, Structure
    >>> class Pair(Structure):
    ...     a = Member(int)
    ...     b = Member(str)
    >>> structures_from_records([{'a': '1', 'b': 'x'}, {}, {'a': 'bad'}], Pair)
    [<Pair a=1, b='x'>, <Pair a=0, b=''>, <Pair a=0, b=''>]
    """
    return [_fill(record, structure_cls(), datetime_format, platform_int_bits)
            for record in records]


def _fill(record, target, datetime_format, platform_int_bits):
    by_column = type(target).__tree_descriptor__.by_column
    for column, raw_value in record.items():
        member = by_column.get(column)
        if member is None:
            continue
        try:
            value = convert_record_value(raw_value, member.kind,
                                         datetime_format=datetime_format,
                                         platform_int_bits=platform_int_bits)
            setattr(target, member.name, value)
        except (DecodingError, ValueError, TypeError, AttributeError) as exc:
            LOGGER.error('cannot set member %a of %s from column %a (value: %a): %s',
                         member.name, type(target).__qualname__, column, raw_value,
                         ascii_str(exc))
    return target


def convert_record_value(raw_value, kind, *,
                         datetime_format=DEFAULT_RECORD_DATETIME_FORMAT,
                         platform_int_bits=NATIVE_INT_BITS):
    """
    Convert a record's column value to the given kind.

    >>> from treedecode.kinds import INT8, FLOAT64
    >>> convert_record_value(' 42 ', INT8)
    42
    >>> convert_record_value('2.5', FLOAT64)
    2.5
    >>> convert_record_value('300', INT8)
    Traceback (most recent call last):
      ...
    treedecode.exceptions.RangeExceeded: value 300 exceeds the range of int8 [-128, 127]
    """
    if isinstance(kind, OptionalKind):
        if raw_value is None:
            return None
        kind = kind.inner
    if raw_value is None:
        raise TypeError('NULL value for a non-optional {} member'.format(
            ascii_str(getattr(kind, 'name', kind))))
    if isinstance(kind, DateTimeKind):
        if isinstance(raw_value, datetime.datetime):
            return raw_value
        if isinstance(raw_value, str):
            return datetime.datetime.strptime(raw_value.strip(), datetime_format)
    elif getattr(kind, 'text_hook', None) is not None:
        return kind.text_hook(to_canonical_text(raw_value))
    elif isinstance(raw_value, str) and isinstance(kind, ScalarKind):
        if isinstance(kind, StringKind):
            return raw_value
        if isinstance(kind, BoolKind):
            return str_to_bool(raw_value)
        if isinstance(kind, (IntKind, FloatKind)):
            return coerce_scalar(NumericLexeme(raw_value.strip()), kind, platform_int_bits)
    elif isinstance(kind, ScalarKind):
        return coerce_scalar(raw_value, kind, platform_int_bits)
    raise TypeError('cannot convert {!a} to {}'.format(
        raw_value, ascii_str(getattr(kind, 'name', kind))))
