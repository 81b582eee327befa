# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Lookup of value tree nodes by *paths*.

A path is a sequence of segments applied one by one, starting at the
root: for an object node the segment is a key (exact, case-sensitive
match); for an array node the segment must be a non-negative base-10
integer (an `int` or a `str` consisting of ASCII digits only) being
an index.  A *dotted path* is the same expressed as a single string,
with segments separated with dots (so it cannot address keys that
contain a dot themselves).

Lookups never raise for unmatched paths; `ABSENT` is returned instead.

>>> tree = {'a': {'b': [1, 2, {'c': 'v'}]}}
>>> get(tree, 'a.b.2.c')
'v'
>>> get_field(tree, 'a', 'b', '2', 'c')
'v'
>>> get(tree, 'a.b.5')
ABSENT
>>> get(tree, '') is tree
True
"""

import re

from treedecode.value_tree import (
    ABSENT,
    NodeKind,
    node_kind,
)


PATH_SEPARATOR = '.'

_ARRAY_INDEX_REGEX = re.compile(r'\A[0-9]+\Z', re.ASCII)


def split_dotted_path(dotted_path):
    """
    >>> split_dotted_path('a.b.2')
    ['a', 'b', '2']
    >>> split_dotted_path('')
    []
    """
    if not dotted_path:
        return []
    return dotted_path.split(PATH_SEPARATOR)


def as_segments(path):
    """
    Normalize the given path (a dotted `str` or a sequence of segments).

    >>> as_segments('a.b')
    ['a', 'b']
    >>> as_segments(('a', 3))
    ['a', 3]
    """
    if isinstance(path, str):
        return split_dotted_path(path)
    return list(path)


def get(tree, dotted_path):
    """Get the node at the given dotted path (or `ABSENT`)."""
    return get_path(tree, split_dotted_path(dotted_path))


def get_field(tree, *segments):
    """Get the node at the path consisting of the given segments (or `ABSENT`)."""
    return get_path(tree, segments)


def get_path(tree, segments):
    node = tree
    for segment in segments:
        kind = node_kind(node)
        if kind is NodeKind.OBJECT:
            if not isinstance(segment, str):
                return ABSENT
            try:
                node = node[segment]
            except KeyError:
                return ABSENT
        elif kind is NodeKind.ARRAY:
            index = _parse_array_index(segment)
            if index is None or index >= len(node):
                return ABSENT
            node = node[index]
        else:
            return ABSENT
    return node


def _parse_array_index(segment):
    if isinstance(segment, bool):
        return None
    if isinstance(segment, int):
        return segment if segment >= 0 else None
    if isinstance(segment, str) and _ARRAY_INDEX_REGEX.search(segment):
        return int(segment)
    return None
