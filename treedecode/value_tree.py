# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Value tree nodes: kind classification and tree-wide helpers.

A *value tree* consists of native Python objects (as produced by
`json.loads()`):

* `None` (Null),
* `bool`,
* a number: `int` (but not `bool`), `float` or `decimal.Decimal`,
* a `str`,
* a `NumericLexeme` -- a `str` subclass that carries the textual form
  of a number (e.g., produced by `json.loads()` called with
  `parse_int=NumericLexeme` and `parse_float=NumericLexeme`),
* an array: a `list` or `tuple` of nodes,
* an object: a `collections.abc.Mapping` whose keys are `str`.

>>> import json
>>> tree = json.loads('{"id": 18446744073709551615, "r": 1.10}',
...                   parse_int=NumericLexeme, parse_float=NumericLexeme)
>>> node_kind(tree)
<NodeKind.OBJECT: 'object'>
>>> node_kind(tree['r'])
<NodeKind.NUMERIC_LEXEME: 'numeric lexeme'>
>>> to_canonical_text(tree)
'{"id":18446744073709551615,"r":1.10}'
"""

import copy
import decimal
import enum
import json
from collections.abc import Mapping


class NumericLexeme(str):

    """
    The textual form of a number, kept as is (not converted to a number).

    >>> NumericLexeme('12.50')
    NumericLexeme('12.50')
    >>> NumericLexeme('12.50') == '12.50'
    True
    """

    __slots__ = ()

    def __repr__(self):
        return '{}({})'.format(type(self).__qualname__, super().__repr__())


class _AbsentType(object):

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'ABSENT'

    def __reduce__(self):
        return 'ABSENT'


#: The marker of the absence of a node (distinct from `None` which is the Null node).
ABSENT = _AbsentType()


class NodeKind(enum.Enum):
    NULL = 'null'
    BOOL = 'bool'
    NUMBER = 'number'
    STRING = 'string'
    NUMERIC_LEXEME = 'numeric lexeme'
    ARRAY = 'array'
    OBJECT = 'object'

    def __str__(self):
        return self.value


def node_kind(node):
    """
    Get the `NodeKind` of the given node (or `None` for foreign objects).

    >>> node_kind(None), node_kind(True), node_kind(42), node_kind('42')
    (<NodeKind.NULL: 'null'>, <NodeKind.BOOL: 'bool'>, <NodeKind.NUMBER: 'number'>, <NodeKind.STRING: 'string'>)
    >>> node_kind([]), node_kind({})
    (<NodeKind.ARRAY: 'array'>, <NodeKind.OBJECT: 'object'>)
    >>> node_kind({1, 2}) is None
    True
    """
    if node is None:
        return NodeKind.NULL
    if isinstance(node, bool):
        return NodeKind.BOOL
    if isinstance(node, (int, float, decimal.Decimal)):
        return NodeKind.NUMBER
    if isinstance(node, NumericLexeme):
        return NodeKind.NUMERIC_LEXEME
    if isinstance(node, str):
        return NodeKind.STRING
    if isinstance(node, (list, tuple)):
        return NodeKind.ARRAY
    if isinstance(node, Mapping):
        return NodeKind.OBJECT
    return None


def describe_node_kind(node):
    """
    Get a human-readable name of the node's kind (for error messages).

    >>> describe_node_kind([1])
    'array'
    >>> describe_node_kind(object())
    "unexpected 'object'"
    """
    kind = node_kind(node)
    if kind is None:
        return 'unexpected {!a}'.format(type(node).__qualname__)
    return kind.value


def to_canonical_text(node):
    """
    Serialize the given node to its canonical (compact JSON) text.

    Object keys are sorted, no insignificant whitespace is emitted,
    non-ASCII characters are kept as they are; numeric lexemes and
    `Decimal` numbers are emitted as bare numbers (with their digits
    kept verbatim).

    >>> to_canonical_text({'b': [1, 2.5, None], 'a': 'zażółć', 'c': True})
    '{"a":"zażółć","b":[1,2.5,null],"c":true}'
    >>> to_canonical_text(decimal.Decimal('0.10'))
    '0.10'
    >>> to_canonical_text(None)
    'null'

    Foreign objects cause TypeError:

    >>> to_canonical_text({'a': {1, 2}})       # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    TypeError: ...
    """
    chunks = []
    _emit_canonical_text(node, chunks.append)
    return ''.join(chunks)


def _emit_canonical_text(node, emit):
    kind = node_kind(node)
    if kind is NodeKind.OBJECT:
        emit('{')
        for i, key in enumerate(sorted(node)):
            if i:
                emit(',')
            if not isinstance(key, str):
                raise TypeError('object key {!a} is not a str'.format(key))
            emit(_dump_str(key))
            emit(':')
            _emit_canonical_text(node[key], emit)
        emit('}')
    elif kind is NodeKind.ARRAY:
        emit('[')
        for i, item in enumerate(node):
            if i:
                emit(',')
            _emit_canonical_text(item, emit)
        emit(']')
    elif kind is NodeKind.NUMERIC_LEXEME:
        emit(str(node))
    elif kind is NodeKind.NUMBER and isinstance(node, decimal.Decimal):
        emit(str(node))
    elif kind is NodeKind.STRING:
        emit(_dump_str(node))
    elif kind is not None:
        emit(json.dumps(node))
    else:
        raise TypeError('{!a} is not a value tree node'.format(node))


def _dump_str(s):
    return json.dumps(s, ensure_ascii=False)


def tree_depth(node):
    """
    Get the nesting depth of the given tree.

    >>> tree_depth(42)
    1
    >>> tree_depth([])
    1
    >>> tree_depth({'a': [1, {'b': None}]})
    4
    """
    max_depth = 0
    pending = [(node, 1)]
    while pending:
        current, depth = pending.pop()
        if depth > max_depth:
            max_depth = depth
        kind = node_kind(current)
        if kind is NodeKind.OBJECT:
            pending.extend((child, depth + 1) for child in current.values())
        elif kind is NodeKind.ARRAY:
            pending.extend((child, depth + 1) for child in current)
    return max_depth


def copy_tree(node):
    """
    Make a deep copy of the given tree (node types are preserved).

    >>> tree = {'a': [1, {'b': NumericLexeme('2')}]}
    >>> tree_copy = copy_tree(tree)
    >>> tree_copy == tree, tree_copy['a'] is tree['a']
    (True, False)
    >>> type(tree_copy['a'][1]['b'])
    <class 'treedecode.value_tree.NumericLexeme'>
    """
    return copy.deepcopy(node)
