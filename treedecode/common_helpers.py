# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Small general-purpose helpers used across the `treedecode` package.
"""


def ascii_str(obj):
    r"""
    Safely convert the given object to an ASCII-only `str`.

    Any non-ASCII characters are escaped using the Python literal
    notation (``\x...``, ``\u...``, ``\U...``); no encoding/decoding
    exceptions are raised.

    >>> ascii_str('')
    ''
    >>> ascii_str('user_id')
    'user_id'
    >>> ascii_str('zażółć')
    'za\\u017c\\xf3\\u0142\\u0107'
    >>> ascii_str(b'za\xc5\xbc\xc3\xb3\xc5\x82\xc4\x87')
    'za\\u017c\\xf3\\u0142\\u0107'
    >>> ascii_str(42)
    '42'
    >>> ascii_str(ValueError('błąd'))
    'b\\u0142\\u0105d'
    """
    if isinstance(obj, (bytes, bytearray)):
        obj = bytes(obj).decode('utf-8', 'backslashreplace')
    elif not isinstance(obj, str):
        try:
            obj = str(obj)
        except ValueError:
            obj = repr(obj)
    return obj.encode('ascii', 'backslashreplace').decode('ascii')


_TRUE_STRINGS = frozenset({'1', 'y', 'yes', 't', 'true', 'on'})
_FALSE_STRINGS = frozenset({'0', 'n', 'no', 'f', 'false', 'off'})

def str_to_bool(s):
    """
    Return True or False, given one of the known strings (see below).

    >>> str_to_bool('1')
    True
    >>> str_to_bool('Yes')  # note: checks are case-insensitive
    True
    >>> str_to_bool('on')
    True
    >>> str_to_bool('0')
    False
    >>> str_to_bool('nO')
    False
    >>> str_to_bool('off')
    False

    Other string values cause ValueError:

    >>> str_to_bool('unknown')        # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    ValueError: ...

    Non-str values cause TypeError:

    >>> str_to_bool(b'yes')           # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    TypeError: ...
    """
    if not isinstance(s, str):
        raise TypeError('{!a} is not a str'.format(s))
    lowercased = s.strip().lower()
    if lowercased in _TRUE_STRINGS:
        return True
    if lowercased in _FALSE_STRINGS:
        return False
    raise ValueError('{!a} is not a valid boolean flag '
                     '(should be one of: {})'.format(
                         s, ', '.join(sorted(_TRUE_STRINGS | _FALSE_STRINGS))))


def attr_repr(*attr_names):
    """
    Make a __repr__() implementation based on given attribute names.

    >>> class A(object):
    ...    __repr__ = attr_repr('x', 'y')
    ...    x = 1
    ...    def __init__(self):
    ...        self.y = 'qwerty'
    >>> A()
    <A x=1, y='qwerty'>
    """
    format_repr = ('<{0.__class__.__qualname__} ' +
                   ', '.join('%s={0.%s!r}' % (name, name)
                             for name in attr_names) +
                   '>').format
    format_repr_fallback = object.__repr__

    def __repr__(self):
        # noinspection PyBroadException
        try:
            return format_repr(self)
        except Exception:
            return format_repr_fallback(self)

    return __repr__
