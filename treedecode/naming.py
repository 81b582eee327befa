# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
Derivation of value tree keys from structure member names.
"""

import re


_SEPARATORS = frozenset(' -_')

# Matched against the *shape* of an identifier (see: `_shape_of()`), in
# which every uppercase letter is `A`, every other letter is `a`, every
# digit is `0`, separators are kept and anything else is `.`.
#
# A word is: an acronym (a run of capitals) not followed by a lowercase
# letter, or an optional single capital followed by lowercase letters or
# digits, or any other single non-separator character.
_WORD_REGEX = re.compile(r'''
    A+(?!a)0*
    |
    A?[a0]+
    |
    [^ \-_]
''', re.VERBOSE | re.ASCII)


def _shape_of(identifier):
    """
    >>> _shape_of('straßeName-2$')
    'aaaaaaAaaa-0.'
    """
    return ''.join(map(_char_shape, identifier))


def _char_shape(ch):
    if ch in _SEPARATORS:
        return ch
    if ch.isupper():
        return 'A'
    if ch.isdigit():
        return '0'
    if ch.isalpha():
        return 'a'
    return '.'


def derive_key(identifier):
    """
    Derive the source key from the given member identifier.

    A lower-to-upper case transition starts a new word; a run of two or
    more capitals is treated as an acronym, except that its last letter
    starts a new word if a lowercase letter follows it; spaces, hyphens
    and underscores are separators.  Words are joined with `_` and the
    result is lowercased.

    >>> derive_key('HTTPServer')
    'http_server'
    >>> derive_key('UserID')
    'user_id'
    >>> derive_key('userName')
    'user_name'
    >>> derive_key('IDs')
    'i_ds'
    >>> derive_key('ABC')
    'abc'
    >>> derive_key('user_id')
    'user_id'
    >>> derive_key('Foo__Bar')
    'foo__bar'
    >>> derive_key('first-name Value')
    'first_name_value'
    >>> derive_key('ipV4Address')
    'ip_v4_address'
    >>> derive_key('')
    ''

    Letter case is recognized for any Unicode letter:

    >>> derive_key('straßeName')
    'straße_name'
    >>> derive_key('Ärger')
    'ärger'
    """
    chunks = []
    prev_end = 0
    for match in _WORD_REGEX.finditer(_shape_of(identifier)):
        start, end = match.span()
        separators = identifier[prev_end:start]
        if separators:
            chunks.append('_' * len(separators))
        elif chunks and not _is_separator_chunk(chunks[-1]):
            chunks.append('_')
        chunks.append(identifier[start:end].lower())
        prev_end = end
    trailing = identifier[prev_end:]
    if trailing:
        chunks.append('_' * len(trailing))
    return ''.join(chunks)


def _is_separator_chunk(chunk):
    return not chunk.strip('_')


def parse_member_tag(tag):
    """
    Parse a member tag: the key override optionally followed by options.

    Returns a pair: the key override (`None` if the tag has no key) and
    the *required* flag.

    >>> parse_member_tag('user_id')
    ('user_id', False)
    >>> parse_member_tag('user_id,required')
    ('user_id', True)
    >>> parse_member_tag(',required')
    (None, True)
    >>> parse_member_tag('')
    (None, False)
    >>> parse_member_tag('x,optional')
    Traceback (most recent call last):
      ...
    ValueError: unknown member tag option 'optional' (in tag 'x,optional')
    """
    key, *options = tag.split(',')
    required = False
    for opt in options:
        opt = opt.strip()
        if opt == 'required':
            required = True
        elif opt:
            raise ValueError('unknown member tag option {!a} (in tag {!a})'.format(opt, tag))
    return (key or None), required
