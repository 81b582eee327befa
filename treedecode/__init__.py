# Copyright (c) 2025-2026 NASK. All rights reserved.

"""
*treedecode* -- a library for decoding untyped value trees (such as
the result of `json.loads()`) into typed target structures.
"""

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
from treedecode.paths import (
    get,
    get_field,
)
from treedecode.structures import (
    Member,
    Structure,
)
from treedecode.value_tree import (
    ABSENT,
    NumericLexeme,
)
