# ==============================================================================
# CURSOR CODEC - Opaque Pagination Cursors for Table Scans
# ==============================================================================

from __future__ import annotations

from typing import Optional

from product_api.core.constants import ErrorMessages
from product_api.core.exceptions import BadRequestError
from product_api.core.security import decode_cursor, encode_cursor
from product_api.database.keyvalue.table import PARTITION_KEY, SORT_KEY, Key, make_key


def encode_last_key(key: Optional[Key]) -> Optional[str]:
    """
    Turn a scan's last-evaluated key into a signed cursor string.

    Returns None when there is no key, i.e. the scan is exhausted.
    """
    if key is None:
        return None
    return encode_cursor({"k": [key[PARTITION_KEY], key[SORT_KEY]]})


def decode_last_key(cursor: Optional[str]) -> Optional[Key]:
    """
    Recover the exclusive start key from a cursor.

    Raises:
        BadRequestError: If the cursor was not produced by encode_last_key
    """
    if not cursor:
        return None

    position = decode_cursor(cursor)
    pair = position.get("k")
    if (
        not isinstance(pair, list)
        or len(pair) != 2
        or not all(isinstance(part, str) for part in pair)
    ):
        raise BadRequestError(message=ErrorMessages.INVALID_CURSOR)
    return make_key(pair[0], pair[1])
