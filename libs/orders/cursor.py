"""
Opaque pagination cursors.

A cursor is the store's last-evaluated key serialized to JSON and encoded as
URL-safe base64. Encoding hides store internals from callers but is not a
confidentiality boundary.

Decoding is bound to an index: the key must carry exactly the primary key
plus the attributes named by the index id, so a cursor minted for one index
cannot be replayed against another.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from libs.common.exceptions import InvalidCursorError
from libs.orders.index_catalog import INDEX_ID_SEPARATOR, INDEX_ID_SUFFIX
from libs.orders.models import TableKey

logger = logging.getLogger(__name__)


def expected_cursor_fields(index_id: str) -> frozenset[str]:
    """
    Return the key fields a cursor for ``index_id`` must carry.

    These are the primary key plus the index's partition and sort attributes.

    Examples:
        >>> sorted(expected_cursor_fields("offerer_orderStatus-createdAt-all"))
        ['createdAt', 'offerer_orderStatus', 'orderHash']
    """
    fields = {TableKey.ORDER_HASH.value}
    fields.update(
        part for part in index_id.split(INDEX_ID_SEPARATOR) if part and part != INDEX_ID_SUFFIX
    )
    return frozenset(fields)


def encode_cursor(last_evaluated_key: dict[str, Any]) -> str:
    """Encode a continuation key as an opaque cursor string."""
    payload = json.dumps(last_evaluated_key, sort_keys=True, separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str, index_id: str) -> dict[str, Any]:
    """
    Decode ``cursor`` and check it belongs to ``index_id``.

    Raises:
        InvalidCursorError: The cursor is not valid base64/JSON, is not an
            object, or its fields differ from those expected for the index
    """
    try:
        decoded = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        last_evaluated_key = json.loads(decoded)
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.error("Error parsing json cursor.", extra={"context": {"cursor": cursor}})
        raise InvalidCursorError("Invalid cursor.") from e

    if not isinstance(last_evaluated_key, dict):
        logger.error("Cursor is not a key object.", extra={"context": {"cursor": cursor}})
        raise InvalidCursorError("Invalid cursor.")

    if set(last_evaluated_key) != expected_cursor_fields(index_id):
        logger.error(
            "Error cursor key not in valid key list.",
            extra={"context": {"cursor": cursor, "index": index_id}},
        )
        raise InvalidCursorError("Invalid cursor.")

    return last_evaluated_key
