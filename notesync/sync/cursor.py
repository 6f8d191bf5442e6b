"""
Cursor encoding/decoding for pull pagination.

Cursors are opaque to clients but encode the ``(lastModified, clientId)``
of the last note on a page, which is all the seek query needs.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass

from ..models import EPOCH_MS_MAX, EPOCH_MS_MIN


@dataclass(frozen=True)
class SyncCursor:
    """
    Decoded cursor.

    Attributes:
        last_modified: lastModified (epoch ms) of the last note seen
        client_id: clientId of the last note seen, the tiebreaker
    """

    last_modified: int
    client_id: str


def encode_cursor(cursor: SyncCursor) -> str:
    """
    Encode a cursor for client consumption.

    Compact JSON, then URL-safe base64 with the padding stripped.
    """
    payload = {"lastModified": cursor.last_modified, "clientId": cursor.client_id}
    json_str = json.dumps(payload, separators=(",", ":"))
    return base64.urlsafe_b64encode(json_str.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> SyncCursor | None:
    """
    Decode a cursor from the client.

    Returns:
        SyncCursor, or None when the token is malformed in any way.
        A partially valid token never yields a cursor.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        padded = token + "=" * (-len(token) % 4)
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        data = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeError, binascii.Error):
        return None

    if not isinstance(data, dict):
        return None
    last_modified = data.get("lastModified")
    client_id = data.get("clientId")
    # bool is an int subclass; reject it explicitly
    if isinstance(last_modified, bool) or not isinstance(last_modified, int):
        return None
    if not EPOCH_MS_MIN <= last_modified <= EPOCH_MS_MAX:
        return None
    if not isinstance(client_id, str):
        return None
    return SyncCursor(last_modified=last_modified, client_id=client_id)
