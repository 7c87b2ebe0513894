"""
Opaque pagination cursor codec.

A cursor records the last row a client has seen: its primary key and its value
in the active sort column. Wire format is compact JSON `{"id": ..., "t": ...}`
encoded as unpadded URL-safe base64.

The token carries no sort column or direction. A cursor minted under one sort
order and replayed under another produces a well-formed but meaningless page;
keeping sortBy/sortDirection stable across pages is the client's job.

decode_cursor() never raises. Stale, truncated or tampered tokens decode to
None and pagination restarts from the beginning of the set.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Optional


# Cursors travel in query strings; anything longer is not one of ours
MAX_CURSOR_LENGTH = 4096


@dataclass(frozen=True)
class Cursor:
    """Decoded cursor: last-seen row id and its sort column value."""
    id: str
    tiebreak: str

    def to_payload(self) -> dict:
        return {"id": self.id, "t": self.tiebreak}


def encode_cursor(id: str, tiebreak: str) -> str:
    """
    Encode a row id and tie-break value into an opaque, URL-safe token.

    Args:
        id: Primary key of the last row on the page.
        tiebreak: That row's value in the active sort column, as text.

    Returns:
        Unpadded base64url string.
    """
    payload = json.dumps(Cursor(id, tiebreak).to_payload(), separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: Any) -> Optional[Cursor]:
    """
    Decode an opaque cursor.

    Args:
        token: Value received from the client.

    Returns:
        Cursor, or None when the token is not a string, too long, not valid
        base64url, not UTF-8 JSON, not an object, or lacks string `id`/`t`.
    """
    if not isinstance(token, str) or not token or len(token) > MAX_CURSOR_LENGTH:
        return None

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        parsed = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, RecursionError):
        # JSONDecodeError and UnicodeDecodeError are ValueErrors; deeply nested
        # arrays or objects exhaust the json parser's recursion limit
        return None

    if not isinstance(parsed, dict):
        return None

    row_id = parsed.get("id")
    tiebreak = parsed.get("t")
    if not isinstance(row_id, str) or not isinstance(tiebreak, str):
        return None

    return Cursor(id=row_id, tiebreak=tiebreak)
