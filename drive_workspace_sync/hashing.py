"""Canonical serialization, hashing and id helpers.

Centralizes the id formats so callers never need to construct them
directly:

Workspace IDs: base36 of the hash of ``{"folderId", "providerId"}``
Content item IDs: ``{file_item_id}/content``
Content sync data IDs: ``{remote_file_id}/content``

Hashes are 32-bit signed integers computed over UTF-16 code units, so
they agree with hashes computed by other clients of the same workspace.
"""

from __future__ import annotations

import json
from typing import Any

CONTENT_SUFFIX = "/content"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

# Fields never taken into account when hashing an item
_UNHASHED_FIELDS = ("hash", "history")


def serialize_object(obj: Any) -> str:
    """Serialize to compact JSON with keys sorted at every depth."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_string(value: str | None) -> int:
    """Rolling 31-multiplier hash wrapped to a signed 32-bit integer."""
    result = 0
    if not value:
        return result
    data = value.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        result = (result * 31 + code_unit) & 0xFFFFFFFF
    if result >= 0x80000000:
        result -= 0x100000000
    return result


def to_base36(value: int) -> str:
    """Encode a non-negative integer in base 36."""
    if value < 0:
        raise ValueError(f"Cannot encode negative value: {value}")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def get_item_hash(item: dict[str, Any]) -> int:
    """Hash the canonical form of an item, ignoring its own hash."""
    hashed = {key: value for key, value in item.items() if key not in _UNHASHED_FIELDS}
    return hash_string(serialize_object(hashed))


def add_item_hash(item: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``item`` with its ``hash`` field computed."""
    return {**item, "hash": get_item_hash(item)}


def make_workspace_id(provider_id: str, folder_id: str) -> str:
    """Derive a deterministic workspace ID from its provider and root folder."""
    serialized = serialize_object({"providerId": provider_id, "folderId": folder_id})
    return to_base36(abs(hash_string(serialized)))


def content_id(file_item_id: str) -> str:
    """Generate the local ID of the content item owned by a file item."""
    return f"{file_item_id}{CONTENT_SUFFIX}"


def content_sync_data_id(remote_id: str) -> str:
    """Generate the sync data ID of the content stored in a remote file."""
    return f"{remote_id}{CONTENT_SUFFIX}"

