"""
Content body serialization.

A file body is the plain text of the document, optionally followed by a
trailer carrying its properties, discussions and comments:

    <text><!--workspace-sync:<base64 JSON, wrapped at 50 chars>-->

Files edited by other tools have no trailer and parse as plain text.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any

from .exceptions import ParseError
from .hashing import content_id
from .protocol import Content, SyncLocation

logger = logging.getLogger(__name__)

DATA_MARKER = "<!--workspace-sync:"
_DATA_EXTRACTOR = re.compile(r"<!--workspace-sync:((?:.|\n)*)-->\s*$")
_LINE_WIDTH = 50


def serialize_content(content: Content) -> str:
    """Serialize content into the body stored on the remote file."""
    data: dict[str, Any] = {}
    if content.properties.strip():
        data["properties"] = content.properties
    if content.discussions:
        data["discussions"] = content.discussions
    if content.comments:
        data["comments"] = content.comments

    if not data:
        return content.text

    encoded = base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")
    wrapped = "\n".join(
        encoded[i : i + _LINE_WIDTH] for i in range(0, len(encoded), _LINE_WIDTH)
    )
    return f"{content.text}{DATA_MARKER}{wrapped}-->"


def decode_body(remote_id: str, body: bytes) -> str:
    """Decode a remote body written by any client.

    Raises:
        ParseError: If the body is not valid UTF-8
    """
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(remote_id, f"body is not valid UTF-8: {e.reason}") from e


def parse_content(body: str, location: SyncLocation | None = None) -> Content:
    """Parse a remote file body back into hashed content.

    A malformed trailer is kept as part of the text.
    """
    text = body
    properties = "\n"
    discussions: dict[str, Any] = {}
    comments: dict[str, Any] = {}

    match = _DATA_EXTRACTOR.search(body)
    if match:
        try:
            raw = base64.b64decode(re.sub(r"\s", "", match.group(1)), validate=True)
            data = json.loads(raw.decode("utf-8"))
            if not isinstance(data, dict):
                raise ValueError("trailer is not an object")
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            logger.debug("Ignoring malformed content trailer: %s", e)
        else:
            text = body[: match.start()]
            properties = data.get("properties") or properties
            discussions = data.get("discussions") or {}
            comments = data.get("comments") or {}

    content = Content(
        id=content_id(location.file_id) if location else None,
        text=text,
        properties=properties,
        discussions=discussions,
        comments=comments,
    )
    return content.with_hash()
