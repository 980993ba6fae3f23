"""
JSON file operations for persisted sync state.

Provides atomic read/write operations with:
- Atomic writes using temp file + rename
- StorageIOError wrapping of every OS and decoding failure
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure exists
    """
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create_directory", str(path), e) from e


async def read_json(path: Path) -> dict[str, Any] | None:
    """Read a JSON file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON data or None if file doesn't exist
    """
    try:
        if not await aiofiles.os.path.exists(path):
            return None
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
            return json.loads(content) if content.strip() else None
    except json.JSONDecodeError as e:
        raise StorageIOError("parse_json", str(path), e) from e
    except OSError as e:
        raise StorageIOError("read_json", str(path), e) from e


async def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON file atomically using temp file + rename.

    Args:
        path: Target path for JSON file
        data: Data to serialize as JSON
    """
    await ensure_directory(path.parent)

    # Temp file unique to this write
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".tmp_{path.stem}_",
        suffix=".json",
    )
    try:
        os.close(fd)
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2, default=_json_serializer))
            await f.flush()
            os.fsync(f.fileno())

        # Atomic rename
        await aiofiles.os.replace(temp_path, path)
    except Exception as e:
        # Clean up temp file on error
        try:
            await aiofiles.os.remove(temp_path)
        except OSError:
            pass
        raise StorageIOError("write_json", str(path), e) from e


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for types not handled by default."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
