"""
Sync data store.

The ledger telling which remote object represents which local item.
Two lookup shapes are served: by remote object ID (the key) and by
local item ID. Every write is a merge-patch so unrelated updates never
clobber each other.

Mutations are synchronous: callers never suspend while the ledger is
half updated. Only loading and saving touch the disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..protocol import SyncData
from .file_ops import read_json, write_json_atomic

logger = logging.getLogger(__name__)

SYNC_DATA_FILE = "sync_data.json"


class SyncDataStore:
    """Key-value store of SyncData entries keyed by remote object ID."""

    def __init__(self, entries: Iterable[SyncData] | None = None):
        self._entries: dict[str, SyncData] = {}
        self._by_item_id: dict[str, SyncData] | None = None
        for entry in entries or []:
            self._entries[entry.id] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, sync_data_id: object) -> bool:
        return sync_data_id in self._entries

    def __iter__(self) -> Iterator[SyncData]:
        return iter(list(self._entries.values()))

    def get(self, sync_data_id: str) -> SyncData | None:
        """Get an entry by remote object ID."""
        return self._entries.get(sync_data_id)

    def get_by_item_id(self, item_id: str | None) -> SyncData | None:
        """Get the entry mapping a local item, if any."""
        if item_id is None:
            return None
        return self.by_item_id().get(item_id)

    def by_item_id(self) -> dict[str, SyncData]:
        """Snapshot of the entries indexed by local item ID."""
        if self._by_item_id is None:
            self._by_item_id = {entry.item_id: entry for entry in self._entries.values()}
        return dict(self._by_item_id)

    def patch(self, updates: Mapping[str, SyncData | Mapping[str, Any]]) -> None:
        """Merge entries into the store.

        Each value is either a full SyncData, or a mapping of the fields
        to overwrite (``item_id``, ``type``, ``hash``). Fields that are
        not mentioned keep their current value.

        Raises:
            TypeError: If a partial update targets an unknown entry and
                does not provide every field
        """
        for sync_data_id, update in updates.items():
            existing = self._entries.get(sync_data_id)
            if isinstance(update, SyncData):
                fields = {
                    "item_id": update.item_id,
                    "type": update.type,
                    "hash": update.hash,
                }
            else:
                fields = {key: value for key, value in update.items() if key != "id"}

            if existing is None:
                self._entries[sync_data_id] = SyncData(id=sync_data_id, **fields)
            else:
                self._entries[sync_data_id] = replace(existing, **fields)
        self._by_item_id = None

    def remove(self, sync_data_ids: Iterable[str]) -> None:
        """Drop entries; unknown IDs are ignored."""
        for sync_data_id in sync_data_ids:
            self._entries.pop(sync_data_id, None)
        self._by_item_id = None

    def to_dict(self) -> dict[str, Any]:
        return {sync_data_id: entry.to_dict() for sync_data_id, entry in self._entries.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SyncDataStore:
        return cls(SyncData.from_dict(entry) for entry in data.values())

    @classmethod
    async def load(cls, directory: Path) -> SyncDataStore:
        """Load the store saved in ``directory`` (empty if never saved)."""
        data = await read_json(directory / SYNC_DATA_FILE)
        store = cls.from_dict(data or {})
        logger.debug("Loaded %d sync data entries from %s", len(store), directory)
        return store

    async def save(self, directory: Path) -> None:
        """Persist the store into ``directory``."""
        await write_json_atomic(directory / SYNC_DATA_FILE, self.to_dict())
