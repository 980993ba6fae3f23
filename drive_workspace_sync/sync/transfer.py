"""
Idempotent, hash-gated transfers of items and content.

Every upload is skipped when the sync data already holds the hash being
uploaded, and every download repairs the stored hash when it drifted.

Cancellation is cooperative: the ``if_not_too_late`` predicate given by
the caller is evaluated right before each remote mutation. When it
returns False the step is abandoned, nothing is written remotely and the
sync data is left untouched.

Transport failures propagate to the caller, which owns retry policy.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from ..content import decode_body, parse_content, serialize_content
from ..exceptions import NotFoundError, ParseError
from ..hashing import content_id, content_sync_data_id
from ..identity import Credential
from ..protocol import (
    FOLDER_MIME_TYPE,
    Content,
    Item,
    ItemType,
    SyncData,
    SyncLocation,
    Workspace,
)
from ..remote import DriveClient
from ..state import SyncDataStore
from .changes import build_tree_item, collect_parent_ids

logger = logging.getLogger(__name__)

# Returns False once the operation no longer matters to the caller
DeadlinePredicate = Callable[[], bool]

# Resolves a local item from the document tree
ItemLookup = Callable[[str], Item | None]


def still_relevant(if_not_too_late: DeadlinePredicate | None, action: str) -> bool:
    """Evaluate the caller's deadline right before a remote mutation."""
    if if_not_too_late is None or if_not_too_late():
        return True
    logger.debug("Abandoning %s: superseded by a newer local state", action)
    return False


class TransferEngine:
    """Pushes and pulls items and content of one workspace.

    At most one transfer per local item runs at a time; transfers of
    independent items may interleave.
    """

    def __init__(
        self,
        drive: DriveClient,
        credential: Credential,
        workspace: Workspace,
        sync_data: SyncDataStore,
        item_lookup: ItemLookup | None = None,
    ):
        """Initialize the transfer engine.

        Args:
            drive: Remote drive transport
            credential: Credential of the workspace owner
            workspace: Activated workspace
            sync_data: Shared sync data store
            item_lookup: Resolves local items (needed to create files on upload)
        """
        self.drive = drive
        self.credential = credential
        self.workspace = workspace
        self.sync_data = sync_data
        self.item_lookup = item_lookup
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _exclusive(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Forget the lock once no transfer holds or awaits it
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    def _parent_folder_id(self, parent_item_id: str | None) -> str:
        parent_sync_data = self.sync_data.get_by_item_id(parent_item_id)
        return parent_sync_data.id if parent_sync_data else self.workspace.folder_id

    # =========================================================================
    # Items
    # =========================================================================

    async def save_simple_item(
        self,
        item: Item,
        sync_data: SyncData | None = None,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> SyncData | None:
        """Upload the metadata of an item (no media).

        Files and folders become regular remote objects placed under their
        parent; any other item is stored as JSON in the name of an object
        of the data folder.

        Args:
            item: Item to save
            sync_data: Current mapping of the item; looked up once the item
                is locked when not given
            if_not_too_late: Deadline predicate

        Returns:
            The sync data to persist, or None if abandoned
        """
        async with self._exclusive(item.id):
            if sync_data is None:
                sync_data = self.sync_data.get_by_item_id(item.id)
            if not item.type.is_tree_node:
                if not still_relevant(if_not_too_late, f"save of {item.id}"):
                    return None
                remote = await self.drive.upload_file(
                    self.credential,
                    name=json.dumps(item.to_dict(), separators=(",", ":")),
                    parents=[self.workspace.data_folder_id],
                    app_properties={"folderId": self.workspace.folder_id},
                    file_id=sync_data.id if sync_data else None,
                )
            else:
                parent_folder_id = self._parent_folder_id(item.parent_id)
                if not still_relevant(if_not_too_late, f"save of {item.id}"):
                    return None
                remote = await self.drive.upload_file(
                    self.credential,
                    name=item.name,
                    parents=[parent_folder_id],
                    app_properties={"id": item.id, "folderId": self.workspace.folder_id},
                    mime_type=FOLDER_MIME_TYPE if item.type is ItemType.FOLDER else None,
                    file_id=sync_data.id if sync_data else None,
                )

        return SyncData(id=remote.id, item_id=item.id, type=item.type, hash=item.hash)

    async def remove_item(
        self,
        sync_data: SyncData,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> None:
        """Remove the remote object of an item.

        Content has no remote object of its own: it goes away with its file.
        """
        if sync_data.type is ItemType.CONTENT:
            return
        async with self._exclusive(sync_data.item_id):
            if not still_relevant(if_not_too_late, f"removal of {sync_data.id}"):
                return
            await self.drive.remove_file(self.credential, sync_data.id)

    async def download_item(self, item_id: str) -> Item | None:
        """Rebuild a file or folder item from its remote object."""
        sync_data = self.sync_data.get_by_item_id(item_id)
        if sync_data is None:
            return None
        remote = await self.drive.get_file(self.credential, sync_data.id)
        return build_tree_item(remote, self.workspace, collect_parent_ids(self.sync_data))

    # =========================================================================
    # Content
    # =========================================================================

    async def download_content(self, location: SyncLocation) -> Content | None:
        """Download the content of a file, repairing its stored hash.

        Returns:
            The parsed content, or None if the file was never synced

        Raises:
            ParseError: If the body is not valid UTF-8
        """
        sync_data = self.sync_data.get_by_item_id(location.file_id)
        content_sync_data = self.sync_data.get_by_item_id(content_id(location.file_id))
        if sync_data is None or content_sync_data is None:
            return None

        body = await self.drive.download_file(self.credential, sync_data.id)
        content = parse_content(decode_body(sync_data.id, body), location)
        if content.hash != content_sync_data.hash:
            self.sync_data.patch({content_sync_data.id: {"hash": content.hash}})
        return content

    async def upload_content(
        self,
        content: Content,
        location: SyncLocation,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> SyncLocation | None:
        """Upload the content of a file unless the remote already has it.

        Updates only the media of an existing remote file; otherwise creates
        the file with its metadata and media, then records sync data for
        both the file and its content.

        Returns:
            The location, or None if skipped or abandoned

        Raises:
            NotFoundError: If the file has to be created but is unknown locally
        """
        async with self._exclusive(location.file_id):
            content_sync_data = self.sync_data.get_by_item_id(content_id(location.file_id))
            if content_sync_data and content_sync_data.hash == content.hash:
                logger.debug(
                    "Content of %s is up to date",
                    location.file_id,
                    extra={"item_id": location.file_id},
                )
                return None

            media = serialize_content(content).encode("utf-8")
            updates: dict[str, SyncData] = {}
            sync_data = self.sync_data.get_by_item_id(location.file_id)
            if sync_data:
                if not still_relevant(if_not_too_late, f"upload of {location.file_id}"):
                    return None
                remote = await self.drive.upload_file(
                    self.credential,
                    media=media,
                    file_id=sync_data.id,
                )
            else:
                item = self.item_lookup(location.file_id) if self.item_lookup else None
                if item is None:
                    raise NotFoundError(location.file_id)
                parent_folder_id = self._parent_folder_id(item.parent_id)
                if not still_relevant(if_not_too_late, f"creation of {location.file_id}"):
                    return None
                remote = await self.drive.upload_file(
                    self.credential,
                    name=item.name,
                    parents=[parent_folder_id],
                    app_properties={"id": item.id, "folderId": self.workspace.folder_id},
                    media=media,
                )
                updates[remote.id] = SyncData(
                    id=remote.id,
                    item_id=item.id,
                    type=item.type,
                    hash=item.hash,
                )

            content_key = content_sync_data_id(remote.id)
            updates[content_key] = SyncData(
                id=content_key,
                item_id=content.id or content_id(location.file_id),
                type=ItemType.CONTENT,
                hash=content.hash,
            )
            self.sync_data.patch(updates)
        return location

    # =========================================================================
    # Data
    # =========================================================================

    async def download_data(self, data_id: str) -> Item | None:
        """Download a data item, repairing its stored hash.

        Raises:
            ParseError: If the remote body is not the JSON of an item
        """
        sync_data = self.sync_data.get_by_item_id(data_id)
        if sync_data is None:
            return None

        body = await self.drive.download_file(self.credential, sync_data.id)
        try:
            item = Item.from_dict(json.loads(body.decode("utf-8")))
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(sync_data.id, str(e)) from e

        if item.hash != sync_data.hash:
            self.sync_data.patch({sync_data.id: {"hash": item.hash}})
        return item

    async def upload_data(
        self,
        item: Item,
        data_id: str | None = None,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> SyncData | None:
        """Upload a data item unless the remote already has it.

        The object name holds a small ``{id, type, hash}`` summary so the
        change feed can diff it; the media holds the full item.

        Returns:
            The recorded sync data, or None if skipped or abandoned
        """
        data_id = data_id or item.id
        async with self._exclusive(data_id):
            sync_data = self.sync_data.get_by_item_id(data_id)
            if sync_data and sync_data.hash == item.hash:
                logger.debug("Data %s is up to date", data_id, extra={"item_id": data_id})
                return None

            if not still_relevant(if_not_too_late, f"upload of {data_id}"):
                return None
            summary = {"id": item.id, "type": item.type.value, "hash": item.hash}
            remote = await self.drive.upload_file(
                self.credential,
                name=json.dumps(summary, separators=(",", ":")),
                parents=[self.workspace.data_folder_id],
                app_properties={"folderId": self.workspace.folder_id},
                media=json.dumps(item.to_dict()).encode("utf-8"),
                file_id=sync_data.id if sync_data else None,
            )

            recorded = SyncData(id=remote.id, item_id=item.id, type=item.type, hash=item.hash)
            self.sync_data.patch({remote.id: recorded})
        return recorded
