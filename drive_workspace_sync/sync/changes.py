"""
Change feed processing.

Turns the provider change feed into the ordered list of local changes:
- entries about the workspace's own folders are ignored
- objects that do not carry this workspace's ``folderId`` are ignored
- objects in the data folder are data items whose JSON is the object name
- other objects are files or folders, re-parented through the sync data
- every file upsert is followed by a content change with a sentinel hash
- every file removal is followed by the removal of its content
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from ..config import SyncConfig
from ..exceptions import ParseError
from ..hashing import add_item_hash, content_id, content_sync_data_id
from ..identity import Credential
from ..protocol import (
    CONTENT_HASH_SENTINEL,
    TRASH_PARENT_ID,
    Change,
    ChangeBatch,
    ChangeFeedPage,
    Item,
    ItemType,
    RemoteChange,
    RemoteObject,
    SyncData,
    Workspace,
)
from ..remote import DriveClient
from ..state import SYNC_START_PAGE_TOKEN, SyncDataStore, WorkspaceState

logger = logging.getLogger(__name__)


def collect_parent_ids(
    sync_data: SyncDataStore,
    remote_changes: Iterable[RemoteChange] = (),
) -> dict[str, str]:
    """Map remote object IDs to local item IDs.

    Objects of the current batch are included so that a child can be
    attached to a parent created in the same batch.
    """
    parent_ids = {entry.id: item_id for item_id, entry in sync_data.by_item_id().items()}
    for change in remote_changes:
        item_id = change.file.app_properties.get("id") if change.file else None
        if item_id:
            parent_ids[change.file_id] = item_id
    return parent_ids


def parse_data_item(remote: RemoteObject) -> Item:
    """Decode the data item stored as the name of a remote object.

    Raises:
        ParseError: If the name is not the JSON of an item
    """
    try:
        data = json.loads(remote.name)
    except ValueError as e:
        raise ParseError(remote.id, str(e)) from e
    if not isinstance(data, dict):
        raise ParseError(remote.id, "not a JSON object")
    try:
        return Item.from_dict(data)
    except (KeyError, ValueError) as e:
        raise ParseError(remote.id, f"invalid item: {e}") from e


def build_tree_item(
    remote: RemoteObject,
    workspace: Workspace,
    parent_ids: dict[str, str],
) -> Item:
    """Rebuild the file or folder item represented by a remote object.

    The trash folder wins over any other parent; otherwise the first
    parent with a known local item is used, and None means the root.
    """
    parent_id = None
    if workspace.trash_folder_id in remote.parents:
        parent_id = TRASH_PARENT_ID
    else:
        for remote_parent_id in remote.parents:
            if remote_parent_id in parent_ids:
                parent_id = parent_ids[remote_parent_id]
                break

    item_type = ItemType.FOLDER if remote.is_folder else ItemType.FILE
    return Item.from_dict(add_item_hash({
        "id": remote.app_properties.get("id"),
        "type": item_type.value,
        "name": remote.name,
        "parentId": parent_id,
    }))


def content_change(remote_id: str, file_item_id: str) -> Change:
    """Build the change standing for the content of an updated file.

    Remote content cannot be diffed cheaply, so the sentinel hash forces
    the content to be considered changed.
    """
    sync_data_id = content_sync_data_id(remote_id)
    item_id = content_id(file_item_id)
    return Change(
        sync_data_id=sync_data_id,
        item=Item(id=item_id, type=ItemType.CONTENT, hash=CONTENT_HASH_SENTINEL),
        sync_data=SyncData(
            id=sync_data_id,
            item_id=item_id,
            type=ItemType.CONTENT,
            hash=CONTENT_HASH_SENTINEL,
        ),
    )


class ChangeFeedProcessor:
    """Polls the change feed of a workspace and classifies its entries."""

    def __init__(
        self,
        drive: DriveClient,
        credential: Credential,
        workspace: Workspace,
        sync_data: SyncDataStore,
        state: WorkspaceState,
        config: SyncConfig | None = None,
    ):
        self.drive = drive
        self.credential = credential
        self.workspace = workspace
        self.sync_data = sync_data
        self.state = state
        self.config = config or SyncConfig()

    async def get_changes(self) -> ChangeBatch:
        """Fetch every feed entry since the last applied page token."""
        page = await self.drive.get_changes(
            self.credential,
            self.state.sync_start_page_token,
            self.config.include_removed,
        )
        return self.classify(page)

    def classify(self, page: ChangeFeedPage) -> ChangeBatch:
        """Classify a feed page against the current sync data.

        Deterministic for a given page and sync data snapshot.
        """
        parent_ids = collect_parent_ids(self.sync_data, page.changes)
        own_folder_ids = self.workspace.own_folder_ids

        changes: list[Change] = []
        for remote_change in page.changes:
            file_id = remote_change.file_id
            if file_id in own_folder_ids:
                continue

            remote = remote_change.file
            if remote is None:
                changes.extend(self._classify_removal(file_id))
            else:
                changes.extend(self._classify_upsert(file_id, remote, parent_ids))

        logger.debug(
            "Classified %d feed entries into %d changes",
            len(page.changes),
            len(changes),
        )
        return ChangeBatch(changes=changes, start_page_token=page.start_page_token)

    def _classify_upsert(
        self,
        file_id: str,
        remote: RemoteObject,
        parent_ids: dict[str, str],
    ) -> list[Change]:
        properties = remote.app_properties
        if properties.get("folderId") != self.workspace.folder_id:
            logger.debug("Ignoring %s: not in this workspace", remote.id)
            return []

        changes = []
        if remote.parents and remote.parents[0] == self.workspace.data_folder_id:
            try:
                item = parse_data_item(remote)
            except ParseError as e:
                logger.warning(
                    "Dropping data entry %s: %s", remote.id, e.reason, extra={"remote_id": remote.id}
                )
                return []
        else:
            if not properties.get("id"):
                logger.debug("Ignoring %s: no item ID", remote.id)
                return []
            item = build_tree_item(remote, self.workspace, parent_ids)

        changes.append(Change(
            sync_data_id=file_id,
            item=item,
            sync_data=SyncData(
                id=file_id,
                item_id=item.id,
                type=item.type,
                hash=item.hash,
            ),
            remote_object=remote,
        ))
        if item.type is ItemType.FILE:
            changes.append(content_change(file_id, item.id))
        return changes

    def _classify_removal(self, file_id: str) -> list[Change]:
        changes = [Change(sync_data_id=file_id)]
        existing = self.sync_data.get(file_id)
        if existing is not None and existing.type is ItemType.FILE:
            changes.append(Change(sync_data_id=content_sync_data_id(file_id)))
        return changes

    def set_applied_changes(self, batch: ChangeBatch) -> None:
        """Remember the page token once a batch has been applied."""
        self.state.patch_local_settings({SYNC_START_PAGE_TOKEN: batch.start_page_token})
        logger.info(
            "Applied changes up to page token %s",
            batch.start_page_token,
            extra={"page_token": batch.start_page_token},
        )
