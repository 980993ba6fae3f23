"""
Drive workspace provider.

Entry point used by the application layer. Wires the bootstrapper, the
change feed processor, the transfer engine and the revision reader
around one shared sync data store and workspace state:

- resolve_workspace: once per workspace activation
- poll_changes / record_changes: once per sync cycle
- apply_local_item, push_*, fetch_*, remove_remote_mapping: per dirty item
- get_revision_history / get_revision_content: on demand
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import SyncConfig
from ..exceptions import WorkspaceSyncError
from ..identity import Credential, CredentialProvider
from ..logging_utils import WorkspaceLoggerAdapter
from ..protocol import (
    ChangeBatch,
    Content,
    Item,
    ItemType,
    Revision,
    SyncData,
    SyncLocation,
    Workspace,
)
from ..remote import DriveClient
from ..state import SyncDataStore, WorkspaceState
from .changes import ChangeFeedProcessor
from .revisions import RevisionReader
from .transfer import DeadlinePredicate, ItemLookup, TransferEngine
from .workspace import WorkspaceBootstrapper

logger = logging.getLogger(__name__)


class DriveWorkspaceProvider:
    """Synchronizes a local document tree with a drive workspace."""

    def __init__(
        self,
        drive: DriveClient,
        credentials: CredentialProvider,
        config: SyncConfig | None = None,
        sync_data: SyncDataStore | None = None,
        state: WorkspaceState | None = None,
        item_lookup: ItemLookup | None = None,
    ):
        """Initialize the provider.

        Args:
            drive: Remote drive transport
            credentials: Source of credentials
            config: Sync configuration
            sync_data: Shared sync data store (empty if not provided)
            state: Shared workspace state (empty if not provided)
            item_lookup: Resolves local items of the document tree
        """
        self.drive = drive
        self.credentials = credentials
        self.config = config or SyncConfig()
        self.sync_data = sync_data if sync_data is not None else SyncDataStore()
        self.state = state if state is not None else WorkspaceState()
        self.item_lookup = item_lookup
        self.bootstrapper = WorkspaceBootstrapper(drive, credentials, self.state, self.config)

        self._workspace: Workspace | None = None
        self._credential: Credential | None = None
        self._changes: ChangeFeedProcessor | None = None
        self._transfer: TransferEngine | None = None
        self._revisions: RevisionReader | None = None
        self._log: logging.LoggerAdapter | logging.Logger = logger

    @classmethod
    async def open(
        cls,
        drive: DriveClient,
        credentials: CredentialProvider,
        config: SyncConfig | None = None,
        item_lookup: ItemLookup | None = None,
    ) -> DriveWorkspaceProvider:
        """Create a provider with the state persisted under ``config.state_path``."""
        config = config or SyncConfig()
        sync_data = None
        state = None
        if config.state_path is not None:
            sync_data = await SyncDataStore.load(config.state_path)
            state = await WorkspaceState.load(config.state_path)
        return cls(drive, credentials, config, sync_data, state, item_lookup)

    async def save_state(self, directory: Path | None = None) -> None:
        """Persist the sync data and workspace state."""
        directory = directory or self.config.state_path
        if directory is None:
            raise WorkspaceSyncError("No state path configured")
        await self.sync_data.save(directory)
        await self.state.save(directory)

    # =========================================================================
    # Workspace
    # =========================================================================

    @property
    def workspace(self) -> Workspace:
        if self._workspace is None:
            raise WorkspaceSyncError("No workspace resolved")
        return self._workspace

    async def resolve_workspace(
        self,
        folder_id: str | None = None,
        sub: str | None = None,
    ) -> Workspace:
        """Activate the workspace rooted at ``folder_id``.

        Without arguments, resumes the workspace of the stored location,
        or creates a new one when there is none.
        """
        if folder_id is None and sub is None:
            params = self.state.location_params()
            if params.get("providerId") == self.config.provider_id:
                folder_id = params.get("folderId")

        workspace = await self.bootstrapper.resolve_workspace(folder_id, sub)
        credential = await self.bootstrapper.get_credential(workspace.sub)

        self._workspace = workspace
        self._credential = credential
        self._changes = ChangeFeedProcessor(
            self.drive, credential, workspace, self.sync_data, self.state, self.config
        )
        self._transfer = TransferEngine(
            self.drive, credential, workspace, self.sync_data, self.item_lookup
        )
        self._revisions = RevisionReader(self.drive, credential, self.sync_data)
        self._log = WorkspaceLoggerAdapter(
            logger, {"workspace_id": workspace.id, "folder_id": workspace.folder_id}
        )
        self._log.info("Workspace %s resolved", workspace.name)
        return workspace

    def _components(self) -> tuple[ChangeFeedProcessor, TransferEngine, RevisionReader]:
        if self._changes is None or self._transfer is None or self._revisions is None:
            raise WorkspaceSyncError("No workspace resolved")
        return self._changes, self._transfer, self._revisions

    # =========================================================================
    # Change feed
    # =========================================================================

    async def poll_changes(self, apply_token: bool = True) -> ChangeBatch:
        """Fetch and classify the remote changes since the last poll.

        Args:
            apply_token: Store the new page token right away. Pass False to
                call ``set_applied_changes`` once the batch has been applied.
        """
        changes, _, _ = self._components()
        batch = await changes.get_changes()
        self._log.debug("Polled %d changes", len(batch))
        if apply_token:
            changes.set_applied_changes(batch)
        return batch

    def set_applied_changes(self, batch: ChangeBatch) -> None:
        changes, _, _ = self._components()
        changes.set_applied_changes(batch)

    def record_changes(self, batch: ChangeBatch) -> None:
        """Reconcile the sync data with a classified batch.

        Upserts are merged in; removals drop the entries they concern.
        """
        latest: dict[str, SyncData | None] = {}
        for change in batch:
            latest[change.sync_data_id] = change.sync_data
        self.sync_data.remove(key for key, entry in latest.items() if entry is None)
        self.sync_data.patch({key: entry for key, entry in latest.items() if entry is not None})

    # =========================================================================
    # Transfers
    # =========================================================================

    async def apply_local_item(
        self,
        item: Item,
        sync_data: SyncData | None = None,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> SyncData | None:
        """Save the metadata of a local item and record its sync data."""
        _, transfer, _ = self._components()
        saved = await transfer.save_simple_item(item, sync_data, if_not_too_late)
        if saved is not None:
            self.sync_data.patch({saved.id: saved})
        return saved

    async def remove_remote_mapping(
        self,
        sync_data: SyncData,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> None:
        """Remove the remote object of a locally deleted item."""
        _, transfer, _ = self._components()
        await transfer.remove_item(sync_data, if_not_too_late)

    async def fetch_content(self, location: SyncLocation) -> Content | None:
        _, transfer, _ = self._components()
        return await transfer.download_content(location)

    async def fetch_metadata(self, item_id: str) -> Item | None:
        """Fetch the remote version of an item's metadata.

        Data items are read from their body; files and folders are
        rebuilt from their remote object.
        """
        _, transfer, _ = self._components()
        sync_data = self.sync_data.get_by_item_id(item_id)
        if sync_data is None:
            return None
        if sync_data.type.is_tree_node:
            return await transfer.download_item(item_id)
        return await transfer.download_data(item_id)

    async def push_content(
        self,
        content: Content,
        location: SyncLocation,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> SyncLocation | None:
        _, transfer, _ = self._components()
        return await transfer.upload_content(content, location, if_not_too_late)

    async def push_metadata(
        self,
        item: Item,
        if_not_too_late: DeadlinePredicate | None = None,
    ) -> SyncData | None:
        """Push the metadata of an item.

        Files and folders are saved as regular objects; other items are
        uploaded as data with their full body.

        Raises:
            ValueError: For content items (use ``push_content``)
        """
        _, transfer, _ = self._components()
        if item.type is ItemType.CONTENT:
            raise ValueError(f"Content {item.id} must be pushed with push_content")
        if item.type.is_tree_node:
            return await self.apply_local_item(item, if_not_too_late=if_not_too_late)
        return await transfer.upload_data(item, item.id, if_not_too_late)

    # =========================================================================
    # Revisions
    # =========================================================================

    async def get_revision_history(self, file_id: str) -> list[Revision]:
        _, _, revisions = self._components()
        return await revisions.list_revisions(file_id)

    async def get_revision_content(self, file_id: str, revision_id: str) -> Content:
        _, _, revisions = self._components()
        return await revisions.get_revision_content(file_id, revision_id)
