"""Tests for the sync data store and workspace state."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from drive_workspace_sync.exceptions import StorageIOError
from drive_workspace_sync.protocol import ItemType, SyncData, Workspace
from drive_workspace_sync.state import SYNC_START_PAGE_TOKEN, SyncDataStore, WorkspaceState


class TestSyncDataStore:
    """Tests for SyncDataStore."""

    @pytest.fixture
    def store(self) -> SyncDataStore:
        return SyncDataStore([
            SyncData(id="r1", item_id="file-1", type=ItemType.FILE, hash=10),
            SyncData(id="r1/content", item_id="file-1/content", type=ItemType.CONTENT, hash=11),
        ])

    def test_lookup_by_remote_id(self, store: SyncDataStore) -> None:
        """Entries are keyed by remote object ID."""
        assert store.get("r1").item_id == "file-1"
        assert store.get("missing") is None
        assert "r1" in store
        assert len(store) == 2

    def test_lookup_by_item_id(self, store: SyncDataStore) -> None:
        """Entries can be found from the local item they map."""
        assert store.get_by_item_id("file-1/content").id == "r1/content"
        assert store.get_by_item_id("unknown") is None
        assert store.get_by_item_id(None) is None

    def test_partial_patch_preserves_fields(self, store: SyncDataStore) -> None:
        """A merge-patch only overwrites the fields it mentions."""
        store.patch({"r1": {"hash": 99}})

        entry = store.get("r1")
        assert entry.hash == 99
        assert entry.item_id == "file-1"
        assert entry.type is ItemType.FILE

    def test_patch_inserts_full_entries(self, store: SyncDataStore) -> None:
        """A full entry is inserted under its key."""
        store.patch({"r2": SyncData(id="r2", item_id="folder-1", type=ItemType.FOLDER, hash=3)})

        assert store.get_by_item_id("folder-1").id == "r2"

    def test_patch_updates_item_index(self, store: SyncDataStore) -> None:
        """Changing the item of an entry re-indexes it."""
        store.by_item_id()
        store.patch({"r1": {"item_id": "file-2"}})

        assert store.get_by_item_id("file-1") is None
        assert store.get_by_item_id("file-2").id == "r1"

    def test_partial_patch_of_unknown_entry_raises(self, store: SyncDataStore) -> None:
        """A partial update cannot create an entry."""
        with pytest.raises(TypeError):
            store.patch({"r9": {"hash": 1}})

    def test_one_entry_per_remote_id(self, store: SyncDataStore) -> None:
        """Patching an existing key never duplicates it."""
        store.patch({"r1": SyncData(id="r1", item_id="file-1", type=ItemType.FILE, hash=12)})

        assert len(store) == 2
        assert store.get("r1").hash == 12

    def test_remove(self, store: SyncDataStore) -> None:
        """Removal drops entries and ignores unknown IDs."""
        store.remove(["r1/content", "unknown"])

        assert store.get("r1/content") is None
        assert store.get_by_item_id("file-1/content") is None
        assert len(store) == 1

    def test_by_item_id_is_a_snapshot(self, store: SyncDataStore) -> None:
        """Mutating the returned mapping does not alter the store."""
        snapshot = store.by_item_id()
        snapshot.clear()

        assert store.get_by_item_id("file-1") is not None

    async def test_save_and_load(self, store: SyncDataStore, tmp_path: Path) -> None:
        """The store persists to a JSON file."""
        await store.save(tmp_path)
        loaded = await SyncDataStore.load(tmp_path)

        assert loaded.to_dict() == store.to_dict()
        assert loaded.get("r1").type is ItemType.FILE

    async def test_concurrent_saves(self, store: SyncDataStore, tmp_path: Path) -> None:
        """Overlapping saves of one file each complete and leave no temp file."""
        for _ in range(20):
            await asyncio.gather(store.save(tmp_path), store.save(tmp_path))

        assert [path.name for path in tmp_path.iterdir()] == ["sync_data.json"]
        assert (await SyncDataStore.load(tmp_path)).to_dict() == store.to_dict()

    async def test_load_missing_file(self, tmp_path: Path) -> None:
        """Loading from an empty directory gives an empty store."""
        loaded = await SyncDataStore.load(tmp_path / "nothing")

        assert len(loaded) == 0

    async def test_load_corrupted_file_raises(self, tmp_path: Path) -> None:
        """A corrupted state file is reported, not silently dropped."""
        (tmp_path / "sync_data.json").write_text("{not json")

        with pytest.raises(StorageIOError):
            await SyncDataStore.load(tmp_path)


class TestWorkspaceState:
    """Tests for WorkspaceState."""

    @pytest.fixture
    def workspace(self) -> Workspace:
        return Workspace(
            id="ws-1",
            sub="owner",
            name="Notes",
            provider_id="driveWorkspace",
            url="https://example.com/app#providerId=driveWorkspace&folderId=root",
            folder_id="root",
            data_folder_id="data",
            trash_folder_id="trash",
        )

    def test_current_workspace(self, workspace: Workspace) -> None:
        state = WorkspaceState()
        assert state.current_workspace is None

        state.patch_workspaces({workspace.id: workspace})
        state.current_workspace_id = workspace.id

        assert state.current_workspace == workspace

    def test_page_token(self) -> None:
        state = WorkspaceState()
        assert state.sync_start_page_token is None

        state.patch_local_settings({SYNC_START_PAGE_TOKEN: "42"})

        assert state.sync_start_page_token == "42"

    def test_location_params(self) -> None:
        state = WorkspaceState(location="#providerId=driveWorkspace&folderId=root")

        assert state.location_params() == {"providerId": "driveWorkspace", "folderId": "root"}
        assert WorkspaceState().location_params() == {}

    async def test_save_and_load(self, workspace: Workspace, tmp_path: Path) -> None:
        state = WorkspaceState(
            workspaces={workspace.id: workspace},
            local_settings={SYNC_START_PAGE_TOKEN: "7"},
            location="#providerId=driveWorkspace&folderId=root",
            current_workspace_id=workspace.id,
        )

        await state.save(tmp_path)
        loaded = await WorkspaceState.load(tmp_path)

        assert loaded == state
        saved = json.loads((tmp_path / "workspace_state.json").read_text())
        assert saved["workspaces"]["ws-1"]["folder_id"] == "root"
