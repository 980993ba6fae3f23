"""Tests for revision history."""

from __future__ import annotations

import time

import pytest

from drive_workspace_sync.exceptions import NotFoundError, ParseError
from drive_workspace_sync.identity import Credential
from drive_workspace_sync.protocol import Content, Item, ItemType, SyncLocation, Workspace
from drive_workspace_sync.remote import InMemoryDrive
from drive_workspace_sync.state import SyncDataStore
from drive_workspace_sync.sync import RevisionReader, TransferEngine

from conftest import OWNER, seed_workspace_folders


@pytest.fixture
async def history(
    drive: InMemoryDrive,
    credential: Credential,
    workspace: Workspace,
    sync_data: SyncDataStore,
) -> list[Content]:
    """Upload two versions of the content of file a1."""
    seed_workspace_folders(drive)
    note = Item(id="a1", type=ItemType.FILE, name="note.md").with_hash()
    engine = TransferEngine(drive, credential, workspace, sync_data, {note.id: note}.get)
    versions = [
        Content(id="a1/content", text="First draft").with_hash(),
        Content(id="a1/content", text="Second draft", properties="tags: [x]\n").with_hash(),
    ]
    for version in versions:
        await engine.upload_content(version, SyncLocation("a1"))
    return versions


@pytest.fixture
def reader(
    drive: InMemoryDrive, credential: Credential, sync_data: SyncDataStore
) -> RevisionReader:
    return RevisionReader(drive, credential, sync_data)


class TestRevisionReader:
    async def test_list_revisions(self, reader: RevisionReader, history: list[Content]) -> None:
        before = int(time.time() * 1000)

        revisions = await reader.list_revisions("a1")

        assert len(revisions) == len(history)
        assert all(revision.sub == OWNER for revision in revisions)
        assert all(abs(revision.created - before) < 60_000 for revision in revisions)
        assert len({revision.id for revision in revisions}) == 2

    async def test_get_revision_content(
        self, reader: RevisionReader, history: list[Content]
    ) -> None:
        revisions = await reader.list_revisions("a1")

        contents = [
            await reader.get_revision_content("a1", revision.id) for revision in revisions
        ]

        assert contents == history

    async def test_unsynced_file(self, reader: RevisionReader) -> None:
        with pytest.raises(NotFoundError):
            await reader.list_revisions("a1")
        with pytest.raises(NotFoundError):
            await reader.get_revision_content("a1", "1")

    async def test_revision_body_not_utf8(
        self,
        reader: RevisionReader,
        drive: InMemoryDrive,
        credential: Credential,
        sync_data: SyncDataStore,
        history: list[Content],
    ) -> None:
        remote_id = sync_data.get_by_item_id("a1").id
        await drive.upload_file(credential, media=b"\xff\xfe", file_id=remote_id)
        latest = (await reader.list_revisions("a1"))[-1]

        with pytest.raises(ParseError) as exc_info:
            await reader.get_revision_content("a1", latest.id)

        assert exc_info.value.remote_id == remote_id
