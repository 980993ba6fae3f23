"""
Shared test configuration and fixtures.

Every test runs against the in-memory drive, so no network or
credentials are needed.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

import pytest

from drive_workspace_sync.config import SyncConfig
from drive_workspace_sync.identity import Credential, StaticCredentialProvider
from drive_workspace_sync.protocol import FOLDER_MIME_TYPE, Item, RemoteObject, Workspace
from drive_workspace_sync.remote import InMemoryDrive
from drive_workspace_sync.state import SyncDataStore, WorkspaceState
from drive_workspace_sync.sync import DriveWorkspaceProvider

logger = logging.getLogger(__name__)

OWNER = "owner-sub"


class SuspendingDrive(InMemoryDrive):
    """In-memory drive whose uploads yield to the event loop, like a network call."""

    async def upload_file(self, *args, **kwargs):
        await asyncio.sleep(0)
        return await super().upload_file(*args, **kwargs)


def seed_workspace_folders(
    drive: InMemoryDrive,
    root_id: str = "root",
    data_id: str = "data",
    trash_id: str = "trash-folder",
    root_properties: dict[str, str] | None = None,
) -> None:
    """Seed a root folder with its data and trash folders."""
    if root_properties is None:
        root_properties = {
            "folderId": root_id,
            "dataFolderId": data_id,
            "trashFolderId": trash_id,
        }
    drive.seed(RemoteObject(
        id=root_id,
        name="Notes",
        app_properties=root_properties,
        mime_type=FOLDER_MIME_TYPE,
    ))
    for child_id in (data_id, trash_id):
        drive.seed(RemoteObject(
            id=child_id,
            name=child_id,
            parents=[root_id],
            app_properties={"folderId": root_id},
            mime_type=FOLDER_MIME_TYPE,
        ))


@pytest.fixture
def credential() -> Credential:
    return Credential(
        sub=OWNER,
        access_token="token",
        is_drive=True,
        drive_full_access=True,
    )


@pytest.fixture
def credentials(credential: Credential) -> StaticCredentialProvider:
    return StaticCredentialProvider([credential])


@pytest.fixture
def drive() -> InMemoryDrive:
    return InMemoryDrive()


@pytest.fixture
def config() -> SyncConfig:
    return SyncConfig(base_url="https://notes.example.com/app")


@pytest.fixture
def state() -> WorkspaceState:
    return WorkspaceState()


@pytest.fixture
def sync_data() -> SyncDataStore:
    return SyncDataStore()


@pytest.fixture
def workspace() -> Workspace:
    """A workspace matching ``seed_workspace_folders`` defaults."""
    return Workspace(
        id="ws-1",
        sub=OWNER,
        name="Notes",
        provider_id="driveWorkspace",
        url="https://notes.example.com/app#providerId=driveWorkspace&folderId=root",
        folder_id="root",
        data_folder_id="data",
        trash_folder_id="trash-folder",
    )


@pytest.fixture
def items() -> dict[str, Item]:
    """Local document tree, as seen by the item lookup."""
    return {}


@pytest.fixture
async def provider(
    drive: InMemoryDrive,
    credentials: StaticCredentialProvider,
    config: SyncConfig,
    items: dict[str, Item],
) -> AsyncIterator[DriveWorkspaceProvider]:
    """Provider with a freshly created workspace."""
    provider = DriveWorkspaceProvider(drive, credentials, config, item_lookup=items.get)
    await provider.resolve_workspace(sub=OWNER)
    drive.write_count = 0
    yield provider
