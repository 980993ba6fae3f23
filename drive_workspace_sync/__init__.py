"""
Drive Workspace Sync

Synchronizes a local document tree (folders, files and data items) with a
remote drive that only offers flat objects, a property bag per object and
a polled change feed.

Provides:
- Workspace bootstrap and repair of the root, data and trash folders
- Change feed classification into local item changes
- Idempotent, hash-gated uploads and downloads with cooperative cancellation
- Revision history of synchronized files

Usage:

    >>> from drive_workspace_sync import DriveWorkspaceProvider, SyncConfig
    >>> from drive_workspace_sync import configure_structured_logging
    >>> configure_structured_logging()
    >>> provider = await DriveWorkspaceProvider.open(drive, credentials, SyncConfig.from_environment())
    >>> workspace = await provider.resolve_workspace(folder_id, sub)
    >>> batch = await provider.poll_changes()
    >>> provider.record_changes(batch)
    >>> await provider.save_state()
"""

from .config import SyncConfig
from .content import parse_content, serialize_content

# Exceptions
from .exceptions import (
    AccessError,
    AuthenticationRequiredError,
    ConflictError,
    NotFoundError,
    ParseError,
    StorageIOError,
    WorkspaceSyncError,
)
from .logging_utils import configure_structured_logging
from .identity import (
    ConfigFileCredentialProvider,
    Credential,
    CredentialProvider,
    StaticCredentialProvider,
)
from .protocol import (
    Change,
    ChangeBatch,
    Content,
    Item,
    ItemType,
    RemoteObject,
    Revision,
    SyncData,
    SyncLocation,
    Workspace,
)
from .remote import DriveClient, InMemoryDrive
from .state import SyncDataStore, WorkspaceState
from .sync import DriveWorkspaceProvider

__all__ = [
    # Entry point
    "DriveWorkspaceProvider",
    "SyncConfig",
    # Model
    "Item",
    "ItemType",
    "Content",
    "SyncData",
    "SyncLocation",
    "Workspace",
    "RemoteObject",
    "Change",
    "ChangeBatch",
    "Revision",
    "configure_structured_logging",
    # Content
    "serialize_content",
    "parse_content",
    # State
    "SyncDataStore",
    "WorkspaceState",
    # Remote
    "DriveClient",
    "InMemoryDrive",
    # Identity
    "Credential",
    "CredentialProvider",
    "StaticCredentialProvider",
    "ConfigFileCredentialProvider",
    # Exceptions
    "WorkspaceSyncError",
    "ConflictError",
    "AccessError",
    "ParseError",
    "NotFoundError",
    "AuthenticationRequiredError",
    "StorageIOError",
]

__version__ = "0.1.0"
