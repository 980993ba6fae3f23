"""
Data model shared by every sync component.

Local side: Item, Content, SyncLocation, Workspace.
Ledger: SyncData.
Remote side: RemoteObject, RemoteChange, ChangeFeedPage, RemoteRevision.
Engine output: Change, ChangeBatch, Revision.

Local state is serialized with snake_case keys. Anything written to the
remote provider (item JSON, property bags) uses the camelCase keys other
clients of the same workspace expect.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .hashing import get_item_hash

# Mime type the provider uses to mark folders
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Local parent ID standing for the provider's trash folder
TRASH_PARENT_ID = "trash"

# Truthy hash forcing a content change to be saved and downloaded
CONTENT_HASH_SENTINEL = 1


class ItemType(Enum):
    """Type of a local item."""

    FILE = "file"
    FOLDER = "folder"
    DATA = "data"
    CONTENT = "content"

    @property
    def is_tree_node(self) -> bool:
        """Files and folders are mirrored as regular remote objects."""
        return self in (ItemType.FILE, ItemType.FOLDER)


@dataclass
class Item:
    """A local entity of the document tree.

    Attributes:
        id: Stable, provider independent identifier
        type: Item type
        name: Display name (files and folders)
        parent_id: Parent item ID, ``"trash"`` or None for the root
        hash: Content derived hash
        data: Any additional payload fields (data items)
    """

    id: str
    type: ItemType
    name: str | None = None
    parent_id: str | None = None
    hash: int = 0
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire dictionary shared with other clients."""
        result: dict[str, Any] = {"id": self.id, "type": self.type.value}
        if self.name is not None:
            result["name"] = self.name
        if self.type.is_tree_node:
            result["parentId"] = self.parent_id
        result.update(self.data)
        result["hash"] = self.hash
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Create from a wire dictionary.

        Raises:
            KeyError: If ``id`` or ``type`` is missing
            ValueError: If ``type`` is not a known item type
        """
        extra = {
            key: value
            for key, value in data.items()
            if key not in ("id", "type", "name", "parentId", "hash")
        }
        return cls(
            id=data["id"],
            type=ItemType(data["type"]),
            name=data.get("name"),
            parent_id=data.get("parentId"),
            hash=data.get("hash") or 0,
            data=extra,
        )

    def with_hash(self) -> Item:
        """Return a copy whose hash is computed from its other fields."""
        return replace(self, hash=get_item_hash(self.to_dict()))


@dataclass
class Content:
    """Body of a file item, stored as the media of the remote file."""

    id: str | None
    text: str = ""
    properties: str = "\n"
    discussions: dict[str, Any] = field(default_factory=dict)
    comments: dict[str, Any] = field(default_factory=dict)
    hash: int = 0

    @property
    def type(self) -> ItemType:
        return ItemType.CONTENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (the form that gets hashed)."""
        result: dict[str, Any] = {
            "type": ItemType.CONTENT.value,
            "text": self.text,
            "properties": self.properties,
            "discussions": self.discussions,
            "comments": self.comments,
            "hash": self.hash,
        }
        if self.id is not None:
            result["id"] = self.id
        return result

    def with_hash(self) -> Content:
        """Return a copy whose hash is computed from its other fields."""
        return replace(self, hash=get_item_hash(self.to_dict()))


@dataclass
class SyncData:
    """Ledger entry mapping a remote object to the local item it represents.

    Attributes:
        id: Remote object ID, or ``{remote_id}/content`` for file content
        item_id: Local item ID
        type: Local item type
        hash: Last known hash of what was transferred
    """

    id: str
    item_id: str
    type: ItemType
    hash: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for persistence."""
        return {
            "id": self.id,
            "item_id": self.item_id,
            "type": self.type.value,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncData:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            item_id=data["item_id"],
            type=ItemType(data["type"]),
            hash=data.get("hash", 0),
        )


@dataclass(frozen=True)
class SyncLocation:
    """Where the content of a file item is synchronized."""

    file_id: str
    provider_id: str | None = None


@dataclass
class Workspace:
    """Logical sync root bound to one remote folder and its data/trash folders."""

    id: str
    sub: str
    name: str
    provider_id: str
    url: str
    folder_id: str
    data_folder_id: str
    trash_folder_id: str

    @property
    def own_folder_ids(self) -> tuple[str, str, str]:
        return (self.folder_id, self.data_folder_id, self.trash_folder_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for persistence."""
        return {
            "id": self.id,
            "sub": self.sub,
            "name": self.name,
            "provider_id": self.provider_id,
            "url": self.url,
            "folder_id": self.folder_id,
            "data_folder_id": self.data_folder_id,
            "trash_folder_id": self.trash_folder_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workspace:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            sub=data["sub"],
            name=data["name"],
            provider_id=data["provider_id"],
            url=data["url"],
            folder_id=data["folder_id"],
            data_folder_id=data["data_folder_id"],
            trash_folder_id=data["trash_folder_id"],
        )


@dataclass
class RemoteObject:
    """Opaque record of the remote provider.

    ``app_properties`` is the only place where local identity
    (``id``, ``folderId``, ...) can be attached to a remote object.
    """

    id: str
    name: str
    parents: list[str] = field(default_factory=list)
    app_properties: dict[str, str] = field(default_factory=dict)
    mime_type: str | None = None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE


@dataclass
class RemoteChange:
    """One entry of the provider change feed.

    ``file`` is None when the object was removed.
    """

    file_id: str
    file: RemoteObject | None = None


@dataclass
class ChangeFeedPage:
    """Result of polling the change feed from a page token."""

    changes: list[RemoteChange]
    start_page_token: str


@dataclass
class RemoteRevision:
    """Historical version of a remote object as reported by the provider."""

    id: str
    modified_time: datetime
    principal: str | None = None


@dataclass
class Revision:
    """Historical version of a synchronized item.

    Attributes:
        id: Provider revision ID
        sub: Principal who authored the revision, if known
        created: Creation time in milliseconds since the epoch
    """

    id: str
    sub: str | None
    created: int


@dataclass
class Change:
    """A classified change ready to be applied locally.

    An upsert carries the derived ``item`` and ``sync_data``; a removal
    carries neither.
    """

    sync_data_id: str
    item: Item | None = None
    sync_data: SyncData | None = None
    remote_object: RemoteObject | None = None

    @property
    def is_removal(self) -> bool:
        return self.item is None


@dataclass
class ChangeBatch:
    """Ordered changes produced by one poll, with the token to resume from."""

    changes: list[Change] = field(default_factory=list)
    start_page_token: str | None = None

    def __iter__(self) -> Iterator[Change]:
        return iter(self.changes)

    def __len__(self) -> int:
        return len(self.changes)
