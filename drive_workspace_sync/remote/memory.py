"""
In-memory drive.

Reference implementation of the transport contract, used by tests and
for offline development. Mirrors the provider semantics the engine
relies on:
- the change feed reports each object once per poll, in the order of
  its latest change, with its current state (None once removed)
- every media write creates a revision
- page tokens are opaque strings
"""

from __future__ import annotations

import copy
import itertools
import logging
from datetime import UTC, datetime

from ..exceptions import AccessError
from ..identity import Credential
from ..protocol import (
    FOLDER_MIME_TYPE,
    ChangeFeedPage,
    RemoteChange,
    RemoteObject,
    RemoteRevision,
)

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "text/plain"


class InMemoryDrive:
    """Drive keeping objects, bodies, revisions and a change log in memory.

    Attributes:
        forbidden: Object IDs that raise AccessError when touched
        write_count: Number of remote mutations (uploads and removals)
    """

    def __init__(self) -> None:
        self._objects: dict[str, RemoteObject] = {}
        self._bodies: dict[str, bytes] = {}
        self._revisions: dict[str, list[tuple[RemoteRevision, bytes]]] = {}
        self._log: list[str] = []
        self._ids = itertools.count(1)
        self._revision_ids = itertools.count(1)
        self.forbidden: set[str] = set()
        self.write_count = 0

    # =========================================================================
    # Test helpers
    # =========================================================================

    def seed(
        self,
        remote: RemoteObject,
        body: bytes | None = None,
        record_change: bool = False,
    ) -> RemoteObject:
        """Store an object without counting it as a write."""
        self._objects[remote.id] = copy.deepcopy(remote)
        if body is not None:
            self._bodies[remote.id] = body
        if record_change:
            self._log.append(remote.id)
        return remote

    def record_removal(self, file_id: str) -> None:
        """Drop an object as if another client had deleted it."""
        self._objects.pop(file_id, None)
        self._bodies.pop(file_id, None)
        self._log.append(file_id)

    def object(self, file_id: str) -> RemoteObject | None:
        remote = self._objects.get(file_id)
        return copy.deepcopy(remote) if remote else None

    def body(self, file_id: str) -> bytes | None:
        return self._bodies.get(file_id)

    @property
    def page_token(self) -> str:
        return str(len(self._log))

    # =========================================================================
    # DriveClient
    # =========================================================================

    def _check_access(self, file_id: str) -> RemoteObject:
        if file_id in self.forbidden:
            raise AccessError(file_id, "Permission denied.")
        remote = self._objects.get(file_id)
        if remote is None:
            raise AccessError(file_id, "File not found.")
        return remote

    async def upload_file(
        self,
        credential: Credential,
        name: str | None = None,
        parents: list[str] | None = None,
        app_properties: dict[str, str] | None = None,
        media: bytes | None = None,
        mime_type: str | None = None,
        file_id: str | None = None,
    ) -> RemoteObject:
        if file_id is None:
            remote = RemoteObject(
                id=f"remote-{next(self._ids)}",
                name=name or "Untitled",
                parents=list(parents or []),
                app_properties=dict(app_properties or {}),
                mime_type=mime_type or DEFAULT_MIME_TYPE,
            )
            self._objects[remote.id] = remote
        else:
            remote = self._check_access(file_id)
            if name is not None:
                remote.name = name
            if parents is not None:
                remote.parents = list(parents)
            if app_properties is not None:
                remote.app_properties.update(app_properties)
            if mime_type is not None:
                remote.mime_type = mime_type

        if media is not None:
            if remote.mime_type == FOLDER_MIME_TYPE:
                raise ValueError(f"Folder {remote.id} cannot hold media")
            self._bodies[remote.id] = media
            revision = RemoteRevision(
                id=str(next(self._revision_ids)),
                modified_time=datetime.now(UTC),
                principal=credential.sub,
            )
            self._revisions.setdefault(remote.id, []).append((revision, media))

        self.write_count += 1
        self._log.append(remote.id)
        logger.debug("Uploaded %s", remote.id)
        return copy.deepcopy(remote)

    async def get_file(self, credential: Credential, file_id: str) -> RemoteObject:
        return copy.deepcopy(self._check_access(file_id))

    async def remove_file(self, credential: Credential, file_id: str) -> None:
        self._check_access(file_id)
        del self._objects[file_id]
        self._bodies.pop(file_id, None)
        self.write_count += 1
        self._log.append(file_id)
        logger.debug("Removed %s", file_id)

    async def download_file(self, credential: Credential, file_id: str) -> bytes:
        self._check_access(file_id)
        return self._bodies.get(file_id, b"")

    async def get_changes(
        self,
        credential: Credential,
        page_token: str | None,
        include_removed: bool = True,
    ) -> ChangeFeedPage:
        start = int(page_token) if page_token else 0
        latest: dict[str, int] = {}
        for position, file_id in enumerate(self._log[start:]):
            latest[file_id] = position

        changes = []
        for file_id in sorted(latest, key=latest.__getitem__):
            remote = self._objects.get(file_id)
            if remote is None and not include_removed:
                continue
            changes.append(RemoteChange(file_id=file_id, file=copy.deepcopy(remote)))

        return ChangeFeedPage(changes=changes, start_page_token=self.page_token)

    async def get_file_revisions(
        self,
        credential: Credential,
        file_id: str,
    ) -> list[RemoteRevision]:
        self._check_access(file_id)
        return [copy.deepcopy(revision) for revision, _ in self._revisions.get(file_id, [])]

    async def download_file_revision(
        self,
        credential: Credential,
        file_id: str,
        revision_id: str,
    ) -> bytes:
        self._check_access(file_id)
        for revision, body in self._revisions.get(file_id, []):
            if revision.id == revision_id:
                return body
        raise AccessError(file_id, f"Revision {revision_id} not found.")
