"""
Remote drive transport interface.

The concrete HTTP protocol of the provider is opaque to the engine: it
only depends on this capability contract.
"""

from __future__ import annotations

from typing import Protocol

from ..identity import Credential
from ..protocol import ChangeFeedPage, RemoteObject, RemoteRevision


class DriveClient(Protocol):
    """Protocol for remote drive operations.

    Implementations raise ``AccessError`` when an object is missing or
    unreadable. Any other transport failure propagates unmodified.
    """

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
        """Create an object, or update the given fields of ``file_id``.

        Fields left to None are not changed on update. Property bags are
        merged key by key.
        """
        ...

    async def get_file(self, credential: Credential, file_id: str) -> RemoteObject: ...

    async def remove_file(self, credential: Credential, file_id: str) -> None: ...

    async def download_file(self, credential: Credential, file_id: str) -> bytes: ...

    async def get_changes(
        self,
        credential: Credential,
        page_token: str | None,
        include_removed: bool = True,
    ) -> ChangeFeedPage:
        """List changes since ``page_token`` (None means from the beginning)."""
        ...

    async def get_file_revisions(
        self,
        credential: Credential,
        file_id: str,
    ) -> list[RemoteRevision]: ...

    async def download_file_revision(
        self,
        credential: Credential,
        file_id: str,
        revision_id: str,
    ) -> bytes: ...
