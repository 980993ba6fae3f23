"""
Revision history of synchronized files.

Runs on demand, independently of the sync cycle.
"""

from __future__ import annotations

from ..content import decode_body, parse_content
from ..exceptions import NotFoundError
from ..identity import Credential
from ..protocol import Content, Revision, SyncData, SyncLocation
from ..remote import DriveClient
from ..state import SyncDataStore


class RevisionReader:
    """Lists and fetches historical versions of a file's remote object."""

    def __init__(self, drive: DriveClient, credential: Credential, sync_data: SyncDataStore):
        self.drive = drive
        self.credential = credential
        self.sync_data = sync_data

    def _require_sync_data(self, file_id: str) -> SyncData:
        sync_data = self.sync_data.get_by_item_id(file_id)
        if sync_data is None:
            raise NotFoundError(file_id)
        return sync_data

    async def list_revisions(self, file_id: str) -> list[Revision]:
        """List the revisions of a file, as reported by the provider.

        Raises:
            NotFoundError: If the file was never synced
        """
        sync_data = self._require_sync_data(file_id)
        revisions = await self.drive.get_file_revisions(self.credential, sync_data.id)
        return [
            Revision(
                id=revision.id,
                sub=revision.principal,
                created=int(revision.modified_time.timestamp() * 1000),
            )
            for revision in revisions
        ]

    async def get_revision_content(self, file_id: str, revision_id: str) -> Content:
        """Fetch and parse the content of one revision.

        Raises:
            NotFoundError: If the file was never synced
            ParseError: If the revision body is not valid UTF-8
        """
        sync_data = self._require_sync_data(file_id)
        body = await self.drive.download_file_revision(
            self.credential, sync_data.id, revision_id
        )
        return parse_content(decode_body(sync_data.id, body), SyncLocation(file_id))
