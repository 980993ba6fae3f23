"""
Workspace bootstrap.

Establishes (or repairs) the three well-known remote folders of a
workspace and publishes the resolved Workspace into the shared state.

Remote layout:
    <root folder>            appProperties: folderId, dataFolderId, trashFolderId
      <data folder>          appProperties: folderId
      <trash folder>         appProperties: folderId

The root's ``folderId`` property always equals its own ID; a different
value means the folder belongs to another workspace.
"""

from __future__ import annotations

import logging

from ..config import SyncConfig
from ..exceptions import AccessError, ConflictError
from ..hashing import make_workspace_id
from ..identity import Credential, CredentialProvider
from ..logging_utils import WorkspaceLoggerAdapter
from ..protocol import FOLDER_MIME_TYPE, RemoteObject, Workspace
from ..remote import DriveClient
from ..state import WorkspaceState

logger = logging.getLogger(__name__)

# Property bag keys written on the root folder
WORKSPACE_PROPERTIES = ("folderId", "dataFolderId", "trashFolderId")


class WorkspaceBootstrapper:
    """Resolves a remote folder into a fully populated Workspace.

    Every step depends on the remote ID produced by the previous one, so
    the steps run strictly one after the other.
    """

    def __init__(
        self,
        drive: DriveClient,
        credentials: CredentialProvider,
        state: WorkspaceState,
        config: SyncConfig | None = None,
    ):
        self.drive = drive
        self.credentials = credentials
        self.state = state
        self.config = config or SyncConfig()

    def make_workspace_id(self, folder_id: str | None) -> str | None:
        if not folder_id:
            return None
        return make_workspace_id(self.config.provider_id, folder_id)

    def get_workspace(self, folder_id: str | None) -> Workspace | None:
        return self.state.get_workspace(self.make_workspace_id(folder_id))

    async def get_credential(self, sub: str | None) -> Credential:
        """Get a credential with full drive access for ``sub``.

        Falls back to the provider's authorization flow.
        """
        credential = await self.credentials.get_credential(sub)
        if credential is not None and credential.has_drive_access():
            return credential
        logger.info("No credential with full drive access for %s, authorizing", sub)
        return await self.credentials.authorize()

    async def resolve_workspace(
        self,
        folder_id: str | None = None,
        sub: str | None = None,
    ) -> Workspace:
        """Resolve the workspace rooted at ``folder_id``.

        Args:
            folder_id: Remote root folder, or None to create a new workspace
            sub: Principal to use when the workspace is not known yet

        Returns:
            The workspace, as stored in the shared state

        Raises:
            ConflictError: If the folder belongs to another workspace
            AccessError: If the folder cannot be read
            AuthenticationRequiredError: If no suitable credential exists
        """
        workspace = self.get_workspace(folder_id)
        # The principal is the workspace owner once the workspace is known
        credential = await self.get_credential(workspace.sub if workspace else sub)

        if not folder_id:
            folder = await self.drive.upload_file(
                credential,
                name=self.config.workspace_folder_name,
                parents=[],
                mime_type=FOLDER_MIME_TYPE,
            )
            logger.info("Created workspace folder %s", folder.id)
            folder.app_properties = {}
            await self._init_folder(credential, folder)
            folder_id = folder.id

        workspace = self.get_workspace(folder_id)
        if workspace is None:
            try:
                folder = await self.drive.get_file(credential, folder_id)
            except AccessError as e:
                raise AccessError(
                    folder_id,
                    "Make sure you have the right permissions.",
                    cause=e,
                ) from e

            claimed_by = folder.app_properties.get("folderId")
            if claimed_by and claimed_by != folder_id:
                raise ConflictError(folder_id, claimed_by)
            workspace = await self._init_folder(credential, folder)

        self.state.current_workspace_id = workspace.id
        return workspace

    async def _init_folder(self, credential: Credential, folder: RemoteObject) -> Workspace:
        """Make sure the data and trash folders exist and the root knows them."""
        log = WorkspaceLoggerAdapter(logger, {"folder_id": folder.id})
        stored = folder.app_properties
        properties = {
            "folderId": folder.id,
            "dataFolderId": stored.get("dataFolderId"),
            "trashFolderId": stored.get("trashFolderId"),
        }

        if not properties["dataFolderId"]:
            data_folder = await self._create_child_folder(
                credential, folder.id, self.config.data_folder_name
            )
            properties["dataFolderId"] = data_folder.id
            log.info("Created data folder %s", data_folder.id)

        if not properties["trashFolderId"]:
            trash_folder = await self._create_child_folder(
                credential, folder.id, self.config.trash_folder_name
            )
            properties["trashFolderId"] = trash_folder.id
            log.info("Created trash folder %s", trash_folder.id)

        # Repair workspaces left half initialized by a previous run
        if any(properties[key] != stored.get(key) for key in WORKSPACE_PROPERTIES):
            await self.drive.upload_file(
                credential,
                app_properties=properties,
                mime_type=FOLDER_MIME_TYPE,
                file_id=folder.id,
            )
            log.info("Updated workspace properties")

        fragment = f"#providerId={self.config.provider_id}&folderId={folder.id}"
        if self.state.location != fragment:
            self.state.location = fragment

        workspace_id = make_workspace_id(self.config.provider_id, folder.id)
        self.state.patch_workspaces({
            workspace_id: Workspace(
                id=workspace_id,
                sub=credential.sub,
                name=folder.name,
                provider_id=self.config.provider_id,
                url=self.config.resolve_url(fragment),
                folder_id=folder.id,
                data_folder_id=properties["dataFolderId"],
                trash_folder_id=properties["trashFolderId"],
            ),
        })
        return self.state.workspaces[workspace_id]

    async def _create_child_folder(
        self,
        credential: Credential,
        folder_id: str,
        name: str,
    ) -> RemoteObject:
        return await self.drive.upload_file(
            credential,
            name=name,
            parents=[folder_id],
            app_properties={"folderId": folder_id},
            mime_type=FOLDER_MIME_TYPE,
        )
