"""
Configuration for the workspace sync engine.

Defines folder naming, location resolution and persistence settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass
class SyncConfig:
    """Configuration for a drive workspace.

    Configuration can be provided directly, via environment variables or
    via the ``sync`` section of a YAML settings file:

    ```yaml
    sync:
      provider_id: driveWorkspace
      base_url: https://notes.example.com/app
      workspace_folder_name: "My notes"
      state_path: ~/.drive-workspace
    ```

    Environment Variables:
        WORKSPACE_SYNC_PROVIDER_ID: Provider ID used in workspace IDs
        WORKSPACE_SYNC_BASE_URL: Base URL used to resolve workspace URLs
        WORKSPACE_SYNC_FOLDER_NAME: Name of newly created workspace folders
        WORKSPACE_SYNC_DATA_FOLDER_NAME: Name of the data folder
        WORKSPACE_SYNC_TRASH_FOLDER_NAME: Name of the trash folder
        WORKSPACE_SYNC_INCLUDE_REMOVED: Whether the feed reports removals (default: true)
        WORKSPACE_SYNC_STATE_PATH: Directory holding persisted state

    Attributes:
        provider_id: Identifier of this provider, part of the workspace ID
        base_url: URL the location fragment is appended to
        workspace_folder_name: Name given to a newly created root folder
        data_folder_name: Name of the folder holding data items
        trash_folder_name: Name of the folder holding trashed items
        include_removed: Ask the change feed to report removed objects
        state_path: Directory where sync data and workspace state are saved
    """

    provider_id: str = "driveWorkspace"
    base_url: str = "https://localhost/app"
    workspace_folder_name: str = "Drive workspace"
    data_folder_name: str = ".workspace-data"
    trash_folder_name: str = ".workspace-trash"
    include_removed: bool = True
    state_path: Path | None = None

    # Additional options
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.state_path, str):
            self.state_path = Path(self.state_path).expanduser()

    def resolve_url(self, fragment: str) -> str:
        """Resolve a location fragment against the base URL."""
        return f"{self.base_url.split('#', 1)[0]}{fragment}"

    @classmethod
    def from_environment(cls) -> SyncConfig:
        """Create configuration from environment variables."""
        defaults = cls()
        include_removed = os.environ.get("WORKSPACE_SYNC_INCLUDE_REMOVED", "true")
        return cls(
            provider_id=os.environ.get("WORKSPACE_SYNC_PROVIDER_ID", defaults.provider_id),
            base_url=os.environ.get("WORKSPACE_SYNC_BASE_URL", defaults.base_url),
            workspace_folder_name=os.environ.get(
                "WORKSPACE_SYNC_FOLDER_NAME", defaults.workspace_folder_name
            ),
            data_folder_name=os.environ.get(
                "WORKSPACE_SYNC_DATA_FOLDER_NAME", defaults.data_folder_name
            ),
            trash_folder_name=os.environ.get(
                "WORKSPACE_SYNC_TRASH_FOLDER_NAME", defaults.trash_folder_name
            ),
            include_removed=include_removed.lower() != "false",
            state_path=os.environ.get("WORKSPACE_SYNC_STATE_PATH"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> SyncConfig:
        """Create configuration from the ``sync`` section of a YAML file.

        A missing file or section yields the defaults. Unknown keys are
        kept in ``options``.
        """
        if not path.exists():
            return cls()

        loaded = yaml.safe_load(path.read_text()) or {}
        section: dict[str, Any] = loaded.get("sync") or {}

        known = {f.name for f in fields(cls)} - {"options"}
        kwargs = {key: value for key, value in section.items() if key in known}
        options = {key: value for key, value in section.items() if key not in known}
        return cls(**kwargs, options=options)
