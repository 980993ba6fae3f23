"""
Shared workspace state.

Holds the known workspaces, the local settings (such as the change feed
page token) and the navigable location that lets a reload resume the
same workspace.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..protocol import Workspace
from .file_ops import read_json, write_json_atomic

WORKSPACE_STATE_FILE = "workspace_state.json"

SYNC_START_PAGE_TOKEN = "sync_start_page_token"


@dataclass
class WorkspaceState:
    """Mutable state shared with the application layer.

    Attributes:
        workspaces: Known workspaces by ID
        local_settings: Settings local to this device
        location: Location fragment, e.g. ``#providerId=...&folderId=...``
        current_workspace_id: Workspace resolved by the last bootstrap
    """

    workspaces: dict[str, Workspace] = field(default_factory=dict)
    local_settings: dict[str, Any] = field(default_factory=dict)
    location: str | None = None
    current_workspace_id: str | None = None

    @property
    def current_workspace(self) -> Workspace | None:
        if self.current_workspace_id is None:
            return None
        return self.workspaces.get(self.current_workspace_id)

    @property
    def sync_start_page_token(self) -> str | None:
        return self.local_settings.get(SYNC_START_PAGE_TOKEN)

    def get_workspace(self, workspace_id: str | None) -> Workspace | None:
        if workspace_id is None:
            return None
        return self.workspaces.get(workspace_id)

    def patch_workspaces(self, updates: Mapping[str, Workspace]) -> None:
        self.workspaces.update(updates)

    def patch_local_settings(self, updates: Mapping[str, Any]) -> None:
        self.local_settings.update(updates)

    def location_params(self) -> dict[str, str]:
        """Parse the location fragment into its parameters."""
        params: dict[str, str] = {}
        if not self.location:
            return params
        for pair in self.location.lstrip("#").split("&"):
            key, sep, value = pair.partition("=")
            if sep:
                params[key] = value
        return params

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspaces": {
                workspace_id: workspace.to_dict()
                for workspace_id, workspace in self.workspaces.items()
            },
            "local_settings": self.local_settings,
            "location": self.location,
            "current_workspace_id": self.current_workspace_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkspaceState:
        return cls(
            workspaces={
                workspace_id: Workspace.from_dict(workspace)
                for workspace_id, workspace in (data.get("workspaces") or {}).items()
            },
            local_settings=dict(data.get("local_settings") or {}),
            location=data.get("location"),
            current_workspace_id=data.get("current_workspace_id"),
        )

    @classmethod
    async def load(cls, directory: Path) -> WorkspaceState:
        data = await read_json(directory / WORKSPACE_STATE_FILE)
        return cls.from_dict(data or {})

    async def save(self, directory: Path) -> None:
        await write_json_atomic(directory / WORKSPACE_STATE_FILE, self.to_dict())
