"""
Local sync state.

The sync data ledger and the shared workspace state, both persisted as
JSON files with atomic writes.
"""

from .sync_data import SyncDataStore
from .workspace_state import SYNC_START_PAGE_TOKEN, WorkspaceState

__all__ = [
    "SyncDataStore",
    "WorkspaceState",
    "SYNC_START_PAGE_TOKEN",
]
