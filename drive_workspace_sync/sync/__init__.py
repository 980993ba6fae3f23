"""
Workspace synchronization.

Bootstrap, change feed processing, hash-gated transfers and revision
history for one drive workspace.
"""

from .changes import ChangeFeedProcessor
from .provider import DriveWorkspaceProvider
from .revisions import RevisionReader
from .transfer import DeadlinePredicate, ItemLookup, TransferEngine
from .workspace import WorkspaceBootstrapper

__all__ = [
    "DriveWorkspaceProvider",
    "WorkspaceBootstrapper",
    "ChangeFeedProcessor",
    "TransferEngine",
    "RevisionReader",
    "DeadlinePredicate",
    "ItemLookup",
]
