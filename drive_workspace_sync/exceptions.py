"""
Custom exceptions for workspace synchronization.

All engine components raise these exceptions so callers can
distinguish fatal workspace problems from per-entry issues.
"""


class WorkspaceSyncError(Exception):
    """Base exception for all workspace sync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConflictError(WorkspaceSyncError):
    """Raised when a remote folder is already claimed by another workspace."""

    def __init__(self, folder_id: str, claimed_by: str | None = None):
        details = {"folder_id": folder_id}
        if claimed_by:
            details["claimed_by"] = claimed_by
        super().__init__(f"Drive folder {folder_id} is part of another workspace.", details)
        self.folder_id = folder_id
        self.claimed_by = claimed_by


class AccessError(WorkspaceSyncError):
    """Raised when a remote object cannot be read (missing or forbidden)."""

    def __init__(self, remote_id: str, reason: str | None = None, cause: Exception | None = None):
        details = {"remote_id": remote_id}
        if reason:
            details["reason"] = reason
        if cause:
            details["cause"] = str(cause)
        message = f"Object {remote_id} is not accessible."
        if reason:
            message += f" {reason}"
        super().__init__(message, details)
        self.remote_id = remote_id
        self.reason = reason
        self.cause = cause


class ParseError(WorkspaceSyncError):
    """Raised when a remote payload cannot be decoded into an item."""

    def __init__(self, remote_id: str, reason: str):
        super().__init__(
            f"Malformed payload for {remote_id}: {reason}",
            {"remote_id": remote_id, "reason": reason},
        )
        self.remote_id = remote_id
        self.reason = reason


class NotFoundError(WorkspaceSyncError):
    """Raised when no sync data maps the requested item."""

    def __init__(self, item_id: str):
        super().__init__(f"No sync data for item: {item_id}", {"item_id": item_id})
        self.item_id = item_id


class AuthenticationRequiredError(WorkspaceSyncError):
    """Raised when no credential with the required capabilities is available."""

    def __init__(self, sub: str | None = None, reason: str = "Authentication required"):
        details = {"reason": reason}
        if sub:
            details["sub"] = sub
        super().__init__(reason, details)
        self.sub = sub
        self.reason = reason


class StorageIOError(WorkspaceSyncError):
    """Raised when a local state file operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause
