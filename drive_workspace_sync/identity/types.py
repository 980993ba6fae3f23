"""
Credential types.

A credential is the capability handed to every remote call. Token
acquisition itself happens outside of this library.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass
class Credential:
    """Access credential for the remote drive.

    Attributes:
        sub: Principal owning the credential (stored on workspaces)
        access_token: Opaque token passed to the transport
        is_drive: Whether the token was granted drive scopes
        drive_full_access: Whether the token can read files it did not create
        expiry: When the token expires (None for non-expiring tokens)
    """

    sub: str
    access_token: str | None = None
    is_drive: bool = False
    drive_full_access: bool = False
    expiry: datetime | None = None

    def is_expired(self) -> bool:
        if self.expiry is None:
            return False
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return datetime.now(UTC) >= expiry

    def has_drive_access(self) -> bool:
        """Check the capability flags required to open a workspace."""
        return self.is_drive and self.drive_full_access and not self.is_expired()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "sub": self.sub,
            "is_drive": self.is_drive,
            "drive_full_access": self.drive_full_access,
            "expiry": self.expiry.isoformat() if self.expiry else None,
            # Note: access_token intentionally excluded for security
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credential":
        """Deserialize from dictionary."""
        expiry = data.get("expiry")
        if isinstance(expiry, str):
            expiry = datetime.fromisoformat(expiry)

        return cls(
            sub=data["sub"],
            access_token=data.get("access_token"),
            is_drive=data.get("is_drive", False),
            drive_full_access=data.get("drive_full_access", False),
            expiry=expiry,
        )
