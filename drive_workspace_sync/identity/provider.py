"""
Credential provider abstract interface.

Defines the contract used by the workspace bootstrapper to obtain a
credential for a principal.
"""

from abc import ABC, abstractmethod

from ..exceptions import AuthenticationRequiredError
from .types import Credential


class CredentialProvider(ABC):
    """Abstract credential provider.

    The provider is responsible for:
    - Looking up known credentials by principal
    - Running (or delegating) the authorization flow when none fits
    """

    @abstractmethod
    async def get_credential(self, sub: str | None) -> Credential | None:
        """Get the known credential of a principal.

        Args:
            sub: Principal ID, or None when it is not known yet

        Returns:
            The credential, or None if none is known
        """
        ...

    @abstractmethod
    async def authorize(self) -> Credential:
        """Obtain a new credential with full drive access.

        Raises:
            AuthenticationRequiredError: If no credential can be obtained
        """
        ...


class StaticCredentialProvider(CredentialProvider):
    """Provider serving credentials registered in memory.

    Useful for embedding applications that acquire tokens themselves.
    """

    def __init__(self, credentials: list[Credential] | None = None):
        self._credentials = {credential.sub: credential for credential in credentials or []}

    def add(self, credential: Credential) -> None:
        self._credentials[credential.sub] = credential

    async def get_credential(self, sub: str | None) -> Credential | None:
        if sub is None:
            return None
        return self._credentials.get(sub)

    async def authorize(self) -> Credential:
        for credential in self._credentials.values():
            if credential.has_drive_access():
                return credential
        raise AuthenticationRequiredError(reason="No credential with full drive access")
