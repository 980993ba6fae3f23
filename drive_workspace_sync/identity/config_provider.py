"""
Config file credential provider.

Reads credentials from a local settings file for development and
headless usage.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import AuthenticationRequiredError
from .provider import CredentialProvider
from .types import Credential

logger = logging.getLogger(__name__)


class ConfigFileCredentialProvider(CredentialProvider):
    """Credential provider that reads from local config.

    Configuration in ~/.drive-workspace/settings.yaml:

    ```yaml
    credentials:
      "1234567890":
        access_token: "ya29..."
        is_drive: true
        drive_full_access: true
        expiry: "2030-01-01T00:00:00+00:00"
    ```

    There is no interactive flow: ``authorize`` only succeeds when one of
    the configured credentials already has full drive access.
    """

    def __init__(self, config_path: Path | None = None):
        """Initialize the config file provider.

        Args:
            config_path: Path to settings.yaml. Defaults to ~/.drive-workspace/settings.yaml
        """
        self.config_path = config_path or Path.home() / ".drive-workspace" / "settings.yaml"
        self._credentials: dict[str, Credential] | None = None

    def _load_credentials(self) -> dict[str, Credential]:
        if self._credentials is not None:
            return self._credentials

        section: dict[str, Any] = self._load_config().get("credentials") or {}
        credentials = {}
        for sub, entry in section.items():
            try:
                credentials[str(sub)] = Credential.from_dict({**(entry or {}), "sub": str(sub)})
            except (TypeError, ValueError) as e:
                logger.warning("Skipping invalid credential entry %s: %s", sub, e)
        self._credentials = credentials
        return credentials

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            return yaml.safe_load(self.config_path.read_text()) or {}
        except yaml.YAMLError as e:
            logger.warning("Could not read %s: %s", self.config_path, e)
            return {}

    async def get_credential(self, sub: str | None) -> Credential | None:
        if sub is None:
            return None
        return self._load_credentials().get(sub)

    async def authorize(self) -> Credential:
        for credential in self._load_credentials().values():
            if credential.has_drive_access():
                return credential
        raise AuthenticationRequiredError(
            reason=f"No credential with full drive access in {self.config_path}"
        )

    def reload(self) -> None:
        """Forget cached credentials so the next lookup re-reads the file."""
        self._credentials = None
