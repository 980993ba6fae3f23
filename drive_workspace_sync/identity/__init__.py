"""
Credential management for workspace sync.

Provides the credential type handed to the remote transport and the
providers that look credentials up.
"""

from ..exceptions import AuthenticationRequiredError
from .config_provider import ConfigFileCredentialProvider
from .provider import CredentialProvider, StaticCredentialProvider
from .types import Credential

__all__ = [
    # Types
    "Credential",
    # Errors
    "AuthenticationRequiredError",
    # Providers
    "CredentialProvider",
    "StaticCredentialProvider",
    "ConfigFileCredentialProvider",
]
