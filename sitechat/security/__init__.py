"""Secret handling."""

from sitechat.security.vault import (
    AuthenticationFailure,
    CredentialVault,
    MalformedEnvelope,
    VaultError,
    VaultNotConfigured,
)

__all__ = [
    "AuthenticationFailure",
    "CredentialVault",
    "MalformedEnvelope",
    "VaultError",
    "VaultNotConfigured",
]
