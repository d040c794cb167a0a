"""
Credential Vault

Authenticated symmetric encryption for secrets at rest (target database URIs,
vector-store / system-database credentials).

Envelope format (all parts hex-encoded):

    <iv>:<ciphertext>:<tag>

The IV is 16 random bytes per call and the tag is the 16-byte GCM tag.
The 256-bit key is SHA-256 of the master secret, derived once per vault.
"""

from __future__ import annotations

import hashlib
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import SecretStr

logger = logging.getLogger(__name__)

IV_BYTES = 16
TAG_BYTES = 16
_SEPARATOR = ":"


class VaultError(Exception):
    """Base exception for vault errors."""

    pass


class VaultNotConfigured(VaultError):
    """No master secret is available to derive the key from."""

    pass


class MalformedEnvelope(VaultError):
    """Ciphertext is not a well-formed ``iv:ciphertext:tag`` envelope."""

    pass


class AuthenticationFailure(VaultError):
    """Tag check failed: the envelope was tampered with or sealed under another key."""

    pass


class CredentialVault:
    """
    Encrypt and decrypt secrets with AES-256-GCM.

    The key is derived lazily on first use so that a missing master secret
    surfaces as ``VaultNotConfigured`` at the first vault operation rather
    than at construction time.

    Usage:
        vault = CredentialVault(master_secret="...")
        envelope = vault.encrypt("postgresql://user:pass@db/app")
        uri = vault.decrypt(envelope)
    """

    def __init__(self, master_secret: str | SecretStr | None = None) -> None:
        if isinstance(master_secret, SecretStr):
            master_secret = master_secret.get_secret_value()
        self._master_secret = master_secret or None
        self._cipher: AESGCM | None = None

    @property
    def is_configured(self) -> bool:
        return self._master_secret is not None

    def encrypt(self, plaintext: str) -> str:
        """Seal ``plaintext`` into a fresh envelope."""
        cipher = self._ensure_cipher()
        iv = os.urandom(IV_BYTES)
        sealed = cipher.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return _SEPARATOR.join((iv.hex(), ciphertext.hex(), tag.hex()))

    def decrypt(self, envelope: str) -> str:
        """
        Open an envelope produced by :meth:`encrypt`.

        Raises:
            VaultNotConfigured: If no master secret is set
            MalformedEnvelope: If the envelope does not have exactly three hex parts
            AuthenticationFailure: If the tag does not verify
        """
        cipher = self._ensure_cipher()
        iv, ciphertext, tag = self._split(envelope)
        try:
            plaintext = cipher.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as exc:
            logger.error("Vault envelope failed authentication")
            raise AuthenticationFailure("Envelope authentication failed.") from exc
        return plaintext.decode("utf-8")

    @staticmethod
    def _split(envelope: str) -> tuple[bytes, bytes, bytes]:
        parts = envelope.split(_SEPARATOR)
        if len(parts) != 3:
            raise MalformedEnvelope(
                f"Expected iv:ciphertext:tag, got {len(parts)} part(s)."
            )
        try:
            iv, ciphertext, tag = (bytes.fromhex(part) for part in parts)
        except ValueError as exc:
            raise MalformedEnvelope("Envelope parts must be hex-encoded.") from exc
        if len(iv) != IV_BYTES or len(tag) != TAG_BYTES:
            raise MalformedEnvelope("Envelope IV or tag has the wrong length.")
        return iv, ciphertext, tag

    def _ensure_cipher(self) -> AESGCM:
        if self._cipher is not None:
            return self._cipher
        if not self._master_secret:
            raise VaultNotConfigured(
                "VAULT_MASTER_SECRET must be set to encrypt or decrypt stored credentials."
            )
        key = hashlib.sha256(self._master_secret.encode("utf-8")).digest()
        self._cipher = AESGCM(key)
        return self._cipher
