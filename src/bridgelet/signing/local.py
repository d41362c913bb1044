"""Local signing backend.

Uses an in-memory Ed25519 private key. Suitable for development, tests and
orchestrators that hold the sweep key themselves.

WARNING: The private key is stored in memory.
"""

import logging
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from bridgelet.crypto import load_private_key, public_key_bytes
from bridgelet.signing.base import (
    KeyNotFoundError,
    SignatureResult,
    SignerBackend,
    SignerType,
    SigningError,
)

logger = logging.getLogger(__name__)


class LocalSigner(SignerBackend):
    """Local signing backend using an in-memory Ed25519 key."""

    def __init__(self, private_key: Optional[Ed25519PrivateKey] = None):
        super().__init__(SignerType.LOCAL)
        self._key = private_key

    @classmethod
    def from_hex(cls, private_key_hex: str) -> "LocalSigner":
        """Create a signer from a hex-encoded 32-byte seed."""
        return cls(load_private_key(private_key_hex))

    @classmethod
    def generate(cls) -> "LocalSigner":
        """Create a signer with a freshly generated key."""
        return cls(Ed25519PrivateKey.generate())

    def _get_key(self) -> Ed25519PrivateKey:
        if self._key is None:
            raise KeyNotFoundError("No sweep signing key loaded")
        return self._key

    async def sign_digest(self, digest: bytes) -> SignatureResult:
        """Sign a sweep digest using the local private key."""
        try:
            self._check_digest(digest)
            key = self._get_key()
            signature = key.sign(bytes(digest))
            return SignatureResult(
                success=True,
                signature=signature,
                public_key=public_key_bytes(key),
            )
        except SigningError as e:
            return SignatureResult(success=False, error=str(e))

    async def get_public_key(self) -> bytes:
        return public_key_bytes(self._get_key())

    async def health_check(self) -> bool:
        return self._key is not None
