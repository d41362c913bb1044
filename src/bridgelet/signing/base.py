"""Base interfaces for off-chain sweep signing.

Signing flow:
1. Read the controller's current nonce and identity
2. Build the sweep digest for the destination and the ledger timestamp the
   sweep will execute at
3. Submit the digest to a signer backend
4. Signer returns the signature (never the private key)
5. Submit the sweep with the signature
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bridgelet.codec import DIGEST_SIZE

logger = logging.getLogger(__name__)


class SignerType(str, Enum):
    """Type of signing backend."""
    LOCAL = "local"           # Private key in memory


@dataclass
class SignatureResult:
    """Result of signing operation.

    Attributes:
        success: Whether signing succeeded
        signature: Raw 64-byte Ed25519 signature
        public_key: Raw 32-byte public key that created the signature
        error: Error message if signing failed
    """
    success: bool
    signature: Optional[bytes] = None
    public_key: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def signature_hex(self) -> str:
        return self.signature.hex() if self.signature else ""


class SignerBackend(ABC):
    """Abstract base class for signing backends.

    Implementations should NEVER expose raw private keys.
    All signing operations return signatures only.
    """

    def __init__(self, signer_type: SignerType):
        self.signer_type = signer_type

    @abstractmethod
    async def sign_digest(self, digest: bytes) -> SignatureResult:
        """Sign a 32-byte sweep digest.

        Args:
            digest: Output of the sweep message codec

        Returns:
            SignatureResult with the signature
        """
        pass

    @abstractmethod
    async def get_public_key(self) -> bytes:
        """Raw 32-byte public key to register as the authorized signer."""
        pass

    async def health_check(self) -> bool:
        """Check if the signing backend is available.

        Returns:
            True if backend is ready to sign
        """
        return True

    @staticmethod
    def _check_digest(digest: bytes) -> None:
        if not isinstance(digest, (bytes, bytearray)) or len(digest) != DIGEST_SIZE:
            raise SigningError(f"Digest must be {DIGEST_SIZE} bytes")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.signer_type.value})"


class SigningError(Exception):
    """Exception raised when signing fails."""
    pass


class KeyNotFoundError(SigningError):
    """Exception raised when signing key is not found."""
    pass
