"""Off-chain sweep signing.

Provides:
- LocalSigner: Ed25519 key held in memory
- SweepAuthorizer: builds and signs sweep digests from controller state
"""

from bridgelet.signing.authorizer import SweepAuthorization, SweepAuthorizer
from bridgelet.signing.base import (
    KeyNotFoundError,
    SignatureResult,
    SignerBackend,
    SignerType,
    SigningError,
)
from bridgelet.signing.factory import get_signer, reset_signer
from bridgelet.signing.local import LocalSigner

__all__ = [
    "KeyNotFoundError",
    "SignatureResult",
    "SignerBackend",
    "SignerType",
    "SigningError",
    "LocalSigner",
    "SweepAuthorization",
    "SweepAuthorizer",
    "get_signer",
    "reset_signer",
]
