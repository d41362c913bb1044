"""Ed25519 key handling and signature verification.

Private keys only ever exist on the off-chain signer side; the ledger stores
the 32-byte public key and verifies against it.
"""

import base64
import logging

from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

logger = logging.getLogger(__name__)

PUBLIC_KEY_SIZE = 32
PRIVATE_KEY_SIZE = 32
SIGNATURE_SIZE = 64


def generate_keypair() -> tuple[str, str]:
    """Generate a new Ed25519 key pair.

    Returns:
        Tuple of (private_key_hex, public_key_hex)
    """
    private_key = Ed25519PrivateKey.generate()
    private_hex = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    ).hex()
    return private_hex, public_key_bytes(private_key).hex()


def public_key_bytes(private_key: Ed25519PrivateKey) -> bytes:
    """Raw 32-byte public key for a private key."""
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def load_private_key(private_key_hex: str) -> Ed25519PrivateKey:
    """Load an Ed25519 private key from its hex-encoded 32-byte seed.

    Raises:
        ValueError: If the value is not a valid 32-byte hex seed
    """
    cleaned = private_key_hex.strip().removeprefix("0x")
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError as err:
        raise ValueError(f"Invalid private key hex: {err}") from err
    if len(raw) != PRIVATE_KEY_SIZE:
        raise ValueError("Ed25519 private keys must be 32 bytes")
    return Ed25519PrivateKey.from_private_bytes(raw)


def _decode_base64(data: str) -> bytes:
    """Decode a URL-safe base64 string, accepting omitted padding."""
    padding = "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(data + padding)
    except Exception as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


def _decode_hex(data: str) -> bytes:
    try:
        return bytes.fromhex(data.removeprefix("0x"))
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err


def decode_public_key(encoded: str) -> bytes:
    """Decode a hex or base64url Ed25519 public key into its 32 raw bytes."""
    cleaned = encoded.strip()
    errors: list[str] = []
    for decoder in (_decode_hex, _decode_base64):
        try:
            result = decoder(cleaned)
        except ValueError as err:
            errors.append(str(err))
            continue
        if len(result) != PUBLIC_KEY_SIZE:
            errors.append("Ed25519 public keys must be 32 bytes")
            continue
        return result
    joined = "; ".join(errors) if errors else "unknown decoding error"
    raise ValueError(f"Invalid public key format: {joined}")


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature over raw bytes."""
    try:
        key = Ed25519PublicKey.from_public_bytes(public_key)
        key.verify(signature, message)
        return True
    except (_CryptoInvalidSignature, ValueError):
        return False
