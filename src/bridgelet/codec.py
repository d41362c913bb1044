"""Sweep message codec.

The digest built here is the only byte-exact compatibility surface between the
off-chain signer and the sweep controller:

    encode(destination) || u64be(nonce) || encode(controller_id) || u64be(timestamp)

followed by one pass of SHA-256. Addresses are encoded as a 4-byte big-endian
length prefix and their UTF-8 bytes, so two different (destination,
controller) pairs can never produce the same byte string.
"""

import hashlib
from dataclasses import dataclass

from bridgelet.errors import CodecError

DIGEST_SIZE = 32
U64_MAX = (1 << 64) - 1
MAX_ADDRESS_BYTES = 256


def _u32(x: int) -> bytes:
    if not 0 <= x < (1 << 32):
        raise CodecError(f"value out of u32 range: {x}")
    return x.to_bytes(4, "big")


def _u64(x: int) -> bytes:
    if isinstance(x, bool) or not isinstance(x, int):
        raise CodecError(f"expected integer, got {type(x).__name__}")
    if not 0 <= x <= U64_MAX:
        raise CodecError(f"value out of u64 range: {x}")
    return x.to_bytes(8, "big")


def encode_address(address: str) -> bytes:
    """Canonical byte form of a ledger address."""
    if not isinstance(address, str) or not address:
        raise CodecError("address must be a non-empty string")
    raw = address.encode("utf-8")
    if len(raw) > MAX_ADDRESS_BYTES:
        raise CodecError(f"address longer than {MAX_ADDRESS_BYTES} bytes")
    return _u32(len(raw)) + raw


def encode_sweep_message(
    destination: str,
    nonce: int,
    controller_id: str,
    timestamp: int,
) -> bytes:
    """Build the canonical sweep message bytes."""
    return (
        encode_address(destination)
        + _u64(nonce)
        + encode_address(controller_id)
        + _u64(timestamp)
    )


def sweep_digest(destination: str, nonce: int, controller_id: str, timestamp: int) -> bytes:
    """Hash the canonical sweep message into the 32-byte digest that gets signed."""
    message = encode_sweep_message(destination, nonce, controller_id, timestamp)
    return hashlib.sha256(message).digest()


@dataclass(frozen=True)
class SweepMessage:
    """A sweep authorization request, rebuilt fresh on every verification."""

    destination: str
    nonce: int
    controller_id: str
    timestamp: int

    def to_bytes(self) -> bytes:
        return encode_sweep_message(
            self.destination, self.nonce, self.controller_id, self.timestamp
        )

    def digest(self) -> bytes:
        return hashlib.sha256(self.to_bytes()).digest()

    def digest_hex(self) -> str:
        return self.digest().hex()
