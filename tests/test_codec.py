"""Tests for the sweep message codec."""

import hashlib

import pytest

from bridgelet.codec import (
    DIGEST_SIZE,
    U64_MAX,
    SweepMessage,
    encode_address,
    encode_sweep_message,
    sweep_digest,
)
from bridgelet.errors import CodecError

# destination="GDEST", nonce=0, controller="CCTRL", timestamp=1_700_000_000
KNOWN_MESSAGE_HEX = (
    "000000054744455354"
    "0000000000000000"
    "00000005434354524c"
    "000000006553f100"
)
KNOWN_DIGEST_HEX = "055f3e24833792dc97793a1142d21d317ec90e45ce7a2affefe4a53f1e179735"


class TestEncoding:
    """Byte layout of the canonical sweep message."""

    def test_known_vector(self):
        message = encode_sweep_message("GDEST", 0, "CCTRL", 1_700_000_000)
        assert message.hex() == KNOWN_MESSAGE_HEX

    def test_known_digest(self):
        digest = sweep_digest("GDEST", 0, "CCTRL", 1_700_000_000)
        assert digest.hex() == KNOWN_DIGEST_HEX
        assert len(digest) == DIGEST_SIZE

    def test_field_order(self):
        message = encode_sweep_message("D", 1, "C", 2)
        assert message == (
            b"\x00\x00\x00\x01D"
            + (1).to_bytes(8, "big")
            + b"\x00\x00\x00\x01C"
            + (2).to_bytes(8, "big")
        )

    def test_integers_are_big_endian(self):
        message = encode_sweep_message("D", 0x0102030405060708, "C", 0)
        assert message[5:13] == bytes([1, 2, 3, 4, 5, 6, 7, 8])

    def test_address_length_prefix(self):
        assert encode_address("GABC") == b"\x00\x00\x00\x04GABC"

    def test_address_utf8(self):
        assert encode_address("é") == b"\x00\x00\x00\x02\xc3\xa9"

    def test_length_prefix_prevents_boundary_shift(self):
        """Moving bytes between destination and controller changes the digest."""
        first = sweep_digest("GA", 0, "BC", 0)
        second = sweep_digest("GAB", 0, "C", 0)
        assert first != second


class TestDigestSensitivity:
    """Every field participates in the digest."""

    BASE = dict(destination="GDEST", nonce=7, controller_id="CCTRL", timestamp=1_700_000_000)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("destination", "GOTHER"),
            ("nonce", 8),
            ("controller_id", "COTHER"),
            ("timestamp", 1_700_000_001),
        ],
    )
    def test_changing_any_field_changes_digest(self, field, value):
        base = SweepMessage(**self.BASE)
        changed = SweepMessage(**{**self.BASE, field: value})
        assert base.digest() != changed.digest()

    def test_digest_is_deterministic(self):
        assert SweepMessage(**self.BASE).digest() == SweepMessage(**self.BASE).digest()

    def test_message_digest_matches_function(self):
        message = SweepMessage(**self.BASE)
        assert message.digest() == sweep_digest(**self.BASE)
        assert message.digest() == hashlib.sha256(message.to_bytes()).digest()
        assert message.digest_hex() == message.digest().hex()


class TestRangeChecks:
    """Values that cannot be encoded are rejected, not truncated."""

    def test_negative_nonce(self):
        with pytest.raises(CodecError):
            encode_sweep_message("GDEST", -1, "CCTRL", 0)

    def test_nonce_above_u64(self):
        with pytest.raises(CodecError):
            encode_sweep_message("GDEST", U64_MAX + 1, "CCTRL", 0)

    def test_u64_max_accepted(self):
        message = encode_sweep_message("GDEST", U64_MAX, "CCTRL", U64_MAX)
        assert message.endswith(b"\xff" * 8)

    def test_bool_is_not_an_integer(self):
        with pytest.raises(CodecError):
            encode_sweep_message("GDEST", True, "CCTRL", 0)

    def test_empty_address(self):
        with pytest.raises(CodecError):
            encode_address("")

    def test_oversized_address(self):
        with pytest.raises(CodecError):
            encode_address("G" * 257)
