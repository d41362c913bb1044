"""Tests for key handling and off-chain sweep signing."""

import base64

import pytest

from bridgelet.codec import SweepMessage
from bridgelet.config import get_settings
from bridgelet.crypto import (
    decode_public_key,
    generate_keypair,
    load_private_key,
    public_key_bytes,
    verify_signature,
)
from bridgelet.errors import ConfigurationError
from bridgelet.signing import (
    LocalSigner,
    SignerType,
    SigningError,
    SweepAuthorizer,
    get_signer,
    reset_signer,
)
from bridgelet.signing.factory import get_signer_info

from tests.conftest import CONTROLLER_ID, START_TIMESTAMP


class TestCrypto:
    """Tests for Ed25519 helpers."""

    def test_generate_keypair(self):
        private_hex, public_hex = generate_keypair()

        key = load_private_key(private_hex)
        assert public_key_bytes(key).hex() == public_hex

    def test_load_private_key_accepts_prefix(self):
        private_hex, public_hex = generate_keypair()

        key = load_private_key("0x" + private_hex)
        assert public_key_bytes(key).hex() == public_hex

    @pytest.mark.parametrize("value", ["", "zz" * 32, "11" * 31, "11" * 33])
    def test_load_private_key_rejects(self, value):
        with pytest.raises(ValueError):
            load_private_key(value)

    def test_decode_public_key_hex_and_base64(self):
        _, public_hex = generate_keypair()
        raw = bytes.fromhex(public_hex)

        assert decode_public_key(public_hex) == raw
        assert decode_public_key("0x" + public_hex) == raw
        encoded = base64.urlsafe_b64encode(raw).decode().rstrip("=")
        assert decode_public_key(encoded) == raw

    def test_decode_public_key_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            decode_public_key("11" * 16)

    def test_verify_signature(self):
        signer = LocalSigner.generate()
        key = signer._get_key()
        signature = key.sign(b"message")

        assert verify_signature(public_key_bytes(key), b"message", signature)
        assert not verify_signature(public_key_bytes(key), b"other", signature)
        assert not verify_signature(b"\x00" * 31, b"message", signature)


class TestLocalSigner:
    """Tests for the in-memory signer backend."""

    @pytest.mark.asyncio
    async def test_sign_digest(self):
        signer = LocalSigner.generate()
        digest = SweepMessage("GDEST", 0, CONTROLLER_ID, START_TIMESTAMP).digest()

        result = await signer.sign_digest(digest)

        assert result.success
        assert len(result.signature) == 64
        assert result.signature_hex == result.signature.hex()
        assert result.public_key == await signer.get_public_key()
        assert verify_signature(result.public_key, digest, result.signature)

    @pytest.mark.asyncio
    async def test_from_hex_is_deterministic(self):
        private_hex, public_hex = generate_keypair()
        signer = LocalSigner.from_hex(private_hex)
        digest = b"\x07" * 32

        first = await signer.sign_digest(digest)
        second = await LocalSigner.from_hex(private_hex).sign_digest(digest)

        assert (await signer.get_public_key()).hex() == public_hex
        assert first.signature == second.signature

    @pytest.mark.asyncio
    @pytest.mark.parametrize("digest", [b"", b"\x00" * 31, b"\x00" * 33, "00" * 32])
    async def test_rejects_non_digest(self, digest):
        result = await LocalSigner.generate().sign_digest(digest)

        assert not result.success
        assert result.signature is None
        assert result.signature_hex == ""
        assert "32 bytes" in result.error

    @pytest.mark.asyncio
    async def test_signer_without_key(self):
        signer = LocalSigner()

        assert await signer.health_check() is False
        result = await signer.sign_digest(b"\x00" * 32)
        assert not result.success
        with pytest.raises(SigningError):
            await signer.get_public_key()

    def test_repr(self):
        assert repr(LocalSigner()) == "LocalSigner(type=local)"
        assert LocalSigner().signer_type == SignerType.LOCAL


class TestSignerFactory:
    """Tests for the settings-driven signer factory."""

    @pytest.fixture(autouse=True)
    def reset(self):
        reset_signer()
        yield
        get_settings.cache_clear()
        reset_signer()

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            get_signer()

    def test_invalid_key(self, monkeypatch):
        monkeypatch.setenv("SIGNER_PRIVATE_KEY", "not-hex")
        get_settings.cache_clear()

        with pytest.raises(ConfigurationError):
            get_signer()

    @pytest.mark.asyncio
    async def test_configured_key(self, monkeypatch):
        private_hex, public_hex = generate_keypair()
        monkeypatch.setenv("SIGNER_PRIVATE_KEY", private_hex)
        get_settings.cache_clear()

        signer = get_signer()

        assert get_signer() is signer
        info = await get_signer_info()
        assert info == {
            "type": "local",
            "healthy": True,
            "class": "LocalSigner",
            "public_key": public_hex,
        }


class TestSweepAuthorizer:
    """Tests for building signed sweep authorizations."""

    @pytest.mark.asyncio
    async def test_authorize_uses_controller_state(self, clock, controller, signer):
        await controller.initialize(await signer.get_public_key())

        authorization = await SweepAuthorizer(signer, controller).authorize("GDEST")

        assert authorization.message == SweepMessage(
            "GDEST", 0, CONTROLLER_ID, clock.timestamp()
        )
        assert authorization.digest == authorization.message.digest()
        assert verify_signature(
            await signer.get_public_key(), authorization.digest, authorization.signature
        )

    @pytest.mark.asyncio
    async def test_authorized_sweep_executes(self, ledger, controller, signer, funded_account):
        await controller.initialize(await signer.get_public_key())
        authorizer = SweepAuthorizer(signer, controller)

        authorization = await authorizer.authorize("GDEST")
        receipt = await controller.execute_sweep(
            funded_account, "GDEST", authorization.signature
        )

        assert receipt.nonce == 0
        following = await authorizer.authorize("GDEST")
        assert following.message.nonce == 1

    @pytest.mark.asyncio
    async def test_explicit_fields(self, controller, signer):
        authorization = await SweepAuthorizer(signer, controller).authorize(
            "GDEST", timestamp=42, nonce=9
        )

        assert authorization.message.timestamp == 42
        assert authorization.message.nonce == 9

    @pytest.mark.asyncio
    async def test_signer_failure_raises(self, controller):
        with pytest.raises(SigningError):
            await SweepAuthorizer(LocalSigner(), controller).authorize("GDEST")
