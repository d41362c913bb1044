"""Signer factory.

Creates the signing backend described by the application settings.
"""

import logging
from typing import Optional

from bridgelet.config import get_settings
from bridgelet.errors import ConfigurationError
from bridgelet.signing.base import SignerBackend
from bridgelet.signing.local import LocalSigner

logger = logging.getLogger(__name__)

_signer_instance: Optional[SignerBackend] = None


def get_signer() -> SignerBackend:
    """Get the configured signer instance (singleton).

    Raises:
        ConfigurationError: If no signing key is configured or it is malformed
    """
    global _signer_instance

    if _signer_instance is not None:
        return _signer_instance

    settings = get_settings()
    if not settings.has_signer:
        raise ConfigurationError("SIGNER_PRIVATE_KEY is not configured")

    try:
        _signer_instance = LocalSigner.from_hex(settings.signer_private_key)
    except ValueError as e:
        raise ConfigurationError(f"Invalid SIGNER_PRIVATE_KEY: {e}") from e

    logger.info("Initialized local sweep signer")
    return _signer_instance


def reset_signer() -> None:
    """Reset the signer instance (for testing)."""
    global _signer_instance
    _signer_instance = None


async def get_signer_info() -> dict:
    """Get information about the current signer configuration."""
    signer = get_signer()
    health = await signer.health_check()
    public_key = await signer.get_public_key()

    return {
        "type": signer.signer_type.value,
        "healthy": health,
        "class": signer.__class__.__name__,
        "public_key": public_key.hex(),
    }
