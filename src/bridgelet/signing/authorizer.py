"""Off-chain construction of sweep authorizations."""

import logging
from dataclasses import dataclass
from typing import Optional

from bridgelet.codec import SweepMessage
from bridgelet.controller.sweep import SweepController
from bridgelet.signing.base import SignerBackend, SigningError

logger = logging.getLogger(__name__)


@dataclass
class SweepAuthorization:
    """A signed sweep request ready to submit to the controller."""

    message: SweepMessage
    signature: bytes

    @property
    def digest(self) -> bytes:
        return self.message.digest()


class SweepAuthorizer:
    """Builds and signs sweep digests against a controller's live state.

    The controller rebuilds the digest from the ledger timestamp at execution
    time, so ``timestamp`` must be the close time of the ledger the sweep
    will land in. When omitted, the controller ledger clock's current value
    is used.
    """

    def __init__(self, signer: SignerBackend, controller: SweepController):
        self.signer = signer
        self.controller = controller

    async def authorize(
        self,
        destination: str,
        timestamp: Optional[int] = None,
        nonce: Optional[int] = None,
    ) -> SweepAuthorization:
        """Sign a sweep of any account to ``destination``.

        Raises:
            SigningError: If the backend fails to sign
        """
        if nonce is None:
            nonce = await self.controller.get_sweep_nonce()
        if timestamp is None:
            timestamp = self.controller.ledger.clock.timestamp()

        message = SweepMessage(
            destination=destination,
            nonce=nonce,
            controller_id=self.controller.controller_id,
            timestamp=timestamp,
        )
        result = await self.signer.sign_digest(message.digest())
        if not result.success:
            raise SigningError(result.error or "signing failed")

        logger.debug(f"Authorized sweep to {destination} at nonce {nonce}, ts {timestamp}")
        return SweepAuthorization(message=message, signature=result.signature)
