"""Sweep controller.

Holds the authorized signer and the replay-prevention nonce of one controller
deployment and gates every sweep on a signature over::

    SHA-256(destination || nonce || controller_id || timestamp)

where nonce is the controller's current nonce and timestamp is the ledger
close time of the executing invocation. Because both are read from ledger
state rather than supplied by the caller, a signature verifies for exactly
one nonce value at exactly one timestamp.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from bridgelet.accounts.ephemeral import EphemeralAccount, SweepAuthority
from bridgelet.codec import SweepMessage
from bridgelet.config import get_settings
from bridgelet.crypto import PUBLIC_KEY_SIZE, SIGNATURE_SIZE, verify_signature
from bridgelet.errors import (
    AlreadyInitialized,
    AuthorizedSignerNotSet,
    InvalidPublicKey,
    InvalidSignature,
    SignatureVerificationFailed,
)
from bridgelet.ledger.host import Ledger
from bridgelet.ledger.models import AccountStatus
from bridgelet.transfer import AssetTransferService, LedgerTransferService
from bridgelet.utils.locks import controller_lock

logger = logging.getLogger(__name__)


@dataclass
class SweepReceipt:
    """Outcome of a successful sweep (the SweepCompleted record)."""

    account: str
    destination: str
    nonce: int
    ledger_sequence: int
    balances: dict[str, int] = field(default_factory=dict)


class SweepController:
    """Entry points of one sweep controller deployment.

    Args:
        ledger: Ledger holding controller and account state
        controller_id: Identity of this deployment (folded into digests)
        transfer_service: Executes the balance movements of a sweep
        lock_timeout: Maximum wait for the per-controller sweep lock
    """

    def __init__(
        self,
        ledger: Ledger,
        controller_id: Optional[str] = None,
        transfer_service: Optional[AssetTransferService] = None,
        lock_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.ledger = ledger
        self.controller_id = controller_id or settings.controller_id
        self.transfer_service = transfer_service or LedgerTransferService()
        self.lock_timeout = (
            lock_timeout if lock_timeout is not None else settings.sweep_lock_timeout_seconds
        )
        self._authority = SweepAuthority(self.controller_id)

    def __repr__(self) -> str:
        return f"SweepController(controller_id={self.controller_id!r})"

    async def initialize(self, authorized_signer: bytes) -> None:
        """Store the authorized signer's public key and start the nonce at 0.

        Raises:
            AlreadyInitialized: If a signer is already stored
            InvalidPublicKey: If the key is not 32 bytes
        """
        if not isinstance(authorized_signer, (bytes, bytearray)) or (
            len(authorized_signer) != PUBLIC_KEY_SIZE
        ):
            raise InvalidPublicKey(f"Authorized signer must be {PUBLIC_KEY_SIZE} bytes")

        async with self.ledger.invocation() as inv:
            if await inv.repo.get_controller_state(self.controller_id) is not None:
                raise AlreadyInitialized(
                    f"Controller {self.controller_id} already has an authorized signer"
                )
            await inv.repo.create_controller_state(self.controller_id, bytes(authorized_signer))

        logger.info(
            f"Initialized sweep controller {self.controller_id} "
            f"(signer {bytes(authorized_signer).hex()[:16]}...)"
        )

    async def get_sweep_nonce(self) -> int:
        """Current nonce; a fresh signature must be built against this value."""
        async with self.ledger.invocation() as inv:
            state = await inv.repo.get_controller_state(self.controller_id)
            return state.nonce if state is not None else 0

    async def get_authorized_signer(self) -> Optional[bytes]:
        async with self.ledger.invocation() as inv:
            state = await inv.repo.get_controller_state(self.controller_id)
            return state.authorized_signer if state is not None else None

    async def can_sweep(self, account: EphemeralAccount) -> bool:
        """True iff the account is Active and has a nonzero recorded balance."""
        info = await account.get_info()
        return info.status == AccountStatus.ACTIVE and any(
            amount != 0 for amount in info.balances.values()
        )

    async def execute_sweep(
        self,
        account: EphemeralAccount,
        destination: str,
        signature: bytes,
    ) -> SweepReceipt:
        """Verify the sweep authorization and move the account's funds.

        Runs as a single invocation: if any step fails, the nonce increment,
        the account transition and all transfers are rolled back together.

        Raises:
            LockTimeoutError: If another sweep holds the controller lock too long
            AuthorizedSignerNotSet: If the controller was never initialized
            InvalidSignature: If ``signature`` is not a 64-byte blob
            SignatureVerificationFailed: If the signature does not verify for
                the digest built from the current nonce and ledger timestamp
            InvalidNonce: If another invocation advanced the nonce first
            AccountStateError: Propagated from the account sweep
            TransferError: Propagated from the transfer service
        """
        async with controller_lock(
            self.controller_id, timeout=self.lock_timeout, operation="execute_sweep"
        ):
            async with self.ledger.invocation() as inv:
                state = await inv.repo.get_controller_state(self.controller_id)
                if state is None:
                    raise AuthorizedSignerNotSet(
                        f"Controller {self.controller_id} has no authorized signer"
                    )

                if not isinstance(signature, (bytes, bytearray)) or (
                    len(signature) != SIGNATURE_SIZE
                ):
                    raise InvalidSignature(f"Signature must be {SIGNATURE_SIZE} bytes")

                nonce = state.nonce
                message = SweepMessage(
                    destination=destination,
                    nonce=nonce,
                    controller_id=self.controller_id,
                    timestamp=inv.timestamp,
                )
                if not verify_signature(state.authorized_signer, message.digest(), bytes(signature)):
                    logger.warning(
                        f"Sweep of {account.address} rejected: signature "
                        f"{bytes(signature).hex()[:16]}... does not verify at nonce {nonce}"
                    )
                    raise SignatureVerificationFailed(
                        "Signature does not match the current sweep digest"
                    )

                await inv.repo.advance_nonce(self.controller_id, expected=nonce)

                balances = await account.sweep(destination, self._authority, invocation=inv)

                for asset, amount in balances.items():
                    if amount > 0:
                        await self.transfer_service.transfer(
                            inv, account.address, destination, asset, amount
                        )

                await inv.repo.emit_event(
                    self.controller_id,
                    "sweep_completed",
                    {"account": account.address, "destination": destination, "nonce": nonce},
                    inv.sequence,
                )
                receipt = SweepReceipt(
                    account=account.address,
                    destination=destination,
                    nonce=nonce,
                    ledger_sequence=inv.sequence,
                    balances=balances,
                )

        logger.info(
            f"Sweep completed: {account.address} -> {destination} "
            f"(nonce {nonce}, {len(balances)} asset(s))"
        )
        return receipt
