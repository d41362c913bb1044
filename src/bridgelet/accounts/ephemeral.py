"""Ephemeral deposit accounts.

Lifecycle::

    Uninitialized --initialize--> Active --sweep--> Swept

Swept is terminal. An Active account also stops accepting mutations once the
ledger height reaches its expiry height; expiry is evaluated on every call and
never stored.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from bridgelet.config import get_settings
from bridgelet.errors import (
    AccountExpired,
    AlreadyInitialized,
    AlreadySwept,
    InvalidAmount,
    InvalidExpiry,
    NotActive,
    NotInitialized,
    TooManyAssets,
    Unauthorized,
)
from bridgelet.ledger.host import Invocation, Ledger
from bridgelet.ledger.models import AccountStatus, EphemeralAccountRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepAuthority:
    """Capability a sweep controller presents when it sweeps an account."""

    controller_id: str


@dataclass
class AccountInfo:
    """Snapshot of an ephemeral account."""

    address: str
    status: AccountStatus
    creator: Optional[str] = None
    recovery_address: Optional[str] = None
    expiry_height: Optional[int] = None
    is_expired: bool = False
    payment_count: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    swept_destination: Optional[str] = None


class EphemeralAccount:
    """Entry points of one ephemeral account.

    Args:
        ledger: Ledger the account state lives in
        address: Deposit address identifying the account
        sweep_controller: Identity of the only controller allowed to sweep
        max_assets: Distinct assets the account accepts
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        sweep_controller: Optional[str] = None,
        max_assets: Optional[int] = None,
    ):
        settings = get_settings()
        self.ledger = ledger
        self.address = address
        self.sweep_controller = sweep_controller or settings.controller_id
        self.max_assets = max_assets or settings.max_assets_per_account

    def __repr__(self) -> str:
        return f"EphemeralAccount(address={self.address!r})"

    async def _load_active(self, invocation: Invocation) -> EphemeralAccountRecord:
        """Load the record, rejecting anything that may not be mutated."""
        record = await invocation.repo.get_account(self.address)
        if record is None:
            raise NotInitialized(f"Account {self.address} is not initialized", self.address)
        if record.status == AccountStatus.SWEPT:
            raise AlreadySwept(f"Account {self.address} has already been swept", self.address)
        if record.status != AccountStatus.ACTIVE:
            raise NotActive(f"Account {self.address} is {record.status}", self.address)
        if invocation.sequence >= record.expiry_height:
            raise AccountExpired(
                f"Account {self.address} expired at ledger {record.expiry_height}",
                self.address,
            )
        return record

    async def initialize(self, creator: str, expiry_height: int, recovery: str) -> None:
        """Create the account in Active status.

        Raises:
            AlreadyInitialized: If the account already exists
            InvalidExpiry: If ``expiry_height`` is not above the current height
                or exceeds the storable maximum
        """
        async with self.ledger.invocation() as inv:
            if await inv.repo.get_account(self.address) is not None:
                raise AlreadyInitialized(f"Account {self.address} is already initialized")
            if expiry_height <= inv.sequence:
                raise InvalidExpiry(
                    f"Expiry height {expiry_height} must be above current ledger {inv.sequence}",
                    self.address,
                )

            await inv.repo.create_account(
                address=self.address,
                creator=creator,
                recovery_address=recovery,
                expiry_height=expiry_height,
                created_height=inv.sequence,
            )
            await inv.repo.emit_event(
                self.address,
                "account_initialized",
                {"creator": creator, "expiry_height": expiry_height},
                inv.sequence,
            )

        logger.info(f"Initialized ephemeral account {self.address} (expires at {expiry_height})")

    async def record_payment(self, amount: int, asset: str) -> None:
        """Accumulate a received payment into the balance for ``asset``.

        Raises:
            NotActive: If the account is swept (AlreadySwept), expired
                (AccountExpired) or otherwise not Active
            InvalidAmount: If ``amount`` is not positive or the balance would
                exceed the storable maximum
            TooManyAssets: If ``asset`` would exceed the distinct asset limit
        """
        if amount <= 0:
            raise InvalidAmount(f"Payment amount must be positive, got {amount}", self.address)

        async with self.ledger.invocation() as inv:
            record = await self._load_active(inv)

            known = {balance.asset for balance in record.balances}
            if asset not in known and len(known) >= self.max_assets:
                raise TooManyAssets(
                    f"Account {self.address} already holds {len(known)} assets",
                    self.address,
                )

            await inv.repo.credit_account_balance(record, asset, amount)
            topic = "payment_received" if record.payment_count == 1 else "multi_payment_received"
            await inv.repo.emit_event(
                self.address,
                topic,
                {"asset": asset, "amount": amount, "payment_count": record.payment_count},
                inv.sequence,
            )

        logger.info(f"Recorded payment of {amount} {asset} on {self.address}")

    async def get_status(self) -> AccountStatus:
        async with self.ledger.invocation() as inv:
            record = await inv.repo.get_account(self.address)
            if record is None:
                return AccountStatus.UNINITIALIZED
            return AccountStatus(record.status)

    async def is_expired(self) -> bool:
        """True once the ledger height has reached the expiry height.

        An uninitialized account has no expiry and reads as not expired.
        """
        async with self.ledger.invocation() as inv:
            record = await inv.repo.get_account(self.address)
            if record is None:
                return False
            return inv.sequence >= record.expiry_height

    async def get_balances(self, invocation: Optional[Invocation] = None) -> dict[str, int]:
        async with self.ledger.join(invocation) as inv:
            record = await inv.repo.get_account(self.address)
            if record is None:
                return {}
            return inv.repo.account_balances(record)

    async def get_info(self, invocation: Optional[Invocation] = None) -> AccountInfo:
        async with self.ledger.join(invocation) as inv:
            record = await inv.repo.get_account(self.address)
            if record is None:
                return AccountInfo(address=self.address, status=AccountStatus.UNINITIALIZED)
            return AccountInfo(
                address=self.address,
                status=AccountStatus(record.status),
                creator=record.creator,
                recovery_address=record.recovery_address,
                expiry_height=record.expiry_height,
                is_expired=inv.sequence >= record.expiry_height,
                payment_count=record.payment_count,
                balances=inv.repo.account_balances(record),
                swept_destination=record.swept_destination,
            )

    async def sweep(
        self,
        destination: str,
        authority: SweepAuthority,
        invocation: Optional[Invocation] = None,
    ) -> dict[str, int]:
        """Flip the account to Swept and hand back its full balance map.

        When ``invocation`` is given the sweep joins it, so a later failure in
        the caller also undoes this transition.

        Raises:
            Unauthorized: If ``authority`` is not this account's sweep controller
            NotActive: If the account is swept, expired or not Active
        """
        if not isinstance(authority, SweepAuthority) or (
            authority.controller_id != self.sweep_controller
        ):
            logger.warning(f"Rejected sweep of {self.address}: caller is not the sweep controller")
            raise Unauthorized(f"Only {self.sweep_controller} may sweep {self.address}")

        async with self.ledger.join(invocation) as inv:
            record = await self._load_active(inv)
            balances = inv.repo.account_balances(record)
            await inv.repo.mark_swept(record, destination, inv.sequence)
            await inv.repo.emit_event(
                self.address,
                "account_swept",
                {"destination": destination, "balances": balances},
                inv.sequence,
            )

        logger.info(f"Account {self.address} swept to {destination}")
        return balances
