"""Repository for ledger operations."""

from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bridgelet.errors import InsufficientBalance, InvalidAmount, InvalidExpiry, InvalidNonce
from bridgelet.ledger.models import (
    AccountBalance,
    AccountStatus,
    AssetHolding,
    ControllerState,
    EphemeralAccountRecord,
    LedgerEvent,
)

# Upper bound of a signed 64-bit BIGINT column; u64 values above it cannot be stored.
MAX_STORED_INT = (1 << 63) - 1
MAX_STORED_NONCE = MAX_STORED_INT


def _check_storable(total: int, address: str, asset: str) -> None:
    if total > MAX_STORED_INT:
        raise InvalidAmount(
            f"Balance of {asset} on {address} would exceed {MAX_STORED_INT}", address
        )


class LedgerRepository:
    """Repository for all ledger-related database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Controller state operations
    async def get_controller_state(self, controller_id: str) -> Optional[ControllerState]:
        """Get the stored state of a sweep controller."""
        stmt = select(ControllerState).where(ControllerState.controller_id == controller_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_controller_state(
        self, controller_id: str, authorized_signer: bytes
    ) -> ControllerState:
        """Store the authorized signer for a controller with nonce 0."""
        state = ControllerState(
            controller_id=controller_id,
            authorized_signer=authorized_signer,
            nonce=0,
        )
        self.session.add(state)
        await self.session.flush()
        return state

    async def advance_nonce(self, controller_id: str, expected: int) -> int:
        """Compare-and-set the controller nonce from ``expected`` to ``expected + 1``.

        Raises:
            InvalidNonce: If the stored nonce no longer equals ``expected``
                or cannot be incremented further
        """
        if expected >= MAX_STORED_NONCE:
            raise InvalidNonce("Sweep nonce space exhausted", expected=expected, actual=expected)

        stmt = (
            update(ControllerState)
            .where(
                ControllerState.controller_id == controller_id,
                ControllerState.nonce == expected,
            )
            .values(nonce=expected + 1)
            .execution_options(synchronize_session="evaluate")
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            current = await self.get_controller_state(controller_id)
            actual = current.nonce if current is not None else 0
            raise InvalidNonce(
                f"Sweep nonce moved: expected {expected}, found {actual}",
                expected=expected,
                actual=actual,
            )
        return expected + 1

    # Ephemeral account operations
    async def get_account(self, address: str) -> Optional[EphemeralAccountRecord]:
        """Get ephemeral account by address."""
        stmt = select(EphemeralAccountRecord).where(EphemeralAccountRecord.address == address)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_account(
        self,
        address: str,
        creator: str,
        recovery_address: str,
        expiry_height: int,
        created_height: int,
    ) -> EphemeralAccountRecord:
        """Create an Active ephemeral account record.

        Raises:
            InvalidExpiry: If ``expiry_height`` does not fit the stored column
        """
        if expiry_height > MAX_STORED_INT:
            raise InvalidExpiry(
                f"Expiry height {expiry_height} exceeds the storable maximum {MAX_STORED_INT}",
                address,
            )
        account = EphemeralAccountRecord(
            address=address,
            status=AccountStatus.ACTIVE,
            creator=creator,
            recovery_address=recovery_address,
            expiry_height=expiry_height,
            created_height=created_height,
            payment_count=0,
            balances=[],
        )
        self.session.add(account)
        await self.session.flush()
        return account

    async def credit_account_balance(
        self, account: EphemeralAccountRecord, asset: str, amount: int
    ) -> AccountBalance:
        """Add a recorded payment to the account's balance for ``asset``.

        Raises:
            InvalidAmount: If the resulting balance does not fit the stored column
        """
        for balance in account.balances:
            if balance.asset == asset:
                _check_storable(balance.amount + amount, account.address, asset)
                balance.amount += amount
                break
        else:
            _check_storable(amount, account.address, asset)
            balance = AccountBalance(asset=asset, amount=amount)
            account.balances.append(balance)
        account.payment_count += 1
        await self.session.flush()
        return balance

    def account_balances(self, account: EphemeralAccountRecord) -> dict[str, int]:
        """Balance map of an account, ordered by asset."""
        return {
            balance.asset: balance.amount
            for balance in sorted(account.balances, key=lambda b: b.asset)
        }

    async def mark_swept(
        self, account: EphemeralAccountRecord, destination: str, ledger_sequence: int
    ) -> EphemeralAccountRecord:
        """Flip an account to its terminal Swept status."""
        account.status = AccountStatus.SWEPT
        account.swept_destination = destination
        account.swept_height = ledger_sequence
        await self.session.flush()
        return account

    # Asset holding operations
    async def get_holding(self, address: str, asset: str) -> Optional[AssetHolding]:
        """Get the holding of ``asset`` at ``address``."""
        stmt = select(AssetHolding).where(
            AssetHolding.address == address, AssetHolding.asset == asset
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_holding(self, address: str, asset: str) -> AssetHolding:
        holding = await self.get_holding(address, asset)
        if holding is None:
            holding = AssetHolding(address=address, asset=asset, amount=0)
            self.session.add(holding)
            await self.session.flush()
        return holding

    async def credit_holding(self, address: str, asset: str, amount: int) -> AssetHolding:
        """Add amount to an address holding."""
        if amount <= 0:
            raise InvalidAmount(f"Credit amount must be positive, got {amount}", address)
        holding = await self.get_holding(address, asset)
        _check_storable((holding.amount if holding is not None else 0) + amount, address, asset)
        if holding is None:
            holding = await self.get_or_create_holding(address, asset)
        holding.amount += amount
        await self.session.flush()
        return holding

    async def debit_holding(self, address: str, asset: str, amount: int) -> AssetHolding:
        """Subtract amount from an address holding. Raises InsufficientBalance if short."""
        if amount <= 0:
            raise InvalidAmount(f"Debit amount must be positive, got {amount}", address)
        holding = await self.get_holding(address, asset)
        available = holding.amount if holding is not None else 0
        if holding is None or available < amount:
            raise InsufficientBalance(address, asset, available, amount)
        holding.amount -= amount
        await self.session.flush()
        return holding

    async def get_holdings(self, address: str) -> dict[str, int]:
        """All non-zero holdings of an address."""
        stmt = (
            select(AssetHolding)
            .where(AssetHolding.address == address, AssetHolding.amount != 0)
            .order_by(AssetHolding.asset)
        )
        result = await self.session.execute(stmt)
        return {holding.asset: holding.amount for holding in result.scalars().all()}

    # Event operations
    async def emit_event(
        self,
        contract_id: str,
        topic: str,
        payload: dict[str, Any],
        ledger_sequence: int,
    ) -> LedgerEvent:
        """Append an event record to the ledger."""
        event = LedgerEvent(
            contract_id=contract_id,
            topic=topic,
            payload=payload,
            ledger_sequence=ledger_sequence,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def get_events(
        self,
        contract_id: Optional[str] = None,
        topic: Optional[str] = None,
        limit: int = 100,
    ) -> list[LedgerEvent]:
        """Get emitted events in emission order, optionally filtered."""
        stmt = select(LedgerEvent).order_by(LedgerEvent.id).limit(limit)
        if contract_id is not None:
            stmt = stmt.where(LedgerEvent.contract_id == contract_id)
        if topic is not None:
            stmt = stmt.where(LedgerEvent.topic == topic)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
