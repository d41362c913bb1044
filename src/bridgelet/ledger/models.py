"""SQLAlchemy models for the ledger."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class AccountStatus(str, Enum):
    """Lifecycle status of an ephemeral account.

    UNINITIALIZED is never stored; it is what a missing row reads as.
    Expiry is derived from the ledger height, not stored.
    """

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    SWEPT = "swept"


class ControllerState(Base):
    """Authorized signer and replay-prevention nonce of one sweep controller."""

    __tablename__ = "controller_state"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    controller_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    authorized_signer: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class EphemeralAccountRecord(Base):
    """Persisted state of one ephemeral deposit account."""

    __tablename__ = "ephemeral_accounts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    status: Mapped[AccountStatus] = mapped_column(
        String(20), default=AccountStatus.ACTIVE, nullable=False
    )
    creator: Mapped[str] = mapped_column(String(255), nullable=False)
    recovery_address: Mapped[str] = mapped_column(String(255), nullable=False)
    expiry_height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    payment_count: Mapped[int] = mapped_column(default=0)
    created_height: Mapped[int] = mapped_column(BigInteger, nullable=False)
    swept_height: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    swept_destination: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    balances: Mapped[list["AccountBalance"]] = relationship(
        back_populates="account", lazy="selectin", order_by="AccountBalance.asset"
    )


class AccountBalance(Base):
    """Recorded payments for one asset on an ephemeral account."""

    __tablename__ = "account_balances"
    __table_args__ = (
        Index("ix_account_balances_account_asset", "account_id", "asset", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("ephemeral_accounts.id"), nullable=False)
    asset: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    # Relationships
    account: Mapped["EphemeralAccountRecord"] = relationship(back_populates="balances")


class AssetHolding(Base):
    """Balance of an asset held by any ledger address.

    This is what the ledger-backed asset transfer service moves.
    """

    __tablename__ = "asset_holdings"
    __table_args__ = (
        Index("ix_asset_holdings_address_asset", "address", "asset", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    asset: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class LedgerEvent(Base):
    """Record emitted by a ledger invocation (e.g. sweep_completed)."""

    __tablename__ = "ledger_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    contract_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    topic: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    ledger_sequence: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
