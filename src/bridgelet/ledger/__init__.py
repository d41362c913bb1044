"""Ledger module: persistent state, clock and invocation boundary."""

from bridgelet.ledger.clock import LedgerClock, ManualLedgerClock, SystemLedgerClock
from bridgelet.ledger.host import Invocation, Ledger
from bridgelet.ledger.models import (
    AccountBalance,
    AccountStatus,
    AssetHolding,
    ControllerState,
    EphemeralAccountRecord,
    LedgerEvent,
)
from bridgelet.ledger.repository import LedgerRepository

__all__ = [
    # Models
    "AccountBalance",
    "AssetHolding",
    "ControllerState",
    "EphemeralAccountRecord",
    "LedgerEvent",
    # Enums
    "AccountStatus",
    # Clock
    "LedgerClock",
    "ManualLedgerClock",
    "SystemLedgerClock",
    # Host
    "Invocation",
    "Ledger",
    "LedgerRepository",
]
