"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["CONTROLLER_ID"] = "CCONTROLLER-TEST"
os.environ.pop("SIGNER_PRIVATE_KEY", None)

from bridgelet.accounts.ephemeral import EphemeralAccount
from bridgelet.config import get_settings
from bridgelet.controller.sweep import SweepController
from bridgelet.ledger.clock import ManualLedgerClock
from bridgelet.ledger.host import Ledger
from bridgelet.ledger.models import Base
from bridgelet.ledger.repository import LedgerRepository
from bridgelet.signing.local import LocalSigner
from bridgelet.transfer import LedgerTransferService
from bridgelet.utils.locks import clear_controller_locks

get_settings.cache_clear()

CONTROLLER_ID = "CCONTROLLER-TEST"
START_SEQUENCE = 100
START_TIMESTAMP = 1_700_000_000


@pytest.fixture(autouse=True)
def _reset_locks():
    """Controller locks must not leak between event loops."""
    clear_controller_locks()
    yield
    clear_controller_locks()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def ledger_repo(db_session: AsyncSession) -> LedgerRepository:
    """Create ledger repository for testing."""
    return LedgerRepository(db_session)


@pytest.fixture
def clock() -> ManualLedgerClock:
    return ManualLedgerClock(sequence=START_SEQUENCE, timestamp=START_TIMESTAMP)


@pytest_asyncio.fixture
async def ledger(db_engine: AsyncEngine, clock: ManualLedgerClock) -> Ledger:
    return Ledger.from_engine(db_engine, clock)


@pytest.fixture
def transfers() -> LedgerTransferService:
    return LedgerTransferService()


@pytest.fixture
def controller(ledger: Ledger, transfers: LedgerTransferService) -> SweepController:
    return SweepController(ledger, CONTROLLER_ID, transfer_service=transfers, lock_timeout=5.0)


@pytest.fixture
def signer() -> LocalSigner:
    return LocalSigner.generate()


@pytest.fixture
def other_signer() -> LocalSigner:
    return LocalSigner.generate()


@pytest.fixture
def make_account(ledger: Ledger):
    """Factory for accounts bound to the test controller."""

    def _make(address: str = "GEPHEMERAL1", max_assets: int = 10) -> EphemeralAccount:
        return EphemeralAccount(ledger, address, CONTROLLER_ID, max_assets=max_assets)

    return _make


@pytest_asyncio.fixture
async def funded_account(ledger: Ledger, make_account, transfers: LedgerTransferService):
    """Active account holding 100 USDC and 50 XLM, recorded and on the ledger."""
    account = make_account("GFUNDED")
    await account.initialize("GCREATOR", START_SEQUENCE + 1000, "GRECOVERY")

    async with ledger.invocation() as inv:
        await transfers.mint(inv, account.address, "USDC", 100)
        await transfers.mint(inv, account.address, "XLM", 50)

    await account.record_payment(100, "USDC")
    await account.record_payment(50, "XLM")
    return account
