"""Ledger host: engine, session management and the invocation boundary.

Every entry point of the accounts and the sweep controller runs inside one
``Ledger.invocation()``. An invocation is a single database transaction with a
fixed view of the ledger clock: it commits when the body returns and rolls
back every write when the body raises.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bridgelet.config import Settings, get_settings
from bridgelet.ledger.clock import LedgerClock, SystemLedgerClock
from bridgelet.ledger.models import Base
from bridgelet.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


def normalize_database_url(db_url: str) -> str:
    """Convert sqlite:/// to sqlite+aiosqlite:/// if needed."""
    if db_url.startswith("sqlite:///") and "aiosqlite" not in db_url:
        return db_url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return db_url


@dataclass
class Invocation:
    """One atomic unit of ledger work.

    Attributes:
        session: Session holding the invocation's transaction
        repo: Repository bound to that session
        sequence: Ledger height the invocation executes at
        timestamp: Ledger close time the invocation executes at
    """

    session: AsyncSession
    repo: LedgerRepository
    sequence: int
    timestamp: int


class Ledger:
    """Persistent ledger state plus the clock invocations run against."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: LedgerClock,
        engine: Optional[AsyncEngine] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.engine = engine

    @classmethod
    def from_engine(cls, engine: AsyncEngine, clock: LedgerClock) -> "Ledger":
        session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        return cls(session_factory, clock, engine=engine)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        clock: Optional[LedgerClock] = None,
    ) -> "Ledger":
        """Build a ledger from application settings."""
        settings = settings or get_settings()
        engine = create_async_engine(
            normalize_database_url(settings.database_url),
            echo=settings.debug and not settings.is_production,
        )
        if clock is None:
            clock = SystemLedgerClock(
                genesis_timestamp=settings.ledger_genesis_timestamp,
                close_time_seconds=settings.ledger_close_time_seconds,
            )
        return cls.from_engine(engine, clock)

    async def create_schema(self) -> None:
        """Create all tables."""
        if self.engine is None:
            raise RuntimeError("Ledger has no engine to create the schema on")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Ledger schema created")

    async def close(self) -> None:
        """Close database connections."""
        if self.engine is not None:
            await self.engine.dispose()

    @asynccontextmanager
    async def invocation(self) -> AsyncGenerator[Invocation, None]:
        """Run a block of ledger work as one all-or-nothing transaction."""
        sequence, timestamp = self.clock.snapshot()
        async with self.session_factory() as session:
            try:
                yield Invocation(
                    session=session,
                    repo=LedgerRepository(session),
                    sequence=sequence,
                    timestamp=timestamp,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                logger.debug(f"Invocation at ledger {sequence} rolled back")
                raise

    @asynccontextmanager
    async def join(
        self, invocation: Optional[Invocation] = None
    ) -> AsyncGenerator[Invocation, None]:
        """Reuse the caller's invocation, or open a fresh one when there is none."""
        if invocation is not None:
            yield invocation
            return
        async with self.invocation() as fresh:
            yield fresh
