"""Ledger clock: the height and close timestamp an invocation runs against."""

import time
from abc import ABC, abstractmethod
from typing import Optional


class LedgerClock(ABC):
    """Source of the current ledger sequence (height) and timestamp."""

    @abstractmethod
    def sequence(self) -> int:
        """Current ledger sequence number."""

    @abstractmethod
    def timestamp(self) -> int:
        """Current ledger close time in unix seconds."""

    def snapshot(self) -> tuple[int, int]:
        """Sequence and timestamp of the same ledger, read together."""
        return self.sequence(), self.timestamp()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sequence={self.sequence()}, timestamp={self.timestamp()})"


class SystemLedgerClock(LedgerClock):
    """Clock derived from wall time.

    Ledgers close every ``close_time_seconds`` starting at
    ``genesis_timestamp``; the timestamp is the close time of the current
    ledger, so every read within one ledger agrees.
    """

    def __init__(self, genesis_timestamp: int = 0, close_time_seconds: int = 5):
        if close_time_seconds < 1:
            raise ValueError("close_time_seconds must be at least 1")
        self.genesis_timestamp = genesis_timestamp
        self.close_time_seconds = close_time_seconds

    def _now(self) -> int:
        return int(time.time())

    def _sequence_at(self, now: int) -> int:
        return max(0, now - self.genesis_timestamp) // self.close_time_seconds

    def sequence(self) -> int:
        return self._sequence_at(self._now())

    def timestamp(self) -> int:
        return self.snapshot()[1]

    def snapshot(self) -> tuple[int, int]:
        # One wall-clock read, so a ledger close cannot split the pair
        sequence = self._sequence_at(self._now())
        return sequence, self.genesis_timestamp + sequence * self.close_time_seconds


class ManualLedgerClock(LedgerClock):
    """Clock with explicit values; used by tests and simulations."""

    def __init__(self, sequence: int = 1, timestamp: int = 1_700_000_000):
        self._sequence = sequence
        self._timestamp = timestamp

    def sequence(self) -> int:
        return self._sequence

    def timestamp(self) -> int:
        return self._timestamp

    def advance(self, ledgers: int = 1, seconds: Optional[int] = None) -> None:
        """Close ``ledgers`` more ledgers, moving time forward by ``seconds``
        (5 seconds per ledger when not given)."""
        if ledgers < 0:
            raise ValueError("ledger clock cannot move backwards")
        self._sequence += ledgers
        self._timestamp += seconds if seconds is not None else ledgers * 5

    def set(self, sequence: Optional[int] = None, timestamp: Optional[int] = None) -> None:
        if sequence is not None:
            if sequence < self._sequence:
                raise ValueError("ledger clock cannot move backwards")
            self._sequence = sequence
        if timestamp is not None:
            self._timestamp = timestamp
