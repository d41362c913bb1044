"""Utility modules."""

from bridgelet.utils.locks import LockTimeoutError, clear_controller_locks, controller_lock

__all__ = ["LockTimeoutError", "clear_controller_locks", "controller_lock"]
