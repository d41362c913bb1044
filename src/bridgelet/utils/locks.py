"""Concurrency control for sweep controllers.

Provides a per-controller lock so sweeps against the same nonce run one at a
time within a process.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from bridgelet.errors import LockTimeoutError

logger = logging.getLogger(__name__)

# Lock registry: controller_id -> asyncio.Lock
_controller_locks: dict[str, asyncio.Lock] = {}


def get_controller_lock(controller_id: str) -> asyncio.Lock:
    """Get or create the lock for a specific controller.

    Args:
        controller_id: Controller identity

    Returns:
        asyncio.Lock for the controller
    """
    lock = _controller_locks.get(controller_id)
    if lock is None:
        lock = _controller_locks[controller_id] = asyncio.Lock()
    return lock


@asynccontextmanager
async def controller_lock(
    controller_id: str,
    timeout: Optional[float] = 30.0,
    operation: str = "sweep",
):
    """Hold the controller's lock for the duration of the block.

    Args:
        controller_id: Controller identity
        timeout: Maximum time to wait for lock (None = wait forever)
        operation: Description for logging

    Example:
        async with controller_lock(controller_id, operation="execute_sweep"):
            # read nonce, verify, advance
            pass
    """
    lock = get_controller_lock(controller_id)

    try:
        if timeout:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        else:
            await lock.acquire()
    except asyncio.TimeoutError:
        logger.warning(f"Lock timeout for controller {controller_id}: {operation}")
        raise LockTimeoutError(
            f"Could not acquire lock for controller {controller_id} within {timeout}s"
        )

    logger.debug(f"Lock acquired for controller {controller_id}: {operation}")
    try:
        yield
    finally:
        lock.release()
        logger.debug(f"Lock released for controller {controller_id}: {operation}")


def clear_controller_locks() -> None:
    """Clear all controller locks (useful for testing)."""
    _controller_locks.clear()
