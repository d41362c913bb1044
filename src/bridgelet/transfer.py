"""Asset transfer services.

A transfer moves ``amount`` of ``asset`` from one ledger address to another
inside the caller's invocation, so it commits or rolls back together with
whatever else the invocation did.
"""

import logging
from abc import ABC, abstractmethod

from bridgelet.errors import InvalidAmount
from bridgelet.ledger.host import Invocation

logger = logging.getLogger(__name__)


class AssetTransferService(ABC):
    """Moves fungible balances between addresses, atomically or not at all."""

    @abstractmethod
    async def transfer(
        self,
        invocation: Invocation,
        source: str,
        destination: str,
        asset: str,
        amount: int,
    ) -> None:
        """Move ``amount`` of ``asset`` from ``source`` to ``destination``.

        Raises:
            TransferError: If the movement cannot be performed
        """


class LedgerTransferService(AssetTransferService):
    """Transfer service backed by the ledger's own asset holdings table."""

    async def transfer(
        self,
        invocation: Invocation,
        source: str,
        destination: str,
        asset: str,
        amount: int,
    ) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Transfer amount must be positive, got {amount}", source)

        await invocation.repo.debit_holding(source, asset, amount)
        await invocation.repo.credit_holding(destination, asset, amount)
        logger.debug(f"Transferred {amount} {asset}: {source} -> {destination}")

    async def mint(self, invocation: Invocation, address: str, asset: str, amount: int) -> None:
        """Credit ``amount`` to ``address`` out of thin air (funding, tests)."""
        await invocation.repo.credit_holding(address, asset, amount)
        logger.info(f"Funded {address} with {amount} {asset}")
