"""Active session manager: wallet selection and derived-state refresh.

A refresh fetches addresses and balance concurrently and publishes them
together or not at all. Results that arrive after a newer selection or a
newer refresh are discarded, so the published pair always belongs to the
last wallet the user picked.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ark_wallet.errors.wallet_errors import ArkWalletError

if TYPE_CHECKING:
    from ark_wallet.engine.state import SessionState, SessionStore
    from ark_wallet.service.client import WalletServiceClient

logger = logging.getLogger(__name__)


class ActiveSessionManager:
    """Tracks the active wallet and keeps its addresses and balance current.

    Usage::

        manager = ActiveSessionManager(client, store)
        await manager.select_wallet("w1")
        state = store.snapshot
    """

    def __init__(self, client: WalletServiceClient, store: SessionStore) -> None:
        """Initialize the manager.

        Args:
            client: Remote wallet service client.
            store: Session state holder shared with the lifecycle controller.
        """
        self._client = client
        self._store = store
        # Bumped whenever the active wallet changes
        self._epoch = 0
        # Refresh tickets are issued in start order
        self._next_ticket = 0
        self._settled_ticket = -1
        self._in_flight = 0

    @property
    def active_wallet_id(self) -> str | None:
        return self._store.snapshot.active_wallet_id

    @property
    def state(self) -> SessionState:
        return self._store.snapshot

    async def select_wallet(self, wallet_id: str) -> bool:
        """Make ``wallet_id`` the active wallet and refresh it.

        Switching wallets clears the previous wallet's addresses and balance
        before the refresh starts. Re-selecting the active wallet keeps the
        current values and only re-syncs.

        Returns:
            True if the refresh published fresh state.
        """
        if wallet_id != self.active_wallet_id:
            self._epoch += 1
            self._store.update(active_wallet_id=wallet_id, addresses=None, balance=None)
            logger.info("Selected wallet %s", wallet_id)
        return await self.refresh(wallet_id)

    async def refresh(self, wallet_id: str | None = None) -> bool:
        """Fetch addresses and balance for the active wallet.

        Args:
            wallet_id: Wallet to refresh; defaults to the active wallet. A
                wallet that is not active is not fetched.

        Returns:
            True if both calls succeeded and the result was published.
        """
        active = self.active_wallet_id
        wallet_id = wallet_id or active
        if wallet_id is None or wallet_id != active:
            return False

        epoch = self._epoch
        ticket = self._next_ticket
        self._next_ticket += 1
        self._in_flight += 1
        self._store.update(refreshing=True)

        try:
            addresses, balance = await asyncio.gather(
                self._client.get_addresses(wallet_id),
                self._client.get_balance(wallet_id),
                return_exceptions=True,
            )
        finally:
            self._in_flight -= 1

        for result in (addresses, balance):
            if isinstance(result, BaseException) and not isinstance(result, ArkWalletError):
                self._store.update(refreshing=self._in_flight > 0)
                raise result

        if epoch != self._epoch or ticket < self._settled_ticket:
            logger.debug("Discarding stale refresh of wallet %s", wallet_id)
            self._store.update(refreshing=self._in_flight > 0)
            return False
        self._settled_ticket = ticket

        failure = next((r for r in (addresses, balance) if isinstance(r, ArkWalletError)), None)
        if failure is not None:
            logger.warning("Refresh of wallet %s failed: %s", wallet_id, failure.message)
            self._store.update(refreshing=self._in_flight > 0, last_error=failure.info())
            return False

        self._store.update(
            addresses=addresses,
            balance=balance,
            last_error=None,
            refreshing=self._in_flight > 0,
        )
        return True

    def clear(self) -> None:
        """Forget the active wallet; in-flight refreshes are discarded."""
        self._epoch += 1
        self._store.reset()
