"""Session state and its publication to front-end subscribers.

Fan-out architecture: every state transition is pushed, in order, onto one
``asyncio.Queue`` per subscriber. Front ends read the queue instead of
mutating state themselves.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ark_wallet.errors.wallet_errors import ErrorInfo
    from ark_wallet.service.models import AddressSet, BalanceSnapshot

logger = logging.getLogger(__name__)

_SUBSCRIBER_BUFFER = 100


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the active session.

    ``addresses`` and ``balance`` always belong to ``active_wallet_id``;
    both are None until a refresh for that wallet succeeds.

    Attributes:
        active_wallet_id: The selected wallet, or None.
        addresses: Last fetched addresses of the active wallet.
        balance: Last fetched balance of the active wallet.
        busy: True while a lifecycle operation is pending.
        refreshing: True while any refresh is in flight.
        last_error: The most recent terminal failure, cleared on success.
    """

    active_wallet_id: str | None = None
    addresses: AddressSet | None = None
    balance: BalanceSnapshot | None = None
    busy: bool = False
    refreshing: bool = False
    last_error: ErrorInfo | None = None

    @property
    def has_details(self) -> bool:
        """Whether both addresses and balance are available for display."""
        return self.active_wallet_id is not None and self.addresses is not None and self.balance is not None


class SessionStore:
    """Holds the current ``SessionState`` and fans out every change.

    Usage::

        store = SessionStore()
        q = store.add_subscriber("ui")
        store.update(busy=True)
        state = await q.get()
    """

    def __init__(self, initial: SessionState | None = None) -> None:
        self._state = initial or SessionState()
        self._subscribers: dict[str, asyncio.Queue[SessionState]] = {}

    @property
    def snapshot(self) -> SessionState:
        """The current state."""
        return self._state

    def add_subscriber(
        self, key: str, *, buffer: int = _SUBSCRIBER_BUFFER
    ) -> asyncio.Queue[SessionState]:
        """Register a subscriber and return its output queue."""
        q: asyncio.Queue[SessionState] = asyncio.Queue(maxsize=buffer)
        self._subscribers[key] = q
        return q

    def remove_subscriber(self, key: str) -> None:
        """Unregister a subscriber."""
        self._subscribers.pop(key, None)

    def update(self, **changes: Any) -> SessionState:
        """Replace the given fields and publish the new state.

        A call that changes nothing publishes nothing.
        """
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state:
            return self._state
        self._state = new_state
        self._publish(new_state)
        return new_state

    def reset(self) -> SessionState:
        """Drop the active wallet and its derived state."""
        return self.update(active_wallet_id=None, addresses=None, balance=None)

    def _publish(self, state: SessionState) -> None:
        for key, q in list(self._subscribers.items()):
            try:
                q.put_nowait(state)
            except asyncio.QueueFull:
                logger.warning("Subscriber %s queue full, dropping session update", key)
