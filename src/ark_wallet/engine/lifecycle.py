"""Operation lifecycle controller: create, send, faucet and settle.

Every mutating action runs the same sequence::

    validate -> busy=True, last_error=None -> call service
             -> success: follow-up (register / refresh)
             -> failure: last_error=<classified error>
             -> busy=False

Only one operation may be pending at a time; a second request while one is
pending is rejected with ``OperationInProgressError`` rather than queued.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ark_wallet.engine.registry import WalletRecord
from ark_wallet.errors.wallet_errors import (
    ArkWalletError,
    ErrorKind,
    OperationInProgressError,
    ValidationError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ark_wallet.engine.registry import WalletRegistry
    from ark_wallet.engine.session import ActiveSessionManager
    from ark_wallet.engine.state import SessionStore
    from ark_wallet.errors.wallet_errors import ErrorInfo
    from ark_wallet.service.client import WalletServiceClient
    from ark_wallet.service.models import ActionReceipt, CreatedWallet

logger = logging.getLogger(__name__)

DEFAULT_FAUCET_AMOUNT = 0.01


class OperationKind(enum.StrEnum):
    """The mutating actions driven through the lifecycle."""

    CREATE = "create"
    SEND = "send"
    FAUCET = "faucet"
    SETTLE = "settle"


@dataclass(frozen=True)
class OperationResult:
    """Terminal outcome of one lifecycle invocation.

    Attributes:
        operation: Which action ran.
        ok: True on success.
        value: New wallet id for ``create``, transaction id otherwise (may be None).
        receipt: Service receipt for send / faucet / settle.
        error: The classified failure when ``ok`` is False.
        warnings: Non-fatal problems such as registry persistence failures.
    """

    operation: OperationKind
    ok: bool
    value: str | None = None
    receipt: ActionReceipt | None = None
    error: ErrorInfo | None = None
    warnings: tuple[ErrorInfo, ...] = ()


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def _parse_sats(value: Any, field: str) -> int:
    """Accept a positive integer or a string of digits."""
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            value = int(text)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{field} must be a positive whole number of satoshis"
        raise ValidationError(msg, field=field)
    return value


def _parse_btc(value: Any, field: str) -> float:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            value = None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"{field} must be a number"
        raise ValidationError(msg, field=field)
    if not math.isfinite(value) or value <= 0:
        msg = f"{field} must be positive"
        raise ValidationError(msg, field=field)
    return float(value)


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        msg = f"{field} is required"
        raise ValidationError(msg, field=field)
    return value.strip()


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class OperationLifecycleController:
    """Runs mutating actions and is the only writer of ``busy``.

    Usage::

        controller = OperationLifecycleController(client, registry, session, store)
        result = await controller.create_wallet()
        if result.ok:
            await controller.send("ark1...", 1_000)
    """

    def __init__(
        self,
        client: WalletServiceClient,
        registry: WalletRegistry,
        session: ActiveSessionManager,
        store: SessionStore,
        *,
        faucet_amount: float = DEFAULT_FAUCET_AMOUNT,
    ) -> None:
        self._client = client
        self._registry = registry
        self._session = session
        self._store = store
        self._faucet_amount = faucet_amount
        self._pending: OperationKind | None = None

    @property
    def busy(self) -> bool:
        return self._pending is not None

    @property
    def pending(self) -> OperationKind | None:
        """The operation currently in flight, if any."""
        return self._pending

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create_wallet(self) -> OperationResult:
        """Create a wallet, register it and make it active."""
        return await self._run(OperationKind.CREATE, self._client.create_wallet, self._on_created)

    async def send(self, address: Any, amount: Any) -> OperationResult:
        """Send ``amount`` satoshis from the active wallet to an Ark address."""
        try:
            wallet_id = self._require_active_wallet()
            address = _require_text(address, "address")
            sats = _parse_sats(amount, "amount")
        except ValidationError as exc:
            return self._reject(OperationKind.SEND, exc)

        return await self._run(
            OperationKind.SEND,
            lambda: self._client.send_to_ark_address(wallet_id, address, sats),
            self._on_action,
        )

    async def request_faucet(
        self,
        amount: Any = None,
        *,
        onchain_address: str | None = None,
    ) -> OperationResult:
        """Request test funds for the active wallet's on-chain address.

        Args:
            amount: BTC amount; defaults to the configured faucet amount.
            onchain_address: Explicit target; defaults to the active wallet's
                last fetched on-chain address.
        """
        try:
            if onchain_address is None and self._store.snapshot.addresses is not None:
                onchain_address = self._store.snapshot.addresses.onchain_address
            target = _require_text(onchain_address, "onchain_address")
            btc = _parse_btc(self._faucet_amount if amount is None else amount, "amount")
        except ValidationError as exc:
            return self._reject(OperationKind.FAUCET, exc)

        return await self._run(
            OperationKind.FAUCET,
            lambda: self._client.request_from_faucet(target, btc),
            self._on_action,
        )

    async def settle(self, to_address: str | None = None) -> OperationResult:
        """Settle the active wallet's off-chain balance on-chain."""
        try:
            wallet_id = self._require_active_wallet()
        except ValidationError as exc:
            return self._reject(OperationKind.SETTLE, exc)
        destination = to_address.strip() if to_address and to_address.strip() else None

        return await self._run(
            OperationKind.SETTLE,
            lambda: self._client.settle(wallet_id, destination),
            self._on_action,
        )

    def forget_wallet(self, wallet_id: str) -> bool:
        """Remove a wallet from the registry, clearing it if it was active.

        Returns:
            False if an operation is pending and nothing was removed.
        """
        if self._pending is not None:
            error = OperationInProgressError("forget", pending=self._pending.value)
            self._store.update(last_error=error.info())
            return False
        self._registry.remove(wallet_id)
        if self._session.active_wallet_id == wallet_id:
            self._session.clear()
        return True

    # ------------------------------------------------------------------
    # Success follow-ups
    # ------------------------------------------------------------------

    async def _on_created(self, operation: OperationKind, created: CreatedWallet) -> OperationResult:
        self._registry.append(WalletRecord(id=created.wallet_id))
        warning = self._registry.last_warning
        await self._session.select_wallet(created.wallet_id)
        return OperationResult(
            operation=operation,
            ok=True,
            value=created.wallet_id,
            warnings=(warning.info(),) if warning else (),
        )

    async def _on_action(self, operation: OperationKind, receipt: ActionReceipt) -> OperationResult:
        # Balances may have moved; the refresh reports its own errors
        await self._session.refresh()
        return OperationResult(
            operation=operation,
            ok=True,
            value=receipt.transaction_id,
            receipt=receipt,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_active_wallet(self) -> str:
        wallet_id = self._session.active_wallet_id
        if wallet_id is None:
            msg = "no active wallet selected"
            raise ValidationError(msg, field="wallet_id")
        return wallet_id

    def _reject(self, operation: OperationKind, error: ArkWalletError) -> OperationResult:
        """Fail without a busy transition or network call."""
        logger.warning("%s rejected: %s", operation, error.message)
        self._store.update(last_error=error.info())
        return OperationResult(operation=operation, ok=False, error=error.info())

    async def _run(
        self,
        operation: OperationKind,
        action: Callable[[], Awaitable[Any]],
        on_success: Callable[[OperationKind, Any], Awaitable[OperationResult]],
    ) -> OperationResult:
        if self._pending is not None:
            return self._reject(
                operation, OperationInProgressError(operation.value, pending=self._pending.value)
            )

        self._pending = operation
        self._store.update(busy=True, last_error=None)
        try:
            outcome = await action()
            result = await on_success(operation, outcome)
        except ArkWalletError as exc:
            logger.warning("%s failed: %s", operation, exc.message)
            self._store.update(last_error=exc.info())
            return OperationResult(operation=operation, ok=False, error=exc.info())
        finally:
            self._pending = None
            changes: dict[str, Any] = {"busy": False}
            # Rejections issued while this operation was pending no longer apply
            stale = self._store.snapshot.last_error
            if stale is not None and stale.kind is ErrorKind.OPERATION_IN_PROGRESS:
                changes["last_error"] = None
            self._store.update(**changes)

        logger.info("%s succeeded", operation)
        return result
