"""Tests for the active session manager: selection, refresh, stale-result handling."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest

from ark_wallet.engine.session import ActiveSessionManager
from ark_wallet.engine.state import SessionStore
from ark_wallet.errors.wallet_errors import ErrorKind
from ark_wallet.service.models import AddressSet

if TYPE_CHECKING:
    from ark_wallet.service.client import WalletServiceClient

BALANCE_1000 = {
    "offchain_balance": {"spendable": 1000, "expired": 0},
    "boarding_balance": {"spendable": 0, "pending": 0, "expired": 0},
}
BALANCE_2000 = {
    "offchain_balance": {"spendable": 2000, "expired": 0},
    "boarding_balance": {"spendable": 0, "pending": 0, "expired": 0},
}


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def manager(service_client: WalletServiceClient, store: SessionStore) -> ActiveSessionManager:
    return ActiveSessionManager(service_client, store)


async def _settle_tasks() -> None:
    """Let pending tasks reach their next await point."""
    for _ in range(10):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelectWallet:
    async def test_select_publishes_addresses_and_balance(self, manager, store, fake_service) -> None:
        fake_service.addresses["w1"] = {"onchain_address": "bc1...", "offchain_address": "ark1..."}
        fake_service.balances["w1"] = BALANCE_1000

        assert await manager.select_wallet("w1") is True
        state = store.snapshot
        assert state.active_wallet_id == "w1"
        assert state.addresses == AddressSet(onchain_address="bc1...", offchain_address="ark1...")
        assert state.balance is not None
        assert state.balance.offchain.spendable == 1000
        assert state.refreshing is False
        assert state.last_error is None

    async def test_switching_clears_previous_details(self, manager, store, fake_service) -> None:
        await manager.select_wallet("w1")
        gate = fake_service.hold("get_balance", "w2")
        q = store.add_subscriber("ui")

        task = asyncio.create_task(manager.select_wallet("w2"))
        await _settle_tasks()
        first = q.get_nowait()
        assert first.active_wallet_id == "w2"
        assert first.addresses is None
        assert first.balance is None

        gate.set()
        assert await task is True
        assert store.snapshot.addresses.onchain_address == "bc1qw2"

    async def test_reselect_keeps_values_and_refetches(self, manager, store, fake_service) -> None:
        await manager.select_wallet("w1")
        q = store.add_subscriber("ui")
        await manager.select_wallet("w1")
        while not q.empty():
            assert q.get_nowait().addresses is not None
        assert len(fake_service.calls("get_address")) == 2

    async def test_clear(self, manager, store) -> None:
        await manager.select_wallet("w1")
        manager.clear()
        assert store.snapshot.active_wallet_id is None
        assert store.snapshot.addresses is None
        assert store.snapshot.balance is None


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    async def test_fetches_concurrently(self, manager, fake_service) -> None:
        addr_gate = fake_service.hold("get_address", "w1")
        bal_gate = fake_service.hold("get_balance", "w1")
        task = asyncio.create_task(manager.select_wallet("w1"))
        await _settle_tasks()
        # Both requests are in flight before either is released
        assert sorted(r[0] for r in fake_service.requests) == ["get_address", "get_balance"]
        addr_gate.set()
        bal_gate.set()
        assert await task is True

    async def test_atomic_pairing(self, manager, store, fake_service) -> None:
        q = store.add_subscriber("ui")
        await manager.select_wallet("w1")
        states = []
        while not q.empty():
            states.append(q.get_nowait())
        for state in states:
            assert (state.addresses is None) == (state.balance is None)

    async def test_address_failure_keeps_previous_values(self, manager, store, fake_service) -> None:
        fake_service.balances["w1"] = BALANCE_1000
        await manager.select_wallet("w1")
        before = store.snapshot

        fake_service.balances["w1"] = BALANCE_2000
        fake_service.fail("get_address", httpx.Response(500, text="boom"))
        assert await manager.refresh() is False

        state = store.snapshot
        assert state.addresses == before.addresses
        assert state.balance == before.balance
        assert state.balance.offchain.spendable == 1000
        assert state.last_error is not None
        assert state.last_error.kind is ErrorKind.HTTP_ERROR
        assert state.last_error.status == 500

    async def test_balance_failure_keeps_previous_values(self, manager, store, fake_service) -> None:
        await manager.select_wallet("w1")
        before = store.snapshot
        fake_service.fail("get_balance", httpx.ReadTimeout("slow"))
        await manager.refresh()
        assert store.snapshot.addresses == before.addresses
        assert store.snapshot.balance == before.balance
        assert store.snapshot.last_error.kind is ErrorKind.TIMEOUT

    async def test_both_fail_reports_one(self, manager, store, fake_service) -> None:
        fake_service.fail("get_address", httpx.Response(502))
        fake_service.fail("get_balance", httpx.ConnectError("down"))
        await manager.select_wallet("w1")
        assert store.snapshot.last_error.kind in (ErrorKind.HTTP_ERROR, ErrorKind.NETWORK_UNAVAILABLE)
        assert store.snapshot.addresses is None

    async def test_success_clears_error(self, manager, store, fake_service) -> None:
        fake_service.fail("get_balance", httpx.Response(500))
        await manager.select_wallet("w1")
        assert store.snapshot.last_error is not None
        fake_service.clear_failure("get_balance")
        assert await manager.refresh() is True
        assert store.snapshot.last_error is None

    async def test_no_active_wallet(self, manager, fake_service) -> None:
        assert await manager.refresh() is False
        assert fake_service.requests == []

    async def test_inactive_wallet_not_fetched(self, manager, fake_service) -> None:
        await manager.select_wallet("w1")
        count = len(fake_service.requests)
        assert await manager.refresh("w2") is False
        assert len(fake_service.requests) == count

    async def test_malformed_payload(self, manager, store, fake_service) -> None:
        fake_service.fail("get_balance", httpx.Response(200, json={"offchain_balance": {}}))
        await manager.select_wallet("w1")
        assert store.snapshot.last_error.kind is ErrorKind.MALFORMED_RESPONSE
        assert store.snapshot.balance is None


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    async def test_stale_selection_discarded(self, manager, store, fake_service) -> None:
        """w1's refresh finishes after w2 was selected; w1 data must never show."""
        fake_service.balances["w1"] = BALANCE_1000
        fake_service.balances["w2"] = BALANCE_2000
        gate = fake_service.hold("get_balance", "w1")
        q = store.add_subscriber("ui")

        first = asyncio.create_task(manager.select_wallet("w1"))
        await _settle_tasks()
        assert await manager.select_wallet("w2") is True
        gate.set()
        assert await first is False

        state = store.snapshot
        assert state.active_wallet_id == "w2"
        assert state.addresses.onchain_address == "bc1qw2"
        assert state.balance.offchain.spendable == 2000
        assert state.refreshing is False
        while not q.empty():
            published = q.get_nowait()
            if published.addresses is not None:
                assert published.addresses.onchain_address == "bc1qw2"

    async def test_switch_back_ignores_superseded_refresh(self, manager, store, fake_service) -> None:
        gate = fake_service.hold("get_balance", "w1")
        stale = asyncio.create_task(manager.select_wallet("w1"))
        await _settle_tasks()
        await manager.select_wallet("w2")
        fresh_gate = fake_service.hold("get_balance", "w1")
        fake_service.balances["w1"] = BALANCE_2000
        fresh = asyncio.create_task(manager.select_wallet("w1"))
        await _settle_tasks()
        gate.set()
        assert await stale is False
        assert store.snapshot.balance is None
        fresh_gate.set()
        assert await fresh is True
        assert store.snapshot.balance.offchain.spendable == 2000

    async def test_older_refresh_of_same_wallet_discarded(self, manager, store, fake_service) -> None:
        await manager.select_wallet("w1")
        old_gate = fake_service.hold("get_balance", "w1")
        fake_service.balances["w1"] = BALANCE_1000
        older = asyncio.create_task(manager.refresh())
        await _settle_tasks()

        fake_service._gates.pop("get_balance:w1")
        fake_service.balances["w1"] = BALANCE_2000
        assert await manager.refresh() is True

        fake_service.balances["w1"] = BALANCE_1000
        old_gate.set()
        assert await older is False
        assert store.snapshot.balance.offchain.spendable == 2000

    async def test_refreshing_flag_spans_overlap(self, manager, store, fake_service) -> None:
        await manager.select_wallet("w1")
        gate = fake_service.hold("get_balance", "w1")
        first = asyncio.create_task(manager.refresh())
        second = asyncio.create_task(manager.refresh())
        await _settle_tasks()
        assert store.snapshot.refreshing is True
        gate.set()
        await asyncio.gather(first, second)
        assert store.snapshot.refreshing is False
