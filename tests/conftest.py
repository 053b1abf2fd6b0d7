"""Shared test fixtures for the ark-wallet-client test suite."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from ark_wallet.config.settings import AppConfig, ServiceConfig, StorageConfig, StorageEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ark_wallet.engine.client import ArkWalletEngine
    from ark_wallet.service.client import WalletServiceClient

SERVICE_URL = "http://wallet.test"

ZERO_BALANCE: dict[str, Any] = {
    "offchain_balance": {"spendable": 0, "expired": 0},
    "boarding_balance": {"spendable": 0, "pending": 0, "expired": 0},
}


class FakeWalletService:
    """In-process stand-in for the wallet service, served via ``httpx.MockTransport``.

    - ``addresses`` / ``balances`` hold per-wallet payloads.
    - ``fail(route, ...)`` makes a route return an error response or raise.
    - ``hold(route, wallet_id)`` returns an event the request waits on,
      letting tests control completion order.
    - ``requests`` records ``(route, wallet_id, body)`` for every call.
    """

    def __init__(self) -> None:
        self.addresses: dict[str, dict[str, Any]] = {}
        self.balances: dict[str, dict[str, Any]] = {}
        self.next_wallet_ids: list[str] = []
        self.action_bodies: dict[str, Any] = {}
        self.requests: list[tuple[str, str | None, Any]] = []
        self._failures: dict[str, httpx.Response | Exception] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._created = 0

    def fail(self, route: str, outcome: httpx.Response | Exception) -> None:
        self._failures[route] = outcome

    def clear_failure(self, route: str) -> None:
        self._failures.pop(route, None)

    def hold(self, route: str, wallet_id: str | None = None) -> asyncio.Event:
        event = asyncio.Event()
        self._gates[f"{route}:{wallet_id}" if wallet_id else route] = event
        return event

    def calls(self, route: str) -> list[tuple[str, str | None, Any]]:
        return [r for r in self.requests if r[0] == route]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip("/").split("/")
        route = parts[0]
        wallet_id = parts[1] if len(parts) > 1 else None
        body = json.loads(request.content) if request.content else None
        self.requests.append((route, wallet_id, body))

        gate = self._gates.get(f"{route}:{wallet_id}") or self._gates.get(route)
        if gate is not None:
            await gate.wait()

        outcome = self._failures.get(route)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return outcome
        return self._respond(route, wallet_id, body)

    def _respond(self, route: str, wallet_id: str | None, body: Any) -> httpx.Response:
        if route == "create_wallet":
            self._created += 1
            new_id = self.next_wallet_ids.pop(0) if self.next_wallet_ids else f"wallet-{self._created}"
            return httpx.Response(200, json={"wallet_id": new_id})
        if route == "get_address":
            default = {"onchain_address": f"bc1q{wallet_id}", "offchain_address": f"ark1{wallet_id}"}
            return httpx.Response(200, json=self.addresses.get(wallet_id or "", default))
        if route == "get_balance":
            return httpx.Response(200, json=self.balances.get(wallet_id or "", ZERO_BALANCE))
        if route in self.action_bodies:
            return httpx.Response(200, json=self.action_bodies[route])
        if route == "send_to_ark_address":
            return httpx.Response(
                200,
                json={
                    "account_id": body["wallet_id"],
                    "recipient": body["address"],
                    "amount": body["amount"],
                    "transaction_id": "tx-send",
                },
            )
        if route in ("faucet", "settle"):
            return httpx.Response(200, json={"success": True, "transaction_id": f"tx-{route}"})
        return httpx.Response(404, text="not found")


def attach_transport(client: WalletServiceClient, handler: Any) -> None:
    """Replace the internal httpx client with one using mock transport."""
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=client.base_url,
    )


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig with in-memory storage."""
    return AppConfig(
        service=ServiceConfig(url=SERVICE_URL, timeout=5.0),
        storage=StorageConfig(engine=StorageEngine.MEMORY),
    )


@pytest.fixture
def fake_service() -> FakeWalletService:
    return FakeWalletService()


@pytest.fixture
async def service_client(
    app_config: AppConfig, fake_service: FakeWalletService
) -> AsyncIterator[WalletServiceClient]:
    """Provide a connected client wired to the fake service."""
    from ark_wallet.service.client import WalletServiceClient

    client = WalletServiceClient(app_config.service)
    attach_transport(client, fake_service.handler)
    yield client
    await client.close()


@pytest.fixture
async def engine(
    app_config: AppConfig, service_client: WalletServiceClient
) -> AsyncIterator[ArkWalletEngine]:
    """Provide an initialized engine over the fake service and memory storage."""
    from ark_wallet.engine.client import ArkWalletEngine
    from ark_wallet.storage.memory import MemoryStore

    eng = ArkWalletEngine(app_config, client=service_client, store=MemoryStore())
    await eng.initialize()
    yield eng
    await eng.close()
