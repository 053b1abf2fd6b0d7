"""Wallet service HTTP client: create, addresses, balance, send, faucet, settle.

Async HTTP client for the remote Ark wallet service:
- POST /create_wallet
- GET  /get_address/<wallet_id>
- GET  /get_balance/<wallet_id>
- POST /send_to_ark_address
- POST /faucet
- POST /settle

Every transport failure and non-2xx status is classified into an
``ArkWalletError`` subclass; raw ``httpx`` exceptions never escape.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from ark_wallet.errors.wallet_errors import (
    HTTPStatusError,
    MalformedResponseError,
    NetworkUnavailableError,
    RequestTimeoutError,
    ServiceRejectedError,
)
from ark_wallet.service.models import ActionReceipt, AddressSet, BalanceSnapshot, CreatedWallet

if TYPE_CHECKING:
    from ark_wallet.config.settings import ServiceConfig

logger = logging.getLogger(__name__)

# Longest slice of an error body carried into the error message
_MAX_ERROR_BODY = 200


class WalletServiceClient:
    """Async HTTP client for the Ark wallet service.

    Usage::

        client = WalletServiceClient(config)
        await client.connect()
        try:
            created = await client.create_wallet()
            balance = await client.get_balance(created.wallet_id)
        finally:
            await client.close()
    """

    def __init__(self, config: ServiceConfig) -> None:
        """Initialize the wallet service client.

        Args:
            config: Service configuration (base url, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    @property
    def base_url(self) -> str:
        return self._config.url.rstrip("/")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create_wallet(self) -> CreatedWallet:
        """Ask the service to create a new wallet.

        Returns:
            CreatedWallet carrying the new wallet id.

        Raises:
            ArkWalletError: On transport, HTTP or payload errors.
        """
        data = await self._request_json("POST", "/create_wallet", action="create_wallet")
        return CreatedWallet.from_dict(data)

    async def get_addresses(self, wallet_id: str) -> AddressSet:
        """Get the on-chain and off-chain addresses of a wallet.

        Args:
            wallet_id: Identifier returned by ``create_wallet``.
        """
        data = await self._request_json(
            "GET", f"/get_address/{quote(wallet_id, safe='')}", action="get_address"
        )
        return AddressSet.from_dict(data)

    async def get_balance(self, wallet_id: str) -> BalanceSnapshot:
        """Get the off-chain and boarding balances of a wallet.

        Args:
            wallet_id: Identifier returned by ``create_wallet``.
        """
        data = await self._request_json(
            "GET", f"/get_balance/{quote(wallet_id, safe='')}", action="get_balance"
        )
        return BalanceSnapshot.from_dict(data)

    async def send_to_ark_address(self, wallet_id: str, address: str, amount: int) -> ActionReceipt:
        """Send ``amount`` satoshis from a wallet to an Ark address.

        Args:
            wallet_id: Source wallet.
            address: Destination Ark address.
            amount: Amount in satoshis.
        """
        body = {"wallet_id": wallet_id, "address": address, "amount": int(amount)}
        return await self._request_action("/send_to_ark_address", body, action="send")

    async def request_from_faucet(self, onchain_address: str, amount: float) -> ActionReceipt:
        """Request test funds for an on-chain address.

        Args:
            onchain_address: Boarding address to fund.
            amount: Amount in BTC.
        """
        body = {"onchain_address": onchain_address, "amount": float(amount)}
        return await self._request_action("/faucet", body, action="faucet")

    async def settle(self, wallet_id: str, to_address: str | None = None) -> ActionReceipt:
        """Settle a wallet's pending balances on-chain.

        Args:
            wallet_id: Wallet to settle.
            to_address: Optional destination; the service picks one when omitted.
        """
        body: dict[str, Any] = {"wallet_id": wallet_id}
        if to_address:
            body["to_address"] = to_address
        return await self._request_action("/settle", body, action="settle")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "WalletServiceClient is not connected, call connect() first"
            raise RuntimeError(msg)
        return self._client

    async def _send(
        self,
        method: str,
        path: str,
        *,
        action: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        client = self._ensure_connected()
        logger.debug("%s %s (%s)", method, path, action)
        try:
            response = await client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            msg = f"{action} timed out after {self._config.timeout}s"
            raise RequestTimeoutError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"{action} failed: wallet service unreachable ({exc})"
            raise NetworkUnavailableError(msg) from exc

        if not response.is_success:
            detail = response.text.strip()[:_MAX_ERROR_BODY] or response.reason_phrase
            msg = f"{action} failed: {response.status_code} {detail}"
            raise HTTPStatusError(msg, status_code=response.status_code)
        return response

    async def _request_json(self, method: str, path: str, *, action: str) -> Any:
        response = await self._send(method, path, action=action)
        try:
            return response.json()
        except ValueError as exc:
            msg = f"{action}: response body is not valid JSON"
            raise MalformedResponseError(msg) from exc

    async def _request_action(self, path: str, body: dict[str, Any], *, action: str) -> ActionReceipt:
        response = await self._send("POST", path, action=action, json=body)
        if not response.content.strip():
            return ActionReceipt()
        try:
            data = response.json()
        except ValueError:
            # Action bodies are service-defined; a 2xx status alone is success
            return ActionReceipt(raw={"text": response.text})
        receipt = ActionReceipt.from_dict(data, action=action)
        if not receipt.success:
            msg = receipt.error_message or f"{action} rejected by wallet service"
            raise ServiceRejectedError(msg)
        return receipt
