"""Wallet service data models: addresses, balances, action receipts.

Data classes representing the wallet service's JSON response objects.
Every ``from_dict`` raises ``MalformedResponseError`` when a required field
is missing or has the wrong type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ark_wallet.errors.wallet_errors import MalformedResponseError

SATS_PER_BTC = 100_000_000

# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _require_mapping(data: Any, name: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        msg = f"{name}: expected a JSON object, got {type(data).__name__}"
        raise MalformedResponseError(msg)
    return data


def _require_str(data: dict[str, Any], key: str, name: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        msg = f"{name}: missing or invalid field '{key}'"
        raise MalformedResponseError(msg)
    return value


def _require_sats(data: dict[str, Any], key: str, name: str) -> int:
    value = data.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"{name}: field '{key}' must be a non-negative integer"
        raise MalformedResponseError(msg)
    return value


def format_sats(sats: int) -> str:
    """Render a satoshi amount with its BTC equivalent."""
    return f"{sats:,} sats ({sats / SATS_PER_BTC:.8f} BTC)"


# ---------------------------------------------------------------------------
# Create wallet
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CreatedWallet:
    """Response of ``POST /create_wallet``."""

    wallet_id: str

    @classmethod
    def from_dict(cls, data: Any) -> CreatedWallet:
        payload = _require_mapping(data, "create_wallet")
        return cls(wallet_id=_require_str(payload, "wallet_id", "create_wallet"))


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AddressSet:
    """On-chain (boarding) and off-chain (Ark) receive addresses of a wallet."""

    onchain_address: str
    offchain_address: str

    @classmethod
    def from_dict(cls, data: Any) -> AddressSet:
        payload = _require_mapping(data, "get_address")
        return cls(
            onchain_address=_require_str(payload, "onchain_address", "get_address"),
            offchain_address=_require_str(payload, "offchain_address", "get_address"),
        )


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OffchainBalance:
    """Off-chain (VTXO) balance in satoshis."""

    spendable: int = 0
    expired: int = 0

    @property
    def total(self) -> int:
        return self.spendable + self.expired


@dataclass(frozen=True)
class BoardingBalance:
    """Boarding (on-chain) balance in satoshis."""

    spendable: int = 0
    pending: int = 0
    expired: int = 0

    @property
    def total(self) -> int:
        return self.spendable + self.pending + self.expired


@dataclass(frozen=True)
class BalanceSnapshot:
    """Response of ``GET /get_balance/{wallet_id}``."""

    offchain: OffchainBalance = field(default_factory=OffchainBalance)
    boarding: BoardingBalance = field(default_factory=BoardingBalance)

    @property
    def spendable(self) -> int:
        """Satoshis spendable right now across both pools."""
        return self.offchain.spendable + self.boarding.spendable

    @classmethod
    def from_dict(cls, data: Any) -> BalanceSnapshot:
        payload = _require_mapping(data, "get_balance")
        offchain = _require_mapping(payload.get("offchain_balance"), "offchain_balance")
        boarding = _require_mapping(payload.get("boarding_balance"), "boarding_balance")
        return cls(
            offchain=OffchainBalance(
                spendable=_require_sats(offchain, "spendable", "offchain_balance"),
                expired=_require_sats(offchain, "expired", "offchain_balance"),
            ),
            boarding=BoardingBalance(
                spendable=_require_sats(boarding, "spendable", "boarding_balance"),
                pending=_require_sats(boarding, "pending", "boarding_balance"),
                expired=_require_sats(boarding, "expired", "boarding_balance"),
            ),
        )


# ---------------------------------------------------------------------------
# Action receipts (send / faucet / settle)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionReceipt:
    """Service-defined response of a mutating action.

    Attributes:
        success: The service's ``success`` flag (True when absent).
        transaction_id: Transaction id returned by the service, if any.
        error_message: Service-supplied failure detail, if any.
        raw: The decoded JSON body as received.
    """

    success: bool = True
    transaction_id: str | None = None
    error_message: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Any, *, action: str) -> ActionReceipt:
        payload = _require_mapping(data, action)
        success = payload.get("success", True)
        if not isinstance(success, bool):
            msg = f"{action}: field 'success' must be a boolean"
            raise MalformedResponseError(msg)
        txid = payload.get("transaction_id") or payload.get("txid")
        if txid is not None and not isinstance(txid, str):
            msg = f"{action}: transaction id must be a string"
            raise MalformedResponseError(msg)
        error_message = payload.get("error_message")
        return cls(
            success=success,
            transaction_id=txid,
            error_message=str(error_message) if error_message is not None else None,
            raw=payload,
        )
