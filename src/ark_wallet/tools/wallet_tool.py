#!/usr/bin/env python3
"""Ark Wallet Tool: manage wallets and move funds from the command line.

A command-line front end over the wallet service:

    # Create a wallet and make it active
    ark-wallet create

    # List wallets known to this machine
    ark-wallet list

    # Show addresses and balances of a wallet
    ark-wallet show <wallet_id>

    # Send sats to an Ark address
    ark-wallet send <wallet_id> <address> <sats>

    # Request test funds (BTC) to the wallet's on-chain address
    ark-wallet faucet <wallet_id> [btc]

    # Settle pending balances on-chain
    ark-wallet settle <wallet_id> [to_address]

Add ``--verbose`` anywhere for debug logging. Settings come from
``ARKWALLET_*`` environment variables (see ``ark_wallet.config.settings``).
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from ark_wallet.config.settings import AppConfig
from ark_wallet.engine.client import ArkWalletEngine
from ark_wallet.engine.lifecycle import OperationKind
from ark_wallet.service.models import format_sats

if TYPE_CHECKING:
    from ark_wallet.engine.lifecycle import OperationResult
    from ark_wallet.engine.state import SessionState


def _build_engine(config: AppConfig) -> ArkWalletEngine:
    return ArkWalletEngine(config)


def _print_state(state: SessionState) -> None:
    print(f"Wallet:       {state.active_wallet_id}")
    if state.has_details:
        assert state.addresses is not None and state.balance is not None
        off, board = state.balance.offchain, state.balance.boarding
        print(f"On-chain:     {state.addresses.onchain_address}")
        print(f"Off-chain:    {state.addresses.offchain_address}")
        print(f"Spendable:    {format_sats(state.balance.spendable)}")
        print(f"Off-chain balance ({format_sats(off.total)})")
        print(f"  spendable:  {format_sats(off.spendable)}")
        print(f"  expired:    {format_sats(off.expired)}")
        print(f"Boarding balance ({format_sats(board.total)})")
        print(f"  spendable:  {format_sats(board.spendable)}")
        print(f"  pending:    {format_sats(board.pending)}")
        print(f"  expired:    {format_sats(board.expired)}")
    if state.last_error is not None:
        print(f"Error:        {state.last_error.message}")


def _report(result: OperationResult, state: SessionState) -> int:
    for warning in result.warnings:
        print(f"Warning: {warning.message}")
    if not result.ok:
        assert result.error is not None
        print(f"{result.operation} failed: {result.error.message}")
        return 1
    if result.value:
        label = "Wallet id" if result.operation is OperationKind.CREATE else "Transaction"
        print(f"{label}: {result.value}")
    _print_state(state)
    return 0


async def _cmd_create(engine: ArkWalletEngine) -> int:
    result = await engine.controller.create_wallet()
    return _report(result, engine.state)


async def _cmd_list(engine: ArkWalletEngine) -> int:
    if not len(engine.registry):
        print("No wallets yet. Run: ark-wallet create")
        return 0
    for record in engine.registry:
        print(f"  {record.id}  (created {record.created_at:%Y-%m-%d %H:%M:%S})")
    return 0


def _known_wallet(engine: ArkWalletEngine, wallet_id: str) -> bool:
    if wallet_id in engine.registry:
        return True
    print(f"Unknown wallet: {wallet_id}. Run: ark-wallet list")
    return False


async def _cmd_show(engine: ArkWalletEngine, wallet_id: str) -> int:
    ok = await engine.session.select_wallet(wallet_id)
    _print_state(engine.state)
    return 0 if ok else 1


async def _cmd_send(engine: ArkWalletEngine, wallet_id: str, address: str, amount: str) -> int:
    await engine.session.select_wallet(wallet_id)
    result = await engine.controller.send(address, amount)
    return _report(result, engine.state)


async def _cmd_faucet(engine: ArkWalletEngine, wallet_id: str, amount: str | None) -> int:
    if not await engine.session.select_wallet(wallet_id):
        _print_state(engine.state)
        return 1
    result = await engine.controller.request_faucet(amount)
    return _report(result, engine.state)


async def _cmd_settle(engine: ArkWalletEngine, wallet_id: str, to_address: str | None) -> int:
    await engine.session.select_wallet(wallet_id)
    result = await engine.controller.settle(to_address)
    return _report(result, engine.state)


async def _dispatch(cmd: str, args: list[str], config: AppConfig) -> int:
    engine = _build_engine(config)
    await engine.initialize()
    try:
        if cmd == "create":
            return await _cmd_create(engine)
        if cmd == "list":
            return await _cmd_list(engine)
        if not _known_wallet(engine, args[0]):
            return 1
        if cmd == "show":
            return await _cmd_show(engine, args[0])
        if cmd == "send":
            return await _cmd_send(engine, args[0], args[1], args[2])
        if cmd == "faucet":
            return await _cmd_faucet(engine, args[0], args[1] if len(args) > 1 else None)
        return await _cmd_settle(engine, args[0], args[1] if len(args) > 1 else None)
    finally:
        await engine.close()


_USAGE = {
    "create": ("create", 0),
    "list": ("list", 0),
    "show": ("show <wallet_id>", 1),
    "send": ("send <wallet_id> <address> <sats>", 3),
    "faucet": ("faucet <wallet_id> [btc]", 1),
    "settle": ("settle <wallet_id> [to_address]", 1),
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in args
    args = [a for a in args if a != "--verbose"]

    if not args or args[0].lower() in ("help", "-h", "--help"):
        print(__doc__)
        sys.exit(0 if args else 1)

    cmd, rest = args[0].lower(), args[1:]
    if cmd not in _USAGE:
        print(f"Unknown command: {cmd}")
        print(__doc__)
        sys.exit(1)
    usage, required = _USAGE[cmd]
    if len(rest) < required:
        print(f"Usage: ark-wallet {usage}")
        sys.exit(1)

    config = AppConfig()
    logging.basicConfig(
        level=logging.DEBUG if verbose or config.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    code = asyncio.run(_dispatch(cmd, rest, config))
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
