"""Session orchestration engine."""

from ark_wallet.engine.client import ArkWalletEngine
from ark_wallet.engine.lifecycle import OperationKind, OperationLifecycleController, OperationResult
from ark_wallet.engine.registry import WalletRecord, WalletRegistry
from ark_wallet.engine.session import ActiveSessionManager
from ark_wallet.engine.state import SessionState, SessionStore

__all__ = [
    "ActiveSessionManager",
    "ArkWalletEngine",
    "OperationKind",
    "OperationLifecycleController",
    "OperationResult",
    "SessionState",
    "SessionStore",
    "WalletRecord",
    "WalletRegistry",
]
