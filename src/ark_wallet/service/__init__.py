"""Remote wallet service: HTTP client and response models."""

from ark_wallet.service.client import WalletServiceClient
from ark_wallet.service.models import (
    ActionReceipt,
    AddressSet,
    BalanceSnapshot,
    BoardingBalance,
    CreatedWallet,
    OffchainBalance,
)

__all__ = [
    "ActionReceipt",
    "AddressSet",
    "BalanceSnapshot",
    "BoardingBalance",
    "CreatedWallet",
    "OffchainBalance",
    "WalletServiceClient",
]
