"""Client for the remote wallet custody API."""

from walletbot.custody.client import WalletApiClient, WalletApiError
from walletbot.custody.models import BroadcastResult, SignInfo, TokenAsset

__all__ = [
    "BroadcastResult",
    "SignInfo",
    "TokenAsset",
    "WalletApiClient",
    "WalletApiError",
]
