"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["OKX_API_KEY"] = "test-api-key"
os.environ["OKX_SECRET_KEY"] = "test-secret-key"
os.environ["OKX_PASSPHRASE"] = "test-passphrase"
os.environ["OKX_PROJECT_ID"] = "test-project"

from walletbot.custody.client import WalletApiClient
from walletbot.custody.models import BroadcastResult, SignInfo
from walletbot.hdwallet.manager import KeyManager
from walletbot.sessions.repository import InMemorySessionRepository
from walletbot.withdrawal.machine import WithdrawalStateMachine

# Well-known development mnemonic and its first account (m/44'/60'/0'/0/0)
TEST_MNEMONIC = "test test test test test test test test test test test junk"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

DESTINATION = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

USER_ID = 1001
OTHER_USER_ID = 2002


def make_sign_info(nonce: int = 5, gas_price: int = 20_000_000_000, gas_limit: int = 21000) -> SignInfo:
    """Build a sign-info payload the way the API returns it (strings)."""
    return SignInfo.model_validate(
        {"nonce": str(nonce), "gasPrice": {"normal": str(gas_price)}, "gasLimit": str(gas_limit)}
    )


@pytest.fixture
def sessions() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def keys(sessions) -> KeyManager:
    """Key manager that always derives from the test mnemonic."""
    return KeyManager(sessions, lock_timeout=5.0, mnemonic_factory=lambda: TEST_MNEMONIC)


@pytest.fixture
def fake_client() -> AsyncMock:
    """Custody client double with successful default responses."""
    client = AsyncMock(spec=WalletApiClient)
    client.get_sign_info.return_value = make_sign_info()
    client.broadcast_transaction.return_value = BroadcastResult.model_validate({"orderId": "order-123"})
    return client


@pytest.fixture
def machine(sessions, keys, fake_client) -> WithdrawalStateMachine:
    return WithdrawalStateMachine(
        sessions=sessions,
        keys=keys,
        client=fake_client,
        chain_index="1",
        symbol="ETH",
        lock_timeout=5.0,
    )


@pytest_asyncio.fixture
async def wallet_user(keys) -> int:
    """A user who already has a wallet."""
    await keys.get_or_create_address(USER_ID)
    return USER_ID
