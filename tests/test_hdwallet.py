"""Tests for key derivation, address validation and the key manager."""

import asyncio

import pytest
from eth_account import Account

from walletbot.hdwallet.eth import (
    derive_keypair,
    generate_mnemonic,
    get_derivation_path,
    keypair_from_private_key,
    validate_address,
)
from walletbot.hdwallet.manager import KeyManager
from walletbot.sessions.models import AddressAlreadyAssignedError

from tests.conftest import TEST_ADDRESS, TEST_MNEMONIC, TEST_PRIVATE_KEY, USER_ID, OTHER_USER_ID


class TestDerivation:
    """BIP39/BIP44 derivation."""

    def test_derivation_path(self):
        assert get_derivation_path() == "m/44'/60'/0'/0/0"
        assert get_derivation_path(3) == "m/44'/60'/0'/0/3"

    def test_known_mnemonic(self):
        """Derivation matches the widely used development account."""
        keypair = derive_keypair(TEST_MNEMONIC)

        assert keypair.address == TEST_ADDRESS
        assert keypair.private_key == TEST_PRIVATE_KEY
        assert keypair.derivation_path == "m/44'/60'/0'/0/0"

    def test_public_key_matches_private_key(self):
        keypair = keypair_from_private_key(TEST_PRIVATE_KEY)

        assert keypair.address == TEST_ADDRESS
        assert keypair.public_key.startswith("0x")
        assert len(keypair.public_key) == 2 + 128

    def test_private_key_not_in_repr(self):
        keypair = derive_keypair(TEST_MNEMONIC)
        assert TEST_PRIVATE_KEY not in repr(keypair)

    def test_generate_mnemonic(self):
        first = generate_mnemonic()
        second = generate_mnemonic()

        assert len(first.split()) == 12
        assert first != second


class TestValidateAddress:
    """Address validation never raises."""

    @pytest.mark.parametrize(
        "candidate",
        [
            TEST_ADDRESS,
            TEST_ADDRESS.lower(),
            "0x" + TEST_ADDRESS[2:].upper(),
            f"  {TEST_ADDRESS}  ",
        ],
    )
    def test_valid(self, candidate):
        assert validate_address(candidate) is True

    @pytest.mark.parametrize(
        "candidate",
        [
            "",
            "0x",
            "hello",
            "0x1234",
            TEST_ADDRESS[2:],
            TEST_ADDRESS + "00",
            "0xZZ9Fd6e51aad88F6F4ce6aB8827279cffFb92266",
            # Mixed case with a broken checksum
            "0xF39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
            None,
            123,
            b"0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
        ],
    )
    def test_invalid(self, candidate):
        assert validate_address(candidate) is False


class TestKeyManager:
    """Per-user key lifecycle."""

    @pytest.mark.asyncio
    async def test_get_or_create_address_is_idempotent(self, sessions):
        """Second call returns the same address and keeps the same keys."""
        manager = KeyManager(sessions)

        first = await manager.get_or_create_address(USER_ID)
        key_after_first = (await sessions.get(USER_ID)).private_key
        second = await manager.get_or_create_address(USER_ID)

        assert first == second
        assert (await sessions.get(USER_ID)).private_key == key_after_first

    @pytest.mark.asyncio
    async def test_mnemonic_generated_once(self, sessions):
        calls = []

        def factory():
            calls.append(1)
            return TEST_MNEMONIC

        manager = KeyManager(sessions, mnemonic_factory=factory)
        await manager.get_or_create_address(USER_ID)
        await manager.get_or_create_address(USER_ID)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_first_requests_create_one_wallet(self, sessions):
        manager = KeyManager(sessions)

        results = await asyncio.gather(*(manager.get_or_create_address(USER_ID) for _ in range(5)))

        assert len(set(results)) == 1

    @pytest.mark.asyncio
    async def test_users_get_distinct_wallets(self, sessions):
        manager = KeyManager(sessions)

        first = await manager.get_or_create_address(USER_ID)
        second = await manager.get_or_create_address(OTHER_USER_ID)

        assert first != second

    @pytest.mark.asyncio
    async def test_stores_all_key_material(self, keys, sessions):
        address = await keys.get_or_create_address(USER_ID)
        session = await sessions.get(USER_ID)

        assert address == TEST_ADDRESS
        assert session.address == TEST_ADDRESS
        assert session.private_key == TEST_PRIVATE_KEY
        assert session.public_key == keypair_from_private_key(TEST_PRIVATE_KEY).public_key

    @pytest.mark.asyncio
    async def test_get_address_does_not_create(self, keys, sessions):
        assert await keys.get_address(USER_ID) is None
        assert await sessions.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_export_without_wallet(self, keys):
        """No wallet means an explicit None, never an empty secret."""
        assert await keys.export_private_key(USER_ID) is None

    @pytest.mark.asyncio
    async def test_export_without_wallet_after_session_exists(self, keys, sessions):
        await sessions.get_or_create(USER_ID)
        assert await keys.export_private_key(USER_ID) is None

    @pytest.mark.asyncio
    async def test_export_returns_usable_key(self, keys):
        address = await keys.get_or_create_address(USER_ID)

        exported = await keys.export_private_key(USER_ID)

        assert exported == "0x" + TEST_PRIVATE_KEY
        assert Account.from_key(exported).address == address

    @pytest.mark.asyncio
    async def test_keys_never_reassigned(self, keys, sessions):
        await keys.get_or_create_address(USER_ID)
        session = await sessions.get(USER_ID)

        with pytest.raises(AddressAlreadyAssignedError):
            session.assign_keys("0x" + "11" * 20, "22" * 32, "0x")

        assert session.address == TEST_ADDRESS
