"""Tests for local transaction signing."""

import pytest
from eth_account import Account

from walletbot.signing.base import UINT256_MAX, SigningError, TransactionIntent
from walletbot.signing.local import sign_transaction

from tests.conftest import DESTINATION, TEST_ADDRESS, TEST_PRIVATE_KEY


def make_intent(**overrides) -> TransactionIntent:
    params = dict(
        to=DESTINATION,
        value=2500000000000000000,
        nonce=5,
        gas_price=20_000_000_000,
        gas_limit=21000,
        chain_id=1,
    )
    params.update(overrides)
    return TransactionIntent(**params)


class TestSignTransaction:
    """sign_transaction is pure and all-or-nothing."""

    def test_signature_recovers_sender(self):
        signed = sign_transaction(TEST_PRIVATE_KEY, 1, make_intent())

        assert signed.raw_hex.startswith("0x")
        assert signed.tx_hash.startswith("0x")
        assert len(signed.tx_hash) == 66
        assert Account.recover_transaction(signed.raw_hex) == TEST_ADDRESS

    def test_deterministic(self):
        """Same inputs, same bytes: nothing random, nothing stateful."""
        first = sign_transaction(TEST_PRIVATE_KEY, 1, make_intent())
        second = sign_transaction("0x" + TEST_PRIVATE_KEY, 1, make_intent())

        assert first == second

    def test_lowercase_destination_accepted(self):
        signed = sign_transaction(TEST_PRIVATE_KEY, 1, make_intent(to=DESTINATION.lower()))
        assert Account.recover_transaction(signed.raw_hex) == TEST_ADDRESS

    def test_tx_dict_fields(self):
        tx = make_intent().to_tx_dict()

        assert tx == {
            "to": DESTINATION,
            "value": 2500000000000000000,
            "nonce": 5,
            "gasPrice": 20_000_000_000,
            "gas": 21000,
            "chainId": 1,
        }

    @pytest.mark.parametrize(
        "overrides",
        [
            {"to": "not-an-address"},
            {"to": None},
            {"value": -1},
            {"nonce": -1},
            {"gas_price": "20"},
            {"gas_limit": 0},
            {"gas_limit": 21000.5},
            {"value": True},
            {"value": 2**256},
            {"gas_price": 2**256},
            {"gas_limit": 2**256},
        ],
    )
    def test_malformed_params_raise(self, overrides):
        with pytest.raises(SigningError):
            sign_transaction(TEST_PRIVATE_KEY, 1, make_intent(**overrides))

    def test_chain_id_mismatch(self):
        with pytest.raises(SigningError):
            sign_transaction(TEST_PRIVATE_KEY, 56, make_intent(chain_id=1))

    def test_invalid_private_key(self):
        with pytest.raises(SigningError) as exc_info:
            sign_transaction("zz" * 32, 1, make_intent())

        assert "zz" * 32 not in str(exc_info.value)

    def test_max_value_signs(self):
        """The bound is inclusive: uint256 max itself is a valid field."""
        signed = sign_transaction(TEST_PRIVATE_KEY, 1, make_intent(value=UINT256_MAX))
        assert Account.recover_transaction(signed.raw_hex) == TEST_ADDRESS
