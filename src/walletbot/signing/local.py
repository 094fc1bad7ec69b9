"""Local signing backend.

Signs with an in-memory private key using eth_account. Pure: no network,
no session access, no logging of key material.
"""

import logging

from eth_account import Account
from eth_utils import is_address, to_checksum_address

from walletbot.signing.base import UINT256_MAX, SignedTransaction, SigningError, TransactionIntent

logger = logging.getLogger(__name__)


def _validate_intent(intent: TransactionIntent) -> None:
    if not isinstance(intent.to, str) or not is_address(intent.to):
        raise SigningError(f"Invalid destination address: {intent.to!r}")

    for name in ("value", "nonce", "gas_price", "gas_limit", "chain_id"):
        value = getattr(intent, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise SigningError(f"{name} must be an integer, got {value!r}")
        if value < 0:
            raise SigningError(f"{name} must not be negative")
        if value > UINT256_MAX:
            raise SigningError(f"{name} does not fit in 256 bits")

    if intent.gas_limit == 0:
        raise SigningError("gas_limit must be positive")
    if intent.chain_id == 0:
        raise SigningError("chain_id must be positive")


def sign_transaction(private_key: str, chain_id: int, intent: TransactionIntent) -> SignedTransaction:
    """Sign a native transfer.

    Args:
        private_key: Hex private key (with or without 0x)
        chain_id: Chain id the signature is bound to
        intent: Transaction parameters

    Returns:
        SignedTransaction with raw hex and hash

    Raises:
        SigningError: On any malformed parameter. Nothing partial is returned.
    """
    if intent.chain_id != chain_id:
        raise SigningError(
            f"Chain id mismatch: intent has {intent.chain_id}, signer expects {chain_id}"
        )
    _validate_intent(intent)

    tx = intent.to_tx_dict()
    tx["to"] = to_checksum_address(intent.to)

    try:
        signed = Account.sign_transaction(tx, private_key)
    except Exception as e:
        # Error text may echo key bytes; only the type is kept
        logger.debug(f"eth_account rejected transaction: {type(e).__name__}")
        raise SigningError(f"Failed to sign transaction ({type(e).__name__})") from e

    return SignedTransaction(
        raw_hex="0x" + bytes(signed.raw_transaction).hex(),
        tx_hash="0x" + bytes(signed.hash).hex(),
    )
