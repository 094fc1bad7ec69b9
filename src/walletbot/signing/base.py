"""Transaction signing types.

Signing flow:
1. Fetch nonce and gas parameters from the custody API (sign-info)
2. Build a TransactionIntent from them plus destination and amount
3. Sign locally with the user's private key
4. Hand only the signed bytes to the broadcast endpoint

The private key never leaves the process.
"""

from dataclasses import dataclass

# Largest value an EVM transaction field can carry
UINT256_MAX = 2**256 - 1


class SigningError(Exception):
    """Exception raised when a transaction cannot be signed."""

    pass


@dataclass(frozen=True)
class TransactionIntent:
    """Everything needed to sign one native-coin transfer.

    Attributes:
        to: Destination address
        value: Amount in base units (wei)
        nonce: Sender nonce from sign-info
        gas_price: Gas price in wei from sign-info ("normal" tier)
        gas_limit: Gas limit from sign-info
        chain_id: EVM chain id
    """

    to: str
    value: int
    nonce: int
    gas_price: int
    gas_limit: int
    chain_id: int

    def to_tx_dict(self) -> dict:
        """Legacy (type 0) transaction dict as expected by eth_account."""
        return {
            "to": self.to,
            "value": self.value,
            "nonce": self.nonce,
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
            "chainId": self.chain_id,
        }


@dataclass(frozen=True)
class SignedTransaction:
    """Result of a successful signing operation."""

    raw_hex: str    # 0x-prefixed RLP bytes, what broadcast receives
    tx_hash: str    # 0x-prefixed keccak hash of raw bytes
