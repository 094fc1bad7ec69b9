"""HD wallet module: per-user key derivation and address validation."""

from walletbot.hdwallet.eth import KeyPair, derive_keypair, generate_mnemonic, validate_address
from walletbot.hdwallet.manager import KeyManager

__all__ = [
    "KeyManager",
    "KeyPair",
    "derive_keypair",
    "generate_mnemonic",
    "validate_address",
]
