"""ETH key derivation using BIP39/BIP44.

Derivation path: m/44'/60'/0'/0/index
Address format: 0x... (checksum encoded)

Unlike an xpub-only watch wallet, every user here gets a full keypair:
the custodial flow signs withdrawals locally.
"""

from dataclasses import dataclass, field

from bip_utils import Bip32Secp256k1, Bip39MnemonicGenerator, Bip39SeedGenerator, Bip39WordsNum
from eth_account import Account
from eth_keys import keys
from eth_utils import is_address

COIN_TYPE = 60  # ETH coin type for all EVM chains
PURPOSE = 44
DEFAULT_INDEX = 0


@dataclass(frozen=True)
class KeyPair:
    """A derived keypair. The private key is excluded from repr."""

    address: str
    public_key: str
    private_key: str = field(repr=False)
    derivation_path: str = ""


def get_derivation_path(index: int = DEFAULT_INDEX, change: int = 0) -> str:
    """Full BIP44 path: m/purpose'/coin_type'/account'/change/index."""
    return f"m/{PURPOSE}'/{COIN_TYPE}'/0'/{change}/{index}"


def generate_mnemonic() -> str:
    """Generate a fresh random 12-word BIP39 mnemonic."""
    return str(Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum.WORDS_NUM_12))


def derive_private_key(mnemonic: str, index: int = DEFAULT_INDEX) -> str:
    """Derive the hex private key (no 0x) at the given index."""
    seed = Bip39SeedGenerator(mnemonic).Generate()
    bip32_ctx = Bip32Secp256k1.FromSeed(seed)
    # Bip32 paths are relative to the master key, so drop the "m/" prefix
    child = bip32_ctx.DerivePath(get_derivation_path(index)[2:])
    return child.PrivateKey().Raw().ToHex()


def keypair_from_private_key(private_key: str, derivation_path: str = "") -> KeyPair:
    """Derive address and public key from a private key."""
    key_bytes = bytes.fromhex(private_key.removeprefix("0x"))
    account = Account.from_key(key_bytes)
    public_key = keys.PrivateKey(key_bytes).public_key.to_hex()

    return KeyPair(
        address=account.address,
        public_key=public_key,
        private_key=private_key,
        derivation_path=derivation_path,
    )


def derive_keypair(mnemonic: str, index: int = DEFAULT_INDEX) -> KeyPair:
    """Derive a full keypair from a mnemonic at the given index."""
    private_key = derive_private_key(mnemonic, index)
    return keypair_from_private_key(private_key, get_derivation_path(index))


def validate_address(candidate: object) -> bool:
    """Validate an EVM address. Never raises.

    Accepts all-lowercase or all-uppercase hex, and mixed case only when the
    EIP-55 checksum matches.
    """
    if not isinstance(candidate, str):
        return False
    candidate = candidate.strip()
    if not candidate.startswith("0x") or len(candidate) != 42:
        return False
    try:
        return bool(is_address(candidate))
    except Exception:
        return False
