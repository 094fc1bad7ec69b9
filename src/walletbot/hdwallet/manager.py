"""Key Manager: one derived keypair per chat user."""

import logging
from typing import Callable, Hashable, Optional

from walletbot.hdwallet.eth import DEFAULT_INDEX, derive_keypair, generate_mnemonic, validate_address
from walletbot.sessions.repository import SessionRepository
from walletbot.signing.base import SignedTransaction, TransactionIntent
from walletbot.signing.local import sign_transaction

logger = logging.getLogger(__name__)


class KeyManager:
    """Creates, holds and uses each user's keypair.

    Keys are generated lazily on the first address request and stored in the
    user's session. They are never regenerated while the session lives.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        lock_timeout: Optional[float] = 30.0,
        mnemonic_factory: Callable[[], str] = generate_mnemonic,
    ):
        """Initialize key manager.

        Args:
            sessions: Session repository holding key material
            lock_timeout: Seconds to wait for the user's session lock
            mnemonic_factory: Source of fresh mnemonics (overridable in tests)
        """
        self.sessions = sessions
        self.lock_timeout = lock_timeout
        self._mnemonic_factory = mnemonic_factory

    async def get_or_create_address(self, user_id: Hashable) -> str:
        """Return the user's address, deriving a new keypair on first call.

        Raises:
            LockTimeoutError: If another step holds the user's session too long.
        """
        async with self.sessions.locks.hold(user_id, timeout=self.lock_timeout, operation="create_address"):
            session = await self.sessions.get_or_create(user_id)
            if session.address is not None:
                return session.address

            keypair = derive_keypair(self._mnemonic_factory(), index=DEFAULT_INDEX)
            session.assign_keys(
                address=keypair.address,
                private_key=keypair.private_key,
                public_key=keypair.public_key,
            )
            await self.sessions.update(session)

        logger.info(f"Created wallet {keypair.address} for user {user_id} ({keypair.derivation_path})")
        return keypair.address

    async def get_address(self, user_id: Hashable) -> Optional[str]:
        """Return the user's address without creating one."""
        session = await self.sessions.get(user_id)
        return session.address if session else None

    async def export_private_key(self, user_id: Hashable) -> Optional[str]:
        """Disclose the user's private key on explicit request.

        Returns:
            0x-prefixed private key, or None if the user has no wallet
        """
        session = await self.sessions.get(user_id)
        if session is None or not session.has_wallet:
            logger.debug(f"Key export requested by user {user_id} without a wallet")
            return None

        logger.debug(f"Private key exported for user {user_id}")
        return "0x" + session.private_key.removeprefix("0x")

    @staticmethod
    def validate_address(candidate: object) -> bool:
        """Check destination address format. Never raises."""
        return validate_address(candidate)

    @staticmethod
    def sign(private_key: str, chain_id: int, intent: TransactionIntent) -> SignedTransaction:
        """Sign a transaction intent. Raises SigningError on bad parameters."""
        return sign_transaction(private_key, chain_id, intent)
