"""Wiring of the wallet core: one instance shared by all handlers."""

import logging
from dataclasses import dataclass
from typing import Optional

from walletbot.config import Settings, get_settings
from walletbot.custody.client import WalletApiClient
from walletbot.hdwallet.manager import KeyManager
from walletbot.sessions.repository import InMemorySessionRepository, SessionRepository
from walletbot.withdrawal.machine import WithdrawalStateMachine

logger = logging.getLogger(__name__)


@dataclass
class WalletServices:
    """Collaborators the chat front end talks to."""

    settings: Settings
    sessions: SessionRepository
    keys: KeyManager
    client: WalletApiClient
    machine: WithdrawalStateMachine

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        sessions: Optional[SessionRepository] = None,
        client: Optional[WalletApiClient] = None,
    ) -> "WalletServices":
        """Build the service graph from settings."""
        settings = settings or get_settings()
        sessions = sessions or InMemorySessionRepository()
        client = client or WalletApiClient.from_settings(settings)

        if not settings.has_api_credentials:
            logger.warning("Custody API credentials not configured - balance and withdrawals will fail")

        keys = KeyManager(sessions, lock_timeout=settings.session_lock_timeout)
        machine = WithdrawalStateMachine(
            sessions=sessions,
            keys=keys,
            client=client,
            chain_index=settings.chain_index,
            chain_id=settings.chain_id,
            symbol=settings.native_symbol,
            decimals=settings.native_decimals,
            lock_timeout=settings.session_lock_timeout,
        )
        return cls(settings=settings, sessions=sessions, keys=keys, client=client, machine=machine)
