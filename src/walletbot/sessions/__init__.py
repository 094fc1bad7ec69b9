"""Per-user conversational sessions."""

from walletbot.sessions.locks import LockTimeoutError, SessionLocks
from walletbot.sessions.models import AddressAlreadyAssignedError, UserSession
from walletbot.sessions.repository import InMemorySessionRepository, SessionRepository

__all__ = [
    "AddressAlreadyAssignedError",
    "InMemorySessionRepository",
    "LockTimeoutError",
    "SessionLocks",
    "SessionRepository",
    "UserSession",
]
