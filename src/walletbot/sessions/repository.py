"""Session repository.

The state machine and key manager only talk to `SessionRepository`, so a
persistent backend can replace the in-memory table without touching them.
Each repository also owns the per-user locks that serialize session steps.
"""

import logging
from abc import ABC, abstractmethod
from typing import Hashable, Optional

from walletbot.sessions.locks import SessionLocks
from walletbot.sessions.models import UserSession

logger = logging.getLogger(__name__)


class SessionRepository(ABC):
    """Abstract storage for user sessions, keyed by chat user id."""

    def __init__(self):
        self.locks = SessionLocks()

    @abstractmethod
    async def get(self, user_id: Hashable) -> Optional[UserSession]:
        """Get a session, or None if the user has none yet."""
        pass

    @abstractmethod
    async def get_or_create(self, user_id: Hashable) -> UserSession:
        """Get existing session or create an empty one."""
        pass

    @abstractmethod
    async def update(self, session: UserSession) -> None:
        """Store the session's current state."""
        pass

    @abstractmethod
    async def clear(self, user_id: Hashable) -> None:
        """Reset the user's pending withdrawal. Key material is kept."""
        pass

    async def set_last_message_ref(self, user_id: Hashable, message_ref: Optional[int]) -> None:
        """Remember the last prompt message shown to the user."""
        session = await self.get_or_create(user_id)
        session.last_message_ref = message_ref
        await self.update(session)


class InMemorySessionRepository(SessionRepository):
    """Process-local session table. Everything is lost on restart."""

    def __init__(self):
        super().__init__()
        self._sessions: dict[Hashable, UserSession] = {}

    async def get(self, user_id: Hashable) -> Optional[UserSession]:
        return self._sessions.get(user_id)

    async def get_or_create(self, user_id: Hashable) -> UserSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = UserSession(user_id=user_id)
            self._sessions[user_id] = session
            logger.debug(f"Created session for user {user_id}")
        return session

    async def update(self, session: UserSession) -> None:
        self._sessions[session.user_id] = session

    async def clear(self, user_id: Hashable) -> None:
        session = self._sessions.get(user_id)
        if session is not None:
            session.reset_withdrawal()

    def __len__(self) -> int:
        return len(self._sessions)
