"""Per-user session locks.

A repository owns one `SessionLocks` registry. Steps that read and then write
a user's session hold that user's lock, so a withdraw trigger arriving while a
withdrawal is signing or broadcasting waits for it instead of interleaving.

An entry lives only while some step holds or waits for it; the registry is
empty whenever no session step is running.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Hashable, Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a user's session stays busy longer than the caller will wait."""

    pass


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0  # holding or waiting


class SessionLocks:
    """Registry of per-user locks with reference-counted entries."""

    def __init__(self):
        self._entries: dict[Hashable, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def is_busy(self, user_id: Hashable) -> bool:
        entry = self._entries.get(user_id)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def hold(
        self,
        user_id: Hashable,
        timeout: Optional[float] = None,
        operation: str = "session_step",
    ) -> AsyncIterator[None]:
        """Hold the user's lock for the duration of the block.

        Args:
            user_id: Chat user identifier
            timeout: Seconds to wait for the lock (None = wait forever)
            operation: Step name for logging

        Raises:
            LockTimeoutError: If the lock is not acquired within `timeout`.
        """
        entry = self._entries.get(user_id)
        if entry is None:
            entry = self._entries[user_id] = _LockEntry()
        entry.holders += 1

        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"User {user_id} busy for {timeout}s, rejecting {operation}")
                raise LockTimeoutError(f"Session of user {user_id} busy for more than {timeout}s") from None

            logger.debug(f"{operation} holds session lock of user {user_id}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.holders -= 1
            if entry.holders == 0 and self._entries.get(user_id) is entry:
                del self._entries[user_id]
