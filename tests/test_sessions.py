"""Tests for the session store."""

from decimal import Decimal

import pytest

from walletbot.sessions.models import UserSession
from walletbot.withdrawal.states import (
    AmountCaptured,
    AmountRequested,
    BroadcastInFlight,
    Idle,
    InputKind,
    PendingWithdrawal,
)

from tests.conftest import DESTINATION, OTHER_USER_ID, USER_ID


class TestInMemorySessionRepository:
    """Session lookup, update and clear."""

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, sessions):
        assert await sessions.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_get_or_create(self, sessions):
        first = await sessions.get_or_create(USER_ID)
        second = await sessions.get_or_create(USER_ID)

        assert first is second
        assert isinstance(first.withdrawal, Idle)
        assert not first.has_wallet
        assert len(sessions) == 1

    @pytest.mark.asyncio
    async def test_update_persists_state(self, sessions):
        session = await sessions.get_or_create(USER_ID)
        session.withdrawal = AmountRequested(prompt_id="p1")
        await sessions.update(session)

        stored = await sessions.get(USER_ID)
        assert stored.expected_input == InputKind.AMOUNT

    @pytest.mark.asyncio
    async def test_clear_keeps_keys(self, sessions):
        session = await sessions.get_or_create(USER_ID)
        session.assign_keys("0xabc", "11" * 32, "0xpub")
        session.withdrawal = AmountCaptured(amount=Decimal("1"), prompt_id="p1")
        await sessions.update(session)

        await sessions.clear(USER_ID)

        stored = await sessions.get(USER_ID)
        assert isinstance(stored.withdrawal, Idle)
        assert stored.pending_withdrawal is None
        assert stored.address == "0xabc"
        assert stored.private_key == "11" * 32

    @pytest.mark.asyncio
    async def test_clear_unknown_user_is_noop(self, sessions):
        await sessions.clear(USER_ID)
        assert await sessions.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_users_isolated(self, sessions):
        first = await sessions.get_or_create(USER_ID)
        first.withdrawal = AmountRequested(prompt_id="p1")
        await sessions.update(first)

        other = await sessions.get_or_create(OTHER_USER_ID)

        assert isinstance(other.withdrawal, Idle)

    @pytest.mark.asyncio
    async def test_last_message_ref(self, sessions):
        await sessions.set_last_message_ref(USER_ID, 42)
        assert (await sessions.get(USER_ID)).last_message_ref == 42

        await sessions.set_last_message_ref(USER_ID, None)
        assert (await sessions.get(USER_ID)).last_message_ref is None


class TestUserSession:
    """Projections of the withdrawal state."""

    def test_pending_withdrawal_projection(self):
        session = UserSession(user_id=USER_ID)
        assert session.pending_withdrawal is None

        session.withdrawal = AmountCaptured(amount=Decimal("2.5"), prompt_id="p1")
        assert session.pending_withdrawal == PendingWithdrawal(amount=Decimal("2.5"))
        assert session.expected_input == InputKind.DESTINATION

        session.withdrawal = BroadcastInFlight(amount=Decimal("2.5"), destination=DESTINATION, tx_hash="0x1")
        assert session.pending_withdrawal == PendingWithdrawal(amount=Decimal("2.5"), destination=DESTINATION)
        assert session.expected_input is None

    def test_private_key_not_in_repr(self):
        session = UserSession(user_id=USER_ID)
        session.assign_keys("0xabc", "deadbeef" * 8, "0xpub")

        assert "deadbeef" not in repr(session)
