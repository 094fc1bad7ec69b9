"""Withdrawal state machine.

Drives the multi-turn withdrawal conversation for each user. Every step that
mutates a session runs under the user's session lock, so a second trigger
arriving while a withdrawal is signing or broadcasting waits for it to finish.
Every failure is turned into a Reply here; no exception reaches the front end.

Policies:
- A bad amount keeps the session in AmountRequested and re-prompts.
- A bad destination ends the attempt (no retry loop bound to a stale amount).
- A new withdraw intent while one is pending replaces it (last intent wins).
- Any remote or signing failure ends the attempt and clears pending state.
"""

import logging
import secrets
from decimal import Decimal
from typing import AsyncContextManager, Callable, Hashable, Optional

from walletbot.custody.client import WalletApiClient, WalletApiError
from walletbot.hdwallet.manager import KeyManager
from walletbot.sessions.locks import LockTimeoutError
from walletbot.sessions.models import UserSession
from walletbot.sessions.repository import SessionRepository
from walletbot.signing.base import SigningError, TransactionIntent
from walletbot.withdrawal.amounts import (
    NATIVE_DECIMALS,
    InvalidAmountError,
    format_amount,
    parse_amount,
    to_base_units,
)
from walletbot.withdrawal.base import Reply, WithdrawalOutcome
from walletbot.withdrawal.states import (
    IDLE,
    AmountCaptured,
    AmountRequested,
    BroadcastInFlight,
    DestinationCaptured,
    Idle,
    InputKind,
    SigningInFlight,
    WithdrawalState,
    is_in_flight,
)

logger = logging.getLogger(__name__)

NO_WALLET_TEXT = "You don't have a wallet yet.\n\nUse /address to create one."
BUSY_TEXT = "Your previous request is still being processed. Please try again shortly."
NOTHING_TO_CANCEL_TEXT = "No withdrawal in progress."
CANCELLED_TEXT = "Withdrawal cancelled."
EXPIRED_TEXT = "This withdrawal prompt has expired. Please start again with /withdraw"
IN_FLIGHT_TEXT = "Withdrawal is already being signed and broadcast. It can no longer be cancelled."
INVALID_ADDRESS_REASON = "Invalid destination address"
SIGN_INFO_FAILED_REASON = "Could not prepare the transaction. Please try again later."
SIGNING_FAILED_REASON = "Could not sign the transaction."
UNEXPECTED_REASON = "Something went wrong. Please try again later."


def _short(address: str) -> str:
    return f"{address[:10]}...{address[-6:]}" if len(address) > 20 else address


def _new_prompt_id() -> str:
    return secrets.token_hex(8)


class WithdrawalStateMachine:
    """Withdrawal conversation driver.

    Example:
        machine = WithdrawalStateMachine(sessions, keys, client, chain_index="1")
        reply = await machine.request_withdrawal(user_id)      # asks for amount
        reply = await machine.handle_text(user_id, "2.5")       # asks for destination
        reply = await machine.handle_text(user_id, "0xabc...")  # signs and broadcasts
    """

    def __init__(
        self,
        sessions: SessionRepository,
        keys: KeyManager,
        client: WalletApiClient,
        chain_index: str,
        chain_id: Optional[int] = None,
        symbol: str = "ETH",
        decimals: int = NATIVE_DECIMALS,
        lock_timeout: Optional[float] = 60.0,
        prompt_id_factory: Callable[[], str] = _new_prompt_id,
    ):
        """Initialize the state machine.

        Args:
            sessions: Session repository
            keys: Key manager (address validation, signing)
            client: Custody API client (sign-info, broadcast)
            chain_index: Chain identifier sent to the API
            chain_id: EVM chain id for signing (defaults to int(chain_index))
            symbol: Native coin symbol for messages
            decimals: Native coin decimals
            lock_timeout: Seconds a step waits behind an in-flight step
            prompt_id_factory: Generates prompt correlation ids
        """
        self.sessions = sessions
        self.keys = keys
        self.client = client
        self.chain_index = chain_index
        self.chain_id = chain_id if chain_id is not None else int(chain_index)
        self.symbol = symbol
        self.decimals = decimals
        self.lock_timeout = lock_timeout
        self._prompt_id_factory = prompt_id_factory

    def _lock(self, user_id: Hashable, operation: str) -> AsyncContextManager[None]:
        return self.sessions.locks.hold(user_id, timeout=self.lock_timeout, operation=operation)

    async def get_state(self, user_id: Hashable) -> WithdrawalState:
        """Current withdrawal state for a user (Idle if unknown)."""
        session = await self.sessions.get(user_id)
        return session.withdrawal if session else IDLE

    # Transitions

    async def request_withdrawal(self, user_id: Hashable) -> Reply:
        """Idle -> AmountRequested. Replaces any pending request."""
        session = await self.sessions.get(user_id)
        if session is None or not session.has_wallet:
            return Reply(NO_WALLET_TEXT)

        try:
            async with self._lock(user_id, "withdraw_request"):
                session = await self.sessions.get(user_id)
                if is_in_flight(session.withdrawal):
                    return Reply(BUSY_TEXT)

                if not isinstance(session.withdrawal, Idle):
                    logger.info(
                        f"User {user_id} restarted withdrawal, dropping {session.withdrawal.status.value}"
                    )

                prompt_id = self._prompt_id_factory()
                session.withdrawal = AmountRequested(prompt_id=prompt_id)
                await self.sessions.update(session)

                return Reply(
                    self._amount_prompt(session),
                    expects=InputKind.AMOUNT,
                    prompt_id=prompt_id,
                )
        except LockTimeoutError:
            return Reply(BUSY_TEXT)

    async def handle_text(self, user_id: Hashable, text: str) -> Optional[Reply]:
        """Feed a free-text reply into the conversation.

        Returns:
            Reply to show, or None when the session is not waiting for input
            (the text is ordinary chat and is ignored).
        """
        # Ordinary chat never takes the lock; the state is re-read once held
        session = await self.sessions.get(user_id)
        if session is None or session.expected_input is None:
            return None

        try:
            async with self._lock(user_id, "withdraw_input"):
                session = await self.sessions.get(user_id)
                state = session.withdrawal
                try:
                    if isinstance(state, AmountRequested):
                        return await self._capture_amount(session, state, text)
                    if isinstance(state, AmountCaptured):
                        return await self._capture_destination(session, state, text)
                    return None
                except Exception:
                    logger.exception(f"Withdrawal step failed for user {user_id}")
                    await self.sessions.clear(user_id)
                    return self._failure(state, UNEXPECTED_REASON)
        except LockTimeoutError:
            return Reply(BUSY_TEXT)

    async def cancel(self, user_id: Hashable, prompt_id: Optional[str] = None) -> Reply:
        """Cancel a pending withdrawal that has not started signing.

        Args:
            user_id: Chat user
            prompt_id: Correlation id from the prompt being cancelled. A stale
                id leaves the current withdrawal untouched.
        """
        session = await self.sessions.get(user_id)
        if session is None or isinstance(session.withdrawal, Idle):
            return Reply(NOTHING_TO_CANCEL_TEXT)

        try:
            async with self._lock(user_id, "withdraw_cancel"):
                session = await self.sessions.get(user_id)
                if isinstance(session.withdrawal, Idle):
                    return Reply(NOTHING_TO_CANCEL_TEXT)

                state = session.withdrawal
                if is_in_flight(state):
                    return Reply(IN_FLIGHT_TEXT)

                if prompt_id is not None and prompt_id != state.prompt_id:
                    return Reply(EXPIRED_TEXT)

                await self.sessions.clear(user_id)
                logger.info(f"User {user_id} cancelled withdrawal")
                return Reply(CANCELLED_TEXT)
        except LockTimeoutError:
            return Reply(BUSY_TEXT)

    # Steps

    async def _capture_amount(self, session: UserSession, state: AmountRequested, text: str) -> Reply:
        """AmountRequested -> AmountCaptured. Bad input leaves state untouched."""
        try:
            amount = parse_amount(text, self.decimals)
        except InvalidAmountError as e:
            return Reply(
                f"{e}.\n\nPlease enter a valid positive number:",
                expects=InputKind.AMOUNT,
                prompt_id=state.prompt_id,
            )

        prompt_id = self._prompt_id_factory()
        session.withdrawal = AmountCaptured(amount=amount, prompt_id=prompt_id)
        await self.sessions.update(session)

        text = f"""Withdraw {format_amount(amount)} {self.symbol}

Enter the destination address:

Example: 0x..."""
        return Reply(text, expects=InputKind.DESTINATION, prompt_id=prompt_id)

    async def _capture_destination(self, session: UserSession, state: AmountCaptured, text: str) -> Reply:
        """AmountCaptured -> DestinationCaptured -> signing -> broadcast -> Idle."""
        destination = text.strip()
        if not self.keys.validate_address(destination):
            logger.info(f"User {session.user_id} entered invalid destination, withdrawal aborted")
            await self.sessions.clear(session.user_id)
            return self._failure(state, INVALID_ADDRESS_REASON, destination=destination)

        try:
            session.withdrawal = DestinationCaptured(amount=state.amount, destination=destination)
            await self.sessions.update(session)
            return await self._execute(session, state.amount, destination)
        finally:
            await self.sessions.clear(session.user_id)

    async def _execute(self, session: UserSession, amount: Decimal, destination: str) -> Reply:
        """Fetch sign-info, sign locally, broadcast. Caller clears state."""
        value = to_base_units(amount, self.decimals)
        user_id = session.user_id

        session.withdrawal = SigningInFlight(amount=amount, destination=destination)
        await self.sessions.update(session)

        logger.info(
            f"Withdrawal for user {user_id}: {format_amount(amount)} {self.symbol} "
            f"({value} base units) to {destination}"
        )

        try:
            sign_info = await self.client.get_sign_info(
                self.chain_index, session.address, destination, str(value)
            )
        except WalletApiError as e:
            logger.error(f"Sign-info failed for user {user_id}: code={e.code} {e.message}")
            return self._failure(session.withdrawal, SIGN_INFO_FAILED_REASON)

        try:
            intent = TransactionIntent(
                to=destination,
                value=value,
                nonce=sign_info.nonce,
                gas_price=sign_info.gas_price.normal,
                gas_limit=sign_info.gas_limit,
                chain_id=self.chain_id,
            )
            signed = self.keys.sign(session.private_key, self.chain_id, intent)
        except SigningError as e:
            logger.error(f"Signing failed for user {user_id}: {e}")
            return self._failure(session.withdrawal, SIGNING_FAILED_REASON)

        session.withdrawal = BroadcastInFlight(
            amount=amount, destination=destination, tx_hash=signed.tx_hash
        )
        await self.sessions.update(session)

        try:
            result = await self.client.broadcast_transaction(
                signed.raw_hex, self.chain_index, session.address
            )
        except WalletApiError as e:
            logger.error(f"Broadcast failed for user {user_id}: code={e.code} {e.message}")
            return self._failure(session.withdrawal, f"Broadcast rejected: {e.message}")

        tx_hash = result.tx_hash or signed.tx_hash
        logger.info(f"Withdrawal broadcast for user {user_id}: order {result.order_id}, tx {tx_hash}")

        outcome = WithdrawalOutcome(
            success=True,
            amount=amount,
            destination=destination,
            order_id=result.order_id,
            tx_hash=tx_hash,
        )
        text = f"""Withdrawal Submitted!

Amount: {format_amount(amount)} {self.symbol}
To: {_short(destination)}

Order ID: {result.order_id}
TX: {tx_hash}"""
        return Reply(text, outcome=outcome)

    # Messages

    def _amount_prompt(self, session: UserSession) -> str:
        return f"""Withdraw {self.symbol}

From: {session.address}

Enter the amount to withdraw:

Example: 0.1"""

    def _failure(
        self,
        state: WithdrawalState,
        reason: str,
        destination: Optional[str] = None,
    ) -> Reply:
        amount = getattr(state, "amount", Decimal("0"))
        destination = destination if destination is not None else getattr(state, "destination", "")
        outcome = WithdrawalOutcome(
            success=False,
            amount=amount,
            destination=destination,
            reason=reason,
        )
        return Reply(f"Withdrawal Failed\n\n{reason}", outcome=outcome)
