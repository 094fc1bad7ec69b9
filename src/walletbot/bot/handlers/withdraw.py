"""Withdrawal handlers.

The state machine decides what free text means; this module only renders
its replies and forwards text, commands and cancel buttons.
"""

import logging
from typing import Optional

from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from walletbot.bot.keyboards import WITHDRAW_BUTTON, cancel_withdraw_keyboard
from walletbot.services import WalletServices
from walletbot.withdrawal.base import Reply

logger = logging.getLogger(__name__)

router = Router()


async def _drop_prompt_keyboard(bot: Bot, chat_id: int, message_ref: Optional[int]) -> None:
    """Remove the cancel button from the previous prompt, if any."""
    if message_ref is None:
        return
    try:
        await bot.edit_message_reply_markup(chat_id=chat_id, message_id=message_ref, reply_markup=None)
    except TelegramBadRequest as e:
        # Already edited or deleted by the user
        logger.debug(f"Could not clear prompt {message_ref}: {e}")


async def send_reply(message: Message, user_id: int, reply: Reply, services: WalletServices) -> None:
    """Render a state machine reply and track the last prompt message."""
    session = await services.sessions.get(user_id)
    previous_ref = session.last_message_ref if session else None
    await _drop_prompt_keyboard(message.bot, message.chat.id, previous_ref)

    if reply.is_prompt:
        sent = await message.answer(reply.text, reply_markup=cancel_withdraw_keyboard(reply.prompt_id))
        await services.sessions.set_last_message_ref(user_id, sent.message_id)
    else:
        await message.answer(reply.text)
        if previous_ref is not None:
            await services.sessions.set_last_message_ref(user_id, None)


@router.message(Command("withdraw"))
@router.message(F.text == WITHDRAW_BUTTON)
async def cmd_withdraw(message: Message, services: WalletServices) -> None:
    """Start withdrawal flow."""
    if not message.from_user:
        return

    reply = await services.machine.request_withdrawal(message.from_user.id)
    await send_reply(message, message.from_user.id, reply, services)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, services: WalletServices) -> None:
    """Cancel whatever withdrawal is pending."""
    if not message.from_user:
        return

    reply = await services.machine.cancel(message.from_user.id)
    await send_reply(message, message.from_user.id, reply, services)


@router.callback_query(F.data.startswith("cancel_withdraw:"))
async def handle_cancel_withdraw(callback: CallbackQuery, services: WalletServices) -> None:
    """Cancel the withdrawal bound to this prompt's button."""
    if not callback.data or not callback.from_user:
        return

    user_id = callback.from_user.id
    prompt_id = callback.data.split(":", 1)[1]
    reply = await services.machine.cancel(user_id, prompt_id)

    if callback.message:
        await callback.message.edit_text(reply.text)
        # The edit removed this prompt's button; nothing is left to clear later
        session = await services.sessions.get(user_id)
        if session is not None and session.last_message_ref == callback.message.message_id:
            await services.sessions.set_last_message_ref(user_id, None)
    await callback.answer()


@router.message(F.text)
async def handle_text(message: Message, services: WalletServices) -> None:
    """Route free text into the withdrawal flow. Ignored when nothing is pending."""
    if not message.from_user or not message.text or message.text.startswith("/"):
        return

    reply = await services.machine.handle_text(message.from_user.id, message.text)
    if reply is None:
        return

    await send_reply(message, message.from_user.id, reply, services)
