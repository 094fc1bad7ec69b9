"""Address, balance and key export handlers."""

import logging

from aiogram import F, Router
from aiogram.enums import ChatType
from aiogram.filters import Command
from aiogram.types import Message

from walletbot.bot.keyboards import ADDRESS_BUTTON, BALANCE_BUTTON, EXPORT_KEY_BUTTON
from walletbot.custody.client import WalletApiError
from walletbot.services import WalletServices
from walletbot.sessions.locks import LockTimeoutError
from walletbot.withdrawal.amounts import format_amount

logger = logging.getLogger(__name__)

router = Router()

NO_WALLET_TEXT = "You don't have a wallet yet.\n\nUse /address to create one."


@router.message(Command("address"))
@router.message(F.text == ADDRESS_BUTTON)
async def cmd_address(message: Message, services: WalletServices) -> None:
    """Show the user's deposit address, creating the wallet on first use."""
    if not message.from_user:
        return

    try:
        address = await services.keys.get_or_create_address(message.from_user.id)
    except LockTimeoutError:
        await message.answer("Your previous request is still being processed. Please try again shortly.")
        return

    symbol = services.settings.native_symbol
    text = f"""📥 Your {symbol} deposit address

`{address}`

Only send {symbol} on chain {services.settings.chain_index} to this address."""

    await message.answer(text, parse_mode="Markdown")


@router.message(Command("balance"))
@router.message(F.text == BALANCE_BUTTON)
async def cmd_balance(message: Message, services: WalletServices) -> None:
    """Show the native coin balance from the custody API."""
    if not message.from_user:
        return

    address = await services.keys.get_address(message.from_user.id)
    if address is None:
        await message.answer(NO_WALLET_TEXT)
        return

    settings = services.settings
    try:
        assets = await services.client.get_token_balances(address, settings.chain_index)
    except WalletApiError as e:
        logger.warning(f"Balance query failed for user {message.from_user.id}: {e.message}")
        await message.answer("❌ Failed to fetch balance. Please try again later.")
        return

    native = next(
        (a for a in assets if a.symbol.upper() == settings.native_symbol.upper()),
        assets[0] if assets else None,
    )

    if native is None:
        text = f"💰 Balance: 0 {settings.native_symbol}"
    else:
        text = (
            f"💰 Balance: {format_amount(native.balance)} {native.symbol or settings.native_symbol}\n"
            f"≈ ${native.usd_value:,.2f}"
        )

    await message.answer(text)


@router.message(Command("exportkey"))
@router.message(F.text == EXPORT_KEY_BUTTON)
async def cmd_export_key(message: Message, services: WalletServices) -> None:
    """Disclose the user's private key, only in their private chat."""
    if not message.from_user:
        return

    if message.chat.type != ChatType.PRIVATE:
        await message.answer("For your safety, keys can only be exported in a private chat with the bot.")
        return

    private_key = await services.keys.export_private_key(message.from_user.id)
    if private_key is None:
        await message.answer(NO_WALLET_TEXT)
        return

    text = f"""🔑 Your private key

`{private_key}`

Anyone with this key controls your funds.
Store it offline and delete this message."""

    await message.answer(text, parse_mode="Markdown")
