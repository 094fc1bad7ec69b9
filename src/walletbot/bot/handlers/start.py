"""Start and basic command handlers."""

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from walletbot.bot.keyboards import main_menu_keyboard
from walletbot.services import WalletServices

router = Router()


@router.message(CommandStart())
async def cmd_start(message: Message, services: WalletServices) -> None:
    """Handle /start command - show welcome."""
    if not message.from_user:
        return

    first_name = message.from_user.first_name or "there"
    symbol = services.settings.native_symbol
    welcome_text = f"""Welcome, {first_name}!

Your custodial {symbol} wallet.

Features:
  Get your personal deposit address
  Check your balance
  Withdraw to any external address
  Export your private key

Use the menu below or type /help for commands."""

    await message.answer(welcome_text, reply_markup=main_menu_keyboard())


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    """Handle /help command."""
    help_text = """Wallet Bot Commands

  /address   - Show your deposit address
  /balance   - Show your balance
  /withdraw  - Withdraw to an external address
  /cancel    - Cancel a pending withdrawal
  /exportkey - Export your private key (private chat only)

Keys live only in this bot's memory. Export your key
if you want to keep access to your funds."""

    await message.answer(help_text)
