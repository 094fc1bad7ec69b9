"""Telegram keyboard builders."""

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, KeyboardButton, ReplyKeyboardMarkup

ADDRESS_BUTTON = "📥 Deposit Address"
BALANCE_BUTTON = "💰 Balance"
WITHDRAW_BUTTON = "📤 Withdraw"
EXPORT_KEY_BUTTON = "🔑 Export Key"


def main_menu_keyboard() -> ReplyKeyboardMarkup:
    """Create main menu keyboard."""
    keyboard = [
        [KeyboardButton(text=ADDRESS_BUTTON), KeyboardButton(text=BALANCE_BUTTON)],
        [KeyboardButton(text=WITHDRAW_BUTTON), KeyboardButton(text=EXPORT_KEY_BUTTON)],
    ]
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)


def cancel_withdraw_keyboard(prompt_id: str) -> InlineKeyboardMarkup:
    """Cancel button bound to one withdrawal prompt."""
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="❌ Cancel", callback_data=f"cancel_withdraw:{prompt_id}")]
        ]
    )
