"""Bot initialization and runner."""

import asyncio
import logging
from typing import Optional

from aiogram import Bot, Dispatcher

from walletbot.bot.handlers import setup_routers
from walletbot.config import get_settings
from walletbot.services import WalletServices

logger = logging.getLogger(__name__)


def create_bot(services: Optional[WalletServices] = None) -> tuple[Bot, Dispatcher]:
    """Create bot and dispatcher instances.

    The services container is passed as dispatcher workflow data, so any
    handler declaring a `services` argument receives it.
    """
    settings = get_settings()

    if not settings.telegram_bot_token:
        raise ValueError("TELEGRAM_BOT_TOKEN is not set")

    # No default parse_mode - each handler decides
    bot = Bot(token=settings.telegram_bot_token)

    services = services or WalletServices.create(settings)
    dp = Dispatcher(services=services)
    dp.include_router(setup_routers())

    return bot, dp


async def run_bot() -> None:
    """Run the bot in polling mode."""
    settings = get_settings()

    # Configure logging - reduce noise from libraries
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("aiogram").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info("Starting wallet bot...")
    logger.info(f"Config: {settings.get_safe_dict()}")

    bot, dp = create_bot()

    try:
        # Delete webhook if any and start polling
        await bot.delete_webhook(drop_pending_updates=True)
        logger.info("Starting polling...")
        await dp.start_polling(bot)
    finally:
        await bot.session.close()


def main() -> None:
    """Entry point for bot mode."""
    asyncio.run(run_bot())


if __name__ == "__main__":
    main()
