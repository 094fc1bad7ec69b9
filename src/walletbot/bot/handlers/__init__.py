"""Bot handlers module."""

from aiogram import Router

from walletbot.bot.handlers import start, wallet, withdraw


def setup_routers() -> Router:
    """Create and configure all routers."""
    main_router = Router()

    # withdraw holds the catch-all text handler, so it goes last
    main_router.include_router(start.router)
    main_router.include_router(wallet.router)
    main_router.include_router(withdraw.router)

    return main_router
