"""Telegram front end (aiogram)."""
