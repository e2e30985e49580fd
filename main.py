"""
main.py
-------
Entry point for the UNG Telegram bot.

Responsibilities:
    - Build the BotContext (stores, API client, routing tables).
    - Feed every Telegram update into the dispatcher, one at a time.
    - Schedule the idle-session sweep when it is enabled.
"""

import logging
from datetime import timedelta

from telegram import BotCommand, Update
from telegram.ext import Application, ContextTypes, TypeHandler

from bot.context import build_context
from bot.dispatcher import dispatch
from bot.routes import BOT_COMMANDS
from bot.transport import TelegramTransport, inbound_from_telegram
from config import (
    ALLOWED_USER_IDS,
    API_TIMEOUT_SECONDS,
    DEFAULT_CURRENCY,
    LOG_LEVEL,
    RATE_LIMIT_MESSAGES,
    RATE_LIMIT_WINDOW_SECONDS,
    SESSION_IDLE_TIMEOUT_MINUTES,
    SESSION_SWEEP_INTERVAL_SECONDS,
    TELEGRAM_BOT_TOKEN,
    UNG_API_URL,
    WEB_APP_URL,
)
from services.api_client import ApiClient
from utils.logger import get_logger

logger = get_logger(__name__)


async def on_update(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Single entry point for every update Telegram delivers."""
    inbound = inbound_from_telegram(update)
    if inbound is None:
        return
    await dispatch(context.bot_data["ctx"], inbound)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Errors raised outside the dispatcher (polling, network)."""
    logger.error(f"Telegram error: {context.error}")


async def sweep_sessions(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: forget wizards nobody touched for a while.
    Users are not notified; their next answer gets the default help reply.
    """
    context.bot_data["ctx"].sessions.sweep(context.job.data)


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [BotCommand(command, description) for command, description in BOT_COMMANDS]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


async def close_api(application: Application) -> None:
    await application.bot_data["ctx"].api.aclose()
    logger.info("UNG API client closed.")


def main() -> None:
    """Initialize and run the bot."""
    if not TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN is not set. Add it to your .env file.")
        raise SystemExit(1)
    logging.getLogger().setLevel(LOG_LEVEL)

    # ── 1. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = (
        Application.builder()
        .token(TELEGRAM_BOT_TOKEN)
        .post_init(set_bot_commands)
        .post_shutdown(close_api)
        .build()
    )

    # ── 2. Wire the bot context ───────────────────────────
    app.bot_data["ctx"] = build_context(
        TelegramTransport(app.bot),
        ApiClient(UNG_API_URL, timeout=API_TIMEOUT_SECONDS),
        allowed_user_ids=ALLOWED_USER_IDS,
        rate_limit_messages=RATE_LIMIT_MESSAGES,
        rate_limit_window=RATE_LIMIT_WINDOW_SECONDS,
        web_app_url=WEB_APP_URL,
        currency=DEFAULT_CURRENCY,
    )
    logger.info(f"Using UNG API at {UNG_API_URL}")

    # ── 3. Route every update through the dispatcher ──────
    app.add_handler(TypeHandler(Update, on_update))
    app.add_error_handler(on_error)

    # ── 4. Schedule jobs ──────────────────────────────────
    job_queue = app.job_queue
    if SESSION_IDLE_TIMEOUT_MINUTES > 0 and job_queue:
        job_queue.run_repeating(
            sweep_sessions,
            interval=SESSION_SWEEP_INTERVAL_SECONDS,
            first=SESSION_SWEEP_INTERVAL_SECONDS,
            data=timedelta(minutes=SESSION_IDLE_TIMEOUT_MINUTES),
            name="session_sweep",
        )
        logger.info(
            f"Idle sessions expire after {SESSION_IDLE_TIMEOUT_MINUTES} min "
            f"(checked every {SESSION_SWEEP_INTERVAL_SECONDS}s)"
        )

    # ── 5. Start polling ──────────────────────────────────
    logger.info("🚀 UNG bot is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message", "callback_query"])
    logger.info("UNG bot stopped.")


if __name__ == "__main__":
    main()
