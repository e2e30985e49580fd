"""
security/auth.py
-----------------
Authorization middleware for the Telegram bot.
Blocks any user not in the allowed whitelist.
"""

from functools import wraps
from typing import Callable

from utils.logger import get_logger

logger = get_logger(__name__)

UNAUTHORIZED_TEXT = "⛔ Sorry, this bot is private and not available for public use."


def authorized_only(func: Callable):
    """
    Decorator that restricts a handler to whitelisted users only.

    Usage:
        @authorized_only
        async def my_handler(ctx, update):
            ...

    Behavior:
        - If `ctx.allowed_user_ids` is empty, ALL users are allowed (dev mode).
        - If the list is set, only those users can use the bot.
        - Unauthorized attempts are logged and answered.
    """
    @wraps(func)
    async def wrapper(ctx, update, *args, **kwargs):
        # If no whitelist configured, allow all (dev mode)
        if not ctx.allowed_user_ids:
            return await func(ctx, update, *args, **kwargs)

        if update.user_id not in ctx.allowed_user_ids:
            logger.warning(
                f"🚫 Unauthorized access attempt: user_id={update.user_id}, "
                f"name={update.first_name}"
            )
            await ctx.reply(update, UNAUTHORIZED_TEXT)
            return

        return await func(ctx, update, *args, **kwargs)

    return wrapper
