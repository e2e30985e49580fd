"""
bot/dispatcher.py
-----------------
One update in, exactly one handler out.

Classification order:
    1. Command  -> CommandRouter (even in the middle of a wizard).
    2. Callback -> CallbackRouter.
    3. Text with an active Session -> the conversation state machine.
    4. Anything else -> the default help reply.

Failures stay inside the update that caused them: the caller (the
Telegram application) moves on to the next update whatever happens here.
"""

from bot.context import BotContext
from bot.transport import TransportError
from models.update import InboundUpdate, UpdateKind
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.conversation import DEFAULT_HELP_TEXT, InputSource
from utils.logger import get_logger

logger = get_logger(__name__)

FAILURE_TEXT = "Sorry, something went wrong while handling that. Please try again."


@authorized_only
@rate_limited
async def _route(ctx: BotContext, update: InboundUpdate) -> None:
    if update.kind is UpdateKind.COMMAND:
        await ctx.commands.route(ctx, update)
        return

    if update.kind is UpdateKind.CALLBACK:
        await ctx.callbacks.route(ctx, update)
        return

    if update.kind is UpdateKind.TEXT:
        session = ctx.sessions.get(update.user_id)
        if session is not None and session.is_active:
            await ctx.machine.feed(ctx, update, update.text, InputSource.TEXT)
            return

    await ctx.reply(update, DEFAULT_HELP_TEXT)


async def dispatch(ctx: BotContext, update: InboundUpdate) -> None:
    """Handle one update to completion. Never raises."""
    logger.debug(f"Update {update.update_id}: {update.kind.value} from user {update.user_id}")
    try:
        await _route(ctx, update)
    except TransportError as e:
        logger.warning(f"Update {update.update_id} abandoned: {e}")
    except Exception:
        logger.exception(f"Handler failed for update {update.update_id} from user {update.user_id}")
        try:
            await ctx.reply(update, FAILURE_TEXT)
        except TransportError as e:
            logger.warning(f"Could not report failure to user {update.user_id}: {e}")
    finally:
        if update.is_callback and not update.acknowledged:
            try:
                await ctx.acknowledge(update)
            except TransportError as e:
                logger.warning(f"Could not acknowledge callback {update.callback_id}: {e}")
