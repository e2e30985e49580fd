"""
handlers/start_handler.py
--------------------------
Handles /start, /help, /login, /logout, /cancel and /skip.
Links the Telegram user to their UNG account and controls wizards.
"""

from typing import TYPE_CHECKING

from bot.transport import TransportError
from handlers.common import MAIN_MENU_BUTTONS, md
from models.update import Button, InboundUpdate, Reply
from models.user import AuthenticatedUser
from services.api_client import ApiAuthError, ApiError
from services.conversation import SKIP, InputSource
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

HELP_TEXT = """*UNG Bot - Available Commands*

*Invoices:*
/invoice - Create new invoice
/invoices - List all invoices

*Clients:*
/client - Create a client
/clients - List all clients

*Contracts:*
/contract - Create a contract
/contracts - List all contracts

*Expenses:*
/expense - Record an expense
/expenses - List expenses

*Companies:*
/company - Create a company
/companies - List your companies

*Time Tracking:*
/track - Start the timer
/stop - Stop the timer
/tracking - Tracking summary
/log - Log time manually

*Search:*
/search - Search everything

*Account:*
/login - Connect your UNG account
/logout - Disconnect your account

*While answering questions:*
/skip - Skip an optional step
/cancel - Stop the current action
/help - Show this help"""

LOGIN_USAGE = (
    "🔐 *Connect your UNG account*\n\n"
    "Send your credentials like this:\n"
    "`/login you@example.com your-password`\n\n"
    "_The message with your password is deleted right away._"
)


def _welcome(web_app_url: str) -> Reply:
    return Reply(
        "━━━━━━━━━━━━━━━━━━━━━━\n"
        "      🚀 *UNG Bot*\n"
        "  _Your Next Gig, Simplified_\n"
        "━━━━━━━━━━━━━━━━━━━━━━\n\n"
        "Welcome! I'm your personal billing assistant.\n\n"
        "✨ *What I can do for you:*\n\n"
        "📄 *Invoices* - Create & manage invoices\n"
        "👥 *Clients* - Track your client database\n"
        "📋 *Contracts* - Manage agreements\n"
        "💸 *Expenses* - Track your costs\n\n"
        "━━━━━━━━━━━━━━━━━━━━━━\n"
        "🔐 *Get Started*\n\n"
        "Connect your UNG account to begin.\n"
        f"No account? Sign up free at:\n{web_app_url}/register",
        buttons=(
            (Button("🔐 Connect Account", "auth_login"),),
            (Button("📝 Create Free Account", url=f"{web_app_url}/register"),),
        ),
        markdown=True,
    )


def _main_menu(name: str) -> Reply:
    return Reply(
        "━━━━━━━━━━━━━━━━━━━━━━\n"
        "      🏠 *Main Menu*\n"
        "━━━━━━━━━━━━━━━━━━━━━━\n\n"
        f"Hey {md(name)}! 👋\n\n"
        "What would you like to do today?\n\n"
        "💡 _Tip: Use /help for all commands_",
        buttons=MAIN_MENU_BUTTONS,
        markdown=True,
    )


async def start_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /start - main menu for linked users, welcome text for everyone else."""
    user = ctx.users.get_by_telegram_id(update.user_id)
    if user is not None:
        await ctx.reply(update, _main_menu(user.name))
        return
    logger.info(f"User {update.user_id} ({update.first_name}) started the bot.")
    await ctx.reply(update, _welcome(ctx.web_app_url))


async def help_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /help - show all available commands."""
    await ctx.reply(update, Reply(HELP_TEXT, markdown=True))


async def cancel_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /cancel - drop the current wizard, if any."""
    if ctx.machine.cancel(update.user_id):
        logger.info(f"User {update.user_id} cancelled their wizard")
        await ctx.reply(update, Reply(
            "❌ Cancelled. Nothing was saved.",
            buttons=((Button("🏠 Main Menu", "main_menu"),),),
        ))
        return
    await ctx.reply(update, "There is nothing to cancel.")


async def skip_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /skip - answer an optional wizard step with no value."""
    session = ctx.sessions.get(update.user_id)
    if session is None or not session.is_active:
        await ctx.reply(update, "There is nothing to skip right now.")
        return
    await ctx.machine.feed(ctx, update, SKIP, InputSource.TEXT)


async def login_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """
    Handle /login <email> <password>.

    The message carrying the password is deleted before the API call,
    whatever the outcome.
    """
    if update.args and update.message_id is not None:
        try:
            await ctx.transport.delete_message(update.chat_id, update.message_id)
        except TransportError as e:
            logger.warning(f"Could not delete login message of user {update.user_id}: {e}")

    if len(update.args) != 2:
        await ctx.reply(update, Reply(LOGIN_USAGE, markdown=True))
        return

    email, password = update.args
    try:
        token = await ctx.api.login(email, password)
    except ApiAuthError:
        logger.info(f"Login rejected for user {update.user_id}")
        await ctx.reply(update, "❌ Login failed. Check your email and password and try again.")
        return
    except ApiError as e:
        logger.error(f"Login failed for user {update.user_id}: {e}")
        await ctx.reply(update, "❌ Could not reach UNG right now. Please try again later.")
        return

    user = ctx.users.save(AuthenticatedUser(
        telegram_id=update.user_id,
        api_token=token,
        name=update.first_name or "there",
        email=email,
    ))
    await ctx.reply(update, _main_menu(user.name))


async def logout_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /logout - forget the API token and any unfinished wizard."""
    removed = ctx.users.remove(update.user_id)
    ctx.sessions.clear(update.user_id)
    if removed:
        logger.info(f"User {update.user_id} logged out")
        await ctx.reply(update, "👋 You're logged out. Use /login to connect again.")
        return
    await ctx.reply(update, "You're not logged in.")


async def auth_login_callback(ctx: "BotContext", update: InboundUpdate, arg: str) -> None:
    """'Connect Account' button: explain how to log in."""
    await ctx.acknowledge(update)
    await ctx.reply(update, Reply(
        LOGIN_USAGE,
        buttons=((Button("🌐 Open UNG", url=ctx.web_app_url),),),
        markdown=True,
    ))
