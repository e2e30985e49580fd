"""
handlers/common.py
------------------
Helpers shared by every handler module: login checks, wizard start-up,
menus and message formatting.
"""

from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Union

from telegram.helpers import escape_markdown

from models.session import Wizard
from models.update import Button, InboundUpdate, Reply
from models.user import AuthenticatedUser
from services.api_client import ApiAuthError, ApiError
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

AUTH_REQUIRED_TEXT = "You need to authenticate first to use this feature."
SESSION_EXPIRED_TEXT = "🔒 Your UNG login has expired. Please /login again."

CANCEL_ROW = (Button("❌ Cancel", "action_cancel"),)
MAIN_MENU_ROW = (Button("🏠 Main Menu", "main_menu"),)

MAIN_MENU_BUTTONS = (
    (Button("📄 New Invoice", "action_invoice"), Button("📑 All Invoices", "action_invoices_list")),
    (Button("👥 Clients", "action_clients"), Button("➕ New Client", "action_client")),
    (Button("📋 Contracts", "action_contracts"), Button("➕ New Contract", "action_contract")),
    (Button("💸 Expenses", "action_expenses"), Button("➕ New Expense", "action_expense")),
    (Button("⏱ Track", "action_track"), Button("📝 Log Time", "action_log")),
    (Button("🏢 Companies", "action_companies"), Button("🔍 Search", "action_search")),
)


def md(value) -> str:
    """Escape user or API supplied text for a Markdown reply."""
    return escape_markdown(str(value))


def format_money(amount: Union[Decimal, float]) -> str:
    return f"${float(amount):,.2f}"


def auth_required_reply() -> Reply:
    return Reply(AUTH_REQUIRED_TEXT, buttons=((Button("🔐 Login", "auth_login"),),))


async def require_user(ctx: "BotContext", update: InboundUpdate) -> Optional[AuthenticatedUser]:
    """
    Look up the logged-in user, or tell the sender to log in.

    Returns:
        The AuthenticatedUser, or None after the login prompt was sent.
    """
    user = ctx.users.get_by_telegram_id(update.user_id)
    if user is None or not user.api_token:
        await ctx.reply(update, auth_required_reply())
        return None
    return user


def api_token(ctx: "BotContext", user_id: int) -> str:
    """Token for a wizard's final API call; a logout mid-wizard counts as an auth failure."""
    user = ctx.users.get_by_telegram_id(user_id)
    if user is None or not user.api_token:
        raise ApiAuthError("user is not logged in")
    return user.api_token


def failure_text(action: str, error: ApiError) -> str:
    if isinstance(error, ApiAuthError):
        return SESSION_EXPIRED_TEXT
    return f"❌ Failed to {action}. Please try again."


async def start_wizard(ctx: "BotContext", update: InboundUpdate, wizard: Wizard,
                       intro: Optional[str] = None, prompt: Optional[Reply] = None) -> None:
    """
    Send the first prompt of `wizard`, then open a fresh Session for it.

    `prompt` replaces the step's static prompt (client pickers are built
    from live API data); `intro` is prepended to whichever is used.
    """
    prompt = prompt or ctx.machine.first_prompt(wizard)
    if intro:
        prompt = replace(prompt, text=f"{intro}\n\n{prompt.text}")
    await ctx.reply(update, prompt)
    ctx.machine.begin(update.user_id, wizard)


def client_picker(text: str, clients, payload_prefix: str, extra_rows=()) -> Reply:
    rows = [(Button(client.name, f"{payload_prefix}{client.id}"),) for client in clients]
    rows.extend(extra_rows)
    rows.append(CANCEL_ROW)
    return Reply(text, buttons=tuple(rows))
