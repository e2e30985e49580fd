"""
handlers/client_handler.py
--------------------------
Client creation wizard and the /clients listing.

Wizard: name -> email -> address (optional) -> tax ID (optional)
-> POST /clients.
"""

from typing import TYPE_CHECKING

from handlers.common import api_token, failure_text, md, require_user, start_wizard
from models.billing import ClientCreateRequest
from models.drafts import ClientDraft
from models.session import SessionState, Wizard
from models.update import Button, InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import Step, WizardFlow
from services.parsers import parse_email, parse_name, parse_optional_text
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

_SKIP_NOTE = "\n\n_Send /skip if you want to skip this step_"


async def create_client(ctx: "BotContext", update: InboundUpdate, draft: ClientDraft) -> Reply:
    request = ClientCreateRequest(
        name=draft.name,
        email=draft.email,
        address=draft.address,
        tax_id=draft.tax_id,
    )
    client = await ctx.api.create_client(api_token(ctx, update.user_id), request)

    lines = [
        "✅ *Client created successfully!*",
        "",
        f"*Name:* {md(client.name)}",
        f"*Email:* {md(client.email)}",
    ]
    if client.address:
        lines.append(f"*Address:* {md(client.address)}")
    if client.tax_id:
        lines.append(f"*Tax ID:* {md(client.tax_id)}")
    lines.append("\n_You can now create invoices for this client!_")

    return Reply(
        "\n".join(lines),
        buttons=((Button("📄 New Invoice", "action_invoice"), Button("🏠 Main Menu", "main_menu")),),
        markdown=True,
    )


FLOW = WizardFlow(
    wizard=Wizard.CLIENT,
    draft_type=ClientDraft,
    steps=(
        Step(
            state=SessionState.CLIENT_CREATE_NAME,
            field="name",
            parse=parse_name,
            prompt=Reply("Please send the client's name:"),
            hint="Client name cannot be empty. Please send a valid name:",
        ),
        Step(
            state=SessionState.CLIENT_CREATE_EMAIL,
            field="email",
            parse=parse_email,
            prompt=Reply("Great! Now please send the client's email address:"),
            hint="Please send a valid email address:",
        ),
        Step(
            state=SessionState.CLIENT_CREATE_ADDRESS,
            field="address",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("Perfect! Now please send the client's address:" + _SKIP_NOTE, markdown=True),
            hint="Please send the client's address, or /skip.",
        ),
        Step(
            state=SessionState.CLIENT_CREATE_TAX_ID,
            field="tax_id",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply(
                "Almost done! Please send the client's tax ID or company registration number:" + _SKIP_NOTE,
                markdown=True,
            ),
            hint="Please send the client's tax ID, or /skip.",
        ),
    ),
    finish=create_client,
    failure_text="❌ Failed to create the client. Send the tax ID (or /skip) again to retry, or /cancel.",
)


async def client_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /client - start the client creation wizard."""
    if await require_user(ctx, update) is None:
        return
    await start_wizard(ctx, update, Wizard.CLIENT, intro="Let's create a new client!")


async def clients_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /clients - list every client."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        clients = await ctx.api.list_clients(user.api_token)
    except ApiError as e:
        logger.error(f"Could not list clients for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("fetch clients", e))
        return

    if not clients:
        await ctx.reply(update, "You don't have any clients yet.\n\nUse /client to create your first client!")
        return

    lines = ["👥 *Your Clients*", ""]
    for i, client in enumerate(clients, start=1):
        lines.append(f"{i}. *{md(client.name)}*")
        if client.email:
            lines.append(f"   📧 {md(client.email)}")
        if client.tax_id:
            lines.append(f"   🏢 Tax ID: {md(client.tax_id)}")
        lines.append("")
    lines.append("_Use /client to create a new client_")

    await ctx.reply(update, Reply("\n".join(lines), markdown=True))
