"""
handlers/invoice_handler.py
---------------------------
Invoice creation wizard and the /invoices listing.

Wizard: pick client (button) -> amount -> description -> due date
(button) -> POST /invoices.
"""

from typing import TYPE_CHECKING

from handlers.common import (
    CANCEL_ROW,
    api_token,
    client_picker,
    failure_text,
    format_money,
    md,
    require_user,
    start_wizard,
)
from models.billing import InvoiceCreateRequest
from models.drafts import InvoiceDraft
from models.session import SessionState, Wizard
from models.update import Button, InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import InputSource, Step, WizardFlow
from services.parsers import parse_amount, parse_due_days, parse_record_id, parse_text
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

INVOICES_SHOWN = 10

_STATUS_ICONS = {"paid": "✅", "overdue": "⚠️"}

DUE_DATE_PROMPT = Reply(
    "When is this invoice due?",
    buttons=(
        (Button("7 days", "invoice_due_7"), Button("14 days", "invoice_due_14")),
        (Button("30 days", "invoice_due_30"),),
        CANCEL_ROW,
    ),
)


def _description_prompt(draft: InvoiceDraft) -> Reply:
    return Reply(
        f"Amount: {format_money(draft.amount)}\n\n"
        f"Now add a description or notes for this invoice:"
    )


async def create_invoice(ctx: "BotContext", update: InboundUpdate, draft: InvoiceDraft) -> Reply:
    """Final step: send the collected answers to the API."""
    request = InvoiceCreateRequest(
        client_id=draft.client_id,
        amount=draft.amount,
        description=draft.description,
        due_days=draft.due_days,
        currency=ctx.currency,
    )
    invoice = await ctx.api.create_invoice(api_token(ctx, update.user_id), request)
    due = request.due_date

    return Reply(
        f"✅ *Invoice created successfully!*\n\n"
        f"Invoice #{md(invoice.invoice_num)}\n"
        f"Amount: {format_money(invoice.amount)} {md(invoice.currency)}\n"
        f"Due Date: {due:%B} {due.day}, {due.year}\n\n"
        f"What would you like to do next?",
        buttons=((Button("➕ Create Another", "action_invoice"), Button("🏠 Main Menu", "main_menu")),),
        markdown=True,
    )


FLOW = WizardFlow(
    wizard=Wizard.INVOICE,
    draft_type=InvoiceDraft,
    steps=(
        Step(
            state=SessionState.INVOICE_SELECT_CLIENT,
            field="client_id",
            parse=parse_record_id,
            source=InputSource.CALLBACK,
            hint="Please pick a client from the buttons above, or /cancel.",
            ack="Client selected",
        ),
        Step(
            state=SessionState.INVOICE_AMOUNT,
            field="amount",
            parse=parse_amount,
            prompt=Reply("Great! Now please enter the invoice amount:\n\nExample: 1500 or 1500.50"),
            hint="❌ Invalid amount. Please enter a number (e.g., 1500 or 1500.50)",
        ),
        Step(
            state=SessionState.INVOICE_DESCRIPTION,
            field="description",
            parse=parse_text,
            prompt=_description_prompt,
            hint="The description cannot be empty. Please describe the work being invoiced:",
        ),
        Step(
            state=SessionState.INVOICE_DUE_DATE,
            field="due_days",
            parse=parse_due_days,
            source=InputSource.CALLBACK,
            prompt=DUE_DATE_PROMPT,
            hint="Please choose a due date from the buttons above, or /cancel.",
            ack="Creating invoice...",
        ),
    ),
    finish=create_invoice,
    failure_text="❌ Failed to create the invoice. Pick a due date again to retry, or /cancel.",
)


async def invoice_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /invoice - start the wizard, or the client wizard if there are no clients."""
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
        await start_wizard(
            ctx, update, Wizard.CLIENT,
            intro="You don't have any clients yet.\n\nLet's create one first!",
        )
        return

    picker = client_picker(
        "Select a client for this invoice:", clients, "invoice_client_",
        extra_rows=[(Button("➕ Create new client", "invoice_new_client"),)],
    )
    await start_wizard(ctx, update, Wizard.INVOICE, prompt=picker)


async def invoices_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /invoices - list the most recent invoices."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        invoices = await ctx.api.list_invoices(user.api_token)
    except ApiError as e:
        logger.error(f"Could not list invoices for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("fetch invoices", e))
        return

    if not invoices:
        await ctx.reply(update, "You don't have any invoices yet.\n\nCreate one with /invoice")
        return

    lines = ["*Your Invoices:*", ""]
    for inv in invoices[:INVOICES_SHOWN]:
        icon = _STATUS_ICONS.get(inv.status, "⏳")
        lines.append(f"{icon} *{md(inv.invoice_num)}* - {format_money(inv.amount)} - {md(inv.status)}")
    if len(invoices) > INVOICES_SHOWN:
        lines.append(f"\n_...and {len(invoices) - INVOICES_SHOWN} more_")

    await ctx.reply(update, Reply("\n".join(lines), markdown=True))
