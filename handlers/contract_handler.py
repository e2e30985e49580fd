"""
handlers/contract_handler.py
----------------------------
Contract creation wizard and the /contracts listing.

Wizard: pick client (button) -> name -> type (button) -> rate
-> POST /contracts. The rate question depends on the chosen type.
"""

from typing import TYPE_CHECKING

from handlers.common import (
    CANCEL_ROW,
    MAIN_MENU_ROW,
    api_token,
    client_picker,
    failure_text,
    format_money,
    md,
    require_user,
    start_wizard,
)
from models.billing import ContractCreateRequest
from models.drafts import ContractDraft
from models.session import SessionState, Wizard
from models.update import Button, InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import InputSource, Step, WizardFlow
from services.parsers import parse_contract_type, parse_name, parse_positive_amount, parse_record_id
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

TYPE_PROMPT = Reply(
    "What type of contract is this?",
    buttons=(
        (Button("Hourly", "contract_type_hourly"), Button("Fixed", "contract_type_fixed")),
        (Button("Monthly", "contract_type_monthly"), Button("Project", "contract_type_project")),
        CANCEL_ROW,
    ),
)

_RATE_EXAMPLES = {
    "hourly": "150 or 150.50",
    "monthly": "5000 or 5000.00",
    "fixed": "10000 or 10000.00",
    "project": "25000 or 25000.00",
}


def _rate_prompt(draft: ContractDraft) -> Reply:
    example = _RATE_EXAMPLES.get(draft.type, "1000 or 1000.00")
    return Reply(f"What is the {draft.type} rate?\n\nExample: {example}")


async def create_contract(ctx: "BotContext", update: InboundUpdate, draft: ContractDraft) -> Reply:
    request = ContractCreateRequest(
        client_id=draft.client_id,
        name=draft.name,
        type=draft.type,
        rate=draft.rate,
    )
    contract = await ctx.api.create_contract(api_token(ctx, update.user_id), request)

    return Reply(
        f"✅ *Contract created successfully!*\n\n"
        f"*Name:* {md(contract.name)}\n"
        f"*Type:* {md(contract.type)}\n"
        f"*Rate:* {format_money(contract.rate)}\n"
        f"*Status:* {md(contract.status or 'active')}",
        buttons=(MAIN_MENU_ROW,),
        markdown=True,
    )


FLOW = WizardFlow(
    wizard=Wizard.CONTRACT,
    draft_type=ContractDraft,
    steps=(
        Step(
            state=SessionState.CONTRACT_SELECT_CLIENT,
            field="client_id",
            parse=parse_record_id,
            source=InputSource.CALLBACK,
            hint="Please pick a client from the buttons above, or /cancel.",
            ack="Client selected",
        ),
        Step(
            state=SessionState.CONTRACT_NAME,
            field="name",
            parse=parse_name,
            prompt=Reply(
                "Great! Now please enter the contract name:\n\n"
                "Example: Monthly Retainer, Project Development, etc."
            ),
            hint="Contract name cannot be empty. Please send a valid name:",
        ),
        Step(
            state=SessionState.CONTRACT_TYPE,
            field="type",
            parse=parse_contract_type,
            source=InputSource.CALLBACK,
            prompt=TYPE_PROMPT,
            hint="Please choose the contract type from the buttons above, or /cancel.",
            ack="Type selected",
        ),
        Step(
            state=SessionState.CONTRACT_RATE,
            field="rate",
            parse=parse_positive_amount,
            prompt=_rate_prompt,
            hint="❌ Invalid rate. Please enter a number (e.g., 1000 or 1000.50)",
        ),
    ),
    finish=create_contract,
    failure_text="❌ Failed to create the contract. Send the rate again to retry, or /cancel.",
)


async def contract_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /contract - start the wizard with a client picker."""
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
        await ctx.reply(update, "You don't have any clients yet.\n\nPlease create a client first using /client")
        return

    picker = client_picker("Let's create a new contract!\n\nSelect a client for this contract:",
                           clients, "contract_client_")
    await start_wizard(ctx, update, Wizard.CONTRACT, prompt=picker)


async def contracts_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /contracts - list every contract."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        contracts = await ctx.api.list_contracts(user.api_token)
    except ApiError as e:
        logger.error(f"Could not list contracts for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("fetch contracts", e))
        return

    if not contracts:
        await ctx.reply(update, "You don't have any contracts yet.\n\nUse /contract to create your first contract!")
        return

    lines = ["📋 *Your Contracts*", ""]
    for i, contract in enumerate(contracts, start=1):
        lines += [
            f"{i}. *{md(contract.name)}*",
            f"   Type: {md(contract.type)}",
            f"   Rate: {format_money(contract.rate)}",
            f"   Status: {md(contract.status)}",
            "",
        ]
    lines.append("_Use /contract to create a new contract_")

    await ctx.reply(update, Reply("\n".join(lines), markdown=True))
