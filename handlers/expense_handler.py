"""
handlers/expense_handler.py
----------------------------
Expense creation wizard and the /expenses listing.

Wizard: description -> amount -> category (button) -> vendor (optional)
-> POST /expenses.
"""

from typing import TYPE_CHECKING

from handlers.common import (
    CANCEL_ROW,
    MAIN_MENU_ROW,
    api_token,
    failure_text,
    format_money,
    md,
    require_user,
    start_wizard,
)
from models.billing import ExpenseCreateRequest
from models.drafts import ExpenseDraft
from models.session import SessionState, Wizard
from models.update import Button, InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import InputSource, Step, WizardFlow
from services.parsers import parse_expense_category, parse_optional_text, parse_positive_amount, parse_text
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

EXPENSES_SHOWN = 15


def _category_prompt(draft: ExpenseDraft) -> Reply:
    return Reply(
        f"Amount: {format_money(draft.amount)}\n\nNow select a category:",
        buttons=(
            (Button("🍔 Meals", "expense_category_meals"), Button("🚗 Travel", "expense_category_travel")),
            (Button("🏢 Office", "expense_category_office"), Button("💻 Equipment", "expense_category_equipment")),
            (Button("📱 Software", "expense_category_software"), Button("📚 Education", "expense_category_education")),
            (Button("🎯 Marketing", "expense_category_marketing"), Button("📦 Other", "expense_category_other")),
            CANCEL_ROW,
        ),
    )


async def create_expense(ctx: "BotContext", update: InboundUpdate, draft: ExpenseDraft) -> Reply:
    request = ExpenseCreateRequest(
        description=draft.description,
        amount=draft.amount,
        category=draft.category,
        vendor=draft.vendor,
    )
    expense = await ctx.api.create_expense(api_token(ctx, update.user_id), request)

    lines = [
        "✅ *Expense created successfully!*",
        "",
        f"*Description:* {md(expense.description)}",
        f"*Amount:* {format_money(expense.amount)}",
        f"*Category:* {md(expense.category)}",
    ]
    if expense.vendor:
        lines.append(f"*Vendor:* {md(expense.vendor)}")
    if expense.date:
        lines.append(f"*Date:* {md(expense.date)}")
    lines.append("\n_Your expense has been recorded!_")

    return Reply("\n".join(lines), buttons=(MAIN_MENU_ROW,), markdown=True)


FLOW = WizardFlow(
    wizard=Wizard.EXPENSE,
    draft_type=ExpenseDraft,
    steps=(
        Step(
            state=SessionState.EXPENSE_DESCRIPTION,
            field="description",
            parse=parse_text,
            prompt=Reply("Please send a description for this expense:"),
            hint="Expense description cannot be empty. Please send a valid description:",
        ),
        Step(
            state=SessionState.EXPENSE_AMOUNT,
            field="amount",
            parse=parse_positive_amount,
            prompt=Reply("Great! Now please enter the expense amount:\n\nExample: 50 or 50.25"),
            hint="❌ Invalid amount. Please enter a number (e.g., 50 or 50.25)",
        ),
        Step(
            state=SessionState.EXPENSE_CATEGORY,
            field="category",
            parse=parse_expense_category,
            source=InputSource.CALLBACK,
            prompt=_category_prompt,
            hint="Please choose a category from the buttons above, or /cancel.",
            ack="Category selected",
        ),
        Step(
            state=SessionState.EXPENSE_VENDOR,
            field="vendor",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("Perfect! Now please send the vendor name (or /skip if you want to skip this step):"),
            hint="Please send the vendor name, or /skip.",
        ),
    ),
    finish=create_expense,
    failure_text="❌ Failed to create the expense. Send the vendor (or /skip) again to retry, or /cancel.",
)


async def expense_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /expense - start the expense wizard."""
    if await require_user(ctx, update) is None:
        return
    await start_wizard(ctx, update, Wizard.EXPENSE, intro="Let's create a new expense!")


async def expenses_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /expenses - list recent expenses with a running total."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        expenses = await ctx.api.list_expenses(user.api_token)
    except ApiError as e:
        logger.error(f"Could not list expenses for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("fetch expenses", e))
        return

    if not expenses:
        await ctx.reply(update, "You don't have any expenses yet.\n\nUse /expense to create your first expense!")
        return

    shown = expenses[:EXPENSES_SHOWN]
    lines = ["💰 *Your Expenses*", ""]
    for i, expense in enumerate(shown, start=1):
        lines.append(f"{i}. *{md(expense.description)}*")
        lines.append(f"   💵 {format_money(expense.amount)}")
        lines.append(f"   📂 {md(expense.category)}")
        if expense.vendor:
            lines.append(f"   🏪 {md(expense.vendor)}")
        if expense.date:
            lines.append(f"   📅 {md(expense.date)}")
        lines.append("")
    if len(expenses) > EXPENSES_SHOWN:
        lines.append(f"_...and {len(expenses) - EXPENSES_SHOWN} more_\n")

    # Total of the expenses listed above.
    total = sum(expense.amount for expense in shown)
    lines.append(f"*Total:* {format_money(total)}\n")
    lines.append("_Use /expense to create a new expense_")

    await ctx.reply(update, Reply("\n".join(lines), markdown=True))
