"""
handlers/company_handler.py
---------------------------
Company (the user's own billing entity) wizard and /companies listing.
"""

from typing import TYPE_CHECKING

from handlers.common import MAIN_MENU_ROW, api_token, failure_text, md, require_user, start_wizard
from models.billing import CompanyCreateRequest
from models.drafts import CompanyDraft
from models.session import SessionState, Wizard
from models.update import InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import Step, WizardFlow
from services.parsers import parse_email, parse_name, parse_optional_text
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)


async def create_company(ctx: "BotContext", update: InboundUpdate, draft: CompanyDraft) -> Reply:
    request = CompanyCreateRequest(
        name=draft.name,
        email=draft.email,
        phone=draft.phone,
        address=draft.address,
        tax_id=draft.tax_id,
    )
    company = await ctx.api.create_company(api_token(ctx, update.user_id), request)

    lines = [
        "✅ *Company created successfully!*",
        "",
        f"🏢 *{md(company.name)}*",
        f"📧 {md(company.email)}",
    ]
    if company.phone:
        lines.append(f"📞 {md(company.phone)}")
    if company.address:
        lines.append(f"📍 {md(company.address)}")
    if company.tax_id:
        lines.append(f"🆔 Tax ID: {md(company.tax_id)}")

    return Reply("\n".join(lines), buttons=(MAIN_MENU_ROW,), markdown=True)


FLOW = WizardFlow(
    wizard=Wizard.COMPANY,
    draft_type=CompanyDraft,
    steps=(
        Step(
            state=SessionState.COMPANY_CREATE_NAME,
            field="name",
            parse=parse_name,
            prompt=Reply("Please send the company name:"),
            hint="❌ Company name cannot be empty. Please try again:",
        ),
        Step(
            state=SessionState.COMPANY_CREATE_EMAIL,
            field="email",
            parse=parse_email,
            prompt=Reply("📧 Great! Now send the company email:"),
            hint="❌ Please enter a valid email address:",
        ),
        Step(
            state=SessionState.COMPANY_CREATE_PHONE,
            field="phone",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("📞 Now send the phone number (or /skip):"),
            hint="Please send the phone number, or /skip.",
        ),
        Step(
            state=SessionState.COMPANY_CREATE_ADDRESS,
            field="address",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("📍 Send the company address (or /skip):"),
            hint="Please send the company address, or /skip.",
        ),
        Step(
            state=SessionState.COMPANY_CREATE_TAX_ID,
            field="tax_id",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("🆔 Finally, send the Tax ID (or /skip):"),
            hint="Please send the Tax ID, or /skip.",
        ),
    ),
    finish=create_company,
    failure_text="❌ Failed to create the company. Send the Tax ID (or /skip) again to retry, or /cancel.",
)


async def company_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /company - start the company creation wizard."""
    if await require_user(ctx, update) is None:
        return
    await start_wizard(ctx, update, Wizard.COMPANY, intro="🏢 Let's create a new company!")


async def companies_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /companies - list the user's companies."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        companies = await ctx.api.list_companies(user.api_token)
    except ApiError as e:
        logger.error(f"Could not list companies for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("fetch companies", e))
        return

    if not companies:
        await ctx.reply(update, "📋 No companies found.\n\nUse /company to create one.")
        return

    lines = ["🏢 *Your Companies*", ""]
    for i, company in enumerate(companies, start=1):
        lines.append(f"{i}. *{md(company.name)}*")
        if company.email:
            lines.append(f"   📧 {md(company.email)}")
        if company.phone:
            lines.append(f"   📞 {md(company.phone)}")
        if company.tax_id:
            lines.append(f"   🆔 Tax ID: {md(company.tax_id)}")
        lines.append("")

    await ctx.reply(update, Reply("\n".join(lines).rstrip(), markdown=True))
