"""
handlers/search_handler.py
--------------------------
Global search across clients, invoices, contracts and expenses.

`/search <query>` answers at once. A bare `/search` opens a one-step
wizard that waits for the query.
"""

from typing import TYPE_CHECKING

from handlers.common import MAIN_MENU_ROW, api_token, failure_text, md, require_user, start_wizard
from models.billing import SearchResults
from models.drafts import SearchDraft
from models.session import SessionState, Wizard
from models.update import Button, InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import Step, WizardFlow
from services.parsers import parse_query
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

RESULTS_SHOWN = 8

TYPE_ICONS = {
    "client": "👤",
    "invoice": "📄",
    "contract": "📋",
    "expense": "💸",
    "company": "🏢",
    "tracking": "⏱️",
}


def _icon(kind: str) -> str:
    return TYPE_ICONS.get(kind, "📌")


def render_results(results: SearchResults) -> Reply:
    lines = ["🔍 *Search Results*", "", f"Query: _{md(results.query)}_", ""]

    if not results.hits:
        lines += ["No results found.", "", "Try a different search term."]
    else:
        lines.append("*Found:*")
        for kind, count in sorted(results.counts.items()):
            if count > 0:
                lines.append(f"{_icon(kind)} {md(kind)}: {count}")
        lines += ["", "*Results:*", ""]
        for hit in results.hits[:RESULTS_SHOWN]:
            lines.append(f"{_icon(hit.type)} *{md(hit.title)}*")
            if hit.subtitle:
                lines.append(f"   {md(hit.subtitle)}")
            lines.append("")
        if len(results.hits) > RESULTS_SHOWN:
            lines.append(f"_...and {len(results.hits) - RESULTS_SHOWN} more results_")

    return Reply(
        "\n".join(lines),
        buttons=((Button("🔍 New Search", "action_search"),), MAIN_MENU_ROW),
        markdown=True,
    )


async def run_search(ctx: "BotContext", update: InboundUpdate, draft: SearchDraft) -> Reply:
    results = await ctx.api.search(api_token(ctx, update.user_id), draft.query)
    logger.info(f"Search by user {update.user_id} returned {len(results.hits)} hits")
    return render_results(results)


FLOW = WizardFlow(
    wizard=Wizard.SEARCH,
    draft_type=SearchDraft,
    steps=(
        Step(
            state=SessionState.SEARCH_QUERY,
            field="query",
            parse=parse_query,
            prompt=Reply(
                "🔍 *Search*\n\nEnter your search query:\n\n"
                "_Search across clients, invoices, contracts, and more._",
                markdown=True,
            ),
            hint="Please enter a search query, or /cancel.",
        ),
    ),
    finish=run_search,
    failure_text="❌ Search failed. Send the query again to retry, or /cancel.",
)


async def search_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /search [query]."""
    if await require_user(ctx, update) is None:
        return

    query = " ".join(update.args or []).strip()
    if not query:
        await start_wizard(ctx, update, Wizard.SEARCH)
        return

    try:
        reply = await run_search(ctx, update, SearchDraft(query=query))
    except ApiError as e:
        logger.error(f"Search failed for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("search", e))
        return
    await ctx.reply(update, reply)
