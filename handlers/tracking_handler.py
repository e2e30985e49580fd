"""
handlers/tracking_handler.py
----------------------------
Time tracking: the live timer (/track, /stop), the /tracking summary
and the manual time-entry wizard (/log).

Wizard: pick contract (button) -> hours -> project (optional)
-> notes (optional) -> POST /tracking.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from handlers.common import (
    CANCEL_ROW,
    MAIN_MENU_ROW,
    api_token,
    failure_text,
    md,
    require_user,
    start_wizard,
)
from models.billing import TrackingCreateRequest
from models.drafts import TimeLogDraft
from models.session import SessionState, Wizard
from models.update import Button, InboundUpdate, Reply
from services.api_client import ApiError
from services.conversation import InputSource, Step, WizardFlow
from services.parsers import parse_hours, parse_optional_text, parse_record_id
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

SESSIONS_SHOWN = 8
# The live timer is not tied to a contract; the API files it under its default project.
DEFAULT_PROJECT_ID = 1

START_ROW = (Button("▶️ Start Tracking", "action_track"),)


def format_time(value: str) -> str:
    """'2026-10-19T14:05:00Z' -> 'Oct 19, 2026 at 02:05 PM'. Unparseable values pass through."""
    if not value:
        return "N/A"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return moment.strftime("%b %d, %Y at %I:%M %p")


def _hours(value) -> str:
    return f"{float(value):.2f}"


async def create_time_entry(ctx: "BotContext", update: InboundUpdate, draft: TimeLogDraft) -> Reply:
    request = TrackingCreateRequest(
        contract_id=draft.contract_id,
        hours=draft.hours,
        project_name=draft.project_name,
        notes=draft.notes,
    )
    await ctx.api.create_tracking(api_token(ctx, update.user_id), request)

    lines = ["✅ *Time logged successfully!*", "", f"⏱️ Hours: {_hours(draft.hours)}"]
    if draft.project_name:
        lines.append(f"📋 Project: {md(draft.project_name)}")
    if draft.notes:
        lines.append(f"📝 Notes: {md(draft.notes)}")
    return Reply("\n".join(lines), buttons=(MAIN_MENU_ROW,), markdown=True)


FLOW = WizardFlow(
    wizard=Wizard.TIME_LOG,
    draft_type=TimeLogDraft,
    steps=(
        Step(
            state=SessionState.TRACK_LOG_SELECT_CONTRACT,
            field="contract_id",
            parse=parse_record_id,
            source=InputSource.CALLBACK,
            hint="Please pick a contract from the buttons above, or /cancel.",
            ack="Contract selected",
        ),
        Step(
            state=SessionState.TRACK_LOG_HOURS,
            field="hours",
            parse=parse_hours,
            prompt=Reply("How many hours did you work?\n\n_Example: 2.5 or 8_", markdown=True),
            hint="❌ Invalid hours. Please enter a number above 0 and up to 24 (e.g., 2.5)",
        ),
        Step(
            state=SessionState.TRACK_LOG_PROJECT,
            field="project_name",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("What project/task were you working on?\n\n_Type /skip if you don't want to add a project name_",
                         markdown=True),
            hint="Please send the project name, or /skip.",
        ),
        Step(
            state=SessionState.TRACK_LOG_NOTES,
            field="notes",
            parse=parse_optional_text,
            optional=True,
            prompt=Reply("Any notes about this work?\n\n_Type /skip to finish_", markdown=True),
            hint="Please send your notes, or /skip.",
        ),
    ),
    finish=create_time_entry,
    failure_text="❌ Failed to log time. Send the notes (or /skip) again to retry, or /cancel.",
)


async def log_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /log - start manual time entry with a contract picker."""
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
        await ctx.reply(update, "You don't have any contracts yet.\n\nCreate a contract first with /contract")
        return

    rows = []
    for contract in contracts:
        label = f"{contract.name} (${contract.rate:.0f}/hr)" if contract.rate > 0 else contract.name
        rows.append((Button(label, f"log_contract_{contract.id}"),))
    rows.append(CANCEL_ROW)
    picker = Reply("⏱️ *Log Time Manually*\n\nSelect the contract you worked on:",
                   buttons=tuple(rows), markdown=True)
    await start_wizard(ctx, update, Wizard.TIME_LOG, prompt=picker)


async def track_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /track - start the live timer unless one is already running."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        sessions = await ctx.api.list_tracking(user.api_token)
        active = next((s for s in sessions if s.active), None)
        if active is not None:
            await ctx.reply(update, (
                "⚠️ You already have an active tracking session!\n\n"
                f"Started: {format_time(active.start_time)}\n\n"
                "Use /stop to stop the current session first."
            ))
            return
        started = await ctx.api.start_tracking(user.api_token, DEFAULT_PROJECT_ID)
    except ApiError as e:
        logger.error(f"Could not start tracking for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("start tracking", e))
        return

    logger.info(f"User {update.user_id} started tracking session {started.id}")
    await ctx.reply(update, Reply(
        "✅ *Time tracking started!*\n\n"
        "⏱️ Timer is now running...\n"
        f"🕐 Started at: {md(format_time(started.start_time))}\n\n"
        "_Use /stop to stop tracking_",
        markdown=True,
    ))


async def stop_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /stop - stop the live timer."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        stopped = await ctx.api.stop_tracking(user.api_token)
    except ApiError as e:
        logger.error(f"Could not stop tracking for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("stop tracking", e))
        return

    lines = [
        "✅ *Time tracking stopped!*",
        "",
        f"🕐 Started: {md(format_time(stopped.start_time))}",
        f"🏁 Ended: {md(format_time(stopped.end_time))}",
    ]
    if stopped.duration > 0:
        lines.append(f"⏳ Duration: {_hours(stopped.duration)} hours")
    if stopped.notes:
        lines.append(f"\n📝 Notes: {md(stopped.notes)}")
    lines.append("\n_Your time has been recorded!_")
    await ctx.reply(update, Reply("\n".join(lines), markdown=True))


async def tracking_command(ctx: "BotContext", update: InboundUpdate) -> None:
    """Handle /tracking - summary and the most recent sessions."""
    user = await require_user(ctx, update)
    if user is None:
        return

    try:
        sessions = await ctx.api.list_tracking(user.api_token)
    except ApiError as e:
        logger.error(f"Could not list tracking sessions for user {update.user_id}: {e}")
        await ctx.reply(update, failure_text("fetch tracking sessions", e))
        return

    if not sessions:
        await ctx.reply(update, Reply(
            "⏱️ *Time Tracking*\n\n📭 No sessions recorded yet!\n\nStart tracking your work time.",
            buttons=(START_ROW,),
            markdown=True,
        ))
        return

    total = sum(s.duration for s in sessions if s.duration > 0)
    active = sum(1 for s in sessions if s.active)
    lines = [
        "⏱️ *Time Tracking*",
        "",
        f"Sessions: {len(sessions)}",
        f"Total: *{total:.1f} hours*",
    ]
    if active:
        lines.append(f"\n🔴 *{active} active session(s)*")
    lines += ["", "📋 *Recent Sessions*", ""]

    for i, session in enumerate(sessions[:SESSIONS_SHOWN], start=1):
        lines.append("🔴 *ACTIVE SESSION*" if session.active else f"✅ *Session {i}*")
        if session.notes:
            lines.append(f"   📝 {md(session.notes)}")
        lines.append(f"   🕐 {md(format_time(session.start_time))}")
        if session.duration > 0:
            lines.append(f"   ⏳ {session.duration:.1f}h")
        lines.append("")
    if len(sessions) > SESSIONS_SHOWN:
        lines.append(f"_+{len(sessions) - SESSIONS_SHOWN} more sessions_")

    await ctx.reply(update, Reply(
        "\n".join(lines),
        buttons=(
            (Button("▶️ Start", "action_track"), Button("📝 Log Time", "action_log")),
            MAIN_MENU_ROW,
        ),
        markdown=True,
    ))
