"""Tests for the conversation state machine, driven through the dispatcher."""

from collections import Counter
from decimal import Decimal

import pytest

from bot.dispatcher import dispatch
from models.drafts import InvoiceDraft
from models.session import Session, SessionState, Wizard
from services.api_client import ApiUnavailableError
from services.conversation import (
    BROKEN_SESSION_TEXT,
    DEFAULT_HELP_TEXT,
    STALE_BUTTON_TEXT,
    ConversationStateMachine,
)
from factories import USER_ID, callback, command, text


async def _walk_to_due_date(ctx):
    """Answer every invoice step up to the due-date question."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))
    await dispatch(ctx, text("1500"))
    await dispatch(ctx, text("Website work"))


@pytest.mark.asyncio
async def test_invoice_wizard_end_to_end(ctx, transport, api, logged_in):
    """Test the full invoice scenario, state by state."""
    await dispatch(ctx, command("/invoice"))
    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_SELECT_CLIENT
    assert session.wizard is Wizard.INVOICE

    await dispatch(ctx, callback("invoice_client_42"))
    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_AMOUNT
    assert session.data.client_id == 42

    await dispatch(ctx, text("1500"))
    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_DESCRIPTION
    assert session.data.amount == 1500

    await dispatch(ctx, text("Website work"))
    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_DUE_DATE
    assert session.data.description == "Website work"

    await dispatch(ctx, callback("invoice_due_30"))

    kind, token, request = api.created[-1]
    assert kind == "invoice"
    assert token == "tok-123"
    assert (request.client_id, request.amount, request.description, request.due_days) == (
        42, Decimal("1500"), "Website work", 30,
    )
    assert ctx.sessions.get(USER_ID) is None
    assert "Invoice created successfully" in transport.texts[-1]
    assert "INV-2026-001" in transport.texts[-1]


@pytest.mark.asyncio
@pytest.mark.parametrize("token, days", [("7", 7), ("14", 14), ("30", 30), ("99", 30)])
async def test_due_date_tokens(ctx, api, logged_in, token, days):
    """Test that out-of-set due tokens still create the invoice with 30 days."""
    await _walk_to_due_date(ctx)

    await dispatch(ctx, callback(f"invoice_due_{token}"))

    assert api.created[-1][2].due_days == days
    assert ctx.sessions.get(USER_ID) is None


@pytest.mark.asyncio
async def test_decimal_amount_is_accepted(ctx, logged_in):
    """Test that '1500.50' is stored as an exact decimal."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))

    await dispatch(ctx, text("1500.50"))

    assert ctx.sessions.get(USER_ID).data.amount == Decimal("1500.50")


@pytest.mark.asyncio
async def test_invalid_amount_reprompts_without_changes(ctx, transport, logged_in):
    """Test that a bad amount keeps the state and the draft untouched."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))
    before = ctx.sessions.get(USER_ID)

    await dispatch(ctx, text("abc"))

    after = ctx.sessions.get(USER_ID)
    assert after.state is SessionState.INVOICE_AMOUNT
    assert after.data == before.data == InvoiceDraft(client_id=42)
    assert after.updated_at == before.updated_at
    assert "Invalid amount" in transport.texts[-1]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["1e400", "1e-400", "12.345"])
async def test_unrepresentable_amount_reprompts(ctx, transport, api, logged_in, raw):
    """Test that amounts the API cannot take as a number are refused at the amount step."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))

    await dispatch(ctx, text(raw))

    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_AMOUNT
    assert session.data == InvoiceDraft(client_id=42)
    assert "Invalid amount" in transport.texts[-1]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["invoice_client_²", "invoice_client_４２"])
async def test_non_ascii_client_id_reprompts(ctx, transport, logged_in, payload):
    """Test that digit-like characters in a client button re-prompt instead of failing."""
    await dispatch(ctx, command("/invoice"))
    update = callback(payload)

    await dispatch(ctx, update)

    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_SELECT_CLIENT
    assert session.data == InvoiceDraft()
    assert "pick a client" in transport.texts[-1]
    assert [ack for ack in transport.acks if ack[0] == update.callback_id] == [(update.callback_id, "")]


@pytest.mark.asyncio
async def test_odd_due_token_still_creates_invoice(ctx, api, logged_in):
    """Test that a superscript due token falls back to 30 days."""
    await _walk_to_due_date(ctx)

    await dispatch(ctx, callback("invoice_due_²"))

    assert api.created[-1][2].due_days == 30
    assert ctx.sessions.get(USER_ID) is None


@pytest.mark.asyncio
async def test_select_client_only_advances_on_a_client_button(ctx, transport, logged_in):
    """Test that text and malformed payloads leave select_client as it is."""
    await dispatch(ctx, command("/invoice"))

    await dispatch(ctx, text("Acme Corp"))
    await dispatch(ctx, callback("invoice_client_abc"))
    await dispatch(ctx, callback("invoice_client_"))

    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_SELECT_CLIENT
    assert session.data == InvoiceDraft()
    assert "pick a client" in transport.texts[-1]


@pytest.mark.asyncio
async def test_repeated_button_press_does_not_duplicate(ctx, transport, logged_in):
    """Test that pressing an old button again changes nothing."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))
    before = ctx.sessions.get(USER_ID)

    again = callback("invoice_client_7")
    await dispatch(ctx, again)

    assert ctx.sessions.get(USER_ID) == before
    assert (again.callback_id, STALE_BUTTON_TEXT) in transport.acks


@pytest.mark.asyncio
async def test_restarting_a_wizard_overwrites_answers(ctx, logged_in):
    """Test that re-issuing /invoice starts over with an empty draft."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))

    await dispatch(ctx, command("/invoice"))

    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_SELECT_CLIENT
    assert session.data == InvoiceDraft()


@pytest.mark.asyncio
async def test_api_failure_leaves_session_for_retry(ctx, transport, api, logged_in):
    """Test that a failed create keeps every answer so the last step can be retried."""
    await _walk_to_due_date(ctx)
    before = ctx.sessions.get(USER_ID)
    api.error = ApiUnavailableError("connection refused")

    await dispatch(ctx, callback("invoice_due_30"))

    assert ctx.sessions.get(USER_ID) == before
    assert "Failed to create the invoice" in transport.texts[-1]
    assert "connection refused" not in transport.texts[-1]

    api.error = None
    await dispatch(ctx, callback("invoice_due_14"))

    assert api.created[-1][2].due_days == 14
    assert ctx.sessions.get(USER_ID) is None


@pytest.mark.asyncio
async def test_every_callback_is_acknowledged_once(ctx, transport, logged_in):
    """Test that each callback query is answered exactly once."""
    updates = [callback("invoice_client_42"), callback("invoice_client_42"),
               callback("nothing_here"), callback("invoice_due_7")]
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, updates[0])
    await dispatch(ctx, updates[1])
    await dispatch(ctx, updates[2])
    await dispatch(ctx, text("10"))
    await dispatch(ctx, text("Logo"))
    await dispatch(ctx, updates[3])

    counts = Counter(callback_id for callback_id, _ in transport.acks)
    assert counts == Counter({u.callback_id: 1 for u in updates})


@pytest.mark.asyncio
async def test_skip_on_required_step_reprompts(ctx, transport, logged_in):
    """Test that /skip cannot answer a required question."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))

    await dispatch(ctx, command("/skip"))

    assert ctx.sessions.get(USER_ID).state is SessionState.INVOICE_AMOUNT
    assert "can't be skipped" in transport.texts[-1]


@pytest.mark.asyncio
async def test_cancel_clears_session(ctx, transport, logged_in):
    """Test that /cancel ends the wizard without an API call."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))

    await dispatch(ctx, command("/cancel"))
    await dispatch(ctx, text("1500"))

    assert ctx.sessions.get(USER_ID) is None
    assert transport.texts[-2].startswith("❌ Cancelled")
    assert transport.texts[-1] == DEFAULT_HELP_TEXT


@pytest.mark.asyncio
async def test_cancel_button(ctx, transport, logged_in):
    """Test the inline Cancel button."""
    await _walk_to_due_date(ctx)

    await dispatch(ctx, callback("action_cancel"))

    assert ctx.sessions.get(USER_ID) is None


@pytest.mark.asyncio
async def test_commands_interrupt_without_losing_state(ctx, transport, logged_in):
    """Test that /help in the middle of a wizard keeps the wizard going."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))

    await dispatch(ctx, command("/help"))
    await dispatch(ctx, text("250"))

    assert ctx.sessions.get(USER_ID).state is SessionState.INVOICE_DESCRIPTION


@pytest.mark.asyncio
async def test_failed_prompt_delivery_does_not_advance(ctx, transport, logged_in):
    """Test that the session only moves once the next question went out."""
    await dispatch(ctx, command("/invoice"))
    await dispatch(ctx, callback("invoice_client_42"))
    transport.fail_sends = True

    await dispatch(ctx, text("1500"))

    session = ctx.sessions.get(USER_ID)
    assert session.state is SessionState.INVOICE_AMOUNT
    assert session.data.amount is None


@pytest.mark.asyncio
async def test_state_without_registered_step_is_reset(ctx, transport):
    """Test that an orphaned state is logged and reset instead of crashing."""
    ctx.machine = ConversationStateMachine(ctx.sessions)
    ctx.sessions.put(Session(
        user_id=USER_ID,
        state=SessionState.INVOICE_AMOUNT,
        wizard=Wizard.INVOICE,
        data=InvoiceDraft(client_id=42),
    ))

    await dispatch(ctx, text("1500"))

    assert ctx.sessions.get(USER_ID) is None
    assert transport.texts[-1] == BROKEN_SESSION_TEXT


@pytest.mark.asyncio
async def test_button_without_session_is_stale(ctx, transport, api, logged_in):
    """Test that a due-date button with no wizard running does nothing."""
    update = callback("invoice_due_30")

    await dispatch(ctx, update)

    assert api.created == []
    assert transport.acks == [(update.callback_id, STALE_BUTTON_TEXT)]
    assert ctx.sessions.get(USER_ID) is None


def test_register_rejects_duplicate_states(ctx):
    """Test that one state cannot belong to two wizards."""
    from handlers.invoice_handler import FLOW

    with pytest.raises(ValueError):
        ctx.machine.register(FLOW)
