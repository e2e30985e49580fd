"""Unit tests for the command and callback routing tables."""

import pytest

from bot.routers import UNKNOWN_COMMAND_TEXT, CallbackRouter, CommandRouter
from bot.routes import BOT_COMMANDS
from models.session import Command
from factories import USER_ID, callback, command


async def _noop(ctx, update, arg=""):
    pass


async def _other(ctx, update, arg=""):
    pass


def test_longest_prefix_wins():
    """Test that the most specific prefix handles the payload."""
    router = CallbackRouter()
    router.register("invoice_", _other)
    router.register("invoice_due_", _noop)

    handler, arg = router.resolve("invoice_due_14")

    assert handler is _noop
    assert arg == "14"


def test_exact_route_beats_prefix():
    """Test that an exact payload match wins over a prefix match."""
    router = CallbackRouter()
    router.register("invoice_", _other)
    router.register("invoice_new_client", _noop, exact=True)

    assert router.resolve("invoice_new_client") == (_noop, "")
    assert router.resolve("invoice_new_client_2") == (_other, "new_client_2")


def test_unmatched_payload_resolves_to_none():
    """Test that unknown payloads have no handler."""
    router = CallbackRouter()
    router.register("invoice_due_", _noop)

    assert router.resolve("gig_status_1") is None
    assert router.resolve("") is None


def test_duplicate_registration_is_rejected():
    """Test that a route can only be registered once."""
    callbacks = CallbackRouter()
    callbacks.register("invoice_due_", _noop)
    with pytest.raises(ValueError):
        callbacks.register("invoice_due_", _other)

    commands = CommandRouter()
    commands.register(Command.HELP, _noop)
    with pytest.raises(ValueError):
        commands.register("HELP", _other)


@pytest.mark.asyncio
async def test_unknown_command_gets_fixed_reply(ctx, transport, logged_in):
    """Test the unknown-command fallback and that it leaves sessions alone."""
    await ctx.commands.route(ctx, command("/invoice"))
    before = ctx.sessions.get(USER_ID)

    await ctx.commands.route(ctx, command("/frobnicate"))

    assert transport.texts[-1] == UNKNOWN_COMMAND_TEXT
    assert ctx.sessions.get(USER_ID) == before


@pytest.mark.asyncio
async def test_unmatched_callback_is_acknowledged_empty(ctx, transport):
    """Test that a payload nobody handles still clears the loading spinner."""
    update = callback("gig_status_1")

    await ctx.callbacks.route(ctx, update)

    assert transport.acks == [(update.callback_id, "")]
    assert transport.sent == []


def test_every_command_is_registered(ctx):
    """Test that the command table covers every Command and the menu."""
    registered = set(ctx.commands.routes())

    assert registered == {c.value for c in Command}
    assert {name for name, _ in BOT_COMMANDS} <= registered


def test_every_button_in_wizard_prompts_has_a_route(ctx):
    """Test that no static prompt offers a button the router cannot handle."""
    payloads = []
    for state in ctx.machine.states:
        step = ctx.machine.step_for(state)
        if step.prompt is None or callable(step.prompt):
            continue
        for row in step.prompt.buttons:
            payloads += [b.payload for b in row if b.payload]

    assert payloads
    for payload in payloads:
        assert ctx.callbacks.resolve(payload) is not None, payload


def test_documented_callback_payloads_are_routed(ctx):
    """Test the documented payload prefixes."""
    for payload in ("invoice_client_42", "invoice_due_7", "action_invoice", "auth_login",
                    "contract_client_3", "contract_type_fixed", "expense_category_meals",
                    "log_contract_3", "tracking_stop", "action_track", "action_log", "action_search"):
        assert ctx.callbacks.resolve(payload) is not None, payload
