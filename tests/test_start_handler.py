"""Tests for /start, /login, /logout and the account buttons."""

import pytest

from bot.dispatcher import dispatch
from handlers.start_handler import LOGIN_USAGE
from services.api_client import ApiAuthError, ApiUnavailableError
from factories import USER_ID, callback, command


@pytest.mark.asyncio
async def test_start_for_new_user_shows_welcome(ctx, transport):
    """Test the welcome message and its login button."""
    await dispatch(ctx, command("/start"))

    reply = transport.last
    assert "Welcome!" in reply.text
    assert reply.buttons[0][0].payload == "auth_login"
    assert reply.buttons[1][0].url == "https://ung.app/register"


@pytest.mark.asyncio
async def test_start_for_linked_user_shows_menu(ctx, transport, logged_in):
    """Test that linked users land on the main menu."""
    await dispatch(ctx, command("/start"))

    reply = transport.last
    assert "Hey Ana!" in reply.text
    payloads = [b.payload for row in reply.buttons for b in row]
    assert "action_invoice" in payloads
    for payload in payloads:
        assert ctx.callbacks.resolve(payload) is not None


@pytest.mark.asyncio
async def test_login_stores_token_and_deletes_password(ctx, transport, api):
    """Test a successful /login."""
    update = command("/login ana@example.com s3cret")

    await dispatch(ctx, update)

    assert transport.deleted == [(update.chat_id, update.message_id)]
    assert api.logins == [("ana@example.com", "s3cret")]
    user = ctx.users.get_by_telegram_id(USER_ID)
    assert user.api_token == "tok-123"
    assert user.email == "ana@example.com"
    assert "Main Menu" in transport.last.text


@pytest.mark.asyncio
async def test_login_with_bad_credentials(ctx, transport, api):
    """Test that a rejected login stores nothing."""
    api.error = ApiAuthError("rejected", 401)

    await dispatch(ctx, command("/login ana@example.com wrong"))

    assert ctx.users.get_by_telegram_id(USER_ID) is None
    assert transport.texts[-1].startswith("❌ Login failed")


@pytest.mark.asyncio
async def test_login_when_api_is_down(ctx, transport, api):
    """Test the message for an unreachable API."""
    api.error = ApiUnavailableError("connection refused")

    await dispatch(ctx, command("/login ana@example.com s3cret"))

    assert "Could not reach UNG" in transport.texts[-1]
    assert len(transport.deleted) == 1


@pytest.mark.asyncio
async def test_login_usage(ctx, transport, api):
    """Test that /login with the wrong arguments explains itself."""
    await dispatch(ctx, command("/login"))

    assert transport.last.text == LOGIN_USAGE
    assert api.logins == []
    assert transport.deleted == []


@pytest.mark.asyncio
async def test_logout_forgets_token_and_wizard(ctx, transport, logged_in):
    """Test that /logout clears the token and any session."""
    await dispatch(ctx, command("/expense"))

    await dispatch(ctx, command("/logout"))

    assert ctx.users.get_by_telegram_id(USER_ID) is None
    assert ctx.sessions.get(USER_ID) is None
    assert "logged out" in transport.texts[-1]


@pytest.mark.asyncio
async def test_auth_login_button(ctx, transport):
    """Test the 'Connect Account' button."""
    update = callback("auth_login")

    await dispatch(ctx, update)

    assert transport.acks == [(update.callback_id, "")]
    assert transport.last.text == LOGIN_USAGE
    assert transport.last.buttons[0][0].url == "https://ung.app"


@pytest.mark.asyncio
async def test_main_menu_button(ctx, transport, logged_in):
    """Test that the Main Menu button re-renders the menu."""
    update = callback("main_menu")

    await dispatch(ctx, update)

    assert transport.acks == [(update.callback_id, "")]
    assert "Main Menu" in transport.last.text


@pytest.mark.asyncio
async def test_cancel_without_wizard(ctx, transport):
    """Test /cancel with nothing to cancel."""
    await dispatch(ctx, command("/cancel"))

    assert transport.texts == ["There is nothing to cancel."]
