"""Unit tests for the session store and the Session record."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from models.drafts import ClientDraft, InvoiceDraft
from models.session import Session, SessionState, Wizard
from repositories.session_store import SessionStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def _invoice_session(user_id=1, **draft):
    return Session(
        user_id=user_id,
        state=SessionState.INVOICE_AMOUNT,
        wizard=Wizard.INVOICE,
        data=InvoiceDraft(**draft),
    )


def test_get_unknown_user_returns_none():
    """Test that a user with no prior interaction has no session."""
    store = SessionStore()

    assert store.get(12345) is None
    assert len(store) == 0


def test_put_replaces_previous_session():
    """Test that a second put for the same user replaces the first."""
    store = SessionStore()
    store.put(_invoice_session(client_id=1))
    store.put(_invoice_session(client_id=2))

    assert len(store) == 1
    assert store.get(1).data.client_id == 2


def test_put_stamps_updated_at():
    """Test that the store stamps every write with its clock."""
    clock = FakeClock()
    store = SessionStore(clock=clock)

    stored = store.put(_invoice_session())

    assert stored.updated_at == clock.now
    assert store.get(1).updated_at == clock.now


def test_clear():
    """Test clearing a session and clearing a missing one."""
    store = SessionStore()
    store.put(_invoice_session())

    assert store.clear(1) is True
    assert store.get(1) is None
    assert store.clear(1) is False


def test_sweep_removes_only_idle_sessions():
    """Test that sweep drops sessions older than the idle threshold."""
    clock = FakeClock()
    store = SessionStore(clock=clock)
    store.put(_invoice_session(user_id=1))
    clock.advance(minutes=45)
    store.put(_invoice_session(user_id=2))
    clock.advance(minutes=20)

    expired = store.sweep(timedelta(minutes=30))

    assert expired == [1]
    assert store.get(1) is None
    assert store.get(2) is not None


def test_concurrent_puts_keep_one_session_per_user():
    """Test that parallel writers never leave more than one session per user."""
    store = SessionStore()

    def write(i):
        store.put(_invoice_session(user_id=i % 10, client_id=i))

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(write, range(500)))

    assert len(store) == 10
    for user_id in range(10):
        assert store.get(user_id).data.client_id % 10 == user_id


def test_advance_keeps_session_immutable():
    """Test that advance returns a new session and leaves the original alone."""
    session = _invoice_session(client_id=42)

    moved = session.advance(SessionState.INVOICE_DESCRIPTION, InvoiceDraft(client_id=42, amount=Decimal("10")))

    assert session.state is SessionState.INVOICE_AMOUNT
    assert session.data.amount is None
    assert moved.state is SessionState.INVOICE_DESCRIPTION
    assert moved.data.amount == Decimal("10")


def test_session_rejects_draft_of_another_wizard():
    """Test that a wizard tag must match its draft type."""
    with pytest.raises(TypeError):
        Session(user_id=1, state=SessionState.INVOICE_AMOUNT, wizard=Wizard.INVOICE, data=ClientDraft())


def test_idle_session_carries_no_data():
    """Test that a session in state none cannot hold wizard data."""
    assert Session(user_id=1).is_active is False
    with pytest.raises(ValueError):
        Session(user_id=1, data=InvoiceDraft())
