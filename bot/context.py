"""
bot/context.py
--------------
The BotContext: every collaborator a handler may touch, in one object.

Handlers receive `(ctx, update, ...)` and never reach for module-level
singletons, so a test can build as many isolated bots as it likes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable

from bot.routers import CallbackRouter, CommandRouter
from bot.routes import install_routes
from bot.transport import Transport
from models.session import utcnow
from models.update import InboundUpdate, Reply
from repositories.session_store import SessionStore
from repositories.user_repo import UserRepository
from security.rate_limiter import RateLimiter
from services.api_client import ApiClient
from services.conversation import ConversationStateMachine


@dataclass
class BotContext:
    """
    Attributes:
        sessions: Conversation Sessions, keyed by user ID.
        users: API tokens of logged-in users.
        api: UNG billing API client.
        transport: Where replies and callback acknowledgments go.
        machine: Wizard state machine bound to `sessions`.
        commands: Slash-command routing table.
        callbacks: Button payload routing table.
        rate_limiter: Per-user update counter.
        allowed_user_ids: Whitelist; empty means everyone.
        web_app_url: Linked from the login help and menus.
        currency: ISO code sent with new invoices.
    """
    sessions: SessionStore
    users: UserRepository
    api: ApiClient
    transport: Transport
    machine: ConversationStateMachine
    commands: CommandRouter = field(default_factory=CommandRouter)
    callbacks: CallbackRouter = field(default_factory=CallbackRouter)
    rate_limiter: RateLimiter = field(default_factory=RateLimiter)
    allowed_user_ids: frozenset = frozenset()
    web_app_url: str = "https://ung.app"
    currency: str = "USD"

    async def reply(self, update: InboundUpdate, message: "Reply | str") -> None:
        await self.transport.send_message(update.chat_id, Reply.of(message))

    async def acknowledge(self, update: InboundUpdate, text: str = "") -> None:
        """Answer a callback query. Only the first call per update does anything."""
        if not update.is_callback or update.acknowledged:
            return
        update.acknowledged = True
        await self.transport.answer_callback(update.callback_id, text)


def build_context(transport: Transport, api: ApiClient, *,
                  allowed_user_ids: Iterable[int] = (),
                  rate_limit_messages: int = 30,
                  rate_limit_window: float = 60,
                  web_app_url: str = "https://ung.app",
                  currency: str = "USD",
                  clock: Callable[[], datetime] = utcnow) -> BotContext:
    """Wire a fresh bot: empty stores, every wizard and route registered."""
    sessions = SessionStore(clock=clock)
    ctx = BotContext(
        sessions=sessions,
        users=UserRepository(),
        api=api,
        transport=transport,
        machine=ConversationStateMachine(sessions),
        rate_limiter=RateLimiter(rate_limit_messages, rate_limit_window),
        allowed_user_ids=frozenset(allowed_user_ids),
        web_app_url=web_app_url,
        currency=currency,
    )
    install_routes(ctx)
    return ctx
