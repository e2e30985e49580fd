"""
bot/routers.py
--------------
Registration tables for slash commands and button payloads.

Both tables are filled once at start-up (see bot/routes.py) and can be
enumerated with `routes()`, so every route is testable without Telegram.
"""

from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

from models.session import Command
from models.update import InboundUpdate
from utils.logger import get_logger

if TYPE_CHECKING:
    from bot.context import BotContext

logger = get_logger(__name__)

UNKNOWN_COMMAND_TEXT = "Unknown command. Try /help"

CommandHandler = Callable[["BotContext", InboundUpdate], Awaitable[None]]
CallbackHandler = Callable[["BotContext", InboundUpdate, str], Awaitable[None]]


class CommandRouter:
    """Exact-match table: command token -> handler(ctx, update)."""

    def __init__(self):
        self._routes: dict[str, CommandHandler] = {}

    def register(self, command: Union[Command, str], handler: CommandHandler) -> None:
        token = command.value if isinstance(command, Command) else command.lower()
        if token in self._routes:
            raise ValueError(f"/{token} is already registered")
        self._routes[token] = handler

    def resolve(self, token: Optional[str]) -> Optional[CommandHandler]:
        return self._routes.get((token or "").lower())

    def routes(self) -> list[str]:
        return list(self._routes)

    async def route(self, ctx: "BotContext", update: InboundUpdate) -> None:
        handler = self.resolve(update.command)
        if handler is None:
            logger.debug(f"Unknown command /{update.command} from user {update.user_id}")
            await ctx.reply(update, UNKNOWN_COMMAND_TEXT)
            return
        await handler(ctx, update)


class CallbackRouter:
    """
    Payload table with longest-prefix matching.

    A prefix route such as 'invoice_due_' receives whatever follows the
    prefix as its argument ('invoice_due_14' -> '14'). An exact route
    only matches the whole payload and receives ''. An exact match
    always wins, since it is the longest prefix possible.
    """

    def __init__(self):
        self._prefixes: dict[str, CallbackHandler] = {}
        self._exact: dict[str, CallbackHandler] = {}

    def register(self, prefix: str, handler: CallbackHandler, exact: bool = False) -> None:
        if not prefix:
            raise ValueError("callback prefix must not be empty")
        table = self._exact if exact else self._prefixes
        if prefix in table:
            raise ValueError(f"callback route {prefix!r} is already registered")
        table[prefix] = handler

    def resolve(self, payload: str) -> Optional[tuple[CallbackHandler, str]]:
        """
        Returns:
            (handler, argument) for the best match, or None.
        """
        if payload in self._exact:
            return self._exact[payload], ""
        best = None
        for prefix in self._prefixes:
            if payload.startswith(prefix) and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is None:
            return None
        return self._prefixes[best], payload[len(best):]

    def routes(self) -> list[str]:
        return list(self._exact) + list(self._prefixes)

    async def route(self, ctx: "BotContext", update: InboundUpdate) -> None:
        match = self.resolve(update.payload)
        if match is None:
            logger.debug(f"No callback route for {update.payload!r} from user {update.user_id}")
            await ctx.acknowledge(update)
            return
        handler, arg = match
        await handler(ctx, update, arg)


def as_callback(handler: CommandHandler, ack: str = "") -> CallbackHandler:
    """Expose a command handler as a button: acknowledge, then run it."""

    async def callback(ctx: "BotContext", update: InboundUpdate, arg: str) -> None:
        await ctx.acknowledge(update, ack)
        await handler(ctx, update)

    callback.__name__ = f"{handler.__name__}_callback"
    return callback
