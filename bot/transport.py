"""
bot/transport.py
----------------
The boundary between the bot and Telegram.

Inbound: `inbound_from_telegram` classifies a telegram.Update into an
InboundUpdate. Outbound: `TelegramTransport` renders Reply objects as
Telegram messages with inline keyboards. Anything else in the project
talks to the `Transport` protocol only.
"""

from typing import Optional, Protocol

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.error import TelegramError

from models.update import InboundUpdate, Reply, UpdateKind
from utils.logger import get_logger

logger = get_logger(__name__)


class TransportError(Exception):
    """A message or acknowledgment could not be delivered."""


class Transport(Protocol):
    async def send_message(self, chat_id: int, reply: Reply) -> None: ...

    async def answer_callback(self, callback_id: str, text: str = "") -> None: ...

    async def delete_message(self, chat_id: int, message_id: int) -> None: ...


def split_command(text: str) -> tuple[str, list[str]]:
    """
    Split '/invoice@ung_bot 42 x' into ('invoice', ['42', 'x']).
    The bot-name suffix is dropped and the token is lower-cased.
    """
    head, *args = text.split()
    command = head[1:].split("@", 1)[0].lower()
    return command, args


def _keyboard(reply: Reply) -> Optional[InlineKeyboardMarkup]:
    if not reply.buttons:
        return None
    rows = []
    for row in reply.buttons:
        rows.append([
            InlineKeyboardButton(b.label, url=b.url) if b.url
            else InlineKeyboardButton(b.label, callback_data=b.payload)
            for b in row
        ])
    return InlineKeyboardMarkup(rows)


class TelegramTransport:
    """Transport over a python-telegram-bot `Bot`."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(self, chat_id: int, reply: Reply) -> None:
        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=reply.text,
                reply_markup=_keyboard(reply),
                parse_mode=ParseMode.MARKDOWN if reply.markdown else None,
            )
        except TelegramError as e:
            raise TransportError(f"send_message to {chat_id} failed: {e}") from e

    async def answer_callback(self, callback_id: str, text: str = "") -> None:
        try:
            await self.bot.answer_callback_query(callback_id, text=text or None)
        except TelegramError as e:
            raise TransportError(f"answer_callback {callback_id} failed: {e}") from e

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        try:
            await self.bot.delete_message(chat_id=chat_id, message_id=message_id)
        except TelegramError as e:
            raise TransportError(f"delete_message {message_id} failed: {e}") from e


def inbound_from_telegram(update: Update) -> Optional[InboundUpdate]:
    """
    Classify a Telegram update.

    Returns:
        None when the update has no sender to answer (channel posts,
        polls...), otherwise an InboundUpdate of exactly one kind.
    """
    user = update.effective_user
    if user is None:
        return None

    query = update.callback_query
    if query is not None:
        message = query.message
        return InboundUpdate(
            kind=UpdateKind.CALLBACK,
            user_id=user.id,
            chat_id=message.chat.id if message else user.id,
            update_id=update.update_id,
            message_id=message.message_id if message else None,
            callback_id=query.id,
            payload=query.data or "",
            first_name=user.first_name,
        )

    chat = update.effective_chat
    chat_id = chat.id if chat else user.id
    message = update.message
    text = message.text if message else None

    if not text:
        return InboundUpdate(
            kind=UpdateKind.UNSUPPORTED,
            user_id=user.id,
            chat_id=chat_id,
            update_id=update.update_id,
            first_name=user.first_name,
        )

    if text.startswith("/"):
        command, args = split_command(text)
        return InboundUpdate(
            kind=UpdateKind.COMMAND,
            user_id=user.id,
            chat_id=chat_id,
            update_id=update.update_id,
            text=text,
            command=command,
            args=args,
            message_id=message.message_id,
            first_name=user.first_name,
        )

    return InboundUpdate(
        kind=UpdateKind.TEXT,
        user_id=user.id,
        chat_id=chat_id,
        update_id=update.update_id,
        text=text,
        message_id=message.message_id,
        first_name=user.first_name,
    )
