"""
models/update.py
----------------
Transport-neutral shapes for what comes in and what goes out.

The dispatcher and every handler only ever see an InboundUpdate and
produce Reply objects, which keeps them testable without Telegram.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class UpdateKind(str, Enum):
    COMMAND = "command"
    TEXT = "text"
    CALLBACK = "callback"
    UNSUPPORTED = "unsupported"  # stickers, photos, edited messages...


@dataclass
class InboundUpdate:
    """
    One classified event from the transport.

    Attributes:
        kind: Exactly one of UpdateKind.
        user_id: Sender's Telegram ID (Session key).
        chat_id: Where replies go.
        update_id: Transport sequence number, for logs.
        text: Raw message text (commands included).
        command: Lower-cased command token without the slash.
        args: Whitespace separated words after the command.
        message_id: ID of the message itself or, for callbacks, of the
            message carrying the pressed button.
        callback_id: Acknowledgment handle of a callback query.
        payload: Callback data string.
        first_name: Sender's first name, if the transport knows it.
        acknowledged: Set once the callback has been answered.
    """
    kind: UpdateKind
    user_id: int
    chat_id: int
    update_id: int = 0
    text: str = ""
    command: Optional[str] = None
    args: list[str] = field(default_factory=list)
    message_id: Optional[int] = None
    callback_id: Optional[str] = None
    payload: str = ""
    first_name: Optional[str] = None
    acknowledged: bool = False

    @property
    def is_callback(self) -> bool:
        return self.kind is UpdateKind.CALLBACK


@dataclass(frozen=True)
class Button:
    """An inline keyboard button: either a callback payload or a URL."""
    label: str
    payload: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class Reply:
    text: str
    buttons: tuple[tuple[Button, ...], ...] = ()
    markdown: bool = False

    @classmethod
    def of(cls, message: "Reply | str") -> "Reply":
        return message if isinstance(message, Reply) else cls(text=message)
