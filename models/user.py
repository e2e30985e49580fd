"""
models/user.py
--------------
A Telegram user who has linked their UNG account.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.session import utcnow


@dataclass(frozen=True)
class AuthenticatedUser:
    """
    Attributes:
        telegram_id: Telegram user ID.
        api_token: Bearer token returned by the API login call.
        name: Display name used in greetings.
        email: Account email, if known.
        created_at: When the token was stored.
    """
    telegram_id: int
    api_token: str
    name: str = "there"
    email: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
