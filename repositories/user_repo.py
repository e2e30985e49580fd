"""
repositories/user_repo.py
--------------------------
Keeps the API tokens of users who logged in through the bot.
"""

import threading
from typing import Optional

from models.user import AuthenticatedUser
from utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """In-memory registry of authenticated users."""

    def __init__(self):
        self._users: dict[int, AuthenticatedUser] = {}
        self._lock = threading.Lock()

    def save(self, user: AuthenticatedUser) -> AuthenticatedUser:
        """Insert or replace the record for `user.telegram_id`."""
        with self._lock:
            self._users[user.telegram_id] = user
        logger.info(f"Stored API token for user {user.telegram_id}")
        return user

    def get_by_telegram_id(self, telegram_id: int) -> Optional[AuthenticatedUser]:
        """
        Fetch a user by their Telegram ID.

        Returns:
            AuthenticatedUser or None.
        """
        with self._lock:
            return self._users.get(telegram_id)

    def remove(self, telegram_id: int) -> bool:
        with self._lock:
            return self._users.pop(telegram_id, None) is not None
