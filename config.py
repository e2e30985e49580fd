"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
Only main.py reads these; everything else receives its settings
through the BotContext.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ── UNG billing API ───────────────────────────────────────
UNG_API_URL: str = os.getenv("UNG_API_URL", "http://localhost:8080").rstrip("/")
API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "30"))
WEB_APP_URL: str = os.getenv("WEB_APP_URL", "https://ung.app").rstrip("/")

# ── Security ──────────────────────────────────────────────
_raw_ids = os.getenv("ALLOWED_USER_IDS", "")
ALLOWED_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# ── Rate Limiting ─────────────────────────────────────────
RATE_LIMIT_MESSAGES: int = int(os.getenv("RATE_LIMIT_MESSAGES", "30"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ── Sessions ──────────────────────────────────────────────
# 0 keeps wizards alive until completion, /cancel or a restart.
SESSION_IDLE_TIMEOUT_MINUTES: int = int(os.getenv("SESSION_IDLE_TIMEOUT_MINUTES", "0"))
SESSION_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "300"))

# ── Currency ──────────────────────────────────────────────
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD")
