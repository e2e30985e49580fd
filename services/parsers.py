"""
services/parsers.py
-------------------
Parsers for wizard answers.

Free-text answers are strict: anything malformed raises InputError and
the wizard re-prompts. Button payload arguments that pick from a fixed
set are forgiving: unknown tokens fall back to a documented default.
"""

from decimal import Decimal, InvalidOperation

DUE_DAY_CHOICES = (7, 14, 30)
DEFAULT_DUE_DAYS = 30

# Amounts are whole cents, no larger than this.
MAX_AMOUNT = Decimal("1000000000")
CENT = Decimal("0.01")

MAX_LOGGED_HOURS = Decimal("24")

CONTRACT_TYPES = ("hourly", "fixed", "monthly", "project")
DEFAULT_CONTRACT_TYPE = "hourly"

EXPENSE_CATEGORIES = (
    "meals", "travel", "office", "equipment",
    "software", "education", "marketing", "other",
)
DEFAULT_EXPENSE_CATEGORY = "other"


class InputError(ValueError):
    """The answer does not have the shape the current step expects."""


def parse_amount(text: str) -> Decimal:
    """
    Parse a non-negative decimal such as '1500' or '1500.50'.

    Raises:
        InputError: Not a number, negative, above MAX_AMOUNT or finer
            than a cent.
    """
    amount = _decimal(text)
    if amount.is_signed() or amount > MAX_AMOUNT:
        raise InputError(f"amount out of range: {text!r}")
    if amount != amount.quantize(CENT):
        raise InputError(f"amount has more than two decimals: {text!r}")
    return amount


def _decimal(text: str) -> Decimal:
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, AttributeError):
        raise InputError(f"not a number: {text!r}")
    if not value.is_finite():
        raise InputError(f"not a finite number: {text!r}")
    return value


def parse_positive_amount(text: str) -> Decimal:
    amount = parse_amount(text)
    if amount == 0:
        raise InputError("amount must be greater than zero")
    return amount


def parse_hours(text: str) -> Decimal:
    """Hours worked in one entry: more than 0, at most 24, two decimals at most."""
    hours = _decimal(text)
    if hours <= 0 or hours > MAX_LOGGED_HOURS or hours != hours.quantize(CENT):
        raise InputError(f"not a valid number of hours: {text!r}")
    return hours


def parse_query(text: str) -> str:
    query = (text or "").strip()
    if not query:
        raise InputError("empty search query")
    return query


def parse_text(text: str) -> str:
    """Accept any non-blank text verbatim."""
    if not text or not text.strip():
        raise InputError("empty text")
    return text


def parse_name(text: str) -> str:
    return parse_text(text).strip()


def parse_email(text: str) -> str:
    email = (text or "").strip()
    if "@" not in email or "." not in email or " " in email:
        raise InputError(f"not an email address: {text!r}")
    return email


def parse_optional_text(text: str):
    """Optional answers: blank text means 'no value'."""
    if not text:
        return None
    return text.strip() or None


def parse_record_id(arg: str) -> int:
    """Strict: button payloads that carry an ID must carry a positive integer."""
    if not (arg.isascii() and arg.isdigit()) or int(arg) <= 0:
        raise InputError(f"not a record id: {arg!r}")
    return int(arg)


def parse_due_days(arg: str) -> int:
    """
    Map a due-date button token to a day count.

    '7', '14' and '30' map to themselves; anything else, including
    tokens with extra underscore parts, maps to 30.
    """
    if arg in {str(days) for days in DUE_DAY_CHOICES}:
        return int(arg)
    return DEFAULT_DUE_DAYS


def parse_contract_type(arg: str) -> str:
    token = arg.lower()
    return token if token in CONTRACT_TYPES else DEFAULT_CONTRACT_TYPE


def parse_expense_category(arg: str) -> str:
    token = arg.lower()
    return token if token in EXPENSE_CATEGORIES else DEFAULT_EXPENSE_CATEGORY
