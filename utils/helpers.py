"""
Helper utility functions for normalizing spreadsheet cells
"""
from datetime import datetime, date
from typing import List, Optional, Union
import math
import re

from dateutil import parser as date_parser

from config import settings

# Leading numeric prefix, e.g. "1234.50" from "1234.50 USD"
_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def format_currency(amount: float) -> str:
    """Format a number as currency"""
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def parse_currency(amount_str: Union[str, float, int, None]) -> float:
    """
    Parse currency string to float, never raising.
    Examples: "$1,234.56" -> 1234.56, "" -> 0.0, "abc" -> 0.0
    """
    if amount_str is None:
        return 0.0

    if isinstance(amount_str, (int, float)):
        value = float(amount_str)
        return value if math.isfinite(value) else 0.0

    # Remove currency symbols and thousands separators
    cleaned = str(amount_str).replace('$', '').replace(',', '').strip()
    if not cleaned:
        return 0.0

    match = _NUMBER_PREFIX.match(cleaned)
    if not match:
        return 0.0

    value = float(match.group(0))
    return value if math.isfinite(value) else 0.0


def normalize_name_for_key(name: Optional[str]) -> str:
    """Lowercase, drop periods and commas, collapse whitespace. Matching only."""
    if not name:
        return ""
    name = re.sub(r"[.,]", "", str(name))
    return re.sub(r"\s+", " ", name).strip().lower()


def format_name_for_display(name: Optional[str]) -> str:
    """
    Reorder "Last, First Middle" exports into "First Middle Last".
    Names without a comma are only trimmed.
    """
    if not name:
        return ""

    name = str(name)
    if "," in name:
        parts = [part.strip() for part in name.split(",")]
        last_name, first_part = parts[0], parts[1]
        first_names = first_part.split()
        return " ".join(first_names + [last_name]).strip()

    return re.sub(r"\s+", " ", name.strip())


def name_key(name: Optional[str]) -> str:
    """Matching key for a tenant name regardless of "Last, First" ordering"""
    return normalize_name_for_key(format_name_for_display(name))


def parse_date(date_str) -> Optional[date]:
    """
    Parse various date formats to a date object
    """
    if not date_str:
        return None

    if isinstance(date_str, datetime):
        return date_str.date()

    if isinstance(date_str, date):
        return date_str

    text = str(date_str).strip()
    formats = [
        "%Y-%m-%d",  # 2026-02-01
        "%m/%d/%Y",  # 02/01/2026
        "%m/%d/%y",  # 02/01/26
        "%Y/%m/%d",  # 2026/02/01
        "%b %d, %Y",  # Feb 01, 2026
        "%B %d, %Y",  # February 01, 2026
    ]

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def tenure_months(move_in_date, today: Optional[date] = None) -> int:
    """
    Approximate months since move-in: whole days divided by DAYS_PER_MONTH,
    rounded half up. Not calendar-month accurate. Returns 0 when the date
    cannot be parsed.
    """
    move_in = parse_date(move_in_date)
    if move_in is None:
        return 0

    today = today or date.today()
    days = abs((today - move_in).days)
    return int(math.floor(days / settings.DAYS_PER_MONTH + 0.5))


def late_payment_rate(late_count: float, tenure: int) -> float:
    """Late payments per month of tenure; 0 for tenants with no tenure"""
    if tenure <= 0:
        return 0.0
    return (late_count or 0) / tenure


def parse_phone_numbers(phone: Optional[str]) -> List[str]:
    """
    Split a delimited phone cell into XXX-XXX-XXXX numbers.
    All digits are concatenated and cut into groups of ten.
    """
    if not phone:
        return []

    digits = "".join(re.findall(r"\d+", str(phone)))
    numbers = []
    for i in range(0, len(digits), 10):
        chunk = digits[i:i + 10]
        if len(chunk) == 10:
            numbers.append(f"{chunk[:3]}-{chunk[3:6]}-{chunk[6:]}")
    return numbers


def parse_emails(email_str: Optional[str]) -> List[str]:
    """Extract every email address from a delimited cell"""
    if not email_str:
        return []
    return _EMAIL_PATTERN.findall(str(email_str))


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID"""
    from uuid import uuid4
    unique = str(uuid4())[:8]
    if prefix:
        return f"{prefix}_{unique}"
    return unique
