# src/finbot/utils/formatting.py
import html
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from finbot.core.exceptions import ValidationError

PROGRESS_WIDTH = 10
MAX_AMOUNT = Decimal('9999999999.99')

_EMOJI_RE = re.compile(
    "["
    "\U0001F000-\U0001FAFF"
    "\U00002600-\U000027BF"
    "\U00002B00-\U00002BFF"
    "\U0000FE00-\U0000FE0F"
    "\U0000200D"
    "\U000020E3"
    "]+",
    flags=re.UNICODE,
)


def format_money(amount, currency: str = 'RUB') -> str:
    """Format amount with the currency symbol: 1500.00 ₽, $1500.00, €1500.00"""
    value = float(amount)
    if currency == 'USD':
        return f"${value:.2f}"
    if currency == 'EUR':
        return f"€{value:.2f}"
    return f"{value:.2f} ₽"


def parse_amount(text: Optional[str]) -> Decimal:
    """Parse a strictly positive amount; accepts comma decimals and spaces"""
    if not text:
        raise ValidationError("Amount is empty")

    cleaned = text.strip().replace(' ', '').replace('\u00a0', '').replace(',', '.')
    cleaned = cleaned.rstrip('₽$€')

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError(f"Not a number: {text!r}")

    if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        raise ValidationError(f"Amount out of range: {text!r}")

    amount = amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError(f"Amount rounds to zero: {text!r}")
    return amount


def parse_day_of_month(text: Optional[str]) -> int:
    try:
        day = int((text or '').strip())
    except ValueError:
        raise ValidationError(f"Not a day: {text!r}")
    if not 1 <= day <= 31:
        raise ValidationError(f"Day out of range: {day}")
    return day


def progress_bar(percent: float) -> str:
    """🟩/⬜ bar of fixed width, 🔴 for each step above 100%"""
    filled = min(int(percent / 100 * PROGRESS_WIDTH), PROGRESS_WIDTH)
    bar = "🟩" * filled + "⬜" * (PROGRESS_WIDTH - filled)
    if percent > 100:
        excess = min(int((percent - 100) / 100 * PROGRESS_WIDTH), PROGRESS_WIDTH)
        bar += "🔴" * max(excess, 1)
    return f"{bar} {percent:.1f}%"


def strip_emoji(text: str) -> str:
    return _EMOJI_RE.sub('', text).strip()


def escape(text) -> str:
    return html.escape(str(text)) if text is not None else ''
