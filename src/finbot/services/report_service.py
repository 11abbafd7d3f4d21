"""
Analytics and reporting service: period selection, aggregation and the text report.
"""
import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from finbot.core.exceptions import ReportTooLongError, ValidationError
from finbot.locales.translations import get_text
from finbot.services.finance_service import FinanceService, TransactionRecord
from finbot.utils.formatting import escape, format_money
from finbot.utils.timeutil import local_now, to_local, to_utc_naive

PERIODS = ('day', 'week', 'month', 'year')
MAX_MESSAGE_LENGTH = 4096
TREND_COLUMNS = ['income', 'expense', 'balance']


def _midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(), tzinfo=tz)


def _anchor(year: int, month: int, start_day: int, tz: tzinfo) -> datetime:
    """Midnight of start_day in the given month; short months use their last day"""
    day = min(start_day, calendar.monthrange(year, month)[1])
    return datetime(year, month, day, tzinfo=tz)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def period_bounds(period: str, now: datetime, period_start_day: int = 1) -> Tuple[datetime, datetime]:
    """Half-open [start, end) interval for a logical period, in now's timezone"""
    tz = now.tzinfo
    today = now.date()

    if period == 'day':
        return _midnight(today, tz), _midnight(today + timedelta(days=1), tz)

    if period == 'week':
        return _midnight(today - timedelta(days=6), tz), _midnight(today + timedelta(days=1), tz)

    if period == 'month':
        current = _anchor(now.year, now.month, period_start_day, tz)
        if today >= current.date():
            year, month = _shift_month(now.year, now.month, 1)
            return current, _anchor(year, month, period_start_day, tz)
        year, month = _shift_month(now.year, now.month, -1)
        return _anchor(year, month, period_start_day, tz), current

    if period == 'year':
        current = _anchor(now.year, 1, period_start_day, tz)
        if today >= current.date():
            return current, _anchor(now.year + 1, 1, period_start_day, tz)
        return _anchor(now.year - 1, 1, period_start_day, tz), current

    raise ValidationError(f"Unknown period: {period}")


@dataclass
class Aggregation:
    """Totals and breakdowns of a set of transactions"""
    total_income: Decimal = Decimal('0')
    total_expense: Decimal = Decimal('0')
    income_by_category: Dict[str, Decimal] = field(default_factory=dict)
    expense_by_category: Dict[str, Decimal] = field(default_factory=dict)
    trend: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=TREND_COLUMNS))

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def is_empty(self) -> bool:
        return not self.income_by_category and not self.expense_by_category

    def income_breakdown(self) -> List[Tuple[str, Decimal]]:
        return sorted(self.income_by_category.items(), key=lambda item: item[1], reverse=True)

    def expense_breakdown(self) -> List[Tuple[str, Decimal]]:
        return sorted(self.expense_by_category.items(), key=lambda item: item[1], reverse=True)

    def top_income(self) -> Optional[Tuple[str, Decimal]]:
        breakdown = self.income_breakdown()
        return breakdown[0] if breakdown else None

    def top_expense(self) -> Optional[Tuple[str, Decimal]]:
        breakdown = self.expense_breakdown()
        return breakdown[0] if breakdown else None


def aggregate(transactions: Iterable[TransactionRecord], tz: tzinfo) -> Aggregation:
    """Walk transactions once; trend holds per-day cumulative income, expense and balance"""
    result = Aggregation()
    daily_rows = []

    for transaction in transactions:
        amount = Decimal(transaction.amount)
        day = to_local(transaction.date, tz).date()
        if amount > 0:
            result.total_income += amount
            result.income_by_category[transaction.category_name] = (
                result.income_by_category.get(transaction.category_name, Decimal('0')) + amount
            )
            daily_rows.append((day, float(amount), 0.0))
        else:
            result.total_expense += -amount
            result.expense_by_category[transaction.category_name] = (
                result.expense_by_category.get(transaction.category_name, Decimal('0')) - amount
            )
            daily_rows.append((day, 0.0, float(-amount)))

    if daily_rows:
        frame = pd.DataFrame(daily_rows, columns=['date', 'income', 'expense'])
        trend = frame.groupby('date').sum().sort_index().cumsum()
        trend['balance'] = trend['income'] - trend['expense']
        result.trend = trend[TREND_COLUMNS]

    return result


def _percent(part: Decimal, total: Decimal) -> float:
    return float(part / total * 100) if total else 0.0


def render_text(aggregation: Aggregation, period: str, currency: str = 'RUB') -> str:
    """HTML report message; raises ReportTooLongError above the message limit"""
    parts = [get_text('report_title', period=get_text(f'period_{period}'))]

    parts.append(get_text('report_income', total=format_money(aggregation.total_income, currency)))
    if not aggregation.income_by_category:
        parts.append(get_text('report_no_income'))
    for name, amount in aggregation.income_breakdown():
        parts.append(get_text(
            'report_line',
            category=escape(name),
            amount=format_money(amount, currency),
            percent=_percent(amount, aggregation.total_income),
        ))

    parts.append(get_text('report_expense', total=format_money(aggregation.total_expense, currency)))
    if not aggregation.expense_by_category:
        parts.append(get_text('report_no_expense'))
    for name, amount in aggregation.expense_breakdown():
        parts.append(get_text(
            'report_line',
            category=escape(name),
            amount=format_money(amount, currency),
            percent=_percent(amount, aggregation.total_expense),
        ))

    parts.append(get_text('report_balance', balance=format_money(aggregation.balance, currency)))

    text = ''.join(parts)
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ReportTooLongError(f"Report has {len(text)} characters")
    return text


@dataclass
class Report:
    period: str
    start: datetime
    end: datetime
    transactions: List[TransactionRecord]
    aggregation: Aggregation


class ReportService:
    """Service for generating financial reports"""

    def __init__(self, service: FinanceService, tz: tzinfo):
        self.service = service
        self.tz = tz

    async def build(self, period: str, now: Optional[datetime] = None) -> Report:
        now = now.astimezone(self.tz) if now else local_now(self.tz)
        start, end = period_bounds(period, now, self.service.user.period_start_day)
        transactions = await self.service.get_transactions_for_period(
            to_utc_naive(start), to_utc_naive(end)
        )
        return Report(
            period=period,
            start=start,
            end=end,
            transactions=transactions,
            aggregation=aggregate(transactions, self.tz),
        )
