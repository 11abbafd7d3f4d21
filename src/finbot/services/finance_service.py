"""
Per-user finance service: every read and write of user-owned data goes through here.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from finbot.core.database import DEFAULT_CATEGORIES, Store
from finbot.core.exceptions import (
    InsufficientFundsError, NotFoundError, TypeMismatchError, ValidationError,
)
from finbot.core.logging import financial_transaction
from finbot.models.base import Category, CategoryType, Currency, PaymentMethod, Saving, User
from finbot.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "Неизвестно"


@dataclass
class TransactionRecord:
    """Transaction decorated with its category name"""
    id: int
    amount: Decimal
    category_id: int
    category_name: str
    date: datetime
    payment_method: str
    comment: Optional[str]

    @property
    def is_income(self) -> bool:
        return self.amount > 0


def _record(transaction, category_name) -> TransactionRecord:
    return TransactionRecord(
        id=transaction.id,
        amount=Decimal(transaction.amount),
        category_id=transaction.category_id,
        category_name=category_name or UNKNOWN_CATEGORY,
        date=transaction.date,
        payment_method=transaction.payment_method,
        comment=transaction.comment,
    )


def _clean_name(name: Optional[str]) -> str:
    name = (name or '').strip()
    if not name:
        raise ValidationError("Name is empty")
    return name


class FinanceService:
    """Service bound to a single user"""

    def __init__(self, store: Store, user: User):
        self.store = store
        self.user = user
        self.user_id = user.id

    # ============= CATEGORIES =============

    async def ensure_default_categories(self) -> int:
        added = await self.store.seed_categories(self.user_id, DEFAULT_CATEGORIES)
        if added:
            logger.info(f"Seeded {added} default categories", extra={'user_id': self.user_id})
        return added

    async def get_categories(self, category_type: Optional[str] = None) -> List[Category]:
        return await self.store.list_categories(self.user_id, category_type)

    async def get_category(self, category_id: int) -> Category:
        category = await self.store.get_category(self.user_id, category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    async def get_category_for_flow(self, category_id: int, expected_type: str) -> Category:
        """Category that may be used in an income/expense flow of the given type"""
        category = await self.get_category(category_id)
        if category.type != expected_type:
            raise TypeMismatchError(
                f"Category {category_id} is {category.type}, flow expects {expected_type}"
            )
        return category

    @financial_transaction(logger)
    async def create_category(self, name: str, category_type: str) -> Category:
        if category_type not in {t.value for t in CategoryType}:
            raise ValidationError(f"Unknown category type: {category_type}")
        return await self.store.create_category(self.user_id, _clean_name(name), category_type)

    @financial_transaction(logger)
    async def rename_category(self, category_id: int, name: str):
        await self.store.rename_category(self.user_id, category_id, _clean_name(name))

    @financial_transaction(logger)
    async def delete_category(self, category_id: int):
        await self.store.delete_category(self.user_id, category_id)

    # ============= TRANSACTIONS =============

    @financial_transaction(logger)
    async def add_transaction(
        self,
        amount: Decimal,
        category_id: int,
        payment_method: str = PaymentMethod.CARD.value,
        comment: Optional[str] = None,
    ) -> int:
        """Add an income (amount > 0) or expense (amount < 0) transaction dated now"""
        amount = Decimal(amount)
        if amount == 0:
            raise ValidationError("Amount must not be zero")
        if payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError(f"Unknown payment method: {payment_method}")

        category = await self.get_category(category_id)
        expected_type = CategoryType.INCOME.value if amount > 0 else CategoryType.EXPENSE.value
        if category.type != expected_type:
            raise TypeMismatchError(
                f"Category {category_id} is {category.type}, amount implies {expected_type}"
            )

        return await self.store.add_transaction(
            self.user_id, amount, category_id, payment_method, comment or None, utcnow()
        )

    async def get_transactions_for_period(self, start: datetime, end: datetime) -> List[TransactionRecord]:
        """Transactions in [start, end) (naive UTC), most recent first"""
        rows = await self.store.list_transactions(self.user_id, start, end)
        return [_record(transaction, name) for transaction, name in rows]

    async def get_transaction(self, transaction_id: int) -> TransactionRecord:
        row = await self.store.get_transaction(self.user_id, transaction_id)
        if not row:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return _record(*row)

    async def get_recent_transactions(self, since: datetime) -> List[TransactionRecord]:
        """Transactions dated from `since` (naive UTC) up to now"""
        return await self.get_transactions_for_period(since, utcnow() + timedelta(seconds=1))

    async def has_transactions_between(self, start: datetime, end: datetime) -> bool:
        return await self.store.has_transactions_between(self.user_id, start, end)

    @financial_transaction(logger)
    async def update_transaction_amount(self, transaction_id: int, magnitude: Decimal):
        """Change the amount keeping the income/expense sign"""
        magnitude = abs(Decimal(magnitude))
        if magnitude == 0:
            raise ValidationError("Amount must not be zero")
        transaction = await self.get_transaction(transaction_id)
        amount = magnitude if transaction.is_income else -magnitude
        await self.store.update_transaction(self.user_id, transaction_id, amount=amount)

    @financial_transaction(logger)
    async def update_transaction_comment(self, transaction_id: int, comment: Optional[str]):
        await self.store.update_transaction(self.user_id, transaction_id, comment=comment or None)

    @financial_transaction(logger)
    async def update_transaction_category(self, transaction_id: int, category_id: int):
        transaction = await self.get_transaction(transaction_id)
        expected_type = CategoryType.INCOME.value if transaction.is_income else CategoryType.EXPENSE.value
        await self.get_category_for_flow(category_id, expected_type)
        await self.store.update_transaction(self.user_id, transaction_id, category_id=category_id)

    @financial_transaction(logger)
    async def delete_transaction(self, transaction_id: int):
        await self.store.delete_transaction(self.user_id, transaction_id)

    # ============= SAVINGS =============

    async def get_savings(self) -> List[Saving]:
        return await self.store.list_savings(self.user_id)

    async def get_saving(self, saving_id: int) -> Saving:
        saving = await self.store.get_saving(self.user_id, saving_id)
        if not saving:
            raise NotFoundError(f"Saving {saving_id} not found")
        return saving

    @financial_transaction(logger)
    async def create_saving(self, name: str, goal: Optional[Decimal] = None,
                            comment: Optional[str] = None) -> Saving:
        """Create a saving; a goal of zero means no goal"""
        if goal is not None:
            goal = Decimal(goal)
            if goal < 0:
                raise ValidationError("Goal must not be negative")
            if goal == 0:
                goal = None
        return await self.store.create_saving(self.user_id, _clean_name(name), goal, comment or None)

    @financial_transaction(logger)
    async def rename_saving(self, saving_id: int, name: str):
        await self.store.update_saving(self.user_id, saving_id, name=_clean_name(name))

    @financial_transaction(logger)
    async def update_saving_amount(self, saving_id: int, new_amount: Decimal):
        await self.get_saving(saving_id)
        new_amount = Decimal(new_amount)
        if new_amount < 0:
            raise ValidationError("Saving amount must not be negative")
        await self.store.update_saving(self.user_id, saving_id, amount=new_amount)

    async def deposit(self, saving_id: int, amount: Decimal) -> Decimal:
        """Add to the saving balance; returns the new balance"""
        if Decimal(amount) <= 0:
            raise ValidationError("Deposit must be positive")
        saving = await self.get_saving(saving_id)
        balance = Decimal(saving.amount) + Decimal(amount)
        await self.update_saving_amount(saving_id, balance)
        return balance

    async def withdraw(self, saving_id: int, amount: Decimal) -> Decimal:
        """Take from the saving balance; returns the new balance"""
        if Decimal(amount) <= 0:
            raise ValidationError("Withdrawal must be positive")
        saving = await self.get_saving(saving_id)
        available = Decimal(saving.amount)
        if Decimal(amount) > available:
            raise InsufficientFundsError(available, Decimal(amount))
        balance = available - Decimal(amount)
        await self.update_saving_amount(saving_id, balance)
        return balance

    async def clear_saving(self, saving_id: int):
        await self.update_saving_amount(saving_id, Decimal('0'))

    @financial_transaction(logger)
    async def delete_saving(self, saving_id: int):
        await self.store.delete_saving(self.user_id, saving_id)

    # ============= PREFERENCES =============

    async def get_currency(self) -> str:
        return await self.store.get_currency(self.user_id)

    async def set_currency(self, currency: str):
        if currency not in {c.value for c in Currency}:
            raise ValidationError(f"Unsupported currency: {currency}")
        await self.store.set_currency(self.user_id, currency)

    def get_notifications(self) -> bool:
        return bool(self.user.notifications_enabled)

    async def set_notifications(self, enabled: bool):
        await self.store.set_notifications(self.user_id, enabled)
        self.user.notifications_enabled = enabled

    async def set_period_start_day(self, day: int):
        if not 1 <= int(day) <= 31:
            raise ValidationError(f"Period start day out of range: {day}")
        await self.store.set_period_start_day(self.user_id, int(day))
        self.user.period_start_day = int(day)

    # ============= ACCOUNT =============

    @financial_transaction(logger)
    async def clear_user_data(self):
        await self.store.clear_user_data(self.user_id)
        self.user.notifications_enabled = True

    async def submit_feedback(self, likes: str, missing: str, annoying: str, recommend: bool) -> int:
        feedback_id = await self.store.add_feedback(
            self.user_id, likes, missing, annoying, 'yes' if recommend else 'no'
        )
        logger.info("Feedback submitted", extra={'user_id': self.user_id, 'operation': 'feedback'})
        return feedback_id
