# src/finbot/models/base.py
import enum

from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer,
    Numeric, PrimaryKeyConstraint, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from finbot.utils.timeutil import utcnow

Base = declarative_base()


class CategoryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    SAVING = "saving"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"


class Currency(str, enum.Enum):
    RUB = "RUB"
    USD = "USD"
    EUR = "EUR"


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    username = Column(String(255))
    first_name = Column(String(255))
    last_name = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    notifications_enabled = Column(Boolean, nullable=False, default=True)
    period_start_day = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint('period_start_day BETWEEN 1 AND 31', name='ck_users_period_start_day'),
    )

    # Relationships
    categories = relationship("Category", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")
    savings = relationship("Saving", back_populates="user", cascade="all, delete-orphan")


class GlobalCategory(Base):
    """Seed catalog of category names; user paths never read it"""
    __tablename__ = 'global_categories'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)

    __table_args__ = (
        UniqueConstraint('name', 'type', name='uq_global_categories_name_type'),
    )


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)  # 'income', 'expense' or 'saving'
    parent_id = Column(Integer, ForeignKey('categories.id'), nullable=True)

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uq_categories_user_name'),
        CheckConstraint("type IN ('income', 'expense', 'saving')", name='ck_categories_type'),
        Index('idx_categories_user', 'user_id'),
    )

    # Relationships
    user = relationship("User", back_populates="categories")
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # > 0 income, < 0 expense
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)
    payment_method = Column(String(10), nullable=False, default=PaymentMethod.CARD.value)
    comment = Column(Text)

    __table_args__ = (
        CheckConstraint("payment_method IN ('cash', 'card')", name='ck_transactions_payment_method'),
        Index('idx_transactions_date', 'date'),
        Index('idx_transactions_category', 'category_id'),
        Index('idx_transactions_user', 'user_id'),
    )

    # Relationships
    user = relationship("User", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")

    @property
    def is_income(self) -> bool:
        return self.amount > 0


class Saving(Base):
    __tablename__ = 'savings'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    goal = Column(Numeric(12, 2), nullable=True)
    comment = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uq_savings_user_name'),
        CheckConstraint('amount >= 0', name='ck_savings_amount'),
        CheckConstraint('goal IS NULL OR goal > 0', name='ck_savings_goal'),
        Index('idx_savings_user', 'user_id'),
    )

    # Relationships
    user = relationship("User", back_populates="savings")

    @property
    def progress(self):
        """Percent of the goal reached, None without a goal"""
        if not self.goal:
            return None
        return float(self.amount) / float(self.goal) * 100


class UserCurrencySetting(Base):
    __tablename__ = 'user_currency_settings'

    user_id = Column(Integer, ForeignKey('users.id'), primary_key=True)
    currency = Column(String(3), nullable=False, default=Currency.RUB.value)


class UserActivity(Base):
    __tablename__ = 'user_activity'

    user_id = Column(Integer, ForeignKey('users.id'), primary_key=True)
    last_active = Column(DateTime, nullable=False, default=utcnow)
    join_date = Column(DateTime, nullable=False, default=utcnow)


class ButtonClick(Base):
    """Append-only telemetry; user_id is a weak reference"""
    __tablename__ = 'button_clicks'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True)
    button_name = Column(String(64), nullable=False)
    click_time = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_button_clicks_time', 'click_time'),
    )


class Feedback(Base):
    __tablename__ = 'user_feedback'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    what_likes = Column(Text)
    what_missing = Column(Text)
    what_annoying = Column(Text)
    recommend = Column(String(3), nullable=False)  # 'yes' or 'no'
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("recommend IN ('yes', 'no')", name='ck_user_feedback_recommend'),
    )


class Version(Base):
    __tablename__ = 'versions'

    id = Column(Integer, primary_key=True)
    version = Column(String(20), unique=True, nullable=False)
    release_date = Column(DateTime, nullable=False, default=utcnow)
    description = Column(Text, nullable=False)


class VersionRead(Base):
    __tablename__ = 'user_version_read'

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    version_id = Column(Integer, ForeignKey('versions.id'), nullable=False)
    read_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        PrimaryKeyConstraint('user_id', 'version_id'),
    )
