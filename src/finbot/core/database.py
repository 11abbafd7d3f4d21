# src/finbot/core/database.py
"""
Store - persistent storage for users, categories, transactions, savings,
activity, telemetry, feedback and versions.
"""

import logging
from datetime import datetime
from decimal import Decimal
from functools import wraps
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, event, exists, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from finbot.core.exceptions import (
    AlreadyExistsError, CategoryInUseError, NotFoundError, StoreError,
)
from finbot.models.base import (
    Base, ButtonClick, Category, Currency, Feedback, GlobalCategory, Saving, Transaction,
    User, UserActivity, UserCurrencySetting, Version, VersionRead,
)
from finbot.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    ("🍎 Продукты", "expense"),
    ("🚗 Транспорт", "expense"),
    ("🏠 ЖКХ", "expense"),
    ("💼 Зарплата", "income"),
    ("🎉 Развлечения", "expense"),
)


def _store_errors(func):
    """Translate driver level failures into StoreError"""
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Store operation {func.__name__} failed: {e}",
                         exc_info=True, extra={'operation': func.__name__})
            raise StoreError(f"{func.__name__} failed") from e
    return wrapper


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Database connection and operations manager"""

    def __init__(self, database_url: str, echo: bool = False, **engine_kwargs):
        self.database_url = database_url
        self.engine = create_async_engine(database_url, echo=echo, **engine_kwargs)

        if self.engine.dialect.name == 'sqlite':
            event.listen(self.engine.sync_engine, 'connect', _enable_sqlite_foreign_keys)

        # Create session factory
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        logger.info(f"Store initialized: {self.engine.url.render_as_string(hide_password=True)}")

    async def create_tables(self):
        """Create all tables and seed the global category catalog on a fresh schema"""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            await self._seed_global_catalog()
            logger.info("Database tables created successfully")
        except SQLAlchemyError as e:
            logger.error(f"Error creating database tables: {e}")
            raise StoreError("Cannot open database") from e

    async def close(self):
        """Close database connection"""
        await self.engine.dispose()
        logger.info("Database connection closed")

    async def _seed_global_catalog(self):
        async with self.session_factory() as session:
            count = await session.scalar(select(func.count(GlobalCategory.id)))
            if count:
                return
            session.add_all(
                GlobalCategory(name=name, type=category_type)
                for name, category_type in DEFAULT_CATEGORIES
            )
            await session.commit()
            logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} global categories")

    # ============= USERS =============

    @_store_errors
    async def get_or_create_user(
        self,
        telegram_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Tuple[User, bool]:
        """Get existing user or create new one; the flag tells whether it was created"""
        async with self.session_factory() as session:
            user = await session.scalar(select(User).where(User.telegram_id == telegram_id))
            if user:
                return user, False

            user = User(
                telegram_id=telegram_id,
                username=username,
                first_name=first_name,
                last_name=last_name,
            )
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                # another update for the same account created it first
                await session.rollback()
                user = await session.scalar(select(User).where(User.telegram_id == telegram_id))
                return user, False

            logger.info(f"Created new user: {telegram_id}", extra={'user_id': telegram_id})
            return user, True

    @_store_errors
    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        async with self.session_factory() as session:
            return await session.get(User, user_id)

    @_store_errors
    async def users_for_reminder(self) -> List[User]:
        async with self.session_factory() as session:
            result = await session.scalars(
                select(User).where(User.notifications_enabled.is_(True)).order_by(User.id)
            )
            return list(result)

    @_store_errors
    async def set_notifications(self, user_id: int, enabled: bool):
        async with self.session_factory() as session:
            await session.execute(
                update(User).where(User.id == user_id).values(notifications_enabled=enabled)
            )
            await session.commit()

    @_store_errors
    async def set_period_start_day(self, user_id: int, day: int):
        async with self.session_factory() as session:
            await session.execute(
                update(User).where(User.id == user_id).values(period_start_day=day)
            )
            await session.commit()

    @_store_errors
    async def get_currency(self, user_id: int) -> str:
        async with self.session_factory() as session:
            currency = await session.scalar(
                select(UserCurrencySetting.currency).where(UserCurrencySetting.user_id == user_id)
            )
            return currency or Currency.RUB.value

    @_store_errors
    async def set_currency(self, user_id: int, currency: str):
        async with self.session_factory() as session:
            stmt = sqlite_insert(UserCurrencySetting).values(user_id=user_id, currency=currency)
            stmt = stmt.on_conflict_do_update(
                index_elements=[UserCurrencySetting.user_id],
                set_={'currency': currency}
            )
            await session.execute(stmt)
            await session.commit()

    # ============= TELEMETRY =============

    @_store_errors
    async def upsert_activity(self, user_id: int, now: Optional[datetime] = None):
        now = now or utcnow()
        async with self.session_factory() as session:
            stmt = sqlite_insert(UserActivity).values(user_id=user_id, last_active=now, join_date=now)
            stmt = stmt.on_conflict_do_update(
                index_elements=[UserActivity.user_id],
                set_={'last_active': now}
            )
            await session.execute(stmt)
            await session.commit()

    @_store_errors
    async def record_button_click(self, user_id: Optional[int], token: str,
                                  now: Optional[datetime] = None):
        async with self.session_factory() as session:
            session.add(ButtonClick(user_id=user_id, button_name=token, click_time=now or utcnow()))
            await session.commit()

    # ============= CATEGORIES =============

    @_store_errors
    async def list_categories(self, user_id: int, category_type: Optional[str] = None) -> List[Category]:
        async with self.session_factory() as session:
            query = select(Category).where(Category.user_id == user_id)
            if category_type:
                query = query.where(Category.type == category_type)
            result = await session.scalars(query.order_by(Category.id))
            return list(result)

    @_store_errors
    async def get_category(self, user_id: int, category_id: int) -> Optional[Category]:
        """Category by id, None when missing or owned by someone else"""
        async with self.session_factory() as session:
            return await session.scalar(
                select(Category).where(Category.id == category_id, Category.user_id == user_id)
            )

    @_store_errors
    async def create_category(self, user_id: int, name: str, category_type: str) -> Category:
        async with self.session_factory() as session:
            category = Category(user_id=user_id, name=name, type=category_type)
            session.add(category)
            try:
                await session.commit()
            except IntegrityError as e:
                raise AlreadyExistsError(f"Category '{name}' already exists") from e
            return category

    @_store_errors
    async def rename_category(self, user_id: int, category_id: int, name: str):
        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    update(Category)
                    .where(Category.id == category_id, Category.user_id == user_id)
                    .values(name=name)
                )
                await session.commit()
            except IntegrityError as e:
                raise AlreadyExistsError(f"Category '{name}' already exists") from e
            if result.rowcount == 0:
                raise NotFoundError(f"Category {category_id} not found")

    @_store_errors
    async def delete_category(self, user_id: int, category_id: int):
        async with self.session_factory() as session:
            category = await session.scalar(
                select(Category).where(Category.id == category_id, Category.user_id == user_id)
            )
            if not category:
                raise NotFoundError(f"Category {category_id} not found")

            in_use = await session.scalar(
                select(exists().where(Transaction.category_id == category_id))
            )
            if in_use:
                raise CategoryInUseError(f"Category {category_id} has transactions")

            await session.delete(category)
            await session.commit()

    @_store_errors
    async def seed_categories(self, user_id: int,
                              categories: Sequence[Tuple[str, str]] = DEFAULT_CATEGORIES) -> int:
        """Add the missing categories by name; returns how many were added"""
        async with self.session_factory() as session:
            existing = set(await session.scalars(
                select(Category.name).where(Category.user_id == user_id)
            ))
            missing = [(name, kind) for name, kind in categories if name not in existing]
            session.add_all(
                Category(user_id=user_id, name=name, type=kind) for name, kind in missing
            )
            await session.commit()
            return len(missing)

    # ============= TRANSACTIONS =============

    @_store_errors
    async def add_transaction(
        self,
        user_id: int,
        amount: Decimal,
        category_id: int,
        payment_method: str,
        comment: Optional[str],
        date: Optional[datetime] = None,
    ) -> int:
        async with self.session_factory() as session:
            transaction = Transaction(
                user_id=user_id,
                amount=amount,
                category_id=category_id,
                payment_method=payment_method,
                comment=comment,
                date=date or utcnow(),
            )
            session.add(transaction)
            await session.commit()
            return transaction.id

    @_store_errors
    async def get_transaction(self, user_id: int,
                              transaction_id: int) -> Optional[Tuple[Transaction, Optional[str]]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Transaction, Category.name)
                .outerjoin(Category, Transaction.category_id == Category.id)
                .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
            )
            row = result.first()
            return (row[0], row[1]) if row else None

    @_store_errors
    async def list_transactions(self, user_id: int, start: datetime,
                                end: datetime) -> List[Tuple[Transaction, Optional[str]]]:
        """Transactions in [start, end), most recent first, with category names"""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Transaction, Category.name)
                .outerjoin(Category, Transaction.category_id == Category.id)
                .where(
                    Transaction.user_id == user_id,
                    Transaction.date >= start,
                    Transaction.date < end,
                )
                .order_by(Transaction.date.desc(), Transaction.id.desc())
            )
            return [(row[0], row[1]) for row in result]

    @_store_errors
    async def has_transactions_between(self, user_id: int, start: datetime, end: datetime) -> bool:
        async with self.session_factory() as session:
            return bool(await session.scalar(
                select(exists().where(
                    Transaction.user_id == user_id,
                    Transaction.date >= start,
                    Transaction.date < end,
                ))
            ))

    @_store_errors
    async def update_transaction(self, user_id: int, transaction_id: int, **values):
        async with self.session_factory() as session:
            result = await session.execute(
                update(Transaction)
                .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
                .values(**values)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Transaction {transaction_id} not found")
            await session.commit()

    @_store_errors
    async def delete_transaction(self, user_id: int, transaction_id: int):
        async with self.session_factory() as session:
            result = await session.execute(
                delete(Transaction)
                .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Transaction {transaction_id} not found")
            await session.commit()

    # ============= SAVINGS =============

    @_store_errors
    async def list_savings(self, user_id: int) -> List[Saving]:
        async with self.session_factory() as session:
            result = await session.scalars(
                select(Saving).where(Saving.user_id == user_id).order_by(Saving.id)
            )
            return list(result)

    @_store_errors
    async def get_saving(self, user_id: int, saving_id: int) -> Optional[Saving]:
        async with self.session_factory() as session:
            return await session.scalar(
                select(Saving).where(Saving.id == saving_id, Saving.user_id == user_id)
            )

    @_store_errors
    async def create_saving(self, user_id: int, name: str, goal: Optional[Decimal],
                            comment: Optional[str] = None) -> Saving:
        async with self.session_factory() as session:
            saving = Saving(user_id=user_id, name=name, amount=Decimal('0'), goal=goal, comment=comment)
            session.add(saving)
            try:
                await session.commit()
            except IntegrityError as e:
                raise AlreadyExistsError(f"Saving '{name}' already exists") from e
            return saving

    @_store_errors
    async def update_saving(self, user_id: int, saving_id: int, **values):
        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    update(Saving)
                    .where(Saving.id == saving_id, Saving.user_id == user_id)
                    .values(**values)
                )
                await session.commit()
            except IntegrityError as e:
                if 'name' not in values:
                    raise
                raise AlreadyExistsError(f"Saving '{values['name']}' already exists") from e
            if result.rowcount == 0:
                raise NotFoundError(f"Saving {saving_id} not found")

    @_store_errors
    async def delete_saving(self, user_id: int, saving_id: int):
        async with self.session_factory() as session:
            result = await session.execute(
                delete(Saving).where(Saving.id == saving_id, Saving.user_id == user_id)
            )
            if result.rowcount == 0:
                raise NotFoundError(f"Saving {saving_id} not found")
            await session.commit()

    # ============= CLEAR DATA =============

    @_store_errors
    async def clear_user_data(self, user_id: int):
        """Delete transactions, savings and categories; reset notifications. All or nothing."""
        async with self.session_factory() as session:
            async with session.begin():
                for model in (Transaction, Saving, Category):
                    await self._purge(session, model, user_id)
                await session.execute(
                    update(User).where(User.id == user_id).values(notifications_enabled=True)
                )
        logger.info("User data cleared", extra={'user_id': user_id, 'operation': 'clear_user_data'})

    async def _purge(self, session: AsyncSession, model, user_id: int):
        await session.execute(delete(model).where(model.user_id == user_id))

    # ============= FEEDBACK =============

    @_store_errors
    async def add_feedback(self, user_id: int, likes: str, missing: str, annoying: str,
                           recommend: str) -> int:
        async with self.session_factory() as session:
            feedback = Feedback(
                user_id=user_id,
                what_likes=likes,
                what_missing=missing,
                what_annoying=annoying,
                recommend=recommend,
            )
            session.add(feedback)
            await session.commit()
            return feedback.id

    @_store_errors
    async def list_feedback(self) -> List[Tuple[Feedback, int, Optional[str]]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Feedback, User.telegram_id, User.username)
                .join(User, Feedback.user_id == User.id)
                .order_by(Feedback.created_at.desc(), Feedback.id.desc())
            )
            return [(row[0], row[1], row[2]) for row in result]

    @_store_errors
    async def feedback_counts(self) -> Dict[str, int]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Feedback.recommend, func.count(Feedback.id)).group_by(Feedback.recommend)
            )
            counts = {row[0]: row[1] for row in result}
            return {
                'total': sum(counts.values()),
                'yes': counts.get('yes', 0),
                'no': counts.get('no', 0),
            }

    # ============= STATS =============

    @_store_errors
    async def count_users(self) -> int:
        async with self.session_factory() as session:
            return await session.scalar(select(func.count(User.id))) or 0

    @_store_errors
    async def count_active_users(self, since: datetime) -> int:
        async with self.session_factory() as session:
            return await session.scalar(
                select(func.count(UserActivity.user_id)).where(UserActivity.last_active >= since)
            ) or 0

    @_store_errors
    async def button_click_counts(self, since: datetime) -> Dict[str, int]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ButtonClick.button_name, func.count(ButtonClick.id))
                .where(ButtonClick.click_time >= since)
                .group_by(ButtonClick.button_name)
            )
            return {row[0]: row[1] for row in result}

    @_store_errors
    async def list_users_with_activity(self) -> List[Tuple[User, Optional[datetime]]]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(User, UserActivity.last_active)
                .outerjoin(UserActivity, UserActivity.user_id == User.id)
                .order_by(User.id)
            )
            return [(row[0], row[1]) for row in result]

    # ============= VERSIONS =============

    @_store_errors
    async def get_version(self, version: str) -> Optional[Version]:
        async with self.session_factory() as session:
            return await session.scalar(select(Version).where(Version.version == version))

    @_store_errors
    async def add_version(self, version: str, description: str,
                          release_date: Optional[datetime] = None) -> Version:
        async with self.session_factory() as session:
            row = Version(version=version, description=description,
                          release_date=release_date or utcnow())
            session.add(row)
            await session.commit()
            return row

    @_store_errors
    async def latest_version(self) -> Optional[Version]:
        async with self.session_factory() as session:
            return await session.scalar(
                select(Version).order_by(Version.release_date.desc(), Version.id.desc()).limit(1)
            )

    @_store_errors
    async def users_without_version(self, version_id: int) -> List[User]:
        async with self.session_factory() as session:
            delivered = exists().where(
                VersionRead.user_id == User.id,
                VersionRead.version_id == version_id,
            )
            result = await session.scalars(select(User).where(~delivered).order_by(User.id))
            return list(result)

    @_store_errors
    async def mark_version_read(self, user_id: int, version_id: int) -> bool:
        """Insert the delivery join; False when it already exists"""
        async with self.session_factory() as session:
            session.add(VersionRead(user_id=user_id, version_id=version_id, read_at=utcnow()))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            return True
