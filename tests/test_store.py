from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from finbot.core.database import DEFAULT_CATEGORIES, Store
from finbot.core.exceptions import (
    AlreadyExistsError, CategoryInUseError, NotFoundError, StoreError,
)
from finbot.models.base import GlobalCategory, Saving
from finbot.utils.timeutil import utcnow


@pytest.mark.asyncio
async def test_get_or_create_user_is_idempotent(store):
    user, created = await store.get_or_create_user(1, "alice")
    again, created_again = await store.get_or_create_user(1, "alice")

    assert created is True
    assert created_again is False
    assert again.id == user.id
    assert user.notifications_enabled is True
    assert user.period_start_day == 1


@pytest.mark.asyncio
async def test_seed_categories_never_duplicates(store, user):
    assert await store.seed_categories(user.id) == 0

    categories = await store.list_categories(user.id)
    assert sorted(c.name for c in categories) == sorted(name for name, _ in DEFAULT_CATEGORIES)
    assert [c.name for c in await store.list_categories(user.id, 'income')] == ["💼 Зарплата"]


@pytest.mark.asyncio
async def test_global_catalog_seeded_once(store):
    await store.create_tables()
    async with store.session_factory() as session:
        count = await session.scalar(select(func.count(GlobalCategory.id)))
    assert count == len(DEFAULT_CATEGORIES)


@pytest.mark.asyncio
async def test_category_names_unique_per_user(store, user):
    other, _ = await store.get_or_create_user(2)
    await store.create_category(user.id, "Кафе", "expense")

    with pytest.raises(AlreadyExistsError):
        await store.create_category(user.id, "Кафе", "income")
    # another user may reuse the name
    await store.create_category(other.id, "Кафе", "expense")


@pytest.mark.asyncio
async def test_rename_category_conflict_and_missing(store, user):
    category = await store.create_category(user.id, "Кафе", "expense")

    with pytest.raises(AlreadyExistsError):
        await store.rename_category(user.id, category.id, "🍎 Продукты")
    with pytest.raises(NotFoundError):
        await store.rename_category(user.id, 9999, "Новое")

    await store.rename_category(user.id, category.id, "Рестораны")
    assert (await store.get_category(user.id, category.id)).name == "Рестораны"


@pytest.mark.asyncio
async def test_delete_category_in_use(store, user):
    category = await store.create_category(user.id, "Кафе", "expense")
    await store.add_transaction(user.id, Decimal('-100'), category.id, 'card', None)

    with pytest.raises(CategoryInUseError):
        await store.delete_category(user.id, category.id)


@pytest.mark.asyncio
async def test_foreign_keys_enforced(store, user):
    with pytest.raises(StoreError):
        await store.add_transaction(user.id, Decimal('-1'), 424242, 'card', None)


@pytest.mark.asyncio
async def test_foreign_user_rows_invisible(store, user):
    other, _ = await store.get_or_create_user(2)
    category = (await store.list_categories(user.id, 'expense'))[0]
    transaction_id = await store.add_transaction(user.id, Decimal('-10'), category.id, 'cash', None)

    assert await store.get_category(other.id, category.id) is None
    assert await store.get_transaction(other.id, transaction_id) is None
    with pytest.raises(NotFoundError):
        await store.delete_transaction(other.id, transaction_id)


@pytest.mark.asyncio
async def test_list_transactions_half_open_interval(store, user):
    category = (await store.list_categories(user.id, 'expense'))[0]
    now = utcnow().replace(microsecond=0)
    await store.add_transaction(user.id, Decimal('-1'), category.id, 'card', None, date=now)
    await store.add_transaction(user.id, Decimal('-2'), category.id, 'card', None,
                                date=now + timedelta(hours=1))

    rows = await store.list_transactions(user.id, now, now + timedelta(hours=1))

    assert [Decimal(t.amount) for t, _ in rows] == [Decimal('-1')]
    assert rows[0][1] == category.name


@pytest.mark.asyncio
async def test_saving_constraints(store, user):
    saving = await store.create_saving(user.id, "Отпуск", Decimal('1000'))

    with pytest.raises(AlreadyExistsError):
        await store.create_saving(user.id, "Отпуск", None)
    with pytest.raises(StoreError):
        await store.update_saving(user.id, saving.id, amount=Decimal('-5'))

    await store.update_saving(user.id, saving.id, amount=Decimal('250'))
    assert Decimal((await store.get_saving(user.id, saving.id)).amount) == Decimal('250')


@pytest.mark.asyncio
async def test_currency_defaults_and_upserts(store, user):
    assert await store.get_currency(user.id) == 'RUB'
    await store.set_currency(user.id, 'USD')
    await store.set_currency(user.id, 'EUR')
    assert await store.get_currency(user.id) == 'EUR'


@pytest.mark.asyncio
async def test_clear_user_data(store, user):
    category = (await store.list_categories(user.id, 'expense'))[0]
    await store.add_transaction(user.id, Decimal('-10'), category.id, 'card', None)
    await store.create_saving(user.id, "Отпуск", None)
    await store.set_notifications(user.id, False)

    await store.clear_user_data(user.id)

    assert await store.list_categories(user.id) == []
    assert await store.list_savings(user.id) == []
    refreshed = await store.get_user_by_id(user.id)
    assert refreshed.notifications_enabled is True


@pytest.mark.asyncio
async def test_clear_user_data_is_atomic(store, monkeypatch):
    """Failure while deleting savings leaves transactions and categories in place"""
    owner, _ = await store.get_or_create_user(3003)
    food = await store.create_category(owner.id, "Еда", "expense")
    salary = await store.create_category(owner.id, "Зарплата", "income")
    for amount, category in ((Decimal('-10'), food), (Decimal('-20'), food), (Decimal('500'), salary)):
        await store.add_transaction(owner.id, amount, category.id, 'card', None)
    await store.create_saving(owner.id, "Отпуск", None)

    original = Store._purge

    async def failing_purge(self, session, model, user_id):
        if model is Saving:
            raise OperationalError("DELETE FROM savings", {}, Exception("disk I/O error"))
        await original(self, session, model, user_id)

    monkeypatch.setattr(Store, "_purge", failing_purge)

    with pytest.raises(StoreError):
        await store.clear_user_data(owner.id)

    monkeypatch.setattr(Store, "_purge", original)
    rows = await store.list_transactions(owner.id, utcnow() - timedelta(days=1), utcnow() + timedelta(days=1))
    assert len(rows) == 3
    assert len(await store.list_categories(owner.id)) == 2
    assert len(await store.list_savings(owner.id)) == 1


@pytest.mark.asyncio
async def test_telemetry_and_counts(store, user):
    now = utcnow()
    await store.upsert_activity(user.id, now - timedelta(days=3))
    await store.upsert_activity(user.id, now)
    await store.record_button_click(user.id, "show_stats", now)
    await store.record_button_click(user.id, "show_stats", now)
    await store.record_button_click(None, "cat_5", now - timedelta(days=10))

    assert await store.count_users() == 1
    assert await store.count_active_users(now - timedelta(hours=1)) == 1
    assert await store.button_click_counts(now - timedelta(days=7)) == {"show_stats": 2}


@pytest.mark.asyncio
async def test_version_read_marked_once(store, user):
    version = await store.add_version("1.0.0", "first")

    assert [u.id for u in await store.users_without_version(version.id)] == [user.id]
    assert await store.mark_version_read(user.id, version.id) is True
    assert await store.mark_version_read(user.id, version.id) is False
    assert await store.users_without_version(version.id) == []
    assert (await store.latest_version()).version == "1.0.0"


@pytest.mark.asyncio
async def test_feedback_counts(store, user):
    await store.add_feedback(user.id, "всё", "графики", "ничего", "yes")
    await store.add_feedback(user.id, "", "", "", "no")
    await store.add_feedback(user.id, "", "", "", "yes")

    assert await store.feedback_counts() == {'total': 3, 'yes': 2, 'no': 1}
    rows = await store.list_feedback()
    assert rows[0][1] == user.telegram_id
