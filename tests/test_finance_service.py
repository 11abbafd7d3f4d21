from datetime import timedelta
from decimal import Decimal

import pytest

from finbot.core.exceptions import (
    AlreadyExistsError, InsufficientFundsError, NotFoundError, TypeMismatchError, ValidationError,
)
from finbot.services.finance_service import FinanceService
from finbot.utils.timeutil import utcnow


async def category_named(service, name):
    return next(c for c in await service.get_categories() if c.name == name)


@pytest.mark.asyncio
async def test_add_transaction_checks_sign_against_category(service):
    salary = await category_named(service, "💼 Зарплата")
    food = await category_named(service, "🍎 Продукты")

    income_id = await service.add_transaction(Decimal('50000'), salary.id, comment="аванс")
    expense_id = await service.add_transaction(Decimal('-320.50'), food.id)

    assert (await service.get_transaction(income_id)).is_income
    assert (await service.get_transaction(expense_id)).amount == Decimal('-320.50')

    with pytest.raises(TypeMismatchError):
        await service.add_transaction(Decimal('-10'), salary.id)
    with pytest.raises(TypeMismatchError):
        await service.add_transaction(Decimal('10'), food.id)


@pytest.mark.asyncio
async def test_add_transaction_rejects_bad_input(service):
    food = await category_named(service, "🍎 Продукты")

    with pytest.raises(ValidationError):
        await service.add_transaction(Decimal('0'), food.id)
    with pytest.raises(ValidationError):
        await service.add_transaction(Decimal('-5'), food.id, payment_method='crypto')
    with pytest.raises(NotFoundError):
        await service.add_transaction(Decimal('-5'), 987654)


@pytest.mark.asyncio
async def test_other_users_category_is_not_found(store, service):
    other_user, _ = await store.get_or_create_user(2002)
    other = FinanceService(store, other_user)
    foreign = await other.create_category("Чужая", "expense")

    with pytest.raises(NotFoundError):
        await service.add_transaction(Decimal('-5'), foreign.id)


@pytest.mark.asyncio
async def test_category_for_flow(service):
    salary = await category_named(service, "💼 Зарплата")

    assert (await service.get_category_for_flow(salary.id, 'income')).id == salary.id
    with pytest.raises(TypeMismatchError):
        await service.get_category_for_flow(salary.id, 'expense')


@pytest.mark.asyncio
async def test_category_management(service):
    category = await service.create_category("  Кафе ", "expense")
    assert category.name == "Кафе"

    with pytest.raises(ValidationError):
        await service.create_category("   ", "expense")
    with pytest.raises(ValidationError):
        await service.create_category("Бонус", "gift")
    with pytest.raises(AlreadyExistsError):
        await service.rename_category(category.id, "🚗 Транспорт")

    await service.delete_category(category.id)
    with pytest.raises(NotFoundError):
        await service.get_category(category.id)


@pytest.mark.asyncio
async def test_edit_transaction_keeps_sign(service):
    food = await category_named(service, "🍎 Продукты")
    transport = await category_named(service, "🚗 Транспорт")
    salary = await category_named(service, "💼 Зарплата")
    transaction_id = await service.add_transaction(Decimal('-100'), food.id)

    await service.update_transaction_amount(transaction_id, Decimal('250'))
    await service.update_transaction_comment(transaction_id, "такси")
    await service.update_transaction_category(transaction_id, transport.id)

    transaction = await service.get_transaction(transaction_id)
    assert transaction.amount == Decimal('-250')
    assert transaction.comment == "такси"
    assert transaction.category_name == "🚗 Транспорт"

    with pytest.raises(TypeMismatchError):
        await service.update_transaction_category(transaction_id, salary.id)

    await service.delete_transaction(transaction_id)
    with pytest.raises(NotFoundError):
        await service.get_transaction(transaction_id)


@pytest.mark.asyncio
async def test_recent_transactions(service):
    food = await category_named(service, "🍎 Продукты")
    await service.add_transaction(Decimal('-1'), food.id)
    await service.add_transaction(Decimal('-2'), food.id)

    recent = await service.get_recent_transactions(utcnow() - timedelta(days=30))

    assert [t.amount for t in recent] == [Decimal('-2'), Decimal('-1')]
    assert await service.has_transactions_between(utcnow() - timedelta(hours=1), utcnow() + timedelta(hours=1))


@pytest.mark.asyncio
async def test_savings_deposit_and_withdraw(service):
    saving = await service.create_saving("Отпуск", Decimal('1000'))

    assert await service.deposit(saving.id, Decimal('300')) == Decimal('300')
    assert await service.withdraw(saving.id, Decimal('100')) == Decimal('200')

    with pytest.raises(InsufficientFundsError) as error:
        await service.withdraw(saving.id, Decimal('500'))
    assert error.value.available == Decimal('200')

    refreshed = await service.get_saving(saving.id)
    assert Decimal(refreshed.amount) == Decimal('200')
    assert refreshed.progress == pytest.approx(20.0)

    await service.clear_saving(saving.id)
    assert Decimal((await service.get_saving(saving.id)).amount) == 0


@pytest.mark.asyncio
async def test_saving_goal_rules(service):
    no_goal = await service.create_saving("Подушка", Decimal('0'))
    assert no_goal.goal is None
    assert no_goal.progress is None

    with pytest.raises(ValidationError):
        await service.create_saving("Машина", Decimal('-1'))
    with pytest.raises(AlreadyExistsError):
        await service.create_saving("Подушка")
    with pytest.raises(ValidationError):
        await service.update_saving_amount(no_goal.id, Decimal('-1'))


@pytest.mark.asyncio
async def test_rename_and_delete_saving(service):
    first = await service.create_saving("Отпуск")
    await service.create_saving("Машина")

    with pytest.raises(AlreadyExistsError):
        await service.rename_saving(first.id, "Машина")
    with pytest.raises(ValidationError):
        await service.rename_saving(first.id, " ")

    await service.rename_saving(first.id, "Море")
    assert (await service.get_saving(first.id)).name == "Море"

    await service.delete_saving(first.id)
    with pytest.raises(NotFoundError):
        await service.delete_saving(first.id)


@pytest.mark.asyncio
async def test_preferences(service):
    assert await service.get_currency() == 'RUB'
    await service.set_currency('USD')
    assert await service.get_currency() == 'USD'
    with pytest.raises(ValidationError):
        await service.set_currency('GBP')

    await service.set_notifications(False)
    assert service.get_notifications() is False

    await service.set_period_start_day(25)
    assert service.user.period_start_day == 25
    with pytest.raises(ValidationError):
        await service.set_period_start_day(32)


@pytest.mark.asyncio
async def test_clear_and_reseed(service):
    await service.create_category("Кафе", "expense")
    await service.clear_user_data()

    assert await service.get_categories() == []
    assert await service.ensure_default_categories() == 5


@pytest.mark.asyncio
async def test_submit_feedback(store, service):
    await service.submit_feedback("удобно", "графиков", "ничего", recommend=True)
    assert await store.feedback_counts() == {'total': 1, 'yes': 1, 'no': 0}
