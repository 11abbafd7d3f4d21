"""
Adding income and expense transactions, the operation history and editing.

Flow: start_transaction → type_<kind> → cat_<id> → amount → comment (or skip).
"""
import logging
from datetime import timedelta

from finbot.core.exceptions import ValidationError
from finbot.dialog import keyboards
from finbot.dialog.callbacks import (
    ChangeTransactionCategory, EditTransaction, SelectCategory, SelectType,
)
from finbot.dialog.router import FlowRouter
from finbot.dialog.state import Step
from finbot.locales.translations import get_text
from finbot.models.base import CategoryType
from finbot.utils.formatting import escape, parse_amount
from finbot.utils.timeutil import to_local, utcnow

logger = logging.getLogger(__name__)

router = FlowRouter("transactions")

HISTORY_DAYS = 30
HISTORY_LIMIT = 20

EDIT_STEPS = (
    Step.EDIT_TRANSACTION, Step.EDIT_TRANSACTION_AMOUNT,
    Step.EDIT_TRANSACTION_COMMENT, Step.EDIT_TRANSACTION_CATEGORY,
)


def _describe(ctx, transaction) -> dict:
    return {
        'icon': "📈" if transaction.is_income else "📉",
        'kind': "Доход" if transaction.is_income else "Расход",
        'date': to_local(transaction.date, ctx.tz).strftime("%d.%m.%Y %H:%M"),
        'category': escape(transaction.category_name),
        'amount': ctx.money(abs(transaction.amount)),
    }


async def show_category_picker(ctx):
    categories = await ctx.service.get_categories(ctx.state.temp_type)
    text = get_text('select_category') if categories else get_text('no_categories')
    ctx.state.step = Step.SELECT_CATEGORY
    ctx.edit(text, keyboards.category_picker(categories))


# ============= ADD TRANSACTION =============

@router.action('start_transaction')
async def start_transaction(ctx, action):
    ctx.reset().step = Step.SELECT_TYPE
    ctx.edit(get_text('select_type'), keyboards.transaction_type_menu())


@router.callback(SelectType)
async def select_type(ctx, command: SelectType):
    if ctx.state.step not in (Step.SELECT_TYPE, Step.SELECT_CATEGORY):
        ctx.expired()
        return
    ctx.state.temp_type = command.kind
    await show_category_picker(ctx)


@router.callback(SelectCategory)
async def select_category(ctx, command: SelectCategory):
    if ctx.state.step != Step.SELECT_CATEGORY or not ctx.state.temp_type:
        ctx.expired()
        return

    category = await ctx.service.get_category_for_flow(command.id, ctx.state.temp_type)
    ctx.state.temp_category_id = category.id
    ctx.state.temp_category_name = category.name
    ctx.state.step = Step.ENTER_AMOUNT
    ctx.reply(get_text('enter_amount', category=escape(category.name)), keyboards.cancel_only())


@router.step(Step.ENTER_AMOUNT)
async def enter_amount(ctx, text):
    try:
        amount = parse_amount(text)
    except ValidationError:
        ctx.reply(get_text('invalid_amount'), keyboards.cancel_only())
        return

    ctx.state.temp_amount = amount
    ctx.state.step = Step.ENTER_COMMENT
    ctx.reply(get_text('enter_comment'), keyboards.skip('skip_comment'))


@router.step(Step.ENTER_COMMENT)
async def enter_comment(ctx, text):
    await finish_transaction(ctx, text)


@router.action('skip_comment')
async def skip_comment(ctx, action):
    if ctx.state.step != Step.ENTER_COMMENT:
        ctx.expired()
        return
    await finish_transaction(ctx, None)


async def finish_transaction(ctx, comment):
    state = ctx.state
    is_income = state.temp_type == CategoryType.INCOME.value
    amount = state.temp_amount if is_income else -state.temp_amount

    await ctx.service.add_transaction(amount, state.temp_category_id, comment=comment)

    key = 'income_added' if is_income else 'expense_added'
    ctx.reply(get_text(key, category=escape(state.temp_category_name), amount=ctx.money(state.temp_amount)))
    ctx.reset()
    ctx.main_menu(get_text('transaction_added'))


# ============= HISTORY =============

@router.action('show_history')
async def show_history(ctx, action):
    ctx.reset()
    transactions = await ctx.service.get_recent_transactions(utcnow() - timedelta(days=HISTORY_DAYS))
    transactions = transactions[:HISTORY_LIMIT]
    if not transactions:
        ctx.edit(get_text('history_empty'), keyboards.history_menu([]))
        return

    parts = [get_text('history_title')]
    for index, transaction in enumerate(transactions, start=1):
        parts.append(f"<b>#{index}</b> ")
        parts.append(get_text('history_item', **_describe(ctx, transaction)))
        if transaction.comment:
            parts.append(get_text('history_comment', comment=escape(transaction.comment)))
        parts.append("\n")
    ctx.edit(''.join(parts), keyboards.history_menu(transactions))


# ============= EDIT =============

async def show_transaction(ctx, transaction_id: int):
    transaction = await ctx.service.get_transaction(transaction_id)
    ctx.reset()
    ctx.state.step = Step.EDIT_TRANSACTION
    ctx.state.temp_id = transaction.id
    ctx.state.temp_type = CategoryType.INCOME.value if transaction.is_income else CategoryType.EXPENSE.value
    ctx.reply(
        get_text('transaction_details', comment=escape(transaction.comment) or "—",
                 **_describe(ctx, transaction)),
        keyboards.transaction_edit_menu(),
    )


def _editing(ctx) -> bool:
    if ctx.state.temp_id is None or ctx.state.step not in EDIT_STEPS:
        ctx.expired()
        return False
    return True


@router.callback(EditTransaction)
async def edit_transaction(ctx, command: EditTransaction):
    await show_transaction(ctx, command.id)


@router.action('edit_amount')
async def edit_amount(ctx, action):
    if _editing(ctx):
        ctx.state.step = Step.EDIT_TRANSACTION_AMOUNT
        ctx.reply(get_text('enter_new_amount'), keyboards.cancel_only())


@router.step(Step.EDIT_TRANSACTION_AMOUNT)
async def enter_new_amount(ctx, text):
    try:
        amount = parse_amount(text)
    except ValidationError:
        ctx.reply(get_text('invalid_amount'), keyboards.cancel_only())
        return
    await ctx.service.update_transaction_amount(ctx.state.temp_id, amount)
    ctx.reply(get_text('transaction_updated'))
    await show_transaction(ctx, ctx.state.temp_id)


@router.action('edit_comment')
async def edit_comment(ctx, action):
    if _editing(ctx):
        ctx.state.step = Step.EDIT_TRANSACTION_COMMENT
        ctx.reply(get_text('enter_new_comment'), keyboards.cancel_only())


@router.step(Step.EDIT_TRANSACTION_COMMENT)
async def enter_new_comment(ctx, text):
    await ctx.service.update_transaction_comment(ctx.state.temp_id, text)
    ctx.reply(get_text('transaction_updated'))
    await show_transaction(ctx, ctx.state.temp_id)


@router.action('edit_category')
async def edit_category(ctx, action):
    if not _editing(ctx):
        return
    categories = await ctx.service.get_categories(ctx.state.temp_type)
    ctx.state.step = Step.EDIT_TRANSACTION_CATEGORY
    ctx.edit(get_text('select_new_category'),
             keyboards.transaction_category_picker(categories, ctx.state.temp_id))


@router.callback(ChangeTransactionCategory)
async def change_category(ctx, command: ChangeTransactionCategory):
    if ctx.state.step != Step.EDIT_TRANSACTION_CATEGORY or ctx.state.temp_id is None:
        ctx.expired()
        return
    await ctx.service.update_transaction_category(ctx.state.temp_id, command.category_id)
    ctx.reply(get_text('transaction_updated'))
    await show_transaction(ctx, ctx.state.temp_id)


@router.action('delete_transaction')
async def delete_transaction(ctx, action):
    if not _editing(ctx):
        return
    await ctx.service.delete_transaction(ctx.state.temp_id)
    ctx.reset()
    ctx.reply(get_text('transaction_deleted'))
    await show_history(ctx, action)
