"""Savings: overview, creation, deposit and withdrawal, per-saving management."""
import logging
from decimal import Decimal

from finbot.core.exceptions import AlreadyExistsError, InsufficientFundsError, ValidationError
from finbot.dialog import keyboards
from finbot.dialog.callbacks import (
    ClearSaving, DeleteSaving, DepositSaving, EditSaving, RenameSaving, WithdrawSaving,
)
from finbot.dialog.router import FlowRouter
from finbot.dialog.state import Step
from finbot.locales.translations import get_text
from finbot.utils.formatting import escape, parse_amount, progress_bar

logger = logging.getLogger(__name__)

router = FlowRouter("savings")


def render_savings(ctx, savings) -> str:
    if not savings:
        return get_text('savings_title') + get_text('savings_empty')

    parts = [get_text('savings_title')]
    for saving in savings:
        if saving.goal:
            parts.append(get_text(
                'saving_line_goal',
                name=escape(saving.name),
                amount=ctx.money(saving.amount),
                goal=ctx.money(saving.goal),
                progress=progress_bar(saving.progress),
            ))
        else:
            parts.append(get_text('saving_line', name=escape(saving.name), amount=ctx.money(saving.amount)))
    return ''.join(parts).rstrip()


def render_saving_details(ctx, saving) -> str:
    text = get_text('saving_details', name=escape(saving.name), amount=ctx.money(saving.amount))
    if saving.goal:
        text += get_text('saving_details_goal', goal=ctx.money(saving.goal), progress=saving.progress)
    if saving.comment:
        text += get_text('saving_details_comment', comment=escape(saving.comment))
    return text


@router.action('show_savings')
async def show_savings(ctx, _=None):
    ctx.reset()
    savings = await ctx.service.get_savings()
    ctx.edit(render_savings(ctx, savings), keyboards.savings_menu())


# ============= CREATE =============

@router.action('create_saving')
async def create_saving(ctx, action):
    ctx.reset().step = Step.CREATE_SAVING_NAME
    ctx.reply(get_text('enter_saving_name'), keyboards.cancel_only())


@router.step(Step.CREATE_SAVING_NAME)
async def enter_saving_name(ctx, text):
    name = text.strip()
    if not name:
        ctx.reply(get_text('empty_name'), keyboards.cancel_only())
        return
    if any(saving.name == name for saving in await ctx.service.get_savings()):
        ctx.reply(get_text('saving_exists'), keyboards.cancel_only())
        return

    ctx.state.temp_name = name
    ctx.state.step = Step.CREATE_SAVING_GOAL
    ctx.reply(get_text('enter_saving_goal'), keyboards.skip('skip_saving_goal'))


@router.step(Step.CREATE_SAVING_GOAL)
async def enter_saving_goal(ctx, text):
    try:
        goal = parse_amount(text)
    except ValidationError:
        ctx.reply(get_text('invalid_goal'), keyboards.skip('skip_saving_goal'))
        return
    await finish_saving(ctx, goal)


@router.action('skip_saving_goal')
async def skip_saving_goal(ctx, action):
    if ctx.state.step != Step.CREATE_SAVING_GOAL:
        ctx.expired()
        return
    await finish_saving(ctx, None)


async def finish_saving(ctx, goal):
    try:
        saving = await ctx.service.create_saving(ctx.state.temp_name, goal)
    except AlreadyExistsError:
        ctx.state.step = Step.CREATE_SAVING_NAME
        ctx.reply(get_text('saving_exists'), keyboards.cancel_only())
        return

    ctx.reply(get_text('saving_created', name=escape(saving.name)))
    await show_savings(ctx)


# ============= DEPOSIT / WITHDRAW =============

@router.action('add_to_saving')
async def add_to_saving(ctx, action):
    ctx.reset()
    savings = await ctx.service.get_savings()
    if not savings:
        ctx.edit(get_text('no_savings_to_deposit'), keyboards.savings_menu())
        return
    ctx.edit(get_text('select_saving_deposit'), keyboards.deposit_picker(savings))


@router.callback(DepositSaving)
async def deposit_saving(ctx, command: DepositSaving):
    saving = await ctx.service.get_saving(command.id)
    ctx.reset()
    ctx.state.step = Step.ENTER_SAVING_AMOUNT
    ctx.state.temp_id = saving.id
    ctx.reply(get_text('enter_deposit_amount', name=escape(saving.name)), keyboards.cancel_only())


@router.step(Step.ENTER_SAVING_AMOUNT)
async def enter_deposit_amount(ctx, text):
    try:
        amount = parse_amount(text)
    except ValidationError:
        ctx.reply(get_text('invalid_amount'), keyboards.cancel_only())
        return

    saving = await ctx.service.get_saving(ctx.state.temp_id)
    balance = await ctx.service.deposit(saving.id, amount)
    ctx.reply(get_text('saving_deposited', name=escape(saving.name),
                       amount=ctx.money(amount), balance=ctx.money(balance)))
    await show_savings(ctx)


@router.callback(WithdrawSaving)
async def withdraw_saving(ctx, command: WithdrawSaving):
    saving = await ctx.service.get_saving(command.id)
    ctx.reset()
    ctx.state.step = Step.ENTER_SAVING_WITHDRAW_AMOUNT
    ctx.state.temp_id = saving.id
    ctx.reply(get_text('enter_withdraw_amount', name=escape(saving.name), amount=ctx.money(saving.amount)),
              keyboards.cancel_only())


@router.step(Step.ENTER_SAVING_WITHDRAW_AMOUNT)
async def enter_withdraw_amount(ctx, text):
    try:
        amount = parse_amount(text)
    except ValidationError:
        ctx.reply(get_text('invalid_amount'), keyboards.cancel_only())
        return

    saving = await ctx.service.get_saving(ctx.state.temp_id)
    try:
        balance = await ctx.service.withdraw(saving.id, amount)
    except InsufficientFundsError as e:
        ctx.reply(get_text('insufficient_funds', available=ctx.money(e.available)), keyboards.cancel_only())
        return

    ctx.reply(get_text('saving_withdrawn', name=escape(saving.name),
                       amount=ctx.money(amount), balance=ctx.money(balance)))
    await show_savings(ctx)


# ============= STATS =============

@router.action('savings_stats')
async def savings_stats(ctx, action):
    savings = await ctx.service.get_savings()
    with_goal = [saving for saving in savings if saving.goal]

    parts = [get_text('savings_stats_title')]
    if not with_goal:
        parts.append(get_text('no_goal_savings'))
    for saving in with_goal:
        parts.append(f"🔹 <b>{escape(saving.name)}</b>\n┗ {progress_bar(saving.progress)}\n\n")

    total = sum((Decimal(saving.amount) for saving in savings), Decimal('0'))
    goal = sum((Decimal(saving.goal) for saving in with_goal), Decimal('0'))
    parts.append(get_text('savings_stats_total', total=ctx.money(total), goal=ctx.money(goal)))
    ctx.edit(''.join(parts), keyboards.savings_menu())


# ============= MANAGE =============

@router.action('manage_savings')
async def manage_savings(ctx, _=None):
    ctx.reset()
    savings = await ctx.service.get_savings()
    if not savings:
        ctx.edit(get_text('no_savings_to_edit'), keyboards.savings_menu())
        return
    ctx.edit(get_text('manage_savings'), keyboards.manage_savings_picker(savings))


@router.callback(EditSaving)
async def edit_saving(ctx, command: EditSaving):
    saving = await ctx.service.get_saving(command.id)
    ctx.reset()
    ctx.edit(render_saving_details(ctx, saving), keyboards.saving_actions(saving.id))


@router.callback(RenameSaving)
async def rename_saving(ctx, command: RenameSaving):
    saving = await ctx.service.get_saving(command.id)
    ctx.reset()
    ctx.state.step = Step.RENAME_SAVING
    ctx.state.temp_id = saving.id
    ctx.reply(get_text('enter_saving_new_name'), keyboards.cancel_only())


@router.step(Step.RENAME_SAVING)
async def enter_saving_new_name(ctx, text):
    try:
        await ctx.service.rename_saving(ctx.state.temp_id, text)
    except ValidationError:
        ctx.reply(get_text('empty_name'), keyboards.cancel_only())
        return
    except AlreadyExistsError:
        ctx.reply(get_text('saving_exists'), keyboards.cancel_only())
        return

    ctx.reset()
    ctx.reply(get_text('saving_renamed', name=escape(text.strip())), keyboards.back_to_savings())


@router.callback(ClearSaving)
async def clear_saving(ctx, command: ClearSaving):
    await ctx.service.clear_saving(command.id)
    ctx.reset()
    ctx.edit(get_text('saving_cleared'), keyboards.back_to_savings())


@router.callback(DeleteSaving)
async def delete_saving(ctx, command: DeleteSaving):
    await ctx.service.delete_saving(command.id)
    ctx.reset()
    logger.info("Saving deleted", extra={'user_id': ctx.user.id, 'operation': 'delete_saving'})
    ctx.edit(get_text('saving_deleted'), keyboards.back_to_savings())
