"""Settings menu: notifications, currency, report period, data wipe and support pages."""
from finbot.core.exceptions import ValidationError
from finbot.dialog import keyboards
from finbot.dialog.callbacks import SetCurrency, SetNotifications
from finbot.dialog.router import FlowRouter
from finbot.dialog.state import Step
from finbot.locales.translations import get_currency_symbol, get_text
from finbot.utils.formatting import parse_day_of_month

router = FlowRouter("settings")


@router.action('show_settings', 'settings_back')
async def show_settings(ctx, _=None):
    ctx.reset()
    ctx.edit(get_text('settings'), keyboards.settings_menu())


@router.action('notification_settings')
async def notification_settings(ctx, action):
    status = get_text('notifications_on' if ctx.service.get_notifications() else 'notifications_off')
    ctx.edit(get_text('notifications', status=status), keyboards.notifications_menu())


@router.callback(SetNotifications)
async def set_notifications(ctx, command: SetNotifications):
    await ctx.service.set_notifications(command.enabled)
    text = get_text('notifications_enabled' if command.enabled else 'notifications_disabled')
    ctx.edit(text, keyboards.notifications_menu())


@router.action('currency_settings')
async def currency_settings(ctx, action):
    ctx.edit(get_text('currency_menu', currency=ctx.currency), keyboards.currency_menu(ctx.currency))


@router.callback(SetCurrency)
async def set_currency(ctx, command: SetCurrency):
    try:
        await ctx.service.set_currency(command.code)
    except ValidationError:
        ctx.reply(get_text('currency_invalid'))
        return
    ctx.currency = command.code
    ctx.edit(
        get_text('currency_changed', currency=command.code, symbol=get_currency_symbol(command.code)),
        keyboards.settings_menu(),
    )


@router.action('set_period_start')
async def set_period_start(ctx, action):
    ctx.reset().step = Step.ENTER_PERIOD_START_DAY
    ctx.reply(get_text('enter_period_start', day=ctx.user.period_start_day), keyboards.cancel_only())


@router.step(Step.ENTER_PERIOD_START_DAY)
async def enter_period_start(ctx, text):
    try:
        day = parse_day_of_month(text)
    except ValidationError:
        ctx.reply(get_text('invalid_period_start'), keyboards.cancel_only())
        return
    await ctx.service.set_period_start_day(day)
    ctx.reset()
    ctx.reply(get_text('period_start_changed', day=day), keyboards.settings_menu())


@router.action('confirm_clear_data')
async def confirm_clear_data(ctx, action):
    ctx.edit(get_text('confirm_clear'), keyboards.confirm_clear_menu())


@router.action('clear_data')
async def clear_data(ctx, action):
    await ctx.service.clear_user_data()
    await ctx.service.ensure_default_categories()
    ctx.reset()
    ctx.edit(get_text('data_cleared'), keyboards.main_menu())


# ============= SUPPORT =============

@router.action('support')
async def support(ctx, action):
    ctx.edit(get_text('support'), keyboards.support_menu())


@router.action('write_support')
async def write_support(ctx, action):
    ctx.edit(get_text('write_support'), keyboards.back_to_support())


@router.action('faq')
async def faq(ctx, action):
    ctx.edit(get_text('faq'), keyboards.back_to_support())
