"""Entry points: /start, main menu, cancel, help and the saving tips article."""
from finbot.dialog import keyboards
from finbot.dialog.router import FlowRouter
from finbot.locales.translations import get_text

router = FlowRouter("start")


@router.command('/start')
async def start(ctx, text):
    ctx.reset()
    await ctx.service.ensure_default_categories()
    ctx.reply(get_text('welcome'), keyboards.welcome_menu())


@router.command('/menu')
@router.action('main_menu')
async def main_menu(ctx, _):
    ctx.reset()
    ctx.edit(get_text('choose_action'), keyboards.main_menu())


@router.command('/cancel')
@router.action('cancel')
async def cancel(ctx, _):
    ctx.reset()
    ctx.reply(get_text('cancelled'))
    ctx.main_menu()


@router.command('/help')
async def show_help(ctx, text):
    ctx.reply(get_text('help'), keyboards.back_to_menu())


@router.action('saving_tips')
async def saving_tips(ctx, action):
    ctx.reply(get_text('saving_tips'), keyboards.back_to_menu())
