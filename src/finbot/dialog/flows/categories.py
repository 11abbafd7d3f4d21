"""Category management and creating a category from inside the transaction flow."""
from finbot.core.exceptions import AlreadyExistsError, CategoryInUseError, ValidationError
from finbot.dialog import keyboards
from finbot.dialog.callbacks import DeleteCategory, EditCategory, NewCategory, RenameCategory
from finbot.dialog.flows.transactions import show_category_picker
from finbot.dialog.router import FlowRouter
from finbot.dialog.state import Step
from finbot.locales.translations import get_text
from finbot.models.base import CategoryType
from finbot.utils.formatting import escape

router = FlowRouter("categories")

MANAGE = 'manage_categories'

KIND_NAMES = {
    CategoryType.INCOME.value: "Доход",
    CategoryType.EXPENSE.value: "Расход",
    CategoryType.SAVING.value: "Накопления",
}


@router.action('manage_categories')
async def manage_categories(ctx, _=None):
    ctx.reset()
    categories = await ctx.service.get_categories()
    text = get_text('manage_categories') if categories else get_text('no_user_categories')
    ctx.edit(text, keyboards.categories_menu(categories))


@router.callback(NewCategory)
async def new_category(ctx, command: NewCategory):
    if command.kind:
        ctx.reset()
        ctx.state.temp_type = command.kind
        ctx.state.return_to = MANAGE
    elif ctx.state.step != Step.SELECT_CATEGORY or not ctx.state.temp_type:
        ctx.expired()
        return

    ctx.state.step = Step.ENTER_NEW_CATEGORY_NAME
    ctx.reply(get_text('enter_category_name'), keyboards.cancel_only())


@router.step(Step.ENTER_NEW_CATEGORY_NAME)
async def enter_category_name(ctx, text):
    try:
        category = await ctx.service.create_category(text, ctx.state.temp_type)
    except ValidationError:
        ctx.reply(get_text('empty_name'), keyboards.cancel_only())
        return
    except AlreadyExistsError:
        ctx.reply(get_text('category_exists'), keyboards.cancel_only())
        return

    ctx.reply(get_text('category_created', name=escape(category.name)))
    if ctx.state.return_to == MANAGE:
        await manage_categories(ctx)
    else:
        await show_category_picker(ctx)


@router.callback(EditCategory)
async def edit_category(ctx, command: EditCategory):
    category = await ctx.service.get_category(command.id)
    ctx.reset()
    ctx.edit(
        get_text('category_details', name=escape(category.name), kind=KIND_NAMES.get(category.type, category.type)),
        keyboards.category_actions(category.id),
    )


@router.callback(RenameCategory)
async def rename_category(ctx, command: RenameCategory):
    category = await ctx.service.get_category(command.id)
    ctx.reset()
    ctx.state.step = Step.RENAME_CATEGORY
    ctx.state.temp_id = category.id
    ctx.reply(get_text('enter_category_new_name'), keyboards.cancel_only())


@router.step(Step.RENAME_CATEGORY)
async def enter_category_new_name(ctx, text):
    try:
        await ctx.service.rename_category(ctx.state.temp_id, text)
    except ValidationError:
        ctx.reply(get_text('empty_name'), keyboards.cancel_only())
        return
    except AlreadyExistsError:
        ctx.reply(get_text('category_exists'), keyboards.cancel_only())
        return

    ctx.reply(get_text('category_renamed', name=escape(text.strip())))
    await manage_categories(ctx)


@router.callback(DeleteCategory)
async def delete_category(ctx, command: DeleteCategory):
    try:
        await ctx.service.delete_category(command.id)
    except CategoryInUseError:
        ctx.reply(get_text('category_in_use'))
    else:
        ctx.reply(get_text('category_deleted'))
    await manage_categories(ctx)
