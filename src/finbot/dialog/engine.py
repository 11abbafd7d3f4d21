"""
Dialog engine: turns one inbound update into a list of outbound replies.

The engine knows nothing about Telegram. Updates of one user are processed
strictly one at a time under that user's lock; replies are returned to the
caller and delivered after the lock is released.
"""
import logging
from datetime import tzinfo
from typing import List, Optional

from finbot.core.database import Store
from finbot.core.exceptions import (
    NotFoundError, StoreError, TypeMismatchError, ValidationError,
)
from finbot.dialog.callbacks import Action, UnknownCommand, parse_callback
from finbot.dialog.context import DialogContext
from finbot.dialog.flows import ROUTERS
from finbot.dialog.messages import InboundUpdate, Outbound, SendText
from finbot.dialog.router import FlowRouter
from finbot.dialog.state import DialogStore
from finbot.locales.translations import get_text
from finbot.services.finance_service import FinanceService
from finbot.utils.timeutil import utcnow

logger = logging.getLogger(__name__)


class DialogEngine:
    def __init__(self, store: Store, tz: tzinfo, dialogs: Optional[DialogStore] = None):
        self.store = store
        self.tz = tz
        self.dialogs = dialogs or DialogStore()
        self._actions = {}
        self._callbacks = {}
        self._steps = {}
        self._commands = {}

    def include_router(self, router: FlowRouter):
        for own, theirs in ((self._actions, router.actions), (self._callbacks, router.callbacks),
                            (self._steps, router.steps), (self._commands, router.commands)):
            clash = own.keys() & theirs.keys()
            if clash:
                raise ValueError(f"Router {router.name} redefines handlers: {sorted(map(str, clash))}")
            own.update(theirs)

    def include_routers(self, *routers: FlowRouter):
        for router in routers:
            self.include_router(router)

    async def handle(self, update: InboundUpdate) -> List[Outbound]:
        async with self.dialogs.lock(update.user_id):
            try:
                return await self._process(update)
            except StoreError as e:
                logger.error(f"Store failure while processing update: {e}",
                             extra={'user_id': update.user_id, 'operation': 'handle_update'})
                self.dialogs.reset(update.user_id)
                return [SendText(get_text('generic_error'))]

    async def _process(self, update: InboundUpdate) -> List[Outbound]:
        user, created = await self.store.get_or_create_user(
            update.user_id, update.username, update.first_name, update.last_name
        )
        service = FinanceService(self.store, user)
        if created:
            logger.info("New user registered", extra={'user_id': update.user_id})
            await service.ensure_default_categories()

        now = utcnow()
        await self.store.upsert_activity(user.id, now)
        if update.is_callback:
            await self.store.record_button_click(user.id, update.token, now)

        ctx = DialogContext(
            update, user, service, self.dialogs.get(update.user_id), self.tz,
            currency=await service.get_currency(),
        )
        step = ctx.state.step
        try:
            if update.is_callback:
                await self._dispatch_callback(ctx)
            else:
                await self._dispatch_text(ctx)
        except ValidationError as e:
            logger.info(f"Rejected input: {e}", extra=self._extra(ctx, step))
            ctx.reply(get_text('generic_error'))
        except NotFoundError as e:
            logger.warning(f"Missing record: {e}", extra=self._extra(ctx, step))
            ctx.reset()
            ctx.main_menu(get_text('not_found'))
        except TypeMismatchError as e:
            logger.warning(f"Category type mismatch: {e}", extra=self._extra(ctx, step))
            ctx.reset()
            ctx.main_menu(get_text('generic_error'))
        except StoreError as e:
            logger.error(f"Store failure: {e}", extra=self._extra(ctx, step))
            ctx.reset()
            ctx.main_menu(get_text('generic_error'))

        self.dialogs.set(update.user_id, ctx.state)
        return ctx.replies

    def _extra(self, ctx: DialogContext, step) -> dict:
        return {
            'user_id': ctx.update.user_id,
            'step': step.value,
            'operation': ctx.update.token or 'text',
        }

    async def _dispatch_callback(self, ctx: DialogContext):
        command = parse_callback(ctx.update.token)
        if isinstance(command, Action):
            handler = self._actions.get(command.name)
        else:
            handler = self._callbacks.get(type(command))

        if handler is None:
            if isinstance(command, UnknownCommand):
                logger.info(f"Unknown callback token: {command.raw!r}",
                            extra={'user_id': ctx.update.user_id})
            else:
                logger.warning(f"No handler for {command!r}", extra={'user_id': ctx.update.user_id})
            return
        await handler(ctx, command)

    async def _dispatch_text(self, ctx: DialogContext):
        if ctx.update.text is None:
            # photo, sticker, voice...: the flow stays where it is
            if ctx.state.is_idle:
                ctx.main_menu()
            else:
                ctx.reply(get_text('text_expected'))
            return

        text = ctx.update.text.strip()
        if text.startswith('/'):
            command = text.split()[0].split('@')[0].lower()
            handler = self._commands.get(command)
            if handler:
                await handler(ctx, text)
                return

        handler = self._steps.get(ctx.state.step)
        if handler:
            await handler(ctx, text)
            return

        # idle, or a step that waits for a button
        ctx.reset()
        ctx.main_menu()


def create_engine(store: Store, tz: tzinfo) -> DialogEngine:
    """Engine with every flow router included"""
    engine = DialogEngine(store, tz)
    engine.include_routers(*ROUTERS)
    return engine
