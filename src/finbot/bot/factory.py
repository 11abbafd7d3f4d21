import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from finbot.bot.adapter import MessagingAdapter
from finbot.core.config import Settings
from finbot.handlers.updates import router as updates_router
from finbot.middleware.dialog import DialogMiddleware

logger = logging.getLogger(__name__)


class BotFactory:
    def __init__(self, config: Settings):
        self.config = config

    def create_bot(self) -> Bot:
        return Bot(
            token=self.config.require_token(),
            default=DefaultBotProperties(
                parse_mode=ParseMode.HTML,
                link_preview_is_disabled=True,
            )
        )

    def create_dispatcher(self, adapter: MessagingAdapter) -> Dispatcher:
        """Dispatcher with the update router; dialog state lives in the engine, not in FSM storage"""
        dp = Dispatcher()
        dp.update.middleware(DialogMiddleware(adapter))
        dp.include_router(updates_router)
        logger.info("Dispatcher ready")
        return dp
