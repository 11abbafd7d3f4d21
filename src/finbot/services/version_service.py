"""In-app changelog: registers the running version and announces it once per user."""
import asyncio
import logging

from finbot.bot.transport import Transport
from finbot.core.database import Store
from finbot.core.exceptions import TransportError
from finbot.locales.translations import get_text
from finbot.models.base import Version

logger = logging.getLogger(__name__)

CURRENT_VERSION = "1.0.0"

CHANGELOG = {
    "1.0.0": (
        "🚀 Горячее обновление! 🚀\n\n"
        "✨ <b>Что нового в версии 1.0.0:</b>\n"
        "- 📊 <b>Супер-статистика!</b> Теперь просмотр финансов за любой период стал ещё удобнее и нагляднее!\n"
        "- 📜 <b>История транзакций!</b> Погружайтесь в детали своих операций с новой функцией просмотра истории.\n"
        "- ⏰ <b>Точное время!</b> Исправили ошибку с отправкой сообщений, теперь всё работает как часы!\n"
        "- 🆘 <b>Техподдержка!</b> Если возникли какие-то проблемы, то просто нажми на кнопку и задай вопрос\n"
        "- 💰 <b>Копилки на высоте!</b> Управление копилками стало проще:\n"
        "  - 🗑️ Удаляйте копилки одним движением.\n"
        "  - ✏️ Редактируйте их с лёгкостью.\n"
        "  - 🧹 Очищайте данные, когда захотите!\n"
        "- 🔔 <b>Будьте в курсе!</b> Теперь вы получите яркое уведомление о каждом обновлении бота.\n\n"
        "🚀 <b>Совет от бота:</b> Ведите учет доходов и расходов, чтобы ваши финансы всегда были под контролем! 💸"
    ),
}

DEFAULT_DESCRIPTION = "🎉 Обновление бота! Откройте новые функции и станьте ближе к финансовой свободе! 🚀"


def describe(version: str) -> str:
    return CHANGELOG.get(version, DEFAULT_DESCRIPTION)


class VersionService:
    def __init__(self, store: Store, transport: Transport, version: str = CURRENT_VERSION,
                 delay: float = 0.1):
        self.store = store
        self.transport = transport
        self.version = version
        self.delay = delay

    async def ensure_current_version(self) -> Version:
        """Insert the running version unless it is already registered"""
        existing = await self.store.get_version(self.version)
        if existing:
            return existing
        logger.info(f"Registering version {self.version}")
        return await self.store.add_version(self.version, describe(self.version))

    async def broadcast(self) -> int:
        """Send the latest version's description to every user who has not seen it.

        The read mark is written before sending: a crash between the two loses
        one announcement instead of repeating it.
        """
        latest = await self.store.latest_version()
        if latest is None:
            return 0

        text = get_text('version_broadcast', version=latest.version, description=latest.description)
        sent = 0
        for user in await self.store.users_without_version(latest.id):
            if not await self.store.mark_version_read(user.id, latest.id):
                continue
            try:
                await self.transport.send_text(user.telegram_id, text)
                sent += 1
            except TransportError as e:
                logger.warning(f"Version announcement not delivered: {e}", extra={'user_id': user.id})
            if self.delay:
                await asyncio.sleep(self.delay)

        logger.info(f"Version {latest.version} announced to {sent} users")
        return sent
