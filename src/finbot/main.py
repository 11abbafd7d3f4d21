import asyncio
import logging
import sys

from aiogram.exceptions import TelegramUnauthorizedError
from pydantic import ValidationError as SettingsValidationError

from finbot.api.stats import create_stats_app, create_stats_server
from finbot.bot.adapter import MessagingAdapter
from finbot.bot.factory import BotFactory
from finbot.bot.transport import AiogramTransport
from finbot.core.config import Settings, get_settings
from finbot.core.database import Store
from finbot.core.exceptions import ConfigError, StoreError
from finbot.core.logging import setup_logging
from finbot.dialog.engine import create_engine
from finbot.services.notification_service import NotificationService
from finbot.services.version_service import VersionService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_DATABASE = 3


async def main(settings: Settings) -> int:
    """Main bot function"""
    settings.require_token()

    logger.info(f"Opening database {settings.database_path}")
    store = Store(settings.database_url)
    try:
        await store.create_tables()
    except StoreError:
        await store.close()
        raise

    factory = BotFactory(settings)
    bot = factory.create_bot()
    transport = AiogramTransport(bot)
    adapter = MessagingAdapter(create_engine(store, settings.timezone), transport)
    dp = factory.create_dispatcher(adapter)

    notifications = NotificationService(store, transport, settings)
    versions = VersionService(store, transport)
    server = create_stats_server(
        create_stats_app(store, settings.timezone), settings.STATS_HOST, settings.STATS_PORT
    )

    try:
        await versions.ensure_current_version()
    except StoreError:
        await bot.session.close()
        await store.close()
        raise
    notifications.start()
    server_task = asyncio.create_task(server.serve())
    broadcast_task = asyncio.create_task(versions.broadcast())

    try:
        try:
            bot_info = await bot.get_me()
        except TelegramUnauthorizedError as e:
            raise ConfigError(f"BOT_TOKEN was rejected: {e}") from e
        logger.info(f"Starting bot: @{bot_info.username}")
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        # in-flight sends finish, later ones are dropped
        transport.close()
        notifications.shutdown()
        server.should_exit = True
        broadcast_task.cancel()
        await asyncio.gather(server_task, broadcast_task, return_exceptions=True)
        await bot.session.close()
        await store.close()
        logger.info("Bot stopped")
    return EXIT_OK


def run():
    try:
        settings = get_settings()
    except SettingsValidationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration: {e}")
        sys.exit(EXIT_CONFIG)

    setup_logging(settings)
    logger.info(f"Starting finance bot (environment: {settings.ENVIRONMENT}, test mode: {settings.TEST_MODE})")

    try:
        code = asyncio.run(main(settings))
    except ConfigError as e:
        logger.error(str(e))
        code = EXIT_CONFIG
    except StoreError as e:
        logger.error(f"Cannot open database: {e}")
        code = EXIT_DATABASE
    except KeyboardInterrupt:
        logger.info("Bot stopped by user (Ctrl+C)")
        code = EXIT_OK
    sys.exit(code)


if __name__ == "__main__":
    run()
