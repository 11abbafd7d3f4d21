# src/finbot/core/logging.py
import json
import logging
import os
import uuid
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import TimedRotatingFileHandler

STRUCTURED_KEYS = ('user_id', 'step', 'operation', 'transaction_id')


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        for key in STRUCTURED_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(settings):
    """Setup logging with optional Sentry integration"""

    if settings.SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.asyncio import AsyncioIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[
                AsyncioIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ],
            traces_sample_rate=0.1,
            environment=settings.ENVIRONMENT
        )

    # Use simpler format for development
    if settings.ENVIRONMENT == 'development':
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        formatter = StructuredFormatter()

    handlers = [logging.StreamHandler()]

    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers.append(TimedRotatingFileHandler(
            os.path.join(settings.LOG_DIR, 'bot.log'),
            when='midnight',
            backupCount=14,
            encoding='utf-8'
        ))

    logger = logging.getLogger()
    logger.setLevel(settings.LOG_LEVEL)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # aiogram logs every polled update at INFO
    logging.getLogger('aiogram.event').setLevel(logging.WARNING)
    logging.getLogger('apscheduler').setLevel(logging.WARNING)

    return logger


def financial_transaction(logger):
    """Decorator for financial transaction error handling"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            transaction_id = str(uuid.uuid4())
            user_id = getattr(args[0], 'user_id', None) if args else None
            extra = {
                'transaction_id': transaction_id,
                'operation': func.__name__,
                'user_id': user_id,
            }

            logger.debug(f"Starting financial transaction: {func.__name__}", extra=extra)

            try:
                result = await func(*args, **kwargs)
                logger.info(f"Transaction completed: {func.__name__}", extra=extra)
                return result

            except Exception as e:
                logger.warning(f"Transaction failed: {func.__name__}: {e}", extra=extra)
                raise

        return wrapper
    return decorator
