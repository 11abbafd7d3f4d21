# src/finbot/services/notification_service.py
import logging
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from finbot.bot.transport import Transport
from finbot.core.config import Settings
from finbot.core.database import Store
from finbot.dialog import keyboards
from finbot.locales.translations import get_text
from finbot.utils.timeutil import local_now, to_utc_naive, utcnow

logger = logging.getLogger(__name__)

REMINDER_GRACE_SECONDS = 50 * 60


class NotificationService:
    def __init__(self, store: Store, transport: Transport, settings: Settings):
        self.store = store
        self.transport = transport
        self.settings = settings
        self.tz = settings.timezone
        self.scheduler = AsyncIOScheduler(timezone=self.tz)

    def start(self):
        """Initialize all scheduled tasks"""
        if self.settings.TEST_MODE:
            self.scheduler.add_job(
                self.send_daily_reminders,
                trigger='interval',
                minutes=1,
                id='daily_reminder'
            )
        else:
            # a late run still counts while the reminder hour lasts
            self.scheduler.add_job(
                self.send_daily_reminders,
                trigger='cron',
                hour=self.settings.REMINDER_HOUR,
                minute=0,
                misfire_grace_time=REMINDER_GRACE_SECONDS,
                coalesce=True,
                id='daily_reminder'
            )

        self.scheduler.add_job(
            self.log_stats_snapshot,
            trigger='interval',
            hours=self.settings.STATS_LOG_INTERVAL_HOURS,
            id='stats_snapshot'
        )

        if self.settings.TEST_MODE:
            # one reminder right away so the text can be checked without waiting
            self.scheduler.add_job(self.send_daily_reminders, id='test_reminder')

        self.scheduler.start()
        logger.info(
            f"Scheduler started: reminders at {self.settings.REMINDER_HOUR}:00 {self.settings.REMINDER_TZ}"
            f"{' (test mode)' if self.settings.TEST_MODE else ''}"
        )

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

    def _reminder_text(self) -> str:
        text = get_text('reminder')
        if self.settings.TEST_MODE:
            text = get_text('reminder_test_prefix', hour=self.settings.REMINDER_HOUR) + text
        return text

    async def send_daily_reminders(self, now: Optional[datetime] = None) -> int:
        """Remind users who have not recorded anything today. Returns the number sent."""
        now = now.astimezone(self.tz) if now else local_now(self.tz)
        if not self.settings.TEST_MODE and now.hour != self.settings.REMINDER_HOUR:
            return 0

        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start = to_utc_naive(day_start)
        end = to_utc_naive(day_start + timedelta(days=1))

        try:
            users = await self.store.users_for_reminder()
        except Exception as e:
            logger.error(f"Reminder job failed: {e}", exc_info=True)
            return 0

        text = self._reminder_text()
        sent = 0
        for user in users:
            try:
                if await self.store.has_transactions_between(user.id, start, end):
                    continue
                await self.transport.send_text(user.telegram_id, text, keyboards.reminder_menu())
                sent += 1
            except Exception as e:
                # no retries: the user simply misses today's reminder
                logger.warning(f"Reminder not sent: {e}", extra={'user_id': user.id, 'operation': 'reminder'})

        logger.info(f"Daily reminders sent: {sent}")
        return sent

    async def log_stats_snapshot(self):
        try:
            now = utcnow()
            total = await self.store.count_users()
            active_day = await self.store.count_active_users(now - timedelta(days=1))
            active_week = await self.store.count_active_users(now - timedelta(days=7))
        except Exception as e:
            logger.error(f"Stats snapshot failed: {e}", exc_info=True)
            return
        logger.info(f"Usage: {total} users, {active_day} active today, {active_week} active this week")
