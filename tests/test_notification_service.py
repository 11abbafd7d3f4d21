import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from conftest import TZ, USER_ID
from finbot.core.config import Settings
from finbot.locales.translations import get_text
from finbot.services.notification_service import REMINDER_GRACE_SECONDS, NotificationService
from finbot.utils.timeutil import to_utc_naive

REMINDER_AT = datetime(2025, 3, 10, 20, 5, tzinfo=TZ)


@pytest.fixture
def settings():
    return Settings(_env_file=None, REMINDER_HOUR=20, REMINDER_TZ="Europe/Moscow")


@pytest.fixture
def notifications(store, transport, settings):
    return NotificationService(store, transport, settings)


@pytest.mark.asyncio
async def test_reminder_sent_only_at_configured_hour(user, transport, notifications):
    assert await notifications.send_daily_reminders(REMINDER_AT.replace(hour=19)) == 0
    assert transport.calls == []

    assert await notifications.send_daily_reminders(REMINDER_AT) == 1

    method, chat_id, payload = transport.calls[0]
    assert (method, chat_id) == ('send_text', USER_ID)
    assert payload['text'] == get_text('reminder')
    assert payload['keyboard'][0][0].token == "start_transaction"


@pytest.mark.asyncio
async def test_no_reminder_after_transaction_today(store, user, service, transport, notifications):
    food = (await service.get_categories('expense'))[0]
    await store.add_transaction(user.id, Decimal('-10'), food.id, 'card', None,
                                date=to_utc_naive(REMINDER_AT.replace(hour=0, minute=30)))

    assert await notifications.send_daily_reminders(REMINDER_AT) == 0


@pytest.mark.asyncio
async def test_transaction_yesterday_does_not_count(store, user, service, transport, notifications):
    food = (await service.get_categories('expense'))[0]
    await store.add_transaction(user.id, Decimal('-10'), food.id, 'card', None,
                                date=to_utc_naive(REMINDER_AT.replace(day=9, hour=23, minute=59)))

    assert await notifications.send_daily_reminders(REMINDER_AT) == 1


@pytest.mark.asyncio
async def test_disabled_notifications_are_respected(store, user, transport, notifications):
    await store.set_notifications(user.id, False)

    assert await notifications.send_daily_reminders(REMINDER_AT) == 0


@pytest.mark.asyncio
async def test_failed_delivery_does_not_stop_others(store, user, transport, notifications):
    other, _ = await store.get_or_create_user(2002)
    transport.failing.add(USER_ID)

    assert await notifications.send_daily_reminders(REMINDER_AT) == 1
    assert [chat for _, chat, _ in transport.calls] == [2002]


@pytest.mark.asyncio
async def test_test_mode_ignores_hour_and_marks_text(store, user, transport):
    settings = Settings(_env_file=None, TEST_MODE=True, REMINDER_HOUR=20)
    notifications = NotificationService(store, transport, settings)

    assert await notifications.send_daily_reminders(REMINDER_AT.replace(hour=11)) == 1
    assert transport.texts()[0] == get_text('reminder_test_prefix', hour=20) + get_text('reminder')


@pytest.mark.asyncio
async def test_scheduler_jobs(notifications):
    notifications.start()
    try:
        assert {job.id for job in notifications.scheduler.get_jobs()} == {'daily_reminder', 'stats_snapshot'}

        reminder = notifications.scheduler.get_job('daily_reminder')
        assert isinstance(reminder.trigger, CronTrigger)
        fields = {field.name: str(field) for field in reminder.trigger.fields}
        assert (fields['hour'], fields['minute']) == ('20', '0')
        assert reminder.misfire_grace_time == REMINDER_GRACE_SECONDS
        assert reminder.coalesce
    finally:
        notifications.shutdown()
    # shutdown completes on the next loop iteration
    await asyncio.sleep(0)
    assert not notifications.scheduler.running


@pytest.mark.asyncio
async def test_test_mode_reminds_every_minute(store, transport):
    notifications = NotificationService(store, transport, Settings(_env_file=None, TEST_MODE=True))

    async def no_reminders(now=None):
        return 0

    notifications.send_daily_reminders = no_reminders
    notifications.start()
    try:
        reminder = notifications.scheduler.get_job('daily_reminder')
        assert isinstance(reminder.trigger, IntervalTrigger)
        assert reminder.trigger.interval == timedelta(minutes=1)
        assert notifications.scheduler.get_job('test_reminder') is not None
    finally:
        notifications.shutdown()
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_stats_snapshot_is_logged(user, notifications, caplog):
    with caplog.at_level("INFO", logger="finbot.services.notification_service"):
        await notifications.log_stats_snapshot()

    assert "Usage: 1 users" in caplog.text
