import pytest

from conftest import USER_ID
from finbot.locales.translations import get_text
from finbot.services.version_service import CHANGELOG, CURRENT_VERSION, VersionService, describe


def test_describe_falls_back_to_default():
    assert describe(CURRENT_VERSION) == CHANGELOG[CURRENT_VERSION]
    assert "Обновление бота" in describe("9.9.9")


@pytest.mark.asyncio
async def test_ensure_current_version_is_idempotent(store, transport):
    versions = VersionService(store, transport)

    first = await versions.ensure_current_version()
    second = await versions.ensure_current_version()

    assert first.id == second.id
    assert (await store.latest_version()).version == CURRENT_VERSION


@pytest.mark.asyncio
async def test_broadcast_reaches_each_user_once(store, user, transport):
    await store.get_or_create_user(2002)
    versions = VersionService(store, transport, delay=0)
    await versions.ensure_current_version()

    assert await versions.broadcast() == 2
    assert await versions.broadcast() == 0

    assert sorted(chat for _, chat, _ in transport.calls) == [USER_ID, 2002]
    assert transport.texts(USER_ID) == [
        get_text('version_broadcast', version=CURRENT_VERSION, description=describe(CURRENT_VERSION))
    ]


@pytest.mark.asyncio
async def test_undelivered_announcement_is_not_retried(store, user, transport):
    versions = VersionService(store, transport, delay=0)
    version = await versions.ensure_current_version()
    transport.failing.add(USER_ID)

    assert await versions.broadcast() == 0
    assert await store.users_without_version(version.id) == []

    transport.failing.clear()
    assert await versions.broadcast() == 0
    assert transport.calls == []


@pytest.mark.asyncio
async def test_broadcast_without_versions(store, user, transport):
    assert await VersionService(store, transport, delay=0).broadcast() == 0
