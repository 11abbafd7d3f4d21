from datetime import timedelta

import httpx
import pytest

from conftest import TZ, USER_ID
from finbot.api.stats import create_stats_app, create_stats_server
from finbot.core.exceptions import StoreError
from finbot.services.stats_service import collect_stats, translate_clicks
from finbot.utils.timeutil import utcnow


@pytest.fixture
async def client(store):
    app = create_stats_app(store, TZ)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://stats") as client:
        yield client


@pytest.mark.asyncio
async def test_button_clicks_are_translated(store, user, client):
    """Known tokens are shown by label, unknown ones as is"""
    for _ in range(5):
        await store.record_button_click(user.id, "start_transaction")
    for _ in range(2):
        await store.record_button_click(user.id, "unknown_token")

    response = await client.get("/api/stats")

    assert response.status_code == 200
    assert response.json()["button_clicks"] == {"💸 Добавить операцию": 5, "unknown_token": 2}


@pytest.mark.asyncio
async def test_stats_payload(store, user, client):
    await store.upsert_activity(user.id, utcnow() - timedelta(days=3))
    await store.add_feedback(user.id, "всё", "графики", "ничего", "yes")
    await store.add_feedback(user.id, "", "", "", "no")
    await store.add_feedback(user.id, "", "", "", "no")

    body = (await client.get("/api/stats")).json()

    assert body["total_users"] == 1
    assert (body["active_today"], body["active_week"], body["active_month"]) == (0, 1, 1)
    assert body["all_users"][0]["external_id"] == USER_ID
    assert body["all_users"][0]["username"] == "tester"
    assert body["feedback_stats"] == {
        "total": 3, "recommend_yes": 1, "recommend_no": 2,
        "yes_percent": 33.33, "no_percent": 66.67,
    }
    assert {entry["likes"] for entry in body["all_feedbacks"]} == {"всё", ""}


@pytest.mark.asyncio
async def test_timestamps_in_operator_timezone(store, user):
    stats = await collect_stats(store, TZ)

    assert stats.all_users[0].join_date.utcoffset() == timedelta(hours=3)


@pytest.mark.asyncio
async def test_store_failure_returns_empty_500(store, client, monkeypatch):
    async def broken(*args, **kwargs):
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "list_users_with_activity", broken)

    response = await client.get("/api/stats")

    assert response.status_code == 500
    assert response.content == b""


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.text == "OK"


def test_tokens_sharing_a_label_are_summed():
    assert translate_clicks({"edit_cat_1": 2, "edit_cat_7": 3, "main_menu": 1}) == {
        "✏️ Редактировать категорию": 5,
        "🏠 Главное меню": 1,
    }


@pytest.mark.asyncio
async def test_embedded_server_leaves_signals_alone(store):
    server = create_stats_server(create_stats_app(store, TZ), "127.0.0.1", 8080)

    assert server.install_signal_handlers() is None
    with server.capture_signals():
        pass
