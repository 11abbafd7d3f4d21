"""Usage statistics for the dashboard: counts, button clicks, users and feedback."""
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from finbot.core.database import Store
from finbot.locales.translations import translate_button
from finbot.utils.timeutil import to_local, utcnow

CLICKS_WINDOW = timedelta(days=7)


class UserStats(BaseModel):
    """One row of the user list"""
    external_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    last_active: datetime
    join_date: datetime


class FeedbackStats(BaseModel):
    total: int = 0
    recommend_yes: int = 0
    recommend_no: int = 0
    yes_percent: float = 0.0
    no_percent: float = 0.0


class FeedbackEntry(BaseModel):
    id: int
    external_id: int
    username: Optional[str] = None
    likes: Optional[str] = None
    missing: Optional[str] = None
    annoying: Optional[str] = None
    recommend: str
    created_at: datetime


class StatsResponse(BaseModel):
    total_users: int = 0
    active_today: int = 0
    active_week: int = 0
    active_month: int = 0
    button_clicks: Dict[str, int] = Field(default_factory=dict)
    all_users: List[UserStats] = Field(default_factory=list)
    feedback_stats: FeedbackStats = Field(default_factory=FeedbackStats)
    all_feedbacks: List[FeedbackEntry] = Field(default_factory=list)


def translate_clicks(raw: Dict[str, int]) -> Dict[str, int]:
    """Map raw callback tokens to button labels; tokens sharing a label are summed"""
    translated: Dict[str, int] = {}
    for token, count in raw.items():
        label = translate_button(token)
        translated[label] = translated.get(label, 0) + count
    return translated


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total else 0.0


async def collect_stats(store: Store, tz: tzinfo, now: Optional[datetime] = None) -> StatsResponse:
    """Active counts use rolling windows of 24 hours, 7 days and 30 days"""
    now = now or utcnow()

    users = await store.list_users_with_activity()
    counts = await store.feedback_counts()
    feedback = await store.list_feedback()

    return StatsResponse(
        total_users=await store.count_users(),
        active_today=await store.count_active_users(now - timedelta(days=1)),
        active_week=await store.count_active_users(now - timedelta(days=7)),
        active_month=await store.count_active_users(now - timedelta(days=30)),
        button_clicks=translate_clicks(await store.button_click_counts(now - CLICKS_WINDOW)),
        all_users=[
            UserStats(
                external_id=user.telegram_id,
                username=user.username,
                first_name=user.first_name,
                last_name=user.last_name,
                last_active=to_local(last_active or user.created_at, tz),
                join_date=to_local(user.created_at, tz),
            )
            for user, last_active in users
        ],
        feedback_stats=FeedbackStats(
            total=counts['total'],
            recommend_yes=counts['yes'],
            recommend_no=counts['no'],
            yes_percent=_percent(counts['yes'], counts['total']),
            no_percent=_percent(counts['no'], counts['total']),
        ),
        all_feedbacks=[
            FeedbackEntry(
                id=entry.id,
                external_id=telegram_id,
                username=username,
                likes=entry.what_likes,
                missing=entry.what_missing,
                annoying=entry.what_annoying,
                recommend=entry.recommend,
                created_at=to_local(entry.created_at, tz),
            )
            for entry, telegram_id, username in feedback
        ],
    )
