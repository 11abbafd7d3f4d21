from typing import List
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.pool import StaticPool

from finbot.bot.transport import Transport
from finbot.core.database import Store
from finbot.core.exceptions import TransportError
from finbot.dialog.engine import create_engine
from finbot.dialog.messages import EditText, InboundUpdate, SendText
from finbot.services.finance_service import FinanceService

TZ = ZoneInfo("Europe/Moscow")
USER_ID = 1001


class FakeTransport(Transport):
    """Records every outbound call; chats listed in `failing` raise TransportError"""

    def __init__(self):
        self.calls = []
        self.failing = set()

    def _record(self, method, chat_id, **payload):
        if chat_id in self.failing:
            raise TransportError(f"chat {chat_id} unreachable")
        self.calls.append((method, chat_id, payload))

    async def send_text(self, chat_id, text, keyboard=None, parse_mode="HTML"):
        self._record('send_text', chat_id, text=text, keyboard=keyboard)

    async def edit_text(self, chat_id, message_id, text, keyboard=None, parse_mode="HTML"):
        self._record('edit_text', chat_id, message_id=message_id, text=text, keyboard=keyboard)

    async def edit_markup(self, chat_id, message_id, keyboard=None):
        self._record('edit_markup', chat_id, message_id=message_id, keyboard=keyboard)

    async def delete_message(self, chat_id, message_id):
        self._record('delete_message', chat_id, message_id=message_id)

    async def send_document(self, chat_id, filename, content, caption=None):
        self._record('send_document', chat_id, filename=filename, content=content, caption=caption)

    def texts(self, chat_id=None) -> List[str]:
        return [payload['text'] for method, chat, payload in self.calls
                if 'text' in payload and (chat_id is None or chat == chat_id)]


class Chat:
    """Drives the dialog engine as a single user would"""

    def __init__(self, engine, user_id: int = USER_ID):
        self.engine = engine
        self.user_id = user_id

    async def send(self, text: str):
        return await self.engine.handle(InboundUpdate(
            user_id=self.user_id, chat_id=self.user_id, username="tester", first_name="Test",
            text=text, message_id=10,
        ))

    async def press(self, token: str, message_id: int = 11):
        return await self.engine.handle(InboundUpdate(
            user_id=self.user_id, chat_id=self.user_id, username="tester", first_name="Test",
            token=token, message_id=message_id,
        ))

    @property
    def state(self):
        return self.engine.dialogs.get(self.user_id)


def texts(replies) -> List[str]:
    return [reply.text for reply in replies if isinstance(reply, (SendText, EditText))]


def tokens(reply) -> List[str]:
    return [button.token for row in (reply.keyboard or []) for button in row]


@pytest.fixture
async def store():
    store = Store(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await store.create_tables()
    yield store
    await store.close()


@pytest.fixture
async def user(store):
    user, _ = await store.get_or_create_user(USER_ID, "tester", "Test", "User")
    await store.seed_categories(user.id)
    return user


@pytest.fixture
def service(store, user):
    return FinanceService(store, user)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def engine(store):
    return create_engine(store, TZ)


@pytest.fixture
def chat(engine):
    return Chat(engine)
