import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError
from aiogram.methods import EditMessageText, SendMessage

from conftest import USER_ID
from finbot.bot.adapter import MessagingAdapter
from finbot.bot.factory import BotFactory
from finbot.bot.transport import AiogramTransport, render_keyboard
from finbot.core.config import Settings
from finbot.core.exceptions import TransportError
from finbot.dialog.messages import Button, InboundUpdate, SendDocument
from finbot.handlers.updates import router as updates_router
from finbot.locales.translations import get_text


class FakeBot:
    """Just enough of aiogram's Bot for the transport"""

    def __init__(self):
        self.sent = []
        self.edit_error = None
        self.send_error = None

    async def send_message(self, chat_id, text, reply_markup=None, parse_mode=None):
        if self.send_error:
            raise self.send_error
        self.sent.append(('send_message', chat_id, text))

    async def edit_message_text(self, text, chat_id, message_id, reply_markup=None, parse_mode=None):
        if self.edit_error:
            raise self.edit_error
        self.sent.append(('edit_message_text', chat_id, text))

    async def send_document(self, chat_id, document, caption=None):
        self.sent.append(('send_document', chat_id, document.filename))


def bad_request(message):
    return TelegramBadRequest(EditMessageText(text="x", chat_id=1, message_id=2), message)


def test_render_keyboard():
    markup = render_keyboard([[Button("💸 Добавить операцию", "start_transaction")]])

    assert markup.inline_keyboard[0][0].callback_data == "start_transaction"
    assert render_keyboard(None) is None


@pytest.mark.asyncio
async def test_edit_falls_back_to_new_message():
    bot = FakeBot()
    bot.edit_error = bad_request("Bad Request: message to edit not found")

    await AiogramTransport(bot).edit_text(1, 2, "привет")

    assert bot.sent == [('send_message', 1, "привет")]


@pytest.mark.asyncio
async def test_unchanged_edit_is_ignored():
    bot = FakeBot()
    bot.edit_error = bad_request("Bad Request: message is not modified")

    await AiogramTransport(bot).edit_text(1, 2, "привет")

    assert bot.sent == []


@pytest.mark.asyncio
async def test_api_errors_become_transport_errors():
    bot = FakeBot()
    bot.send_error = TelegramForbiddenError(SendMessage(chat_id=1, text="x"), "bot was blocked by the user")

    with pytest.raises(TransportError):
        await AiogramTransport(bot).send_text(1, "привет")


@pytest.mark.asyncio
async def test_closed_transport_drops_messages():
    bot = FakeBot()
    transport = AiogramTransport(bot)
    transport.close()

    await transport.send_text(1, "привет")
    await transport.deliver(1, SendDocument("report.pdf", b"%PDF"))

    assert bot.sent == []


@pytest.mark.asyncio
async def test_adapter_delivers_replies_in_order(user, engine, transport):
    adapter = MessagingAdapter(engine, transport)

    delivered = await adapter.dispatch(InboundUpdate(user_id=USER_ID, chat_id=USER_ID, text="/cancel"))

    assert delivered == 2
    assert transport.texts(USER_ID) == [get_text('cancelled'), get_text('choose_action')]


@pytest.mark.asyncio
async def test_adapter_stops_after_failed_delivery(user, engine, transport):
    adapter = MessagingAdapter(engine, transport)
    transport.failing.add(USER_ID)

    delivered = await adapter.dispatch(InboundUpdate(user_id=USER_ID, chat_id=USER_ID, text="/cancel"))

    assert delivered == 0
    assert transport.calls == []


@pytest.mark.asyncio
async def test_dispatcher_routes_updates_through_adapter(engine, transport):
    adapter = MessagingAdapter(engine, transport)

    dp = BotFactory(Settings(_env_file=None)).create_dispatcher(adapter)

    assert updates_router in dp.sub_routers
    assert [m.adapter for m in dp.update.middleware] == [adapter]
