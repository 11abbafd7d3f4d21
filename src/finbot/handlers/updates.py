"""
aiogram entry points. Every message and every button press is turned into
an InboundUpdate and handed to the messaging adapter.
"""
import asyncio
import logging

from aiogram import Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types import CallbackQuery, Message

from finbot.bot.adapter import MessagingAdapter
from finbot.dialog.messages import InboundUpdate

logger = logging.getLogger(__name__)

router = Router(name="updates")


@router.message()
async def on_message(message: Message, adapter: MessagingAdapter):
    """Text messages; photos, stickers and the like arrive with text=None"""
    user = message.from_user
    if user is None:
        return
    await adapter.dispatch(InboundUpdate(
        user_id=user.id,
        chat_id=message.chat.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        text=message.text,
        message_id=message.message_id,
    ))


@router.callback_query()
async def on_callback(callback: CallbackQuery, adapter: MessagingAdapter):
    # the answer goes out concurrently; dispatch must not wait behind it
    answer = asyncio.ensure_future(callback.answer())

    user = callback.from_user
    message = callback.message
    try:
        await adapter.dispatch(InboundUpdate(
            user_id=user.id,
            chat_id=message.chat.id if message else user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            token=callback.data or '',
            message_id=message.message_id if message else None,
        ))
    finally:
        try:
            await answer
        except TelegramAPIError as e:
            logger.debug(f"Callback answer failed: {e}")
