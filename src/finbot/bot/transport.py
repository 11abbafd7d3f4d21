"""
Outbound side of the messaging platform.

`Transport` is what the adapter and the scheduler talk to; `AiogramTransport`
implements it on top of an aiogram Bot.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.types import BufferedInputFile, InlineKeyboardButton, InlineKeyboardMarkup

from finbot.core.exceptions import TransportError
from finbot.dialog.messages import (
    HTML, DeleteMessage, EditMarkup, EditText, Keyboard, Outbound, SendDocument, SendText,
)

logger = logging.getLogger(__name__)


class Transport(ABC):
    @abstractmethod
    async def send_text(self, chat_id: int, text: str, keyboard: Optional[Keyboard] = None,
                        parse_mode: Optional[str] = HTML):
        ...

    @abstractmethod
    async def edit_text(self, chat_id: int, message_id: int, text: str,
                        keyboard: Optional[Keyboard] = None, parse_mode: Optional[str] = HTML):
        ...

    @abstractmethod
    async def edit_markup(self, chat_id: int, message_id: int, keyboard: Optional[Keyboard] = None):
        ...

    @abstractmethod
    async def delete_message(self, chat_id: int, message_id: int):
        ...

    @abstractmethod
    async def send_document(self, chat_id: int, filename: str, content: bytes,
                            caption: Optional[str] = None):
        ...

    async def deliver(self, chat_id: int, outbound: Outbound):
        if isinstance(outbound, SendText):
            await self.send_text(chat_id, outbound.text, outbound.keyboard, outbound.parse_mode)
        elif isinstance(outbound, EditText):
            await self.edit_text(chat_id, outbound.message_id, outbound.text,
                                 outbound.keyboard, outbound.parse_mode)
        elif isinstance(outbound, EditMarkup):
            await self.edit_markup(chat_id, outbound.message_id, outbound.keyboard)
        elif isinstance(outbound, DeleteMessage):
            await self.delete_message(chat_id, outbound.message_id)
        elif isinstance(outbound, SendDocument):
            await self.send_document(chat_id, outbound.filename, outbound.content, outbound.caption)
        else:
            raise TypeError(f"Unsupported outbound message: {outbound!r}")


def render_keyboard(keyboard: Optional[Keyboard]) -> Optional[InlineKeyboardMarkup]:
    if not keyboard:
        return None
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=b.label, callback_data=b.token) for b in row]
        for row in keyboard
    ])


class AiogramTransport(Transport):
    def __init__(self, bot: Bot):
        self.bot = bot
        self.closed = False

    def close(self):
        """Stop sending; anything attempted afterwards is dropped"""
        self.closed = True

    async def send_text(self, chat_id, text, keyboard=None, parse_mode=HTML):
        if self._skip('send_text', chat_id):
            return
        try:
            await self.bot.send_message(chat_id, text, reply_markup=render_keyboard(keyboard),
                                        parse_mode=parse_mode)
        except TelegramAPIError as e:
            raise TransportError(f"send_message to {chat_id} failed: {e}") from e

    async def edit_text(self, chat_id, message_id, text, keyboard=None, parse_mode=HTML):
        if self._skip('edit_text', chat_id):
            return
        try:
            await self.bot.edit_message_text(text=text, chat_id=chat_id, message_id=message_id,
                                             reply_markup=render_keyboard(keyboard),
                                             parse_mode=parse_mode)
        except TelegramBadRequest as e:
            if "message is not modified" in str(e):
                return
            # too old or not editable: send the text as a new message
            logger.debug(f"Edit of {message_id} failed ({e}), sending a new message")
            await self.send_text(chat_id, text, keyboard, parse_mode)
        except TelegramAPIError as e:
            raise TransportError(f"edit_message_text in {chat_id} failed: {e}") from e

    async def edit_markup(self, chat_id, message_id, keyboard=None):
        if self._skip('edit_markup', chat_id):
            return
        try:
            await self.bot.edit_message_reply_markup(chat_id=chat_id, message_id=message_id,
                                                     reply_markup=render_keyboard(keyboard))
        except TelegramAPIError as e:
            raise TransportError(f"edit_message_reply_markup in {chat_id} failed: {e}") from e

    async def delete_message(self, chat_id, message_id):
        if self._skip('delete_message', chat_id):
            return
        try:
            await self.bot.delete_message(chat_id, message_id)
        except TelegramAPIError as e:
            raise TransportError(f"delete_message in {chat_id} failed: {e}") from e

    async def send_document(self, chat_id, filename, content, caption=None):
        if self._skip('send_document', chat_id):
            return
        try:
            await self.bot.send_document(chat_id, BufferedInputFile(content, filename=filename),
                                         caption=caption)
        except TelegramAPIError as e:
            raise TransportError(f"send_document to {chat_id} failed: {e}") from e

    def _skip(self, operation: str, chat_id: int) -> bool:
        if self.closed:
            logger.debug(f"Transport closed, dropping {operation} to {chat_id}")
        return self.closed
