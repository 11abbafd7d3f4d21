from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from finbot.bot.adapter import MessagingAdapter


class DialogMiddleware(BaseMiddleware):
    def __init__(self, adapter: MessagingAdapter):
        self.adapter = adapter

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        data["adapter"] = self.adapter
        return await handler(event, data)
