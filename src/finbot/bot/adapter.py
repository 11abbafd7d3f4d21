import logging

from finbot.bot.transport import Transport
from finbot.core.exceptions import TransportError
from finbot.dialog.engine import DialogEngine
from finbot.dialog.messages import InboundUpdate

logger = logging.getLogger(__name__)


class MessagingAdapter:
    """Runs an update through the dialog engine and delivers the replies in order"""

    def __init__(self, engine: DialogEngine, transport: Transport):
        self.engine = engine
        self.transport = transport

    async def dispatch(self, update: InboundUpdate) -> int:
        """Returns how many replies were delivered"""
        replies = await self.engine.handle(update)

        delivered = 0
        for outbound in replies:
            try:
                await self.transport.deliver(update.chat_id, outbound)
            except TransportError as e:
                logger.warning(
                    f"Delivery failed, dropping {len(replies) - delivered} replies: {e}",
                    extra={'user_id': update.user_id, 'operation': 'deliver'},
                )
                break
            delivered += 1
        return delivered
