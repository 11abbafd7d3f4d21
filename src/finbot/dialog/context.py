"""Everything a flow handler needs while processing one update."""
from datetime import tzinfo
from typing import List, Optional

from finbot.dialog import keyboards
from finbot.dialog.messages import (
    HTML, EditText, InboundUpdate, Keyboard, Outbound, SendDocument, SendText,
)
from finbot.dialog.state import DialogState
from finbot.locales.translations import get_text
from finbot.models.base import User
from finbot.services.finance_service import FinanceService
from finbot.utils.formatting import format_money


class DialogContext:
    def __init__(
        self,
        update: InboundUpdate,
        user: User,
        service: FinanceService,
        state: DialogState,
        tz: tzinfo,
        currency: str = 'RUB',
    ):
        self.update = update
        self.user = user
        self.service = service
        self.state = state
        self.tz = tz
        self.currency = currency
        self.replies: List[Outbound] = []

    def reply(self, text: str, keyboard: Optional[Keyboard] = None, parse_mode: Optional[str] = HTML):
        self.replies.append(SendText(text, keyboard, parse_mode))

    def edit(self, text: str, keyboard: Optional[Keyboard] = None, parse_mode: Optional[str] = HTML):
        """Replace the pressed message when there is one, otherwise send a new message"""
        if self.update.is_callback and self.update.message_id is not None:
            self.replies.append(EditText(self.update.message_id, text, keyboard, parse_mode))
        else:
            self.reply(text, keyboard, parse_mode)

    def document(self, filename: str, content: bytes, caption: Optional[str] = None):
        self.replies.append(SendDocument(filename, content, caption))

    def reset(self) -> DialogState:
        self.state = DialogState()
        return self.state

    def money(self, amount) -> str:
        return format_money(amount, self.currency)

    def main_menu(self, text: Optional[str] = None):
        self.reply(text or get_text('choose_action'), keyboards.main_menu())

    def expired(self):
        """Stale button of a flow that is no longer running"""
        self.reset()
        self.reply(get_text('session_expired'), keyboards.main_menu())
