"""Transport-neutral inbound updates and outbound replies."""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from finbot.dialog.callbacks import CallbackCommand
from finbot.locales.translations import get_button

HTML = "HTML"


@dataclass(frozen=True)
class Button:
    label: str
    token: str


Keyboard = List[List[Button]]


def button(target: Union[str, CallbackCommand], label: Optional[str] = None) -> Button:
    """Inline button for a token or command; label defaults to the shared label table"""
    token = target.token() if isinstance(target, CallbackCommand) else target
    return Button(label or get_button(token), token)


@dataclass
class InboundUpdate:
    """A text message or a pressed inline button"""
    user_id: int
    chat_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    text: Optional[str] = None
    token: Optional[str] = None
    message_id: Optional[int] = None

    @property
    def is_callback(self) -> bool:
        return self.token is not None


@dataclass
class SendText:
    text: str
    keyboard: Optional[Keyboard] = None
    parse_mode: Optional[str] = HTML


@dataclass
class EditText:
    message_id: int
    text: str
    keyboard: Optional[Keyboard] = None
    parse_mode: Optional[str] = HTML


@dataclass
class EditMarkup:
    message_id: int
    keyboard: Optional[Keyboard] = None


@dataclass
class DeleteMessage:
    message_id: int


@dataclass
class SendDocument:
    filename: str
    content: bytes = field(repr=False)
    caption: Optional[str] = None


Outbound = Union[SendText, EditText, EditMarkup, DeleteMessage, SendDocument]
