"""
Callback tokens attached to inline buttons, parsed into typed commands.

Each command knows how to render its own token, so keyboards and the parser
never disagree about the wire format.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional


class CallbackCommand:
    """Base of all parsed callback tokens"""

    def token(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Action(CallbackCommand):
    """Parameterless navigation and confirmation buttons"""
    name: str

    def token(self) -> str:
        return self.name


@dataclass(frozen=True)
class SelectType(CallbackCommand):
    kind: str  # income | expense

    def token(self) -> str:
        return f"type_{self.kind}"


@dataclass(frozen=True)
class SelectCategory(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"cat_{self.id}"


@dataclass(frozen=True)
class NewCategory(CallbackCommand):
    """New category; kind None means the type of the running transaction flow"""
    kind: Optional[str] = None

    def token(self) -> str:
        return f"new_cat_{self.kind}" if self.kind else "other_cat"


@dataclass(frozen=True)
class EditCategory(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"edit_cat_{self.id}"


@dataclass(frozen=True)
class RenameCategory(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"rename_cat_{self.id}"


@dataclass(frozen=True)
class DeleteCategory(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"delete_cat_{self.id}"


@dataclass(frozen=True)
class EditTransaction(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"edit_{self.id}"


@dataclass(frozen=True)
class ChangeTransactionCategory(CallbackCommand):
    category_id: int

    def token(self) -> str:
        return f"change_category_{self.category_id}"


@dataclass(frozen=True)
class EditSaving(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"edit_saving_{self.id}"


@dataclass(frozen=True)
class DepositSaving(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"saving_add_{self.id}"


@dataclass(frozen=True)
class WithdrawSaving(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"saving_withdraw_{self.id}"


@dataclass(frozen=True)
class RenameSaving(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"saving_rename_{self.id}"


@dataclass(frozen=True)
class ClearSaving(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"clear_saving_{self.id}"


@dataclass(frozen=True)
class DeleteSaving(CallbackCommand):
    id: int

    def token(self) -> str:
        return f"saving_delete_{self.id}"


@dataclass(frozen=True)
class ShowReport(CallbackCommand):
    period: str  # day | week | month | year

    def token(self) -> str:
        return f"stats_{self.period}"


@dataclass(frozen=True)
class ExportReport(CallbackCommand):
    period: str

    def token(self) -> str:
        return f"export_{self.period}"


@dataclass(frozen=True)
class SetCurrency(CallbackCommand):
    code: str

    def token(self) -> str:
        return f"set_currency_{self.code}"


@dataclass(frozen=True)
class SetNotifications(CallbackCommand):
    enabled: bool

    def token(self) -> str:
        return "enable_notifications" if self.enabled else "disable_notifications"


@dataclass(frozen=True)
class FeedbackRecommend(CallbackCommand):
    recommend: bool

    def token(self) -> str:
        return "feedback_recommend_yes" if self.recommend else "feedback_recommend_no"


@dataclass(frozen=True)
class UnknownCommand(CallbackCommand):
    raw: str

    def token(self) -> str:
        return self.raw


ACTIONS = frozenset({
    'start_transaction', 'show_stats', 'show_savings', 'show_settings', 'main_menu', 'cancel',
    'skip_comment', 'skip_saving_goal', 'show_history', 'stats_back',
    'edit_amount', 'edit_comment', 'edit_category', 'delete_transaction',
    'create_saving', 'add_to_saving', 'savings_stats', 'manage_savings',
    'notification_settings', 'manage_categories', 'settings_back', 'currency_settings',
    'set_period_start', 'confirm_clear_data', 'clear_data',
    'support', 'write_support', 'faq', 'saving_tips',
    'feedback', 'feedback_submit', 'feedback_cancel',
})

# Legacy tokens still attached to buttons of old messages
ALIASES = {
    'savings_list': 'manage_savings',
    'period_settings': 'set_period_start',
}

_ID = r'(\d{1,18})'
_PATTERNS = [
    (re.compile(r'^type_(income|expense)$'), SelectType),
    (re.compile(r'^stats_(day|week|month|year)$'), ShowReport),
    (re.compile(r'^export_(?:report_)?(day|week|month|year)$'), ExportReport),
    (re.compile(r'^set_currency_([A-Z]{3})$'), SetCurrency),
    (re.compile(r'^new_cat_(income|expense)$'), NewCategory),
    (re.compile(rf'^cat_{_ID}$'), lambda value: SelectCategory(int(value))),
    (re.compile(rf'^edit_cat_{_ID}$'), lambda value: EditCategory(int(value))),
    (re.compile(rf'^rename_cat_{_ID}$'), lambda value: RenameCategory(int(value))),
    (re.compile(rf'^delete_cat_{_ID}$'), lambda value: DeleteCategory(int(value))),
    (re.compile(rf'^change_category_{_ID}$'), lambda value: ChangeTransactionCategory(int(value))),
    (re.compile(rf'^edit_saving_{_ID}$'), lambda value: EditSaving(int(value))),
    (re.compile(rf'^(?:saving_add|add_to_saving)_{_ID}$'), lambda value: DepositSaving(int(value))),
    (re.compile(rf'^saving_withdraw_{_ID}$'), lambda value: WithdrawSaving(int(value))),
    (re.compile(rf'^(?:saving_rename|rename_saving)_{_ID}$'), lambda value: RenameSaving(int(value))),
    (re.compile(rf'^clear_saving_{_ID}$'), lambda value: ClearSaving(int(value))),
    (re.compile(rf'^(?:saving_delete|delete_saving)_{_ID}$'), lambda value: DeleteSaving(int(value))),
    (re.compile(rf'^edit_{_ID}$'), lambda value: EditTransaction(int(value))),
]

_FLAGS: Dict[str, CallbackCommand] = {
    'other_cat': NewCategory(),
    'enable_notifications': SetNotifications(True),
    'disable_notifications': SetNotifications(False),
    'feedback_recommend_yes': FeedbackRecommend(True),
    'feedback_recommend_no': FeedbackRecommend(False),
}


def parse_callback(token: str) -> CallbackCommand:
    """Turn a raw callback token into a command; never raises"""
    token = (token or '').strip()
    token = ALIASES.get(token, token)

    if token in ACTIONS:
        return Action(token)
    if token in _FLAGS:
        return _FLAGS[token]

    for pattern, factory in _PATTERNS:
        match = pattern.match(token)
        if match:
            return factory(match.group(1))

    return UnknownCommand(token)

