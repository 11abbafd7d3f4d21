"""Per-user dialog state, kept in memory only."""
import asyncio
import enum
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional


class Step(str, enum.Enum):
    IDLE = "idle"

    # add transaction
    SELECT_TYPE = "select_type"
    SELECT_CATEGORY = "select_category"
    ENTER_AMOUNT = "enter_amount"
    ENTER_COMMENT = "enter_comment"
    ENTER_NEW_CATEGORY_NAME = "enter_new_category_name"

    # savings
    CREATE_SAVING_NAME = "create_saving_name"
    CREATE_SAVING_GOAL = "create_saving_goal"
    ENTER_SAVING_AMOUNT = "enter_saving_amount"
    ENTER_SAVING_WITHDRAW_AMOUNT = "enter_saving_withdraw_amount"
    RENAME_SAVING = "rename_saving"

    # categories
    RENAME_CATEGORY = "rename_category"

    # transaction edit
    EDIT_TRANSACTION = "edit_transaction"
    EDIT_TRANSACTION_AMOUNT = "edit_transaction_amount"
    EDIT_TRANSACTION_COMMENT = "edit_transaction_comment"
    EDIT_TRANSACTION_CATEGORY = "edit_transaction_category"

    # settings
    ENTER_PERIOD_START_DAY = "enter_period_start_day"

    # feedback
    FEEDBACK_Q1 = "feedback_q1"
    FEEDBACK_Q2 = "feedback_q2"
    FEEDBACK_Q3 = "feedback_q3"
    FEEDBACK_Q4 = "feedback_q4"
    FEEDBACK_CONFIRM = "feedback_confirm"


@dataclass
class DialogState:
    step: Step = Step.IDLE
    temp_id: Optional[int] = None  # saving, category or transaction being edited
    temp_category_id: Optional[int] = None
    temp_category_name: Optional[str] = None
    temp_amount: Optional[Decimal] = None
    temp_type: Optional[str] = None
    temp_comment: Optional[str] = None
    temp_name: Optional[str] = None
    return_to: Optional[str] = None
    feedback_data: Dict[str, str] = field(default_factory=dict)

    @property
    def is_idle(self) -> bool:
        return self.step == Step.IDLE


class _UserLock:
    __slots__ = ('lock', 'holders')

    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class DialogStore:
    """Dialog states keyed by external user id, with one lock per user.

    The engine holds a user's lock for the whole processing of one update so
    updates of the same user apply in arrival order. A lock lives only while
    some update of that user is running or waiting for it.
    """

    def __init__(self):
        self._states: Dict[int, DialogState] = {}
        self._locks: Dict[int, _UserLock] = {}

    @asynccontextmanager
    async def lock(self, user_id: int):
        entry = self._locks.get(user_id)
        if entry is None:
            entry = self._locks[user_id] = _UserLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if not entry.holders:
                del self._locks[user_id]

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    def get(self, user_id: int) -> DialogState:
        state = self._states.get(user_id)
        if state is None:
            state = self._states[user_id] = DialogState()
        return state

    def set(self, user_id: int, state: DialogState):
        self._states[user_id] = state

    def reset(self, user_id: int) -> DialogState:
        state = self._states[user_id] = DialogState()
        return state
