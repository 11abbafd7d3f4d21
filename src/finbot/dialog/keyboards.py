"""Inline keyboards shared by the dialog flows."""
from typing import Iterable, List

from finbot.dialog.callbacks import (
    DeleteCategory, DepositSaving, EditCategory, EditSaving, EditTransaction, ExportReport,
    NewCategory, RenameCategory, SelectCategory, SetCurrency, SetNotifications, ShowReport,
    ChangeTransactionCategory, ClearSaving, DeleteSaving, RenameSaving, WithdrawSaving,
)
from finbot.dialog.messages import Keyboard, button
from finbot.models.base import Currency


def _rows(buttons: List, width: int = 2) -> Keyboard:
    return [buttons[i:i + width] for i in range(0, len(buttons), width)]


def main_menu() -> Keyboard:
    return [
        [button("start_transaction")],
        [button("show_stats"), button("show_savings")],
        [button("show_settings")],
    ]


def welcome_menu() -> Keyboard:
    return [[button("saving_tips"), button("start_transaction", "➕ Начать учет")]]


def back_to_menu() -> Keyboard:
    return [[button("main_menu")]]


def reminder_menu() -> Keyboard:
    return [[button("start_transaction")]]


def transaction_type_menu() -> Keyboard:
    return [
        [button("type_income"), button("type_expense")],
        [button("show_history")],
        [button("cancel")],
    ]


def category_picker(categories: Iterable) -> Keyboard:
    rows = _rows([button(SelectCategory(c.id), c.name) for c in categories])
    rows.append([button(NewCategory())])
    rows.append([button("cancel")])
    return rows


def skip(token: str) -> Keyboard:
    return [[button(token)], [button("cancel")]]


def cancel_only() -> Keyboard:
    return [[button("cancel")]]


# ============= HISTORY =============

def history_menu(transactions: Iterable) -> Keyboard:
    rows = _rows([button(EditTransaction(t.id), f"✏️ #{index}")
                  for index, t in enumerate(transactions, start=1)], width=5)
    rows.append([button("stats_back", "🔙 Назад")])
    return rows


def transaction_edit_menu() -> Keyboard:
    return [
        [button("edit_amount"), button("edit_category")],
        [button("edit_comment"), button("delete_transaction")],
        [button("show_history", "🔙 К истории")],
    ]


def transaction_category_picker(categories: Iterable, transaction_id: int) -> Keyboard:
    rows = _rows([button(ChangeTransactionCategory(c.id), c.name) for c in categories])
    rows.append([button(EditTransaction(transaction_id), "🔙 Назад")])
    return rows


# ============= REPORTS =============

def period_menu() -> Keyboard:
    return [
        [button(ShowReport('day')), button(ShowReport('week'))],
        [button(ShowReport('month')), button(ShowReport('year'))],
        [button("show_history")],
        [button("main_menu", "◀️ Назад")],
    ]


def report_actions(period: str) -> Keyboard:
    return [[button("stats_back"), button(ExportReport(period))]]


# ============= SAVINGS =============

def savings_menu() -> Keyboard:
    return [
        [button("create_saving"), button("add_to_saving")],
        [button("savings_stats"), button("manage_savings")],
        [button("main_menu", "◀️ Назад")],
    ]


def saving_picker(savings: Iterable, make_command) -> Keyboard:
    rows = [[button(make_command(s.id), f"💵 {s.name}")] for s in savings]
    rows.append([button("cancel")])
    return rows


def deposit_picker(savings: Iterable) -> Keyboard:
    return saving_picker(savings, DepositSaving)


def manage_savings_picker(savings: Iterable) -> Keyboard:
    rows = [[button(EditSaving(s.id), f"✏️ {s.name}")] for s in savings]
    rows.append([button("show_savings", "◀️ Назад")])
    return rows


def saving_actions(saving_id: int) -> Keyboard:
    return [
        [button(DepositSaving(saving_id)), button(WithdrawSaving(saving_id))],
        [button(RenameSaving(saving_id)), button(ClearSaving(saving_id))],
        [button(DeleteSaving(saving_id))],
        [button("manage_savings", "◀️ Назад")],
    ]


def back_to_savings() -> Keyboard:
    return [[button("manage_savings", "◀️ К списку копилок")], [button("show_savings", "💰 Накопления")]]


# ============= SETTINGS =============

def settings_menu() -> Keyboard:
    return [
        [button("notification_settings"), button("manage_categories")],
        [button("set_period_start"), button("currency_settings")],
        [button("support"), button("feedback")],
        [button("confirm_clear_data")],
        [button("main_menu", "◀️ Назад")],
    ]


def notifications_menu() -> Keyboard:
    return [
        [button(SetNotifications(True)), button(SetNotifications(False))],
        [button("settings_back")],
    ]


def currency_menu(current: str) -> Keyboard:
    rows = []
    for currency in Currency:
        command = SetCurrency(currency.value)
        label = button(command).label + (" ✅" if currency.value == current else "")
        rows.append([button(command, label)])
    rows.append([button("settings_back", "◀️ Назад")])
    return rows


def confirm_clear_menu() -> Keyboard:
    return [[button("clear_data")], [button("settings_back", "◀️ Отмена")]]


def categories_menu(categories: Iterable) -> Keyboard:
    rows = _rows([button(EditCategory(c.id), c.name) for c in categories])
    rows.append([button(NewCategory('income')), button(NewCategory('expense'))])
    rows.append([button("settings_back")])
    return rows


def category_actions(category_id: int) -> Keyboard:
    return [
        [button(RenameCategory(category_id), "✏️ Переименовать"),
         button(DeleteCategory(category_id), "🗑️ Удалить")],
        [button("manage_categories", "◀️ Назад")],
    ]


def support_menu() -> Keyboard:
    return [
        [button("write_support"), button("faq")],
        [button("settings_back", "◀️ Назад")],
    ]


def back_to_support() -> Keyboard:
    return [[button("support", "◀️ Назад к поддержке")]]


# ============= FEEDBACK =============

def feedback_recommend() -> Keyboard:
    return [
        [button("feedback_recommend_yes"), button("feedback_recommend_no")],
        [button("feedback_cancel")],
    ]


def feedback_confirm() -> Keyboard:
    return [[button("feedback_submit"), button("feedback_cancel")]]


def feedback_cancel() -> Keyboard:
    return [[button("feedback_cancel")]]
