import pytest

from finbot.dialog.callbacks import (
    Action, ChangeTransactionCategory, DeleteSaving, DepositSaving, EditCategory, EditSaving,
    EditTransaction, ExportReport, FeedbackRecommend, NewCategory, RenameSaving,
    SelectCategory, SelectType, SetCurrency, SetNotifications, ShowReport, UnknownCommand,
    parse_callback,
)


@pytest.mark.parametrize("token, expected", [
    ("start_transaction", Action("start_transaction")),
    ("type_income", SelectType("income")),
    ("cat_12", SelectCategory(12)),
    ("other_cat", NewCategory()),
    ("new_cat_expense", NewCategory("expense")),
    ("edit_cat_3", EditCategory(3)),
    ("edit_saving_5", EditSaving(5)),
    ("edit_99", EditTransaction(99)),
    ("change_category_4", ChangeTransactionCategory(4)),
    ("saving_add_2", DepositSaving(2)),
    ("stats_week", ShowReport("week")),
    ("export_month", ExportReport("month")),
    ("set_currency_USD", SetCurrency("USD")),
    ("disable_notifications", SetNotifications(False)),
    ("feedback_recommend_yes", FeedbackRecommend(True)),
])
def test_parse(token, expected):
    command = parse_callback(token)
    assert command == expected
    assert command.token() == token


@pytest.mark.parametrize("token, expected", [
    ("add_to_saving_2", DepositSaving(2)),
    ("rename_saving_8", RenameSaving(8)),
    ("delete_saving_8", DeleteSaving(8)),
    ("export_report_year", ExportReport("year")),
    ("savings_list", Action("manage_savings")),
    ("period_settings", Action("set_period_start")),
])
def test_legacy_tokens(token, expected):
    assert parse_callback(token) == expected


@pytest.mark.parametrize("token", ["", "cat_", "cat_abc", "stats_decade", "type_saving", "drop table"])
def test_unknown_tokens_never_raise(token):
    command = parse_callback(token)
    assert isinstance(command, UnknownCommand)
