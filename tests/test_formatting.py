from decimal import Decimal

import pytest

from finbot.core.exceptions import ValidationError
from finbot.locales.translations import get_text, translate_button
from finbot.utils.formatting import (
    escape, format_money, parse_amount, parse_day_of_month, progress_bar, strip_emoji,
)


def test_format_money():
    assert format_money(Decimal('1500'), 'RUB') == "1500.00 ₽"
    assert format_money(Decimal('1500'), 'USD') == "$1500.00"
    assert format_money(Decimal('12.5'), 'EUR') == "€12.50"


@pytest.mark.parametrize("text, expected", [
    ("1500", Decimal('1500.00')),
    ("1 500,50", Decimal('1500.50')),
    ("99.999", Decimal('100.00')),
    ("250₽", Decimal('250.00')),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "0", "-5", "0.001", "1e20", "nan"])
def test_parse_amount_rejects(text):
    with pytest.raises(ValidationError):
        parse_amount(text)


def test_parse_day_of_month():
    assert parse_day_of_month(" 15 ") == 15
    for bad in ("0", "32", "first", None):
        with pytest.raises(ValidationError):
            parse_day_of_month(bad)


def test_progress_bar():
    assert progress_bar(0) == "⬜" * 10 + " 0.0%"
    assert progress_bar(50) == "🟩" * 5 + "⬜" * 5 + " 50.0%"
    over = progress_bar(130)
    assert over.startswith("🟩" * 10 + "🔴")
    assert over.endswith(" 130.0%")


def test_strip_emoji_and_escape():
    assert strip_emoji("🍎 Продукты") == "Продукты"
    assert escape("<b>&") == "&lt;b&gt;&amp;"
    assert escape(None) == ""


def test_button_labels():
    assert translate_button("start_transaction") == "💸 Добавить операцию"
    assert translate_button("edit_cat_7") == "✏️ Редактировать категорию"
    assert translate_button("edit_42") == "✏️ Редактировать операцию"
    assert translate_button("cat_3") == "📂 Категория"
    assert translate_button("mystery") == "mystery"


def test_get_text_formats():
    assert get_text('enter_amount', category="Еда") == "💰 Введите сумму для «Еда»:"
    assert get_text('no_such_key') == 'no_such_key'
