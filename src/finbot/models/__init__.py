from finbot.models.base import (
    Base, ButtonClick, Category, CategoryType, Currency, Feedback, GlobalCategory,
    PaymentMethod, Saving, Transaction, User, UserActivity, UserCurrencySetting, Version,
    VersionRead,
)

__all__ = [
    'Base', 'ButtonClick', 'Category', 'CategoryType', 'Currency', 'Feedback',
    'GlobalCategory', 'PaymentMethod', 'Saving', 'Transaction', 'User', 'UserActivity',
    'UserCurrencySetting', 'Version', 'VersionRead',
]
