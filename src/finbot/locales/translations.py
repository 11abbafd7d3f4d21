# Localization dictionary for the finance bot
translations = {
    'RU': {
        # General
        'welcome': (
            "👋 <b>Привет! Я ваш финансовый помощник!</b>\n\n"
            "📌 <i>Вот что я умею:</i>\n\n"
            "➕ <b>Добавить операцию</b> - учет доходов и расходов\n"
            "💰 <b>Пополнить копилку</b> - пополнение ваших накоплений\n"
            "📊 <b>Статистика</b> - подробные отчеты и аналитика\n"
            "💵 <b>Накопления</b> - управление сберегательными целями\n"
            "⚙️ <b>Настройки</b> - персонализация бота"
        ),
        'help': (
            "📚 <b>Доступные команды:</b>\n\n"
            "/start - Начать работу\n"
            "/menu - Главное меню\n"
            "/cancel - Отменить текущее действие\n"
            "/feedback - Оставить отзыв\n"
            "/help - Эта справка"
        ),
        'choose_action': "🤔 Выберите действие:",
        'whats_next': "🎉 Что дальше?",
        'cancelled': "🚫 Действие отменено",
        'generic_error': "❌ Произошла ошибка. Попробуйте еще раз.",
        'session_expired': "⚠️ Сессия устарела. Начните действие заново.",
        'not_found': "⚠️ Запись не найдена.",
        'text_expected': "✍️ Пожалуйста, отправьте текстовое сообщение или нажмите /cancel.",

        # Transactions
        'select_type': "💸 Выберите действие:",
        'select_category': "📂 Выберите категорию:",
        'no_categories': "😔 Категорий этого типа пока нет. Создайте новую!",
        'enter_amount': "💰 Введите сумму для «{category}»:",
        'invalid_amount': "⚠️ Введите корректную сумму (например, 1500):",
        'enter_comment': "💬 Добавьте комментарий или нажмите «Пропустить»:",
        'income_added': "✅ Доход: {category}, {amount}",
        'expense_added': "✅ Расход: {category}, {amount}",
        'transaction_added': "🎉 Операция добавлена! Что дальше?",

        # History and edit
        'history_title': "📜 <b>История операций</b>\n\n",
        'history_empty': "📜 За последний месяц операций нет.",
        'history_item': (
            "{icon} <b>{kind}</b> · {date}\n"
            "┣ Категория: {category}\n"
            "┣ Сумма: <code>{amount}</code>\n"
        ),
        'history_comment': "┣ Комментарий: {comment}\n",
        'transaction_details': (
            "✏️ <b>Редактирование операции</b>\n\n"
            "{icon} {kind} · {date}\n"
            "Категория: {category}\n"
            "Сумма: <code>{amount}</code>\n"
            "Комментарий: {comment}"
        ),
        'enter_new_amount': "💰 Введите новую сумму:",
        'enter_new_comment': "💬 Введите новый комментарий:",
        'select_new_category': "📂 Выберите новую категорию:",
        'transaction_updated': "✅ Операция обновлена",
        'transaction_deleted': "🗑 Операция удалена",

        # Categories
        'enter_category_name': "✨ Введите название новой категории:",
        'category_created': "✅ Категория «{name}» создана",
        'category_exists': "⚠️ Категория с таким названием уже есть. Введите другое:",
        'empty_name': "⚠️ Название не может быть пустым. Введите название:",
        'manage_categories': "📝 <b>Категории</b>\n\nВыбери категорию для редактирования:",
        'no_user_categories': "😔 У вас пока нет категорий. Создайте новую!",
        'category_details': "📝 <b>Категория:</b> {name}\n<b>Тип:</b> {kind}\n\nЧто сделать?",
        'enter_category_new_name': "✏️ Введите новое название категории:",
        'category_renamed': "✅ Категория переименована в «{name}»",
        'category_deleted': "🗑 Категория удалена",
        'category_in_use': "⚠️ Нельзя удалить категорию, связанную с транзакциями!",

        # Savings
        'savings_title': "💵 <b>Ваши копилки</b>\n\n",
        'savings_empty': "У вас пока нет копилок. Создайте первую!",
        'saving_line_goal': (
            "🔹 <b>{name}</b>\n"
            "┣ Накоплено: <b>{amount}</b>\n"
            "┣ Цель: <b>{goal}</b>\n"
            "┗ Прогресс: {progress}\n\n"
        ),
        'saving_line': "🔹 <b>{name}</b>\n┗ Накоплено: <b>{amount}</b>\n\n",
        'savings_stats_title': "📊 <b>Статистика копилок</b>\n\n",
        'savings_stats_total': "💰 Всего накоплено: <b>{total}</b>\n🎯 Общая цель: <b>{goal}</b>",
        'no_goal_savings': "Нет копилок с целью. Установите цель, чтобы следить за прогрессом!\n\n",
        'no_savings_to_deposit': (
            "😔 У вас пока нет копилок для пополнения. Создайте одну в разделе «Накопления»!"
        ),
        'no_savings_to_edit': "😔 У вас пока нет копилок для редактирования.",
        'select_saving_deposit': "🎯 Выберите копилку для пополнения:",
        'manage_savings': "✏️ <b>Редактирование копилок</b>\n\nВыберите копилку:",
        'saving_details': "📌 <b>{name}</b>\nТекущая сумма: {amount}",
        'saving_details_goal': "\nЦель: {goal} ({progress:.1f}%)",
        'saving_details_comment': "\nКомментарий: {comment}",
        'enter_saving_name': "🏷 Введите название новой копилки:",
        'enter_saving_goal': "🎯 Введите цель (сумму) или нажмите «Пропустить»:",
        'invalid_goal': "⚠️ Введите корректную сумму цели (например, 50000) или нажмите «Пропустить»:",
        'saving_exists': "⚠️ Копилка с таким названием уже есть. Введите другое название:",
        'saving_created': "✅ Копилка «{name}» создана!",
        'enter_deposit_amount': "💰 Введите сумму пополнения для «{name}»:",
        'enter_withdraw_amount': "➖ Введите сумму для снятия из «{name}» (доступно {amount}):",
        'saving_deposited': "✅ Копилка «{name}» пополнена на {amount}. Баланс: {balance}",
        'saving_withdrawn': "✅ Из копилки «{name}» снято {amount}. Баланс: {balance}",
        'insufficient_funds': "⚠️ Недостаточно средств! В копилке {available}. Введите сумму не больше:",
        'enter_saving_new_name': "✏️ Введите новое название копилки:",
        'saving_renamed': "✅ Копилка переименована в «{name}»",
        'saving_cleared': "✅ Копилка очищена!",
        'saving_deleted': "✅ Копилка удалена!",

        # Reports
        'select_period': "📊 Выберите период для статистики:",
        'report_title': "📊 <b>Статистика за {period}</b>\n\n",
        'report_income': "📈 <b>Доходы:</b> {total}\n",
        'report_no_income': "┣ Нет доходов\n",
        'report_expense': "\n📉 <b>Расходы:</b> {total}\n",
        'report_no_expense': "┣ Нет расходов\n",
        'report_line': "┣ {category}: {amount} ({percent:.1f}%)\n",
        'report_balance': "\n💵 <b>Баланс:</b> {balance}",
        'report_too_long': "⚠️ Отчет слишком длинный, попробуйте выбрать меньший период.",
        'report_exporting': "⏳ Формирую PDF-отчет...",
        'report_caption': "📄 Финансовый отчёт за {period}",
        'period_day': "день",
        'period_week': "неделю",
        'period_month': "месяц",
        'period_year': "год",

        # Settings
        'settings': "⚙️ <b>Настройки</b>\n\nВыбери, что хочешь настроить:",
        'notifications': "🔔 <b>Уведомления</b>\n\nТекущий статус: {status}\n\nВыбери действие:",
        'notifications_on': "🔔 Включены",
        'notifications_off': "🔕 Отключены",
        'notifications_enabled': "🔔 Уведомления включены",
        'notifications_disabled': "🔕 Уведомления отключены",
        'currency_menu': "💱 Текущая валюта: {currency}\nВыберите новую валюту:",
        'currency_changed': "✅ Валюта изменена на {currency} {symbol}",
        'currency_invalid': "⚠️ Неизвестная валюта",
        'enter_period_start': (
            "📅 Сейчас месяц в отчётах начинается с {day}-го числа.\n"
            "Введите новый день начала периода (от 1 до 31):"
        ),
        'invalid_period_start': "⚠️ Введите число от 1 до 31:",
        'period_start_changed': "✅ Теперь месяц в отчётах начинается с {day}-го числа",
        'confirm_clear': (
            "⚠️ <b>Внимание!</b>\n\n"
            "Будут удалены все операции, категории и копилки. Это действие необратимо.\n\n"
            "Продолжить?"
        ),
        'data_cleared': "🧹 Все данные удалены. Базовые категории восстановлены.",

        # Support
        'support': "🆘 <b>Поддержка</b>\n\nВыберите действие:",
        'write_support': (
            "✉️ <b>Написать разработчику</b>\n\n"
            "Если у вас возникли вопросы или проблемы, воспользуйтесь обратной связью "
            "в настройках или напишите владельцу бота."
        ),
        'faq': (
            "❓ <b>FAQ (Часто задаваемые вопросы)</b>\n\n"
            "1. <b>Как добавить операцию?</b>\n"
            "   - Нажмите «💸 Добавить операцию» в главном меню.\n"
            "   - Выберите тип (Доход или Расход).\n"
            "   - Выберите категорию или создайте новую.\n"
            "   - Введите сумму и комментарий (опционально).\n\n"
            "2. <b>Как управлять копилками?</b>\n"
            "   - Перейдите в «💰 Накопления».\n"
            "   - Создайте новую копилку, укажите имя и цель (опционально).\n"
            "   - Пополняйте, снимайте, переименовывайте или удаляйте копилки.\n\n"
            "3. <b>Как посмотреть статистику?</b>\n"
            "   - Нажмите «📊 Статистика» и выберите период.\n"
            "   - Отчет можно выгрузить в PDF.\n\n"
            "4. <b>Как включить/отключить уведомления?</b>\n"
            "   - В «⚙️ Настройки» выберите «🔔 Уведомления».\n\n"
            "5. <b>Как изменить валюту?</b>\n"
            "   - В «⚙️ Настройки» выберите «💱 Валюта».\n\n"
            "6. <b>Как очистить все данные?</b>\n"
            "   - В «⚙️ Настройки» нажмите «🧹 Очистить все данные» и подтвердите."
        ),
        'saving_tips': (
            "📝 <b>Зачем вести учет финансов?</b>\n\n"
            "1. 🕵️ <b>Обнаружить «утечки» бюджета.</b> Мелкие траты незаметно съедают бюджет, "
            "учет покажет, куда уходят деньги.\n\n"
            "2. 📊 <b>Понять структуру расходов.</b> Видно, сколько реально уходит на каждую категорию.\n\n"
            "3. 🛟 <b>Создать подушку безопасности.</b> Регулярно откладывайте часть дохода в копилку.\n\n"
            "4. 🎉 <b>Тратить без чувства вины.</b> Заранее выделенный бюджет на радости не пробьет дыру в финансах.\n\n"
            "5. 🏝 <b>Превратить мечты в план.</b> Цель в копилке показывает, сколько откладывать и когда цель будет достигнута."
        ),

        # Feedback
        'feedback_q1': "📝 <b>Обратная связь</b> (1/4)\n\nЧто вам нравится в боте?",
        'feedback_q2': "📝 <b>Обратная связь</b> (2/4)\n\nЧего вам не хватает?",
        'feedback_q3': "📝 <b>Обратная связь</b> (3/4)\n\nЧто раздражает или мешает?",
        'feedback_q4': "📝 <b>Обратная связь</b> (4/4)\n\nПорекомендуете ли вы бота друзьям?",
        'feedback_answer_buttons': "⚠️ Пожалуйста, ответьте кнопкой «Да» или «Нет».",
        'feedback_summary': (
            "📝 <b>Ваш отзыв</b>\n\n"
            "👍 Нравится: {likes}\n"
            "🤔 Не хватает: {missing}\n"
            "😤 Раздражает: {annoying}\n"
            "📣 Рекомендуете: {recommend}\n\n"
            "Отправить?"
        ),
        'feedback_thanks': "🙏 Спасибо за отзыв!",
        'feedback_cancelled': "🚫 Отзыв отменен",

        # Scheduler
        'reminder': (
            "💡 <b>Напоминание о транзакциях</b>\n\n"
            "Привет! Похоже, ты сегодня еще не добавлял(а) ни одной транзакции.\n\n"
            "Не забывай вести учет своих финансов, это поможет лучше контролировать бюджет!\n\n"
            "➕ Нажми \"Добавить операцию\" "
        ),
        'reminder_test_prefix': (
            "🔔 <b>ТЕСТ: Напоминание о транзакциях</b>\n\n"
            "Это тестовое напоминание (в рабочем режиме приходит в {hour}:00).\n\n"
        ),
        'version_broadcast': (
            "🎉 <b>Обновление бота до v{version}!</b>\n\n"
            "{description}\n\n"
            "<i>Спасибо, что используете нашего бота!</i>"
        ),
    },
}

# Inline button labels by callback token
BUTTONS = {
    "start_transaction": "💸 Добавить операцию",
    "show_stats": "📊 Статистика",
    "show_savings": "💰 Накопления",
    "show_settings": "⚙️ Настройки",

    "stats_day": "📅 День",
    "stats_week": "📆 Неделя",
    "stats_month": "📈 Месяц",
    "stats_year": "🎯 Год",
    "stats_back": "◀️ Назад",
    "show_history": "📜 История операций",

    "create_saving": "➕ Новая копилка",
    "add_to_saving": "💰 Пополнить",
    "savings_stats": "📊 Статистика копилок",
    "manage_savings": "✏️ Редактировать",

    "notification_settings": "🔔 Уведомления",
    "manage_categories": "📝 Категории",
    "settings_back": "◀️ В меню",
    "enable_notifications": "🔔 Включить",
    "disable_notifications": "🔕 Отключить",
    "confirm_clear_data": "🧹 Очистить все данные",
    "clear_data": "✅ Да, удалить все",

    "other_cat": "✨ Новая категория",
    "new_cat_income": "➕ Категория дохода",
    "new_cat_expense": "➕ Категория расхода",
    "cancel": "◀️ Отмена",

    "type_income": "📈 Доход",
    "type_expense": "📉 Расход",

    "skip_comment": "Пропустить",
    "skip_saving_goal": "Пропустить",
    "main_menu": "🏠 Главное меню",
    "support": "🆘 Поддержка",
    "saving_tips": "📝 Советы по экономии",

    "edit_amount": "✏️ Сумма",
    "edit_category": "📂 Категория",
    "edit_comment": "💬 Комментарий",
    "delete_transaction": "🗑️ Удалить",

    "currency_settings": "💱 Валюта",
    "set_currency_RUB": "🇷🇺 RUB (Рубли)",
    "set_currency_USD": "🇺🇸 USD (Доллары)",
    "set_currency_EUR": "🇪🇺 EUR (Евро)",

    "set_period_start": "📅 Период отчётов",

    "write_support": "✉️ Написать разработчику",
    "faq": "❓ FAQ",
    "feedback": "📝 Обратная связь",
    "feedback_submit": "✅ Отправить отзыв",
    "feedback_cancel": "🚫 Отмена",
    "feedback_recommend_yes": "✅ Да",
    "feedback_recommend_no": "❌ Нет",

    "export_day": "📤 Выгрузить отчет",
    "export_week": "📤 Выгрузить отчет",
    "export_month": "📤 Выгрузить отчет",
    "export_year": "📤 Выгрузить отчет",
}

# Labels for tokens carrying an id; longer prefixes first
PREFIX_BUTTONS = (
    ("rename_cat_", "✏️ Переименовать"),
    ("delete_cat_", "🗑️ Удалить"),
    ("edit_cat_", "✏️ Редактировать категорию"),
    ("edit_saving_", "✏️ Редактировать копилку"),
    ("clear_saving_", "🧹 Очистить"),
    ("saving_add_", "➕ Пополнить"),
    ("saving_withdraw_", "➖ Снять"),
    ("saving_rename_", "✏️ Переименовать"),
    ("saving_delete_", "🗑️ Удалить"),
    ("change_category_", "📂 Сменить категорию"),
    ("cat_", "📂 Категория"),
    ("edit_", "✏️ Редактировать операцию"),
)

CURRENCY_SYMBOLS = {
    'RUB': '₽',
    'USD': '$',
    'EUR': '€',
}


def get_text(key: str, lang: str = 'RU', **kwargs) -> str:
    """Get translated text, formatted with kwargs"""
    lang_dict = translations.get(lang, translations['RU'])
    text = lang_dict.get(key, translations['RU'].get(key, key))
    return text.format(**kwargs) if kwargs else text


def get_button(token: str) -> str:
    return translate_button(token)


def translate_button(token: str) -> str:
    """Human label for a raw callback token; unknown tokens pass through"""
    if token in BUTTONS:
        return BUTTONS[token]

    for prefix, label in PREFIX_BUTTONS:
        if token.startswith(prefix) and len(token) > len(prefix):
            return label

    return token


def get_currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency, currency)
