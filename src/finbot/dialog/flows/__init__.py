from finbot.dialog.flows import categories, feedback, reports, savings, settings, start, transactions

ROUTERS = (
    start.router,
    transactions.router,
    categories.router,
    savings.router,
    reports.router,
    settings.router,
    feedback.router,
)
