"""
PDF export of a period report: totals, trend lines, breakdown pies, detail tables and insights.
"""
from datetime import datetime, timedelta
from io import BytesIO
from typing import List, Tuple

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from finbot.services.report_service import Report
from finbot.utils.charts import BALANCE_COLOR, EXPENSE_COLOR, INCOME_COLOR, ChartService
from finbot.utils.formatting import format_money, strip_emoji

A4_PORTRAIT = (8.27, 11.69)


def report_filename(report: Report) -> str:
    last_day = report.end - timedelta(days=1)
    return f"report_{report.start:%Y-%m-%d}_{last_day:%Y-%m-%d}.pdf"


def build_insights(report: Report, currency: str) -> List[str]:
    aggregation = report.aggregation
    direction = "Положительный" if aggregation.balance >= 0 else "Отрицательный"
    lines = [f"{direction} баланс за период: {format_money(aggregation.balance, currency)}"]

    top_income = aggregation.top_income()
    if top_income:
        name, amount = top_income
        lines.append(
            f"Основной источник дохода: {strip_emoji(name)} ({format_money(amount, currency)})"
        )
    else:
        lines.append("Доходов за период не было")

    top_expense = aggregation.top_expense()
    if top_expense:
        name, amount = top_expense
        lines.append(
            f"Крупнейшая категория расходов: {strip_emoji(name)} ({format_money(amount, currency)})"
        )
    else:
        lines.append("Расходов за период не было")

    return lines


class PdfReportBuilder:
    """Renders a Report into PDF bytes"""

    def __init__(self, currency: str = 'RUB'):
        self.currency = currency
        self.charts = ChartService()

    def build(self, report: Report, generated_at: datetime) -> bytes:
        buffer = BytesIO()
        with PdfPages(buffer) as pdf:
            pdf.savefig(self._summary_page(report, generated_at))
            pdf.savefig(self._breakdown_page(report))
            pdf.savefig(self._details_page(report))
            info = pdf.infodict()
            info['Title'] = 'Финансовый отчёт'
        return buffer.getvalue()

    def _summary_page(self, report: Report, generated_at: datetime) -> Figure:
        aggregation = report.aggregation
        last_day = report.end - timedelta(days=1)
        fig = Figure(figsize=A4_PORTRAIT)

        fig.text(0.5, 0.96, "Финансовый отчёт", ha='center', fontsize=20, fontweight='bold')
        fig.text(0.5, 0.93, f"Период: {report.start:%d.%m.%Y} – {last_day:%d.%m.%Y}",
                 ha='center', fontsize=11)
        fig.text(0.5, 0.91, f"Сформировано: {generated_at:%d.%m.%Y %H:%M}",
                 ha='center', fontsize=9, color='gray')

        fig.text(0.08, 0.87, "Общая статистика", fontsize=14, fontweight='bold')
        fig.text(0.08, 0.845, f"Доходы: {format_money(aggregation.total_income, self.currency)}",
                 fontsize=11, color=INCOME_COLOR)
        fig.text(0.08, 0.825, f"Расходы: {format_money(aggregation.total_expense, self.currency)}",
                 fontsize=11, color=EXPENSE_COLOR)
        fig.text(0.08, 0.805, f"Баланс: {format_money(aggregation.balance, self.currency)}",
                 fontsize=11, color=BALANCE_COLOR, fontweight='bold')
        fig.text(0.55, 0.845, f"Операций: {len(report.transactions)}", fontsize=11)

        grid = fig.add_gridspec(3, 1, left=0.1, right=0.95, top=0.76, bottom=0.05, hspace=0.55)
        trend = aggregation.trend
        for row, (column, title, color) in enumerate((
            ('income', "Доходы (накопительно)", INCOME_COLOR),
            ('expense', "Расходы (накопительно)", EXPENSE_COLOR),
            ('balance', "Баланс (накопительно)", BALANCE_COLOR),
        )):
            ax = fig.add_subplot(grid[row, 0])
            self.charts.draw_trend(ax, trend[column], title, color)

        return fig

    def _breakdown_page(self, report: Report) -> Figure:
        aggregation = report.aggregation
        fig = Figure(figsize=A4_PORTRAIT)
        fig.text(0.5, 0.96, "Структура доходов и расходов", ha='center',
                 fontsize=16, fontweight='bold')

        grid = fig.add_gridspec(2, 1, left=0.1, right=0.9, top=0.9, bottom=0.12, hspace=0.6)
        self.charts.draw_pie(fig.add_subplot(grid[0, 0]), aggregation.income_breakdown(),
                             "Доходы по категориям", self.currency)
        self.charts.draw_pie(fig.add_subplot(grid[1, 0]), aggregation.expense_breakdown(),
                             "Расходы по категориям", self.currency)
        return fig

    def _details_page(self, report: Report) -> Figure:
        aggregation = report.aggregation
        fig = Figure(figsize=A4_PORTRAIT)
        fig.text(0.5, 0.96, "Детализация по категориям", ha='center',
                 fontsize=16, fontweight='bold')

        grid = fig.add_gridspec(3, 1, left=0.08, right=0.92, top=0.9, bottom=0.05,
                                height_ratios=[3, 3, 2], hspace=0.4)
        self._table(fig.add_subplot(grid[0, 0]), "Доходы",
                    aggregation.income_breakdown(), aggregation.total_income)
        self._table(fig.add_subplot(grid[1, 0]), "Расходы",
                    aggregation.expense_breakdown(), aggregation.total_expense)

        ax = fig.add_subplot(grid[2, 0])
        ax.axis('off')
        ax.set_title("Автоматический анализ", fontsize=12, fontweight='bold', loc='left')
        for index, line in enumerate(build_insights(report, self.currency)):
            ax.text(0.0, 0.85 - index * 0.2, f"• {line}", fontsize=10, transform=ax.transAxes)

        return fig

    def _table(self, ax, title: str, breakdown: List[Tuple[str, object]], total):
        ax.axis('off')
        ax.set_title(title, fontsize=12, fontweight='bold', loc='left')

        if not breakdown:
            ax.text(0.0, 0.9, "Нет операций", fontsize=10, color='gray', transform=ax.transAxes)
            return

        rows = [
            [strip_emoji(name) or name, format_money(amount, self.currency),
             f"{float(amount) / float(total) * 100:.1f}%" if total else "0.0%"]
            for name, amount in breakdown
        ]
        table = ax.table(cellText=rows, colLabels=["Категория", "Сумма", "Доля"],
                         loc='upper left', cellLoc='left', colWidths=[0.5, 0.3, 0.2])
        table.auto_set_font_size(False)
        table.set_fontsize(9)
        table.scale(1, 1.3)
