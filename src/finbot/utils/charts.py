# src/finbot/utils/charts.py
import matplotlib

matplotlib.use("Agg")

import matplotlib.dates as mdates  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from finbot.utils.formatting import format_money, strip_emoji  # noqa: E402

INCOME_COLOR = '#5A9BD5'
EXPENSE_COLOR = '#ED7D31'
BALANCE_COLOR = '#70AD47'


class ChartService:
    def __init__(self):
        self.setup_style()

    def setup_style(self):
        """Configure matplotlib style for financial charts"""
        plt.style.use('seaborn-v0_8-darkgrid')
        sns.set_palette("husl")
        plt.rcParams['font.family'] = 'DejaVu Sans'
        plt.rcParams['font.size'] = 9

    def draw_trend(self, ax, series: pd.Series, title: str, color: str):
        """Cumulative line chart of one trend column"""
        ax.set_title(title, fontsize=11, fontweight='bold')

        if series.empty:
            self.draw_empty(ax, "Нет данных за период")
            return

        dates = pd.to_datetime(pd.Index(series.index))
        ax.plot(dates, series.values, color=color, marker='o', linewidth=2, markersize=4)
        ax.fill_between(dates, series.values, alpha=0.15, color=color)
        ax.xaxis.set_major_formatter(mdates.DateFormatter('%d.%m'))
        ax.tick_params(axis='x', rotation=30)

    def draw_pie(self, ax, breakdown, title: str, currency: str):
        """Pie chart with a "name – amount (pct%)" legend"""
        ax.set_title(title, fontsize=11, fontweight='bold')

        if not breakdown:
            self.draw_empty(ax, "Нет данных за период")
            return

        labels = [strip_emoji(name) or name for name, _ in breakdown]
        amounts = [float(amount) for _, amount in breakdown]
        total = sum(amounts)
        colors = sns.color_palette('husl', len(amounts))

        wedges, _ = ax.pie(amounts, colors=colors, startangle=90,
                           wedgeprops={'linewidth': 1, 'edgecolor': 'white'})
        ax.axis('equal')

        legend = [
            f"{label} – {format_money(amount, currency)} ({amount / total * 100:.1f}%)"
            for label, amount in zip(labels, amounts)
        ]
        ax.legend(wedges, legend, loc='upper center', bbox_to_anchor=(0.5, -0.02),
                  fontsize=8, frameon=False)

    def draw_empty(self, ax, message: str):
        ax.text(0.5, 0.5, message, ha='center', va='center', fontsize=10, color='gray',
                transform=ax.transAxes)
        ax.set_xticks([])
        ax.set_yticks([])
