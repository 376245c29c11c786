"""Output helpers for the finance engine.

This module renders engine results as plain text tables. It is the only
place where amounts are rounded and prefixed with the currency symbol; the
calculators themselves keep full precision.
"""

from __future__ import annotations

import calendar
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from . import config
from .budget import STATUS_OVER_LIMIT
from .data_models import BudgetAlert, BudgetStatus, CategoryShare, PeriodSummary, ScheduleEntry, Transaction


def format_currency(amount: Decimal, symbol: Optional[str] = None) -> str:
    """Format ``amount`` with the currency prefix and two decimals (``Rs1234.50``)."""
    prefix = config.CURRENCY_SYMBOL if symbol is None else symbol
    return f"{prefix}{amount:.2f}"


def format_percent(value: Decimal, digits: int = 1) -> str:
    return f"{value:.{digits}f}%"


def month_label(year: int, month: int) -> str:
    """Chart label for a period, e.g. ``"January 24"``."""
    return f"{calendar.month_name[month]} {year % 100:02d}"


def alert_message(alert: BudgetAlert) -> Tuple[str, str]:
    """Return the title and text shown for a budget alert."""
    amount = format_currency(alert.amount)
    if alert.status == STATUS_OVER_LIMIT:
        return (
            "Budget Exceeded!",
            f"You've exceeded your {alert.category_name} budget by {amount}. "
            "Consider reviewing your spending.",
        )
    return (
        "Budget Alert",
        f"You're close to exceeding your {alert.category_name} budget. {amount} remaining.",
    )


def print_period_summary(summary: PeriodSummary) -> None:
    """Print the dashboard summary cards for one month."""
    print(f"Summary for {month_label(summary.year, summary.month)}")
    print("-" * 72)
    print(f"Balance            : {format_currency(summary.balance)}")
    print(f"Income             : {format_currency(summary.income)}")
    print(f"Expenses           : {format_currency(summary.expenses)}")
    print(f"Savings rate       : {format_percent(summary.savings_rate)}")
    print(f"Transactions       : {summary.transaction_count}")
    print("-" * 72)


def print_budget_statuses(statuses: Iterable[BudgetStatus], alerts: Iterable[BudgetAlert] = ()) -> None:
    print(f"{'Category':20s} {'Budget':>12s} {'Spent':>12s} {'Remaining':>12s} {'Used':>7s}  Status")
    for s in statuses:
        budget = format_currency(s.budget) if s.budget > 0 else "-"
        print(
            f"{s.name:20s} {budget:>12s} {format_currency(s.spent):>12s} "
            f"{format_currency(s.remaining):>12s} {format_percent(s.percent_used, 0):>7s}  {s.status}"
        )
    for alert in alerts:
        title, message = alert_message(alert)
        print(f"{title} {message}")


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["Period", "Date", "StartBal", "Payment", "Principal", "Interest", "EndBal"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period),
            entry.date.isoformat() if entry.date else "-",
            f"{entry.starting_balance:.2f}",
            f"{entry.payment:.2f}",
            f"{entry.principal_payment:.2f}",
            f"{entry.interest_payment:.2f}",
            f"{entry.ending_balance:.2f}",
        ]
        print("\t".join(row))


def print_loan_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Loan summary")
    print("-" * 72)
    print(f"Principal          : {format_currency(summary['principal'])}")
    print(f"Monthly EMI        : {format_currency(summary['emi'])}")
    print(f"Total interest     : {format_currency(summary['total_interest'])}")
    print(f"Total cost         : {format_currency(summary['total_cost'])}")
    print(f"APR (approx)       : {format_percent(summary['apr'] * 100, 2)}")
    print(f"Term               : {summary['term_months']} months")
    print("-" * 72)


def print_trend(trend: Iterable[PeriodSummary]) -> None:
    print(f"{'Month':14s} {'Income':>14s} {'Expenses':>14s} {'Balance':>14s}")
    for point in trend:
        print(
            f"{month_label(point.year, point.month):14s} {format_currency(point.income):>14s} "
            f"{format_currency(point.expenses):>14s} {format_currency(point.balance):>14s}"
        )


def print_top_expenses(expenses: Iterable[Transaction]) -> None:
    expenses = list(expenses)
    if not expenses:
        print("No expenses this month")
        return
    for t in expenses:
        print(f"{t.date.isoformat()}  {t.description or '-':40s} {format_currency(t.amount):>14s}")


def print_category_breakdown(shares: Iterable[CategoryShare]) -> None:
    shares = list(shares)
    if not shares:
        print("No expenses this month")
        return
    for share in shares:
        print(f"{share.name:20s} {format_percent(share.percentage):>7s} ({format_currency(share.amount)})")
