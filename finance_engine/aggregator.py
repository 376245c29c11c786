"""Period aggregation of transactions.

Transactions are bucketed by the calendar month of their date. Nothing here
rounds: callers get full-precision ``Decimal`` values and format them at the
presentation boundary.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List

from .data_models import EXPENSE, INCOME, ZERO, PeriodSummary, Transaction
from .utils import validate_period

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def transactions_in_period(transactions: Iterable[Transaction], year: int, month: int) -> List[Transaction]:
    """Return the transactions dated within the given calendar month, in input order."""
    validate_period(year, month)
    return [t for t in transactions if t.date.year == year and t.date.month == month]


def savings_rate(income: Decimal, expenses: Decimal) -> Decimal:
    """Share of income kept, in percent. Zero when there is no income."""
    if income <= 0:
        return ZERO
    return (income - expenses) / income * HUNDRED


def summarize(transactions: Iterable[Transaction], year: int, month: int) -> PeriodSummary:
    """Summarize transactions already known to belong to ``(year, month)``."""
    income = ZERO
    expenses = ZERO
    count = 0
    for t in transactions:
        count += 1
        if t.type == INCOME:
            income += t.amount
        elif t.type == EXPENSE:
            expenses += t.amount
    return PeriodSummary(
        year=year,
        month=month,
        income=income,
        expenses=expenses,
        balance=income - expenses,
        savings_rate=savings_rate(income, expenses),
        transaction_count=count,
    )


def summarize_period(transactions: Iterable[Transaction], year: int, month: int) -> PeriodSummary:
    """Compute income, expenses, balance and savings rate for one month.

    Parameters
    ----------
    transactions: Iterable[Transaction]
        Any transactions; those outside the month are ignored.
    year, month: int
        The calendar period to aggregate.

    Returns
    -------
    PeriodSummary
        ``balance`` is exactly ``income - expenses``; ``savings_rate`` is
        ``0`` when the month has no income.
    """
    selected = transactions_in_period(transactions, year, month)
    summary = summarize(selected, year, month)
    logger.debug(
        "Aggregated %d transactions for %04d-%02d: income=%s expenses=%s",
        summary.transaction_count, year, month, summary.income, summary.expenses,
    )
    return summary
