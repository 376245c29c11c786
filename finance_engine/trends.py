"""Multi-month trends and single-period reports.

All functions are pure: they take transactions (and, where names are shown,
categories) and return lists ordered deterministically. Sorting relies on
Python's stable sort, so equal amounts keep their input order.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .aggregator import HUNDRED, summarize, transactions_in_period
from .budget import category_spending
from .categories import as_index
from .data_models import EXPENSE, TRANSACTION_TYPES, ZERO, Category, CategoryShare, PeriodSummary, Transaction
from .errors import InvalidInput
from .utils import shift_period, validate_period

logger = logging.getLogger(__name__)


def trend_window(year: int, month: int, months: int) -> List[Tuple[int, int]]:
    """Return the ``months`` calendar periods ending at ``(year, month)``, oldest first."""
    validate_period(year, month)
    if isinstance(months, bool) or not isinstance(months, int) or months <= 0:
        raise InvalidInput(f"Trend window must be a positive number of months; got {months!r}")
    return [shift_period(year, month, -offset) for offset in range(months - 1, -1, -1)]


def build_trend(
    transactions: Iterable[Transaction], year: int, month: int, months: int = 12
) -> List[PeriodSummary]:
    """Summarize each month of a trailing window, oldest to newest.

    Months without transactions are present with zero totals. The window
    rolls back across year boundaries: twelve months ending January 2024
    start at February 2023.
    """
    window = trend_window(year, month, months)
    buckets: Dict[Tuple[int, int], List[Transaction]] = {period: [] for period in window}
    for t in transactions:
        bucket = buckets.get((t.date.year, t.date.month))
        if bucket is not None:
            bucket.append(t)
    trend = [summarize(buckets[(y, m)], y, m) for y, m in window]
    logger.debug("Built %d-month trend ending %04d-%02d", months, year, month)
    return trend


def top_expenses(
    transactions: Iterable[Transaction], year: int, month: int, limit: int = 5
) -> List[Transaction]:
    """Largest expenses of a month, biggest first; ties keep input order."""
    if limit < 0:
        raise InvalidInput(f"Limit must be non-negative; got {limit}")
    expenses = [t for t in transactions_in_period(transactions, year, month) if t.type == EXPENSE]
    return sorted(expenses, key=lambda t: t.amount, reverse=True)[:limit]


def category_breakdown(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    categories: Optional[Iterable[Category]] = None,
) -> List[CategoryShare]:
    """Expense totals per category with their share of the month's expenses.

    Categories appear in order of first expense and are then sorted by amount,
    largest first. Deleted categories are named after the transactions that
    reference them.
    """
    index = as_index(categories)
    names: Dict[object, str] = {}
    spending: Dict[object, Decimal] = {}
    for t in transactions_in_period(transactions, year, month):
        if t.type == EXPENSE:
            names.setdefault(t.category_id, index.name_for(t))
            spending[t.category_id] = spending.get(t.category_id, ZERO) + t.amount
    total = sum(spending.values(), ZERO)

    shares = [
        CategoryShare(
            category_id=category_id,
            name=names[category_id],
            amount=spending[category_id],
            percentage=spending[category_id] / total * HUNDRED if total > 0 else ZERO,
            color=index.color_for(category_id),
        )
        for category_id in names
    ]
    shares.sort(key=lambda s: s.amount, reverse=True)
    return shares


def category_spending_chart(
    transactions: Iterable[Transaction], categories: Iterable[Category], year: int, month: int
) -> List[CategoryShare]:
    """Spend of every spending category for a month, in category order.

    Unlike :func:`category_breakdown`, categories without expenses are
    included with a zero amount, which keeps chart colours stable.
    """
    index = as_index(categories)
    spending = category_spending(transactions, year, month)
    total = sum(spending.values(), ZERO)
    chart = []
    for category in index.spending_categories():
        amount = spending.get(category.id, ZERO)
        chart.append(
            CategoryShare(
                category_id=category.id,
                name=category.name,
                amount=amount,
                percentage=amount / total * HUNDRED if total > 0 else ZERO,
                color=index.color_for(category.id),
            )
        )
    return chart


def monthly_history(transactions: Iterable[Transaction], limit: int = 6) -> List[PeriodSummary]:
    """Summaries of the most recent months that have any transactions.

    Unlike :func:`build_trend`, empty months are skipped. The result holds at
    most ``limit`` months, oldest first.
    """
    buckets: Dict[Tuple[int, int], List[Transaction]] = {}
    for t in transactions:
        buckets.setdefault((t.date.year, t.date.month), []).append(t)
    periods = sorted(buckets)[-limit:] if limit > 0 else []
    return [summarize(buckets[(y, m)], y, m) for y, m in periods]


def recent_transactions(transactions: Iterable[Transaction], limit: int = 5) -> List[Transaction]:
    """Newest transactions first; same-day entries keep input order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)[: max(limit, 0)]


def filter_transactions(
    transactions: Iterable[Transaction],
    type: Optional[str] = None,
    category_id: Optional[object] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> List[Transaction]:
    """Apply the transaction table filters and sort newest first.

    ``year`` and ``month`` must be given together.
    """
    if type is not None and type not in TRANSACTION_TYPES:
        raise InvalidInput(f"Unknown transaction type filter: {type!r}")
    if (year is None) != (month is None):
        raise InvalidInput("Filter by month needs both year and month")
    selected = list(transactions)
    if year is not None:
        selected = transactions_in_period(selected, year, month)
    if type is not None:
        selected = [t for t in selected if t.type == type]
    if category_id is not None:
        selected = [t for t in selected if t.category_id == category_id]
    return recent_transactions(selected, limit=len(selected))

