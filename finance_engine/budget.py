"""Budget monitoring for spending categories.

For a given month, each spending category is classified against its budget:

* ``over-limit`` when spend exceeds the budget,
* ``near-limit`` when spend is at least 90 % of the budget but not over it,
* ``ok`` otherwise, and always for categories without a budget.

The monitor keeps no state between calls. Alerts are recomputed on every
invocation; whether a repeated alert is shown again is up to the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List

from .aggregator import HUNDRED, transactions_in_period
from .categories import as_index
from .data_models import EXPENSE, ZERO, BudgetAlert, BudgetStatus, Category, Transaction

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_NEAR_LIMIT = "near-limit"
STATUS_OVER_LIMIT = "over-limit"

NEAR_LIMIT_RATIO = Decimal("0.9")


def category_spending(transactions: Iterable[Transaction], year: int, month: int) -> Dict[object, Decimal]:
    """Return expense totals per category id for one month."""
    spending: Dict[object, Decimal] = {}
    for t in transactions_in_period(transactions, year, month):
        if t.type != EXPENSE:
            continue
        spending[t.category_id] = spending.get(t.category_id, ZERO) + t.amount
    return spending


def classify(spent: Decimal, budget: Decimal) -> str:
    """Classify spend against a budget. A zero budget is never monitored."""
    if budget <= 0:
        return STATUS_OK
    if spent > budget:
        return STATUS_OVER_LIMIT
    if spent >= budget * NEAR_LIMIT_RATIO:
        return STATUS_NEAR_LIMIT
    return STATUS_OK


def _percent_used(spent: Decimal, budget: Decimal) -> Decimal:
    if budget <= 0:
        return ZERO
    return min(spent / budget * HUNDRED, HUNDRED)


def evaluate_budgets(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    year: int,
    month: int,
) -> List[BudgetStatus]:
    """Evaluate every spending category's budget for ``(year, month)``.

    The reserved ``"Income"`` category is skipped. Statuses come back in
    category order.
    """
    spending = category_spending(transactions, year, month)
    statuses: List[BudgetStatus] = []
    for category in as_index(categories).spending_categories():
        spent = spending.get(category.id, ZERO)
        budget = category.budget
        status = classify(spent, budget)
        statuses.append(
            BudgetStatus(
                category_id=category.id,
                name=category.name,
                budget=budget,
                spent=spent,
                status=status,
                over_amount=spent - budget if status == STATUS_OVER_LIMIT else ZERO,
                remaining=budget - spent,
                percent_used=_percent_used(spent, budget),
            )
        )
    return statuses


def budget_alerts(statuses: Iterable[BudgetStatus]) -> List[BudgetAlert]:
    """Turn over/near-limit statuses into alerts, one per category."""
    alerts: List[BudgetAlert] = []
    for status in statuses:
        if status.status == STATUS_OVER_LIMIT:
            amount = status.over_amount
        elif status.status == STATUS_NEAR_LIMIT:
            amount = status.remaining
        else:
            continue
        alerts.append(
            BudgetAlert(
                category_id=status.category_id,
                category_name=status.name,
                status=status.status,
                amount=amount,
            )
        )
    if alerts:
        logger.debug("%d budget alert(s) raised", len(alerts))
    return alerts


def check_budgets(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    year: int,
    month: int,
) -> List[BudgetAlert]:
    """Shortcut for ``budget_alerts(evaluate_budgets(...))``."""
    return budget_alerts(evaluate_budgets(transactions, categories, year, month))
