"""Data models for the finance engine.

This module defines dataclasses representing the records a user keeps
(transactions, categories, goals and loans), the snapshot that bundles them
for one computation pass, and the derived values the calculators return.

The input records are frozen: the engine never mutates them, and operations
that change an entity (a loan payment, a goal contribution) return a new
instance instead. Money is held as ``Decimal`` at full precision; rounding
is left to the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import cached_property
from typing import TYPE_CHECKING, Optional, Tuple

from .errors import GoalNotFound, InvalidInput, LoanNotFound
from .utils import parse_date, to_decimal

if TYPE_CHECKING:
    from .categories import CategoryIndex

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

# Reserved category name; never budgeted.
INCOME_CATEGORY = "Income"

LOAN_ACTIVE = "active"
LOAN_COMPLETED = "completed"
LOAN_STATUSES = (LOAN_ACTIVE, LOAN_COMPLETED)

ZERO = Decimal("0")


def _set(obj: object, name: str, value: object) -> None:
    object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class Transaction:
    """A single income or expense entry.

    Attributes
    ----------
    type: str
        ``"income"`` or ``"expense"``.
    amount: Decimal
        Non-negative amount; the type carries the direction.
    category_id:
        Id of the category the transaction was booked against. The category
        may since have been deleted.
    category: str
        Category name at the time of booking, kept for orphaned transactions.
    """

    id: object
    type: str
    amount: Decimal
    date: date
    category_id: Optional[object] = None
    category: str = ""
    description: str = ""
    icon: str = ""

    def __post_init__(self) -> None:
        if self.type not in TRANSACTION_TYPES:
            raise InvalidInput(f"Transaction type must be 'income' or 'expense'; got {self.type!r}")
        amount = to_decimal(self.amount, "amount")
        if amount < 0:
            raise InvalidInput(f"Transaction amount must be non-negative; got {amount}")
        _set(self, "amount", amount)
        _set(self, "date", parse_date(self.date))


@dataclass(frozen=True)
class Category:
    """A spending category with an optional monthly budget (0 means unset)."""

    id: object
    name: str
    budget: Decimal = ZERO
    icon: str = ""
    color: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidInput("Category name must not be empty")
        budget = to_decimal(self.budget, "budget")
        if budget < 0:
            raise InvalidInput(f"Category budget must be non-negative; got {budget}")
        _set(self, "budget", budget)

    @property
    def is_income(self) -> bool:
        return self.name == INCOME_CATEGORY

    @property
    def is_budgeted(self) -> bool:
        return not self.is_income and self.budget > 0


@dataclass(frozen=True)
class Goal:
    """A savings goal. ``saved`` stays within ``[0, target]``."""

    id: object
    name: str
    target: Decimal
    date: date
    saved: Decimal = ZERO

    def __post_init__(self) -> None:
        target = to_decimal(self.target, "target")
        saved = to_decimal(self.saved, "saved")
        if target <= 0:
            raise InvalidInput(f"Goal target must be positive; got {target}")
        if saved < 0 or saved > target:
            raise InvalidInput(f"Goal saved amount must be between 0 and {target}; got {saved}")
        _set(self, "target", target)
        _set(self, "saved", saved)
        _set(self, "date", parse_date(self.date))


@dataclass(frozen=True)
class Loan:
    """A fixed-installment loan and its repayment state.

    ``remaining_balance`` only goes down; ``status`` is ``"completed"``
    exactly when the balance has reached zero.
    """

    id: object
    name: str
    principal: Decimal
    annual_rate_percent: Decimal
    tenure_months: int
    emi_amount: Decimal
    remaining_balance: Decimal
    start_date: date
    next_due_date: date
    status: str = LOAN_ACTIVE

    def __post_init__(self) -> None:
        principal = to_decimal(self.principal, "principal")
        rate = to_decimal(self.annual_rate_percent, "annual rate")
        emi = to_decimal(self.emi_amount, "EMI amount")
        remaining = to_decimal(self.remaining_balance, "remaining balance")
        if principal <= 0:
            raise InvalidInput(f"Loan principal must be positive; got {principal}")
        if rate < 0:
            raise InvalidInput(f"Loan interest rate must be non-negative; got {rate}")
        if isinstance(self.tenure_months, bool) or not isinstance(self.tenure_months, int) or self.tenure_months <= 0:
            raise InvalidInput(f"Loan tenure must be a positive number of months; got {self.tenure_months!r}")
        if emi < 0:
            raise InvalidInput(f"EMI amount must be non-negative; got {emi}")
        if self.status not in LOAN_STATUSES:
            raise InvalidInput(f"Loan status must be 'active' or 'completed'; got {self.status!r}")
        if (self.status == LOAN_COMPLETED) != (remaining <= 0):
            raise InvalidInput(
                f"Loan status {self.status!r} does not match remaining balance {remaining}"
            )
        _set(self, "principal", principal)
        _set(self, "annual_rate_percent", rate)
        _set(self, "emi_amount", emi)
        _set(self, "remaining_balance", remaining)
        _set(self, "start_date", parse_date(self.start_date))
        _set(self, "next_due_date", parse_date(self.next_due_date))

    @property
    def is_completed(self) -> bool:
        return self.status == LOAN_COMPLETED


@dataclass(frozen=True)
class Snapshot:
    """All records of one user, as read for a single computation pass."""

    transactions: Tuple[Transaction, ...] = ()
    categories: Tuple[Category, ...] = ()
    goals: Tuple[Goal, ...] = ()
    loans: Tuple[Loan, ...] = ()

    def __post_init__(self) -> None:
        _set(self, "transactions", tuple(self.transactions))
        _set(self, "categories", tuple(self.categories))
        _set(self, "goals", tuple(self.goals))
        _set(self, "loans", tuple(self.loans))

    @cached_property
    def category_index(self) -> "CategoryIndex":
        from .categories import CategoryIndex

        return CategoryIndex(self.categories)

    def find_loan(self, loan_id: object) -> Loan:
        for loan in self.loans:
            if loan.id == loan_id:
                return loan
        raise LoanNotFound(loan_id)

    def find_goal(self, goal_id: object) -> Goal:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        raise GoalNotFound(goal_id)


@dataclass
class PeriodSummary:
    """Income, expenses and savings for one calendar month."""

    year: int
    month: int
    income: Decimal
    expenses: Decimal
    balance: Decimal
    savings_rate: Decimal
    transaction_count: int = 0


@dataclass
class BudgetStatus:
    """Budget evaluation of one category for a period.

    ``over_amount`` is non-zero only for ``"over-limit"``; ``remaining`` is
    ``budget - spent`` and may be negative. ``percent_used`` is capped at 100
    and is 0 for unbudgeted categories.
    """

    category_id: object
    name: str
    budget: Decimal
    spent: Decimal
    status: str
    over_amount: Decimal
    remaining: Decimal
    percent_used: Decimal


@dataclass
class BudgetAlert:
    """An over-limit or near-limit notice. ``amount`` is the overspend or the
    amount still available, depending on ``status``."""

    category_id: object
    category_name: str
    status: str
    amount: Decimal


@dataclass
class ScheduleEntry:
    """An entry in the amortization schedule.

    Each entry corresponds to one installment. ``completed`` is True only on
    the entry that brings the balance to zero.
    """

    period: int
    date: Optional[date]
    starting_balance: Decimal
    payment: Decimal
    principal_payment: Decimal
    interest_payment: Decimal
    ending_balance: Decimal
    completed: bool = False


@dataclass
class CategoryShare:
    """Expense total of one category and its share of the period's expenses."""

    category_id: object
    name: str
    amount: Decimal
    percentage: Decimal
    color: str = ""


@dataclass
class GoalProgress:
    goal_id: object
    name: str
    saved: Decimal
    target: Decimal
    percentage: Decimal
    remaining: Decimal
    days_left: int
    completed: bool
