"""Loan amortization: EMI calculation and repayment tracking.

The equated monthly installment (EMI) follows the usual annuity formula:

    emi = P * i * (1 + i)^n / ((1 + i)^n - 1)

where ``P`` is the principal, ``i`` the monthly interest rate and ``n`` the
tenure in months. With a zero rate the installment is simply ``P / n``.

Due dates move one calendar month per payment and stay anchored to the day of
month of the loan's start date. When the target month is shorter, the date is
clamped to its last day (a loan started on Jan 31 is due Feb 29, then Mar 31).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .data_models import LOAN_ACTIVE, LOAN_COMPLETED, ZERO, Loan, ScheduleEntry, Snapshot
from .errors import InvalidInput, LoanNotFound
from .utils import Number, add_months, parse_date, to_decimal

logger = logging.getLogger(__name__)

# A final balance below half a cent is rounding residue.
RESIDUAL = Decimal("0.005")


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return annual_rate_percent / Decimal(100) / Decimal(12)


def _validate_terms(principal: Number, annual_rate_percent: Number, tenure_months: int):
    principal = to_decimal(principal, "principal")
    rate = to_decimal(annual_rate_percent, "annual rate")
    if principal < 0:
        raise InvalidInput(f"Principal must be non-negative; got {principal}")
    if rate < 0:
        raise InvalidInput(f"Interest rate must be non-negative; got {rate}")
    if isinstance(tenure_months, bool) or not isinstance(tenure_months, int) or tenure_months <= 0:
        raise InvalidInput(f"Tenure must be a positive whole number of months; got {tenure_months!r}")
    return principal, rate


def compute_emi(principal: Number, annual_rate_percent: Number, tenure_months: int) -> Decimal:
    """Return the fixed monthly installment that repays a loan over its tenure.

    Parameters
    ----------
    principal: Number
        Amount borrowed, non-negative.
    annual_rate_percent: Number
        Nominal annual interest rate in percent (``12`` means 12 %).
    tenure_months: int
        Number of monthly installments, positive.

    Raises
    ------
    InvalidInput
        If any argument is out of range.
    """
    principal, rate = _validate_terms(principal, annual_rate_percent, tenure_months)
    i = monthly_rate(rate)
    if i == 0:
        return principal / Decimal(tenure_months)
    factor = (1 + i) ** tenure_months
    return principal * i * factor / (factor - 1)


def open_loan(
    loan_id: object,
    name: str,
    principal: Number,
    annual_rate_percent: Number,
    tenure_months: int,
    start_date: date,
) -> Loan:
    """Create a new active loan with its EMI computed.

    The first installment is due one month after ``start_date``.
    """
    emi = compute_emi(principal, annual_rate_percent, tenure_months)
    start = parse_date(start_date)
    loan = Loan(
        id=loan_id,
        name=name,
        principal=principal,
        annual_rate_percent=annual_rate_percent,
        tenure_months=tenure_months,
        emi_amount=emi,
        remaining_balance=principal,
        start_date=start,
        next_due_date=add_months(start, 1),
        status=LOAN_ACTIVE,
    )
    logger.debug("Opened loan %s: principal=%s emi=%s", loan_id, loan.principal, emi)
    return loan


def record_payment(loan: Loan) -> Loan:
    """Apply one installment to ``loan`` and return the updated loan.

    The EMI is deducted from the remaining balance. Once the balance reaches
    zero or below, the loan is marked completed, the balance is clamped to
    zero and the due date stays where it was. Otherwise the due date moves
    forward one month.

    Raises
    ------
    LoanNotFound
        If the loan is already completed; it no longer accepts payments.
    """
    if loan.is_completed:
        raise LoanNotFound(loan.id, "loan is already completed")
    balance = loan.remaining_balance - loan.emi_amount
    if balance <= 0:
        logger.info("Loan %s completed", loan.id)
        return replace(loan, remaining_balance=ZERO, status=LOAN_COMPLETED)
    next_due = add_months(loan.next_due_date, 1, day=loan.start_date.day)
    return replace(loan, remaining_balance=balance, next_due_date=next_due)


def pay_loan(snapshot: Snapshot, loan_id: object) -> Loan:
    """Look up ``loan_id`` in the snapshot and record one payment on it."""
    return record_payment(snapshot.find_loan(loan_id))


def amortization_schedule(
    principal: Number,
    annual_rate_percent: Number,
    tenure_months: int,
    first_due_date: Optional[date] = None,
) -> List[ScheduleEntry]:
    """Build the month-by-month amortization schedule of a loan.

    Each installment first pays the interest accrued on the running balance;
    the rest of the EMI reduces principal. The balance reaches zero on the
    last installment, which is the only entry flagged ``completed``.
    """
    principal, rate = _validate_terms(principal, annual_rate_percent, tenure_months)
    if principal == 0:
        raise InvalidInput("Principal must be positive to build a schedule")
    emi = compute_emi(principal, rate, tenure_months)
    i = monthly_rate(rate)
    due = parse_date(first_due_date) if first_due_date is not None else None

    schedule: List[ScheduleEntry] = []
    balance = principal
    for period in range(1, tenure_months + 1):
        starting_balance = balance
        interest_payment = balance * i
        payment = emi
        principal_payment = payment - interest_payment
        balance -= principal_payment

        if period == tenure_months and balance.copy_abs() < RESIDUAL:
            # settle the rounding residue on the last installment
            principal_payment += balance
            payment += balance
            balance = ZERO
        if balance < 0:
            # last installment overshoots; pay only what is owed
            adjustment = -balance
            principal_payment -= adjustment
            payment -= adjustment
            balance = ZERO

        schedule.append(
            ScheduleEntry(
                period=period,
                date=add_months(due, period - 1) if due else None,
                starting_balance=starting_balance,
                payment=payment,
                principal_payment=principal_payment,
                interest_payment=interest_payment,
                ending_balance=balance,
                completed=balance == 0,
            )
        )
        if balance == 0:
            break
    return schedule


def loan_summary(principal: Number, annual_rate_percent: Number, tenure_months: int) -> Dict[str, object]:
    """Aggregate metrics of a loan: EMI, total interest, total cost and APR."""
    principal, rate = _validate_terms(principal, annual_rate_percent, tenure_months)
    emi = compute_emi(principal, rate, tenure_months)
    total_cost = emi * tenure_months
    return {
        "principal": principal,
        "emi": emi,
        "total_interest": total_cost - principal,
        "total_cost": total_cost,
        "apr": (1 + monthly_rate(rate)) ** 12 - 1,  # approximate effective annual rate
        "term_months": tenure_months,
    }
