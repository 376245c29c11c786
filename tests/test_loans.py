"""Tests for EMI calculation, payments and amortization schedules."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from finance_engine.data_models import LOAN_ACTIVE, LOAN_COMPLETED, Snapshot
from finance_engine.errors import InvalidInput, LoanNotFound
from finance_engine.loans import (
    amortization_schedule,
    compute_emi,
    loan_summary,
    open_loan,
    pay_loan,
    record_payment,
)

CENT = Decimal("0.01")


def test_zero_rate_emi_is_straight_line() -> None:
    assert compute_emi(1200, 0, 12) == Decimal("100")


def test_emi_matches_annuity_formula() -> None:
    assert compute_emi(100000, 12, 12).quantize(CENT) == Decimal("8884.88")


@pytest.mark.parametrize(
    "principal, rate, tenure",
    [(1000, 5, 0), (1000, 5, -1), (1000, 5, 1.5), (1000, 5, True), (-1, 5, 12), (1000, -0.5, 12), ("abc", 5, 12)],
)
def test_invalid_terms_rejected(principal, rate, tenure) -> None:
    with pytest.raises(InvalidInput):
        compute_emi(principal, rate, tenure)


def test_open_loan_sets_first_due_date_and_balance() -> None:
    loan = open_loan("car", "Car loan", "1200", 0, 12, date(2024, 1, 15))
    assert loan.status == LOAN_ACTIVE
    assert loan.emi_amount == Decimal("100")
    assert loan.remaining_balance == Decimal("1200")
    assert loan.next_due_date == date(2024, 2, 15)


def test_zero_rate_loan_completes_after_tenure_payments() -> None:
    loan = open_loan(1, "Phone", 1200, 0, 12, date(2024, 1, 10))
    balances = [loan.remaining_balance]
    for _ in range(11):
        loan = record_payment(loan)
        assert loan.status == LOAN_ACTIVE
        balances.append(loan.remaining_balance)
    assert loan.remaining_balance == Decimal("100")

    loan = record_payment(loan)
    assert loan.status == LOAN_COMPLETED
    assert loan.remaining_balance == 0
    assert balances == sorted(balances, reverse=True)


def test_final_payment_clamps_balance_and_keeps_due_date() -> None:
    loan = open_loan(1, "Laptop", 1000, 12, 12, date(2024, 1, 10))
    for _ in range(11):
        loan = record_payment(loan)
    assert 0 < loan.remaining_balance < loan.emi_amount
    due = loan.next_due_date

    loan = record_payment(loan)
    assert loan.status == LOAN_COMPLETED
    assert loan.remaining_balance == Decimal("0")
    assert loan.next_due_date == due


def test_payment_on_completed_loan_is_rejected() -> None:
    loan = open_loan(1, "Small", 100, 0, 1, date(2024, 1, 1))
    loan = record_payment(loan)
    assert loan.is_completed
    with pytest.raises(LoanNotFound):
        record_payment(loan)


def test_due_dates_stay_anchored_to_month_end() -> None:
    loan = open_loan(1, "Bike", 1200, 0, 12, date(2024, 1, 31))
    assert loan.next_due_date == date(2024, 2, 29)
    loan = record_payment(loan)
    assert loan.next_due_date == date(2024, 3, 31)
    loan = record_payment(loan)
    assert loan.next_due_date == date(2024, 4, 30)
    loan = record_payment(loan)
    assert loan.next_due_date == date(2024, 5, 31)


def test_pay_loan_looks_up_by_id() -> None:
    loan = open_loan(7, "Bike", 1200, 0, 12, date(2024, 1, 31))
    snapshot = Snapshot(loans=[loan])
    assert pay_loan(snapshot, 7).remaining_balance == Decimal("1100")
    with pytest.raises(LoanNotFound):
        pay_loan(snapshot, 8)


def test_payment_does_not_mutate_input() -> None:
    loan = open_loan(1, "Bike", 1200, 0, 12, date(2024, 1, 31))
    record_payment(loan)
    assert loan.remaining_balance == Decimal("1200")
    assert loan.next_due_date == date(2024, 2, 29)


@pytest.mark.parametrize(
    "principal, rate, tenure",
    [(250000, "8.5", 240), (100000, 12, 12), (5000, "0.01", 7), (1200, 0, 12), (999, 36, 1)],
)
def test_schedule_pays_off_exactly_at_tenure(principal, rate, tenure) -> None:
    schedule = amortization_schedule(principal, rate, tenure)
    assert len(schedule) == tenure
    assert abs(schedule[-1].ending_balance) < Decimal("1e-6")
    assert [e.completed for e in schedule] == [False] * (tenure - 1) + [True]

    ending = [e.ending_balance for e in schedule]
    assert ending == sorted(ending, reverse=True)
    for entry in schedule:
        assert abs(entry.payment - entry.principal_payment - entry.interest_payment) < Decimal("1e-6")
        assert abs(entry.starting_balance - entry.principal_payment - entry.ending_balance) < Decimal("1e-6")


def test_zero_rate_schedule_has_no_interest() -> None:
    schedule = amortization_schedule(1200, 0, 12)
    assert all(e.interest_payment == 0 for e in schedule)
    assert all(e.principal_payment == Decimal("100") for e in schedule)


def test_schedule_dates_follow_first_due_date() -> None:
    schedule = amortization_schedule(1200, 0, 12, date(2024, 1, 31))
    assert [e.date for e in schedule[:3]] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
    assert amortization_schedule(1200, 0, 12)[0].date is None


def test_schedule_needs_positive_principal() -> None:
    with pytest.raises(InvalidInput):
        amortization_schedule(0, 10, 12)


def test_loan_summary_totals() -> None:
    summary = loan_summary(1200, 0, 12)
    assert summary["emi"] == Decimal("100")
    assert summary["total_cost"] == Decimal("1200")
    assert summary["total_interest"] == 0
    assert summary["term_months"] == 12

    summary = loan_summary(100000, 12, 12)
    assert summary["total_interest"] == summary["emi"] * 12 - 100000
    assert summary["total_interest"].quantize(CENT) == Decimal("6618.55")


def test_tiny_principal_schedule_runs_full_tenure() -> None:
    schedule = amortization_schedule("0.01", 0, 12)
    assert len(schedule) == 12
    assert schedule[-1].ending_balance == 0
    for entry in schedule:
        assert abs(entry.starting_balance - entry.principal_payment - entry.ending_balance) < Decimal("1e-20")
    assert abs(sum(e.payment for e in schedule) - Decimal("0.01")) < Decimal("1e-20")
