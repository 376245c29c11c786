"""Tests for monthly aggregation of transactions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from finance_engine.aggregator import savings_rate, summarize_period, transactions_in_period
from finance_engine.data_models import Transaction
from finance_engine.errors import InvalidInput


def _tx(tx_id, type_, amount, when, category_id=None):
    return Transaction(id=tx_id, type=type_, amount=amount, date=when, category_id=category_id)


def _sample():
    return [
        _tx(1, "income", "5000", date(2024, 1, 1)),
        _tx(2, "expense", "1500", date(2024, 1, 3), 3),
        _tx(3, "expense", "250.50", date(2024, 1, 31), 1),
        _tx(4, "expense", "80", date(2024, 2, 1), 1),
        _tx(5, "income", "700", date(2023, 1, 15)),
    ]


def test_summary_for_month() -> None:
    summary = summarize_period(_sample(), 2024, 1)
    assert summary.income == Decimal("5000")
    assert summary.expenses == Decimal("1750.50")
    assert summary.balance == Decimal("3249.50")
    assert summary.savings_rate == Decimal("64.99")
    assert summary.transaction_count == 3


def test_balance_is_income_minus_expenses_for_every_month() -> None:
    transactions = _sample()
    for year, month in [(2023, 1), (2024, 1), (2024, 2), (2024, 3)]:
        summary = summarize_period(transactions, year, month)
        assert summary.balance == summary.income - summary.expenses


def test_zero_income_gives_zero_savings_rate() -> None:
    summary = summarize_period(_sample(), 2024, 2)
    assert summary.income == 0
    assert summary.expenses == Decimal("80")
    assert summary.balance == Decimal("-80")
    assert summary.savings_rate == 0


def test_empty_month_is_all_zero() -> None:
    summary = summarize_period(_sample(), 2030, 6)
    assert (summary.income, summary.expenses, summary.balance, summary.savings_rate) == (0, 0, 0, 0)
    assert summary.transaction_count == 0


def test_savings_rate_keeps_full_precision() -> None:
    rate = savings_rate(Decimal("3"), Decimal("1"))
    assert rate != Decimal("66.67")
    assert abs(rate - Decimal("66.666666")) < Decimal("0.00001")


def test_month_filter_uses_calendar_date() -> None:
    transactions = [
        _tx(1, "expense", "10", datetime(2024, 1, 31, 23, 59)),
        _tx(2, "expense", "20", datetime(2024, 2, 1, 0, 0)),
    ]
    selected = transactions_in_period(transactions, 2024, 1)
    assert [t.id for t in selected] == [1]


@pytest.mark.parametrize("month", [0, 13, "1"])
def test_invalid_month_rejected(month) -> None:
    with pytest.raises(InvalidInput):
        summarize_period(_sample(), 2024, month)


def test_negative_amount_rejected_before_aggregation() -> None:
    with pytest.raises(InvalidInput):
        _tx(1, "expense", "-5", date(2024, 1, 1))


def test_unknown_type_rejected() -> None:
    with pytest.raises(InvalidInput):
        _tx(1, "transfer", "5", date(2024, 1, 1))


def test_malformed_date_rejected() -> None:
    with pytest.raises(InvalidInput):
        _tx(1, "expense", "5", "2024-02-30")
