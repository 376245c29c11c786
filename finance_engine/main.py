"""Command-line interface for the finance engine.

This module uses the ``click`` library to implement a multi-command
interface. Loan commands work from their terms alone; report commands read a
JSON snapshot of a user's records (``transactions``, ``categories``,
``goals`` and ``loans``) and print the derived values. Commands that change a
record print its new state as JSON and leave saving it to the caller.
"""

from __future__ import annotations

import csv
import json
import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import click

from . import config
from .aggregator import summarize_period
from .budget import budget_alerts, evaluate_budgets
from .data_models import ScheduleEntry
from .errors import FinanceError, InvalidInput
from .formatter import (
    print_budget_statuses,
    print_category_breakdown,
    print_loan_summary,
    print_period_summary,
    print_schedule,
    print_top_expenses,
    print_trend,
)
from .goals import contribute as contribute_to_goal
from .loans import amortization_schedule, loan_summary, pay_loan
from .serialization import load_snapshot, result_to_dict
from .trends import build_trend, category_breakdown, top_expenses
from .utils import parse_date, parse_year_month, to_decimal

logger = logging.getLogger(__name__)


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return to_decimal(value) * factor
    except InvalidInput:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_month_option(value: Optional[str]) -> Tuple[int, int]:
    """Return ``(year, month)`` for a YYYY-MM option, defaulting to the current month."""
    if not value:
        today = date.today()
        return today.year, today.month
    try:
        dt = parse_year_month(value)
    except InvalidInput as exc:
        raise click.BadParameter(str(exc))
    return dt.year, dt.month


def resolve_id(records: Iterable[Any], raw_id: str) -> Any:
    """Map an id typed on the command line to the id stored in the snapshot.

    Snapshot ids may be numbers while command line arguments are always
    strings; the first record whose id prints the same wins.
    """
    for record in records:
        if str(record.id) == raw_id:
            return record.id
    return raw_id


@contextmanager
def engine_errors() -> Iterator[None]:
    try:
        yield
    except FinanceError as exc:
        raise click.ClickException(str(exc)) from exc


def export_to_json(path: Path, schedule: List[ScheduleEntry], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": result_to_dict(summary), "schedule": result_to_dict(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[ScheduleEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Period",
        "Date",
        "Starting_Balance",
        "Payment",
        "Principal",
        "Interest",
        "Ending_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.period,
                    e.date.isoformat() if e.date else "",
                    float(e.starting_balance),
                    float(e.payment),
                    float(e.principal_payment),
                    float(e.interest_payment),
                    float(e.ending_balance),
                ]
            )


snapshot_argument = click.argument(
    "snapshot_path", metavar="SNAPSHOT", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
month_option = click.option("--month", "-m", "month", help="Period to report on (YYYY-MM); defaults to this month")


@click.group()
@click.option("--log-level", "log_level", default=config.LOG_LEVEL, show_default=True, help="Logging level")
def cli(log_level: str) -> None:
    """Personal finance calculations: summaries, budgets, trends and loans."""
    config.configure_logging(log_level)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--tenure", "-t", "tenure", required=True, type=int, help="Tenure in months")
def emi(principal: str, rate: str, tenure: int) -> None:
    """Compute the equated monthly installment and loan totals."""
    with engine_errors():
        summary = loan_summary(parse_amount(principal), to_decimal(rate, "rate"), tenure)
    print_loan_summary(summary)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--tenure", "-t", "tenure", required=True, type=int, help="Tenure in months")
@click.option("--start-date", "-s", "start_date", help="First due date (YYYY-MM-DD)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(principal: str, rate: str, tenure: int, start_date: Optional[str], output: Optional[str]) -> None:
    """Compute and print the full amortization schedule."""
    with engine_errors():
        amount = parse_amount(principal)
        annual_rate = to_decimal(rate, "rate")
        first_due = parse_date(start_date) if start_date else None
        entries = amortization_schedule(amount, annual_rate, tenure, first_due)
        summary = loan_summary(amount, annual_rate, tenure)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, entries, summary)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        print_loan_summary(summary)
        print_schedule(entries)


@cli.command()
@snapshot_argument
@month_option
def summary(snapshot_path: Path, month: Optional[str]) -> None:
    """Print income, expenses, balance and savings rate for a month."""
    year, mon = parse_month_option(month)
    with engine_errors():
        snapshot = load_snapshot(snapshot_path)
        result = summarize_period(snapshot.transactions, year, mon)
    print_period_summary(result)


@cli.command()
@snapshot_argument
@month_option
def budgets(snapshot_path: Path, month: Optional[str]) -> None:
    """Print each category's budget status and any alerts."""
    year, mon = parse_month_option(month)
    with engine_errors():
        snapshot = load_snapshot(snapshot_path)
        statuses = evaluate_budgets(snapshot.transactions, snapshot.category_index, year, mon)
    print_budget_statuses(statuses, budget_alerts(statuses))


@cli.command()
@snapshot_argument
@month_option
@click.option("--months", "months", type=int, default=config.TREND_MONTHS, show_default=True, help="Window length")
def trends(snapshot_path: Path, month: Optional[str], months: int) -> None:
    """Print monthly income, expenses and balance over a trailing window."""
    year, mon = parse_month_option(month)
    with engine_errors():
        snapshot = load_snapshot(snapshot_path)
        trend = build_trend(snapshot.transactions, year, mon, months)
    print_trend(trend)


@cli.command()
@snapshot_argument
@month_option
@click.option("--limit", "limit", type=int, default=config.TOP_EXPENSES, show_default=True, help="Top expenses to list")
def report(snapshot_path: Path, month: Optional[str], limit: int) -> None:
    """Print the month's top expenses and its category breakdown."""
    year, mon = parse_month_option(month)
    with engine_errors():
        snapshot = load_snapshot(snapshot_path)
        top = top_expenses(snapshot.transactions, year, mon, limit)
        breakdown = category_breakdown(snapshot.transactions, year, mon, snapshot.category_index)
    click.echo("Top expenses")
    print_top_expenses(top)
    click.echo("Category breakdown")
    print_category_breakdown(breakdown)


@cli.command()
@snapshot_argument
@click.argument("loan_id")
def pay(snapshot_path: Path, loan_id: str) -> None:
    """Record one installment on a loan and print its new state."""
    with engine_errors():
        snapshot = load_snapshot(snapshot_path)
        loan = pay_loan(snapshot, resolve_id(snapshot.loans, loan_id))
    logger.info("Loan %s: remaining balance %s, status %s", loan.id, loan.remaining_balance, loan.status)
    click.echo(json.dumps(result_to_dict(loan), indent=2))


@cli.command()
@snapshot_argument
@click.argument("goal_id")
@click.argument("amount")
def contribute(snapshot_path: Path, goal_id: str, amount: str) -> None:
    """Add money to a savings goal and print its new state."""
    with engine_errors():
        snapshot = load_snapshot(snapshot_path)
        goal = contribute_to_goal(snapshot, resolve_id(snapshot.goals, goal_id), parse_amount(amount))
    click.echo(json.dumps(result_to_dict(goal), indent=2))


if __name__ == "__main__":
    cli()
