"""Conversion between engine records and JSON-compatible dictionaries.

Stored records use the tracker's wire names (``categoryId``, ``emiAmount``,
``nextDueDate``...). Money is written as a decimal string so a record read
back is identical to the one written. Derived results (summaries, schedules,
breakdowns) are only ever displayed, so they are exported with floats like
the calculator's JSON export.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .data_models import Category, Goal, Loan, Snapshot, Transaction
from .errors import InvalidInput


def _require(data: Mapping[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, Mapping):
        raise InvalidInput(f"{kind.capitalize()} record must be an object; got {type(data).__name__}")
    if data.get(key) is None:
        raise InvalidInput(f"{kind.capitalize()} record is missing '{key}'")
    return data[key]


def _tenure(value: Any) -> int:
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def transaction_from_dict(data: Mapping[str, Any]) -> Transaction:
    return Transaction(
        id=_require(data, "id", "transaction"),
        type=_require(data, "type", "transaction"),
        amount=_require(data, "amount", "transaction"),
        date=_require(data, "date", "transaction"),
        category_id=data.get("categoryId"),
        category=data.get("category") or "",
        description=data.get("description") or "",
        icon=data.get("icon") or "",
    )


def transaction_to_dict(t: Transaction) -> Dict[str, Any]:
    return {
        "id": t.id,
        "type": t.type,
        "amount": str(t.amount),
        "categoryId": t.category_id,
        "category": t.category,
        "description": t.description,
        "date": t.date.isoformat(),
        "icon": t.icon,
    }


def category_from_dict(data: Mapping[str, Any]) -> Category:
    return Category(
        id=_require(data, "id", "category"),
        name=_require(data, "name", "category"),
        budget=data.get("budget") or 0,
        icon=data.get("icon") or "",
        color=data.get("color") or "",
    )


def category_to_dict(c: Category) -> Dict[str, Any]:
    return {"id": c.id, "name": c.name, "budget": str(c.budget), "icon": c.icon, "color": c.color}


def goal_from_dict(data: Mapping[str, Any]) -> Goal:
    return Goal(
        id=_require(data, "id", "goal"),
        name=_require(data, "name", "goal"),
        target=_require(data, "target", "goal"),
        date=_require(data, "date", "goal"),
        saved=data.get("saved") or 0,
    )


def goal_to_dict(g: Goal) -> Dict[str, Any]:
    return {
        "id": g.id,
        "name": g.name,
        "target": str(g.target),
        "saved": str(g.saved),
        "date": g.date.isoformat(),
    }


def loan_from_dict(data: Mapping[str, Any]) -> Loan:
    return Loan(
        id=_require(data, "id", "loan"),
        name=_require(data, "name", "loan"),
        principal=_require(data, "principal", "loan"),
        annual_rate_percent=_require(data, "annualRatePercent", "loan"),
        tenure_months=_tenure(_require(data, "tenureMonths", "loan")),
        emi_amount=_require(data, "emiAmount", "loan"),
        remaining_balance=_require(data, "remainingBalance", "loan"),
        start_date=_require(data, "startDate", "loan"),
        next_due_date=_require(data, "nextDueDate", "loan"),
        status=data.get("status") or "active",
    )


def loan_to_dict(loan: Loan) -> Dict[str, Any]:
    return {
        "id": loan.id,
        "name": loan.name,
        "principal": str(loan.principal),
        "annualRatePercent": str(loan.annual_rate_percent),
        "tenureMonths": loan.tenure_months,
        "emiAmount": str(loan.emi_amount),
        "remainingBalance": str(loan.remaining_balance),
        "startDate": loan.start_date.isoformat(),
        "nextDueDate": loan.next_due_date.isoformat(),
        "status": loan.status,
    }


RECORD_CODECS = {
    "transactions": (transaction_from_dict, transaction_to_dict),
    "categories": (category_from_dict, category_to_dict),
    "goals": (goal_from_dict, goal_to_dict),
    "loans": (loan_from_dict, loan_to_dict),
}


def snapshot_from_dict(data: Mapping[str, Any]) -> Snapshot:
    """Build a snapshot from ``{"transactions": [...], "categories": [...], ...}``.

    Missing sections are treated as empty.
    """
    if not isinstance(data, Mapping):
        raise InvalidInput("Snapshot must be a JSON object")
    sections = {}
    for kind, (decode, _) in RECORD_CODECS.items():
        records = data.get(kind) or []
        if not isinstance(records, list):
            raise InvalidInput(f"Snapshot section '{kind}' must be a list")
        sections[kind] = [decode(item) for item in records]
    return Snapshot(**sections)


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, List[Dict[str, Any]]]:
    return {
        kind: [encode(record) for record in getattr(snapshot, kind)]
        for kind, (_, encode) in RECORD_CODECS.items()
    }


def load_snapshot(path: Path) -> Snapshot:
    """Read a snapshot from a JSON file."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"Snapshot file {path} is not valid JSON: {exc}") from exc
    return snapshot_from_dict(data)


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def result_to_dict(result: Any) -> Any:
    """Convert a derived result (dataclass, list or dict of them) into JSON-ready data."""
    if isinstance(result, (Transaction, Category, Goal, Loan)):
        _, encode = RECORD_CODECS[_kind_of(result)]
        return encode(result)
    if is_dataclass(result) and not isinstance(result, type):
        return _plain(asdict(result))
    if isinstance(result, (list, tuple)):
        return [result_to_dict(item) for item in result]
    return _plain(result)


def _kind_of(record: Any) -> str:
    if isinstance(record, Transaction):
        return "transactions"
    if isinstance(record, Category):
        return "categories"
    if isinstance(record, Goal):
        return "goals"
    return "loans"
