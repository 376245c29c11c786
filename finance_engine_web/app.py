"""JSON API for the finance tracker.

Records are kept per user in a :class:`RecordStore`; every report is computed
by the engine from a fresh snapshot of the user's records. Users are told
apart by an opaque token kept in the Flask session.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, Optional, Tuple
from uuid import uuid4

from flask import Blueprint, Flask, current_app, jsonify, request, session

from finance_engine import config
from finance_engine.aggregator import summarize_period
from finance_engine.budget import budget_alerts, evaluate_budgets
from finance_engine.data_models import EXPENSE, Snapshot
from finance_engine.errors import GoalNotFound, InvalidInput, LoanNotFound, NotFound
from finance_engine.goals import add_to_goal, goal_progress, revise_goal
from finance_engine.loans import open_loan, record_payment
from finance_engine.serialization import (
    category_from_dict,
    category_to_dict,
    goal_from_dict,
    goal_to_dict,
    loan_from_dict,
    loan_to_dict,
    result_to_dict,
    transaction_from_dict,
    transaction_to_dict,
)
from finance_engine.trends import (
    build_trend,
    category_breakdown,
    filter_transactions,
    monthly_history,
    recent_transactions,
    top_expenses,
)
from finance_engine.utils import parse_year_month
from finance_engine_web.record_store import SINGULAR, RecordStore, create_store_from_env

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__)


def _store() -> RecordStore:
    return current_app.extensions["record_store"]


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _snapshot() -> Snapshot:
    return _store().snapshot(_ensure_user_token())


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")
    return body


def _requested_period() -> Tuple[int, int]:
    value = request.args.get("month", "").strip()
    if not value:
        today = date.today()
        return today.year, today.month
    dt = parse_year_month(value)
    return dt.year, dt.month


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidInput(f"Query parameter '{name}' must be an integer; got {raw!r}") from exc


def _match_id(records: Iterable[Any], raw_id: Optional[str]) -> Any:
    for record in records:
        if str(record.id) == raw_id:
            return record.id
    return raw_id


def _with_id(body: Dict[str, Any]) -> Dict[str, Any]:
    payload = dict(body)
    if payload.get("id") in (None, ""):
        payload["id"] = uuid4().hex
    return payload


def _merge(payload: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    merged = {**payload, **changes}
    merged["id"] = payload["id"]
    return merged


def _locked_update(
    kind: str,
    record_id: str,
    not_found: Callable[[str], NotFound],
    update: Callable[[Dict[str, Any]], Dict[str, Any]],
) -> Dict[str, Any]:
    payload = _store().update_locked(_ensure_user_token(), kind, record_id, update)
    if payload is None:
        raise not_found(record_id)
    return payload


# -- records ---------------------------------------------------------------


@api.get("/transactions")
def list_transactions():
    snapshot = _snapshot()
    year = month = None
    if request.args.get("month"):
        year, month = _requested_period()
    category_id = request.args.get("categoryId")
    if category_id is not None:
        category_id = _match_id(snapshot.categories, category_id)
    selected = filter_transactions(
        snapshot.transactions,
        type=request.args.get("type") or None,
        category_id=category_id,
        year=year,
        month=month,
    )
    return jsonify(result_to_dict(selected))


@api.post("/transactions")
def create_transaction():
    snapshot = _snapshot()
    payload = _with_id(_json_body())
    category = snapshot.category_index.get(payload.get("categoryId"))
    if category is not None:
        payload.setdefault("category", category.name)
        payload.setdefault("icon", category.icon)
    transaction = transaction_from_dict(payload)
    _store().add(_ensure_user_token(), "transactions", result_to_dict(transaction))

    alerts = []
    if transaction.type == EXPENSE:
        year, month = transaction.date.year, transaction.date.month
        transactions = snapshot.transactions + (transaction,)
        alerts = budget_alerts(evaluate_budgets(transactions, snapshot.category_index, year, month))
    return jsonify({"transaction": result_to_dict(transaction), "alerts": result_to_dict(alerts)}), 201


@api.put("/transactions/<transaction_id>")
def update_transaction(transaction_id: str):
    changes = _json_body()
    category = _snapshot().category_index.get(changes.get("categoryId"))
    if category is not None:
        changes.setdefault("category", category.name)
        changes.setdefault("icon", category.icon)

    def apply(payload: Dict[str, Any]) -> Dict[str, Any]:
        return transaction_to_dict(transaction_from_dict(_merge(payload, changes)))

    return jsonify(_locked_update("transactions", transaction_id, NotFound, apply))


@api.get("/categories")
def list_categories():
    return jsonify(_store().list_records(_ensure_user_token(), "categories"))


@api.post("/categories")
def create_category():
    snapshot = _snapshot()
    category = category_from_dict(_with_id(_json_body()))
    if any(existing.name == category.name for existing in snapshot.categories):
        raise InvalidInput(f"A category named {category.name!r} already exists")
    _store().add(_ensure_user_token(), "categories", result_to_dict(category))
    return jsonify(result_to_dict(category)), 201


@api.put("/categories/<category_id>")
def update_category(category_id: str):
    changes = _json_body()
    others = [c for c in _snapshot().categories if str(c.id) != category_id]

    def apply(payload: Dict[str, Any]) -> Dict[str, Any]:
        category = category_from_dict(_merge(payload, changes))
        if any(other.name == category.name for other in others):
            raise InvalidInput(f"A category named {category.name!r} already exists")
        return category_to_dict(category)

    return jsonify(_locked_update("categories", category_id, NotFound, apply))


@api.get("/goals")
def list_goals():
    snapshot = _snapshot()
    today = date.today()
    return jsonify(
        [
            {**goal_to_dict(goal), "progress": result_to_dict(goal_progress(goal, today))}
            for goal in snapshot.goals
        ]
    )


@api.post("/goals")
def create_goal():
    goal = goal_from_dict(_with_id(_json_body()))
    _store().add(_ensure_user_token(), "goals", goal_to_dict(goal))
    return jsonify(goal_to_dict(goal)), 201


@api.put("/goals/<goal_id>")
def update_goal(goal_id: str):
    changes = _json_body()

    def apply(payload: Dict[str, Any]) -> Dict[str, Any]:
        goal = revise_goal(goal_from_dict(payload), goal_from_dict(_merge(payload, changes)))
        return goal_to_dict(goal)

    return jsonify(_locked_update("goals", goal_id, GoalNotFound, apply))


@api.post("/goals/<goal_id>/contribute")
def contribute_to_goal(goal_id: str):
    amount = _json_body().get("amount")
    if amount is None:
        raise InvalidInput("Request body is missing 'amount'")

    def apply(payload: Dict[str, Any]) -> Dict[str, Any]:
        return goal_to_dict(add_to_goal(goal_from_dict(payload), amount))

    return jsonify(_locked_update("goals", goal_id, GoalNotFound, apply))


@api.get("/loans")
def list_loans():
    return jsonify(_store().list_records(_ensure_user_token(), "loans"))


@api.post("/loans")
def create_loan():
    body = _with_id(_json_body())
    for key in ("name", "principal", "annualRatePercent", "tenureMonths", "startDate"):
        if body.get(key) in (None, ""):
            raise InvalidInput(f"Request body is missing '{key}'")
    tenure = body["tenureMonths"]
    if isinstance(tenure, str) and tenure.strip().isdigit():
        tenure = int(tenure)
    loan = open_loan(
        body["id"],
        body["name"],
        body["principal"],
        body["annualRatePercent"],
        tenure,
        body["startDate"],
    )
    _store().add(_ensure_user_token(), "loans", loan_to_dict(loan))
    return jsonify(loan_to_dict(loan)), 201


@api.post("/loans/<loan_id>/pay")
def pay_loan(loan_id: str):
    def apply(payload: Dict[str, Any]) -> Dict[str, Any]:
        return loan_to_dict(record_payment(loan_from_dict(payload)))

    return jsonify(_locked_update("loans", loan_id, LoanNotFound, apply))


@api.delete("/<any(transactions, categories, goals, loans):kind>/<record_id>")
def delete_record(kind: str, record_id: str):
    if not _store().delete(_ensure_user_token(), kind, record_id):
        raise NotFound(record_id)
    return jsonify({"message": f"{SINGULAR[kind].capitalize()} deleted"})


# -- reports ---------------------------------------------------------------


@api.get("/reports/summary")
def report_summary():
    year, month = _requested_period()
    return jsonify(result_to_dict(summarize_period(_snapshot().transactions, year, month)))


@api.get("/reports/budgets")
def report_budgets():
    year, month = _requested_period()
    snapshot = _snapshot()
    statuses = evaluate_budgets(snapshot.transactions, snapshot.category_index, year, month)
    return jsonify(
        {"statuses": result_to_dict(statuses), "alerts": result_to_dict(budget_alerts(statuses))}
    )


@api.get("/reports/trends")
def report_trends():
    year, month = _requested_period()
    months = _int_arg("months", config.TREND_MONTHS)
    return jsonify(result_to_dict(build_trend(_snapshot().transactions, year, month, months)))


@api.get("/reports/top-expenses")
def report_top_expenses():
    year, month = _requested_period()
    limit = _int_arg("limit", config.TOP_EXPENSES)
    return jsonify(result_to_dict(top_expenses(_snapshot().transactions, year, month, limit)))


@api.get("/reports/category-breakdown")
def report_category_breakdown():
    year, month = _requested_period()
    snapshot = _snapshot()
    return jsonify(
        result_to_dict(category_breakdown(snapshot.transactions, year, month, snapshot.category_index))
    )


@api.get("/reports/history")
def report_history():
    limit = _int_arg("limit", config.HISTORY_MONTHS)
    return jsonify(result_to_dict(monthly_history(_snapshot().transactions, limit)))


@api.get("/reports/recent")
def report_recent():
    limit = _int_arg("limit", config.TOP_EXPENSES)
    return jsonify(result_to_dict(recent_transactions(_snapshot().transactions, limit)))


@api.errorhandler(InvalidInput)
def handle_invalid_input(exc: InvalidInput):
    return jsonify({"message": str(exc)}), 400


@api.errorhandler(NotFound)
def handle_not_found(exc: NotFound):
    return jsonify({"message": str(exc)}), 404


def create_app(database_url: Optional[str] = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    app.extensions["record_store"] = create_store_from_env(database_url or config.DATABASE_URL)
    app.register_blueprint(api)
    logger.debug("Finance API ready with store %s", database_url or config.DATABASE_URL)
    return app


if __name__ == "__main__":
    config.configure_logging()
    print("Starting finance tracker API...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
