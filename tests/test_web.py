"""API tests against a throwaway SQLite database."""

from __future__ import annotations

import pytest

from finance_engine_web.app import create_app


@pytest.fixture
def app(tmp_path):
    app = create_app(f"sqlite:///{tmp_path / 'records.sqlite3'}")
    app.testing = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _seed_categories(client) -> None:
    for body in [
        {"id": 1, "name": "Food", "budget": 1000, "icon": "fa-utensils", "color": "#FF6384"},
        {"id": 6, "name": "Income"},
    ]:
        assert client.post("/categories", json=body).status_code == 201


def test_expense_near_budget_raises_alert(client) -> None:
    _seed_categories(client)
    resp = client.post(
        "/transactions",
        json={"id": 1, "type": "expense", "amount": "950", "categoryId": 1, "date": "2024-01-10"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["transaction"]["category"] == "Food"
    assert body["transaction"]["icon"] == "fa-utensils"
    assert body["alerts"] == [
        {"category_id": 1, "category_name": "Food", "status": "near-limit", "amount": 50.0}
    ]

    resp = client.get("/reports/budgets?month=2024-01")
    assert resp.get_json()["statuses"][0]["status"] == "near-limit"


def test_income_never_raises_alerts(client) -> None:
    _seed_categories(client)
    resp = client.post(
        "/transactions", json={"type": "income", "amount": 5000, "categoryId": 6, "date": "2024-01-01"}
    )
    assert resp.status_code == 201
    assert resp.get_json()["alerts"] == []
    assert resp.get_json()["transaction"]["id"]


def test_summary_and_reports(client) -> None:
    _seed_categories(client)
    for body in [
        {"id": 1, "type": "income", "amount": "4000", "categoryId": 6, "date": "2024-01-01"},
        {"id": 2, "type": "expense", "amount": "300", "categoryId": 1, "date": "2024-01-02"},
        {"id": 3, "type": "expense", "amount": "100", "categoryId": 1, "date": "2023-12-02"},
    ]:
        client.post("/transactions", json=body)

    summary = client.get("/reports/summary?month=2024-01").get_json()
    assert summary["income"] == 4000.0
    assert summary["balance"] == 3700.0
    assert summary["savings_rate"] == pytest.approx(92.5)

    trend = client.get("/reports/trends?month=2024-01&months=2").get_json()
    assert [(p["year"], p["month"], p["expenses"]) for p in trend] == [(2023, 12, 100.0), (2024, 1, 300.0)]

    top = client.get("/reports/top-expenses?month=2024-01").get_json()
    assert [t["id"] for t in top] == [2]

    breakdown = client.get("/reports/category-breakdown?month=2024-01").get_json()
    assert breakdown[0]["name"] == "Food" and breakdown[0]["percentage"] == 100.0

    assert len(client.get("/reports/history").get_json()) == 2
    assert [t["id"] for t in client.get("/reports/recent?limit=2").get_json()] == [2, 1]
    assert [t["id"] for t in client.get("/transactions?type=expense").get_json()] == [2, 3]


def test_invalid_input_is_rejected(client) -> None:
    assert client.get("/reports/summary?month=2024-13").status_code == 400
    assert client.get("/reports/trends?months=0").status_code == 400
    assert client.get("/reports/top-expenses?limit=abc").status_code == 400
    resp = client.post("/transactions", json={"type": "expense", "amount": "-1", "date": "2024-01-01"})
    assert resp.status_code == 400
    assert "non-negative" in resp.get_json()["message"]
    assert client.post("/transactions", data="nope", content_type="text/plain").status_code == 400


def test_duplicate_category_name_rejected(client) -> None:
    _seed_categories(client)
    assert client.post("/categories", json={"name": "Food"}).status_code == 400
    assert client.post("/categories", json={"id": 1, "name": "Groceries"}).status_code == 400


def test_loan_lifecycle(client) -> None:
    resp = client.post(
        "/loans",
        json={"id": "bike", "name": "Bike", "principal": 200, "annualRatePercent": 0,
              "tenureMonths": 2, "startDate": "2024-01-31"},
    )
    assert resp.status_code == 201
    loan = resp.get_json()
    assert loan["emiAmount"] == "100"
    assert loan["nextDueDate"] == "2024-02-29"

    loan = client.post("/loans/bike/pay").get_json()
    assert loan["remainingBalance"] == "100"
    assert loan["nextDueDate"] == "2024-03-31"

    loan = client.post("/loans/bike/pay").get_json()
    assert loan["status"] == "completed"
    assert loan["remainingBalance"] == "0"

    resp = client.post("/loans/bike/pay")
    assert resp.status_code == 404
    assert "already completed" in resp.get_json()["message"]
    assert client.get("/loans").get_json()[0]["status"] == "completed"


def test_loan_needs_all_terms(client) -> None:
    resp = client.post("/loans", json={"name": "Bike", "principal": 200, "annualRatePercent": 0})
    assert resp.status_code == 400
    assert client.post("/loans/missing/pay").status_code == 404


def test_goal_contribution_is_capped(client) -> None:
    body = {"id": "g1", "name": "Vacation", "target": "100", "saved": "90", "date": "2099-01-01"}
    assert client.post("/goals", json=body).status_code == 201

    goal = client.post("/goals/g1/contribute", json={"amount": 50}).get_json()
    assert goal["saved"] == "100"

    goals = client.get("/goals").get_json()
    assert goals[0]["progress"]["completed"] is True
    assert goals[0]["progress"]["percentage"] == 100.0

    assert client.post("/goals/g1/contribute", json={"amount": 0}).status_code == 400
    assert client.post("/goals/g1/contribute", json={}).status_code == 400
    assert client.post("/goals/nope/contribute", json={"amount": 5}).status_code == 404


def test_delete_record(client) -> None:
    client.post("/transactions", json={"id": "t1", "type": "expense", "amount": "5", "date": "2024-01-01"})
    resp = client.delete("/transactions/t1")
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Transaction deleted"}
    assert client.delete("/transactions/t1").status_code == 404
    assert client.get("/transactions").get_json() == []


def test_records_are_kept_per_user(app) -> None:
    first, second = app.test_client(), app.test_client()
    first.post("/transactions", json={"id": "t1", "type": "expense", "amount": "5", "date": "2024-01-01"})
    assert len(first.get("/transactions").get_json()) == 1
    assert second.get("/transactions").get_json() == []


def test_edit_category_budget_changes_alerts(client) -> None:
    _seed_categories(client)
    client.post("/transactions", json={"id": 1, "type": "expense", "amount": "950", "categoryId": 1,
                                       "date": "2024-01-10"})

    resp = client.put("/categories/1", json={"budget": 2000})
    assert resp.status_code == 200
    assert resp.get_json()["budget"] == "2000"
    assert resp.get_json()["name"] == "Food"
    assert client.get("/reports/budgets?month=2024-01").get_json()["alerts"] == []

    assert client.put("/categories/1", json={"name": "Income"}).status_code == 400
    assert client.put("/categories/1", json={"budget": -1}).status_code == 400
    assert client.put("/categories/99", json={"budget": 1}).status_code == 404


def test_edit_transaction(client) -> None:
    _seed_categories(client)
    client.post("/transactions", json={"id": "t1", "type": "expense", "amount": "20", "date": "2024-01-10"})

    resp = client.put("/transactions/t1", json={"amount": "35.50", "categoryId": 1, "id": "other"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["id"] == "t1"
    assert body["amount"] == "35.50"
    assert body["category"] == "Food"
    assert body["date"] == "2024-01-10"
    assert client.get("/reports/summary?month=2024-01").get_json()["expenses"] == 35.5

    assert client.put("/transactions/t1", json={"type": "transfer"}).status_code == 400
    assert client.put("/transactions/missing", json={"amount": 1}).status_code == 404


def test_edit_goal_keeps_savings(client) -> None:
    client.post("/goals", json={"id": "g1", "name": "Vacation", "target": "100", "saved": "40",
                                "date": "2099-01-01"})

    goal = client.put("/goals/g1", json={"name": "Trip", "target": "250"}).get_json()
    assert (goal["name"], goal["target"], goal["saved"]) == ("Trip", "250", "40")

    assert client.put("/goals/g1", json={"saved": "10"}).status_code == 400
    assert client.put("/goals/g1", json={"target": "30"}).status_code == 400
    assert client.put("/goals/nope", json={"name": "x"}).status_code == 404
    assert client.get("/goals").get_json()[0]["saved"] == "40"
