from datetime import date

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from app.db import dynamo
from app.main import app
from app.routers.deps import get_current_user_id, get_today

TODAY = date(2026, 3, 15)

history = [
    {"transaction_id": "t6", "user_id": "user-1", "type": "expense", "category": "Rent", "amount": 2100.0,
     "description": "", "date": "2026-03-06", "created_at": "2026-03-06T09:00:00"},
    {"transaction_id": "t5", "user_id": "user-1", "type": "income", "category": "Salary", "amount": 2800.0,
     "description": "", "date": "2026-03-05", "created_at": "2026-03-05T09:00:00"},
    {"transaction_id": "t4", "user_id": "user-1", "type": "expense", "category": "Rent", "amount": 2500.0,
     "description": "", "date": "2026-02-06", "created_at": "2026-02-06T09:00:00"},
    {"transaction_id": "t3", "user_id": "user-1", "type": "income", "category": "Salary", "amount": 3200.0,
     "description": "", "date": "2026-02-05", "created_at": "2026-02-05T09:00:00"},
    {"transaction_id": "t2", "user_id": "user-1", "type": "expense", "category": "Rent", "amount": 2000.0,
     "description": "", "date": "2026-01-06", "created_at": "2026-01-06T09:00:00"},
    {"transaction_id": "t1", "user_id": "user-1", "type": "income", "category": "Salary", "amount": 3000.0,
     "description": "", "date": "2026-01-05", "created_at": "2026-01-05T09:00:00"},
]


@pytest.fixture
def client():
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_today] = lambda: TODAY
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def stored(monkeypatch):
    calls = {}

    def fake_get_transactions(user_id, **filters):
        calls["get_transactions"] = (user_id, filters)
        start = filters.get("start_date") or ""
        end = filters.get("end_date") or "9999-12-31"
        return [t for t in history if start <= t["date"] <= end]

    monkeypatch.setattr(dynamo, "get_transactions", fake_get_transactions)
    return calls


def test_requires_token():
    response = TestClient(app).get("/api/transactions/")
    assert response.status_code == 401
    assert response.json()["detail"] == "Token required"


def test_rejects_tampered_token():
    response = TestClient(app).get("/api/insights/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_transactions_passes_filters(client, stored):
    response = client.get("/api/transactions/", params={"category": "Rent", "type": "expense"})
    assert response.status_code == 200
    assert stored["get_transactions"] == (
        "user-1",
        {"start_date": None, "end_date": None, "category": "Rent", "type": "expense"},
    )


def test_list_transactions_rejects_unknown_type(client, stored):
    response = client.get("/api/transactions/", params={"type": "transfer"})
    assert response.status_code == 422


def test_create_transaction(client, monkeypatch):
    saved = []
    monkeypatch.setattr(dynamo, "put_transaction", lambda item: saved.append(item) or True)

    response = client.post("/api/transactions/", json={
        "type": "expense", "amount": 42.5, "category": "Food", "description": "Dinner", "date": "2026-03-10",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["date"] == "2026-03-10"
    assert body["amount"] == 42.5
    assert body["created_at"].endswith("+00:00")
    assert saved[0]["user_id"] == "user-1"
    assert saved[0]["transaction_id"] == body["transaction_id"]


def test_create_transaction_rejects_negative_amount(client):
    response = client.post("/api/transactions/", json={"type": "expense", "amount": -1, "category": "Food"})
    assert response.status_code == 422


def test_create_transaction_storage_failure(client, monkeypatch):
    monkeypatch.setattr(dynamo, "put_transaction", lambda item: False)
    response = client.post("/api/transactions/", json={"type": "income", "amount": 1, "category": "Gift"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to save transaction"


def test_update_transaction(client, monkeypatch):
    received = {}

    def fake_update(user_id, transaction_id, updates):
        received.update(updates)
        return dict(history[0], **updates)

    monkeypatch.setattr(dynamo, "update_transaction", fake_update)
    response = client.put("/api/transactions/t6", json={"amount": 10, "date": "2026-03-01"})
    assert response.status_code == 200
    assert received == {"amount": 10.0, "date": "2026-03-01"}


def test_update_transaction_requires_fields(client):
    response = client.put("/api/transactions/t6", json={})
    assert response.status_code == 400


def test_update_missing_transaction(client, monkeypatch):
    monkeypatch.setattr(dynamo, "update_transaction", lambda *args: None)
    response = client.put("/api/transactions/nope", json={"amount": 10})
    assert response.status_code == 404


class FailingTable:
    def update_item(self, **kwargs):
        raise ClientError({"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "Slow down"}}, "UpdateItem")

    def delete_item(self, **kwargs):
        raise ClientError({"Error": {"Code": "InternalServerError", "Message": "Service unavailable"}}, "DeleteItem")


def test_update_transaction_write_failure(client, monkeypatch):
    monkeypatch.setattr(dynamo, "transactions_table", FailingTable())
    response = client.put("/api/transactions/t6", json={"amount": 10})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to update transaction"


def test_delete_transaction_write_failure(client, monkeypatch):
    monkeypatch.setattr(dynamo, "transactions_table", FailingTable())
    response = client.delete("/api/transactions/t6")
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to delete transaction"


def test_delete_transaction(client, monkeypatch):
    monkeypatch.setattr(dynamo, "delete_transaction", lambda user_id, transaction_id: transaction_id == "t1")
    assert client.delete("/api/transactions/t1").status_code == 204
    assert client.delete("/api/transactions/t9").status_code == 404


def test_insights(client, stored):
    response = client.get("/api/insights/")
    assert response.status_code == 200
    body = response.json()
    assert body["analysis"]["total_expenses"] == 6600.0
    assert body["analysis"]["top_spending_categories"][0]["category"] == "Rent"
    assert body["prediction"] == {
        "month": "2026-04",
        "predicted_income": 3000,
        "predicted_expenses": 2200,
        "predicted_balance": 800,
        "confidence": 75,
    }


def test_insights_without_history(client, monkeypatch):
    monkeypatch.setattr(dynamo, "get_transactions", lambda user_id, **filters: [])
    body = client.get("/api/insights/").json()
    assert body["prediction"] is None
    assert body["analysis"] == {"top_spending_categories": [], "total_expenses": 0.0, "insights": []}


def test_data_store_failure_returns_503(client, monkeypatch):
    def failing(user_id, **filters):
        raise dynamo.DataAccessError("Could not load transactions")

    monkeypatch.setattr(dynamo, "get_transactions", failing)
    response = client.get("/api/insights/")
    assert response.status_code == 503
    assert response.json() == {"detail": "Could not load transactions"}


def test_dashboard(client, stored):
    body = client.get("/api/dashboard/").json()
    assert body["month"] == "2026-03"
    assert body["stats"]["total_income"] == 2800.0
    assert body["stats"]["total_expenses"] == 2100.0
    assert body["stats"]["balance"] == 700.0
    assert len(body["stats"]["transactions"]) == 2
    assert body["prediction"]["predicted_balance"] == 800
    assert body["charts"]["monthly"] == [
        {"month": "2026-03", "income": 2800.0, "expenses": 2100.0, "balance": 700.0},
    ]
    assert body["charts"]["expense_categories"] == [{"category": "Rent", "amount": 2100.0}]


def test_dashboard_for_new_user(client, monkeypatch):
    monkeypatch.setattr(dynamo, "get_transactions", lambda user_id, **filters: [])
    body = client.get("/api/dashboard/").json()
    assert body["analysis"] is None
    assert body["prediction"] is None
    assert body["stats"]["balance"] == 0


def test_report(client, stored):
    response = client.get("/api/reports/last-month")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "February 2026"
    assert body["total_transactions"] == 2
    assert body["balance"] == 700.0
    assert body["monthly"] == [{"month": "2026-02", "income": 3200.0, "expenses": 2500.0, "balance": 700.0}]
    assert stored["get_transactions"][1]["start_date"] == "2026-02-01"
    assert stored["get_transactions"][1]["end_date"] == "2026-02-28"


def test_report_unknown_period(client, stored):
    response = client.get("/api/reports/fortnight")
    assert response.status_code == 400


def test_report_csv_export(client, stored):
    response = client.get("/api/reports/current-year/csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="financial-report-2026.csv"' in response.headers["content-disposition"]
    assert response.text.splitlines()[0] == "Date,Description,Category,Type,Amount"
    assert len(response.text.splitlines()) == 7


def test_report_pdf_export(client, stored):
    response = client.get("/api/reports/current-month/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert "financial-report-march-2026.pdf" in response.headers["content-disposition"]


def test_register_and_login(monkeypatch):
    users = {}

    monkeypatch.setattr(dynamo, "get_user_by_email", lambda email: users.get(email))
    monkeypatch.setattr(dynamo, "put_user", lambda item: users.setdefault(item["email"], item) is not None)
    monkeypatch.setattr(dynamo, "get_user_by_id", lambda user_id: next(
        (u for u in users.values() if u["user_id"] == user_id), None
    ))
    client = TestClient(app)

    response = client.post("/api/auth/register", json={"email": "ana@finance.io", "password": "s3cret!", "name": "Ana"})
    assert response.status_code == 201
    assert "password_hash" not in response.json()
    assert response.json()["created_at"].endswith("+00:00")

    duplicate = client.post("/api/auth/register", json={"email": "ana@finance.io", "password": "s3cret!"})
    assert duplicate.status_code == 400

    bad = client.post("/api/auth/login", json={"email": "ana@finance.io", "password": "wrong"})
    assert bad.status_code == 401

    login = client.post("/api/auth/login", json={"email": "ana@finance.io", "password": "s3cret!"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Ana"


def test_login_unknown_user(monkeypatch):
    monkeypatch.setattr(dynamo, "get_user_by_email", lambda email: None)
    response = TestClient(app).post("/api/auth/login", json={"email": "x@finance.io", "password": "whatever"})
    assert response.status_code == 401
