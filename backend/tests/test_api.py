"""Tests for API endpoints."""
from decimal import Decimal
import pytest
from fastapi.testclient import TestClient
from finsight.adapters.mock import MockInsightAdapter
from finsight.main import app
from finsight.services.insights import NO_INSIGHTS_MESSAGE, InsightService
from finsight.storage.database import SQLiteDocumentStore
from factories import FixedClock, at

USER = "user_1"


@pytest.fixture
def clock():
    return FixedClock(at(2024, 3, 5))


@pytest.fixture
def client(tmp_path, clock):
    """Client with a fresh database, a fixed clock and the mock insight adapter."""
    app.state.store = SQLiteDocumentStore(str(tmp_path / "api.db"))
    app.state.clock = clock
    app.state.insight_service = InsightService(adapter=MockInsightAdapter("mock:insights"))
    with TestClient(app) as test_client:
        yield test_client
    app.state.store = None
    app.state.clock = None
    app.state.insight_service = None


def add_transaction(client, tx_type, amount, category, date="2024-03-04T10:00:00Z", note=""):
    response = client.post(f"/users/{USER}/transactions", json={
        "type": tx_type,
        "amount": str(amount),
        "category": category,
        "date": date,
        "note": note,
    })
    assert response.status_code == 201, response.text
    return response.json()


def add_rent_rule(client, day=3):
    response = client.post(f"/users/{USER}/rules", json={
        "type": "expense",
        "category": "Rent",
        "amount": "25000",
        "day_of_month": day,
        "note": "Apartment rent",
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


def test_open_and_close_session(client):
    response = client.post(f"/sessions/{USER}")
    assert response.status_code == 200
    assert response.json() == {"user_id": USER, "rules": 0, "transactions": 0, "budgets": 0}

    assert client.delete(f"/sessions/{USER}").status_code == 204
    assert client.delete(f"/sessions/{USER}").status_code == 404


def test_add_and_list_transactions(client):
    created = add_transaction(client, "expense", "4500", "Food", note="Groceries")
    assert created["user_id"] == USER
    assert Decimal(created["amount"]) == Decimal("4500")
    assert created["idempotency_key"] is None

    listed = client.get(f"/users/{USER}/transactions").json()
    assert [t["id"] for t in listed] == [created["id"]]


def test_invalid_transactions_rejected(client):
    base = {"type": "expense", "amount": "10", "category": "Food", "date": "2024-03-04"}
    assert client.post(f"/users/{USER}/transactions", json={**base, "amount": "0"}).status_code == 422
    assert client.post(f"/users/{USER}/transactions", json={**base, "category": "Salary"}).status_code == 422
    assert client.post(f"/users/{USER}/transactions", json={**base, "date": "not a date"}).status_code == 422


def test_delete_transaction(client):
    created = add_transaction(client, "expense", "10", "Food")
    assert client.delete(f"/users/{USER}/transactions/{created['id']}").status_code == 204
    assert client.delete(f"/users/{USER}/transactions/{created['id']}").status_code == 404
    assert client.get(f"/users/{USER}/transactions").json() == []


def test_rule_created_when_due_materializes_immediately(client):
    rule = add_rent_rule(client, day=3)
    assert rule["last_processed_date"] is not None

    transactions = client.get(f"/users/{USER}/transactions").json()
    assert len(transactions) == 1
    assert transactions[0]["note"] == "Apartment rent (Auto)"
    assert transactions[0]["date"].startswith("2024-03-03")
    assert transactions[0]["idempotency_key"] == f"{rule['id']}:2024-03"


def test_manual_automation_run_is_idempotent(client):
    add_rent_rule(client, day=3)

    response = client.post(f"/users/{USER}/automation/run")
    assert response.status_code == 200
    body = response.json()
    assert body["rules_evaluated"] == 1
    assert body["effects"] == []

    assert len(client.get(f"/users/{USER}/transactions").json()) == 1


def test_automation_runs_again_next_month(client, clock):
    add_rent_rule(client, day=3)
    assert client.delete(f"/sessions/{USER}").status_code == 204

    clock.set(2024, 4, 3)
    client.post(f"/sessions/{USER}")

    transactions = client.get(f"/users/{USER}/transactions").json()
    assert len(transactions) == 2
    assert transactions[0]["date"].startswith("2024-04-03")


def test_upcoming_charges(client):
    add_rent_rule(client, day=3)
    add_rent_rule(client, day=20)

    upcoming = client.get(f"/users/{USER}/rules/upcoming").json()
    assert [c["next_due_date"] for c in upcoming] == ["2024-03-20", "2024-04-03"]


def test_delete_rule(client):
    rule = add_rent_rule(client, day=20)
    assert client.delete(f"/users/{USER}/rules/{rule['id']}").status_code == 204
    assert client.get(f"/users/{USER}/rules").json() == []
    assert client.delete(f"/users/{USER}/rules/{rule['id']}").status_code == 404


def test_invalid_rule_rejected(client):
    response = client.post(f"/users/{USER}/rules", json={
        "type": "expense", "category": "Rent", "amount": "10", "day_of_month": 32,
    })
    assert response.status_code == 422


def test_budgets_and_progress(client):
    add_transaction(client, "expense", "80", "Food")
    assert client.put(f"/users/{USER}/budgets/Food", json={"limit": "50"}).status_code == 200
    assert client.put(f"/users/{USER}/budgets/Food", json={"limit": "100"}).status_code == 200

    budgets = client.get(f"/users/{USER}/budgets").json()
    assert len(budgets) == 1
    assert Decimal(budgets[0]["limit"]) == Decimal("100")

    progress = {p["category"]: p for p in client.get(f"/users/{USER}/budgets/progress").json()}
    assert progress["Food"]["status"] == "warning"
    assert progress["Food"]["percentage"] == 80.0
    assert progress["Travel"]["percentage"] == 0.0


def test_summary(client):
    add_transaction(client, "income", "85000", "Salary", date="2024-03-01T09:00:00Z")
    add_transaction(client, "expense", "25000", "Rent", date="2024-03-03T09:00:00Z")
    add_transaction(client, "expense", "4500", "Food", date="2024-03-03T18:00:00Z")

    body = client.get(f"/users/{USER}/summary").json()
    assert Decimal(body["totals"]["balance"]) == Decimal("55500")
    assert body["expenses_by_category"][0]["category"] == "Rent"
    assert [p["date"] for p in body["daily"]] == ["2024-03-01", "2024-03-03"]


def test_monthly_view(client):
    add_transaction(client, "expense", "12", "Food", date="2024-03-02T09:00:00Z", note="Coffee beans")
    add_transaction(client, "expense", "60", "Travel", date="2024-03-04T09:00:00Z", note="Uber")
    add_transaction(client, "expense", "99", "Shopping", date="2024-02-10T09:00:00Z", note="Shoes")

    march = client.get(f"/users/{USER}/transactions/monthly").json()
    assert march["year"] == 2024 and march["month"] == 3
    assert [t["note"] for t in march["transactions"]] == ["Uber", "Coffee beans"]
    assert Decimal(march["stats"]["expense"]) == Decimal("72")

    searched = client.get(f"/users/{USER}/transactions/monthly", params={"search": "coffee"}).json()
    assert [t["note"] for t in searched["transactions"]] == ["Coffee beans"]

    february = client.get(
        f"/users/{USER}/transactions/monthly", params={"year": 2024, "month": 2}
    ).json()
    assert [t["note"] for t in february["transactions"]] == ["Shoes"]


def test_insights(client):
    empty = client.get(f"/users/{USER}/insights").json()
    assert empty["insights"] == []
    assert empty["message"] == NO_INSIGHTS_MESSAGE

    add_transaction(client, "expense", "25000", "Rent")
    body = client.get(f"/users/{USER}/insights").json()
    assert len(body["insights"]) == 3
    assert body["message"] is None


def test_receipt_upload(client):
    response = client.post(
        f"/users/{USER}/receipts",
        files={"file": ("receipt.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
    )
    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["amount"]) == Decimal("42.5")
    assert body["category"] == "Food"


def test_receipt_upload_rejects_bad_files(client):
    empty = client.post(f"/users/{USER}/receipts", files={"file": ("r.jpg", b"", "image/jpeg")})
    assert empty.status_code == 400

    text = client.post(f"/users/{USER}/receipts", files={"file": ("r.txt", b"hello", "text/plain")})
    assert text.status_code == 400


def test_categorize(client):
    response = client.post(f"/users/{USER}/categorize", json={"note": "Uber ride", "amount": "18"})
    assert response.status_code == 200
    assert response.json() == {"category": "Travel"}


def test_budget_for_income_category_rejected(client):
    response = client.put(f"/users/{USER}/budgets/Salary", json={"limit": "100"})
    assert response.status_code == 422
    assert client.get(f"/users/{USER}/budgets").json() == []
