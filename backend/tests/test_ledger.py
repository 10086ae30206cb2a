from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi.testclient import TestClient


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _account(client: TestClient, headers: dict, balance: str = "100.00") -> dict:
    response = client.post("/accounts", json={"name": "Wallet", "type": "Cash", "balance": balance}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _balance(client: TestClient, headers: dict) -> Decimal:
    return Decimal(client.get("/accounts", headers=headers).json()["accounts"][0]["balance"])


def test_transactions_move_the_account_balance(client: TestClient, auth_headers: dict) -> None:
    account = _account(client, auth_headers)
    income = client.post(
        "/transactions",
        json={"accountId": account["id"], "type": "income", "amount": "50.25", "category": "Sales", "transactionDate": _today()},
        headers=auth_headers,
    )
    assert income.status_code == 201
    assert income.json()["accountName"] == "Wallet"

    expense = client.post(
        "/transactions",
        json={"accountId": account["id"], "type": "expense", "amount": "20.10", "transactionDate": _today()},
        headers=auth_headers,
    )
    assert expense.json()["category"] == "Uncategorized"
    assert _balance(client, auth_headers) == Decimal("130.15")

    deleted = client.delete(f"/transactions/{expense.json()['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert _balance(client, auth_headers) == Decimal("150.25")


def test_transaction_validation(client: TestClient, auth_headers: dict) -> None:
    account = _account(client, auth_headers)
    for bad in [
        {"accountId": account["id"], "type": "income", "amount": "0"},
        {"accountId": account["id"], "type": "gift", "amount": "5"},
        {"accountId": account["id"], "type": "income", "amount": "1.234"},
    ]:
        response = client.post("/transactions", json=bad, headers=auth_headers)
        assert response.status_code == 400, bad


def test_cannot_book_against_another_users_account(client: TestClient, register) -> None:
    _, owner = register(email="owner@example.com")
    _, other = register(email="other@example.com")
    account = _account(client, owner)

    response = client.post(
        "/transactions",
        json={"accountId": account["id"], "type": "expense", "amount": "10"},
        headers=other,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Account not found"}
    assert _balance(client, owner) == Decimal("100.00")


def test_transaction_listing_is_scoped_and_paged(client: TestClient, register) -> None:
    _, owner = register(email="owner@example.com")
    _, other = register(email="other@example.com")
    account = _account(client, owner)
    for n in range(3):
        client.post(
            "/transactions",
            json={"accountId": account["id"], "type": "expense", "amount": f"{n + 1}", "category": "Fuel"},
            headers=owner,
        )

    page = client.get("/transactions", params={"limit": 2}, headers=owner).json()
    assert page["total"] == 3
    assert page["hasMore"] is True
    assert [Decimal(t["amount"]) for t in page["transactions"]] == [Decimal("3"), Decimal("2")]

    filtered = client.get("/transactions", params={"type": "income"}, headers=owner).json()
    assert filtered["total"] == 0
    assert client.get("/transactions", headers=other).json()["total"] == 0


def test_assets(client: TestClient, auth_headers: dict) -> None:
    created = client.post(
        "/assets",
        json={"name": "Laptop", "type": "Equipment", "initialValue": "2400", "acquisitionDate": "2023-05-01"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    assert Decimal(created.json()["currentValue"]) == Decimal("2400")

    future = (datetime.now(timezone.utc).date() + timedelta(days=30)).isoformat()
    rejected = client.post(
        "/assets",
        json={"name": "Later", "initialValue": "10", "acquisitionDate": future},
        headers=auth_headers,
    )
    assert rejected.status_code == 400

    listed = client.get("/assets", headers=auth_headers).json()
    assert [a["name"] for a in listed["assets"]] == ["Laptop"]

    dashboard = client.get("/dashboard", headers=auth_headers).json()
    assert Decimal(dashboard["netWorth"]) == Decimal("2400")
    assert dashboard["assetSummary"]["count"] == 1


def test_ledger_writes_are_audited(client: TestClient, auth_headers: dict) -> None:
    account = _account(client, auth_headers)
    client.post("/transactions", json={"accountId": account["id"], "type": "income", "amount": "5"}, headers=auth_headers)

    records = client.get("/users/me/activity", headers=auth_headers).json()["logs"]
    assert [(r["entityType"], r["action"]) for r in records[:2]] == [("transaction", "create"), ("account", "create")]
    assert records[0]["newValue"]["accountBalance"] == "105.00"


def test_editing_a_transaction_rebooks_its_balance_effect(client: TestClient, auth_headers: dict) -> None:
    account = _account(client, auth_headers)
    income = client.post(
        "/transactions",
        json={"accountId": account["id"], "type": "income", "amount": "50", "category": "Sales", "transactionDate": _today()},
        headers=auth_headers,
    ).json()
    assert _balance(client, auth_headers) == Decimal("150.00")

    response = client.put(
        f"/transactions/{income['id']}",
        json={"type": "expense", "amount": "80", "category": "  Travel  "},
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["type"] == "expense"
    assert Decimal(body["amount"]) == Decimal("80")
    assert body["category"] == "Travel"
    assert body["accountName"] == "Wallet"
    assert _balance(client, auth_headers) == Decimal("20.00")

    dashboard = client.get("/dashboard", headers=auth_headers).json()
    assert Decimal(dashboard["netWorth"]) == Decimal("20.00")
    assert Decimal(dashboard["totalExpenses"]) == Decimal("80")
    assert Decimal(dashboard["totalIncome"]) == 0

    records = client.get(
        "/users/me/activity", params={"entityType": "transaction", "action": "update"}, headers=auth_headers
    ).json()["logs"]
    assert len(records) == 1
    assert records[0]["entityId"] == str(income["id"])
    assert records[0]["oldValue"]["type"] == "income"
    assert Decimal(records[0]["oldValue"]["amount"]) == Decimal("50")
    assert records[0]["newValue"]["type"] == "expense"
    assert records[0]["newValue"]["accountBalance"] == "20.00"


def test_moving_a_transaction_between_accounts(client: TestClient, auth_headers: dict) -> None:
    wallet = _account(client, auth_headers)
    savings = client.post(
        "/accounts", json={"name": "Savings", "type": "Bank Account", "balance": "0"}, headers=auth_headers
    ).json()
    expense = client.post(
        "/transactions", json={"accountId": wallet["id"], "type": "expense", "amount": "30"}, headers=auth_headers
    ).json()

    response = client.put(f"/transactions/{expense['id']}", json={"accountId": savings["id"]}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["accountName"] == "Savings"

    balances = {a["name"]: Decimal(a["balance"]) for a in client.get("/accounts", headers=auth_headers).json()["accounts"]}
    assert balances == {"Wallet": Decimal("100.00"), "Savings": Decimal("-30.00")}


def test_transaction_edit_is_owner_only_and_validated(client: TestClient, register) -> None:
    _, owner = register(email="owner@example.com")
    _, other = register(email="other@example.com")
    account = _account(client, owner)
    expense = client.post(
        "/transactions", json={"accountId": account["id"], "type": "expense", "amount": "10"}, headers=owner
    ).json()

    foreign = client.put(f"/transactions/{expense['id']}", json={"amount": "1"}, headers=other)
    assert foreign.status_code == 404
    assert foreign.json() == {"error": "Transaction not found"}

    assert client.put(f"/transactions/{expense['id']}", json={"amount": "-5"}, headers=owner).status_code == 400
    assert client.put(f"/transactions/{expense['id']}", json={"amount": None}, headers=owner).status_code == 400
    assert _balance(client, owner) == Decimal("90.00")
