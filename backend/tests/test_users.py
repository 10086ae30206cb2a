from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from conftest import PASSWORD


def test_registration_audit_precedes_auto_login(client: TestClient, register) -> None:
    _, headers = register(email="audit@example.com")
    response = client.get("/users/me/activity", headers=headers)
    assert response.status_code == 200
    records = response.json()["logs"]

    # Most recent first: the automatic login was written after the registration.
    assert [r["action"] for r in records] == ["login", "create"]
    assert records[0]["timestamp"] >= records[1]["timestamp"]
    assert records[0]["id"] > records[1]["id"]
    assert records[0]["newValue"]["autoLoginAfterRegistration"] is True


def test_update_profile_records_old_and_new_values(client: TestClient, register) -> None:
    _, headers = register(email="profile@example.com", name="Before")
    response = client.patch(
        "/users/me",
        json={"name": "After", "preferences": {"theme": "dark"}, "reason": "rebrand"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["name"] == "After"
    assert response.json()["preferences"] == {"theme": "dark"}

    records = client.get("/users/me/activity", headers=headers).json()["logs"]
    update = records[0]
    assert update["action"] == "update"
    assert update["reason"] == "rebrand"
    assert update["oldValue"]["name"] == "Before"
    assert update["newValue"]["name"] == "After"


def test_update_merges_preferences(client: TestClient, register) -> None:
    _, headers = register(email="prefs@example.com")
    client.patch("/users/me", json={"preferences": {"theme": "dark"}}, headers=headers)
    response = client.patch("/users/me", json={"preferences": {"locale": "de"}}, headers=headers)
    assert response.json()["preferences"] == {"theme": "dark", "locale": "de"}


def test_update_rejects_null_name(client: TestClient, auth_headers: dict) -> None:
    response = client.patch("/users/me", json={"name": None}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "name cannot be null"}


def test_soft_deleted_user_loses_access(client: TestClient, register) -> None:
    _, headers = register(email="gone@example.com")
    response = client.request("DELETE", "/users/me", json={"reason": "closing"}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Account deleted"}

    assert client.get("/users/me", headers=headers).status_code == 401
    login = client.post("/auth/login", json={"email": "gone@example.com", "password": PASSWORD})
    assert login.status_code == 401

    # The address stays reserved.
    again = client.post("/auth/register", json={"email": "gone@example.com", "password": PASSWORD, "name": "Again"})
    assert again.status_code == 409


def test_activity_filters_and_pages(client: TestClient, register) -> None:
    _, headers = register(email="feed@example.com")
    client.patch("/users/me", json={"name": "Renamed"}, headers=headers)

    page = client.get("/users/me/activity", params={"limit": 2}, headers=headers).json()
    assert page["total"] == 3
    assert page["hasMore"] is True
    assert [r["action"] for r in page["logs"]] == ["update", "login"]
    assert page["logs"][0]["entityType"] == "user"

    updates = client.get("/users/me/activity", params={"action": "update"}, headers=headers).json()
    assert updates["total"] == 1
    assert updates["logs"][0]["newValue"]["name"] == "Renamed"

    oldest = client.get("/users/me/activity", params={"sortOrder": "asc", "limit": 1}, headers=headers).json()
    assert oldest["logs"][0]["action"] == "create"

    today = datetime.now(timezone.utc).date()
    same_day = client.get(
        "/users/me/activity", params={"startDate": today.isoformat(), "endDate": today.isoformat()}, headers=headers
    ).json()
    assert same_day["total"] == 3
    before = client.get(
        "/users/me/activity", params={"endDate": (today - timedelta(days=1)).isoformat()}, headers=headers
    ).json()
    assert before["total"] == 0

    assert client.get("/users/me/activity", params={"action": "rename"}, headers=headers).status_code == 400


def test_login_history_lists_only_logins(client: TestClient, register) -> None:
    _, headers = register(email="history@example.com")
    client.post("/auth/login", json={"email": "history@example.com", "password": PASSWORD})
    client.patch("/users/me", json={"name": "Someone"}, headers=headers)

    response = client.get("/users/me/logins", headers=headers)
    assert response.status_code == 200
    assert [r["action"] for r in response.json()] == ["login", "login"]


def test_long_user_agent_is_clipped_on_audit_records(client: TestClient) -> None:
    response = client.post(
        "/auth/register",
        json={"email": "agent@example.com", "password": PASSWORD, "name": "Agent"},
        headers={"User-Agent": "x" * 2000},
    )
    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['accessToken']}"}

    records = client.get("/users/me/activity", headers=headers).json()["logs"]
    assert [r["action"] for r in records] == ["login", "create"]
    assert all(r["userAgent"] == "x" * 512 for r in records)
