import asyncio

import pytest
from fastapi.testclient import TestClient

from moneytrail.config import Settings
from moneytrail.database import create_engine, create_session_maker, init_db
from moneytrail.main import create_app

PASSWORD = "Sup3rSecret"


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        secret_key="test-secret",
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture()
def client(settings: Settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture()
def run_db(settings: Settings):
    """Run an async callable against the test database with its own engine.

    The callable receives a session maker; its return value is passed back.
    """

    def run(fn):
        async def main():
            engine = create_engine(settings)
            await init_db(engine)
            try:
                return await fn(create_session_maker(engine))
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return run


@pytest.fixture()
def register(client: TestClient):
    """Register a user and return ``(user, headers)``."""

    def _register(email: str = "owner@example.com", name: str = "Owner", password: str = PASSWORD):
        response = client.post("/auth/register", json={"email": email, "password": password, "name": name})
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['accessToken']}"}

    return _register


@pytest.fixture()
def auth_headers(register) -> dict:
    _, headers = register()
    return headers
