import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("AUTO_SEED", "false")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("PUBLIC_APP_URL", "https://menu.example.com")
os.environ.setdefault("PUBLIC_API_URL", "https://api.example.com")

import uuid
from typing import Any, AsyncGenerator, Callable, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import tableside.db.models  # noqa: F401
from tableside.db.base import Base
from tableside.db.session import get_async_session

API = "/api/v1"


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    path = tmp_path / "storage"
    monkeypatch.setenv("STORAGE_DIR", str(path))
    return path


@pytest.fixture
def session_maker() -> Generator[async_sessionmaker[AsyncSession], None, None]:
    db_name = f"tableside_test_{uuid.uuid4().hex}"
    shared_memory_uri = f"file:{db_name}?mode=memory&cache=shared&uri=true"

    # keeps the shared in-memory database alive for the duration of the test
    sync_engine = create_engine(f"sqlite+pysqlite:///{shared_memory_uri}", poolclass=StaticPool)
    Base.metadata.create_all(sync_engine)

    engine = create_async_engine(f"sqlite+aiosqlite:///{shared_memory_uri}", echo=False, poolclass=StaticPool)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    sync_engine.dispose()


@pytest.fixture
def client(session_maker) -> Generator[TestClient, None, None]:
    from tableside.api.main import app

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(token: str, restaurant_id: str | None = None) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {token}"}
    if restaurant_id:
        headers["X-Restaurant-ID"] = restaurant_id
    return headers


@pytest.fixture
def register(client) -> Callable[..., Dict[str, Any]]:
    """Register an account and log in; returns the user body plus its access token."""

    def _register(email: str, password: str = "secret-pass", **extra: Any) -> Dict[str, Any]:
        resp = client.post(f"{API}/auth/register", json={"email": email, "password": password, **extra})
        assert resp.status_code == 201, resp.text
        user = resp.json()
        login = client.post(f"{API}/auth/login", data={"username": email, "password": password})
        assert login.status_code == 200, login.text
        user["token"] = login.json()["access_token"]
        return user

    return _register


@pytest.fixture
def owner(register) -> Dict[str, Any]:
    """Restaurant owner with one restaurant; `headers` select that restaurant."""
    user = register("owner@tableside.io", full_name="Olive Owner", restaurant_name="Casa Verde")
    membership = user["memberships"][0]
    user["restaurant_id"] = str(membership["restaurant_id"])
    user["slug"] = membership["slug"]
    user["headers"] = auth_headers(user["token"], user["restaurant_id"])
    return user


@pytest.fixture
def add_staff(client, owner, register) -> Callable[..., Dict[str, Any]]:
    """Invite an email to the owner's restaurant and accept as that user."""

    def _add(email: str, role: str = "wait_staff") -> Dict[str, Any]:
        invite = client.post(
            f"{API}/staff/invitations", json={"email": email, "role": role}, headers=owner["headers"]
        )
        assert invite.status_code == 201, invite.text
        user = register(email)
        accepted = client.post(
            f"{API}/invitations/accept",
            json={"token": invite.json()["token"]},
            headers=auth_headers(user["token"]),
        )
        assert accepted.status_code == 200, accepted.text
        user["headers"] = auth_headers(user["token"], owner["restaurant_id"])
        return user

    return _add


@pytest.fixture
def menu_item(client, owner) -> Dict[str, Any]:
    category = client.post(f"{API}/menu/categories", json={"name": "Mains"}, headers=owner["headers"])
    assert category.status_code == 201, category.text
    resp = client.post(
        f"{API}/menu/items",
        json={"name": "Margherita", "price": 12.5, "category_id": category.json()["id"]},
        headers=owner["headers"],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def table(client, owner) -> Dict[str, Any]:
    resp = client.post(f"{API}/tables", json={"table_number": 4, "capacity": 2}, headers=owner["headers"])
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def place_order(client, owner) -> Callable[..., Dict[str, Any]]:
    def _place(items, table_number: int = 4, **extra: Any) -> Dict[str, Any]:
        resp = client.post(
            f"{API}/public/restaurants/{owner['slug']}/orders",
            json={"table_number": table_number, "items": items, **extra},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _place
