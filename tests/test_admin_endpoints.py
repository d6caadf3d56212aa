"""Tests for admin endpoints."""

from uuid import uuid4

from fastapi.testclient import TestClient

from printapic.api.app import create_app
from printapic.containers import AppContainer
from tests.conftest import InMemoryUserRepository, add_photo

ADMIN = {"X-Admin-Token": "admin-token"}


def test_admin_endpoints_require_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    missing = client.get("/admin/health")
    wrong = client.get("/admin/health", headers={"X-Admin-Token": "nope"})
    ok = client.get("/admin/health", headers=ADMIN)

    assert missing.status_code == 401
    assert missing.json()["error"]["kind"] == "unauthenticated"
    assert wrong.status_code == 401
    assert ok.json() == {"status": "ok"}


def test_admin_credits_tokens(
    container: AppContainer, user_repository: InMemoryUserRepository
) -> None:
    user = user_repository.add_user(tokens=2)
    client = TestClient(create_app(container))

    response = client.post(
        f"/admin/users/{user.id}/tokens", headers=ADMIN, json={"tokens": 10}
    )

    assert response.status_code == 200
    assert response.json()["balance"] == 12
    assert response.json()["tokens_added"] == 10
    assert user_repository.get_user(user.id).tokens == 12


def test_admin_credit_validation(
    container: AppContainer, user_repository: InMemoryUserRepository
) -> None:
    user = user_repository.add_user()
    client = TestClient(create_app(container))

    negative = client.post(
        f"/admin/users/{user.id}/tokens", headers=ADMIN, json={"tokens": -5}
    )
    unknown = client.post(
        f"/admin/users/{uuid4()}/tokens", headers=ADMIN, json={"tokens": 5}
    )

    assert negative.status_code == 400
    assert unknown.status_code == 404


def test_admin_user_detail(
    container: AppContainer, user_repository: InMemoryUserRepository
) -> None:
    user = user_repository.add_user(tokens=0)
    photo = add_photo(container.edit_store, user.id)
    container.edit_store.create_edit(user.id, photo.id, "sticker", "sticker", 1)
    client = TestClient(create_app(container))
    client.post(f"/admin/users/{user.id}/tokens", headers=ADMIN, json={"tokens": 3})

    response = client.get(f"/admin/users/{user.id}", headers=ADMIN)

    assert response.status_code == 200
    data = response.json()
    assert data["tokens"] == 3
    assert data["transactions"][0]["reason"] == "Manual token addition"
    assert data["edits"][0]["status"] == "pending"
