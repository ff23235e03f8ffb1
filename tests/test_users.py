# tests/test_users.py
"""
Testes das rotas de usuários (`travenest.routers.users`): leitura do perfil
protegida pelo guarda de dono, perfil público com autenticação opcional e
alteração de situação restrita a administradores.
"""

# ========================
# --- Importações ---
# ========================
import uuid

import pytest
from fastapi import status
from httpx import AsyncClient

# --- Módulos da Aplicação ---
from travenest.core.errors import VALIDATION_STATUS_CODE
from travenest.models.user import UserRole, UserStatus
from tests.conftest import API, DEFAULT_PASSWORD, bearer

# ========================
# --- Testes de GET /users/{user_id} ---
# ========================
@pytest.mark.asyncio
async def test_user_reads_own_profile(test_async_client: AsyncClient, create_user):
    user = await create_user(email="proprio@example.com")

    response = await test_async_client.get(f"{API}/users/{user.id}", headers=bearer(user))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]["user"]
    assert data["id"] == str(user.id)
    assert "hashedPassword" not in data


@pytest.mark.asyncio
async def test_user_cannot_read_other_profile(test_async_client: AsyncClient, create_user):
    user = await create_user(email="curioso@example.com")
    other = await create_user(email="outro@example.com")

    response = await test_async_client.get(f"{API}/users/{other.id}", headers=bearer(user))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_admin_reads_any_profile(test_async_client: AsyncClient, create_user):
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)
    other = await create_user(email="cliente@example.com")

    response = await test_async_client.get(f"{API}/users/{other.id}", headers=bearer(admin))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["user"]["email"] == "cliente@example.com"


@pytest.mark.asyncio
async def test_admin_reading_missing_user_gets_not_found(test_async_client: AsyncClient, create_user):
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)

    response = await test_async_client.get(f"{API}/users/{uuid.uuid4()}", headers=bearer(admin))

    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_read_profile_requires_authentication(test_async_client: AsyncClient, create_user):
    user = await create_user()

    response = await test_async_client.get(f"{API}/users/{user.id}")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED

# ========================
# --- Testes de GET /users/{user_id}/profile ---
# ========================
@pytest.mark.asyncio
async def test_anonymous_visitor_sees_only_public_profile(test_async_client: AsyncClient, create_user):
    user = await create_user(email="publico@example.com", first_name="Ana", last_name="Souza")

    response = await test_async_client.get(f"{API}/users/{user.id}/profile")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["profile"] == {
        "id": str(user.id),
        "firstName": "Ana",
        "lastName": "Souza",
        "role": "customer",
        "createdAt": data["profile"]["createdAt"],
    }
    assert "user" not in data


@pytest.mark.asyncio
async def test_invalid_token_falls_back_to_public_profile(test_async_client: AsyncClient, create_user):
    user = await create_user(email="publico@example.com")

    response = await test_async_client.get(
        f"{API}/users/{user.id}/profile", headers={"Authorization": "Bearer token-invalido"}
    )

    assert response.status_code == status.HTTP_200_OK
    assert "user" not in response.json()["data"]


@pytest.mark.asyncio
async def test_owner_and_admin_see_full_profile(test_async_client: AsyncClient, create_user):
    user = await create_user(email="dono@example.com")
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)

    for viewer in (user, admin):
        response = await test_async_client.get(f"{API}/users/{user.id}/profile", headers=bearer(viewer))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["profile"]["id"] == str(user.id)
        assert data["user"]["email"] == "dono@example.com"
        assert "hashedPassword" not in data["user"]


@pytest.mark.asyncio
async def test_other_user_sees_only_public_profile(test_async_client: AsyncClient, create_user):
    user = await create_user(email="dono@example.com")
    other = await create_user(email="vizinho@example.com", role=UserRole.OWNER)

    response = await test_async_client.get(f"{API}/users/{user.id}/profile", headers=bearer(other))

    assert response.status_code == status.HTTP_200_OK
    assert "user" not in response.json()["data"]


@pytest.mark.asyncio
async def test_public_profile_of_missing_user(test_async_client: AsyncClient):
    response = await test_async_client.get(f"{API}/users/{uuid.uuid4()}/profile")

    assert response.status_code == status.HTTP_404_NOT_FOUND

# ========================
# --- Testes de PATCH /users/{user_id}/status ---
# ========================
@pytest.mark.asyncio
async def test_admin_suspends_user_and_login_is_blocked(test_async_client: AsyncClient, create_user, csrf_headers):
    # --- Arrange ---
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)
    target = await create_user(email="alvo@example.com")

    # --- Act ---
    response = await test_async_client.patch(
        f"{API}/users/{target.id}/status",
        json={"status": "suspended"},
        headers={**bearer(admin), **csrf_headers},
    )

    # --- Assert ---
    assert response.status_code == status.HTTP_200_OK, response.text
    body = response.json()
    assert body["message"] == "User status updated to 'suspended'"
    assert body["data"]["user"]["status"] == UserStatus.SUSPENDED.value

    login = await test_async_client.post(
        f"{API}/auth/login", json={"email": target.email, "password": DEFAULT_PASSWORD}
    )
    assert login.status_code == status.HTTP_403_FORBIDDEN
    assert login.json()["error"]["message"] == "Your account has been suspended"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.CUSTOMER, UserRole.OWNER])
async def test_non_admin_cannot_change_status(test_async_client: AsyncClient, create_user, csrf_headers, role):
    user = await create_user(email="comum@example.com", role=role)

    response = await test_async_client.patch(
        f"{API}/users/{user.id}/status",
        json={"status": "active"},
        headers={**bearer(user), **csrf_headers},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_change_status_rejects_unknown_value(test_async_client: AsyncClient, create_user, csrf_headers):
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)

    response = await test_async_client.patch(
        f"{API}/users/{admin.id}/status",
        json={"status": "banned"},
        headers={**bearer(admin), **csrf_headers},
    )

    assert response.status_code == VALIDATION_STATUS_CODE


@pytest.mark.asyncio
async def test_change_status_of_missing_user(test_async_client: AsyncClient, create_user, csrf_headers):
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)

    response = await test_async_client.patch(
        f"{API}/users/{uuid.uuid4()}/status",
        json={"status": "inactive"},
        headers={**bearer(admin), **csrf_headers},
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"]["message"] == "User not found"


@pytest.mark.asyncio
async def test_change_status_requires_csrf(test_async_client: AsyncClient, create_user):
    admin = await create_user(email="admin@example.com", role=UserRole.ADMIN)

    response = await test_async_client.patch(
        f"{API}/users/{admin.id}/status", json={"status": "inactive"}, headers=bearer(admin)
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error"]["code"] == "CSRF_TOKEN_INVALID"
