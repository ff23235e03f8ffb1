# tests/conftest.py
# Inibir warnings de depreciação de bibliotecas
import warnings
warnings.filterwarnings("ignore", category=DeprecationWarning, module="passlib")

# ========================
# --- Configuração .env.test ---
# ========================
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env.test")
# Valores mínimos caso o .env.test não esteja presente
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("DATABASE_NAME", "travenest_test_db")
os.environ.setdefault("JWT_SECRET_KEY", "test-access-secret-0f4c1a7e")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret-9b2d6e3c")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("MAIL_ENABLED", "false")

"""
Este módulo define fixtures do Pytest compartilhadas pela suíte de testes
da API TraveNest.

Fixtures incluem:
- Repositório de usuários em memória (`user_repo`), criado a cada teste e
  injetado no lugar do repositório MongoDB via `dependency_overrides`.
- Cliente HTTP assíncrono (`test_async_client`) para interagir com a API.
- Fábrica de usuários gravados diretamente no repositório (`create_user`).
- Usuário registrado pela API com seu token de acesso (`registered_user`).
- Obtenção de token CSRF (`csrf_headers`).
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional

import pytest
import pytest_asyncio
from fastapi import status
from httpx import ASGITransport, AsyncClient

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.core.dependencies import get_user_repository
from travenest.core.security import create_access_token, get_password_hash
from travenest.db.errors import DuplicateRecordError, RecordNotFoundError
from travenest.main import app as fastapi_app
from travenest.models.user import UserInDB, UserRole, UserStatus

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)

API = settings.API_V1_STR
DEFAULT_PASSWORD = "Abc12345"

user_a_data: Dict[str, str] = {
    "email": "maria.silva@example.com",
    "password": DEFAULT_PASSWORD,
    "firstName": "Maria",
    "lastName": "Silva",
    "phone": "+94771234567",
    "role": "customer",
}

# ========================
# --- Repositório em Memória ---
# ========================
class InMemoryUserRepository:
    """
    Implementação em memória do contrato de `UserRepository`.
    Cada teste recebe uma instância nova; nada é compartilhado entre testes.
    """

    def __init__(self) -> None:
        self._users: Dict[uuid.UUID, UserInDB] = {}

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        email = email.strip().lower()
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[UserInDB]:
        user = self._users.get(uuid.UUID(str(user_id)))
        return user.model_copy(deep=True) if user else None

    async def save(self, user: UserInDB) -> UserInDB:
        for existing in self._users.values():
            if existing.email == user.email.lower() and existing.id != user.id:
                raise DuplicateRecordError("Email already registered", detail={"field": "email"})
        self._users[user.id] = user.model_copy(deep=True)
        return user

    async def update(self, user: UserInDB) -> UserInDB:
        if user.id not in self._users:
            raise RecordNotFoundError("User not found", detail={"id": str(user.id)})
        return await self.save(user)

    async def create_indexes(self) -> None:
        return None

# ========================
# --- Fixture Principal: Cliente de Teste HTTP ---
# ========================
@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest_asyncio.fixture(scope="function")
async def test_async_client(user_repo: InMemoryUserRepository) -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP (`AsyncClient`) ligado à aplicação FastAPI via `ASGITransport`.

    O repositório de usuários é substituído pelo repositório em memória do
    teste. `raise_app_exceptions=False` permite inspecionar a resposta 500
    montada pelo handler de exceções não tratadas.
    """
    logger.debug("Fixture 'test_async_client': Iniciando setup com repositório em memória...")
    fastapi_app.dependency_overrides[get_user_repository] = lambda: user_repo
    transport = ASGITransport(app=fastapi_app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        fastapi_app.dependency_overrides.clear()
        logger.debug("Fixture 'test_async_client': Overrides de dependência removidos.")

# ========================
# --- Fixtures de Usuários ---
# ========================
@pytest.fixture
def create_user(user_repo: InMemoryUserRepository) -> Callable[..., Awaitable[UserInDB]]:
    """Fábrica que grava um usuário diretamente no repositório em memória."""
    async def _create(
        email: str = "user@example.com",
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.CUSTOMER,
        status: UserStatus = UserStatus.ACTIVE,
        first_name: str = "Test",
        last_name: str = "User",
    ) -> UserInDB:
        user = UserInDB(
            email=email,
            hashed_password=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=status,
        )
        return await user_repo.save(user)
    return _create


def bearer(user: UserInDB) -> Dict[str, str]:
    """Header Authorization com um token de acesso novo para `user`."""
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest_asyncio.fixture(scope="function")
async def registered_user(test_async_client: AsyncClient) -> Dict[str, str]:
    """
    Registra o Usuário A pela API.

    Returns:
        Dict com `id`, `email`, `password` e `access_token` do usuário.
    """
    response = await test_async_client.post(f"{API}/auth/register", json=user_a_data)
    if response.status_code != status.HTTP_201_CREATED:
        pytest.fail(f"Falha inesperada ao registrar Usuário A: {response.status_code} - {response.text}")
    data = response.json()["data"]
    return {
        "id": data["user"]["id"],
        "email": data["user"]["email"],
        "password": user_a_data["password"],
        "access_token": data["accessToken"],
    }


@pytest.fixture
def auth_headers_a(registered_user: Dict[str, str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {registered_user['access_token']}"}

# ========================
# --- Fixture CSRF ---
# ========================
@pytest_asyncio.fixture(scope="function")
async def csrf_headers(test_async_client: AsyncClient) -> Dict[str, str]:
    """
    Obtém um token CSRF: o cookie fica no cliente e o valor é devolvido
    como header `x-csrf-token` para as requisições que alteram estado.
    """
    response = await test_async_client.get(f"{API}/csrf-token")
    assert response.status_code == status.HTTP_200_OK, response.text
    return {settings.CSRF_HEADER_NAME: response.json()["data"]["csrfToken"]}
