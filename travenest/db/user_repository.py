# travenest/db/user_repository.py
"""
Repositório de usuários sobre o MongoDB (motor).

É a única porta de acesso às credenciais: o restante da aplicação depende
apenas de `find_by_email`, `find_by_id` e `save`. Uma instância é criada por
requisição a partir do banco compartilhado (ver `get_user_repository`).
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

# --- Módulos da Aplicação ---
from travenest.db.errors import DuplicateRecordError, RecordNotFoundError
from travenest.models.user import UserInDB

# ========================
# --- Configurações e Constantes ---
# ========================
logger = logging.getLogger(__name__)
USERS_COLLECTION = "users"

# ========================
# --- Funções Auxiliares (Internas) ---
# ========================
def _to_document(user: UserInDB) -> Dict[str, Any]:
    document = user.model_dump(mode="json")
    document["email"] = document["email"].lower()
    return document


def _from_document(document: Dict[str, Any]) -> Optional[UserInDB]:
    document.pop("_id", None)
    try:
        return UserInDB.model_validate(document)
    except ValidationError as e:
        logger.error(f"Documento de usuário inválido no DB (id={document.get('id')}): {e}")
        return None

# ========================
# --- Repositório ---
# ========================
class UserRepository:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = db[USERS_COLLECTION]

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        """Busca um usuário pelo e-mail (comparação sem diferenciar maiúsculas)."""
        document = await self._collection.find_one({"email": email.strip().lower()})
        return _from_document(document) if document else None

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[UserInDB]:
        document = await self._collection.find_one({"id": str(user_id)})
        return _from_document(document) if document else None

    async def save(self, user: UserInDB) -> UserInDB:
        """
        Grava o usuário: insere se o ID ainda não existe, substitui caso contrário.

        Args:
            user: O usuário completo a ser gravado.

        Returns:
            O próprio usuário gravado.

        Raises:
            DuplicateRecordError: Se o e-mail já pertencer a outro usuário.
        """
        document = _to_document(user)
        try:
            result = await self._collection.replace_one({"id": document["id"]}, document, upsert=True)
        except DuplicateKeyError as e:
            logger.warning(f"Tentativa de gravar usuário com e-mail duplicado: {document['email']}")
            raise DuplicateRecordError("Email already registered", detail={"field": "email"}) from e

        if result.upserted_id is not None:
            logger.info(f"Usuário {user.id} criado.")
        else:
            logger.info(f"Usuário {user.id} atualizado.")
        return user

    async def update(self, user: UserInDB) -> UserInDB:
        """
        Substitui um usuário já existente.

        Raises:
            RecordNotFoundError: Se não houver usuário com esse ID.
            DuplicateRecordError: Se o e-mail já pertencer a outro usuário.
        """
        document = _to_document(user)
        try:
            result = await self._collection.replace_one({"id": document["id"]}, document)
        except DuplicateKeyError as e:
            raise DuplicateRecordError("Email already registered", detail={"field": "email"}) from e
        if result.matched_count == 0:
            logger.warning(f"Tentativa de atualizar usuário inexistente: ID {user.id}")
            raise RecordNotFoundError("User not found", detail={"id": str(user.id)})
        return user

    # ========================
    # --- Configuração de Índices ---
    # ========================
    async def create_indexes(self) -> None:
        """Cria os índices de unicidade de `id` e `email` (idempotente)."""
        await self._collection.create_index("id", unique=True, name="id_unique_idx")
        await self._collection.create_index("email", unique=True, name="email_unique_idx")
        logger.info("Índices da coleção 'users' ('id', 'email') verificados/criados com sucesso.")
