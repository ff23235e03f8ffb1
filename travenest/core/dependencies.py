# travenest/core/dependencies.py
"""
Define as dependências reutilizáveis para a aplicação FastAPI: acesso ao
repositório de usuários, autenticação (obrigatória e opcional) e os guardas
de autorização por papel e por dono do recurso.

A identidade autenticada (`Principal`) vem apenas dos claims do token de
acesso; nenhuma consulta ao banco é feita para autenticar a requisição.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from typing import Annotated, Awaitable, Callable, Iterable, Optional, Union

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.core.errors import ApiError, ErrorCode
from travenest.core.security import TokenError, TokenExpiredError, verify_token
from travenest.db.mongodb_utils import get_database
from travenest.db.user_repository import UserRepository
from travenest.models.token import Principal, TokenKind
from travenest.models.user import UserRole

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Esquema OAuth2 ---
# ========================
# Lê 'Authorization: Bearer <token>'. Sem auto_error para permitir o cookie como alternativa.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

# ========================
# --- Tipos de Dependência ---
# ========================
DbDep = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
BearerTokenDep = Annotated[Optional[str], Depends(oauth2_scheme)]

OwnerIdResolver = Callable[[Request], Awaitable[Optional[Union[str, uuid.UUID]]]]

# ========================
# --- Dependência: Repositório ---
# ========================
def get_user_repository(db: DbDep) -> UserRepository:
    return UserRepository(db)


UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]

# ========================
# --- Autenticação ---
# ========================
def principal_from_token(token: str) -> Principal:
    """
    Verifica um token de acesso e monta o `Principal` a partir dos claims.

    Raises:
        TokenInvalidError / TokenExpiredError: vindos de `verify_token`.
    """
    payload = verify_token(TokenKind.ACCESS, token)
    return Principal(id=payload.sub, email=payload.email, role=payload.role)


async def authenticate(request: Request, bearer_token: BearerTokenDep) -> Principal:
    """
    Dependência de autenticação obrigatória.

    Processo:
    1. Lê o token do header `Authorization: Bearer` ou, na falta dele,
       do cookie `accessToken`.
    2. Verifica o token como token de acesso.
    3. Anexa o `Principal` em `request.state.principal`.

    Raises:
        ApiError: 401 `UNAUTHORIZED` sem token, `TOKEN_EXPIRED` para token
                  expirado e `TOKEN_INVALID` para qualquer outra falha.
    """
    token = bearer_token or request.cookies.get(settings.ACCESS_TOKEN_COOKIE_NAME)
    if not token:
        raise ApiError.unauthorized("Access denied. No token provided.")

    try:
        principal = principal_from_token(token)
    except TokenExpiredError:
        raise ApiError.unauthorized("Token expired", ErrorCode.TOKEN_EXPIRED)
    except TokenError:
        raise ApiError.unauthorized("Invalid token", ErrorCode.TOKEN_INVALID)

    request.state.principal = principal
    return principal


async def optional_auth(request: Request, bearer_token: BearerTokenDep) -> Optional[Principal]:
    """Como `authenticate`, mas segue sem `Principal` em vez de falhar."""
    try:
        return await authenticate(request, bearer_token)
    except ApiError as e:
        logger.debug(f"Autenticação opcional ignorada: {e.message}")
        request.state.principal = None
        return None

# ========================
# --- Autorização por Papel ---
# ========================
def require_role(principal: Optional[Principal], allowed_roles: Iterable[UserRole]) -> Principal:
    """
    Confere se o `Principal` tem um dos papéis permitidos.

    Raises:
        ApiError: 401 sem `Principal`; 403 se o papel não estiver em `allowed_roles`.
    """
    if principal is None:
        raise ApiError.unauthorized("Authentication required")
    if principal.role not in set(allowed_roles):
        raise ApiError.forbidden("You do not have permission to perform this action")
    return principal


def authorize(*roles: UserRole):
    """
    Fábrica de dependência que exige autenticação e um dos papéis informados.

    Uso:
        @router.patch("/users/{user_id}/status")
        async def update_status(principal: Principal = Depends(authorize(UserRole.ADMIN))):
            ...
    """
    allowed_roles = frozenset(UserRole(role) for role in roles)

    async def _check(principal: Annotated[Principal, Depends(authenticate)]) -> Principal:
        return require_role(principal, allowed_roles)
    return _check

# ========================
# --- Autorização por Dono do Recurso ---
# ========================
async def require_owner(
    principal: Optional[Principal],
    resolve_owner_id: OwnerIdResolver,
    request: Request,
) -> Principal:
    """
    Aceita administradores sem consulta; para os demais, resolve o dono do
    recurso e exige que seja o próprio `Principal`.

    Raises:
        ApiError: 401 sem `Principal`; 403 se o dono não for encontrado ou for outro.
    """
    if principal is None:
        raise ApiError.unauthorized("Authentication required")
    if principal.role == UserRole.ADMIN:
        return principal

    owner_id = await resolve_owner_id(request)
    if owner_id is None or str(owner_id) != str(principal.id):
        raise ApiError.forbidden("You do not have permission to access this resource")
    return principal


def authorize_owner(resolve_owner_id: OwnerIdResolver):
    """
    Fábrica de dependência que protege qualquer recurso cujo dono possa ser
    descoberto a partir da requisição por `resolve_owner_id`.
    """
    async def _check(request: Request, principal: Annotated[Principal, Depends(authenticate)]) -> Principal:
        return await require_owner(principal, resolve_owner_id, request)
    return _check

# ========================
# --- Atalhos de Papel ---
# ========================
is_admin = authorize(UserRole.ADMIN)
is_owner_or_admin = authorize(UserRole.OWNER, UserRole.ADMIN)
is_customer_or_admin = authorize(UserRole.CUSTOMER, UserRole.ADMIN)

# ========================
# --- Tipos Anotados para Rotas ---
# ========================
CurrentPrincipal = Annotated[Principal, Depends(authenticate)]
OptionalPrincipal = Annotated[Optional[Principal], Depends(optional_auth)]
AdminPrincipal = Annotated[Principal, Depends(is_admin)]
