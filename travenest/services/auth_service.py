# travenest/services/auth_service.py
"""
Regras de negócio de autenticação: registro, login, troca de tokens de
refresh, troca de senha e o fluxo de redefinição de senha.

As funções recebem o `UserRepository` por parâmetro (nunca um estado global)
e sinalizam falhas de negócio levantando `ApiError`.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import BackgroundTasks

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.core.email import send_password_reset_email
from travenest.core.errors import ApiError, ErrorCode
from travenest.core.security import (
    TokenError,
    TokenExpiredError,
    create_password_reset_token,
    create_token_pair,
    dummy_verify_async,
    get_password_hash_async,
    verify_password_async,
    verify_token,
)
from travenest.db.errors import DuplicateRecordError, RecordNotFoundError
from travenest.db.user_repository import UserRepository
from travenest.models.token import TokenKind
from travenest.models.user import UserCreate, UserInDB, UserStatus

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Mensagens ---
# ========================
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
RESET_REQUESTED_MESSAGE = "If the email exists, a reset link will be sent"
RESET_INVALID_MESSAGE = "Invalid or expired reset token"

# ========================
# --- Tipos de Retorno ---
# ========================
@dataclass(frozen=True)
class AuthSession:
    """Usuário autenticado e o par de tokens recém-emitido."""
    user: UserInDB
    access_token: str
    refresh_token: str


def _start_session(user: UserInDB) -> AuthSession:
    access_token, refresh_token = create_token_pair(user)
    return AuthSession(user=user, access_token=access_token, refresh_token=refresh_token)


def _ensure_active(user: UserInDB) -> None:
    if user.status == UserStatus.SUSPENDED:
        raise ApiError.forbidden("Your account has been suspended", ErrorCode.ACCOUNT_DISABLED)
    if not user.is_active:
        raise ApiError.forbidden("Your account is not active", ErrorCode.ACCOUNT_DISABLED)

# ========================
# --- Registro e Login ---
# ========================
async def register_user(repo: UserRepository, user_in: UserCreate) -> AuthSession:
    """
    Cria a conta e já inicia a sessão.

    Raises:
        ApiError: 409 se o e-mail já estiver cadastrado.
    """
    if await repo.find_by_email(user_in.email) is not None:
        raise ApiError.conflict("Email already registered")

    user = UserInDB(
        email=user_in.email,
        hashed_password=await get_password_hash_async(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        phone=user_in.phone,
        role=user_in.role,
    )
    try:
        await repo.save(user)
    except DuplicateRecordError:
        # Outro registro com o mesmo e-mail entrou entre a busca e a gravação.
        raise ApiError.conflict("Email already registered")

    logger.info(f"Novo usuário registrado: {user.id} ({user.role.value})")
    return _start_session(user)


async def login_user(repo: UserRepository, email: str, password: str) -> AuthSession:
    """
    Autentica por e-mail e senha.

    E-mail desconhecido e senha errada produzem a mesma resposta. A situação
    da conta só é revelada a quem acertou a senha.

    Raises:
        ApiError: 401 `INVALID_CREDENTIALS`; 403 `ACCOUNT_DISABLED`.
    """
    user = await repo.find_by_email(email)
    if user is None:
        await dummy_verify_async()
        raise ApiError.unauthorized(INVALID_CREDENTIALS_MESSAGE, ErrorCode.INVALID_CREDENTIALS)

    if not await verify_password_async(password, user.hashed_password):
        logger.info(f"Senha incorreta para o usuário {user.id}.")
        raise ApiError.unauthorized(INVALID_CREDENTIALS_MESSAGE, ErrorCode.INVALID_CREDENTIALS)

    _ensure_active(user)
    return _start_session(user)


async def refresh_tokens(repo: UserRepository, refresh_token: str | None) -> AuthSession:
    """
    Troca um token de refresh válido por um novo par de tokens.

    Raises:
        ApiError: 401 sem token, com token expirado (`TOKEN_EXPIRED`) ou
                  inválido/de usuário inexistente (`TOKEN_INVALID`);
                  403 `ACCOUNT_DISABLED` para conta não ativa.
    """
    if not refresh_token:
        raise ApiError.unauthorized("Refresh token is required")

    try:
        payload = verify_token(TokenKind.REFRESH, refresh_token)
    except TokenExpiredError:
        raise ApiError.unauthorized("Refresh token has expired", ErrorCode.TOKEN_EXPIRED)
    except TokenError:
        raise ApiError.unauthorized("Invalid refresh token", ErrorCode.TOKEN_INVALID)

    user = await repo.find_by_id(payload.sub)
    if user is None:
        raise ApiError.unauthorized("Invalid refresh token", ErrorCode.TOKEN_INVALID)
    if not user.is_active:
        raise ApiError.forbidden("Account is not active", ErrorCode.ACCOUNT_DISABLED)

    return _start_session(user)

# ========================
# --- Conta do Usuário ---
# ========================
async def get_user(repo: UserRepository, user_id: uuid.UUID) -> UserInDB:
    user = await repo.find_by_id(user_id)
    if user is None:
        raise ApiError.not_found("User not found")
    return user


async def change_password(
    repo: UserRepository,
    user_id: uuid.UUID,
    current_password: str,
    new_password: str,
) -> str:
    """
    Troca a senha de um usuário autenticado, conferindo a senha atual.

    Raises:
        ApiError: 404 se o usuário não existir; 400 se a senha atual estiver errada.
    """
    user = await get_user(repo, user_id)
    if not await verify_password_async(current_password, user.hashed_password):
        raise ApiError.bad_request("Current password is incorrect")

    user.hashed_password = await get_password_hash_async(new_password)
    user.updated_at = datetime.now(timezone.utc)
    await repo.update(user)
    logger.info(f"Senha alterada pelo usuário {user.id}.")
    return "Password changed successfully"


async def update_user_status(repo: UserRepository, user_id: uuid.UUID, new_status: UserStatus) -> UserInDB:
    """Altera a situação da conta (ativa, suspensa...). Uso administrativo."""
    user = await get_user(repo, user_id)
    user.status = new_status
    user.updated_at = datetime.now(timezone.utc)
    await repo.update(user)
    logger.info(f"Situação do usuário {user.id} alterada para '{new_status.value}'.")
    return user

# ========================
# --- Redefinição de Senha ---
# ========================
async def request_password_reset(
    repo: UserRepository,
    email: str,
    background_tasks: BackgroundTasks,
) -> str:
    """
    Inicia a redefinição de senha.

    A resposta é sempre a mesma, exista ou não o e-mail, para não permitir
    descobrir contas cadastradas. Quando o usuário existe, o token é enviado
    por e-mail em segundo plano.
    """
    user = await repo.find_by_email(email)
    if user is None:
        logger.info("Redefinição de senha solicitada para e-mail não cadastrado.")
        return RESET_REQUESTED_MESSAGE

    token = create_password_reset_token(user.id)
    background_tasks.add_task(send_password_reset_email, user.email, user.first_name, token)
    if settings.is_development:
        logger.debug(f"Token de redefinição para {user.id}: {token}")
    logger.info(f"Redefinição de senha solicitada pelo usuário {user.id}.")
    return RESET_REQUESTED_MESSAGE


async def complete_password_reset(repo: UserRepository, token: str, new_password: str) -> str:
    """
    Conclui a redefinição de senha com um token do tipo `password-reset`.

    Qualquer falha (assinatura, finalidade, expiração, usuário inexistente)
    produz o mesmo erro 400, sem indicar a causa.
    """
    try:
        payload = verify_token(TokenKind.PASSWORD_RESET, token)
    except TokenError as e:
        logger.info(f"Token de redefinição rejeitado: {type(e).__name__}")
        raise ApiError.bad_request(RESET_INVALID_MESSAGE)

    user = await repo.find_by_id(payload.sub)
    if user is None:
        raise ApiError.bad_request(RESET_INVALID_MESSAGE)

    user.hashed_password = await get_password_hash_async(new_password)
    user.updated_at = datetime.now(timezone.utc)
    try:
        await repo.update(user)
    except RecordNotFoundError:
        raise ApiError.bad_request(RESET_INVALID_MESSAGE)

    logger.info(f"Senha redefinida para o usuário {user.id}.")
    return "Password reset successfully"
