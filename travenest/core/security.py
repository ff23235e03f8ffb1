# travenest/core/security.py
"""
Módulo responsável pelas funcionalidades de segurança da aplicação:
hashing de senhas (passlib/bcrypt) e emissão/verificação de tokens JWT.

Há três tipos de token (`TokenKind`): acesso, refresh e redefinição de senha.
Cada token carrega o claim `purpose` com o seu tipo e a verificação rejeita
qualquer token apresentado para um tipo diferente, mesmo com assinatura válida.
Tokens de refresh são assinados com um segredo exclusivo
(`JWT_REFRESH_SECRET_KEY`), de modo que o vazamento de um segredo não permite
forjar o outro tipo de token.
"""

# ========================
# --- Importações ---
# ========================
import logging
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict

from jose import jwt
from jose.exceptions import JOSEError
from passlib.context import CryptContext
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.models.token import TokenKind, TokenPayload
from travenest.models.user import UserInDB

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Configuração Hashing de Senha ---
# ========================
# Contexto Passlib para hashing e verificação de senhas usando bcrypt.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# ========================
# --- Constantes JWT ---
# ========================
ALGORITHM = settings.JWT_ALGORITHM

# Claims que cada tipo de token pode carregar além de purpose/iat/exp.
# O refresh é mínimo: sem e-mail nem papel, pois vive por semanas.
ALLOWED_CLAIMS: Dict[TokenKind, frozenset] = {
    TokenKind.ACCESS: frozenset({"sub", "email", "role"}),
    TokenKind.REFRESH: frozenset({"sub"}),
    TokenKind.PASSWORD_RESET: frozenset({"sub"}),
}

# ========================
# --- Exceções de Token ---
# ========================
class TokenError(Exception):
    """Base das falhas de verificação de token."""
    message = "Invalid token"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class TokenInvalidError(TokenError):
    """Assinatura incorreta, estrutura malformada ou finalidade divergente."""
    message = "Invalid token"


class TokenExpiredError(TokenError):
    """Token íntegro, mas com `exp` no passado."""
    message = "Token expired"

# ========================
# --- Funções de Senha ---
# ========================
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica se uma senha em texto plano corresponde a um hash armazenado.

    Args:
        plain_password: A senha fornecida pelo usuário (texto plano).
        hashed_password: O hash da senha armazenado.

    Returns:
        True se a senha corresponder ao hash, False caso contrário.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Ocorre se o formato do hash for inválido para o passlib
        logger.warning("Tentativa de verificar senha com hash em formato inválido.")
        return False


def get_password_hash(password: str) -> str:
    """
    Gera um hash seguro (bcrypt) para uma senha fornecida, com salt próprio
    a cada chamada.
    """
    return pwd_context.hash(password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    """Versão de `verify_password` executada no threadpool (bcrypt é caro em CPU)."""
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


async def get_password_hash_async(password: str) -> str:
    return await run_in_threadpool(get_password_hash, password)


async def dummy_verify_async() -> None:
    """Gasta o mesmo tempo de uma verificação real quando o usuário não existe."""
    await run_in_threadpool(pwd_context.dummy_verify)

# ========================
# --- Funções JWT ---
# ========================
def _now() -> datetime:
    return datetime.now(timezone.utc)


def _secret_for(kind: TokenKind) -> str:
    if kind == TokenKind.REFRESH:
        return settings.JWT_REFRESH_SECRET_KEY
    return settings.JWT_SECRET_KEY


def _claim_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def issue_token(kind: TokenKind, claims: Dict[str, Any], ttl: timedelta) -> str:
    """
    Emite um token JWT assinado do tipo `kind`.

    Args:
        kind: Tipo do token; define o segredo usado e o claim `purpose`.
        claims: Claims do token. `sub` é obrigatório; os demais precisam
                constar em `ALLOWED_CLAIMS[kind]`.
        ttl: Validade do token a partir de agora.

    Returns:
        O token JWT codificado como uma string.

    Raises:
        ValueError: Se `sub` faltar ou houver claims não permitidos para o tipo.
    """
    if "sub" not in claims:
        raise ValueError("O claim 'sub' é obrigatório.")
    unexpected = set(claims) - ALLOWED_CLAIMS[kind]
    if unexpected:
        raise ValueError(f"Claims não permitidos para token '{kind.value}': {sorted(unexpected)}")

    issued_at = _now()
    to_encode = {key: _claim_value(value) for key, value in claims.items()}
    to_encode.update(
        purpose=kind.value,
        iat=int(issued_at.timestamp()),
        exp=int((issued_at + ttl).timestamp()),
    )
    return jwt.encode(to_encode, _secret_for(kind), algorithm=ALGORITHM)


def verify_token(kind: TokenKind, token: Any) -> TokenPayload:
    """
    Decodifica e valida um token JWT do tipo `kind`.

    Ordem das verificações: assinatura, estrutura do payload (via Pydantic),
    finalidade (`purpose`) e, por último, expiração. A verificação de expiração
    do `jwt.decode` é desabilitada e feita aqui contra o relógio atual, sem
    tolerância de clock skew.

    Returns:
        O `TokenPayload` validado.

    Raises:
        TokenInvalidError: Para qualquer entrada que não seja um token íntegro
                           e do tipo esperado (inclusive valores não-string).
        TokenExpiredError: Se o token for íntegro mas `exp` já passou.
    """
    if not isinstance(token, str) or not token:
        raise TokenInvalidError()

    try:
        raw_payload = jwt.decode(
            token,
            _secret_for(kind),
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
        payload = TokenPayload.model_validate(raw_payload)
    except (JOSEError, ValidationError, ValueError, TypeError) as e:
        logger.debug(f"Token '{kind.value}' rejeitado na decodificação: {e}")
        raise TokenInvalidError() from e

    if payload.purpose != kind:
        logger.warning(f"Token com finalidade '{payload.purpose.value}' apresentado como '{kind.value}'.")
        raise TokenInvalidError()

    if kind == TokenKind.ACCESS and (payload.email is None or payload.role is None):
        raise TokenInvalidError()

    # `exp` é gravado em segundos inteiros; o relógio é comparado na mesma unidade.
    if int(_now().timestamp()) > payload.exp:
        logger.info(f"Token '{kind.value}' expirado.")
        raise TokenExpiredError()

    return payload

# ========================
# --- Emissores por Tipo ---
# ========================
def create_access_token(user: UserInDB, expires_delta: timedelta | None = None) -> str:
    ttl = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return issue_token(
        TokenKind.ACCESS,
        {"sub": user.id, "email": user.email, "role": user.role},
        ttl,
    )


def create_refresh_token(user_id: uuid.UUID, expires_delta: timedelta | None = None) -> str:
    ttl = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return issue_token(TokenKind.REFRESH, {"sub": user_id}, ttl)


def create_password_reset_token(user_id: uuid.UUID, expires_delta: timedelta | None = None) -> str:
    ttl = expires_delta or timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)
    return issue_token(TokenKind.PASSWORD_RESET, {"sub": user_id}, ttl)


def create_token_pair(user: UserInDB) -> tuple[str, str]:
    """Retorna `(access_token, refresh_token)` para o usuário."""
    return create_access_token(user), create_refresh_token(user.id)
