# travenest/core/csrf.py
"""
Proteção CSRF por double-submit cookie.

O servidor grava um token aleatório em um cookie `httpOnly`/`sameSite=strict`
e o devolve no corpo da resposta; o cliente ecoa o valor no header
`x-csrf-token` em toda requisição que altera estado. A requisição só passa
se cookie e header estiverem presentes e forem idênticos byte a byte,
comparados em tempo constante.

A verificação é uma dependência FastAPI (`csrf_protect`) aplicada por rota,
para que a falha chegue aos exception handlers como qualquer outro `ApiError`.
"""

# ========================
# --- Importações ---
# ========================
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Request, Response

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.core.errors import ApiError, ErrorCode

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Constantes ---
# ========================
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
CSRF_TOKEN_BYTES = 32

# ========================
# --- Emissão ---
# ========================
def generate_csrf_token() -> str:
    """Gera um token opaco de 256 bits em hexadecimal."""
    return secrets.token_hex(CSRF_TOKEN_BYTES)


def set_csrf_cookie(response: Response) -> str:
    """
    Gera um novo token CSRF, grava-o no cookie da resposta e o retorna
    para ser enviado ao cliente no corpo.
    """
    token = generate_csrf_token()
    response.set_cookie(
        key=settings.CSRF_COOKIE_NAME,
        value=token,
        max_age=settings.CSRF_TOKEN_EXPIRE_HOURS * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )
    return token

# ========================
# --- Validação ---
# ========================
def validate_csrf_tokens(cookie_value: Optional[str], header_value: Optional[str]) -> None:
    """
    Compara o token do cookie com o do header.

    Raises:
        ApiError: 403 `CSRF_TOKEN_INVALID` se algum dos valores faltar ou se
                  eles diferirem.
    """
    if not cookie_value:
        raise ApiError.forbidden("CSRF token missing from cookie", ErrorCode.CSRF_TOKEN_INVALID)
    if not header_value:
        raise ApiError.forbidden("CSRF token missing from header", ErrorCode.CSRF_TOKEN_INVALID)
    if not hmac.compare_digest(cookie_value.encode("utf-8"), header_value.encode("utf-8")):
        raise ApiError.forbidden("Invalid CSRF token", ErrorCode.CSRF_TOKEN_INVALID)


async def csrf_protect(request: Request) -> None:
    """
    Dependência de rota que aplica a verificação CSRF a métodos que alteram estado.
    Métodos seguros (GET, HEAD, OPTIONS) sempre passam.

    Com `CSRF_ENFORCE=False` a falha é apenas registrada como WARNING.
    """
    if not settings.CSRF_ENABLED or request.method.upper() in SAFE_METHODS:
        return

    try:
        validate_csrf_tokens(
            request.cookies.get(settings.CSRF_COOKIE_NAME),
            request.headers.get(settings.CSRF_HEADER_NAME),
        )
    except ApiError as e:
        if settings.CSRF_ENFORCE:
            raise
        logger.warning(f"[CSRF] {e.message} em {request.method} {request.url.path} (modo observação)")
