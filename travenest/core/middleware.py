# travenest/core/middleware.py
"""
Middlewares HTTP transversais da aplicação:

- `RequestContextMiddleware`: gera ou propaga o header `X-Request-ID`,
  guarda o valor em uma ContextVar (lida pelo logging e pelo envelope de erro)
  e registra método, rota, status e duração de cada requisição.
- `SecurityHeadersMiddleware`: acrescenta headers de segurança padrão a
  todas as respostas.
"""

# ========================
# --- Importações ---
# ========================
import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Constantes ---
# ========================
REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# ========================
# --- Acesso ao Contexto ---
# ========================
def get_request_id() -> str:
    """Retorna o ID da requisição corrente (string vazia fora de uma requisição)."""
    return _request_id_var.get()

# ========================
# --- Middlewares ---
# ========================
class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        token = _request_id_var.set(request_id)
        request.state.request_id = request_id

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "%s %s %s %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        finally:
            _request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response
