# travenest/core/error_handlers.py
"""
Classificador central de erros.

`classify_exception` converte qualquer exceção em um `ApiError` seguindo a
tabela abaixo, e `register_exception_handlers` instala na aplicação os
handlers que transformam esse `ApiError` no envelope de erro padrão
`{success: false, error: {code, message, details?, stack?}, meta}`.

| Exceção                               | status | código                   |
|---------------------------------------|--------|--------------------------|
| ApiError                              | o dele | o dele                   |
| RequestValidationError                | 422    | VALIDATION_ERROR         |
| TokenInvalidError / TokenExpiredError | 401    | TOKEN_INVALID / _EXPIRED |
| DuplicateRecordError / DuplicateKey   | 409    | RESOURCE_ALREADY_EXISTS  |
| RecordNotFoundError                   | 404    | RESOURCE_NOT_FOUND       |
| HTTPException (rota inexistente)      | 404    | NOT_FOUND                |
| HTTPException (método não permitido)  | 405    | METHOD_NOT_ALLOWED       |
| RateLimitExceeded                     | 429    | TOO_MANY_REQUESTS        |
| qualquer outra                        | 500    | INTERNAL_ERROR           |
"""

# ========================
# --- Importações ---
# ========================
import logging
import traceback
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.core.errors import ApiError, ErrorCode
from travenest.core.middleware import REQUEST_ID_HEADER, get_request_id
from travenest.core.security import TokenError, TokenExpiredError
from travenest.db.errors import DuplicateRecordError, RecordNotFoundError, StorageError
from travenest.models.response import ApiErrorResponse, ErrorBody, ResponseMeta

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Constantes ---
# ========================
GENERIC_ERROR_MESSAGE = "Internal Server Error"

# Prefixos internos que o FastAPI acrescenta ao caminho do campo inválido.
_LOCATION_PREFIXES = {"body", "query", "path", "cookie", "header"}
_VALUE_ERROR_PREFIX = "Value error, "

_STATUS_TO_CODE = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.TOO_MANY_REQUESTS,
}

# ========================
# --- Formatação de Validação ---
# ========================
def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Converte os erros do Pydantic em `[{field, message}]`.

    O campo usa o nome do JSON (alias camelCase) sem o prefixo de localização
    (`body`, `query`...) e a mensagem perde o prefixo "Value error, " que o
    Pydantic acrescenta aos `ValueError` dos validadores.
    """
    details = []
    for err in errors:
        location = list(err.get("loc", ()))
        if location and location[0] in _LOCATION_PREFIXES:
            location = location[1:]
        message = str(err.get("msg", ""))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        details.append({"field": ".".join(str(part) for part in location), "message": message})
    return details

# ========================
# --- Classificação ---
# ========================
def classify_exception(exc: BaseException, path: Optional[str] = None) -> ApiError:
    """
    Converte qualquer exceção em um `ApiError`.

    Args:
        exc: A exceção capturada.
        path: Caminho da requisição, usado na mensagem de rota inexistente.

    Returns:
        O próprio `exc` se já for `ApiError`; caso contrário, um `ApiError`
        novo conforme a tabela do módulo.
    """
    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, RequestValidationError):
        return ApiError.validation_error(format_validation_errors(exc.errors()))

    if isinstance(exc, TokenExpiredError):
        return ApiError.unauthorized("Token expired", ErrorCode.TOKEN_EXPIRED)
    if isinstance(exc, TokenError):
        return ApiError.unauthorized("Invalid token", ErrorCode.TOKEN_INVALID)

    if isinstance(exc, (DuplicateRecordError, DuplicateKeyError)):
        return ApiError.conflict("Resource already exists")
    if isinstance(exc, RecordNotFoundError):
        return ApiError.not_found("Resource not found")

    if isinstance(exc, RateLimitExceeded):
        return ApiError.too_many_requests()

    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return ApiError(exc.status_code, f"Route {path or ''} not found", ErrorCode.NOT_FOUND)
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return ApiError(exc.status_code, "Method not allowed", ErrorCode.METHOD_NOT_ALLOWED)
        return ApiError(
            exc.status_code,
            str(exc.detail),
            _STATUS_TO_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
            is_operational=exc.status_code < 500,
        )

    # StorageError genérico e qualquer outra exceção: falha não operacional.
    return ApiError.internal(GENERIC_ERROR_MESSAGE)

# ========================
# --- Montagem da Resposta ---
# ========================
def resolve_request_id(request: Request) -> str:
    """ID da requisição: estado da requisição, ContextVar, header de entrada ou um novo."""
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or request.headers.get(REQUEST_ID_HEADER)
        or uuid4().hex
    )


def _log_error(request: Request, error: ApiError, exc: BaseException) -> None:
    summary = f"[{error.status_code}] {error.code_value} - {error.message} ({request.method} {request.url.path})"
    if error.is_operational:
        logger.warning(summary)
    else:
        logger.error(summary, exc_info=(type(exc), exc, exc.__traceback__))


def build_error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Classifica `exc`, registra o log e monta o envelope de erro."""
    error = classify_exception(exc, request.url.path)
    _log_error(request, error, exc)

    request_id = resolve_request_id(request)
    stack = None
    if settings.is_development:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    body = ApiErrorResponse(
        error=ErrorBody(
            code=error.code_value,
            message=error.message if error.is_operational else GENERIC_ERROR_MESSAGE,
            details=error.details,
            stack=stack,
        ),
        meta=ResponseMeta(request_id=request_id),
    )

    headers = {REQUEST_ID_HEADER: request_id}
    if isinstance(exc, StarletteHTTPException) and exc.headers:
        headers.update(exc.headers)

    return JSONResponse(
        status_code=error.status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )

# ========================
# --- Registro dos Handlers ---
# ========================
def register_exception_handlers(app: FastAPI) -> None:
    """Instala os handlers que convertem qualquer exceção no envelope de erro."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return build_error_response(request, exc)

    @app.exception_handler(TokenError)
    async def handle_token_error(request: Request, exc: TokenError):
        return build_error_response(request, exc)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        return build_error_response(request, exc)

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
        return build_error_response(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return build_error_response(request, exc)

    # Síncrono: o SlowAPIMiddleware chama este handler sem `await`.
    @app.exception_handler(RateLimitExceeded)
    def handle_rate_limit_exceeded(request: Request, exc: RateLimitExceeded):
        return build_error_response(request, exc)

    # Executado pelo ServerErrorMiddleware; a exceção ainda é relançada
    # depois da resposta, para o servidor registrar a falha.
    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        return build_error_response(request, exc)
