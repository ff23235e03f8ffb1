# travenest/core/errors.py
"""
Taxonomia de erros da API.

Toda falha de domínio é levantada como `ApiError`, que carrega o status HTTP,
um código estável legível por máquina (`ErrorCode`), a mensagem e a flag
`is_operational`:

- operacional (`True`): condição de negócio esperada (credenciais inválidas,
  token expirado, papel insuficiente, e-mail duplicado). A mensagem é segura
  para ser devolvida ao cliente como está e o erro é registrado como WARNING.
- não operacional (`False`): falha inesperada ou de programação. É registrada
  como ERROR com traceback completo e o cliente recebe apenas uma mensagem genérica.
"""

# ========================
# --- Importações ---
# ========================
from enum import Enum
from typing import Any, Optional

from fastapi import status

# O nome do status 422 mudou entre versões do Starlette; o número não.
VALIDATION_STATUS_CODE = 422

# ========================
# --- Códigos de Erro ---
# ========================
class ErrorCode(str, Enum):
    # Autenticação e autorização
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    CSRF_TOKEN_INVALID = "CSRF_TOKEN_INVALID"

    # Validação e requisição
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"

    # Recursos
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"
    CONFLICT = "CONFLICT"

    # Servidor
    INTERNAL_ERROR = "INTERNAL_ERROR"

# ========================
# --- Exceção Base ---
# ========================
class ApiError(Exception):
    """Erro de API com status HTTP, código estável e classificação operacional."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: ErrorCode | str = ErrorCode.INTERNAL_ERROR,
        *,
        is_operational: bool = True,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.is_operational = is_operational
        self.details = details

    @property
    def code_value(self) -> str:
        """Código como string simples, pronto para serialização."""
        return self.code.value if isinstance(self.code, ErrorCode) else str(self.code)

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code}, code={self.code_value}, message={self.message!r})"

    # --- Construtores de conveniência ---
    @classmethod
    def bad_request(cls, message: str = "Bad request", code: ErrorCode = ErrorCode.BAD_REQUEST, details: Any = None) -> "ApiError":
        return cls(status.HTTP_400_BAD_REQUEST, message, code, details=details)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required", code: ErrorCode = ErrorCode.UNAUTHORIZED) -> "ApiError":
        return cls(status.HTTP_401_UNAUTHORIZED, message, code)

    @classmethod
    def forbidden(cls, message: str = "You do not have permission to perform this action", code: ErrorCode = ErrorCode.FORBIDDEN) -> "ApiError":
        return cls(status.HTTP_403_FORBIDDEN, message, code)

    @classmethod
    def not_found(cls, message: str = "Resource not found", code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND) -> "ApiError":
        return cls(status.HTTP_404_NOT_FOUND, message, code)

    @classmethod
    def conflict(cls, message: str = "Resource already exists", code: ErrorCode = ErrorCode.RESOURCE_ALREADY_EXISTS) -> "ApiError":
        return cls(status.HTTP_409_CONFLICT, message, code)

    @classmethod
    def validation_error(cls, details: list[dict[str, str]], message: str = "Validation Error") -> "ApiError":
        return cls(VALIDATION_STATUS_CODE, message, ErrorCode.VALIDATION_ERROR, details=details)

    @classmethod
    def too_many_requests(cls, message: str = "Too many requests, please try again later.") -> "ApiError":
        return cls(status.HTTP_429_TOO_MANY_REQUESTS, message, ErrorCode.TOO_MANY_REQUESTS)

    @classmethod
    def internal(cls, message: str = "Internal Server Error") -> "ApiError":
        return cls(status.HTTP_500_INTERNAL_SERVER_ERROR, message, ErrorCode.INTERNAL_ERROR, is_operational=False)
