# travenest/models/response.py
"""
Este módulo define os envelopes padronizados das respostas da API.

Sucesso: `{success: true, data, message?, meta: {timestamp, requestId}}`
Erro:    `{success: false, error: {code, message, details?, stack?}, meta: {timestamp, requestId}}`
"""

# ========================
# --- Importações ---
# ========================
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Módulos da Aplicação ---
from travenest.core.middleware import get_request_id

DataT = TypeVar("DataT")

# ========================
# --- Modelo Base camelCase ---
# ========================
class CamelModel(BaseModel):
    """Modelo base cujos campos trafegam em camelCase no JSON (ex.: `first_name` -> `firstName`)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ========================
# --- Metadados ---
# ========================
def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ResponseMeta(CamelModel):
    timestamp: str = Field(default_factory=_utc_timestamp)
    request_id: Optional[str] = None

# ========================
# --- Envelopes ---
# ========================
class ApiResponse(CamelModel, Generic[DataT]):
    """Envelope de sucesso."""
    success: bool = True
    data: Optional[DataT] = None
    message: Optional[str] = None
    meta: ResponseMeta = Field(default_factory=ResponseMeta)


class ErrorBody(CamelModel):
    code: str
    message: str
    details: Optional[Any] = None
    stack: Optional[str] = None


class ApiErrorResponse(CamelModel):
    """Envelope de erro."""
    success: bool = False
    error: ErrorBody
    meta: ResponseMeta

# ========================
# --- Funções Auxiliares ---
# ========================
def success_response(data: Any = None, message: Optional[str] = None) -> ApiResponse:
    """Monta um envelope de sucesso com o ID da requisição corrente."""
    return ApiResponse(
        data=data,
        message=message,
        meta=ResponseMeta(request_id=get_request_id() or None),
    )
