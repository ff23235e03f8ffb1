# travenest/models/token.py
"""
Este módulo define os modelos Pydantic relacionados à autenticação por token:
o tipo de token (`TokenKind`), o payload assinado dentro do JWT, a identidade
autenticada da requisição (`Principal`) e os corpos de entrada/saída dos
endpoints de autenticação.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# --- Módulos da Aplicação ---
from travenest.models.response import CamelModel
from travenest.models.user import User, UserRole

# ========================
# --- Tipos de Token ---
# ========================
class TokenKind(str, Enum):
    """
    Finalidade do token. O valor é gravado no claim `purpose` e conferido na
    verificação: um token de um tipo nunca é aceito como outro tipo.
    """
    ACCESS = "access"
    REFRESH = "refresh"
    PASSWORD_RESET = "password-reset"

# ========================
# --- Modelos Pydantic Token ---
# ========================
class TokenPayload(BaseModel):
    """
    Modelo para os dados (payload/claims) contidos dentro de um token JWT.
    Representa as informações decodificadas do token.
    """
    sub: uuid.UUID = Field(..., title="ID do Usuário (Subject)")
    purpose: TokenKind = Field(..., title="Finalidade do Token")
    iat: int = Field(..., title="Timestamp de Emissão")
    exp: int = Field(..., title="Timestamp de Expiração")
    email: Optional[EmailStr] = Field(None, title="E-mail (apenas tokens de acesso)")
    role: Optional[UserRole] = Field(None, title="Papel (apenas tokens de acesso)")

    model_config = ConfigDict(extra="ignore")


class Principal(BaseModel):
    """
    Identidade autenticada anexada à requisição.
    Derivada dos claims do token de acesso, sem nova consulta ao banco.
    """
    id: uuid.UUID
    email: EmailStr
    role: UserRole

    model_config = ConfigDict(frozen=True)

# ========================
# --- Corpos de Requisição/Resposta ---
# ========================
class AuthResult(CamelModel):
    """Resposta de registro e login: usuário público + token de acesso."""
    user: User
    access_token: str = Field(..., title="Token de Acesso JWT")


class AccessTokenResponse(CamelModel):
    access_token: str = Field(..., title="Token de Acesso JWT")


class RefreshTokenRequest(CamelModel):
    """O token de refresh pode vir no corpo ou no cookie `refreshToken`."""
    refresh_token: Optional[str] = Field(None, title="Token de Refresh")


class CsrfTokenResponse(CamelModel):
    csrf_token: str = Field(..., title="Token CSRF")
