# travenest/models/user.py
"""
Este módulo define os modelos Pydantic para a entidade Usuário (User) e os
enums de papel (`UserRole`) e situação da conta (`UserStatus`).

`UserRole` é o único tipo de papel do sistema: é o mesmo valor gravado no
banco, assinado no token de acesso e comparado pelos guardas de autorização.
"""

# ========================
# --- Importações ---
# ========================
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional

import nh3
from pydantic import ConfigDict, EmailStr, Field, StringConstraints, field_validator

# --- Módulos da Aplicação ---
from travenest.models.response import CamelModel

# ========================
# --- Enums ---
# ========================
class UserRole(str, Enum):
    CUSTOMER = "customer"
    OWNER = "owner"
    ADMIN = "admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING_VERIFICATION = "pending_verification"

# ========================
# --- Regras de Campo ---
# ========================
EMAIL_MAX_LENGTH = 254
_PASSWORD_STRENGTH = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")
PASSWORD_STRENGTH_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, and one number"
)

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Password = Annotated[str, StringConstraints(min_length=8, max_length=128)]


def normalize_email(value):
    """Remove espaços e converte o e-mail para minúsculas antes da validação."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


def sanitize_name(value):
    """
    Remove qualquer marcação HTML do nome antes das restrições de tamanho.

    Tags são descartadas e o conteúdo de `<script>`/`<style>` some junto;
    um nome que só tinha marcação fica vazio e falha no `min_length`.
    """
    if isinstance(value, str):
        return nh3.clean(value.strip(), tags=set())
    return value


def check_password_strength(value: str) -> str:
    if not _PASSWORD_STRENGTH.match(value):
        raise ValueError(PASSWORD_STRENGTH_MESSAGE)
    return value

# ========================
# --- Modelos de Entrada ---
# ========================
class UserCreate(CamelModel):
    """
    Dados de registro de um novo usuário.
    O papel `admin` nunca pode ser escolhido no autocadastro.
    """
    email: EmailStr = Field(..., title="Endereço de E-mail")
    password: Password = Field(..., title="Senha", description="Senha (será hasheada antes de salvar).")
    first_name: Name = Field(..., title="Nome")
    last_name: Name = Field(..., title="Sobrenome")
    phone: Optional[str] = Field(None, max_length=30, title="Telefone")
    role: UserRole = Field(default=UserRole.CUSTOMER, title="Papel")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "email": "maria.silva@example.com",
                    "password": "Abc12345",
                    "firstName": "Maria",
                    "lastName": "Silva",
                    "phone": "+94771234567",
                    "role": "customer",
                }
            ]
        }
    )

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        value = normalize_email(value)
        if isinstance(value, str) and len(value) > EMAIL_MAX_LENGTH:
            raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
        return value

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_markup(cls, value):
        return sanitize_name(value)

    @field_validator("role")
    @classmethod
    def role_must_be_self_assignable(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Role must be 'customer' or 'owner'")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: Password

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, value):
        return normalize_email(value)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: Password

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)


class UserStatusUpdate(CamelModel):
    status: UserStatus

# ========================
# --- Modelos de Banco de Dados e Resposta ---
# ========================
class UserInDB(CamelModel):
    """
    Representação completa de um usuário como armazenado no banco de dados.
    Inclui a senha hasheada e é usado apenas internamente.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    email: EmailStr
    hashed_password: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    status: UserStatus = UserStatus.ACTIVE
    is_verified: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


class User(CamelModel):
    """
    Modelo de usuário utilizado nas respostas da API.
    Expõe apenas dados seguros, omitindo a senha hasheada.
    """
    id: uuid.UUID
    email: EmailStr
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    is_verified: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(CamelModel):
    """Corpo `data` das rotas que devolvem um usuário: `{user: {...}}`."""
    user: User


class UserProfile(CamelModel):
    """Cartão público de um usuário, visível sem autenticação."""
    id: uuid.UUID
    first_name: str
    last_name: str
    role: UserRole
    created_at: datetime


class UserProfileResponse(CamelModel):
    """
    Corpo `data` do perfil público: `profile` sempre; `user` completo apenas
    para o próprio usuário ou um administrador.
    """
    profile: UserProfile
    user: Optional[User] = None


def public_user(user: UserInDB) -> User:
    """Projeção pública de um `UserInDB` (sem o hash da senha)."""
    return User.model_validate(user.model_dump(exclude={"hashed_password"}))


def user_profile(user: UserInDB) -> UserProfile:
    return UserProfile.model_validate(user.model_dump(include={"id", "first_name", "last_name", "role", "created_at"}))
