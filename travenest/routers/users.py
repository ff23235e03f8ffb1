# travenest/routers/users.py
"""
Rotas de usuários protegidas pelos guardas de autorização:

- leitura do perfil: o próprio usuário ou um administrador (`authorize_owner`);
- perfil público: qualquer visitante (`optional_auth`), com dados completos
  para o próprio usuário ou um administrador;
- alteração da situação da conta: apenas administradores (`authorize`) e com CSRF.
"""

# ========================
# --- Importações ---
# ========================
import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Request

# --- Módulos da Aplicação ---
from travenest.core.csrf import csrf_protect
from travenest.core.dependencies import AdminPrincipal, OptionalPrincipal, UserRepoDep, authorize_owner
from travenest.models.response import ApiResponse, success_response
from travenest.models.token import Principal
from travenest.models.user import (
    UserProfileResponse,
    UserResponse,
    UserRole,
    UserStatusUpdate,
    public_user,
    user_profile,
)
from travenest.services import auth_service

# ========================
# --- Configuração do Router ---
# ========================
router = APIRouter(tags=["Users"])

# ========================
# --- Resolução do Dono ---
# ========================
async def user_id_from_path(request: Request) -> Optional[uuid.UUID]:
    """O dono de um perfil de usuário é o próprio usuário do caminho."""
    try:
        return uuid.UUID(request.path_params["user_id"])
    except (KeyError, ValueError):
        return None

# ========================
# --- Rotas da API ---
# ========================
@router.get(
    "/users/{user_id}",
    response_model=ApiResponse[UserResponse],
    response_model_exclude_none=True,
    summary="Obtém o perfil de um usuário (o próprio ou qualquer um, para administradores)",
)
async def read_user(
    user_id: uuid.UUID,
    repo: UserRepoDep,
    principal: Annotated[Principal, Depends(authorize_owner(user_id_from_path))],
):
    user = await auth_service.get_user(repo, user_id)
    return success_response(UserResponse(user=public_user(user)))


@router.get(
    "/users/{user_id}/profile",
    response_model=ApiResponse[UserProfileResponse],
    response_model_exclude_none=True,
    summary="Perfil público de um usuário; o próprio usuário ou um administrador recebem os dados completos",
)
async def read_user_profile(
    user_id: uuid.UUID,
    repo: UserRepoDep,
    principal: OptionalPrincipal,
):
    user = await auth_service.get_user(repo, user_id)
    data = UserProfileResponse(profile=user_profile(user))
    if principal is not None and (principal.role == UserRole.ADMIN or principal.id == user.id):
        data.user = public_user(user)
    return success_response(data)


@router.patch(
    "/users/{user_id}/status",
    response_model=ApiResponse[UserResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(csrf_protect)],
    summary="Altera a situação da conta de um usuário (apenas administradores)",
)
async def update_user_status(
    user_id: uuid.UUID,
    repo: UserRepoDep,
    principal: AdminPrincipal,
    payload: Annotated[UserStatusUpdate, Body()],
):
    user = await auth_service.update_user_status(repo, user_id, payload.status)
    return success_response(
        UserResponse(user=public_user(user)),
        message=f"User status updated to '{payload.status.value}'",
    )
