# travenest/routers/auth.py
"""
Este módulo define as rotas da API relacionadas à autenticação de usuários:
registro, login, renovação de tokens, logout, dados do usuário autenticado,
troca de senha e redefinição de senha.

O token de refresh trafega apenas no cookie httpOnly `refreshToken`; o token
de acesso é devolvido no corpo. As rotas que dependem de credencial já
presente no navegador (cookie) exigem também o token CSRF.
"""

# ========================
# --- Importações ---
# ========================
from typing import Annotated, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, Response, status

# --- Módulos da Aplicação ---
from travenest.core.config import settings
from travenest.core.csrf import csrf_protect
from travenest.core.dependencies import CurrentPrincipal, UserRepoDep
from travenest.models.response import ApiResponse, success_response
from travenest.models.token import AccessTokenResponse, AuthResult, RefreshTokenRequest
from travenest.models.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    UserCreate,
    UserResponse,
    public_user,
)
from travenest.services import auth_service

# ========================
# --- Configuração do Router ---
# ========================
router = APIRouter(
    tags=["Authentication"],
)

# ========================
# --- Cookie de Refresh ---
# ========================
def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_TOKEN_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_TOKEN_COOKIE_NAME,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="strict",
    )


def _auth_result(response: Response, session: auth_service.AuthSession) -> ApiResponse:
    _set_refresh_cookie(response, session.refresh_token)
    return success_response(AuthResult(user=public_user(session.user), access_token=session.access_token))

# ========================
# --- Rotas da API ---
# ========================

# --- Endpoint de Registro ---
@router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Registra um novo usuário e inicia a sessão",
    response_description="Usuário criado (sem senha) e token de acesso; refresh no cookie.",
)
async def register(
    repo: UserRepoDep,
    response: Response,
    user_in: Annotated[UserCreate, Body(description="Dados do novo usuário para registro.")],
):
    session = await auth_service.register_user(repo, user_in)
    return _auth_result(response, session)

# --- Endpoint de Login ---
@router.post(
    "/login",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    summary="Autentica por e-mail e senha",
    response_description="Usuário autenticado e token de acesso; refresh no cookie.",
)
async def login(
    repo: UserRepoDep,
    response: Response,
    credentials: Annotated[LoginRequest, Body()],
):
    session = await auth_service.login_user(repo, credentials.email, credentials.password)
    return _auth_result(response, session)

# --- Endpoint de Renovação de Tokens ---
@router.post(
    "/refresh-token",
    response_model=ApiResponse[AccessTokenResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(csrf_protect)],
    summary="Troca o token de refresh por um novo par de tokens",
    description="O token de refresh é lido do corpo (`refreshToken`) ou do cookie httpOnly.",
)
async def refresh_token(
    request: Request,
    repo: UserRepoDep,
    response: Response,
    body: Annotated[Optional[RefreshTokenRequest], Body()] = None,
):
    token = (body.refresh_token if body else None) or request.cookies.get(settings.REFRESH_TOKEN_COOKIE_NAME)
    session = await auth_service.refresh_tokens(repo, token)
    _set_refresh_cookie(response, session.refresh_token)
    return success_response(AccessTokenResponse(access_token=session.access_token))

# --- Endpoint de Logout ---
@router.post(
    "/logout",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    dependencies=[Depends(csrf_protect)],
    summary="Encerra a sessão removendo o cookie de refresh",
)
async def logout(principal: CurrentPrincipal, response: Response):
    """
    Remove o cookie de refresh do navegador. Os tokens já emitidos continuam
    válidos até expirarem: não há lista de revogação no servidor.
    """
    _clear_refresh_cookie(response)
    return success_response(message="Logged out successfully")

# --- Endpoint de Dados do Usuário Autenticado ---
@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    response_model_exclude_none=True,
    summary="Obtém dados do usuário atualmente autenticado",
)
async def read_me(principal: CurrentPrincipal, repo: UserRepoDep):
    user = await auth_service.get_user(repo, principal.id)
    return success_response(UserResponse(user=public_user(user)))

# --- Endpoint de Troca de Senha ---
@router.put(
    "/change-password",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    dependencies=[Depends(csrf_protect)],
    summary="Troca a senha do usuário autenticado",
)
async def change_password(
    principal: CurrentPrincipal,
    repo: UserRepoDep,
    payload: Annotated[ChangePasswordRequest, Body()],
):
    message = await auth_service.change_password(repo, principal.id, payload.current_password, payload.new_password)
    return success_response(message=message)

# --- Endpoints de Redefinição de Senha ---
@router.post(
    "/forgot-password",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Solicita o e-mail de redefinição de senha",
    description="A resposta é idêntica exista ou não uma conta com o e-mail informado.",
)
async def forgot_password(
    repo: UserRepoDep,
    background_tasks: BackgroundTasks,
    payload: Annotated[ForgotPasswordRequest, Body()],
):
    message = await auth_service.request_password_reset(repo, payload.email, background_tasks)
    return success_response(message=message)


@router.post(
    "/reset-password",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Define uma nova senha usando o token recebido por e-mail",
)
async def reset_password(repo: UserRepoDep, payload: Annotated[ResetPasswordRequest, Body()]):
    message = await auth_service.complete_password_reset(repo, payload.token, payload.password)
    return success_response(message=message)
