# travenest/routers/csrf.py

# ========================
# --- Importações ---
# ========================
from fastapi import APIRouter, Response

# --- Módulos da Aplicação ---
from travenest.core.csrf import set_csrf_cookie
from travenest.models.response import ApiResponse, success_response
from travenest.models.token import CsrfTokenResponse

# ========================
# --- Configuração do Router ---
# ========================
router = APIRouter(tags=["Security"])

# ========================
# --- Rotas da API ---
# ========================
@router.get(
    "/csrf-token",
    response_model=ApiResponse[CsrfTokenResponse],
    response_model_exclude_none=True,
    summary="Emite um token CSRF (cookie httpOnly + valor no corpo)",
    description="O valor devolvido deve ser enviado no header `x-csrf-token` das requisições que alteram estado.",
)
async def get_csrf_token(response: Response):
    token = set_csrf_cookie(response)
    return success_response(CsrfTokenResponse(csrf_token=token))
