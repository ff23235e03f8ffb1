# travenest/main.py
"""
Ponto de entrada principal e configuração da aplicação FastAPI TraveNest.
Define a instância da aplicação, middlewares, handlers de erro, rotas,
ciclo de vida (lifespan) e os endpoints raiz. Também inclui o setup de
logging inicial.
"""

# ========================
# --- Importações ---
# ========================
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

# --- Módulos da Aplicação ---
from travenest.core.config import Settings, settings
from travenest.core.error_handlers import register_exception_handlers
from travenest.core.logging_config import setup_logging
from travenest.core.rate_limit import setup_rate_limiting
from travenest.core.middleware import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)
from travenest.db.mongodb_utils import close_mongo_connection, connect_to_mongo
from travenest.db.user_repository import UserRepository
from travenest.models.response import success_response
from travenest.routers import auth, csrf, health, users

# ========================
# --- Configuração de Logging ---
# ========================
setup_logging(log_level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# ========================
# --- Função de Setup do Middleware CORS ---
# ========================
def _setup_cors_middleware(app_instance: FastAPI, current_settings: Settings):
    """Configura o middleware CORS para a aplicação."""
    if current_settings.CORS_ALLOWED_ORIGINS:
        logger.info(f"Configurando CORS para origens: {current_settings.CORS_ALLOWED_ORIGINS}")
        app_instance.add_middleware(
            CORSMiddleware,
            allow_origins=current_settings.CORS_ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER, current_settings.CSRF_HEADER_NAME],
            expose_headers=[REQUEST_ID_HEADER],
        )
    else:
        logger.warning(
            "Nenhuma origem CORS configurada (settings.CORS_ALLOWED_ORIGINS está vazia). "
            "API pode não ser acessível de frontends em outros domínios."
        )

# ========================
# --- Ciclo de Vida (Lifespan) ---
# ========================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gerencia o ciclo de vida da aplicação.

    Conecta ao MongoDB e cria índices no startup.
    Fecha a conexão com o MongoDB no shutdown.
    """
    logger.info("Iniciando ciclo de vida da aplicação...")
    db_connection = await connect_to_mongo()

    if db_connection is None:
        logger.critical("Falha fatal ao conectar ao MongoDB na inicialização. App pode não funcionar corretamente.")
        yield
        logger.info("Encerrando ciclo de vida (conexão DB falhou no início).")
        return

    try:
        await UserRepository(db_connection).create_indexes()
    except PyMongoError as e:
        logger.error(f"Erro durante a criação de índices: {e}", exc_info=True)

    logger.info("Aplicação iniciada e pronta.")
    yield

    logger.info("Iniciando processo de encerramento...")
    await close_mongo_connection()
    logger.info("Aplicação encerrada.")

# ========================
# --- Instância FastAPI ---
# ========================
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API de autenticação, sessão e autorização do marketplace de aluguel de veículos TraveNest.",
    version="0.1.0",
    license_info={
        "name": "MIT License",
        "url": "https://opensource.org/licenses/MIT",
    },
    lifespan=lifespan,
)

# ========================
# --- Configuração de Middlewares ---
# ========================
# O último adicionado é o mais externo: contexto da requisição > CORS > headers de segurança > rate limit.
setup_rate_limiting(app)
app.add_middleware(SecurityHeadersMiddleware)
_setup_cors_middleware(app, settings)
app.add_middleware(RequestContextMiddleware)

# ========================
# --- Handlers de Erro ---
# ========================
register_exception_handlers(app)

# ========================
# --- Rotas (Routers) ---
# ========================
app.include_router(auth.router, prefix=settings.API_V1_STR + "/auth", tags=["Authentication"])
app.include_router(csrf.router, prefix=settings.API_V1_STR)
app.include_router(users.router, prefix=settings.API_V1_STR)
app.include_router(health.router)

# ========================
# --- Endpoints Raiz ---
# ========================
@app.get("/", tags=["Root"])
async def read_root():
    """Endpoint raiz para verificar se a API está online."""
    return {"message": f"Welcome to {settings.PROJECT_NAME}!"}


@app.get(settings.API_V1_STR, tags=["Root"])
async def read_api_index():
    """Índice dos módulos montados na versão 1 da API."""
    return success_response(
        {
            "name": settings.PROJECT_NAME,
            "version": app.version,
            "endpoints": {
                "auth": f"{settings.API_V1_STR}/auth",
                "csrf": f"{settings.API_V1_STR}/csrf-token",
                "users": f"{settings.API_V1_STR}/users",
                "health": "/health",
            },
        }
    ).model_dump(mode="json", by_alias=True, exclude_none=True)

# ========================
# --- Execução (Uvicorn) ---
# ========================
if __name__ == "__main__": # pragma: no cover
    import uvicorn # pragma: no cover
    logger.info("Iniciando servidor Uvicorn para desenvolvimento...") # pragma: no cover
    uvicorn.run( # pragma: no cover
        "travenest.main:app", # pragma: no cover
        host="0.0.0.0", # pragma: no cover
        port=8000, # pragma: no cover
        reload=True, # pragma: no cover
        log_level=settings.LOG_LEVEL.lower() # pragma: no cover
    )
