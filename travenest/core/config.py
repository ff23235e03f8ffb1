# travenest/core/config.py

# ========================
# --- Importações ---
# ========================
import os
import logging
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import EmailStr, Field, ValidationError, model_validator
from dotenv import load_dotenv

# ===============================
# --- Configuração do Logger ---
# ===============================
logger = logging.getLogger(__name__)

# ===============================
# --- Carregamento do .env ---
# ===============================
# Define o caminho para o arquivo .env na raiz do projeto
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), '.env')
loaded = load_dotenv(dotenv_path=dotenv_path)

# Segredos de desenvolvimento que nunca podem chegar à produção
DEV_JWT_SECRETS = {
    "default-secret-change-in-production",
    "default-refresh-secret",
    "dev-secret-key-change-in-production",
}

# ======================================
# --- Definição das Configurações ---
# ======================================
class Settings(BaseSettings):
    """
    Configurações da aplicação lidas do ambiente usando Pydantic BaseSettings.
    Procura variáveis de ambiente ou variáveis em um arquivo .env.
    Docs Pydantic Settings: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
    """
    # =========================
    # --- Config Gerais ---
    # =========================
    PROJECT_NAME: str = Field("TraveNest API", description="Nome do Projeto")
    API_V1_STR: str = Field("/api/v1", description="Prefixo para a versão 1 da API")
    ENVIRONMENT: str = Field("development", description="Ambiente de execução (development, test, production)")

    # =============================
    # --- Configurações MongoDB ---
    # =============================
    MONGODB_URL: str = Field(..., description="URL de conexão completa do MongoDB (obrigatória)")
    DATABASE_NAME: str = Field("travenest_db", description="Nome do banco de dados MongoDB")

    # ===========================
    # --- Configurações JWT ---
    # ===========================
    JWT_SECRET_KEY: str = Field(..., description="Segredo dos tokens de acesso e de redefinição de senha (obrigatório)")
    JWT_REFRESH_SECRET_KEY: str = Field(..., description="Segredo exclusivo dos tokens de refresh (obrigatório)")
    JWT_ALGORITHM: str = Field("HS256", description="Algoritmo de assinatura JWT")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(120, description="Validade do token de acesso em minutos (padrão: 2 horas)")
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(30, description="Validade do token de refresh em dias")
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = Field(60, description="Validade do token de redefinição de senha em minutos")
    ACCESS_TOKEN_COOKIE_NAME: str = Field("accessToken", description="Cookie lido como alternativa ao header Authorization")
    REFRESH_TOKEN_COOKIE_NAME: str = Field("refreshToken", description="Cookie httpOnly que transporta o token de refresh")

    # ================================
    # --- Configurações de Senha ---
    # ================================
    BCRYPT_ROUNDS: int = Field(12, ge=4, le=31, description="Fator de custo do bcrypt")

    # ===========================
    # --- Configurações CSRF ---
    # ===========================
    CSRF_ENABLED: bool = Field(True, description="Habilita a proteção CSRF (double-submit cookie).")
    CSRF_ENFORCE: bool = Field(
        True,
        description="Se False, falhas de CSRF são apenas registradas em log (modo de observação)."
    )
    CSRF_COOKIE_NAME: str = Field("csrf-token", description="Nome do cookie que guarda o token CSRF")
    CSRF_HEADER_NAME: str = Field("x-csrf-token", description="Header que deve ecoar o token CSRF")
    CSRF_TOKEN_EXPIRE_HOURS: int = Field(24, description="Validade do cookie CSRF em horas")

    # ===================================
    # --- Configurações de Rate Limit ---
    # ===================================
    RATE_LIMIT_ENABLED: bool = Field(
        True,
        description="Habilita o limite de requisições por cliente. Sempre desligado com ENVIRONMENT=test."
    )
    RATE_LIMIT_WINDOW_MS: int = Field(900000, gt=0, description="Janela do limite em milissegundos (padrão: 15 minutos)")
    RATE_LIMIT_MAX_REQUESTS: int = Field(100, gt=0, description="Máximo de requisições por cliente dentro da janela")

    # ================================
    # --- Configurações de E-mail ---
    # ================================
    MAIL_ENABLED: bool = Field(
            default=False,
            description="Flag para habilitar/desabilitar envio de e-mails globalmente."
    )
    MAIL_USERNAME: Optional[str] = Field(default=None, description="Usuário do servidor SMTP.")
    MAIL_PASSWORD: Optional[str] = Field(default=None, description="Senha do servidor SMTP.")
    MAIL_FROM: Optional[EmailStr] = Field(
        default=None,
        description="Endereço de e-mail remetente."
    )
    MAIL_FROM_NAME: Optional[str] = Field(
        default="TraveNest",
        description="Nome do remetente exibido no e-mail."
    )
    MAIL_PORT: int = Field(
        default=587,
        description="Porta do servidor SMTP."
    )
    MAIL_SERVER: Optional[str] = Field(
        default=None,
        description="Endereço do servidor SMTP."
    )
    MAIL_STARTTLS: bool = Field(default=True, description="Usar STARTTLS para conexão SMTP.")
    MAIL_SSL_TLS: bool = Field(default=False, description="Usar SSL/TLS direto para conexão SMTP.")
    USE_CREDENTIALS: bool = Field(default=True, description="Usar credenciais (username/password) para SMTP.")
    VALIDATE_CERTS: bool = Field(default=True, description="Validar certificados SSL/TLS do servidor SMTP.")
    FRONTEND_URL: Optional[str] = Field(default=None, description="URL base do frontend para o link de redefinição de senha.")

    # ===============================
    # --- Configuração de Logging ---
    # ===============================
    LOG_LEVEL: str = Field(default="INFO", description="Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)")

    # ===================================
    # --- Configurações CORS ---
    # ===================================
    CORS_ALLOWED_ORIGINS: List[str] = Field(default=[], description="Lista de origens CORS permitidas")

    # ====================================================
    # --- Configuração do Modelo Pydantic BaseSettings ---
    # ====================================================
    model_config = {
        "case_sensitive": False,
    }

    # ===============================
    # --- Propriedades Derivadas ---
    # ===============================
    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT.lower() == "test"

    @property
    def rate_limiting_active(self) -> bool:
        return self.RATE_LIMIT_ENABLED and not self.is_test

    @property
    def rate_limit(self) -> str:
        """Limite no formato da biblioteca `limits`, ex.: "100 per 900 seconds"."""
        window_seconds = max(1, self.RATE_LIMIT_WINDOW_MS // 1000)
        return f"{self.RATE_LIMIT_MAX_REQUESTS} per {window_seconds} seconds"

    @property
    def cookie_secure(self) -> bool:
        """Cookies só recebem a flag `Secure` em produção (HTTPS)."""
        return self.is_production

    # ===============================
    # --- Validadores ---
    # ===============================
    @model_validator(mode='after')
    def check_mail_config(self) -> 'Settings':
        """Valida se as credenciais de e-mail estão presentes quando habilitado."""
        if self.MAIL_ENABLED and not all([self.MAIL_USERNAME, self.MAIL_PASSWORD, self.MAIL_FROM, self.MAIL_SERVER]):
            raise ValueError(
                "Se MAIL_ENABLED for True, MAIL_USERNAME, MAIL_PASSWORD, MAIL_FROM e MAIL_SERVER devem ser definidos."
            )
        return self

    @model_validator(mode='after')
    def check_jwt_secrets(self) -> 'Settings':
        """Tokens de acesso e de refresh precisam de segredos distintos."""
        if self.JWT_SECRET_KEY == self.JWT_REFRESH_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY e JWT_REFRESH_SECRET_KEY devem ser diferentes.")
        if self.is_production and {self.JWT_SECRET_KEY, self.JWT_REFRESH_SECRET_KEY} & DEV_JWT_SECRETS:
            raise ValueError("Produção exige segredos JWT próprios (valores padrão de desenvolvimento detectados).")
        return self

# ================================
# --- Criação da Instância ---
# ================================
try:
    settings = Settings()
except ValidationError as e:
    # Campos obrigatórios ausentes, tipos inválidos ou validadores customizados
    logger.critical(f"Erro fatal de validação ao carregar configurações: {e}")
    raise e
except Exception as e:
    logger.critical(f"Erro inesperado ao carregar configurações: {e}", exc_info=True)
    raise e
