# travenest/core/rate_limit.py
"""
Limite de requisições por cliente (IP), aplicado a todas as rotas.

Usa o `slowapi` com armazenamento em memória: `RATE_LIMIT_MAX_REQUESTS`
requisições a cada `RATE_LIMIT_WINDOW_MS`, contadas por rota. Quando o limite
estoura, o `RateLimitExceeded` vira o envelope de erro 429 `TOO_MANY_REQUESTS`
pelo handler registrado em `core.error_handlers`.

Com `ENVIRONMENT=test` o limitador fica sempre desligado.
"""

# ========================
# --- Importações ---
# ========================
import logging

from fastapi import FastAPI
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

# --- Módulos da Aplicação ---
from travenest.core.config import Settings, settings

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Limitador ---
# ========================
def build_limiter(current_settings: Settings) -> Limiter:
    """Cria o `Limiter` com o limite padrão derivado das configurações."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[current_settings.rate_limit],
        enabled=current_settings.rate_limiting_active,
    )


limiter = build_limiter(settings)


def setup_rate_limiting(app_instance: FastAPI, app_limiter: Limiter = limiter) -> None:
    """
    Anexa o limitador à aplicação e instala o `SlowAPIMiddleware`.

    O handler de `RateLimitExceeded` precisa estar registrado na aplicação
    (ver `register_exception_handlers`) para que a resposta 429 use o
    envelope padrão.
    """
    app_instance.state.limiter = app_limiter
    app_instance.add_middleware(SlowAPIMiddleware)
    if app_limiter.enabled:
        logger.info("Rate limiting ativo para todas as rotas.")
    else:
        logger.info("Rate limiting desativado.")
