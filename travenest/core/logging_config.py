# travenest/core/logging_config.py
"""
Este módulo configura o sistema de logging da aplicação utilizando Loguru.
Inclui um InterceptHandler para redirecionar logs do sistema de logging
padrão do Python para o Loguru, e anexa a cada linha o ID da requisição
corrente, permitindo correlacionar logs do cliente e do servidor.
"""

# ========================
# --- Importações ---
# ========================
import logging
import sys
from loguru import logger as loguru_logger

# --- Módulos da Aplicação ---
from travenest.core.middleware import get_request_id

# ========================
# --- Formato de Log ---
# ========================
LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# ========================
# --- Handler de Intercepção ---
# ========================
class InterceptHandler(logging.Handler):
    """
    Handler do `logging` que redireciona mensagens para o Loguru.
    Permite que logs emitidos por bibliotecas que usam o `logging` padrão
    sejam formatados e gerenciados pelo Loguru.
    """
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while hasattr(frame, "f_code") and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back # pragma: no cover
            if frame is None: # pragma: no cover
                break # pragma: no cover
            depth += 1 # pragma: no cover

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

# ========================
# --- Patcher de Contexto ---
# ========================
def _inject_request_id(record: dict) -> None:
    """Adiciona o ID da requisição corrente (ou '-') ao `extra` do registro."""
    record["extra"]["request_id"] = get_request_id() or "-"

# ========================
# --- Função de Setup ---
# ========================
def setup_logging(log_level: str = "INFO"):
    """
    Configura o sistema de logging global da aplicação.

    - Remove handlers padrão do Loguru para evitar duplicação.
    - Registra um patcher que injeta o ID da requisição em todo registro.
    - Adiciona um handler Loguru para `sys.stderr` com formato e nível configuráveis.
    - Configura o `logging` padrão do Python para usar o `InterceptHandler`.
    - Silencia o log de acesso do Uvicorn (o RequestContextMiddleware já registra cada requisição).

    Args:
        log_level: Nível mínimo de log a ser exibido (ex: "INFO", "DEBUG").
    """
    log_level = log_level.upper()

    loguru_logger.remove()
    loguru_logger.configure(patcher=_inject_request_id)

    loguru_logger.add(
        sys.stderr,
        level=log_level,
        format=LOG_FORMAT,
        enqueue=True,
        diagnose=False   # Nunca expor variáveis locais (senhas, tokens) em tracebacks
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("uvicorn.error").propagate = False

    loguru_logger.disable("httpx")
