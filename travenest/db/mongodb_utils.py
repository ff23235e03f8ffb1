# travenest/db/mongodb_utils.py
"""
Este módulo gerencia a conexão com o banco de dados MongoDB (motor).
Inclui funções para conectar, fechar a conexão, obter a instância do banco
de dados e verificar se o servidor responde.
"""

# ========================
# --- Importações ---
# ========================
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

# --- Módulos da Aplicação ---
from travenest.core.config import settings

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Estado da Conexão ---
# ========================
# Cliente e banco compartilhados pelo processo; preenchidos no lifespan.
db_client: Optional[AsyncIOMotorClient] = None
db_instance: Optional[AsyncIOMotorDatabase] = None

# ========================
# --- Função de Conexão ---
# ========================
async def connect_to_mongo() -> Optional[AsyncIOMotorDatabase]:
    """
    Estabelece a conexão com o MongoDB.

    Cria um cliente AsyncIOMotorClient, verifica a conexão com um comando 'ping'
    e define as variáveis `db_client` e `db_instance`.

    Returns:
        A instância AsyncIOMotorDatabase se a conexão for bem-sucedida, None caso contrário.
    """
    global db_client, db_instance
    logger.info("Tentando conectar ao MongoDB...")
    try:
        db_client = AsyncIOMotorClient(
            settings.MONGODB_URL,
            serverSelectionTimeoutMS=5000,
            uuidRepresentation="standard",
        )
        await db_client.admin.command("ping")
        db_instance = db_client[settings.DATABASE_NAME]
        logger.info(f"Conectado com sucesso ao banco de dados: {settings.DATABASE_NAME}")
        return db_instance
    except PyMongoError as e:
        logger.error(f"Não foi possível conectar ao MongoDB: {e}", exc_info=True)
        db_client = None
        db_instance = None
        return None

# ========================
# --- Função de Fechamento de Conexão ---
# ========================
async def close_mongo_connection() -> None:
    global db_client, db_instance
    if db_client is None:
        logger.warning("Tentativa de fechar conexão com MongoDB, mas cliente não estava inicializado.")
        return
    db_client.close()
    db_client = None
    db_instance = None
    logger.info("Conexão com MongoDB fechada.")

# ========================
# --- Função de Acesso ao DB ---
# ========================
def get_database() -> AsyncIOMotorDatabase:
    """
    Retorna a instância do banco de dados MongoDB.

    Raises:
        RuntimeError: Se chamada antes de `connect_to_mongo` inicializar `db_instance`.
    """
    if db_instance is None:
        logger.error("Tentativa de obter instância do DB antes da inicialização!")
        raise RuntimeError("A conexão com o banco de dados não foi inicializada.")
    return db_instance

# ========================
# --- Verificação de Saúde ---
# ========================
async def check_mongo_connection() -> bool:
    """
    Verifica se o MongoDB responde a um 'ping' usando o cliente já aberto.

    Returns:
        True se o servidor respondeu, False se não há cliente ou o ping falhou.
    """
    if db_client is None:
        return False
    try:
        await db_client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"Ping no MongoDB falhou: {e}")
        return False
