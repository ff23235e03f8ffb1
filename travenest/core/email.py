# travenest/core/email.py
"""
Este módulo lida com o envio de e-mails, utilizando a biblioteca FastAPI-Mail.
Inclui a configuração da conexão SMTP e o envio do e-mail de redefinição
de senha em texto puro.
"""

# ========================
# --- Importações ---
# ========================
import logging
from typing import List

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import EmailStr

# --- Módulos da Aplicação ---
from travenest.core.config import settings

# ========================
# --- Configuração do Logger ---
# ========================
logger = logging.getLogger(__name__)

# ========================
# --- Configuração FastMail ---
# ========================
# Cria a configuração de conexão para o FastMail com base nas settings.
conf = ConnectionConfig(
    MAIL_USERNAME=settings.MAIL_USERNAME or "",
    MAIL_PASSWORD=settings.MAIL_PASSWORD or "",
    MAIL_FROM=settings.MAIL_FROM or "noreply@travenest.example.com",
    MAIL_PORT=settings.MAIL_PORT,
    MAIL_SERVER=settings.MAIL_SERVER or "",
    MAIL_FROM_NAME=settings.MAIL_FROM_NAME or "TraveNest",
    MAIL_STARTTLS=settings.MAIL_STARTTLS,
    MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
    USE_CREDENTIALS=settings.USE_CREDENTIALS,
    VALIDATE_CERTS=settings.VALIDATE_CERTS,
)

# ========================
# --- Instância do FastMail ---
# ========================
fm = FastMail(conf)

# ========================
# --- Função Principal de Envio ---
# ========================
async def send_email_async(subject: str, recipient_to: List[EmailStr], plain_text_body: str):
    """
    Envia um e-mail em texto puro de forma assíncrona.

    Verifica se o envio de e-mail está habilitado e se as credenciais
    necessárias estão configuradas antes de tentar o envio. Falhas de SMTP
    são registradas e não propagadas (o envio roda como tarefa em segundo plano).

    Args:
        subject: Assunto do e-mail.
        recipient_to: Lista de e-mails dos destinatários.
        plain_text_body: Conteúdo em texto puro.
    """
    if not settings.MAIL_ENABLED:
        logger.warning("Envio de e-mail desabilitado nas configurações (MAIL_ENABLED=false).")
        return

    if not all([settings.MAIL_USERNAME, settings.MAIL_PASSWORD, settings.MAIL_FROM, settings.MAIL_SERVER]):
        logger.error("Configurações essenciais de e-mail ausentes. Não foi possível enviar.")
        return

    message = MessageSchema(
        subject=subject,
        recipients=recipient_to,
        body=plain_text_body,
        subtype=MessageType.plain,
    )

    try:
        logger.info(f"Tentando enviar e-mail para {recipient_to} com assunto '{subject}'...")
        await fm.send_message(message)
        logger.info(f"E-mail enviado com sucesso para {recipient_to}.")
    except Exception as e:
        logger.exception(f"Erro ao enviar e-mail para {recipient_to}: {e}")

# ========================
# --- Funções Utilitárias Específicas ---
# ========================
def build_reset_link(token: str) -> str:
    base_url = (settings.FRONTEND_URL or "").rstrip("/")
    return f"{base_url}/reset-password?token={token}"


async def send_password_reset_email(user_email: EmailStr, first_name: str, token: str):
    """
    Envia ao usuário o link de redefinição de senha.

    Args:
        user_email: E-mail do destinatário.
        first_name: Nome usado na saudação.
        token: Token de redefinição (tipo `password-reset`).
    """
    expires_minutes = settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
    plain_text_body = (
        f"Hello {first_name},\n\n"
        f"We received a request to reset your {settings.PROJECT_NAME} password.\n"
        f"Use the link below within {expires_minutes} minutes to choose a new password:\n\n"
        f"{build_reset_link(token)}\n\n"
        "If you did not request this, you can safely ignore this email."
    )
    await send_email_async(
        subject=f"{settings.PROJECT_NAME} - Password reset",
        recipient_to=[user_email],
        plain_text_body=plain_text_body,
    )
