# travenest/db/errors.py
"""Erros da camada de persistência, independentes do driver (motor/pymongo)."""

from typing import Optional


class StorageError(Exception):
    """Falha genérica da camada de armazenamento."""

    def __init__(self, message: str, *, detail: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class DuplicateRecordError(StorageError):
    """Violação de restrição de unicidade (ex.: e-mail já cadastrado)."""


class RecordNotFoundError(StorageError):
    """O registro a ser alterado não existe."""
