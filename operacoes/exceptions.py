from __future__ import annotations


class LedgerError(Exception):
    """Falha ao consultar o Omie."""

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class LedgerPermanentError(LedgerError):
    """Status que nao adianta repetir (400/401/403/404)."""


class LedgerTransientError(LedgerError):
    """Falha temporaria: outros status, rede, timeout ou tentativas esgotadas."""


class LedgerDisabledError(LedgerError):
    """Credenciais do Omie ausentes."""


class CatalogError(Exception):
    """Planilha de operacoes indisponivel ou invalida."""
