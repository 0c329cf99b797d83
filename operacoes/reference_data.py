from __future__ import annotations

import logging
from dataclasses import dataclass

from .cache import ReferenceCache, make_key
from .exceptions import LedgerError
from .ledger_client import LedgerGateway
from .payloads import (
    CATEGORY_FIELDS,
    COUNTERPART_FIELDS,
    MOVEMENT_FIELDS,
    PROJECT_FIELDS,
    only_digits,
)

logger = logging.getLogger(__name__)

PROJECTS_ENDPOINT = "geral/projetos/"
MOVEMENTS_ENDPOINT = "financas/mf/"
COUNTERPARTS_ENDPOINT = "geral/clientes/"
CATEGORIES_ENDPOINT = "geral/categorias/"

# Conta corrente (extrato bancario).
CASH_LEDGER_TYPE = "CC"


@dataclass(frozen=True)
class ProjectReference:
    code: str
    name: str


@dataclass(frozen=True)
class CategoryReference:
    code: str
    description: str


class ReferenceDataRepository:
    """Cached access to the four Omie collections the aggregations read."""

    def __init__(self, gateway: LedgerGateway, cache: ReferenceCache, ttl: float | None = None):
        self.gateway = gateway
        self.cache = cache
        self.ttl = ttl

    def projects(self) -> list[ProjectReference]:
        return self.cache.get_or_load(make_key("projetos"), self._load_projects, self.ttl)

    def movements(self) -> list[dict]:
        return self.cache.get_or_load(make_key("movimentosCC"), self._load_movements, self.ttl)

    def counterparts(self) -> dict[str, str]:
        return self.cache.get_or_load(
            make_key("clientesPorCpfCnpj"), self._load_counterparts, self.ttl
        )

    def categories(self) -> dict[str, CategoryReference]:
        key = make_key("categoriasFinanceiras")
        try:
            return self.cache.get_or_load(key, self._load_categories, self.ttl)
        except LedgerError as exc:
            # Sem o diretorio, as descricoes vem do proprio movimento.
            logger.error("Erro ao carregar categorias financeiras do Omie: %s", exc)
            return {}

    def _load_projects(self) -> list[ProjectReference]:
        rows = self.gateway.fetch_all(
            PROJECTS_ENDPOINT,
            "ListarProjetos",
            {"apenas_importado_api": "N"},
            item_fields=PROJECT_FIELDS,
        )
        projects = [
            ProjectReference(code=str(row.get("codigo") or ""), name=str(row.get("nome") or ""))
            for row in rows
            if isinstance(row, dict)
        ]
        logger.info("Projetos Omie carregados da API: %s", len(projects))
        return projects

    def _load_movements(self) -> list[dict]:
        rows = self.gateway.fetch_all(
            MOVEMENTS_ENDPOINT,
            "ListarMovimentos",
            {"cTpLancamento": CASH_LEDGER_TYPE},
            item_fields=MOVEMENT_FIELDS,
            page_param="nPagina",
            page_size_param="nRegPorPagina",
            page_size=500,
        )
        movements = [row for row in rows if isinstance(row, dict)]
        logger.info("Movimentos Omie (CC) carregados da API: %s", len(movements))
        return movements

    def _load_counterparts(self) -> dict[str, str]:
        rows = self.gateway.fetch_all(
            COUNTERPARTS_ENDPOINT,
            "ListarClientes",
            {"apenas_importado_api": "N"},
            item_fields=COUNTERPART_FIELDS,
        )
        directory: dict[str, str] = {}
        for row in rows:
            if not isinstance(row, dict):
                continue
            tax_id = only_digits(row.get("cnpj_cpf") or row.get("cnpj") or row.get("cpf"))
            if tax_id:
                directory[tax_id] = row.get("nome_fantasia") or row.get("razao_social") or ""
        logger.info("Clientes/fornecedores Omie no mapa CPF/CNPJ: %s", len(directory))
        return directory

    def _load_categories(self) -> dict[str, CategoryReference]:
        rows = self.gateway.fetch_all(
            CATEGORIES_ENDPOINT,
            "ListarCategorias",
            item_fields=CATEGORY_FIELDS,
        )
        directory: dict[str, CategoryReference] = {}
        for row in rows:
            if not isinstance(row, dict) or not row.get("codigo"):
                continue
            code = str(row["codigo"])
            directory[code] = CategoryReference(code=code, description=row.get("descricao") or code)
        logger.info("Categorias financeiras Omie carregadas da API: %s", len(directory))
        return directory
