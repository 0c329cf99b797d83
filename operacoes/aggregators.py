from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .cache import ReferenceCache, make_key
from .classifier import (
    DEFAULT_PROFIT_DISTRIBUTION_CATEGORY,
    Intent,
    MovementClassifier,
)
from .exceptions import LedgerError
from .payloads import only_digits
from .reference_data import ReferenceDataRepository
from .resolver import resolve_project

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    """A total plus whether it is real or a stand-in for an upstream failure."""

    value: Any
    degraded: bool = False
    cause: str = ""

    @classmethod
    def ok(cls, value: Any) -> "AggregateResult":
        return cls(value=value)

    @classmethod
    def failed(cls, value: Any, cause: str) -> "AggregateResult":
        return cls(value=value, degraded=True, cause=cause)


def empty_costs() -> dict:
    return {"totalCosts": 0.0, "categories": [], "items": []}


class LedgerAggregator:
    """Cost, contribution and realized profit totals for one property.

    None of the public methods raise. Upstream failures are logged and turn
    into zero or empty results; the ``*_result`` variants keep the
    distinction for callers that want to report it.
    """

    def __init__(
        self,
        repository: ReferenceDataRepository,
        cache: ReferenceCache,
        profit_category: str = DEFAULT_PROFIT_DISTRIBUTION_CATEGORY,
        ttl: float | None = None,
    ):
        self.repository = repository
        self.cache = cache
        self.classifier = MovementClassifier(profit_category)
        self.ttl = ttl

    @property
    def profit_category(self) -> str:
        return self.classifier.profit_category

    def _cached(
        self,
        key: str,
        compute: Callable[[], Any],
        empty: Callable[[], Any],
        label: str,
    ) -> AggregateResult:
        def load() -> AggregateResult:
            try:
                return AggregateResult.ok(compute())
            except LedgerError as exc:
                logger.error("Erro Omie em %s: %s", label, exc)
                return AggregateResult.failed(empty(), str(exc))
            except Exception as exc:
                logger.exception("Erro inesperado em %s", label)
                return AggregateResult.failed(empty(), repr(exc))

        return self.cache.get_or_load(key, load, self.ttl)

    def _resolve(self, property_name: str, label: str):
        project = resolve_project(property_name, self.repository.projects())
        if project is None:
            logger.warning(
                "Nenhum projeto Omie encontrado com nome = %r (%s).", property_name, label
            )
        return project

    # Custos da operacao

    def project_costs_result(self, operation_id: str, property_name: str) -> AggregateResult:
        label = f"custos da operacao {operation_id}"
        return self._cached(
            make_key("custosOperacao", property_name),
            lambda: self._compute_costs(property_name, label),
            empty_costs,
            label,
        )

    def project_costs(self, operation_id: str, property_name: str) -> dict:
        return self.project_costs_result(operation_id, property_name).value

    def _compute_costs(self, property_name: str, label: str) -> dict:
        project = self._resolve(property_name, label)
        if project is None:
            return empty_costs()

        movements = self.repository.movements()
        categories = self.repository.categories()
        try:
            counterparts = self.repository.counterparts()
        except LedgerError as exc:
            logger.warning("Sem nomes de clientes/fornecedores Omie: %s", exc)
            counterparts = {}

        total = 0.0
        grouped: dict[str, dict] = {}
        items: list[dict] = []
        for entry in self.classifier.select(movements, project, Intent.COST, categories):
            raw_tax_id = entry.movement.counterpart_tax_id
            item = {
                "value": entry.amount,
                "categoryCode": entry.category_code,
                "categoryDescription": entry.category_description,
                "cpfCnpjCliente": raw_tax_id,
                "clienteNome": counterparts.get(entry.movement.counterpart_id) or raw_tax_id or "",
            }
            total += entry.amount
            group = grouped.setdefault(
                entry.category_code,
                {
                    "categoryCode": entry.category_code,
                    "categoryDescription": entry.category_description,
                    "total": 0.0,
                    "items": [],
                },
            )
            group["total"] += entry.amount
            group["items"].append(item)
            items.append(item)

        ordered = sorted(grouped.values(), key=lambda group: group["total"], reverse=True)
        logger.info(
            "Custos Omie para %r (projeto %s): total=%s, categorias=%s",
            property_name,
            project.code,
            total,
            len(ordered),
        )
        return {"totalCosts": total, "categories": ordered, "items": items}

    # Aporte do investidor

    def investor_contribution_result(self, investor_id: str, property_name: str) -> AggregateResult:
        digits = only_digits(investor_id)
        if not digits:
            return AggregateResult.ok(0.0)
        label = f"aporte do CPF {digits}"
        return self._cached(
            make_key("aporte", digits, property_name),
            lambda: self._sum(property_name, Intent.CONTRIBUTION, digits, label),
            float,
            label,
        )

    def investor_contribution(self, investor_id: str, property_name: str) -> float:
        return self.investor_contribution_result(investor_id, property_name).value

    # Lucro realizado (distribuicao de lucros)

    def realized_profit_result(
        self, property_name: str, investor_id: str | None = None
    ) -> AggregateResult:
        digits = only_digits(investor_id) if investor_id else ""
        label = f"lucro realizado ({digits or 'TODOS'})"
        return self._cached(
            make_key("lucroDistribuido", property_name, digits or "ALL"),
            lambda: self._sum(property_name, Intent.PROFIT, digits or None, label),
            float,
            label,
        )

    def realized_profit(self, property_name: str, investor_id: str | None = None) -> float:
        return self.realized_profit_result(property_name, investor_id).value

    def _sum(self, property_name: str, intent: Intent, investor_id: str | None, label: str) -> float:
        project = self._resolve(property_name, label)
        if project is None:
            return 0.0
        total = 0.0
        for entry in self.classifier.select(
            self.repository.movements(),
            project,
            intent,
            investor_id=investor_id,
        ):
            total += entry.amount
        logger.info("%s em %r: total=%s", label, property_name, total)
        return total
