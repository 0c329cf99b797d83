"""Per-movement rules shared by the cost, contribution and profit totals.

A movement passes through the checks in a fixed order and stops at the first
one that fails: project, direction, category (exclusion for costs, inclusion
for profit), paid amount and finally the investor's tax id when one is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Mapping

from .payloads import normalize_text, only_digits, to_amount
from .reference_data import CategoryReference, ProjectReference

INFLOW = "R"
OUTFLOW = "P"
UNCATEGORIZED = "SEM_CATEGORIA"
DEFAULT_PROFIT_DISTRIBUTION_CATEGORY = "2.10.98"


class Intent(str, Enum):
    COST = "cost"
    CONTRIBUTION = "contribution"
    PROFIT = "profit"


_INTENT_DIRECTION = {
    Intent.COST: OUTFLOW,
    Intent.CONTRIBUTION: INFLOW,
    Intent.PROFIT: OUTFLOW,
}


@dataclass(frozen=True)
class LedgerMovement:
    project_code: str
    direction: str
    category_code: str
    inline_category: str
    counterpart_tax_id: str
    amount: float

    @classmethod
    def from_payload(cls, raw: Mapping) -> "LedgerMovement":
        details = raw.get("detalhes") or {}
        summary = raw.get("resumo") or {}
        return cls(
            project_code=str(details.get("cCodProjeto") or ""),
            direction=str(details.get("cNatureza") or "").strip().upper(),
            category_code=str(details.get("cCodCateg") or UNCATEGORIZED),
            inline_category=str(details.get("cDescCateg") or details.get("cCategoria") or ""),
            counterpart_tax_id=str(details.get("cCPFCNPJCliente") or ""),
            amount=to_amount(summary.get("nValPago")),
        )

    def belongs_to(self, project: ProjectReference) -> bool:
        return bool(self.project_code) and self.project_code == str(project.code)

    def has_direction(self, flag: str) -> bool:
        return self.direction == flag.upper()

    def category_description(self, categories: Mapping[str, CategoryReference]) -> str:
        reference = categories.get(self.category_code)
        if reference is not None and reference.description:
            return reference.description
        return self.inline_category or self.category_code

    @property
    def counterpart_id(self) -> str:
        return only_digits(self.counterpart_tax_id)

    def counterpart_matches(self, investor_id: str) -> bool:
        wanted = only_digits(investor_id)
        return bool(wanted) and self.counterpart_id == wanted


@dataclass(frozen=True)
class ClassifiedMovement:
    movement: LedgerMovement
    category_code: str
    category_description: str

    @property
    def amount(self) -> float:
        return self.movement.amount


def is_cost_excluded(category_code: str, description: str, profit_category: str) -> bool:
    """Capital returned to investors and profit payouts are not project costs."""
    normalized = normalize_text(description)
    if "devolucao de capital" in normalized and "investidor" in normalized:
        return True
    if "distribuicao de lucros" in normalized:
        return True
    return category_code == profit_category


class MovementClassifier:
    def __init__(self, profit_category: str = DEFAULT_PROFIT_DISTRIBUTION_CATEGORY):
        self.profit_category = profit_category

    def classify(
        self,
        movement: LedgerMovement,
        project: ProjectReference,
        intent: Intent,
        categories: Mapping[str, CategoryReference],
        investor_id: str | None = None,
    ) -> ClassifiedMovement | None:
        if not movement.belongs_to(project):
            return None
        if not movement.has_direction(_INTENT_DIRECTION[intent]):
            return None

        description = movement.category_description(categories)
        if intent is Intent.COST:
            if is_cost_excluded(movement.category_code, description, self.profit_category):
                return None
        elif intent is Intent.PROFIT:
            if movement.category_code != self.profit_category:
                return None

        if not movement.amount:
            return None

        if intent is Intent.CONTRIBUTION or (intent is Intent.PROFIT and investor_id):
            if not movement.counterpart_matches(investor_id or ""):
                return None

        return ClassifiedMovement(
            movement=movement,
            category_code=movement.category_code,
            category_description=description,
        )

    def select(
        self,
        movements: Iterable[Mapping],
        project: ProjectReference,
        intent: Intent,
        categories: Mapping[str, CategoryReference] | None = None,
        investor_id: str | None = None,
    ) -> Iterator[ClassifiedMovement]:
        categories = categories or {}
        for raw in movements:
            classified = self.classify(
                LedgerMovement.from_payload(raw),
                project,
                intent,
                categories,
                investor_id=investor_id,
            )
            if classified is not None:
                yield classified
