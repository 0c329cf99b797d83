"""Helpers for the loosely shaped JSON the Omie API returns.

Each resource puts its rows under a different field name and spells the page
counter in several ways, so lookups go through ordered candidate lists with a
documented fallback instead of ad hoc guessing at every call site.
"""

from __future__ import annotations

import math
import re
import unicodedata

PROJECT_FIELDS = ("cadastro", "projetos", "projeto_cadastro")
MOVEMENT_FIELDS = ("movimentos", "listaMovimentos", "lista_movimentos")
COUNTERPART_FIELDS = ("clientes_cadastro", "clientes", "cliente_cadastro", "cadastro")
CATEGORY_FIELDS = ("categoria_cadastro", "categorias", "cadastro")

TOTAL_PAGES_FIELDS = (
    "nTotPaginas",
    "total_de_paginas",
    "total_paginas",
    "totalDePaginas",
    "totalPaginas",
    "total_pages",
)


def pick_items(payload: object, candidates: tuple[str, ...] = ()) -> list:
    """Return the row list of an Omie response.

    Candidates are tried in order, first on the payload itself and then on a
    nested ``response`` object. When none of them holds a list, the first
    list-valued field of the payload is used. Anything else yields ``[]``.
    """
    if not isinstance(payload, dict):
        return []
    nested = payload.get("response")
    for key in candidates:
        value = payload.get(key)
        if isinstance(value, list):
            return value
        if isinstance(nested, dict) and isinstance(nested.get(key), list):
            return nested[key]
    for value in payload.values():
        if isinstance(value, list):
            return value
    return []


def total_pages(payload: object) -> int:
    if not isinstance(payload, dict):
        return 1
    for key in TOTAL_PAGES_FIELDS:
        value = payload.get(key)
        if value in (None, ""):
            continue
        try:
            pages = int(value)
        except (TypeError, ValueError):
            continue
        if pages > 0:
            return pages
    return 1


def only_digits(value: object) -> str:
    return re.sub(r"\D", "", str(value or ""))


def normalize_text(value: object) -> str:
    text = unicodedata.normalize("NFKD", str(value or ""))
    text = "".join(char for char in text if not unicodedata.combining(char))
    return text.lower().strip()


def to_amount(value: object) -> float:
    if value in (None, ""):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount
