from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from django.conf import settings

from .exceptions import CatalogError
from .sheets import (
    download_workbook,
    find_sheet,
    first_value,
    open_workbook,
    read_rows,
)

logger = logging.getLogger(__name__)

STATUS_IN_PROGRESS = "em_andamento"
STATUS_FINISHED = "concluida"

_TIMELINE_COLUMNS = {
    "dataArrematacao": "dataarrematacao",
    "dataITBI": "dataitbi",
    "dataEscritura": "dataescrituradecompraevenda",
    "dataMatricula": "datamatricula",
    "dataDesocupacao": "datadesocupacao",
    "dataObra": "dataobra",
    "dataDisponibilizadoImobiliaria": "datadisponibilizadoparaimobiliaria",
    "dataContratoVenda": "datacontratodevenda",
    "dataRecebimentoVenda": "datarecebimentodavenda",
}

_DOCUMENT_COLUMNS = {
    "cartaArrematacao": "linkcartadearrematacao",
    "matriculaConsolidada": "linkmatriculaconsolidada",
}


@dataclass(frozen=True)
class PropertyRecord:
    id: str
    property_name: str
    city: str = ""
    state: str = ""
    status: str = STATUS_IN_PROGRESS
    expected_return: float = 0.0
    target_roi: float = 0.0
    total_costs: float = 0.0
    estimated_term: str | None = None
    realized_term: str | None = None
    timeline: dict = field(default_factory=dict)
    documents: dict = field(default_factory=dict)


def parse_number_cell(value: object) -> float | None:
    """Numbers as typed in the sheet: ``1.234,56``, ``12%`` or native numbers."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = "".join(value.split()).replace("%", "").replace(".", "").replace(",", ".")
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def map_status_cell(value: object) -> str:
    if not value:
        return STATUS_IN_PROGRESS
    text = str(value).strip().lower()
    if text.startswith("conc") or text.startswith("final"):
        return STATUS_FINISHED
    return STATUS_IN_PROGRESS


def _date_cell(value: object):
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value in (None, ""):
        return None
    return str(value).strip()


def _text_cell(value: object) -> str:
    return str(value).strip() if value is not None else ""


def parse_operations(workbook, sheet_name: str | None = None) -> list[PropertyRecord]:
    sheet_name = sheet_name or getattr(settings, "OPERATIONS_SHEET_NAME", "Dados Imóveis")
    sheet = find_sheet(workbook, sheet_name, use_first=True)
    if sheet is None:
        raise CatalogError("Planilha de operacoes sem abas.")

    operations: list[PropertyRecord] = []
    for row_index, row in read_rows(sheet):
        number = first_value(row, "numeracao", "numero")
        description = first_value(row, "descricaodoimovel", "descricao")
        if number is None or description is None:
            logger.info("Linha %s ignorada (sem numero ou descricao).", row_index)
            continue
        if isinstance(number, float) and number.is_integer():
            number = int(number)

        estimated = first_value(row, "prazoestimado")
        realized = first_value(row, "prazorealizado")
        operations.append(
            PropertyRecord(
                id=str(number).strip(),
                property_name=str(description).strip(),
                city=_text_cell(row.get("cidade")),
                state=_text_cell(row.get("estado")),
                status=map_status_cell(row.get("status")),
                expected_return=parse_number_cell(row.get("lucroesperado")) or 0.0,
                target_roi=parse_number_cell(row.get("roiesperado")) or 0.0,
                total_costs=parse_number_cell(first_value(row, "custostotais", "custos")) or 0.0,
                estimated_term=_text_cell(estimated) if estimated is not None else None,
                realized_term=_text_cell(realized) if realized is not None else None,
                timeline={
                    name: _date_cell(row.get(column)) for name, column in _TIMELINE_COLUMNS.items()
                },
                documents={
                    name: first_value(row, column) for name, column in _DOCUMENT_COLUMNS.items()
                },
            )
        )

    logger.info("Carregadas %s operacoes da planilha.", len(operations))
    return operations


def load_operations() -> list[PropertyRecord]:
    """Read the operations sheet, preferring the published URL over the local file."""
    url = getattr(settings, "OPERATIONS_SHEET_URL", "")
    workbook = None
    if url:
        try:
            workbook = download_workbook(url)
        except CatalogError as exc:
            logger.error("Falha ao baixar planilha via URL (%s). Usando arquivo local.", exc)
    if workbook is None:
        path = getattr(settings, "OPERATIONS_SHEET_PATH", "")
        logger.info("Lendo planilha local em: %s", path)
        workbook = open_workbook(path)
    return parse_operations(workbook)


def find_operation(operations: list[PropertyRecord], operation_id: object) -> PropertyRecord | None:
    wanted = str(operation_id).strip()
    for operation in operations:
        if operation.id == wanted:
            return operation
    return None
