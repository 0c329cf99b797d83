from __future__ import annotations

import io
import logging
import re
import unicodedata
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings
from openpyxl import load_workbook

from .exceptions import CatalogError

logger = logging.getLogger(__name__)


def normalize_key(value: object) -> str:
    if value is None:
        return ""
    text = unicodedata.normalize("NFKD", str(value).strip().lower())
    text = text.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]", "", text)


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def download_workbook(url: str):
    timeout = getattr(settings, "SHEET_TIMEOUT", 30)
    logger.info("Baixando planilha: %s", url)
    try:
        with urlopen(Request(url, method="GET"), timeout=timeout) as response:
            content = response.read()
    except HTTPError as exc:
        logger.warning("Planilha erro HTTP %s: %s", exc.code, url)
        raise CatalogError(f"Falha ao baixar planilha ({exc.code}).") from exc
    except (URLError, TimeoutError) as exc:
        logger.warning("Planilha erro de conexao: %s", exc)
        raise CatalogError("Nao foi possivel baixar a planilha.") from exc
    return open_workbook(io.BytesIO(content))


def open_workbook(source):
    try:
        return load_workbook(source, data_only=True)
    except FileNotFoundError as exc:
        raise CatalogError(f"Planilha nao encontrada: {source}") from exc
    except Exception as exc:
        raise CatalogError(f"Planilha invalida: {exc}") from exc


def find_sheet(workbook, name: str, fallback_contains: str = "", use_first: bool = False):
    """Worksheet by exact name, then by normalized substring, then the first one."""
    if name in workbook.sheetnames:
        return workbook[name]
    wanted = normalize_key(fallback_contains or name)
    if wanted:
        for sheet_name in workbook.sheetnames:
            if wanted in normalize_key(sheet_name):
                logger.info("Aba %r encontrada por aproximacao para %r.", sheet_name, name)
                return workbook[sheet_name]
    if use_first and workbook.sheetnames:
        logger.warning("Aba %r nao encontrada. Usando a primeira aba.", name)
        return workbook[workbook.sheetnames[0]]
    return None


def read_rows(sheet) -> list[tuple[int, dict[str, object]]]:
    """Rows keyed by normalized header, with their spreadsheet line numbers."""
    rows_iter = sheet.iter_rows(values_only=True)
    headers = next(rows_iter, None)
    if not headers:
        return []
    keys = [normalize_key(header) for header in headers]
    rows: list[tuple[int, dict[str, object]]] = []
    for row_index, row in enumerate(rows_iter, start=2):
        if not row or all(_is_empty(cell) for cell in row):
            continue
        rows.append(
            (
                row_index,
                {key: row[idx] for idx, key in enumerate(keys) if key and idx < len(row)},
            )
        )
    return rows


def first_value(row: dict[str, object], *keys: str) -> object:
    for key in keys:
        value = row.get(key)
        if not _is_empty(value):
            return value
    return None
