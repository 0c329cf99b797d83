from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings

from .exceptions import CatalogError
from .payloads import only_digits
from .sheets import download_workbook, find_sheet, first_value, read_rows

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "excel-login-"


@dataclass(frozen=True)
class InvestorLogin:
    cpf: str
    password: str
    name: str = "Investidor"


def parse_logins(workbook, sheet_name: str | None = None) -> list[InvestorLogin]:
    sheet_name = sheet_name or getattr(settings, "LOGIN_SHEET_NAME", "Login")
    sheet = find_sheet(workbook, sheet_name, fallback_contains="login")
    if sheet is None:
        logger.error("Nenhuma aba compativel com 'login' foi encontrada na planilha.")
        return []

    users: list[InvestorLogin] = []
    for row_index, row in read_rows(sheet):
        cpf_raw = first_value(row, "cpf", "cpfinvestidor", "documento")
        password_raw = first_value(row, "senha", "password", "senhalogin")
        if cpf_raw is None or password_raw is None:
            logger.info("[LOGIN] Linha %s ignorada (sem CPF ou senha).", row_index)
            continue
        if isinstance(cpf_raw, float) and cpf_raw.is_integer():
            cpf_raw = int(cpf_raw)
        cpf = only_digits(cpf_raw)
        if not cpf:
            logger.info("[LOGIN] Linha %s com CPF invalido.", row_index)
            continue
        name = first_value(row, "nome", "nomecompleto", "investidor")
        users.append(
            InvestorLogin(
                cpf=cpf,
                password=str(password_raw).strip(),
                name=str(name).strip() if name is not None else "Investidor",
            )
        )
    logger.info("[LOGIN] Carregados %s registros de login.", len(users))
    return users


def load_logins() -> list[InvestorLogin]:
    url = getattr(settings, "LOGIN_SHEET_URL", "")
    if not url:
        logger.error("[LOGIN] LOGIN_SHEET_URL nao configurada.")
        return []
    try:
        workbook = download_workbook(url)
    except CatalogError as exc:
        logger.error("[LOGIN] Erro ao baixar planilha de login: %s", exc)
        return []
    return parse_logins(workbook)


def authenticate(cpf: str, password: str, users: list[InvestorLogin] | None = None) -> InvestorLogin | None:
    cpf = only_digits(cpf)
    password = (password or "").strip()
    if not cpf or not password:
        return None
    if users is None:
        users = load_logins()
    for user in users:
        if user.cpf == cpf and user.password == password:
            logger.info("[LOGIN] Autenticacao bem-sucedida para cpf=%s.", cpf)
            return user
    logger.info("[LOGIN] CPF ou senha invalidos para cpf=%s.", cpf)
    return None


def make_token(cpf: str) -> str:
    return f"{TOKEN_PREFIX}{only_digits(cpf)}"


def investor_id_from_token(authorization: str | None) -> str:
    header = (authorization or "").strip()
    if not header.startswith("Bearer "):
        return ""
    token = header[len("Bearer "):].strip()
    if not token.startswith(TOKEN_PREFIX):
        return ""
    return only_digits(token[len(TOKEN_PREFIX):])
