import http.client
import json
import logging
import re
import time
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

from .exceptions import (
    LedgerDisabledError,
    LedgerPermanentError,
    LedgerTransientError,
)
from .payloads import pick_items, total_pages

logger = logging.getLogger(__name__)

PERMANENT_STATUSES = frozenset({400, 401, 403, 404})


def _should_log() -> bool:
    return getattr(settings, "OMIE_LOG_REQUESTS", True)


def _mask_token(value: str, keep: int = 4) -> str:
    if not value:
        return ""
    if len(value) <= keep * 2:
        return "*" * len(value)
    return f"{value[:keep]}...{value[-keep:]}"


def _sanitize_message(value: str, limit: int = 160) -> str:
    if not value:
        return ""
    compact = re.sub(r"\s+", " ", value).strip()
    if len(compact) <= limit:
        return compact
    return f"{compact[:limit]}..."


def _log_request(url: str, call: str, app_key: str, params: dict, attempt: int) -> None:
    if not _should_log():
        return
    logger.info(
        "Omie request POST %s call=%s app_key=%s param=%s tentativa=%s",
        url,
        call,
        _mask_token(app_key),
        _sanitize_message(json.dumps(params, default=str)),
        attempt + 1,
    )


def _log_response(status: int, body: str) -> None:
    if not _should_log():
        return
    logger.info(
        "Omie response status=%s body=%s body_length=%s",
        status,
        _sanitize_message(body, limit=240),
        len(body or ""),
    )


def _resolve_config() -> dict:
    return {
        "base_url": getattr(settings, "OMIE_BASE_URL", "https://app.omie.com.br/api/v1"),
        "app_key": (getattr(settings, "OMIE_APP_KEY", "") or "").strip(),
        "app_secret": (getattr(settings, "OMIE_APP_SECRET", "") or "").strip(),
        "timeout": getattr(settings, "OMIE_TIMEOUT", 15),
        "max_retries": getattr(settings, "OMIE_MAX_RETRIES", 3),
        "retry_base_delay": getattr(settings, "OMIE_RETRY_BASE_DELAY", 1.0),
        "max_pages": getattr(settings, "OMIE_MAX_PAGES", 500),
    }


def credentials_configured() -> bool:
    config = _resolve_config()
    return bool(config["app_key"] and config["app_secret"])


def build_url(base_url: str, endpoint_path: str) -> str:
    if not endpoint_path:
        return base_url.rstrip("/")
    if endpoint_path.startswith(("http://", "https://")):
        return endpoint_path
    return f"{base_url.rstrip('/')}/{endpoint_path.lstrip('/')}"


class LedgerGateway:
    """Thin client for the Omie JSON API.

    Every call is a POST of ``{call, app_key, app_secret, param: [params]}``.
    Statuses 400/401/403/404 fail at once; anything else (other statuses,
    connection errors, timeouts, unreadable bodies) is retried with doubling
    backoff until ``OMIE_MAX_RETRIES`` extra attempts are spent.
    """

    def __init__(self, opener=None, sleep=None):
        self._opener = opener or urlopen
        self._sleep = sleep or time.sleep

    @property
    def enabled(self) -> bool:
        return credentials_configured()

    def call(self, endpoint_path: str, method_name: str, params: dict | None = None) -> dict | None:
        config = _resolve_config()
        if not config["app_key"] or not config["app_secret"]:
            logger.debug("Omie chamada ignorada (%s): credenciais nao configuradas.", method_name)
            return None

        params = dict(params or {})
        url = build_url(config["base_url"], endpoint_path)
        body = json.dumps(
            {
                "call": method_name,
                "app_key": config["app_key"],
                "app_secret": config["app_secret"],
                "param": [params],
            }
        ).encode("utf-8")

        delay = float(config["retry_base_delay"])
        max_retries = int(config["max_retries"])
        attempt = 0
        while True:
            _log_request(url, method_name, config["app_key"], params, attempt)
            try:
                return self._post(url, body, config["timeout"])
            except LedgerPermanentError as exc:
                logger.error(
                    "Omie erro permanente status=%s call=%s; sem nova tentativa.",
                    exc.status,
                    method_name,
                )
                raise
            except LedgerTransientError as exc:
                if attempt >= max_retries:
                    logger.error(
                        "Omie tentativas esgotadas (%s) para call=%s: %s",
                        attempt + 1,
                        method_name,
                        exc,
                    )
                    raise
                logger.warning(
                    "Omie erro transitorio (status=%s) em call=%s. Nova tentativa em %ss.",
                    exc.status or "sem status",
                    method_name,
                    delay,
                )
                self._sleep(delay)
                delay *= 2
                attempt += 1

    def _post(self, url: str, body: bytes, timeout) -> dict:
        request = Request(
            url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with self._opener(request, timeout=timeout) as response:
                raw = response.read().decode("utf-8", errors="replace")
                status = response.getcode()
        except HTTPError as exc:
            detail = ""
            try:
                detail = exc.read().decode("utf-8", errors="replace")
            except (OSError, AttributeError):
                detail = ""
            _log_response(exc.code, detail)
            error_class = (
                LedgerPermanentError if exc.code in PERMANENT_STATUSES else LedgerTransientError
            )
            raise error_class(f"Omie HTTP {exc.code}", status=exc.code, body=detail) from exc
        except (URLError, http.client.HTTPException, OSError) as exc:
            logger.warning("Omie erro de conexao: %s", exc)
            raise LedgerTransientError(f"Omie indisponivel: {exc}") from exc

        _log_response(status or 200, raw)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LedgerTransientError("Resposta do Omie invalida.", status=status, body=raw) from exc
        if not isinstance(data, dict):
            raise LedgerTransientError("Resposta do Omie inesperada.", status=status, body=raw)
        return data

    def fetch_all(
        self,
        endpoint_path: str,
        method_name: str,
        params: dict | None = None,
        *,
        item_fields: tuple[str, ...] = (),
        page_param: str = "pagina",
        page_size_param: str = "registros_por_pagina",
        page_size: int = 200,
    ) -> list:
        """Drain every page of a listing call and return the concatenated rows."""
        if not self.enabled:
            raise LedgerDisabledError("Integracao Omie inativa: credenciais nao configuradas.")

        max_pages = int(_resolve_config()["max_pages"])
        items: list = []
        page = 1
        while True:
            if page > max_pages:
                raise LedgerTransientError(
                    f"{method_name}: limite de {max_pages} paginas excedido."
                )
            payload = self.call(
                endpoint_path,
                method_name,
                {**(params or {}), page_param: page, page_size_param: page_size},
            )
            if payload is None:
                raise LedgerDisabledError("Integracao Omie inativa: credenciais nao configuradas.")
            rows = pick_items(payload, item_fields)
            if not rows:
                break
            items.extend(rows)
            if page >= total_pages(payload):
                break
            page += 1

        logger.info("Omie %s: %s registros em %s paginas.", method_name, len(items), page)
        return items
