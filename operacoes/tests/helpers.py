from __future__ import annotations

import io
import json
from email.message import Message
from urllib.error import HTTPError

from operacoes.exceptions import LedgerDisabledError


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, payload, status: int = 200):
        self._body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        self._status = status

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def read(self) -> bytes:
        return self._body

    def getcode(self) -> int:
        return self._status


def http_error(code: int, body: str = "") -> HTTPError:
    return HTTPError(
        "https://app.omie.com.br/api/v1/financas/mf/",
        code,
        "erro",
        Message(),
        io.BytesIO(body.encode("utf-8")),
    )


class ScriptedOpener:
    """Plays back responses or exceptions, one per request."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def __call__(self, request, timeout=None):
        self.requests.append((request, timeout))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(request.data.decode("utf-8")) for request, _ in self.requests]


class FakeGateway:
    """Stands in for LedgerGateway.fetch_all with fixed rows per Omie call."""

    def __init__(self, projects=(), movements=(), counterparts=(), categories=(), enabled=True):
        self.rows = {
            "ListarProjetos": list(projects),
            "ListarMovimentos": list(movements),
            "ListarClientes": list(counterparts),
            "ListarCategorias": list(categories),
        }
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.enabled = enabled

    def fetch_all(self, endpoint_path, method_name, params=None, **kwargs):
        self.calls.append(method_name)
        if not self.enabled:
            raise LedgerDisabledError("Integracao Omie inativa: credenciais nao configuradas.")
        if method_name in self.errors:
            raise self.errors[method_name]
        return list(self.rows[method_name])


def movement(
    project="100",
    nature="P",
    category="2.01.01",
    amount=100.0,
    tax_id="",
    description=None,
):
    details = {
        "cCodProjeto": project,
        "cNatureza": nature,
        "cCodCateg": category,
        "cCPFCNPJCliente": tax_id,
    }
    if description is not None:
        details["cDescCateg"] = description
    return {"detalhes": details, "resumo": {"nValPago": amount}}
