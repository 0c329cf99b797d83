from __future__ import annotations

from dataclasses import dataclass

from django.apps import apps
from django.conf import settings

from .aggregators import LedgerAggregator
from .cache import ReferenceCache
from .ledger_client import LedgerGateway
from .reference_data import ReferenceDataRepository


@dataclass
class LedgerServices:
    cache: ReferenceCache
    gateway: LedgerGateway
    repository: ReferenceDataRepository
    aggregator: LedgerAggregator


def build_ledger_services(
    gateway: LedgerGateway | None = None,
    cache: ReferenceCache | None = None,
) -> LedgerServices:
    ttl = getattr(settings, "LEDGER_CACHE_TTL", 900)
    cache = cache or ReferenceCache(default_ttl=ttl)
    gateway = gateway or LedgerGateway()
    repository = ReferenceDataRepository(gateway, cache, ttl=ttl)
    aggregator = LedgerAggregator(
        repository,
        cache,
        profit_category=getattr(settings, "PROFIT_DISTRIBUTION_CATEGORY", "2.10.98"),
        ttl=ttl,
    )
    return LedgerServices(cache=cache, gateway=gateway, repository=repository, aggregator=aggregator)


def get_ledger_services() -> LedgerServices:
    return apps.get_app_config("operacoes").ledger


def get_aggregator() -> LedgerAggregator:
    return get_ledger_services().aggregator
