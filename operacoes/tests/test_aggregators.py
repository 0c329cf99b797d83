from django.test import SimpleTestCase

from operacoes.aggregators import LedgerAggregator
from operacoes.cache import ReferenceCache
from operacoes.exceptions import LedgerPermanentError, LedgerTransientError
from operacoes.reference_data import ReferenceDataRepository

from .helpers import FakeClock, FakeGateway, movement

PROJECTS = [
    {"codigo": 100, "nome": "Casa Corações"},
    {"codigo": 200, "nome": "Apto Centro"},
]
CATEGORIES = [
    {"codigo": "2.01.01", "descricao": "Reforma"},
    {"codigo": "2.01.02", "descricao": "IPTU"},
    {"codigo": "2.05.01", "descricao": "Devolução de capital ao investidor"},
    {"codigo": "2.10.98", "descricao": "Distribuição de Lucros"},
]
COUNTERPARTS = [
    {"cnpj_cpf": "11.222.333/0001-44", "nome_fantasia": "Construtora Alfa"},
    {"cnpj_cpf": "123.456.789-00", "razao_social": "Maria Investidora"},
]


class AggregatorTestCase(SimpleTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = ReferenceCache(default_ttl=900, clock=self.clock)

    def build(self, movements, **kwargs) -> LedgerAggregator:
        self.gateway = FakeGateway(
            projects=kwargs.pop("projects", PROJECTS),
            movements=movements,
            counterparts=COUNTERPARTS,
            categories=CATEGORIES,
            **kwargs,
        )
        repository = ReferenceDataRepository(self.gateway, self.cache, ttl=900)
        return LedgerAggregator(repository, self.cache, profit_category="2.10.98", ttl=900)


class ProjectCostsTests(AggregatorTestCase):
    def test_profit_payouts_and_capital_returns_are_not_costs(self):
        aggregator = self.build(
            [
                movement(project="100", category="2.10.98", amount=5000),
                movement(project="100", category="2.05.01", amount=3000),
                movement(project="100", category="2.01.01", amount=1200, tax_id="11222333000144"),
            ]
        )

        costs = aggregator.project_costs("1", "Casa Corações")

        self.assertEqual(costs["totalCosts"], 1200)
        self.assertEqual(len(costs["items"]), 1)
        self.assertEqual(costs["items"][0]["clienteNome"], "Construtora Alfa")

    def test_categories_grouped_and_sorted_by_total(self):
        aggregator = self.build(
            [
                movement(project="100", category="2.01.02", amount=100),
                movement(project="100", category="2.01.01", amount=700),
                movement(project="100", category="2.01.02", amount=50),
                movement(project="100", category="", amount=20, tax_id="999"),
            ]
        )

        costs = aggregator.project_costs("1", "casa coracoes")

        self.assertEqual(costs["totalCosts"], 870)
        self.assertEqual(
            [(c["categoryCode"], c["total"]) for c in costs["categories"]],
            [("2.01.01", 700), ("2.01.02", 150), ("SEM_CATEGORIA", 20)],
        )
        self.assertEqual(costs["categories"][1]["categoryDescription"], "IPTU")
        self.assertEqual(len(costs["categories"][1]["items"]), 2)
        self.assertEqual(costs["categories"][2]["items"][0]["clienteNome"], "999")

    def test_unknown_project_is_an_empty_result(self):
        aggregator = self.build([movement(project="100", amount=10)])

        result = aggregator.project_costs_result("1", "Sitio Inexistente")

        self.assertFalse(result.degraded)
        self.assertEqual(result.value, {"totalCosts": 0.0, "categories": [], "items": []})
        self.assertNotIn("ListarMovimentos", self.gateway.calls)

    def test_counterpart_failure_keeps_costs(self):
        aggregator = self.build([movement(project="100", amount=10, tax_id="11222333000144")])
        self.gateway.errors["ListarClientes"] = LedgerPermanentError("403", status=403)

        costs = aggregator.project_costs("1", "Casa Corações")

        self.assertEqual(costs["totalCosts"], 10)
        self.assertEqual(costs["items"][0]["clienteNome"], "11222333000144")


class InvestorContributionTests(AggregatorTestCase):
    def test_sums_only_the_investors_inflows(self):
        aggregator = self.build(
            [
                movement(project="100", nature="R", amount=1000, tax_id="123.456.789-00"),
                movement(project="100", nature="R", amount=2000, tax_id="12345678900"),
                movement(project="100", nature="R", amount=500, tax_id="98765432100"),
                movement(project="200", nature="R", amount=9000, tax_id="12345678900"),
            ]
        )

        self.assertEqual(aggregator.investor_contribution("12345678900", "Casa Corações"), 3000)

    def test_blank_investor_does_not_touch_the_ledger(self):
        aggregator = self.build([])

        self.assertEqual(aggregator.investor_contribution("--", "Casa Corações"), 0)
        self.assertEqual(self.gateway.calls, [])


class RealizedProfitTests(AggregatorTestCase):
    def setUp(self):
        super().setUp()
        self.aggregator = self.build(
            [
                movement(project="100", category="2.10.98", amount=800, tax_id="12345678900"),
                movement(project="100", category="2.10.98", amount=200, tax_id="98765432100"),
                movement(project="100", category="2.01.01", amount=999, tax_id="12345678900"),
            ]
        )

    def test_without_investor_sums_everyone(self):
        self.assertEqual(self.aggregator.realized_profit("Casa Corações", None), 1000)

    def test_with_investor_sums_only_their_share(self):
        self.assertEqual(self.aggregator.realized_profit("Casa Corações", "987.654.321-00"), 200)


class FailureAndCachingTests(AggregatorTestCase):
    def test_upstream_failure_degrades_to_zero(self):
        aggregator = self.build([])
        self.gateway.errors["ListarMovimentos"] = LedgerTransientError("Omie HTTP 500", status=500)

        contribution = aggregator.investor_contribution_result("12345678900", "Casa Corações")
        costs = aggregator.project_costs_result("1", "Casa Corações")

        self.assertTrue(contribution.degraded)
        self.assertEqual(contribution.value, 0)
        self.assertIn("500", contribution.cause)
        self.assertTrue(costs.degraded)
        self.assertEqual(costs.value["totalCosts"], 0)

    def test_disabled_gateway_degrades_to_zero(self):
        aggregator = self.build([], enabled=False)

        result = aggregator.realized_profit_result("Casa Corações")

        self.assertTrue(result.degraded)
        self.assertEqual(aggregator.realized_profit("Casa Corações"), 0)

    def test_unexpected_errors_are_contained(self):
        aggregator = self.build([])
        self.gateway.errors["ListarProjetos"] = KeyError("codigo")

        with self.assertLogs("operacoes.aggregators", level="ERROR"):
            self.assertEqual(aggregator.investor_contribution("12345678900", "Casa Corações"), 0)

    def test_repeated_calls_within_ttl_hit_the_cache(self):
        aggregator = self.build(
            [
                movement(project="100", category="2.01.01", amount=150),
                movement(project="100", nature="R", amount=1000, tax_id="12345678900"),
                movement(project="100", category="2.10.98", amount=90, tax_id="12345678900"),
            ]
        )

        first = (
            aggregator.project_costs("1", "Casa Corações"),
            aggregator.investor_contribution("12345678900", "Casa Corações"),
            aggregator.realized_profit("Casa Corações", "12345678900"),
        )
        calls_after_first = list(self.gateway.calls)
        second = (
            aggregator.project_costs("1", "Casa Corações"),
            aggregator.investor_contribution("12345678900", "Casa Corações"),
            aggregator.realized_profit("Casa Corações", "12345678900"),
        )

        self.assertEqual(first, second)
        self.assertEqual(self.gateway.calls, calls_after_first)
        self.assertEqual(
            sorted(set(calls_after_first)),
            ["ListarCategorias", "ListarClientes", "ListarMovimentos", "ListarProjetos"],
        )
        self.assertEqual(calls_after_first.count("ListarMovimentos"), 1)

    def test_results_reload_after_ttl(self):
        aggregator = self.build([movement(project="100", nature="R", amount=10, tax_id="1")])

        aggregator.investor_contribution("1", "Casa Corações")
        self.clock.advance(901)
        aggregator.investor_contribution("1", "Casa Corações")

        self.assertEqual(self.gateway.calls.count("ListarMovimentos"), 2)
