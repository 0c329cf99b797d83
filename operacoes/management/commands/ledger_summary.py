from django.core.management.base import BaseCommand

from operacoes.services import get_aggregator


class Command(BaseCommand):
    help = "Show Omie costs, investor contribution and realized profit for one property."

    def add_arguments(self, parser):
        parser.add_argument("property_name", help="Property name as written in the spreadsheet.")
        parser.add_argument(
            "--investor",
            default="",
            help="Investor CPF/CNPJ. Without it profit is summed for every investor.",
        )

    def handle(self, *args, **options):
        property_name = options["property_name"]
        investor = options["investor"]
        aggregator = get_aggregator()

        results = [("custos", aggregator.project_costs_result("-", property_name))]
        if investor:
            results.append(
                ("aporte", aggregator.investor_contribution_result(investor, property_name))
            )
        results.append(
            ("lucro realizado", aggregator.realized_profit_result(property_name, investor or None))
        )

        for label, result in results:
            value = result.value["totalCosts"] if isinstance(result.value, dict) else result.value
            message = f"{label}: {value:.2f}"
            if result.degraded:
                self.stdout.write(self.style.WARNING(f"{message} (Omie indisponivel: {result.cause})"))
            else:
                self.stdout.write(self.style.SUCCESS(message))
