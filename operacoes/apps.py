import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class OperacoesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "operacoes"
    verbose_name = "Operacoes"

    def ready(self):
        from .ledger_client import credentials_configured
        from .services import build_ledger_services

        self.ledger = build_ledger_services()
        if not credentials_configured():
            logger.warning(
                "OMIE_APP_KEY ou OMIE_APP_SECRET nao configurados. "
                "Integracao com Omie ficara inativa e os valores financeiros sairao zerados."
            )
