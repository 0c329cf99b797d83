import os
import tempfile
from pathlib import Path
from unittest import mock

from django.test import SimpleTestCase

from triadeinvest.env import load_dotenv_if_exists, parse_dotenv


class DotenvTests(SimpleTestCase):
    def test_parses_quotes_exports_and_comments(self):
        values = parse_dotenv(
            "\n".join(
                [
                    "# credenciais Omie",
                    "export OMIE_APP_KEY=chave-123",
                    "OMIE_APP_SECRET='segredo # com hash'",
                    'EXCEL_URL="https://exemplo.com/planilha.xlsx"',
                    "OMIE_TIMEOUT=15  # segundos",
                    "SEM_IGUAL",
                    "=sem-chave",
                ]
            )
        )

        self.assertEqual(
            values,
            {
                "OMIE_APP_KEY": "chave-123",
                "OMIE_APP_SECRET": "segredo # com hash",
                "EXCEL_URL": "https://exemplo.com/planilha.xlsx",
                "OMIE_TIMEOUT": "15",
            },
        )

    def test_real_environment_wins_over_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, ".env").write_text(
                "OMIE_APP_KEY=do-arquivo\nLEDGER_CACHE_TTL=60\n", encoding="utf-8"
            )
            with mock.patch.dict(os.environ, {"OMIE_APP_KEY": "do-ambiente"}, clear=False):
                os.environ.pop("LEDGER_CACHE_TTL", None)
                load_dotenv_if_exists(Path(tmp))

                self.assertEqual(os.environ["OMIE_APP_KEY"], "do-ambiente")
                self.assertEqual(os.environ["LEDGER_CACHE_TTL"], "60")

    def test_missing_file_is_ignored(self):
        with tempfile.TemporaryDirectory() as tmp:
            load_dotenv_if_exists(Path(tmp))
