import os
from pathlib import Path

from .env import load_dotenv_if_exists


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on", "sim"}


def _env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


def _env_list(name: str, default: list[str] | None = None) -> list[str]:
    val = os.getenv(name)
    if val is None:
        return list(default or [])
    return [item.strip() for item in val.split(",") if item.strip()]


BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv_if_exists(BASE_DIR)

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "triadeinvest-dev-only")
DEBUG = _env_bool("DJANGO_DEBUG", default=True)
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", default=["127.0.0.1", "localhost", "testserver"])

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "rest_framework",
    "operacoes",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "triadeinvest.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
            ],
        },
    },
]

WSGI_APPLICATION = "triadeinvest.wsgi.application"

# Sem modelos: a fonte de verdade e a planilha + Omie.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

LANGUAGE_CODE = "pt-br"
TIME_ZONE = "America/Sao_Paulo"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "UNAUTHENTICATED_USER": None,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.getenv("DJANGO_LOG_LEVEL", "INFO"),
    },
}

# =========================
# Omie (ledger externo)
# =========================
OMIE_BASE_URL = os.getenv("OMIE_BASE_URL", "https://app.omie.com.br/api/v1")
OMIE_APP_KEY = os.getenv("OMIE_APP_KEY", "")
OMIE_APP_SECRET = os.getenv("OMIE_APP_SECRET", "")
OMIE_TIMEOUT = _env_float("OMIE_TIMEOUT", 15.0)
OMIE_MAX_RETRIES = _env_int("OMIE_MAX_RETRIES", 3)
OMIE_RETRY_BASE_DELAY = _env_float("OMIE_RETRY_BASE_DELAY", 1.0)
OMIE_MAX_PAGES = _env_int("OMIE_MAX_PAGES", 500)
OMIE_LOG_REQUESTS = _env_bool("OMIE_LOG_REQUESTS", default=True)
LEDGER_CACHE_TTL = _env_int("LEDGER_CACHE_TTL", 900)
PROFIT_DISTRIBUTION_CATEGORY = os.getenv("PROFIT_DISTRIBUTION_CATEGORY", "2.10.98")

# =========================
# Planilhas (catalogo de operacoes e login)
# =========================
OPERATIONS_SHEET_URL = os.getenv("EXCEL_URL", "")
OPERATIONS_SHEET_PATH = os.getenv(
    "OPERATIONS_SHEET_PATH",
    str(BASE_DIR / "data" / "Controle imóveis Triade 1.xlsx"),
)
OPERATIONS_SHEET_NAME = os.getenv("OPERATIONS_SHEET_NAME", "Dados Imóveis")
LOGIN_SHEET_URL = os.getenv("LOGIN_SHEET_URL", "")
LOGIN_SHEET_NAME = os.getenv("LOGIN_SHEET_NAME", "Login")
SHEET_TIMEOUT = _env_float("SHEET_TIMEOUT", 30.0)

ADMIN_INVESTOR_ID = os.getenv("ADMIN_INVESTOR_ID", "00000000000")
