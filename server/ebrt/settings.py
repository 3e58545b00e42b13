import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
REPO_ROOT = BASE_DIR.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-not-for-production")
DEBUG = _env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "simulations",
]

MIDDLEWARE = [
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "ebrt.urls"
WSGI_APPLICATION = "ebrt.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"

MEDIA_ROOT = os.environ.get("MEDIA_ROOT", str(REPO_ROOT / "data"))

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

# Pipeline / external validator
EBRT_ENV = os.environ.get("EBRT_ENV", "development")
EBRT_SPEC_PATH = os.environ.get("EBRT_SPEC_PATH", str(REPO_ROOT / "json" / "driveCycleOption.json"))
EBRT_VALIDATOR_URL = os.environ.get("EBRT_VALIDATOR_URL", "http://localhost:5001/validate")
EBRT_SHARED_SECRET = os.environ.get("EBRT_SHARED_SECRET") or None
EBRT_VALIDATOR_TIMEOUT = float(os.environ.get("EBRT_VALIDATOR_TIMEOUT", "15"))
EBRT_VALIDATOR_MAX_ATTEMPTS = int(os.environ.get("EBRT_VALIDATOR_MAX_ATTEMPTS", "3"))
EBRT_VALIDATOR_BACKOFF = float(os.environ.get("EBRT_VALIDATOR_BACKOFF", "0.5"))
EBRT_VALIDATOR_DEADLINE = os.environ.get("EBRT_VALIDATOR_DEADLINE") or None
EBRT_VALIDATOR_LEASE = os.environ.get("EBRT_VALIDATOR_LEASE") or None

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "loggers": {
        "ebrt_core": {"handlers": ["console"], "level": os.environ.get("EBRT_LOG_LEVEL", "INFO")},
        "simulations": {"handlers": ["console"], "level": os.environ.get("EBRT_LOG_LEVEL", "INFO")},
    },
}
