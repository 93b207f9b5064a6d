"""
Django settings for the inventory_app project.

Everything deployment-specific is read from the environment. The database
is configured from the ``DB_*`` variables and falls back to a local SQLite
file when they are not all set.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "inventory-dev-key-replace-before-deployment")

DEBUG = _env_bool("DJANGO_DEBUG", False)

ALLOWED_HOSTS = [
    h.strip()
    for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if h.strip()
]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "core",
    "inventory",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "inventory_app.urls"
WSGI_APPLICATION = "inventory_app.wsgi.application"

# Mapping of configuration keys to their corresponding environment variables
_DB_ENV_VARS = {
    "engine": "DB_ENGINE",
    "user": "DB_USER",
    "password": "DB_PASSWORD",
    "host": "DB_HOST",
    "port": "DB_PORT",
    "dbname": "DB_NAME",
}

_DB_ENGINES = {
    "postgres": "django.db.backends.postgresql",
    "postgresql": "django.db.backends.postgresql",
    "sqlite": "django.db.backends.sqlite3",
}


def load_db_config():
    """Return the ``DATABASES['default']`` entry built from the environment."""
    env_config = {k: os.getenv(env) for k, env in _DB_ENV_VARS.items()}
    engine = (env_config["engine"] or "sqlite").lower()
    if engine != "sqlite" and all(env_config.values()):
        return {
            "ENGINE": _DB_ENGINES.get(engine, engine),
            "NAME": env_config["dbname"],
            "USER": env_config["user"],
            "PASSWORD": env_config["password"],
            "HOST": env_config["host"],
            "PORT": env_config["port"],
            "ATOMIC_REQUESTS": False,
        }
    return {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": (engine == "sqlite" and env_config["dbname"]) or BASE_DIR / "db.sqlite3",
        # IMMEDIATE takes the write lock at BEGIN, so concurrent sales queue
        # on the busy timeout instead of failing when upgrading a read lock.
        "OPTIONS": {"timeout": 20, "transaction_mode": "IMMEDIATE"},
    }


DATABASES = {"default": load_db_config()}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "EXCEPTION_HANDLER": "inventory.exceptions.custom_exception_handler",
    "COERCE_DECIMAL_TO_STRING": True,
    "UNAUTHENTICATED_USER": None,
}

# When true, deleting an item that recipes still use removes those recipe
# components first; otherwise the delete is refused with a conflict.
INVENTORY_CASCADE_ITEM_DELETE = _env_bool("INVENTORY_CASCADE_ITEM_DELETE", False)

# Upper bound on how long a sale waits for ingredient row locks (PostgreSQL).
INVENTORY_LOCK_TIMEOUT_MS = int(os.getenv("INVENTORY_LOCK_TIMEOUT_MS", "0")) or None

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
