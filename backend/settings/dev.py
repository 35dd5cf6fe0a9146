"""
Development settings for the backend project.

Values are read from a ``.env`` file at the project root when present.
Point ``DEV_DATABASE_URL`` at PostgreSQL to exercise row locking; SQLite is
used otherwise.
"""
from __future__ import annotations

import logging
import os

import environ

from .base import *  # noqa: F401,F403
from .base import (  # noqa: F401
    BASE_DIR,
    build_allowed_hosts,
    build_database_config,
    get_csrf_trusted_origins,
    get_env_bool,
    get_secret_key,
)

# Load environment variables from .env at project root
env = environ.Env()
environ.Env.read_env(os.path.join(BASE_DIR, ".env"))

DEBUG = env.bool("DJANGO_DEBUG", default=True)
SECRET_KEY = get_secret_key(DEBUG)

ALLOWED_HOSTS = build_allowed_hosts(
    "DEV_ALLOWED_HOSTS",
    "ALLOWED_HOSTS",
    default=("localhost", "127.0.0.1"),
)

CSRF_TRUSTED_ORIGINS = get_csrf_trusted_origins(
    "DEV_CSRF_TRUSTED_ORIGINS",
    default=("http://localhost", "http://127.0.0.1"),
)

DATABASES = {
    "default": build_database_config(
        "DEV_DATABASE_URL",
        fallback_env_vars=("DATABASE_URL",),
        default_url=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        test_env_vars=("DEV_TEST_DATABASE_URL", "TEST_DATABASE_URL"),
    )
}

_active_db = DATABASES["default"]
logging.getLogger(__name__).info(
    "Using database engine: %s | Name: %s",
    _active_db.get("ENGINE"),
    _active_db.get("NAME"),
)

EMAIL_BACKEND = env.str(
    "EMAIL_BACKEND", default="django.core.mail.backends.console.EmailBackend"
)
CERTIFICATE_VERIFY_BASE_URL = env.str(
    "CERTIFICATE_VERIFY_BASE_URL", default="http://localhost:8000"
)

SECURE_SSL_REDIRECT = get_env_bool("DJANGO_SECURE_SSL_REDIRECT", default=False)
SESSION_COOKIE_SECURE = get_env_bool("DJANGO_SESSION_COOKIE_SECURE", default=False)
CSRF_COOKIE_SECURE = get_env_bool("DJANGO_CSRF_COOKIE_SECURE", default=False)
