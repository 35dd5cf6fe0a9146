"""Shared Django settings for the backend project."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Sequence

from django.core.exceptions import ImproperlyConfigured

import dj_database_url
import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration

from backend.settings import celery_config


BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _get_env(name: str) -> str | None:
    """Return the raw value for ``name`` if it exists."""

    return os.getenv(name)


def get_env_bool(name: str, default: bool = False) -> bool:
    """Return a boolean for an environment variable."""

    value = _get_env(name)
    if value is None:
        return default
    return value.lower() in {"true", "1", "yes"}


def get_env_int(name: str, default: int) -> int:
    """Return an integer for ``name`` or ``default`` if unset."""

    value = _get_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:  # pragma: no cover
        raise ImproperlyConfigured(
            f"Environment variable {name} must be an integer."
        ) from exc


def get_secret_key(debug: bool) -> str:
    """Fetch the Django secret key from the environment."""

    secret_key = os.getenv("DJANGO_SECRET_KEY") or os.getenv("SECRET_KEY")
    if secret_key:
        return secret_key
    if debug:
        return "django-insecure-development-key"
    raise ImproperlyConfigured(
        "DJANGO_SECRET_KEY must be set in production environments."
    )


DEFAULT_ALLOWED_HOSTS = (
    "localhost",
    "127.0.0.1",
)

_SETTINGS_MODULE = os.getenv("DJANGO_SETTINGS_MODULE", "")
_IS_LOCAL_SETTINGS = _SETTINGS_MODULE.endswith((".dev", ".test"))
_DEFAULT_DEBUG_STATE = get_env_bool("DJANGO_DEBUG", default=_IS_LOCAL_SETTINGS)


def _normalise_list(values: Iterable[str]) -> list[str]:
    """Return a list of unique, stripped values preserving order."""

    normalised: list[str] = []
    for value in values:
        candidate = value.strip()
        if not candidate or candidate in normalised:
            continue
        normalised.append(candidate)
    return normalised


def _read_hosts_from_env(env_var: str) -> list[str]:
    raw_value = os.getenv(env_var)
    if not raw_value:
        return []
    return _normalise_list(raw_value.split(","))


def build_allowed_hosts(*env_vars: str, default: Iterable[str] | None = None) -> list[str]:
    """Return hosts from the first configured variable set, else ``default``."""

    hosts: list[str] = []
    for env_var in env_vars:
        hosts.extend(_read_hosts_from_env(env_var))

    if not hosts:
        hosts.extend(DEFAULT_ALLOWED_HOSTS if default is None else default)

    return _normalise_list(hosts)


def get_csrf_trusted_origins(
    env_var: str,
    default: Iterable[str] | None = None,
) -> list[str]:
    """Fetch trusted origins allowing override per environment."""

    raw_value = os.getenv(env_var)
    if raw_value:
        return _normalise_list(raw_value.split(","))
    if default is None:
        return []
    return list(default)


def _split_env_set(name: str) -> set[str]:
    """Return a set of comma separated values for an environment variable."""

    raw_value = os.getenv(name, "")
    return {item.strip() for item in raw_value.split(",") if item.strip()}


def _first_env_value(names: Sequence[str]) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def build_database_config(
    primary_env_var: str,
    *,
    fallback_env_vars: Sequence[str] = (),
    default_url: str | None = None,
    test_env_vars: Sequence[str] = (),
    conn_max_age: int = 600,
) -> dict[str, object]:
    """Build a Django database configuration from ``*_DATABASE_URL`` variables.

    Row locks taken by the grader and allocator need a database that honours
    ``SELECT ... FOR UPDATE``; PostgreSQL is expected outside of tests.
    """

    database_url = _first_env_value((primary_env_var, *fallback_env_vars)) or default_url
    if not database_url:
        raise ImproperlyConfigured("A database connection string is required.")

    parsed = dj_database_url.parse(database_url, conn_max_age=conn_max_age)
    test_url = _first_env_value(test_env_vars)
    if test_url:
        test_config = dj_database_url.parse(test_url, conn_max_age=0)
        parsed["TEST"] = {
            key: test_config[key]
            for key in ("NAME", "USER", "PASSWORD", "HOST", "PORT", "ENGINE")
            if key in test_config
        }
    return parsed


def _get_sample_rate(name: str, default: float) -> float:
    """Fetch a float configuration value from the environment."""

    value = os.getenv(name)
    if value is None:
        return default

    try:
        return float(value)
    except ValueError:
        return default


def init_sentry() -> None:
    """Configure Sentry monitoring when a DSN is available."""

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return None

    environment = (
        os.getenv("SENTRY_ENVIRONMENT")
        or os.getenv("DJANGO_ENV")
        or ("development" if get_env_bool("DJANGO_DEBUG", True) else "production")
    )

    sentry_sdk.init(
        dsn=dsn,
        integrations=[DjangoIntegration(), CeleryIntegration()],
        environment=environment,
        send_default_pii=False,
        traces_sample_rate=_get_sample_rate("SENTRY_TRACES_SAMPLE_RATE", 0.2),
    )
    sentry_sdk.set_tag("environment", environment)
    return None


ALLOWED_HOSTS = build_allowed_hosts("ALLOWED_HOSTS")
CSRF_TRUSTED_ORIGINS = get_csrf_trusted_origins(
    "CSRF_TRUSTED_ORIGINS",
    default=("https://localhost", "https://127.0.0.1"),
)
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

SECURE_SSL_REDIRECT = get_env_bool(
    "DJANGO_SECURE_SSL_REDIRECT", default=not _DEFAULT_DEBUG_STATE
)
SESSION_COOKIE_SECURE = get_env_bool(
    "DJANGO_SESSION_COOKIE_SECURE", default=not _DEFAULT_DEBUG_STATE
)
CSRF_COOKIE_SECURE = get_env_bool(
    "DJANGO_CSRF_COOKIE_SECURE", default=not _DEFAULT_DEBUG_STATE
)
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = os.getenv("DJANGO_SECURE_REFERRER_POLICY", "same-origin")
SECURE_HSTS_SECONDS = get_env_int("DJANGO_SECURE_HSTS_SECONDS", default=0)
X_FRAME_OPTIONS = "DENY"


INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'apps.users',
    'apps.security',
    'apps.credentials',
    'apps.assessments',
    'apps.catalog',
    'apps.records',
    'apps.certificates',
    'apps.api',
]

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.BasicAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_THROTTLE_CLASSES': [
        'apps.api.throttling.RoleBasedRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'role': '60/min',
    },
    'ROLE_BASED_THROTTLE_RATES': {
        'learner': os.getenv('LEARNER_THROTTLE_RATE', '60/min'),
        'anonymous': os.getenv('ANONYMOUS_THROTTLE_RATE', '30/min'),
    },
    'EXCEPTION_HANDLER': 'apps.api.exceptions.compliance_exception_handler',
}

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'backend.urls'
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

ASGI_APPLICATION = 'backend.asgi.application'
WSGI_APPLICATION = 'backend.wsgi.application'

DATABASES = {
    'default': build_database_config(
        'DATABASE_URL',
        default_url='sqlite:///db.sqlite3',
        test_env_vars=('TEST_DATABASE_URL',),
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Certificate issuance and verification.
CERTIFICATE_VERIFY_BASE_URL = os.getenv("CERTIFICATE_VERIFY_BASE_URL", "")
CERTIFICATE_PROVIDER_NAME = os.getenv("CERTIFICATE_PROVIDER_NAME", "AuditReadyCPD")
CERTIFICATE_CODE_MAX_RETRIES = get_env_int("CERTIFICATE_CODE_MAX_RETRIES", 5)
ISSUANCE_TRANSACTION_RETRIES = get_env_int("ISSUANCE_TRANSACTION_RETRIES", 3)
VERIFY_BATCH_MAX_CODES = get_env_int("VERIFY_BATCH_MAX_CODES", 100)


# Structured logging configuration persisting engine actions.
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
        'database': {
            'level': 'INFO',
            'class': 'apps.security.logging.DatabaseLogHandler',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
        },
        'apps': {
            'handlers': ['console', 'database'],
            'level': 'INFO',
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}


# Email configuration sourced from environment variables.
EMAIL_BACKEND = os.getenv(
    "EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = get_env_int("EMAIL_PORT", 587)
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = get_env_bool("EMAIL_USE_TLS", True)
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "no-reply@auditreadycpd.local")

COMPLIANCE_ALERT_EMAIL_RECIPIENTS = tuple(
    sorted(_split_env_set("COMPLIANCE_ALERT_EMAIL_RECIPIENTS"))
)
COMPLIANCE_ALERT_EMAIL_SENDER = os.getenv(
    "COMPLIANCE_ALERT_EMAIL_SENDER",
    DEFAULT_FROM_EMAIL,
)
COMPLIANCE_ALERT_EMAIL_SUBJECT_PREFIX = os.getenv(
    "COMPLIANCE_ALERT_EMAIL_SUBJECT_PREFIX",
    "Compliance",
)
COMPLIANCE_ALERT_SLACK_WEBHOOK = os.getenv("COMPLIANCE_ALERT_SLACK_WEBHOOK", "")
COMPLIANCE_ALERT_INVALID_VERIFICATION_THRESHOLD = get_env_int(
    "COMPLIANCE_ALERT_INVALID_VERIFICATION_THRESHOLD", 25
)
_critical_action_env = _split_env_set("COMPLIANCE_ALERT_CRITICAL_ACTIONS")
DEFAULT_COMPLIANCE_CRITICAL_ACTIONS = {
    "certificate_revoked",
    "issuance_failed",
}
COMPLIANCE_ALERT_CRITICAL_ACTIONS = (
    _critical_action_env if _critical_action_env else DEFAULT_COMPLIANCE_CRITICAL_ACTIONS
)


# Celery configuration shared with the worker process.
CELERY_BROKER_URL = celery_config.CELERY_BROKER_URL
CELERY_RESULT_BACKEND = celery_config.CELERY_RESULT_BACKEND
CELERY_TASK_DEFAULT_QUEUE = celery_config.CELERY_TASK_DEFAULT_QUEUE
CELERY_TASK_DEFAULT_EXCHANGE = celery_config.CELERY_TASK_DEFAULT_EXCHANGE
CELERY_TASK_DEFAULT_ROUTING_KEY = celery_config.CELERY_TASK_DEFAULT_ROUTING_KEY
CELERY_TASK_ALWAYS_EAGER = celery_config.CELERY_TASK_ALWAYS_EAGER
CELERY_TASK_EAGER_PROPAGATES = celery_config.CELERY_TASK_EAGER_PROPAGATES
CELERY_TASK_ACKS_LATE = celery_config.CELERY_TASK_ACKS_LATE
CELERY_TASK_SOFT_TIME_LIMIT = celery_config.CELERY_TASK_SOFT_TIME_LIMIT
CELERY_TASK_TIME_LIMIT = celery_config.CELERY_TASK_TIME_LIMIT
CELERY_BEAT_SCHEDULE = celery_config.CELERY_BEAT_SCHEDULE


# Configure monitoring once settings are imported.
init_sentry()
