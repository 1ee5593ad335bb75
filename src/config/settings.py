"""Django settings for the storefront checkout service.

Values come from the environment (or a ``.env`` file) via python-decouple.
``SECRET_KEY`` has no default on purpose: a missing key stops the boot.
"""

from datetime import timedelta
from pathlib import Path

from decouple import Csv, config
from dj_database_url import parse as db_url

from config.log_config import build_logging, configure_structlog

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config("SECRET_KEY")
DEBUG = config("DEBUG", default=False, cast=bool)
ALLOWED_HOSTS = config("ALLOWED_HOSTS", default="127.0.0.1,localhost", cast=Csv())

DJANGO_APPS = [
    # auth/contenttypes back DRF's AnonymousUser and permission checks
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
]
THIRD_PARTY_APPS = [
    "rest_framework",
    "corsheaders",
    "django_filters",
    "drf_spectacular",
]
STOREFRONT_APPS = [
    "modules.core",
    "modules.products",
    "modules.cart",
    "modules.orders",
    "modules.payments",
]
INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + STOREFRONT_APPS

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "modules.core.middleware.CorrelationIdMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# Needed by the Swagger/Redoc pages and the browsable API in DEBUG.
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": ["django.template.context_processors.request"],
        },
    },
]

DATABASES = {
    "default": config(
        "DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}", cast=db_url
    )
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Throttle counters live here, so the cache must be shared across workers.
REDIS_URL = config("REDIS_URL", default="redis://localhost:6379/0")
CACHE_BACKEND = config("CACHE_BACKEND", default="django_redis.cache.RedisCache")
CACHES = {"default": {"BACKEND": CACHE_BACKEND, "LOCATION": REDIS_URL}}
if CACHE_BACKEND.startswith("django_redis"):
    CACHES["default"]["OPTIONS"] = {"CLIENT_CLASS": "django_redis.client.DefaultClient"}

LANGUAGE_CODE = "ko-kr"
TIME_ZONE = "Asia/Seoul"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

CORS_ALLOWED_ORIGINS = config(
    "CORS_ALLOWED_ORIGINS", default="http://localhost:3000", cast=Csv()
)
CSRF_TRUSTED_ORIGINS = config(
    "CSRF_TRUSTED_ORIGINS", default="http://localhost:3000", cast=Csv()
)

# -- Celery -----------------------------------------------------------------
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default=REDIS_URL)
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND", default=REDIS_URL)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "flag-unresolved-payment-attempts": {
        "task": "payments.flag_unresolved_attempts",
        "schedule": timedelta(minutes=5),
    },
}

# -- REST framework ---------------------------------------------------------
# Every endpoint requires a verified identity unless it opts out.
RENDERERS = ["rest_framework.renderers.JSONRenderer"]
if DEBUG:
    RENDERERS.append("rest_framework.renderers.BrowsableAPIRenderer")

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "modules.core.authentication.IdentityProviderAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
        "rest_framework.throttling.ScopedRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": config("ANON_RATE", default="100/day"),
        "user": config("USER_RATE", default="1000/hour"),
        "order_creation": config("ORDER_CREATION_RATE", default="5/minute"),
        "payment_confirmation": config(
            "PAYMENT_CONFIRMATION_RATE", default="10/minute"
        ),
        "order_listing": "100/minute",
    },
    "DEFAULT_PAGINATION_CLASS": "modules.core.pagination.StandardResultsSetPagination",
    "PAGE_SIZE": config("DEFAULT_PAGE_SIZE", default=20, cast=int),
    "DEFAULT_FILTER_BACKENDS": ["django_filters.rest_framework.DjangoFilterBackend"],
    "DEFAULT_RENDERER_CLASSES": RENDERERS,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront Checkout API",
    "DESCRIPTION": "Cart, order creation and payment reconciliation API.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "SECURITY": [{"BearerAuth": []}],
    "APPEND_COMPONENTS": {
        "securitySchemes": {
            "BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        }
    },
}

# -- Identity provider (opaque user id from the JWT ``sub`` claim) ----------
IDENTITY_PROVIDER_ISSUER = config("IDENTITY_PROVIDER_ISSUER", default="")
IDENTITY_PROVIDER_AUDIENCE = config("IDENTITY_PROVIDER_AUDIENCE", default="")
IDENTITY_PROVIDER_JWKS_URL = config("IDENTITY_PROVIDER_JWKS_URL", default="")
IDENTITY_PROVIDER_ALGORITHM = config("IDENTITY_PROVIDER_ALGORITHM", default="RS256")

# -- Payment gateway (secret stays server-side) -----------------------------
PAYMENT_GATEWAY_BASE_URL = config(
    "PAYMENT_GATEWAY_BASE_URL", default="https://api.tosspayments.com"
)
PAYMENT_GATEWAY_SECRET_KEY = config("PAYMENT_GATEWAY_SECRET_KEY", default="")
PAYMENT_GATEWAY_TIMEOUT = config("PAYMENT_GATEWAY_TIMEOUT", default=30, cast=int)
PAYMENT_GATEWAY_APPROVED_STATUS = config(
    "PAYMENT_GATEWAY_APPROVED_STATUS", default="DONE"
)
PAYMENT_REVIEW_AFTER_MINUTES = config(
    "PAYMENT_REVIEW_AFTER_MINUTES", default=15, cast=int
)

# -- Logging ----------------------------------------------------------------
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
configure_structlog()
LOGGING = build_logging(LOG_LEVEL)
