import re
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

import structlog
from celery.schedules import crontab
from decouple import Csv, config
from dj_database_url import parse as db_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Security - Fail Fast: no default forces explicit configuration
SECRET_KEY = config("SECRET_KEY")

DEBUG = config("DEBUG", default=False, cast=bool)

ALLOWED_HOSTS = config(
    "ALLOWED_HOSTS", default="127.0.0.1,localhost,testserver", cast=Csv()
)

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "corsheaders",
    "drf_spectacular",
    # Local Apps (Modules)
    "modules.core",
    "modules.capabilities",
    "modules.catalog",
    "modules.carts",
    "modules.orders",
    "modules.webhooks",
    "modules.profiles",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "modules.core.middleware.CorrelationIdMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "modules.capabilities.middleware.MetadataProcessingMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": config(
        "DATABASE_URL", default=f'sqlite:///{BASE_DIR / "db.sqlite3"}', cast=db_url
    )
}

# Cache - Redis when configured, process-local otherwise
REDIS_URL = config("REDIS_URL", default="")

if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "open-commerce",
        }
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ---------------------------------------------------------------------------
# Celery (periodic housekeeping via Redis)
# ---------------------------------------------------------------------------
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default="redis://localhost:6379/0")
CELERY_RESULT_BACKEND = config(
    "CELERY_RESULT_BACKEND", default="redis://localhost:6379/0"
)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "purge-expired-carts": {
        "task": "carts.purge_expired_carts",
        "schedule": crontab(minute="*/15"),
    },
}

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# DRF Configuration
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
        "rest_framework.throttling.ScopedRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": config("THROTTLE_ANON_RATE", default="1000/hour"),
        "user": config("THROTTLE_USER_RATE", default="5000/hour"),
        "order_creation": config("THROTTLE_ORDER_CREATION_RATE", default="60/minute"),
        "cart_mutation": config("THROTTLE_CART_MUTATION_RATE", default="600/minute"),
    },
    "DEFAULT_PAGINATION_CLASS": "modules.core.pagination.EnvelopePagination",
    "PAGE_SIZE": config("DEFAULT_PAGE_SIZE", default=20, cast=int),
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "EXCEPTION_HANDLER": "modules.core.exception_handler.problem_details_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

if DEBUG:
    REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"].append(
        "rest_framework.renderers.BrowsableAPIRenderer"
    )

# ---------------------------------------------------------------------------
# SimpleJWT
# ---------------------------------------------------------------------------
SIMPLE_JWT = {
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=15),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
}

# CORS
CORS_ALLOWED_ORIGINS = config(
    "CORS_ALLOWED_ORIGINS", default="http://localhost:3000", cast=Csv()
)

# CSRF
CSRF_TRUSTED_ORIGINS = config(
    "CSRF_TRUSTED_ORIGINS", default="http://localhost:3000", cast=Csv()
)

# ---------------------------------------------------------------------------
# drf-spectacular (OpenAPI / Swagger)
# ---------------------------------------------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Open Commerce API",
    "DESCRIPTION": "Capability-driven commerce API: discovery, carts, orders and webhooks.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "SECURITY": [{"BearerAuth": []}],
    "APPEND_COMPONENTS": {
        "securitySchemes": {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        }
    },
}

# ---------------------------------------------------------------------------
# Commerce core
# ---------------------------------------------------------------------------
COMMERCE = {
    "BASE_URL": config("COMMERCE_BASE_URL", default="http://localhost:8000"),
    "PROTOCOL_VERSION": "1.0.0",
    "STORAGE_BACKEND": config("COMMERCE_STORAGE_BACKEND", default="django"),
    "DEFAULT_CURRENCY": config("COMMERCE_DEFAULT_CURRENCY", default="USD"),
    "TAX_RATE": config("COMMERCE_TAX_RATE", default="0.00", cast=Decimal),
    "PROMOTIONS": {
        "SUMMER10": {"type": "percentage", "value": "10"},
    },
    "CART_LIFETIME_SECONDS": config(
        "COMMERCE_CART_LIFETIME_SECONDS", default=3600, cast=int
    ),
    "CART_RETENTION_SECONDS": config(
        "COMMERCE_CART_RETENTION_SECONDS", default=86400, cast=int
    ),
    "SUBSCRIBER_BUFFER_SIZE": config(
        "COMMERCE_SUBSCRIBER_BUFFER_SIZE", default=100, cast=int
    ),
    "STREAM_KEEPALIVE_SECONDS": config(
        "COMMERCE_STREAM_KEEPALIVE_SECONDS", default=15, cast=int
    ),
    "WEBHOOK_EVENTS": [
        "order.created",
        "order.updated",
        "order.cancelled",
        "cart.created",
        "cart.updated",
    ],
}

# Capability configuration keyed by namespace.  Namespaces that are not a
# known capability kind are registered as descriptor-only capabilities.
COMMERCE_CAPABILITIES = {
    "dev.ocp.cart": {
        "enabled": True,
        "lifetime_seconds": 3600,
        "max_items": 100,
        "allow_guest_checkout": False,
        "policies": [],
    },
    "dev.ocp.order.direct": {
        "enabled": True,
        "max_items_per_order": 10,
        "allow_guest_orders": False,
        "supported_fulfillment_types": ["pickup", "delivery"],
    },
    "dev.ocp.order.detailed_status": {
        "enabled": True,
        "supported_locales": ["en"],
    },
    "dev.ocp.order.shipment_tracking": {
        "enabled": True,
        "supported_carriers": ["fedex", "ups", "usps"],
        "enable_tracking_urls": True,
    },
    "dev.ocp.order.tipping": {
        "enabled": False,
        "suggested_percentages": [10, 15, 20],
        "allow_custom_amount": True,
    },
    "dev.ocp.product.variants": {
        "enabled": False,
        "max_variants_per_product": 50,
        "supported_variant_types": ["size", "color", "style"],
    },
    "dev.ocp.product.search": {
        "enabled": True,
        "url_template": "/products/search?q={query}",
        "supported_sorts": ["name", "price"],
        "max_results_per_page": 50,
    },
    "dev.ocp.product.rich_info": {
        "enabled": True,
        "supported_image_formats": ["webp", "jpeg", "png"],
    },
    "dev.ocp.store.info": {
        "enabled": False,
        "include_hours": True,
        "include_contact_info": True,
    },
    "dev.ocp.i18n": {
        "enabled": True,
        "default_locale": "en",
        "supported_locales": [
            {
                "code": "en",
                "number_format": {"decimal_separator": ".", "grouping_separator": ","},
                "currency_format": {"symbol": "$", "position": "before"},
            }
        ],
    },
    "dev.ocp.resource.versioning": {
        "enabled": False,
        "max_versions_per_chain": 10,
    },
    "dev.ocp.payment.x402_fiat": {
        "enabled": False,
        "supported_schemes": ["fiat_intent"],
    },
    "dev.ocp.promotions.discoverable": {
        "enabled": False,
        "allow_public_discovery": True,
        "supported_types": ["coupon", "discount"],
    },
    "dev.ocp.user.profile": {
        "enabled": False,
        "max_saved_addresses": 10,
        "allow_custom_preferences": False,
    },
}

for _namespace in config("COMMERCE_ENABLED_CAPABILITIES", default="", cast=Csv()):
    COMMERCE_CAPABILITIES.setdefault(_namespace, {})["enabled"] = True
for _namespace in config("COMMERCE_DISABLED_CAPABILITIES", default="", cast=Csv()):
    COMMERCE_CAPABILITIES.setdefault(_namespace, {})["enabled"] = False

# ---------------------------------------------------------------------------
# Structured Logging (structlog + Django LOGGING)
# ---------------------------------------------------------------------------
SENSITIVE_PATTERN = re.compile(
    r"(\b(?:\d[ -]?){13,16}\b)"  # card numbers
    r"|(password|passwd|secret|token|authorization)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)

SENSITIVE_KEYS = {"secret", "password", "token", "authorization"}


def mask_sensitive_data(_, __, event_dict):
    """Processor that masks card numbers, passwords, secrets and tokens."""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS and value:
            event_dict[key] = "***MASKED***"
        elif isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub("***MASKED***", value)
    return event_dict


# Shared processors used by both structlog and stdlib logging
_shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]

structlog.configure(
    processors=[
        *_shared_processors,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processors": [
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
            "foreign_pre_chain": _shared_processors,
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": config("LOG_LEVEL", default="INFO"),
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "django.server": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
