"""
Django settings for the snack shop service.

Every deployment knob is read from the environment so the same settings module
serves local runs, tests and production.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "Accounts",
    "Inventory",
    "Orders",
    "Reports",
    "Storefront",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "snackshop.urls"

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

WSGI_APPLICATION = "snackshop.wsgi.application"
ASGI_APPLICATION = "snackshop.asgi.application"

# Database: SQLite by default, anything Django supports via env vars.
DB_ENGINE = os.environ.get("SNACKSHOP_DB_ENGINE", "django.db.backends.sqlite3")
DB_TIMEOUT = int(os.environ.get("SNACKSHOP_DB_TIMEOUT", "10"))

if DB_ENGINE.endswith("sqlite3"):
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("SNACKSHOP_DB_NAME", str(BASE_DIR / "db.sqlite3")),
            # seconds to wait on a locked database before OperationalError
            "OPTIONS": {"timeout": DB_TIMEOUT},
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.environ.get("SNACKSHOP_DB_NAME", "snackshop"),
            "USER": os.environ.get("SNACKSHOP_DB_USER", ""),
            "PASSWORD": os.environ.get("SNACKSHOP_DB_PASSWORD", ""),
            "HOST": os.environ.get("SNACKSHOP_DB_HOST", "localhost"),
            "PORT": os.environ.get("SNACKSHOP_DB_PORT", ""),
            "CONN_MAX_AGE": 60,
            "OPTIONS": {"connect_timeout": DB_TIMEOUT},
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
AUTH_USER_MODEL = "Accounts.Account"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": 6}},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticatedOrReadOnly",
    ],
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": int(os.environ.get("SNACKSHOP_PAGE_SIZE", "20")),
    "EXCEPTION_HANDLER": "snackshop.exceptions.api_exception_handler",
    "COERCE_DECIMAL_TO_STRING": False,
}

# ---- service knobs (read in apps via getattr(settings, ...)) ----
ORDERS_TAX_PERCENTAGE = os.environ.get("ORDERS_TAX_PERCENTAGE", "0")
ORDERS_NUMBER_RETRIES = 3
INVENTORY_VALIDATE_IMAGE_URL = _env_bool("INVENTORY_VALIDATE_IMAGE_URL", False)
MEDIA_SERVICE_TIMEOUT = float(os.environ.get("MEDIA_SERVICE_TIMEOUT", "5"))

LOG_LEVEL = os.environ.get("SNACKSHOP_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "snackshop": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "Accounts": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "Inventory": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "Orders": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "Reports": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "Storefront": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
