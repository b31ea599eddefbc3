from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1", "testserver"]),
    CORS_ALLOWED_ORIGINS=(list, []),
    CSRF_TRUSTED_ORIGINS=(list, []),
)
environ.Env.read_env(BASE_DIR / ".env")

SECRET_KEY = env("SECRET_KEY", default="django-insecure-change-me")
DEBUG = env("DEBUG")
ALLOWED_HOSTS = env("ALLOWED_HOSTS")

USE_X_FORWARDED_HOST = env.bool("USE_X_FORWARDED_HOST", default=True)
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "corsheaders",
    "rest_framework",
    "tenancy.apps.TenancyConfig",
    "accounts.apps.AccountsConfig",
    "audit.apps.AuditConfig",
    "academics.apps.AcademicsConfig",
    "finance.apps.FinanceConfig",
    "communication.apps.CommunicationConfig",
    "leave.apps.LeaveConfig",
    "library.apps.LibraryConfig",
    "hostel.apps.HostelConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "tenancy.middleware.TenantContextMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]
ROOT_URLCONF = "school_backend.urls"

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

WSGI_APPLICATION = "school_backend.wsgi.application"
ASGI_APPLICATION = "school_backend.asgi.application"

DATABASE_ENGINE = env("DATABASE_ENGINE", default="django.db.backends.sqlite3").strip()
if DATABASE_ENGINE == "django.db.backends.sqlite3":
    DATABASES = {
        "default": {
            "ENGINE": DATABASE_ENGINE,
            "NAME": env("SQLITE_NAME", default=str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    database_options = {"sslmode": env("DATABASE_SSLMODE", default="disable")}
    if env.bool("DATABASE_POOL", default=False):
        # Django's native psycopg pool; persistent connections must stay off.
        database_options["pool"] = True
    DATABASES = {
        "default": {
            "ENGINE": DATABASE_ENGINE,
            "NAME": env("DATABASE_NAME", default="school_db"),
            "USER": env("DATABASE_USER", default="school_user"),
            "PASSWORD": env("DATABASE_PASSWORD", default=""),
            "HOST": env("DATABASE_HOST", default="127.0.0.1"),
            "PORT": env("DATABASE_PORT", default="5432"),
            "CONN_MAX_AGE": 0 if "pool" in database_options else env.int("DATABASE_CONN_MAX_AGE", default=60),
            "OPTIONS": database_options,
        }
    }

AUTH_USER_MODEL = "accounts.User"
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = env("TIME_ZONE", default="Africa/Dar_es_Salaam")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CORS_ALLOWED_ORIGINS = env("CORS_ALLOWED_ORIGINS")
CSRF_TRUSTED_ORIGINS = env("CSRF_TRUSTED_ORIGINS")

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "accounts.authentication.BearerTokenAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "tenancy.permissions.HasTenantPermission",
    ),
    "DEFAULT_RENDERER_CLASSES": (
        "tenancy.renderers.EnvelopeJSONRenderer",
    ),
    "DEFAULT_PARSER_CLASSES": (
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
        "rest_framework.parsers.MultiPartParser",
    ),
    "DEFAULT_PAGINATION_CLASS": "tenancy.pagination.EnvelopePagination",
    "EXCEPTION_HANDLER": "tenancy.handlers.api_exception_handler",
    "TEST_REQUEST_DEFAULT_FORMAT": "json",
}

TENANT_ID_HEADER = env("TENANT_ID_HEADER", default="X-Tenant-ID")
ACCESS_TOKEN_TTL_SECONDS = env.int("ACCESS_TOKEN_TTL_SECONDS", default=60 * 60 * 8)

API_DEFAULT_PAGE_SIZE = env.int("API_DEFAULT_PAGE_SIZE", default=10)
API_MAX_PAGE_SIZE = env.int("API_MAX_PAGE_SIZE", default=100)

DEFAULT_CURRENCY = env("DEFAULT_CURRENCY", default="TZS").strip().upper()

LIBRARY_LOAN_DAYS = env.int("LIBRARY_LOAN_DAYS", default=14)
LIBRARY_MAX_RENEWALS = env.int("LIBRARY_MAX_RENEWALS", default=2)
LIBRARY_FINE_PER_DAY = env.int("LIBRARY_FINE_PER_DAY", default=500)

LOG_LEVEL = env("LOG_LEVEL", default="INFO").strip().upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "mask_secrets": {"()": "tenancy.logging.MaskSecretsFilter"},
    },
    "formatters": {
        "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "filters": ["mask_secrets"],
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django.request": {"handlers": ["console"], "level": "ERROR", "propagate": False},
    },
}

