from .base import *  # noqa: F403
from .base import INSTALLED_APPS
from .base import LOGGING
from .base import MIDDLEWARE
from .base import env

USE_DOCKER = env.bool("USE_DOCKER", default=False)

# GENERAL
# ------------------------------------------------------------------------------
DEBUG = True
SECRET_KEY = env("DJANGO_SECRET_KEY", default="projectflow-local-only")
ALLOWED_HOSTS = ["localhost", "0.0.0.0", "127.0.0.1", "projectflow-backend"]  # noqa: S104

# CACHES
# ------------------------------------------------------------------------------
# Sessions live in the cache, so Docker runs share them through Redis
CACHES = {
    "default": (
        {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": env("REDIS_URL", default="redis://redis:6379/0"),
            "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
        }
        if USE_DOCKER
        else {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    ),
}
SESSION_ENGINE = "django.contrib.sessions.backends.cache"
SESSION_COOKIE_SAMESITE = "Lax"

# CSRF
# ------------------------------------------------------------------------------
# The admin portal runs on a separate dev server
CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS",
    default=["http://localhost:5173", "http://127.0.0.1:5173"],
)
CSRF_COOKIE_HTTPONLY = False

# DEV TOOLS
# ------------------------------------------------------------------------------
INSTALLED_APPS = ["whitenoise.runserver_nostatic", *INSTALLED_APPS, "debug_toolbar", "django_extensions"]
MIDDLEWARE += ["debug_toolbar.middleware.DebugToolbarMiddleware"]
DEBUG_TOOLBAR_CONFIG = {
    "DISABLE_PANELS": [
        "debug_toolbar.panels.redirects.RedirectsPanel",
        "debug_toolbar.panels.profiling.ProfilingPanel",
    ],
}
INTERNAL_IPS = ["127.0.0.1"]
if USE_DOCKER:
    import socket

    _hostname, _, _ips = socket.gethostbyname_ex(socket.gethostname())
    INTERNAL_IPS += [".".join([*ip.split(".")[:-1], "1"]) for ip in _ips]

# LOGGING
# ------------------------------------------------------------------------------
LOGGING["loggers"]["projectflow"]["level"] = "DEBUG"

# CELERY
# ------------------------------------------------------------------------------
# Promotion and reconciliation run inline when no worker is available
CELERY_TASK_ALWAYS_EAGER = not USE_DOCKER
