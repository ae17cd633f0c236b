"""Settings used by the test suite.

Provides a fixed ``SECRET_KEY``, an in-memory cache and eager Celery so the
suite runs without Redis.  Everything else comes from ``config.settings``.
"""

import os
from decimal import Decimal

from decouple import config
from dj_database_url import parse as db_url

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import REST_FRAMEWORK  # noqa: E402

# Threaded checkout tests need row locks; point TEST_DATABASE_URL at
# PostgreSQL or MySQL to run them. SQLite skips them.
DATABASES = {
    "default": db_url(config("TEST_DATABASE_URL", default="sqlite://:memory:"))
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "checkout-tests",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "redis://localhost:6379/0"
CELERY_RESULT_BACKEND = "redis://localhost:6379/0"

DELIVERY_RATE_PER_KM = Decimal("5")

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/day",
        "user": "10000/hour",
        "order_creation": "10000/minute",
        "order_listing": "10000/minute",
    },
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
