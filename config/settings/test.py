"""Test settings.

Celery tasks run eagerly and the test database is a file so that the
concurrency tests can open one connection per thread.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',  # noqa: F405
        'OPTIONS': {
            'transaction_mode': 'IMMEDIATE',
            'timeout': 30,
        },
        'TEST': {
            'NAME': BASE_DIR / 'test_reservations.sqlite3',  # noqa: F405
        },
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PAYMENT_GATEWAY_URL = ''

RESERVATION_PENDING_TIMEOUT_MINUTES = 30
RESERVATION_TRANSACTION_RETRIES = 5

LOGGING["handlers"]["console"]["level"] = "WARNING"  # noqa: F405
