"""Production settings for the reservation engine.

This module extends the base settings with production specific
configuration. Ensure that sensitive values are provided via
environment variables. Production runs on PostgreSQL, where the engine's
row locks (SELECT ... FOR UPDATE) do the serialization work.
"""

from .base import *  # noqa: F401,F403

# Never run with debug enabled in production
DEBUG = False

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',')  # noqa: F405

DATABASES['default']['CONN_MAX_AGE'] = int(os.environ.get('DB_CONN_MAX_AGE', 60))  # noqa: F405
