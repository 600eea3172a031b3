"""Development settings for the reservation engine.

This module extends the base settings with development specific
configuration, such as enabling debug and running Celery tasks inline so
no broker is needed. Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Run side-effect tasks in-process
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False

LOGGING["loggers"]["apps"]["level"] = "DEBUG"  # noqa: F405
