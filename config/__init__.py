"""Top-level package for Django configuration.

This package exposes configuration for the reservation engine. It contains
settings modules for the different environments and the Celery application
that carries post-commit side effects.
"""

# Import the Celery application as soon as Django starts. Without this
# the shared task registry will not be populated.
from .celery import app as celery_app  # noqa: F401
