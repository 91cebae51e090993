# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, ASGI/WSGI applications and the Celery app of the ledger.
#
# The Celery app is imported here so it is loaded whenever Django starts and
# shared_task decorators in the apps bind to it.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
