"""
Celery configuration for the ledger application.

Celery runs the ledger's background work:
- Periodic balance reconciliation (see CELERY_BEAT_SCHEDULE in settings)
- Any future asynchronous jobs defined in an app's tasks.py

Redis is both the message broker and the result backend. Tasks are
auto-discovered from all installed Django apps, and periodic schedules are
stored in the database by django-celery-beat.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import logging
import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

logger = logging.getLogger(__name__)

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """Log the request of a no-op task to check worker connectivity."""
    logger.info("Celery debug task received", extra={"request_id": self.request.id})
