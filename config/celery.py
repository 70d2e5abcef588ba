"""Celery configuration for the ProjectFlow project."""

import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.local")

app = Celery("projectflow")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Nightly repair of group/membership/project references
app.conf.beat_schedule = {
    "reconcile-workflow-references": {
        "task": "projectflow.groups.tasks.reconcile_references_task",
        "schedule": crontab(hour=2, minute=30),
    },
}
