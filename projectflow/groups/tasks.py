"""
Celery tasks for the groups app.
"""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def reconcile_references_task(self) -> dict:
    """Periodic consistency repair of group and project references."""
    from projectflow.groups.reconcile import reconcile_references

    try:
        return reconcile_references()
    except Exception as e:
        logger.exception("Error reconciling references: %s", e)
        raise self.retry(exc=e, countdown=60)
