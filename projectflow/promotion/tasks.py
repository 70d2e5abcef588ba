"""
Celery tasks for semester promotion.
"""

import logging
from dataclasses import asdict

from celery import shared_task

from projectflow.promotion.engine import PromotionRequest, promote_cohort

logger = logging.getLogger(__name__)


def result_to_dict(result) -> dict:
    """JSON-serializable summary of a PromotionResult."""
    data = asdict(result)
    for key in ("eligible", "promoted", "groups_locked", "groups_disbanded"):
        data[key] = [str(pk) for pk in data[key]]
    for item in data["ineligible"]:
        item["student_id"] = str(item["student_id"])
    return data


@shared_task(bind=True, max_retries=3)
def promote_cohort_task(
    self,
    from_semester: int,
    to_semester: int,
    student_ids: list[str] | None = None,
    degree: str | None = None,
    validate_prerequisites: bool = False,
    academic_year: str | None = None,
) -> dict:
    """
    Run a promotion batch in the background.

    Per-unit failures are reported in the result. Unexpected failures are
    retried; the batch is safe to re-run.
    """
    request = PromotionRequest(
        from_semester=from_semester,
        to_semester=to_semester,
        student_ids=student_ids,
        degree=degree,
        validate_prerequisites=validate_prerequisites,
        academic_year=academic_year,
    )
    try:
        return result_to_dict(promote_cohort(request))
    except Exception as e:
        logger.exception("Error running promotion %d -> %d: %s", from_semester, to_semester, e)
        raise self.retry(exc=e, countdown=60)
