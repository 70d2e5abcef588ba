"""
Promotion API controller (admin only).
"""

import logging

from django.http import HttpRequest
from ninja_extra import api_controller, http_post

from projectflow.core.api import BaseAPI, IsAdmin, IsAuthenticated
from projectflow.core.exceptions import ErrorSchema
from projectflow.promotion.engine import PromotionRequest, promote_cohort
from projectflow.promotion.schemas import PromotionRequestSchema, PromotionResultSchema, PromotionTaskSchema
from projectflow.promotion.tasks import promote_cohort_task, result_to_dict

logger = logging.getLogger(__name__)


@api_controller("/promotion", tags=["Promotion"], permissions=[IsAuthenticated, IsAdmin])
class PromotionController(BaseAPI):
    """Semester promotion of a cohort."""

    @http_post(
        "/",
        response={200: PromotionResultSchema, 401: ErrorSchema, 403: ErrorSchema},
        url_name="promotion_run",
    )
    def promote(self, request: HttpRequest, data: PromotionRequestSchema):
        """
        Run a promotion batch and wait for its result.

        `committed` is false when `validate_prerequisites` found an
        ineligible student and nothing was written.
        """
        logger.info("PROMOTION: requested by %s", request.user)
        result = promote_cohort(PromotionRequest(**data.model_dump()))
        return 200, result_to_dict(result)

    @http_post(
        "/async",
        response={202: PromotionTaskSchema, 401: ErrorSchema, 403: ErrorSchema},
        url_name="promotion_run_async",
    )
    def promote_async(self, request: HttpRequest, data: PromotionRequestSchema):
        """Queue a promotion batch on the worker."""
        payload = data.model_dump()
        if payload["student_ids"] is not None:
            payload["student_ids"] = [str(pk) for pk in payload["student_ids"]]
        task = promote_cohort_task.delay(**payload)
        return 202, PromotionTaskSchema(task_id=task.id)
