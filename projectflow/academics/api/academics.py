"""
Track selection and internship verification API controller.
"""

from uuid import UUID

from django.http import HttpRequest
from ninja_extra import api_controller, http_get, http_post

from projectflow.academics import services
from projectflow.academics.models import InternshipApplication, SemesterSelection
from projectflow.academics.schemas import (
    ApplicationCreateSchema,
    ApplicationReviewSchema,
    ApplicationSchema,
    SelectionSchema,
    TrackChoiceSchema,
    TrackFinalizeSchema,
)
from projectflow.core.api import BaseAPI, IsAdmin, IsAuthenticated, IsStudent
from projectflow.core.exceptions import APIException, ErrorSchema


def selection_to_schema(selection: SemesterSelection) -> SelectionSchema:
    return SelectionSchema(
        student_id=selection.student_id,
        semester=selection.semester,
        academic_year=selection.academic_year,
        chosen_track=selection.chosen_track,
        finalized_track=selection.finalized_track,
        internship_outcome=selection.internship_outcome,
        finalized_at=selection.finalized_at,
        auto_initialized=selection.auto_initialized,
    )


def application_to_schema(application: InternshipApplication) -> ApplicationSchema:
    return ApplicationSchema(
        id=application.id,
        student_id=application.student_id,
        semester=application.semester,
        type=application.type,
        status=application.status,
        company=application.company,
        remarks=application.remarks,
        verified_at=application.verified_at,
        created=application.created,
    )


@api_controller("/tracks", tags=["Tracks"], permissions=[IsAuthenticated])
class TrackController(BaseAPI):
    """Track choice (internship vs. coursework) and internship verification."""

    @http_get(
        "/my",
        response={200: list[SelectionSchema], 401: ErrorSchema, 403: ErrorSchema},
        url_name="tracks_my",
        permissions=[IsStudent],
    )
    def my_selections(self, request: HttpRequest):
        selections = request.user.student_profile.semester_selections.all()
        return 200, [selection_to_schema(s) for s in selections]

    @http_post(
        "/",
        response={200: SelectionSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 409: ErrorSchema},
        url_name="tracks_choose",
        permissions=[IsStudent],
    )
    def choose(self, request: HttpRequest, data: TrackChoiceSchema):
        try:
            selection = services.choose_track(request.user.student_profile.pk, data.semester, data.track)
        except APIException as exc:
            return exc.to_response()
        return 200, selection_to_schema(selection)

    @http_post(
        "/finalize",
        response={200: SelectionSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema},
        url_name="tracks_finalize",
        permissions=[IsAdmin],
    )
    def finalize(self, request: HttpRequest, data: TrackFinalizeSchema):
        """Finalize a student's track. Changing it resets the internship outcome."""
        try:
            selection = services.finalize_track(data.student_id, data.semester, data.track, request.user)
        except APIException as exc:
            return exc.to_response()
        return 200, selection_to_schema(selection)

    @http_post(
        "/applications",
        response={201: ApplicationSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 409: ErrorSchema},
        url_name="tracks_application_submit",
        permissions=[IsStudent],
    )
    def submit_application(self, request: HttpRequest, data: ApplicationCreateSchema):
        try:
            application = services.submit_application(
                request.user.student_profile.pk,
                data.semester,
                data.type,
                data.company,
            )
        except APIException as exc:
            return exc.to_response()
        return 201, application_to_schema(application)

    @http_post(
        "/applications/{application_id}/review",
        response={200: ApplicationSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="tracks_application_review",
        permissions=[IsAdmin],
    )
    def review_application(self, request: HttpRequest, application_id: UUID, data: ApplicationReviewSchema):
        """Record a verification outcome; terminal outcomes reach the track selection."""
        try:
            application = services.review_application(application_id, data.status, request.user, data.remarks)
        except APIException as exc:
            return exc.to_response()
        return 200, application_to_schema(application)
