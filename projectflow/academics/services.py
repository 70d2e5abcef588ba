"""
Track selection and internship verification.

These records feed the promotion prerequisites of the track-choice
transitions (B.Tech 7 -> 8, M.Tech 3 -> 4).
"""

import logging
from uuid import UUID

from django.db import transaction

from projectflow.academics.models import (
    TERMINAL_APPLICATION_STATUSES,
    ApplicationStatus,
    InternshipApplication,
    SemesterSelection,
    Student,
    Track,
)
from projectflow.core.exceptions import (
    AlreadyExistsError,
    AlreadyFinalizedError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from projectflow.core.roles import is_admin
from projectflow.projects.services import cancel_student_projects

logger = logging.getLogger(__name__)


def _get_student(student_id: UUID) -> Student:
    try:
        return Student.objects.get(pk=student_id)
    except Student.DoesNotExist:
        raise NotFoundError("Student not found.") from None


def _require_admin(user) -> None:
    if not is_admin(user):
        raise PermissionDeniedError("Only administrators can perform this action.")


def choose_track(student_id: UUID, semester: int, track: str) -> SemesterSelection:
    if track not in Track.values:
        raise ValidationError(f"Unknown track '{track}'.")

    student = _get_student(student_id)
    with transaction.atomic():
        selection, created = SemesterSelection.objects.select_for_update().get_or_create(
            student=student,
            semester=semester,
            defaults={"academic_year": student.academic_year, "chosen_track": track},
        )
        if not created:
            if selection.is_finalized:
                raise AlreadyFinalizedError("The track for this semester is already finalized.")
            selection.chosen_track = track
            selection.save(update_fields=["chosen_track", "modified"])

    logger.info("%s chose %s for semester %d", student, track, semester)
    return selection


def finalize_track(student_id: UUID, semester: int, track: str, admin) -> SemesterSelection:
    _require_admin(admin)
    if track not in Track.values:
        raise ValidationError(f"Unknown track '{track}'.")

    with transaction.atomic():
        selection = (
            SemesterSelection.objects.select_for_update()
            .filter(student_id=student_id, semester=semester)
            .first()
        )
        if selection is None:
            raise NotFoundError("No track selection for this semester.")
        previous_track = selection.finalized_track
        selection.finalize(track, admin)
        if previous_track and previous_track != track:
            cancel_student_projects(
                selection.student,
                semester,
                actor=admin,
                reason=f"Track changed from {previous_track} to {track}",
            )
    return selection


def submit_application(student_id: UUID, semester: int, application_type: str, company: str = "") -> InternshipApplication:
    """Submit an internship verification application for the internship track."""
    student = _get_student(student_id)
    selection = student.get_semester_selection(semester)
    track = selection and (selection.finalized_track or selection.chosen_track)
    if track != Track.INTERNSHIP:
        raise ValidationError("An internship application requires the internship track.")

    open_applications = InternshipApplication.objects.filter(student=student, semester=semester).exclude(
        status__in=TERMINAL_APPLICATION_STATUSES
    )
    if open_applications.exists():
        raise AlreadyExistsError("An application for this semester is already under review.")

    application = InternshipApplication.objects.create(
        student=student,
        semester=semester,
        academic_year=student.academic_year,
        type=application_type,
        company=company,
    )
    logger.info("%s submitted a %s internship application for semester %d", student, application_type, semester)
    return application


def review_application(application_id: UUID, status: str, admin, remarks: str = "") -> InternshipApplication:
    _require_admin(admin)
    if status not in ApplicationStatus.values or status == ApplicationStatus.SUBMITTED:
        raise ValidationError(f"Invalid review status '{status}'.")
    with transaction.atomic():
        application = (
            InternshipApplication.objects.select_for_update()
            .select_related("student")
            .filter(pk=application_id)
            .first()
        )
        if application is None:
            raise NotFoundError("Application not found.")
        if application.is_terminal:
            raise InvalidTransitionError(f"The application is already {application.status}.")
        application.review(status, admin, remarks)

    logger.info("Application %s reviewed: %s", application.pk, status)
    return application
