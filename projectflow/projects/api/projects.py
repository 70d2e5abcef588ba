"""
Project registration and faculty allocation API controllers.
"""

import logging
from uuid import UUID

from django.http import HttpRequest
from ninja_extra import api_controller, http_get, http_post

from projectflow.core.api import BaseAPI, IsAdmin, IsAuthenticated, IsFaculty, IsStudent
from projectflow.core.exceptions import APIException, ErrorSchema, NotFoundError
from projectflow.core.schemas import MessageSchema
from projectflow.projects import services
from projectflow.projects.models import Project
from projectflow.projects.schemas import (
    AdminAllocateSchema,
    FacultyMinimalSchema,
    FacultyPreferenceSchema,
    PassSchema,
    PreferencesSubmitSchema,
    ProjectCreateSchema,
    ProjectSchema,
)

logger = logging.getLogger(__name__)


def project_to_schema(project: Project) -> ProjectSchema:
    """Convert Project to schema."""
    preferences = [
        FacultyPreferenceSchema(
            faculty=FacultyMinimalSchema.from_faculty(pref.faculty),
            priority=pref.priority,
            passed=pref.passed_at is not None,
        )
        for pref in project.faculty_preferences.select_related("faculty").order_by("priority")
    ]
    return ProjectSchema(
        id=project.id,
        title=project.title,
        description=project.description,
        group_id=project.group_id,
        student_id=project.student_id,
        faculty=FacultyMinimalSchema.from_faculty(project.faculty) if project.faculty else None,
        status=project.status,
        semester=project.semester,
        academic_year=project.academic_year,
        allocated_by=project.allocated_by,
        allocated_at=project.allocated_at,
        preferences=preferences,
        created=project.created,
    )


def _reload(project_id: UUID) -> Project:
    return Project.objects.select_related("faculty").get(id=project_id)


@api_controller("/projects", tags=["Projects"], permissions=[IsAuthenticated])
class ProjectController(BaseAPI):
    """Project registration and preference submission."""

    @http_get(
        "/{project_id}",
        response={200: ProjectSchema, 401: ErrorSchema, 404: ErrorSchema},
        url_name="projects_detail",
    )
    def get_project(self, request: HttpRequest, project_id: UUID):
        project = Project.objects.select_related("faculty").filter(id=project_id).first()
        if not project:
            return NotFoundError("Project not found.").to_response()
        return 200, project_to_schema(project)

    @http_post(
        "/",
        response={201: ProjectSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="projects_register",
        permissions=[IsStudent],
    )
    def register_project(self, request: HttpRequest, data: ProjectCreateSchema):
        """
        Register the semester project.

        With group_id the group leader registers for a finalized group;
        without it the current student registers a solo project.
        """
        try:
            project = services.register_project(
                request.user.student_profile.pk,
                data.title,
                semester=data.semester,
                group_id=data.group_id,
                description=data.description,
            )
        except APIException as exc:
            return exc.to_response()
        return 201, project_to_schema(_reload(project.id))

    @http_post(
        "/{project_id}/preferences",
        response={200: ProjectSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="projects_preferences",
        permissions=[IsStudent],
    )
    def submit_preferences(self, request: HttpRequest, project_id: UUID, data: PreferencesSubmitSchema):
        """Submit the ranked faculty preferences of a project."""
        try:
            services.submit_preferences(project_id, request.user.student_profile.pk, data.faculty_ids)
        except APIException as exc:
            return exc.to_response()
        return 200, project_to_schema(_reload(project_id))


@api_controller("/allocation", tags=["Allocation"], permissions=[IsAuthenticated])
class AllocationController(BaseAPI):
    """Faculty queue, claims and admin allocation."""

    @http_get(
        "/queue",
        response={200: list[ProjectSchema], 401: ErrorSchema, 403: ErrorSchema},
        url_name="allocation_queue",
        permissions=[IsFaculty],
    )
    def my_queue(self, request: HttpRequest):
        """Pending projects listing the current faculty."""
        projects = services.faculty_queue(request.user.faculty_profile.pk)
        return 200, [project_to_schema(p) for p in projects]

    @http_post(
        "/{project_id}/claim",
        response={200: ProjectSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="allocation_claim",
        permissions=[IsFaculty],
    )
    def claim(self, request: HttpRequest, project_id: UUID):
        """Claim a project. The first claim wins."""
        try:
            project = services.claim(project_id, request.user.faculty_profile.pk)
        except APIException as exc:
            return exc.to_response()
        return 200, project_to_schema(_reload(project.id))

    @http_post(
        "/{project_id}/pass",
        response={200: MessageSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="allocation_pass",
        permissions=[IsFaculty],
    )
    def pass_project(self, request: HttpRequest, project_id: UUID, data: PassSchema):
        """Decline a project from the queue."""
        try:
            services.pass_project(project_id, request.user.faculty_profile.pk, data.comments)
        except APIException as exc:
            return exc.to_response()
        return 200, MessageSchema(success=True, message="Project passed.")

    @http_post(
        "/{project_id}/allocate",
        response={200: ProjectSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="allocation_admin_allocate",
        permissions=[IsAdmin],
    )
    def admin_allocate(self, request: HttpRequest, project_id: UUID, data: AdminAllocateSchema):
        """Allocate (or reallocate) a faculty regardless of preferences."""
        try:
            project = services.admin_allocate(project_id, data.faculty_id, request.user, data.comments)
        except APIException as exc:
            return exc.to_response()
        return 200, project_to_schema(_reload(project.id))

    @http_get(
        "/unallocated",
        response={200: list[ProjectSchema], 401: ErrorSchema, 403: ErrorSchema},
        url_name="allocation_unallocated",
        permissions=[IsAdmin],
    )
    def unallocated(self, request: HttpRequest, semester: int, academic_year: str | None = None):
        """Projects of a semester still waiting for a faculty."""
        projects = services.unallocated_projects(semester, academic_year)
        return 200, [project_to_schema(p) for p in projects]
