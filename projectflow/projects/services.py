"""
Project registration and faculty allocation.

Allocation is first-claim: a faculty member reviewing their queue claims a
project with a single UPDATE ... WHERE faculty_id IS NULL. There is no
ranking across faculty. Admins can allocate (or reallocate) directly; every
step is written to AllocationEvent.
"""

import logging
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from projectflow.academics.models import Faculty, Student
from projectflow.core import events
from projectflow.core.exceptions import (
    AlreadyAllocatedError,
    AlreadyExistsError,
    InvalidTransitionError,
    NotFoundError,
    NotInPreferencesError,
    NotLeaderError,
    PermissionDeniedError,
    StudentAlreadyGroupedError,
    ValidationError,
    WindowClosedError,
)
from projectflow.core.roles import is_admin
from projectflow.groups.models import FROZEN_STATUSES, Group, GroupStatus, SemesterMembership
from projectflow.projects.models import (
    TERMINAL_PROJECT_STATUSES,
    AllocatedBy,
    AllocationAction,
    AllocationEvent,
    AllocationStatus,
    FacultyAllocationRecord,
    FacultyPreference,
    Project,
    ProjectStatus,
    StudentProject,
    StudentProjectRole,
    StudentProjectStatus,
)
from projectflow.sysconfig.models import is_window_open, semester_param

logger = logging.getLogger(__name__)


def _get_student(student_id: UUID) -> Student:
    try:
        return Student.objects.get(pk=student_id)
    except Student.DoesNotExist:
        raise NotFoundError("Student not found.") from None


def _get_faculty(faculty_id: UUID) -> Faculty:
    try:
        return Faculty.objects.get(pk=faculty_id)
    except Faculty.DoesNotExist:
        raise NotFoundError("Faculty not found.") from None


def _get_project(project_id: UUID, lock: bool = False) -> Project:
    queryset = Project.objects.select_for_update() if lock else Project.objects
    try:
        return queryset.get(pk=project_id)
    except Project.DoesNotExist:
        raise NotFoundError("Project not found.") from None


def _owner_degree(project: Project) -> str | None:
    if project.student_id:
        return project.student.degree
    if project.group_id and project.group.leader_id:
        return project.group.leader.degree
    return None


# Registration


def register_project(
    requester_id: UUID,
    title: str,
    semester: int | None = None,
    group_id: UUID | None = None,
    description: str = "",
    academic_year: str | None = None,
) -> Project:
    """
    Register the semester project of a group (by its leader) or of a solo student.

    One non-cancelled project per owner per semester.
    """
    requester = _get_student(requester_id)
    semester = semester or requester.semester
    academic_year = academic_year or requester.academic_year

    with transaction.atomic():
        if group_id is not None:
            try:
                group = Group.objects.select_for_update().get(pk=group_id)
            except Group.DoesNotExist:
                raise NotFoundError("Group not found.") from None
            if not group.is_leader(requester):
                raise NotLeaderError("Only the group leader can register the project.")
            if group.status not in FROZEN_STATUSES:
                raise InvalidTransitionError("The group must be finalized before registering a project.")

            memberships = SemesterMembership.objects.filter(group=group, semester=semester, is_active=True)
            if not memberships.filter(student=requester).exists():
                raise ValidationError("The group has no active membership for this semester.")
            if Project.objects.filter(group=group, semester=semester).exclude(
                status=ProjectStatus.CANCELLED
            ).exists():
                raise AlreadyExistsError("The group already registered a project for this semester.")

            project = Project.objects.create(
                title=title,
                description=description,
                group=group,
                semester=semester,
                academic_year=academic_year,
            )
            StudentProject.objects.bulk_create(
                StudentProject(
                    student_id=membership.student_id,
                    project=project,
                    semester=semester,
                    role=(
                        StudentProjectRole.LEADER
                        if membership.student_id == requester.pk
                        else StudentProjectRole.MEMBER
                    ),
                )
                for membership in memberships
            )
            if group.status != GroupStatus.LOCKED:
                Group.objects.filter(pk=group.pk).update(project=project, modified=timezone.now())
        else:
            if SemesterMembership.objects.filter(student=requester, semester=semester, is_active=True).exists():
                raise StudentAlreadyGroupedError("Grouped students register through their group leader.")
            if Project.objects.filter(student=requester, semester=semester).exclude(
                status=ProjectStatus.CANCELLED
            ).exists():
                raise AlreadyExistsError("You already registered a project for this semester.")

            project = Project.objects.create(
                title=title,
                description=description,
                student=requester,
                semester=semester,
                academic_year=academic_year,
            )
            StudentProject.objects.create(
                student=requester,
                project=project,
                semester=semester,
                role=StudentProjectRole.SOLO,
            )

    logger.info("Project '%s' registered for semester %d by %s", project.title, semester, requester)
    return project


def submit_preferences(project_id: UUID, requester_id: UUID, faculty_ids: list[UUID]) -> list[FacultyPreference]:
    """
    Create or replace the ranked faculty preferences of a project.

    The list must hold exactly `facultyPreferenceLimit` distinct faculty, each
    in an allowed category. Rejected once a faculty is allocated.
    """
    requester = _get_student(requester_id)

    with transaction.atomic():
        project = _get_project(project_id, lock=True)
        if not project.is_owned_by(requester):
            raise PermissionDeniedError("Only the project owner can submit preferences.")
        if project.faculty_id is not None:
            raise AlreadyAllocatedError()
        if project.is_terminal:
            raise InvalidTransitionError("The project is no longer active.")

        degree = _owner_degree(project)
        if not is_window_open("preferenceWindow", project.semester, degree):
            raise WindowClosedError("Faculty preference submission is not open.")

        limit = int(semester_param("facultyPreferenceLimit", project.semester, degree))
        if len(set(faculty_ids)) != len(faculty_ids):
            raise ValidationError("Faculty preferences must be distinct.")
        if len(faculty_ids) != limit:
            raise ValidationError(
                f"Exactly {limit} faculty preferences are required.",
                details={"expected": limit, "received": len(faculty_ids)},
            )

        faculty_by_id = Faculty.objects.in_bulk(faculty_ids)
        missing = [str(pk) for pk in faculty_ids if pk not in faculty_by_id]
        if missing:
            raise NotFoundError("One or more faculty were not found.", details={"faculty_ids": missing})

        allowed = semester_param("allowedFacultyCategories", project.semester, degree)
        if allowed:
            outside = [str(f.pk) for f in faculty_by_id.values() if f.category not in allowed]
            if outside:
                raise ValidationError(
                    "One or more faculty are not in an allowed category.",
                    details={"faculty_ids": outside, "allowed": list(allowed)},
                )

        project.faculty_preferences.all().delete()
        preferences = FacultyPreference.objects.bulk_create(
            FacultyPreference(project=project, faculty_id=faculty_id, priority=index)
            for index, faculty_id in enumerate(faculty_ids, start=1)
        )
        FacultyAllocationRecord.objects.update_or_create(
            project=project,
            defaults={
                "group_id": project.group_id,
                "status": AllocationStatus.PENDING,
                "allocated_faculty": None,
                "allocated_by": "",
                "allocated_at": None,
                "semester": project.semester,
                "academic_year": project.academic_year,
            },
        )
        AllocationEvent.objects.bulk_create(
            AllocationEvent(
                project=project,
                action=AllocationAction.PRESENTED,
                faculty_id=faculty_id,
                actor=requester.user,
            )
            for faculty_id in faculty_ids
        )

    logger.info("Preferences submitted for '%s': %d faculty", project.title, len(preferences))
    return preferences


# Faculty side


def faculty_queue(faculty_id: UUID):
    """Pending projects that list the faculty and that it has not passed."""
    return (
        Project.objects.filter(
            faculty__isnull=True,
            status=ProjectStatus.REGISTERED,
            allocation_record__status=AllocationStatus.PENDING,
            faculty_preferences__faculty_id=faculty_id,
            faculty_preferences__passed_at__isnull=True,
        )
        .select_related("group", "student")
        .order_by("created")
    )


def _propagate_allocation(project: Project, faculty: Faculty, allocated_by: str, now, replace: bool = False) -> None:
    """
    Mirror an allocation onto the record, the owning group and the members' entries.

    A LOCKED group keeps the faculty of the semester it was locked in. Only
    `replace` (admin allocation) overwrites a faculty already set on the group.
    """
    FacultyAllocationRecord.objects.update_or_create(
        project=project,
        defaults={
            "group_id": project.group_id,
            "status": AllocationStatus.ALLOCATED,
            "allocated_faculty": faculty,
            "allocated_by": allocated_by,
            "allocated_at": now,
            "semester": project.semester,
            "academic_year": project.academic_year,
        },
    )
    if project.group_id:
        groups = Group.objects.filter(pk=project.group_id).exclude(status=GroupStatus.LOCKED)
        if not replace:
            groups = groups.filter(allocated_faculty__isnull=True)
        groups.update(allocated_faculty=faculty, modified=now)
    StudentProject.objects.filter(
        project=project,
        status__in=[StudentProjectStatus.REGISTERED, StudentProjectStatus.ACTIVE],
    ).update(status=StudentProjectStatus.ACTIVE, modified=now)


def claim(project_id: UUID, faculty_id: UUID) -> Project:
    """
    Claim a project from the faculty's queue.

    The first claim wins; later claims fail with AlreadyAllocatedError and
    leave the allocation untouched.
    """
    faculty = _get_faculty(faculty_id)

    with transaction.atomic():
        project = _get_project(project_id)
        preference = project.faculty_preferences.filter(faculty=faculty).first()
        if preference is None:
            raise NotInPreferencesError()
        if project.status in TERMINAL_PROJECT_STATUSES:
            raise InvalidTransitionError("The project is no longer active.")
        if preference.passed_at is not None and project.faculty_id is None:
            raise InvalidTransitionError("You already passed on this project.")

        now = timezone.now()
        claimed = Project.objects.filter(
            pk=project.pk,
            faculty__isnull=True,
            status=ProjectStatus.REGISTERED,
        ).update(
            faculty=faculty,
            status=ProjectStatus.FACULTY_ALLOCATED,
            allocated_by=AllocatedBy.FACULTY_CHOICE,
            allocated_at=now,
            modified=now,
        )
        if not claimed:
            raise AlreadyAllocatedError()

        _propagate_allocation(project, faculty, AllocatedBy.FACULTY_CHOICE, now)
        AllocationEvent.objects.create(
            project=project,
            action=AllocationAction.CHOSEN,
            faculty=faculty,
            actor=faculty.user,
        )
        events.publish(
            events.FACULTY_ALLOCATED,
            project_id=str(project.pk),
            faculty_id=str(faculty.pk),
            group_id=str(project.group_id) if project.group_id else None,
            allocated_by=AllocatedBy.FACULTY_CHOICE.value,
        )

    logger.info("Project '%s' claimed by %s", project.title, faculty)
    return Project.objects.get(pk=project.pk)


def pass_project(project_id: UUID, faculty_id: UUID, comments: str = "") -> FacultyAllocationRecord:
    """
    Decline a project. Once every listed faculty has passed, the record is
    ready for admin allocation.
    """
    faculty = _get_faculty(faculty_id)

    with transaction.atomic():
        project = _get_project(project_id, lock=True)
        preference = project.faculty_preferences.select_for_update().filter(faculty=faculty).first()
        if preference is None:
            raise NotInPreferencesError()
        if project.faculty_id is not None:
            raise AlreadyAllocatedError()

        if preference.passed_at is None:
            preference.passed_at = timezone.now()
            preference.save(update_fields=["passed_at", "modified"])
            AllocationEvent.objects.create(
                project=project,
                action=AllocationAction.PASSED,
                faculty=faculty,
                actor=faculty.user,
                comments=comments,
            )

        record = project.allocation_record
        if record.is_ready_for_admin_allocation:
            logger.info("Project '%s' passed by every listed faculty; awaiting admin allocation", project.title)

    return record


# Admin side


def admin_allocate(project_id: UUID, faculty_id: UUID, admin, comments: str = "") -> Project:
    """
    Force the allocation of a project regardless of preference order.

    Replacing an existing faculty is recorded as a separate reallocation
    event carrying the previous faculty.
    """
    if not is_admin(admin):
        raise PermissionDeniedError("Only administrators can allocate faculty.")
    faculty = _get_faculty(faculty_id)

    with transaction.atomic():
        project = _get_project(project_id, lock=True)
        if project.is_terminal:
            raise InvalidTransitionError("The project is no longer active.")

        previous_faculty_id = project.faculty_id
        if previous_faculty_id == faculty.pk:
            return project

        if project.status == ProjectStatus.REGISTERED:
            project.allocate(faculty, AllocatedBy.ADMIN_ALLOCATION)
        else:
            project.faculty = faculty
            project.allocated_by = AllocatedBy.ADMIN_ALLOCATION
            project.allocated_at = timezone.now()
        project.save()

        _propagate_allocation(project, faculty, AllocatedBy.ADMIN_ALLOCATION, project.allocated_at, replace=True)
        AllocationEvent.objects.create(
            project=project,
            action=AllocationAction.REALLOCATED if previous_faculty_id else AllocationAction.ADMIN_ALLOCATED,
            faculty=faculty,
            previous_faculty_id=previous_faculty_id,
            actor=admin,
            comments=comments,
        )
        events.publish(
            events.FACULTY_ALLOCATED,
            project_id=str(project.pk),
            faculty_id=str(faculty.pk),
            group_id=str(project.group_id) if project.group_id else None,
            allocated_by=AllocatedBy.ADMIN_ALLOCATION.value,
            previous_faculty_id=str(previous_faculty_id) if previous_faculty_id else None,
        )

    if previous_faculty_id:
        logger.warning(
            "Project '%s' reallocated from %s to %s by %s",
            project.title,
            previous_faculty_id,
            faculty,
            admin,
        )
    else:
        logger.info("Project '%s' allocated to %s by %s", project.title, faculty, admin)
    return project


def unallocated_projects(semester: int, academic_year: str | None = None):
    """Registered projects of a semester still waiting for a faculty."""
    projects = Project.objects.filter(
        semester=semester,
        faculty__isnull=True,
        status=ProjectStatus.REGISTERED,
    )
    if academic_year:
        projects = projects.filter(academic_year=academic_year)
    return projects.select_related("group", "student", "allocation_record").order_by("created")


def cancel_student_projects(student: Student, semester: int, actor=None, reason: str = "") -> list[Project]:
    """
    Cancel the open solo projects of a student for a semester.

    The faculty is cleared from the project and its allocation record; the
    AllocationEvent history is kept and gains a `cancelled` entry.
    """
    cancelled = []
    with transaction.atomic():
        projects = (
            Project.objects.select_for_update()
            .filter(student=student, semester=semester)
            .exclude(status__in=TERMINAL_PROJECT_STATUSES)
        )
        for project in projects:
            previous_faculty_id = project.faculty_id
            project.cancel()
            project.save()

            project.faculty_preferences.all().delete()
            FacultyAllocationRecord.objects.filter(project=project).update(
                status=AllocationStatus.CANCELLED,
                allocated_faculty=None,
                allocated_by="",
                allocated_at=None,
                modified=timezone.now(),
            )
            StudentProject.objects.filter(project=project).update(
                status=StudentProjectStatus.CANCELLED,
                modified=timezone.now(),
            )
            AllocationEvent.objects.create(
                project=project,
                action=AllocationAction.CANCELLED,
                previous_faculty_id=previous_faculty_id,
                actor=actor,
                comments=reason,
            )
            if previous_faculty_id:
                logger.info(
                    "NOTIFICATION: faculty %s released from cancelled project '%s'",
                    previous_faculty_id,
                    project.title,
                )
            cancelled.append(project)

    if cancelled:
        logger.info("%d project(s) of %s cancelled for semester %d", len(cancelled), student, semester)
    return cancelled
