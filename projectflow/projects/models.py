"""
Models for projects and faculty allocation.

Contains:
- Project: group-owned or solo semester project (FSM status)
- FacultyPreference: ranked faculty choices of a project
- StudentProject: a student's current-project entry
- FacultyAllocationRecord: allocation outcome of a project
- AllocationEvent: append-only audit log of the allocation workflow
"""

import logging

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from django_fsm import FSMField, transition

from projectflow.core.models import BaseModel

logger = logging.getLogger(__name__)


class ProjectStatus(models.TextChoices):
    """Status choices for projects (FSM states)."""

    REGISTERED = "registered", _("Registered")
    FACULTY_ALLOCATED = "faculty_allocated", _("Faculty allocated")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


TERMINAL_PROJECT_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


class AllocatedBy(models.TextChoices):
    """Provenance of an allocation."""

    FACULTY_CHOICE = "faculty_choice", _("Faculty choice")
    ADMIN_ALLOCATION = "admin_allocation", _("Admin allocation")


class Project(BaseModel):
    """
    Semester project.

    Owned by exactly one of a group or a solo student. The allocated faculty
    is written once by a claim (compare-and-set on faculty IS NULL) and only
    changed afterwards by an explicit admin reallocation.
    """

    title = models.CharField(_("title"), max_length=300)
    description = models.TextField(_("description"), blank=True)

    student = models.ForeignKey(
        "academics.Student",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="solo_projects",
        verbose_name=_("student"),
        help_text=_("Owner of a solo project"),
    )
    group = models.ForeignKey(
        "groups.Group",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="projects",
        verbose_name=_("group"),
        help_text=_("Owner of a group project"),
    )

    faculty = models.ForeignKey(
        "academics.Faculty",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="allocated_projects",
        verbose_name=_("allocated faculty"),
    )

    status = FSMField(
        _("status"),
        default=ProjectStatus.REGISTERED,
        choices=ProjectStatus.choices,
    )

    semester = models.PositiveSmallIntegerField(_("semester"))
    academic_year = models.CharField(_("academic year"), max_length=7)

    allocated_by = models.CharField(
        _("allocated by"),
        max_length=20,
        choices=AllocatedBy.choices,
        blank=True,
    )
    allocated_at = models.DateTimeField(_("allocated at"), null=True, blank=True)

    class Meta:
        verbose_name = _("project")
        verbose_name_plural = _("projects")
        ordering = ["-created"]
        constraints = [
            # A project has at most one owner kind; orphans are removed by reconciliation
            models.CheckConstraint(
                condition=~models.Q(student__isnull=False, group__isnull=False),
                name="project_owner_exclusive",
            ),
        ]
        indexes = [
            models.Index(fields=["semester", "academic_year", "status"], name="project_cohort_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} (S{self.semester}, {self.get_status_display()})"

    # FSM Transitions

    @transition(field=status, source=ProjectStatus.REGISTERED, target=ProjectStatus.FACULTY_ALLOCATED)
    def allocate(self, faculty, allocated_by: str):
        self.faculty = faculty
        self.allocated_by = allocated_by
        self.allocated_at = timezone.now()

    @transition(
        field=status,
        source=[ProjectStatus.REGISTERED, ProjectStatus.FACULTY_ALLOCATED],
        target=ProjectStatus.CANCELLED,
    )
    def cancel(self):
        """Withdrawn before the semester ended. Clears the current faculty."""
        self.faculty = None
        self.allocated_by = ""
        self.allocated_at = None

    # Helper methods

    @property
    def is_group_project(self) -> bool:
        return self.group_id is not None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PROJECT_STATUSES

    def is_owned_by(self, student) -> bool:
        """Solo owner, or leader of the owning group."""
        if self.group_id:
            return self.group.leader_id == student.pk
        return self.student_id == student.pk

    def preferred_faculty_ids(self) -> list:
        return list(self.faculty_preferences.order_by("priority").values_list("faculty_id", flat=True))


class FacultyPreference(BaseModel):
    """One ranked faculty choice of a project."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="faculty_preferences",
        verbose_name=_("project"),
    )
    faculty = models.ForeignKey(
        "academics.Faculty",
        on_delete=models.CASCADE,
        related_name="preferences",
        verbose_name=_("faculty"),
    )
    priority = models.PositiveSmallIntegerField(_("priority"), help_text=_("1 is the first choice"))
    passed_at = models.DateTimeField(
        _("passed at"),
        null=True,
        blank=True,
        help_text=_("When the faculty declined the project"),
    )

    class Meta:
        verbose_name = _("faculty preference")
        verbose_name_plural = _("faculty preferences")
        ordering = ["project", "priority"]
        constraints = [
            models.UniqueConstraint(fields=["project", "faculty"], name="unique_faculty_per_project"),
            models.UniqueConstraint(fields=["project", "priority"], name="unique_priority_per_project"),
        ]

    def __str__(self) -> str:
        return f"{self.project.title} #{self.priority}: {self.faculty}"


class StudentProjectRole(models.TextChoices):
    LEADER = "leader", _("Leader")
    MEMBER = "member", _("Member")
    SOLO = "solo", _("Solo")


class StudentProjectStatus(models.TextChoices):
    REGISTERED = "registered", _("Registered")
    ACTIVE = "active", _("Active")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


class StudentProject(BaseModel):
    """A student's entry for a project they work on in a semester."""

    student = models.ForeignKey(
        "academics.Student",
        on_delete=models.CASCADE,
        related_name="current_projects",
        verbose_name=_("student"),
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="student_entries",
        verbose_name=_("project"),
    )
    semester = models.PositiveSmallIntegerField(_("semester"))
    role = models.CharField(_("role"), max_length=10, choices=StudentProjectRole.choices)
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=StudentProjectStatus.choices,
        default=StudentProjectStatus.REGISTERED,
    )

    class Meta:
        verbose_name = _("student project")
        verbose_name_plural = _("student projects")
        ordering = ["student", "semester"]
        constraints = [
            models.UniqueConstraint(fields=["student", "project"], name="unique_student_project"),
        ]

    def __str__(self) -> str:
        return f"{self.student} -> {self.project.title} ({self.status})"


class AllocationStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    ALLOCATED = "allocated", _("Allocated")
    CANCELLED = "cancelled", _("Cancelled")


class FacultyAllocationRecord(BaseModel):
    """Links a project (and its group) to its preference list and outcome."""

    project = models.OneToOneField(
        Project,
        on_delete=models.CASCADE,
        related_name="allocation_record",
        verbose_name=_("project"),
    )
    group = models.ForeignKey(
        "groups.Group",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="allocation_records",
        verbose_name=_("group"),
    )
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=AllocationStatus.choices,
        default=AllocationStatus.PENDING,
    )
    allocated_faculty = models.ForeignKey(
        "academics.Faculty",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="allocation_records",
        verbose_name=_("allocated faculty"),
    )
    allocated_by = models.CharField(
        _("allocated by"),
        max_length=20,
        choices=AllocatedBy.choices,
        blank=True,
    )
    allocated_at = models.DateTimeField(_("allocated at"), null=True, blank=True)
    semester = models.PositiveSmallIntegerField(_("semester"))
    academic_year = models.CharField(_("academic year"), max_length=7)

    class Meta:
        verbose_name = _("faculty allocation record")
        verbose_name_plural = _("faculty allocation records")
        ordering = ["-created"]
        indexes = [
            models.Index(fields=["status", "semester"], name="allocation_status_sem_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.project.title}: {self.status}"

    @property
    def is_ready_for_admin_allocation(self) -> bool:
        """Every listed faculty has passed and the record is still pending."""
        if self.status != AllocationStatus.PENDING:
            return False
        preferences = self.project.faculty_preferences.all()
        return preferences.exists() and not preferences.filter(passed_at__isnull=True).exists()


class AllocationAction(models.TextChoices):
    PRESENTED = "presented", _("Presented")
    PASSED = "passed", _("Passed")
    CHOSEN = "chosen", _("Chosen")
    ADMIN_ALLOCATED = "admin_allocated", _("Admin allocated")
    REALLOCATED = "reallocated", _("Reallocated")
    CANCELLED = "cancelled", _("Cancelled")


class AllocationEvent(BaseModel):
    """Audit entry of the allocation workflow. Never updated."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="allocation_events",
        verbose_name=_("project"),
    )
    action = models.CharField(_("action"), max_length=20, choices=AllocationAction.choices)
    faculty = models.ForeignKey(
        "academics.Faculty",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("faculty"),
    )
    previous_faculty = models.ForeignKey(
        "academics.Faculty",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("previous faculty"),
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("actor"),
    )
    comments = models.TextField(_("comments"), blank=True)

    class Meta:
        verbose_name = _("allocation event")
        verbose_name_plural = _("allocation events")
        ordering = ["created"]

    def __str__(self) -> str:
        return f"{self.project.title}: {self.action}"
