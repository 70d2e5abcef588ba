"""
Academic identity models.

Contains:
- Student: student profile (cohort, semester, degree)
- Faculty: faculty profile (department, category)
- SemesterSelection: a student's track choice for a semester
- InternshipApplication: track-specific verification application
"""

import logging

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from projectflow.core.models import BaseModel

logger = logging.getLogger(__name__)


class Degree(models.TextChoices):
    BTECH = "B.Tech", _("B.Tech")
    MTECH = "M.Tech", _("M.Tech")


class Student(BaseModel):
    """
    Student profile.

    Related workflow state:
        - group_memberships: SemesterMembership rows (groups app)
        - current_projects: StudentProject rows (projects app)
        - invitations: GroupInvitation rows (groups app)
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="student_profile",
        verbose_name=_("user"),
    )
    full_name = models.CharField(_("full name"), max_length=200)
    mis_number = models.CharField(
        _("MIS number"),
        max_length=20,
        unique=True,
        help_text=_("Institutional student ID"),
    )
    branch = models.CharField(_("branch"), max_length=100, blank=True)
    degree = models.CharField(
        _("degree"),
        max_length=10,
        choices=Degree.choices,
        default=Degree.BTECH,
    )
    semester = models.PositiveSmallIntegerField(
        _("semester"),
        validators=[MinValueValidator(1), MaxValueValidator(8)],
    )
    academic_year = models.CharField(
        _("academic year"),
        max_length=7,
        help_text=_("Format: 2024-25"),
    )

    class Meta:
        verbose_name = _("student")
        verbose_name_plural = _("students")
        ordering = ["mis_number"]
        indexes = [
            models.Index(fields=["degree", "semester"], name="student_degree_semester_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.mis_number})"

    def get_semester_selection(self, semester: int):
        return self.semester_selections.filter(semester=semester).order_by("-created").first()


class Faculty(BaseModel):
    """Faculty profile."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="faculty_profile",
        verbose_name=_("user"),
    )
    full_name = models.CharField(_("full name"), max_length=200)
    department = models.CharField(_("department"), max_length=100, blank=True)
    designation = models.CharField(_("designation"), max_length=100, blank=True)
    category = models.CharField(
        _("category"),
        max_length=50,
        blank=True,
        help_text=_("Checked against the allowed faculty categories of a semester"),
    )

    class Meta:
        verbose_name = _("faculty")
        verbose_name_plural = _("faculty")
        ordering = ["full_name"]

    def __str__(self) -> str:
        return self.full_name


class Track(models.TextChoices):
    INTERNSHIP = "internship", _("Internship")
    COURSEWORK = "coursework", _("Coursework")


class InternshipOutcome(models.TextChoices):
    PROVISIONAL = "provisional", _("Provisional")
    VERIFIED_PASS = "verified_pass", _("Verified (pass)")
    VERIFIED_FAIL = "verified_fail", _("Verified (fail)")
    ABSENT = "absent", _("Absent")


class SemesterSelection(BaseModel):
    """A student's track choice (internship vs. coursework) for a semester."""

    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="semester_selections",
        verbose_name=_("student"),
    )
    semester = models.PositiveSmallIntegerField(_("semester"))
    academic_year = models.CharField(_("academic year"), max_length=7)
    chosen_track = models.CharField(_("chosen track"), max_length=20, choices=Track.choices)
    finalized_track = models.CharField(
        _("finalized track"),
        max_length=20,
        choices=Track.choices,
        blank=True,
    )
    internship_outcome = models.CharField(
        _("internship outcome"),
        max_length=20,
        choices=InternshipOutcome.choices,
        default=InternshipOutcome.PROVISIONAL,
    )
    finalized_at = models.DateTimeField(_("finalized at"), null=True, blank=True)
    finalized_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("finalized by"),
    )
    auto_initialized = models.BooleanField(
        _("auto-initialized"),
        default=False,
        help_text=_("Created by semester promotion rather than by the student"),
    )

    class Meta:
        verbose_name = _("semester selection")
        verbose_name_plural = _("semester selections")
        ordering = ["student", "semester"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "semester"],
                name="unique_selection_per_semester",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.student} S{self.semester}: {self.finalized_track or self.chosen_track}"

    @property
    def is_finalized(self) -> bool:
        return bool(self.finalized_track)

    def finalize(self, track: str, user=None):
        """Finalize the track (admin decision). A track change resets the outcome."""
        if self.finalized_track and self.finalized_track != track:
            self.internship_outcome = InternshipOutcome.PROVISIONAL
            logger.info(
                "Track for %s S%d changed from %s to %s",
                self.student_id,
                self.semester,
                self.finalized_track,
                track,
            )
        self.finalized_track = track
        self.finalized_at = timezone.now()
        self.finalized_by = user
        self.save()


class ApplicationType(models.TextChoices):
    SIX_MONTH = "6month", _("6-month internship")
    SUMMER = "summer", _("Summer internship")


class ApplicationStatus(models.TextChoices):
    SUBMITTED = "submitted", _("Submitted")
    NEEDS_INFO = "needs_info", _("Needs information")
    PENDING_VERIFICATION = "pending_verification", _("Pending verification")
    VERIFIED_PASS = "verified_pass", _("Verified (pass)")
    VERIFIED_FAIL = "verified_fail", _("Verified (fail)")
    ABSENT = "absent", _("Absent")


TERMINAL_APPLICATION_STATUSES = {
    ApplicationStatus.VERIFIED_PASS,
    ApplicationStatus.VERIFIED_FAIL,
    ApplicationStatus.ABSENT,
}


class InternshipApplication(BaseModel):
    """Internship verification application for the internship track."""

    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="internship_applications",
        verbose_name=_("student"),
    )
    semester = models.PositiveSmallIntegerField(_("semester"))
    academic_year = models.CharField(_("academic year"), max_length=7)
    type = models.CharField(_("type"), max_length=10, choices=ApplicationType.choices)
    status = models.CharField(
        _("status"),
        max_length=30,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.SUBMITTED,
    )
    company = models.CharField(_("company"), max_length=200, blank=True)
    remarks = models.TextField(_("remarks"), blank=True)
    verified_at = models.DateTimeField(_("verified at"), null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("verified by"),
    )

    class Meta:
        verbose_name = _("internship application")
        verbose_name_plural = _("internship applications")
        ordering = ["-created"]
        indexes = [
            models.Index(fields=["status", "type"], name="application_status_type_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.student} S{self.semester} {self.type} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_APPLICATION_STATUSES

    def review(self, status: str, user=None, remarks: str = ""):
        """
        Record a review decision and mirror terminal outcomes into the
        student's semester selection.
        """
        self.status = status
        self.remarks = remarks or self.remarks
        if status in TERMINAL_APPLICATION_STATUSES:
            self.verified_at = timezone.now()
            self.verified_by = user
        self.save()

        selection = self.student.get_semester_selection(self.semester)
        if selection is None:
            return
        if status in TERMINAL_APPLICATION_STATUSES:
            selection.internship_outcome = status
        elif status == ApplicationStatus.PENDING_VERIFICATION:
            selection.internship_outcome = InternshipOutcome.PROVISIONAL
        selection.save(update_fields=["internship_outcome", "modified"])
