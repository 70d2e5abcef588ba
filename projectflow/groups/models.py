"""
Models for student group formation.

Contains:
- Group: semester project group (FSM-driven lifecycle)
- GroupMember: the group's own roster
- SemesterMembership: a student's per-semester membership ledger
- GroupInvitation: invitations to join a group
"""

import logging

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from django_fsm import FSMField, transition

from projectflow.core.models import BaseModel

logger = logging.getLogger(__name__)


class GroupStatus(models.TextChoices):
    """Status choices for groups (FSM states)."""

    FORMING = "forming", _("Forming")  # Created, leader only
    INVITATIONS_SENT = "invitations_sent", _("Invitations sent")
    OPEN = "open", _("Open")  # At least one invitation accepted
    COMPLETE = "complete", _("Complete")  # Full, or recruitment closed
    FINALIZED = "finalized", _("Finalized")  # Membership frozen
    LOCKED = "locked", _("Locked")  # Historical record after carry-forward
    DISBANDED = "disbanded", _("Disbanded")


# Statuses where the capacity invariant must hold
FROZEN_STATUSES = (GroupStatus.FINALIZED, GroupStatus.LOCKED)
TERMINAL_STATUSES = (GroupStatus.LOCKED, GroupStatus.DISBANDED)
RECRUITING_STATUSES = (GroupStatus.FORMING, GroupStatus.INVITATIONS_SENT, GroupStatus.OPEN)


class MemberRole(models.TextChoices):
    LEADER = "leader", _("Leader")
    MEMBER = "member", _("Member")


class Group(BaseModel):
    """
    Student project group for one semester.

    Uses django-fsm for state management with protected transitions:
    - forming: the leader is the only member
    - invitations_sent: the leader has dispatched invitations
    - open: at least one invitation was accepted
    - complete: full, or recruitment closed by the leader
    - finalized: membership is immutable to students
    - locked: frozen historical record, members carried forward
    - disbanded: abandoned; terminal

    Member counts are never stored; they are counted from the active roster
    inside the transaction that mutates it.
    """

    name = models.CharField(
        _("name"),
        max_length=200,
        help_text=_("Group name chosen by the leader"),
    )

    leader = models.ForeignKey(
        "academics.Student",
        on_delete=models.SET_NULL,
        null=True,
        related_name="led_groups",
        verbose_name=_("leader"),
        help_text=_("Must always be an active member"),
    )

    # FSM status field with protected transitions
    status = FSMField(
        _("status"),
        default=GroupStatus.FORMING,
        choices=GroupStatus.choices,
        protected=True,
    )

    min_members = models.PositiveSmallIntegerField(_("minimum members"))
    max_members = models.PositiveSmallIntegerField(_("maximum members"))

    semester = models.PositiveSmallIntegerField(_("semester"))
    academic_year = models.CharField(_("academic year"), max_length=7)

    allocated_faculty = models.ForeignKey(
        "academics.Faculty",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="allocated_groups",
        verbose_name=_("allocated faculty"),
    )

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("project"),
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
    locked_at = models.DateTimeField(_("locked at"), null=True, blank=True)
    disbanded_at = models.DateTimeField(_("disbanded at"), null=True, blank=True)
    disbanded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name=_("disbanded by"),
    )

    class Meta:
        verbose_name = _("group")
        verbose_name_plural = _("groups")
        ordering = ["-created"]
        indexes = [
            models.Index(fields=["semester", "academic_year", "status"], name="group_cohort_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_status_display()})"

    # FSM Transitions

    @transition(field=status, source=GroupStatus.FORMING, target=GroupStatus.INVITATIONS_SENT)
    def send_invitations(self):
        """Leader dispatched the first invitations."""

    @transition(field=status, source=GroupStatus.INVITATIONS_SENT, target=GroupStatus.OPEN)
    def open_recruitment(self):
        """First invitation accepted."""

    @transition(field=status, source=GroupStatus.OPEN, target=GroupStatus.COMPLETE)
    def complete(self):
        """
        Transition from open to complete.

        Called when:
        - The active member count reaches max_members
        - The leader closes recruitment with at least min_members
        """

    @transition(field=status, source=GroupStatus.COMPLETE, target=GroupStatus.OPEN)
    def reopen(self):
        """A member left a complete group; recruitment reopens."""

    @transition(
        field=status,
        source=[GroupStatus.OPEN, GroupStatus.COMPLETE],
        target=GroupStatus.FINALIZED,
    )
    def finalize(self, by=None):
        """Freeze the membership. Pending invitations are auto-rejected by the caller."""
        self.finalized_at = timezone.now()
        self.finalized_by = by

    @transition(field=status, source=GroupStatus.FINALIZED, target=GroupStatus.LOCKED)
    def lock(self):
        """Freeze the group as a historical record for its semester."""
        self.locked_at = timezone.now()

    @transition(
        field=status,
        source=[
            GroupStatus.FORMING,
            GroupStatus.INVITATIONS_SENT,
            GroupStatus.OPEN,
            GroupStatus.COMPLETE,
            GroupStatus.FINALIZED,
        ],
        target=GroupStatus.DISBANDED,
    )
    def disband(self, by=None):
        self.disbanded_at = timezone.now()
        self.disbanded_by = by

    # Helper methods

    def active_members(self):
        """Active roster entries, earliest joined first."""
        return self.members.filter(is_active=True).order_by("joined_at")

    @property
    def member_count(self) -> int:
        """Return the number of active members."""
        return self.members.filter(is_active=True).count()

    @property
    def is_frozen(self) -> bool:
        return self.status in FROZEN_STATUSES

    @property
    def is_recruiting(self) -> bool:
        return self.status in RECRUITING_STATUSES

    def is_member(self, student) -> bool:
        """Check if student is an active member of this group."""
        return self.members.filter(student=student, is_active=True).exists()

    def is_leader(self, student) -> bool:
        """Check if student is the leader of this group."""
        return student is not None and self.leader_id == student.pk

    def bounds_hold(self, count: int | None = None) -> bool:
        count = self.member_count if count is None else count
        return self.min_members <= count <= self.max_members


class GroupMember(BaseModel):
    """Roster entry: a student's membership in a group."""

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="members",
        verbose_name=_("group"),
    )
    student = models.ForeignKey(
        "academics.Student",
        on_delete=models.CASCADE,
        related_name="roster_entries",
        verbose_name=_("student"),
    )
    role = models.CharField(
        _("role"),
        max_length=10,
        choices=MemberRole.choices,
        default=MemberRole.MEMBER,
    )
    is_active = models.BooleanField(_("active"), default=True)
    joined_at = models.DateTimeField(_("joined at"), default=timezone.now)
    left_at = models.DateTimeField(_("left at"), null=True, blank=True)

    class Meta:
        verbose_name = _("group member")
        verbose_name_plural = _("group members")
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["group", "student"],
                condition=models.Q(is_active=True),
                name="unique_active_roster_entry",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.student} in {self.group.name} ({self.role})"


class SemesterMembership(BaseModel):
    """
    A student's group membership for one semester.

    At most one row per (student, semester) may be active. The carry-forward
    promotion adds a second row pointing at the same group for the next
    semester and deactivates the old one, while the group's roster stays intact.
    """

    student = models.ForeignKey(
        "academics.Student",
        on_delete=models.CASCADE,
        related_name="group_memberships",
        verbose_name=_("student"),
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="semester_memberships",
        verbose_name=_("group"),
    )
    semester = models.PositiveSmallIntegerField(_("semester"))
    role = models.CharField(
        _("role"),
        max_length=10,
        choices=MemberRole.choices,
        default=MemberRole.MEMBER,
    )
    is_active = models.BooleanField(_("active"), default=True)
    joined_at = models.DateTimeField(_("joined at"), default=timezone.now)

    class Meta:
        verbose_name = _("semester membership")
        verbose_name_plural = _("semester memberships")
        ordering = ["student", "semester", "joined_at"]
        constraints = [
            # One active membership per student per semester
            models.UniqueConstraint(
                fields=["student", "semester"],
                condition=models.Q(is_active=True),
                name="unique_active_membership_per_semester",
            ),
        ]

    def __str__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"{self.student} S{self.semester} -> {self.group.name} ({state})"


class InvitationStatus(models.TextChoices):
    """Status choices for group invitations."""

    PENDING = "pending", _("Pending")
    ACCEPTED = "accepted", _("Accepted")
    REJECTED = "rejected", _("Rejected")
    AUTO_REJECTED = "auto-rejected", _("Auto-rejected")
    CANCELLED = "cancelled", _("Cancelled")


class RejectionReason(models.TextChoices):
    GROUP_FINALIZED = "group_finalized", _("The group was finalized")
    JOINED_ANOTHER_GROUP = "joined_another_group", _("The student joined another group")
    GROUP_FULL = "group_full", _("The group is full")


class GroupInvitation(BaseModel):
    """
    Invitation to join a group.

    Tracks invitations sent by group leaders to students. Auto-rejections
    carry a structured reason surfaced to the invitee.
    """

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="invites",
        verbose_name=_("group"),
    )

    invitee = models.ForeignKey(
        "academics.Student",
        on_delete=models.CASCADE,
        related_name="invitations",
        verbose_name=_("invitee"),
        help_text=_("The student being invited"),
    )

    invited_by = models.ForeignKey(
        "academics.Student",
        on_delete=models.SET_NULL,
        null=True,
        related_name="sent_invitations",
        verbose_name=_("invited by"),
        help_text=_("The leader who sent the invitation"),
    )

    role = models.CharField(
        _("role"),
        max_length=10,
        choices=MemberRole.choices,
        default=MemberRole.MEMBER,
    )

    status = FSMField(
        _("status"),
        default=InvitationStatus.PENDING,
        choices=InvitationStatus.choices,
    )

    rejection_reason = models.CharField(
        _("rejection reason"),
        max_length=30,
        choices=RejectionReason.choices,
        blank=True,
    )

    message = models.TextField(
        _("message"),
        blank=True,
        help_text=_("Optional message from the leader"),
    )

    responded_at = models.DateTimeField(
        _("responded at"),
        null=True,
        blank=True,
        help_text=_("When the invitation left the pending state"),
    )

    class Meta:
        verbose_name = _("group invitation")
        verbose_name_plural = _("group invitations")
        ordering = ["-created"]
        constraints = [
            # One pending invitation per student per group
            models.UniqueConstraint(
                fields=["group", "invitee"],
                condition=models.Q(status="pending"),
                name="unique_pending_invitation",
            ),
        ]

    def __str__(self) -> str:
        return f"Invitation to {self.invitee} for {self.group.name} ({self.status})"

    def can_respond(self) -> bool:
        """Check if invitation can still be responded to."""
        return self.status == InvitationStatus.PENDING

    @transition(field=status, source=InvitationStatus.PENDING, target=InvitationStatus.ACCEPTED)
    def accept(self):
        self.responded_at = timezone.now()

    @transition(field=status, source=InvitationStatus.PENDING, target=InvitationStatus.REJECTED)
    def reject(self):
        self.responded_at = timezone.now()

    @transition(field=status, source=InvitationStatus.PENDING, target=InvitationStatus.AUTO_REJECTED)
    def auto_reject(self, reason: str):
        self.rejection_reason = reason
        self.responded_at = timezone.now()

    @transition(field=status, source=InvitationStatus.PENDING, target=InvitationStatus.CANCELLED)
    def cancel(self):
        """Cancel the invitation (by leader)."""
        self.responded_at = timezone.now()
