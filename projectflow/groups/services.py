"""
Group formation workflow.

Every operation runs in one transaction and locks the group row with
select_for_update() before counting members, so capacity and status checks
cannot be raced. Errors are raised as APIException subclasses; nothing here
retries.
"""

import logging
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from django_fsm import can_proceed

from projectflow.academics.models import Student
from projectflow.core import events
from projectflow.core.exceptions import (
    AlreadyFinalizedError,
    DuplicateInvitationError,
    GroupFullError,
    InvalidTransitionError,
    InvitationExpiredError,
    InviteTargetUnavailable,
    NotFoundError,
    NotLeaderError,
    PermissionDeniedError,
    QuorumNotMetError,
    StudentAlreadyGroupedError,
    ValidationError,
    WindowClosedError,
)
from projectflow.core.roles import is_admin
from projectflow.groups.models import (
    FROZEN_STATUSES,
    TERMINAL_STATUSES,
    Group,
    GroupInvitation,
    GroupMember,
    GroupStatus,
    InvitationStatus,
    MemberRole,
    RejectionReason,
    SemesterMembership,
)
from projectflow.sysconfig.models import is_window_open, semester_param

logger = logging.getLogger(__name__)


# Lookups


def _get_student(student_id: UUID, lock: bool = False) -> Student:
    queryset = Student.objects.select_for_update() if lock else Student.objects
    try:
        return queryset.get(pk=student_id)
    except Student.DoesNotExist:
        raise NotFoundError("Student not found.") from None


def _lock_group(group_id: UUID) -> Group:
    try:
        return Group.objects.select_for_update().get(pk=group_id)
    except Group.DoesNotExist:
        raise NotFoundError("Group not found.") from None


def _require_leader(group: Group, student: Student) -> None:
    if not group.is_leader(student):
        raise NotLeaderError()


def _has_active_membership(student_id: UUID, semester: int) -> bool:
    return SemesterMembership.objects.filter(
        student_id=student_id,
        semester=semester,
        is_active=True,
    ).exists()


def _add_member(group: Group, student: Student, role: str = MemberRole.MEMBER) -> GroupMember:
    """Add a student to the roster and to their semester ledger."""
    now = timezone.now()
    member = GroupMember.objects.create(group=group, student=student, role=role, joined_at=now)
    SemesterMembership.objects.create(
        student=student,
        group=group,
        semester=group.semester,
        role=role,
        joined_at=now,
    )
    return member


def _deactivate_members(group: Group, student_ids=None) -> int:
    """Deactivate roster entries and current-semester ledger rows of a group."""
    roster = GroupMember.objects.filter(group=group, is_active=True)
    ledger = SemesterMembership.objects.filter(group=group, semester=group.semester, is_active=True)
    if student_ids is not None:
        roster = roster.filter(student_id__in=student_ids)
        ledger = ledger.filter(student_id__in=student_ids)
    ledger.update(is_active=False, modified=timezone.now())
    return roster.update(is_active=False, left_at=timezone.now(), modified=timezone.now())


def _set_role(group: Group, student_id: UUID, role: str) -> None:
    GroupMember.objects.filter(group=group, student_id=student_id, is_active=True).update(role=role)
    SemesterMembership.objects.filter(group=group, student_id=student_id, is_active=True).update(role=role)


def auto_reject_invitations(invitations, reason: str) -> int:
    """
    Mark the pending invitations of `invitations` as auto-rejected.

    Runs inside the caller's transaction; one event per invitation is
    published after commit.
    """
    pending = list(
        invitations.filter(status=InvitationStatus.PENDING).values_list("id", "group_id", "invitee_id")
    )
    if not pending:
        return 0

    now = timezone.now()
    GroupInvitation.objects.filter(id__in=[row[0] for row in pending]).update(
        status=InvitationStatus.AUTO_REJECTED,
        rejection_reason=reason,
        responded_at=now,
        modified=now,
    )
    for invitation_id, group_id, invitee_id in pending:
        events.publish(
            events.INVITATION_AUTO_REJECTED,
            invitation_id=str(invitation_id),
            group_id=str(group_id),
            invitee_id=str(invitee_id),
            reason=reason,
        )
    logger.info("AUTO-TRANSITION: %d invitation(s) auto-rejected (%s)", len(pending), reason)
    return len(pending)


# Group lifecycle


def create_group(
    leader_id: UUID,
    name: str,
    semester: int | None = None,
    academic_year: str | None = None,
) -> Group:
    """
    Create a FORMING group with the leader as its first active member.

    Bounds are copied from configuration for the group's semester.
    """
    with transaction.atomic():
        leader = _get_student(leader_id, lock=True)
        semester = semester or leader.semester
        academic_year = academic_year or leader.academic_year

        if not is_window_open("groupFormationWindow", semester, leader.degree):
            raise WindowClosedError("Group formation is not open for this semester.")

        if _has_active_membership(leader.pk, semester):
            raise StudentAlreadyGroupedError()

        min_members = int(semester_param("minGroupMembers", semester, leader.degree))
        max_members = int(semester_param("maxGroupMembers", semester, leader.degree))
        if min_members > max_members:
            raise ValidationError(
                "Group size configuration is inconsistent.",
                details={"min_members": min_members, "max_members": max_members},
            )

        group = Group.objects.create(
            name=name,
            leader=leader,
            min_members=min_members,
            max_members=max_members,
            semester=semester,
            academic_year=academic_year,
        )
        _add_member(group, leader, MemberRole.LEADER)

    logger.info("Group '%s' created by %s for semester %d", group.name, leader, semester)
    return group


def recompute_status(group: Group) -> Group:
    """
    Re-derive the status of a non-frozen group from its active member count.

    The group must be locked by the caller. A group with no active members
    is disbanded.
    """
    if group.status in FROZEN_STATUSES or group.status in TERMINAL_STATUSES:
        return group

    count = group.member_count
    if count == 0:
        apply_disband(group)
        return group

    if group.status == GroupStatus.OPEN and count >= group.max_members:
        group.complete()
        group.save()
        logger.info("AUTO-TRANSITION: Group '%s' complete (%d members)", group.name, count)
    elif group.status == GroupStatus.COMPLETE and count < group.min_members:
        group.reopen()
        group.save()
        logger.info("AUTO-TRANSITION: Group '%s' reopened (%d members)", group.name, count)
    return group


def close_recruitment(group_id: UUID, requester_id: UUID) -> Group:
    """Leader closes recruitment once the quorum is reached (OPEN -> COMPLETE)."""
    with transaction.atomic():
        group = _lock_group(group_id)
        _require_leader(group, _get_student(requester_id))

        if group.status == GroupStatus.COMPLETE:
            return group
        if group.status in FROZEN_STATUSES:
            raise AlreadyFinalizedError()
        if group.status != GroupStatus.OPEN:
            raise InvalidTransitionError("Recruitment can only be closed for an open group.")

        count = group.member_count
        if count < group.min_members:
            raise QuorumNotMetError(details={"active": count, "min_members": group.min_members})

        group.complete()
        group.save()

    logger.info("Group '%s' closed recruitment with %d members", group.name, count)
    return group


def finalize(group_id: UUID, requester_id: UUID) -> Group:
    """
    Freeze the group's membership (OPEN/COMPLETE -> FINALIZED).

    Remaining pending invitations of the group are auto-rejected in the same
    transaction.
    """
    with transaction.atomic():
        group = _lock_group(group_id)
        requester = _get_student(requester_id)
        _require_leader(group, requester)

        if group.status in FROZEN_STATUSES:
            raise AlreadyFinalizedError()
        if group.status == GroupStatus.DISBANDED:
            raise InvalidTransitionError("A disbanded group cannot be finalized.")

        count = group.member_count
        if not group.bounds_hold(count):
            raise QuorumNotMetError(
                details={
                    "active": count,
                    "min_members": group.min_members,
                    "max_members": group.max_members,
                }
            )
        if not can_proceed(group.finalize):
            raise InvalidTransitionError()

        group.finalize(by=requester.user)
        group.save()
        auto_reject_invitations(group.invites.all(), RejectionReason.GROUP_FINALIZED)

        events.publish(events.GROUP_FINALIZED, group_id=str(group.pk), member_count=count)

    logger.info("Group '%s' finalized with %d members", group.name, count)
    return group


def leave_group(group_id: UUID, student_id: UUID) -> Group:
    """
    Remove a student from a group that is not yet finalized.

    If the leader leaves, leadership passes to the earliest joined active
    member. The last member cannot leave.
    """
    with transaction.atomic():
        group = _lock_group(group_id)
        student = _get_student(student_id)

        if group.status in FROZEN_STATUSES:
            raise AlreadyFinalizedError("Membership of a finalized group cannot change.")
        if group.status == GroupStatus.DISBANDED:
            raise InvalidTransitionError("The group is disbanded.")
        if not group.is_member(student):
            raise NotFoundError("You are not a member of this group.")

        if group.member_count == 1:
            raise ValidationError("The last member cannot leave the group.")

        _deactivate_members(group, [student.pk])

        if group.leader_id == student.pk:
            successor = group.active_members().select_related("student").first()
            group.leader = successor.student
            _set_role(group, successor.student_id, MemberRole.LEADER)
            logger.info(
                "AUTO-TRANSITION: Leadership of '%s' passed to %s",
                group.name,
                successor.student,
            )

        if group.status == GroupStatus.COMPLETE:
            group.reopen()
        group.save()
        recompute_status(group)

    logger.info("%s left group '%s'", student, group.name)
    return group


def transfer_leadership(group_id: UUID, requester_id: UUID, new_leader_id: UUID) -> Group:
    with transaction.atomic():
        group = _lock_group(group_id)
        requester = _get_student(requester_id)
        _require_leader(group, requester)

        if group.status in FROZEN_STATUSES or group.status in TERMINAL_STATUSES:
            raise AlreadyFinalizedError()

        new_leader = _get_student(new_leader_id)
        if not group.is_member(new_leader):
            raise ValidationError("The new leader must be an active member of the group.")
        if new_leader.pk == requester.pk:
            return group

        _set_role(group, requester.pk, MemberRole.MEMBER)
        _set_role(group, new_leader.pk, MemberRole.LEADER)
        group.leader = new_leader
        group.save()

    logger.info("Leadership of '%s' transferred from %s to %s", group.name, requester, new_leader)
    return group


def apply_disband(group: Group, by=None) -> Group:
    """Disband a locked-by-caller group and release its members."""
    group.disband(by=by)
    group.save()
    released = _deactivate_members(group)
    now = timezone.now()
    group.invites.filter(status=InvitationStatus.PENDING).update(
        status=InvitationStatus.CANCELLED,
        responded_at=now,
        modified=now,
    )
    events.publish(events.GROUP_DISBANDED, group_id=str(group.pk), released=released)
    logger.info("AUTO-TRANSITION: Group '%s' disbanded (%d members released)", group.name, released)
    return group


def disband(group_id: UUID, admin) -> Group:
    """Administrative disband. Allowed from any state except LOCKED/DISBANDED."""
    if not is_admin(admin):
        raise PermissionDeniedError("Only administrators can disband a group.")

    with transaction.atomic():
        group = _lock_group(group_id)
        if group.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"A {group.status} group cannot be disbanded.")
        return apply_disband(group, by=admin)


# Invitation ledger


def _create_invitations(
    group: Group,
    inviter: Student,
    students: list[Student],
    role: str = MemberRole.MEMBER,
    message: str = "",
) -> list[GroupInvitation]:
    invitations = []
    for student in students:
        invitation = GroupInvitation.objects.create(
            group=group,
            invitee=student,
            invited_by=inviter,
            role=role,
            message=message,
        )
        invitations.append(invitation)
        events.publish(
            events.INVITATION_CREATED,
            invitation_id=str(invitation.pk),
            group_id=str(group.pk),
            invitee_id=str(student.pk),
            inviter_id=str(inviter.pk),
        )

    if group.status == GroupStatus.FORMING:
        group.send_invitations()
        group.save()
        logger.info("AUTO-TRANSITION: Group '%s' sent its first invitations", group.name)
    return invitations


def _check_cohort(group: Group, students: list[Student]) -> None:
    """Invitees must be in the group's semester and share the leader's degree."""
    degree = group.leader.degree if group.leader_id else None
    outside = [
        str(s.pk) for s in students if s.semester != group.semester or (degree is not None and s.degree != degree)
    ]
    if outside:
        raise ValidationError(
            f"Only semester {group.semester} students of the same degree can join this group.",
            details={"student_ids": outside},
        )


def _check_recruiting(group: Group) -> None:
    if group.status in FROZEN_STATUSES:
        raise AlreadyFinalizedError()
    if group.status == GroupStatus.DISBANDED:
        raise InvalidTransitionError("The group is disbanded.")
    if group.member_count >= group.max_members:
        raise GroupFullError()
    if not group.is_recruiting:
        raise InvalidTransitionError("The group has closed recruitment.")


def send_invites(
    group_id: UUID,
    student_ids: list[UUID],
    inviter_id: UUID,
    message: str = "",
) -> list[GroupInvitation]:
    """
    Leader dispatches invitations to several candidates at once.

    Nothing is created if any candidate already belongs to a group this
    semester.
    """
    if not student_ids:
        raise ValidationError("At least one student must be invited.")

    with transaction.atomic():
        group = _lock_group(group_id)
        inviter = _get_student(inviter_id)
        _require_leader(group, inviter)
        _check_recruiting(group)

        students = list(Student.objects.filter(pk__in=set(student_ids)))
        if len(students) != len(set(student_ids)):
            raise NotFoundError("One or more students were not found.")
        _check_cohort(group, students)

        unavailable = [str(s.pk) for s in students if _has_active_membership(s.pk, group.semester)]
        if unavailable:
            raise InviteTargetUnavailable(details={"student_ids": unavailable})

        duplicates = list(
            group.invites.filter(status=InvitationStatus.PENDING, invitee__in=students)
            .values_list("invitee_id", flat=True)
        )
        if duplicates:
            raise DuplicateInvitationError(details={"student_ids": [str(pk) for pk in duplicates]})

        return _create_invitations(group, inviter, students, message=message)


def invite(
    group_id: UUID,
    student_id: UUID,
    role: str,
    inviter_id: UUID,
    message: str = "",
) -> GroupInvitation:
    """Invite a single student to the group."""
    with transaction.atomic():
        group = _lock_group(group_id)
        inviter = _get_student(inviter_id)
        _require_leader(group, inviter)
        student = _get_student(student_id)
        _check_cohort(group, [student])
        if group.invites.filter(invitee=student, status=InvitationStatus.PENDING).exists():
            raise DuplicateInvitationError()
        if _has_active_membership(student.pk, group.semester):
            raise StudentAlreadyGroupedError()
        _check_recruiting(group)

        return _create_invitations(group, inviter, [student], role=role, message=message)[0]


def accept(student_id: UUID, group_id: UUID) -> GroupInvitation:
    """
    Accept a pending invitation.

    In one transaction: re-validate the invitation and the group under lock,
    add the student to the roster and ledger, mark the invitation accepted,
    and auto-reject every other pending invitation addressed to the student
    for the same semester.
    """
    with transaction.atomic():
        group = _lock_group(group_id)
        # Serializes concurrent accepts by the same student
        student = _get_student(student_id, lock=True)

        invitations = group.invites.select_for_update().filter(invitee=student)
        invitation = invitations.filter(status=InvitationStatus.PENDING).first()
        if invitation is None:
            if invitations.exists():
                raise InvitationExpiredError()
            raise NotFoundError("Invitation not found.")

        if group.status in FROZEN_STATUSES:
            raise AlreadyFinalizedError()
        if group.status == GroupStatus.DISBANDED:
            raise InvitationExpiredError("The group was disbanded.")
        _check_cohort(group, [student])
        if _has_active_membership(student.pk, group.semester):
            raise StudentAlreadyGroupedError()

        count = group.member_count
        if count >= group.max_members:
            raise GroupFullError()

        _add_member(group, student, invitation.role)
        invitation.accept()
        invitation.save()
        count += 1

        auto_reject_invitations(
            GroupInvitation.objects.filter(invitee=student, group__semester=group.semester).exclude(
                pk=invitation.pk
            ),
            RejectionReason.JOINED_ANOTHER_GROUP,
        )

        if group.status == GroupStatus.FORMING:
            group.send_invitations()
        if group.status == GroupStatus.INVITATIONS_SENT:
            group.open_recruitment()
            logger.info("AUTO-TRANSITION: Group '%s' open (%d members)", group.name, count)
        if group.status == GroupStatus.OPEN and count >= group.max_members:
            group.complete()
            logger.info("AUTO-TRANSITION: Group '%s' complete (%d members)", group.name, count)
        group.save()

        if count >= group.max_members:
            auto_reject_invitations(group.invites.all(), RejectionReason.GROUP_FULL)

    logger.info("NOTIFICATION: %s joined group '%s'", student, group.name)
    return invitation


def reject(student_id: UUID, group_id: UUID) -> GroupInvitation:
    """Reject a pending invitation. No cascading effects."""
    with transaction.atomic():
        invitations = GroupInvitation.objects.select_for_update().filter(
            group_id=group_id,
            invitee_id=student_id,
        )
        invitation = invitations.filter(status=InvitationStatus.PENDING).first()
        if invitation is None:
            if invitations.exists():
                raise InvitationExpiredError()
            raise NotFoundError("Invitation not found.")

        invitation.reject()
        invitation.save()

    logger.info("NOTIFICATION: %s declined invitation to group %s", student_id, group_id)
    return invitation


def cancel_invitation(group_id: UUID, invitation_id: UUID, requester_id: UUID) -> GroupInvitation:
    with transaction.atomic():
        group = _lock_group(group_id)
        _require_leader(group, _get_student(requester_id))
        try:
            invitation = group.invites.select_for_update().get(pk=invitation_id)
        except GroupInvitation.DoesNotExist:
            raise NotFoundError("Invitation not found.") from None
        if not invitation.can_respond():
            raise InvitationExpiredError()
        invitation.cancel()
        invitation.save()
    return invitation


def pending_invitations(student_id: UUID):
    """The student's invitation inbox."""
    return (
        GroupInvitation.objects.filter(invitee_id=student_id, status=InvitationStatus.PENDING)
        .select_related("group", "group__leader", "invited_by")
        .order_by("-created")
    )
