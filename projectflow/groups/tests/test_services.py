"""
Tests for the group formation workflow and the invitation ledger.
"""

import pytest

from projectflow.academics.models import Student
from projectflow.academics.tests.factories import StudentFactory
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
from projectflow.groups import services
from projectflow.groups.models import (
    Group,
    GroupInvitation,
    GroupMember,
    GroupStatus,
    InvitationStatus,
    MemberRole,
    RejectionReason,
    SemesterMembership,
)
from projectflow.groups.tests.factories import GroupFactory, add_member, make_group
from projectflow.sysconfig.models import set_config_value


@pytest.fixture
def bounds_4_5(db):
    set_config_value("sem5.minGroupMembers", 4)
    set_config_value("sem5.maxGroupMembers", 5)


def reload(group: Group) -> Group:
    return Group.objects.get(pk=group.pk)


def active_memberships(student, semester=5):
    return SemesterMembership.objects.filter(student=student, semester=semester, is_active=True)


@pytest.mark.django_db
class TestCreateGroup:
    def test_leader_is_first_member(self, bounds_4_5, student):
        group = services.create_group(student.pk, "Compilers")

        assert group.status == GroupStatus.FORMING
        assert (group.min_members, group.max_members) == (4, 5)
        assert group.semester == 5
        assert group.leader == student
        member = GroupMember.objects.get(group=group)
        assert member.student == student
        assert member.role == MemberRole.LEADER
        assert active_memberships(student).get().group == group

    def test_already_grouped(self, student):
        services.create_group(student.pk, "First")
        with pytest.raises(StudentAlreadyGroupedError):
            services.create_group(student.pk, "Second")

    def test_window_closed(self, student):
        set_config_value("sem5.groupFormationWindow", {"end": "2000-01-01T00:00:00+00:00"})
        with pytest.raises(WindowClosedError):
            services.create_group(student.pk, "Late")

    def test_inconsistent_bounds(self, student):
        set_config_value("sem5.minGroupMembers", 6)
        set_config_value("sem5.maxGroupMembers", 5)
        with pytest.raises(ValidationError):
            services.create_group(student.pk, "Broken")

    def test_degree_specific_bounds(self):
        set_config_value("mtech.sem3.maxGroupMembers", 2)
        set_config_value("mtech.sem3.minGroupMembers", 1)
        leader = StudentFactory(degree="M.Tech", semester=3)
        group = services.create_group(leader.pk, "Thesis")
        assert (group.min_members, group.max_members) == (1, 2)


@pytest.mark.django_db
class TestScenarioA:
    """Invite four, three accept, one rejects, then finalize."""

    def test_formation_to_finalized(self, bounds_4_5, student):
        group = services.create_group(student.pk, "G1")
        candidates = StudentFactory.create_batch(4)

        services.send_invites(group.pk, [c.pk for c in candidates], student.pk)
        assert reload(group).status == GroupStatus.INVITATIONS_SENT

        for candidate in candidates[:3]:
            services.accept(candidate.pk, group.pk)
        services.reject(candidates[3].pk, group.pk)

        group = reload(group)
        assert group.status == GroupStatus.OPEN
        assert group.member_count == 4

        services.finalize(group.pk, student.pk)
        group = reload(group)
        assert group.status == GroupStatus.FINALIZED
        assert group.finalized_by == student.user
        rejected = GroupInvitation.objects.get(invitee=candidates[3])
        assert rejected.status == InvitationStatus.REJECTED
        assert rejected.rejection_reason == ""


@pytest.mark.django_db
class TestScenarioB:
    """Accepting one invitation auto-rejects the others."""

    def test_accept_cascades(self):
        g1 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        g2 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        s1 = StudentFactory()
        services.invite(g1.pk, s1.pk, MemberRole.MEMBER, g1.leader_id)
        services.invite(g2.pk, s1.pk, MemberRole.MEMBER, g2.leader_id)

        services.accept(s1.pk, g1.pk)

        assert GroupInvitation.objects.get(group=g1, invitee=s1).status == InvitationStatus.ACCEPTED
        other = GroupInvitation.objects.get(group=g2, invitee=s1)
        assert other.status == InvitationStatus.AUTO_REJECTED
        assert other.rejection_reason == RejectionReason.JOINED_ANOTHER_GROUP
        assert [m.group_id for m in active_memberships(s1)] == [g1.pk]

    def test_other_semester_untouched(self):
        g1 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        g6 = make_group(GroupStatus.INVITATIONS_SENT, size=1, leader=StudentFactory(semester=6))
        s1 = StudentFactory()
        services.invite(g1.pk, s1.pk, MemberRole.MEMBER, g1.leader_id)
        # Left over from before the student changed cohort
        GroupInvitation.objects.create(group=g6, invitee=s1, invited_by=g6.leader)

        services.accept(s1.pk, g1.pk)

        assert GroupInvitation.objects.get(group=g6, invitee=s1).status == InvitationStatus.PENDING

    def test_accept_auto_rejected_invitation_expired(self):
        g1 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        g2 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        s1 = StudentFactory()
        services.invite(g1.pk, s1.pk, MemberRole.MEMBER, g1.leader_id)
        services.invite(g2.pk, s1.pk, MemberRole.MEMBER, g2.leader_id)
        services.accept(s1.pk, g1.pk)

        with pytest.raises(InvitationExpiredError):
            services.accept(s1.pk, g2.pk)
        assert active_memberships(s1).count() == 1

    def test_events_published(self, django_capture_on_commit_callbacks):
        g1 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        g2 = make_group(GroupStatus.INVITATIONS_SENT, size=1)
        s1 = StudentFactory()
        services.invite(g1.pk, s1.pk, MemberRole.MEMBER, g1.leader_id)
        services.invite(g2.pk, s1.pk, MemberRole.MEMBER, g2.leader_id)

        seen = []

        def receiver(sender, event, payload, **kwargs):
            seen.append((event, payload))

        events.workflow_event.connect(receiver)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                services.accept(s1.pk, g1.pk)
        finally:
            events.workflow_event.disconnect(receiver)

        assert seen == [
            (
                events.INVITATION_AUTO_REJECTED,
                {
                    "invitation_id": str(GroupInvitation.objects.get(group=g2).pk),
                    "group_id": str(g2.pk),
                    "invitee_id": str(s1.pk),
                    "reason": RejectionReason.JOINED_ANOTHER_GROUP,
                },
            )
        ]


@pytest.mark.django_db
class TestInvite:
    def test_only_leader(self):
        group = make_group(GroupStatus.OPEN, size=2)
        member = group.active_members().exclude(student=group.leader).get().student
        with pytest.raises(NotLeaderError):
            services.invite(group.pk, StudentFactory().pk, MemberRole.MEMBER, member.pk)

    def test_duplicate(self):
        group = make_group(GroupStatus.FORMING, size=1)
        target = StudentFactory()
        services.invite(group.pk, target.pk, MemberRole.MEMBER, group.leader_id)
        with pytest.raises(DuplicateInvitationError):
            services.invite(group.pk, target.pk, MemberRole.MEMBER, group.leader_id)

    def test_grouped_student(self):
        group = make_group(GroupStatus.FORMING, size=1)
        other = make_group(GroupStatus.OPEN, size=2)
        with pytest.raises(StudentAlreadyGroupedError):
            services.invite(group.pk, other.leader_id, MemberRole.MEMBER, group.leader_id)

    def test_full_group(self):
        group = make_group(GroupStatus.COMPLETE, size=3)
        with pytest.raises(GroupFullError):
            services.invite(group.pk, StudentFactory().pk, MemberRole.MEMBER, group.leader_id)

    def test_finalized_group(self):
        group = make_group(GroupStatus.FINALIZED, size=2)
        with pytest.raises(AlreadyFinalizedError):
            services.invite(group.pk, StudentFactory().pk, MemberRole.MEMBER, group.leader_id)

    def test_bulk_invite_rejects_grouped_candidate(self):
        group = make_group(GroupStatus.FORMING, size=1)
        free = StudentFactory()
        grouped = make_group(GroupStatus.OPEN, size=2).leader

        with pytest.raises(InviteTargetUnavailable) as exc_info:
            services.send_invites(group.pk, [free.pk, grouped.pk], group.leader_id)

        assert exc_info.value.details == {"student_ids": [str(grouped.pk)]}
        assert not GroupInvitation.objects.filter(group=group).exists()
        assert reload(group).status == GroupStatus.FORMING

    def test_bulk_invite_unknown_student(self):
        group = make_group(GroupStatus.FORMING, size=1)
        with pytest.raises(NotFoundError):
            services.send_invites(group.pk, [StudentFactory().pk, group.pk], group.leader_id)

    def test_pending_inbox(self):
        group = make_group(GroupStatus.FORMING, size=1)
        target = StudentFactory()
        invitation = services.invite(group.pk, target.pk, MemberRole.MEMBER, group.leader_id, "Join us")
        assert list(services.pending_invitations(target.pk)) == [invitation]
        assert invitation.message == "Join us"
        assert invitation.invited_by == group.leader

    def test_other_semester_rejected(self):
        group = make_group(GroupStatus.OPEN, size=2)
        junior = StudentFactory(semester=3)
        with pytest.raises(ValidationError):
            services.invite(group.pk, junior.pk, MemberRole.MEMBER, group.leader_id)
        assert not GroupInvitation.objects.filter(invitee=junior).exists()

    def test_other_degree_rejected(self):
        group = make_group(GroupStatus.OPEN, size=2)
        postgrad = StudentFactory(degree="M.Tech")
        with pytest.raises(ValidationError):
            services.invite(group.pk, postgrad.pk, MemberRole.MEMBER, group.leader_id)

    def test_bulk_invite_rejects_other_cohort(self):
        group = make_group(GroupStatus.FORMING, size=1)
        junior = StudentFactory(semester=3)

        with pytest.raises(ValidationError) as exc_info:
            services.send_invites(group.pk, [StudentFactory().pk, junior.pk], group.leader_id)

        assert exc_info.value.details == {"student_ids": [str(junior.pk)]}
        assert not GroupInvitation.objects.filter(group=group).exists()


@pytest.mark.django_db
class TestAccept:
    def test_invitee_changed_semester(self):
        group = make_group(GroupStatus.OPEN, size=2)
        target = StudentFactory()
        services.invite(group.pk, target.pk, MemberRole.MEMBER, group.leader_id)
        Student.objects.filter(pk=target.pk).update(semester=6)

        with pytest.raises(ValidationError):
            services.accept(target.pk, group.pk)

        assert not SemesterMembership.objects.filter(student=target, is_active=True).exists()
        assert reload(group).member_count == 2

    def test_fill_group_auto_rejects_rest(self):
        group = make_group(GroupStatus.OPEN, size=2)
        last, spare = StudentFactory(), StudentFactory()
        services.send_invites(group.pk, [last.pk, spare.pk], group.leader_id)

        services.accept(last.pk, group.pk)

        group = reload(group)
        assert group.status == GroupStatus.COMPLETE
        assert group.member_count == group.max_members
        invitation = GroupInvitation.objects.get(group=group, invitee=spare)
        assert invitation.status == InvitationStatus.AUTO_REJECTED
        assert invitation.rejection_reason == RejectionReason.GROUP_FULL

    def test_full_group_rejects_accept(self):
        group = make_group(GroupStatus.OPEN, size=2)
        late = StudentFactory()
        GroupInvitation.objects.create(group=group, invitee=late, invited_by=group.leader)
        add_member(group, StudentFactory())

        with pytest.raises(GroupFullError):
            services.accept(late.pk, group.pk)
        assert not active_memberships(late).exists()
        assert GroupInvitation.objects.get(invitee=late).status == InvitationStatus.PENDING

    def test_finalized_group_rejects_accept(self):
        group = make_group(GroupStatus.FINALIZED, size=2)
        late = StudentFactory()
        GroupInvitation.objects.create(group=group, invitee=late, invited_by=group.leader)

        with pytest.raises(AlreadyFinalizedError):
            services.accept(late.pk, group.pk)

    def test_no_invitation(self):
        group = make_group(GroupStatus.OPEN, size=2)
        with pytest.raises(NotFoundError):
            services.accept(StudentFactory().pk, group.pk)

    def test_reject_twice(self):
        group = make_group(GroupStatus.FORMING, size=1)
        target = StudentFactory()
        services.invite(group.pk, target.pk, MemberRole.MEMBER, group.leader_id)
        services.reject(target.pk, group.pk)
        with pytest.raises(InvitationExpiredError):
            services.reject(target.pk, group.pk)

    def test_cancel_invitation(self):
        group = make_group(GroupStatus.FORMING, size=1)
        target = StudentFactory()
        invitation = services.invite(group.pk, target.pk, MemberRole.MEMBER, group.leader_id)
        services.cancel_invitation(group.pk, invitation.pk, group.leader_id)

        assert GroupInvitation.objects.get(pk=invitation.pk).status == InvitationStatus.CANCELLED
        with pytest.raises(InvitationExpiredError):
            services.accept(target.pk, group.pk)


@pytest.mark.django_db
class TestFinalize:
    def test_auto_rejects_pending(self):
        group = make_group(GroupStatus.OPEN, size=2)
        pending = StudentFactory()
        services.invite(group.pk, pending.pk, MemberRole.MEMBER, group.leader_id)

        services.finalize(group.pk, group.leader_id)

        invitation = GroupInvitation.objects.get(invitee=pending)
        assert invitation.status == InvitationStatus.AUTO_REJECTED
        assert invitation.rejection_reason == RejectionReason.GROUP_FINALIZED

    def test_quorum(self):
        group = make_group(GroupStatus.OPEN, size=1, min_members=2)
        with pytest.raises(QuorumNotMetError):
            services.finalize(group.pk, group.leader_id)
        assert reload(group).status == GroupStatus.OPEN

    def test_not_leader(self):
        group = make_group(GroupStatus.OPEN, size=2)
        member = group.active_members().exclude(student=group.leader).get().student
        with pytest.raises(NotLeaderError):
            services.finalize(group.pk, member.pk)

    def test_already_finalized(self):
        group = make_group(GroupStatus.FINALIZED, size=2)
        with pytest.raises(AlreadyFinalizedError):
            services.finalize(group.pk, group.leader_id)

    def test_forming_cannot_finalize(self):
        group = make_group(GroupStatus.FORMING, size=2)
        with pytest.raises(InvalidTransitionError):
            services.finalize(group.pk, group.leader_id)

    def test_finalized_bounds_hold(self):
        group = make_group(GroupStatus.COMPLETE, size=3)
        services.finalize(group.pk, group.leader_id)
        group = reload(group)
        assert group.min_members <= group.member_count <= group.max_members


@pytest.mark.django_db
class TestCloseRecruitment:
    def test_close(self):
        group = make_group(GroupStatus.OPEN, size=2)
        assert services.close_recruitment(group.pk, group.leader_id).status == GroupStatus.COMPLETE

    def test_below_quorum(self):
        group = make_group(GroupStatus.OPEN, size=1)
        with pytest.raises(QuorumNotMetError):
            services.close_recruitment(group.pk, group.leader_id)


@pytest.mark.django_db
class TestLeaveAndLeadership:
    def test_member_leaves_complete_group(self):
        group = make_group(GroupStatus.COMPLETE, size=3)
        member = group.active_members().exclude(student=group.leader).first().student

        services.leave_group(group.pk, member.pk)

        group = reload(group)
        assert group.status == GroupStatus.OPEN
        assert group.member_count == 2
        assert not active_memberships(member).exists()

    def test_leader_leaves_passes_leadership(self):
        group = make_group(GroupStatus.OPEN, size=2)
        old_leader = group.leader
        successor = group.active_members().exclude(student=old_leader).first().student

        services.leave_group(group.pk, old_leader.pk)

        group = reload(group)
        assert group.leader == successor
        assert GroupMember.objects.get(group=group, student=successor, is_active=True).role == MemberRole.LEADER

    def test_last_member_cannot_leave(self):
        group = make_group(GroupStatus.FORMING, size=1)
        with pytest.raises(ValidationError):
            services.leave_group(group.pk, group.leader_id)

    def test_cannot_leave_finalized(self):
        group = make_group(GroupStatus.FINALIZED, size=2)
        with pytest.raises(AlreadyFinalizedError):
            services.leave_group(group.pk, group.leader_id)

    def test_transfer(self):
        group = make_group(GroupStatus.OPEN, size=2)
        member = group.active_members().exclude(student=group.leader).get().student
        old_leader = group.leader

        services.transfer_leadership(group.pk, old_leader.pk, member.pk)

        group = reload(group)
        assert group.leader == member
        assert GroupMember.objects.get(group=group, student=old_leader).role == MemberRole.MEMBER
        assert SemesterMembership.objects.get(group=group, student=member).role == MemberRole.LEADER

    def test_transfer_to_outsider(self):
        group = make_group(GroupStatus.OPEN, size=2)
        with pytest.raises(ValidationError):
            services.transfer_leadership(group.pk, group.leader_id, StudentFactory().pk)


@pytest.mark.django_db
class TestDisband:
    def test_admin_disbands(self, admin_user):
        group = make_group(GroupStatus.OPEN, size=2)
        pending = StudentFactory()
        services.invite(group.pk, pending.pk, MemberRole.MEMBER, group.leader_id)
        members = [m.student for m in group.active_members()]

        services.disband(group.pk, admin_user)

        group = reload(group)
        assert group.status == GroupStatus.DISBANDED
        assert group.disbanded_by == admin_user
        assert group.member_count == 0
        for member in members:
            assert not active_memberships(member).exists()
        assert GroupInvitation.objects.get(invitee=pending).status == InvitationStatus.CANCELLED

    def test_requires_admin(self, student):
        group = make_group(GroupStatus.OPEN, size=2)
        with pytest.raises(PermissionDeniedError):
            services.disband(group.pk, student.user)

    def test_locked_group(self, admin_user):
        group = make_group(GroupStatus.LOCKED, size=2)
        with pytest.raises(InvalidTransitionError):
            services.disband(group.pk, admin_user)

    def test_recompute_empty_group_disbands(self):
        group = GroupFactory(status=GroupStatus.OPEN, with_leader=False)
        services.recompute_status(group)
        assert reload(group).status == GroupStatus.DISBANDED
