"""
Groups API controller.

Thin HTTP layer over projectflow.groups.services: resolves the session
user to a Student, calls the workflow and converts errors to responses.
"""

import logging
from uuid import UUID

from django.http import HttpRequest
from ninja_extra import api_controller, http_get, http_post

from projectflow.core.api import BaseAPI, IsAdmin, IsAuthenticated, IsStudent
from projectflow.core.exceptions import APIException, ErrorSchema, NotFoundError, NotLeaderError
from projectflow.core.schemas import MessageSchema
from projectflow.groups import services
from projectflow.groups.models import Group, GroupInvitation, MemberRole
from projectflow.groups.schemas import (
    GroupCreateSchema,
    GroupDetailSchema,
    GroupListSchema,
    GroupMemberSchema,
    InvitationCreateSchema,
    InvitationResponseSchema,
    InvitationSchema,
    StudentMinimalSchema,
    TransferLeadershipSchema,
)

logger = logging.getLogger(__name__)


def group_to_list_schema(group: Group) -> GroupListSchema:
    """Convert Group to list schema."""
    return GroupListSchema(
        id=group.id,
        name=group.name,
        leader=StudentMinimalSchema.from_student(group.leader) if group.leader else None,
        member_count=group.member_count,
        min_members=group.min_members,
        max_members=group.max_members,
        status=group.status,
        semester=group.semester,
        academic_year=group.academic_year,
        created=group.created,
    )


def group_to_detail_schema(group: Group) -> GroupDetailSchema:
    """Convert Group to detail schema."""
    members = [
        GroupMemberSchema(
            student=StudentMinimalSchema.from_student(m.student),
            role=m.role,
            joined_at=m.joined_at,
        )
        for m in group.active_members().select_related("student")
    ]
    return GroupDetailSchema(
        **group_to_list_schema(group).model_dump(),
        members=members,
        allocated_faculty_id=group.allocated_faculty_id,
        project_id=group.project_id,
        finalized_at=group.finalized_at,
    )


def invitation_to_schema(invitation: GroupInvitation) -> InvitationSchema:
    """Convert GroupInvitation to schema."""
    return InvitationSchema(
        id=invitation.id,
        group_id=invitation.group_id,
        group_name=invitation.group.name,
        invitee=StudentMinimalSchema.from_student(invitation.invitee),
        invited_by=(
            StudentMinimalSchema.from_student(invitation.invited_by) if invitation.invited_by else None
        ),
        role=invitation.role,
        status=invitation.status,
        rejection_reason=invitation.rejection_reason,
        message=invitation.message,
        created=invitation.created,
        responded_at=invitation.responded_at,
    )


def _reload(group_id: UUID) -> Group:
    return Group.objects.select_related("leader").get(id=group_id)


@api_controller("/groups", tags=["Groups"], permissions=[IsAuthenticated])
class GroupController(BaseAPI):
    """Group formation workflow."""

    @http_get(
        "/",
        response={200: list[GroupListSchema], 401: ErrorSchema},
        url_name="groups_list",
    )
    def list_groups(
        self,
        request: HttpRequest,
        semester: int | None = None,
        academic_year: str | None = None,
        status: str | None = None,
    ):
        """List groups with optional filtering."""
        groups = Group.objects.select_related("leader")

        if semester:
            groups = groups.filter(semester=semester)
        if academic_year:
            groups = groups.filter(academic_year=academic_year)
        if status:
            groups = groups.filter(status=status)

        return 200, [group_to_list_schema(g) for g in groups.order_by("-created")]

    @http_get(
        "/my",
        response={200: list[GroupListSchema], 401: ErrorSchema, 403: ErrorSchema},
        url_name="groups_my",
        permissions=[IsStudent],
    )
    def my_groups(self, request: HttpRequest):
        """Groups the current student is an active member of."""
        student = request.user.student_profile
        groups = (
            Group.objects.filter(members__student=student, members__is_active=True)
            .select_related("leader")
            .distinct()
            .order_by("-semester")
        )
        return 200, [group_to_list_schema(g) for g in groups]

    @http_get(
        "/invitations/received",
        response={200: list[InvitationSchema], 401: ErrorSchema, 403: ErrorSchema},
        url_name="invitations_received",
        permissions=[IsStudent],
    )
    def my_invitations(self, request: HttpRequest):
        """Pending invitations addressed to the current student."""
        invitations = services.pending_invitations(request.user.student_profile.pk).select_related("invitee")
        return 200, [invitation_to_schema(inv) for inv in invitations]

    @http_get(
        "/{group_id}",
        response={200: GroupDetailSchema, 401: ErrorSchema, 404: ErrorSchema},
        url_name="groups_detail",
    )
    def get_group(self, request: HttpRequest, group_id: UUID):
        """Get group details."""
        group = Group.objects.select_related("leader").filter(id=group_id).first()
        if not group:
            return NotFoundError("Group not found.").to_response()
        return 200, group_to_detail_schema(group)

    @http_post(
        "/",
        response={201: GroupDetailSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 409: ErrorSchema},
        url_name="groups_create",
        permissions=[IsStudent],
    )
    def create_group(self, request: HttpRequest, data: GroupCreateSchema):
        """
        Create a new group.

        The current student becomes the leader and first member.
        """
        try:
            group = services.create_group(
                request.user.student_profile.pk,
                data.name,
                semester=data.semester,
                academic_year=data.academic_year,
            )
        except APIException as exc:
            return exc.to_response()
        return 201, group_to_detail_schema(_reload(group.id))

    # ==================== Invitation Endpoints ====================

    @http_post(
        "/{group_id}/invite",
        response={
            201: list[InvitationSchema],
            400: ErrorSchema,
            401: ErrorSchema,
            403: ErrorSchema,
            404: ErrorSchema,
            409: ErrorSchema,
        },
        url_name="groups_invite",
        permissions=[IsStudent],
    )
    def invite_to_group(self, request: HttpRequest, group_id: UUID, data: InvitationCreateSchema):
        """
        Invite students to join the group.

        Only the group leader can send invitations. A single invitee goes
        through the per-student checks; several go through the bulk dispatch.
        """
        inviter_id = request.user.student_profile.pk
        try:
            if len(data.student_ids) == 1:
                invitations = [
                    services.invite(group_id, data.student_ids[0], MemberRole.MEMBER, inviter_id, data.message)
                ]
            else:
                invitations = services.send_invites(group_id, data.student_ids, inviter_id, data.message)
        except APIException as exc:
            return exc.to_response()

        invitations = GroupInvitation.objects.filter(
            id__in=[inv.id for inv in invitations]
        ).select_related("group", "invitee", "invited_by")
        return 201, [invitation_to_schema(inv) for inv in invitations]

    @http_get(
        "/{group_id}/invitations",
        response={200: list[InvitationSchema], 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema},
        url_name="groups_invitations_list",
        permissions=[IsStudent],
    )
    def list_group_invitations(self, request: HttpRequest, group_id: UUID):
        """
        List invitations for a group.

        Only the group leader can see all invitations.
        """
        group = Group.objects.filter(id=group_id).first()
        if not group:
            return NotFoundError("Group not found.").to_response()
        if not group.is_leader(request.user.student_profile):
            return NotLeaderError().to_response()

        invitations = group.invites.select_related("group", "invitee", "invited_by").order_by("-created")
        return 200, [invitation_to_schema(inv) for inv in invitations]

    @http_post(
        "/{group_id}/respond",
        response={200: InvitationSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="invitations_respond",
        permissions=[IsStudent],
    )
    def respond_to_invitation(self, request: HttpRequest, group_id: UUID, data: InvitationResponseSchema):
        """Accept or reject the current student's pending invitation to a group."""
        student_id = request.user.student_profile.pk
        try:
            if data.accept:
                invitation = services.accept(student_id, group_id)
            else:
                invitation = services.reject(student_id, group_id)
        except APIException as exc:
            return exc.to_response()

        invitation = GroupInvitation.objects.select_related("group", "invitee", "invited_by").get(id=invitation.id)
        return 200, invitation_to_schema(invitation)

    @http_post(
        "/{group_id}/invitations/{invitation_id}/cancel",
        response={200: MessageSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="invitations_cancel",
        permissions=[IsStudent],
    )
    def cancel_invitation(self, request: HttpRequest, group_id: UUID, invitation_id: UUID):
        """Cancel a pending invitation (leader only)."""
        try:
            services.cancel_invitation(group_id, invitation_id, request.user.student_profile.pk)
        except APIException as exc:
            return exc.to_response()
        return 200, MessageSchema(success=True, message="Invitation cancelled.")

    # ==================== Lifecycle Endpoints ====================

    @http_post(
        "/{group_id}/close",
        response={200: GroupDetailSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="groups_close",
        permissions=[IsStudent],
    )
    def close_recruitment(self, request: HttpRequest, group_id: UUID):
        """Close recruitment (leader only, quorum required)."""
        try:
            group = services.close_recruitment(group_id, request.user.student_profile.pk)
        except APIException as exc:
            return exc.to_response()
        return 200, group_to_detail_schema(_reload(group.id))

    @http_post(
        "/{group_id}/finalize",
        response={200: GroupDetailSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="groups_finalize",
        permissions=[IsStudent],
    )
    def finalize_group(self, request: HttpRequest, group_id: UUID):
        """
        Finalize the group (leader only).

        Remaining pending invitations are auto-rejected.
        """
        try:
            group = services.finalize(group_id, request.user.student_profile.pk)
        except APIException as exc:
            return exc.to_response()
        return 200, group_to_detail_schema(_reload(group.id))

    @http_post(
        "/{group_id}/leave",
        response={200: MessageSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="groups_leave",
        permissions=[IsStudent],
    )
    def leave_group(self, request: HttpRequest, group_id: UUID):
        """Leave a group that is not finalized."""
        try:
            services.leave_group(group_id, request.user.student_profile.pk)
        except APIException as exc:
            return exc.to_response()
        return 200, MessageSchema(success=True, message="You left the group.")

    @http_post(
        "/{group_id}/transfer-leadership",
        response={200: GroupDetailSchema, 400: ErrorSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="groups_transfer_leadership",
        permissions=[IsStudent],
    )
    def transfer_leadership(self, request: HttpRequest, group_id: UUID, data: TransferLeadershipSchema):
        """Hand leadership to another active member."""
        try:
            group = services.transfer_leadership(group_id, request.user.student_profile.pk, data.new_leader_id)
        except APIException as exc:
            return exc.to_response()
        return 200, group_to_detail_schema(_reload(group.id))

    @http_post(
        "/{group_id}/disband",
        response={200: GroupDetailSchema, 401: ErrorSchema, 403: ErrorSchema, 404: ErrorSchema, 409: ErrorSchema},
        url_name="groups_disband",
        permissions=[IsAdmin],
    )
    def disband_group(self, request: HttpRequest, group_id: UUID):
        """Disband a group (admin only)."""
        try:
            group = services.disband(group_id, request.user)
        except APIException as exc:
            return exc.to_response()
        return 200, group_to_detail_schema(_reload(group.id))
