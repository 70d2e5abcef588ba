"""
Tests for the groups API endpoints.
"""

import pytest
from django.test import Client

from projectflow.academics.tests.factories import StudentFactory
from projectflow.groups.models import Group, GroupInvitation, GroupStatus, InvitationStatus
from projectflow.groups.tests.factories import make_group


@pytest.mark.django_db
class TestCreateGroupEndpoint:
    def test_unauthenticated_denied(self):
        response = Client().post("/api/groups/", data={"name": "G"}, content_type="application/json")
        assert response.status_code in (401, 403)

    def test_faculty_denied(self, client_for, faculty):
        response = client_for(faculty.user).post("/api/groups/", data={"name": "G"}, content_type="application/json")
        assert response.status_code == 403

    def test_create(self, client_for, student):
        response = client_for(student.user).post(
            "/api/groups/",
            data={"name": "Distributed Systems"},
            content_type="application/json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Distributed Systems"
        assert data["status"] == GroupStatus.FORMING
        assert data["member_count"] == 1
        assert data["leader"]["id"] == str(student.pk)
        assert [m["role"] for m in data["members"]] == ["leader"]

    def test_already_grouped(self, client_for):
        group = make_group(GroupStatus.OPEN, size=2)
        response = client_for(group.leader.user).post(
            "/api/groups/",
            data={"name": "Second"},
            content_type="application/json",
        )
        assert response.status_code == 409
        assert response.json()["code"] == "STUDENT_ALREADY_GROUPED"


@pytest.mark.django_db
class TestInvitationEndpoints:
    def test_invite_and_accept(self, client_for):
        group = make_group(GroupStatus.FORMING, size=1)
        target = StudentFactory()

        response = client_for(group.leader.user).post(
            f"/api/groups/{group.pk}/invite",
            data={"student_ids": [str(target.pk)], "message": "Join us"},
            content_type="application/json",
        )
        assert response.status_code == 201
        assert response.json()[0]["invitee"]["id"] == str(target.pk)

        target_client = client_for(target.user)
        inbox = target_client.get("/api/groups/invitations/received")
        assert [inv["group_id"] for inv in inbox.json()] == [str(group.pk)]

        response = target_client.post(
            f"/api/groups/{group.pk}/respond",
            data={"accept": True},
            content_type="application/json",
        )
        assert response.status_code == 200
        assert response.json()["status"] == InvitationStatus.ACCEPTED
        assert Group.objects.get(pk=group.pk).status == GroupStatus.OPEN

    def test_bulk_invite_conflict(self, client_for):
        group = make_group(GroupStatus.FORMING, size=1)
        grouped = make_group(GroupStatus.OPEN, size=2).leader

        response = client_for(group.leader.user).post(
            f"/api/groups/{group.pk}/invite",
            data={"student_ids": [str(StudentFactory().pk), str(grouped.pk)]},
            content_type="application/json",
        )

        assert response.status_code == 409
        assert response.json()["code"] == "INVITE_TARGET_UNAVAILABLE"
        assert not GroupInvitation.objects.filter(group=group).exists()

    def test_invite_empty_list(self, client_for):
        group = make_group(GroupStatus.FORMING, size=1)
        response = client_for(group.leader.user).post(
            f"/api/groups/{group.pk}/invite",
            data={"student_ids": []},
            content_type="application/json",
        )
        assert response.status_code == 422

    def test_invitations_list_leader_only(self, client_for):
        group = make_group(GroupStatus.OPEN, size=2)
        member = group.active_members().exclude(student=group.leader).get().student
        response = client_for(member.user).get(f"/api/groups/{group.pk}/invitations")
        assert response.status_code == 403
        assert response.json()["code"] == "NOT_LEADER"


@pytest.mark.django_db
class TestLifecycleEndpoints:
    def test_finalize(self, client_for):
        group = make_group(GroupStatus.OPEN, size=2)
        response = client_for(group.leader.user).post(f"/api/groups/{group.pk}/finalize")
        assert response.status_code == 200
        assert response.json()["status"] == GroupStatus.FINALIZED

    def test_finalize_quorum_not_met(self, client_for):
        group = make_group(GroupStatus.OPEN, size=1)
        response = client_for(group.leader.user).post(f"/api/groups/{group.pk}/finalize")
        assert response.status_code == 400
        assert response.json()["code"] == "QUORUM_NOT_MET"

    def test_detail_and_my(self, client_for):
        group = make_group(GroupStatus.OPEN, size=2)
        client = client_for(group.leader.user)

        detail = client.get(f"/api/groups/{group.pk}")
        assert detail.status_code == 200
        assert len(detail.json()["members"]) == 2

        mine = client.get("/api/groups/my")
        assert [g["id"] for g in mine.json()] == [str(group.pk)]

    def test_unknown_group(self, client_for, student):
        response = client_for(student.user).get("/api/groups/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

    def test_disband_requires_admin(self, client_for, admin_user):
        group = make_group(GroupStatus.OPEN, size=2)
        assert client_for(group.leader.user).post(f"/api/groups/{group.pk}/disband").status_code == 403

        response = client_for(admin_user).post(f"/api/groups/{group.pk}/disband")
        assert response.status_code == 200
        assert Group.objects.get(pk=group.pk).status == GroupStatus.DISBANDED
