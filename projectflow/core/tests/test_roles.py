"""
Tests for role helpers and permission classes.
"""

import pytest
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory

from projectflow.academics.tests.factories import FacultyFactory, StudentFactory
from projectflow.core.api.permissions import IsAdmin, IsAuthenticated, IsFaculty, IsStudent
from projectflow.core.roles import Role, get_user_roles, is_admin, is_faculty, is_student, user_has_role
from projectflow.users.tests.factories import UserFactory


@pytest.fixture
def request_factory():
    return RequestFactory()


def make_request(request_factory, user=None):
    """Create a request with the given user."""
    request = request_factory.get("/")
    request.user = user if user else AnonymousUser()
    return request


class TestRole:
    def test_values_match_group_names(self):
        assert Role.values() == ["Student", "Faculty", "Admin"]

    def test_choices(self):
        assert ("Admin", "Admin") in Role.choices()


@pytest.mark.django_db
class TestRoleHelpers:
    def test_anonymous_has_no_roles(self):
        assert get_user_roles(AnonymousUser()) == []
        assert is_admin(AnonymousUser()) is False

    def test_user_roles(self):
        user = UserFactory(roles=[Role.ADMIN, Role.FACULTY])
        assert sorted(get_user_roles(user)) == ["Admin", "Faculty"]
        assert user_has_role(user, Role.ADMIN)
        assert user_has_role(user, "Faculty")
        assert not user_has_role(user, Role.STUDENT)

    def test_superuser_is_admin(self):
        user = UserFactory(is_superuser=True)
        assert is_admin(user)

    def test_student_role_requires_profile(self):
        user = UserFactory(roles=[Role.STUDENT])
        assert not is_student(user)
        assert is_student(StudentFactory().user)

    def test_faculty_role_requires_profile(self):
        user = UserFactory(roles=[Role.FACULTY])
        assert not is_faculty(user)
        assert is_faculty(FacultyFactory().user)


@pytest.mark.django_db
class TestPermissions:
    def test_anonymous_denied(self, request_factory):
        request = make_request(request_factory)
        assert IsAuthenticated().has_permission(request, None) is False
        assert IsAdmin().has_permission(request, None) is False

    def test_authenticated_allowed(self, request_factory):
        request = make_request(request_factory, UserFactory())
        assert IsAuthenticated().has_permission(request, None) is True

    def test_admin(self, request_factory, admin_user, student):
        assert IsAdmin().has_permission(make_request(request_factory, admin_user), None)
        assert not IsAdmin().has_permission(make_request(request_factory, student.user), None)

    def test_student_and_faculty(self, request_factory, student, faculty):
        assert IsStudent().has_permission(make_request(request_factory, student.user), None)
        assert not IsStudent().has_permission(make_request(request_factory, faculty.user), None)
        assert IsFaculty().has_permission(make_request(request_factory, faculty.user), None)
        assert not IsFaculty().has_permission(make_request(request_factory, student.user), None)
