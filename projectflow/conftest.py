import pytest
from django.contrib.auth.models import Group as AuthGroup
from django.test import Client

from projectflow.academics.tests.factories import FacultyFactory, StudentFactory
from projectflow.core.roles import Role
from projectflow.users.tests.factories import UserFactory


@pytest.fixture(autouse=True)
def role_groups(db):
    """Create all role groups."""
    return {role: AuthGroup.objects.get_or_create(name=role.value)[0] for role in Role}


@pytest.fixture
def admin_user(db):
    return UserFactory(email="admin@college.edu", roles=[Role.ADMIN])


@pytest.fixture
def student(db):
    return StudentFactory()


@pytest.fixture
def faculty(db):
    return FacultyFactory()


@pytest.fixture
def client_for():
    """Return a factory of clients logged in as the given user."""

    def make(user):
        client = Client()
        client.force_login(user)
        return client

    return make
