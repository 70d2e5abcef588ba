"""
Tests for the custom user model.
"""

import pytest

from projectflow.users.models import User


@pytest.mark.django_db
class TestUserManager:
    def test_create_user(self):
        user = User.objects.create_user("Student@College.EDU", "pw", first_name="Asha")
        assert user.email == "Student@college.edu"
        assert user.check_password("pw")
        assert not user.is_staff

    def test_email_required(self):
        with pytest.raises(ValueError):
            User.objects.create_user("", "pw")

    def test_create_superuser(self):
        user = User.objects.create_superuser("root@college.edu", "pw", first_name="Root")
        assert user.is_staff and user.is_superuser

    def test_full_name_falls_back_to_email(self):
        user = User(email="x@college.edu", first_name="", last_name="")
        assert user.get_full_name() == "x@college.edu"
