"""
Tests for the configuration store.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from projectflow.sysconfig.models import (
    SystemConfig,
    get_config_value,
    is_window_open,
    semester_param,
    set_config_value,
)


@pytest.mark.django_db
class TestConfigStore:
    def test_missing_key_returns_default(self):
        assert get_config_value("sem5.unknown", 7) == 7

    def test_set_and_replace(self):
        set_config_value("sem5.maxGroupMembers", 4)
        set_config_value("sem5.maxGroupMembers", 6)
        assert get_config_value("sem5.maxGroupMembers") == 6
        assert SystemConfig.objects.filter(config_key="sem5.maxGroupMembers").count() == 1

    def test_inactive_entry_ignored(self):
        config = set_config_value("sem5.minGroupMembers", 2)
        config.is_active = False
        config.save()
        assert get_config_value("sem5.minGroupMembers") is None


@pytest.mark.django_db
class TestSemesterParam:
    def test_builtin_defaults(self):
        assert semester_param("minGroupMembers", 5) == 4
        assert semester_param("maxGroupMembers", 5) == 5
        assert semester_param("facultyPreferenceLimit", 5) == 3

    def test_semester_key(self):
        set_config_value("sem5.facultyPreferenceLimit", 5)
        assert semester_param("facultyPreferenceLimit", 5) == 5
        assert semester_param("facultyPreferenceLimit", 6) == 3

    def test_degree_key_overrides_generic(self):
        set_config_value("sem3.maxGroupMembers", 5)
        set_config_value("mtech.sem3.maxGroupMembers", 2)
        assert semester_param("maxGroupMembers", 3, "M.Tech") == 2
        assert semester_param("maxGroupMembers", 3, "B.Tech") == 5


@pytest.mark.django_db
class TestWindows:
    def test_unconfigured_window_is_open(self):
        assert is_window_open("groupFormationWindow", 5)

    def test_inside_and_outside(self):
        now = timezone.now()
        set_config_value(
            "sem5.preferenceWindow",
            {"start": (now - timedelta(days=1)).isoformat(), "end": (now + timedelta(days=1)).isoformat()},
        )
        assert is_window_open("preferenceWindow", 5, now=now)
        assert not is_window_open("preferenceWindow", 5, now=now + timedelta(days=2))
        assert not is_window_open("preferenceWindow", 5, now=now - timedelta(days=2))

    def test_open_ended(self):
        now = timezone.now()
        set_config_value("sem5.groupFormationWindow", {"start": (now - timedelta(hours=1)).isoformat()})
        assert is_window_open("groupFormationWindow", 5, now=now + timedelta(days=365))
