"""
Key/value configuration store.

Per-track, per-semester parameters (group bounds, faculty preference limit,
allowed faculty categories, registration windows). Values are read on every
operation and never cached.
"""

import logging
from datetime import datetime

from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.utils.translation import gettext_lazy as _

from projectflow.core.models import BaseModel

logger = logging.getLogger(__name__)


class ConfigCategory(models.TextChoices):
    GENERAL = "general", _("General")
    ACADEMIC = "academic", _("Academic")
    GROUPS = "groups", _("Groups")
    ALLOCATION = "allocation", _("Allocation")
    PROMOTION = "promotion", _("Promotion")


# Defaults used when a key is absent from the store.
DEFAULTS = {
    "minGroupMembers": 4,
    "maxGroupMembers": 5,
    "facultyPreferenceLimit": 3,
    "allowedFacultyCategories": None,
    "groupFormationWindow": None,
    "preferenceWindow": None,
}


class SystemConfig(BaseModel):
    """A single configuration entry (e.g. 'sem5.maxGroupMembers' -> 5)."""

    config_key = models.CharField(_("key"), max_length=150, unique=True)
    config_value = models.JSONField(_("value"), null=True, blank=True)
    category = models.CharField(
        _("category"),
        max_length=20,
        choices=ConfigCategory.choices,
        default=ConfigCategory.GENERAL,
    )
    description = models.TextField(_("description"), blank=True)
    is_active = models.BooleanField(_("active"), default=True)

    class Meta:
        verbose_name = _("system configuration")
        verbose_name_plural = _("system configuration")
        ordering = ["config_key"]

    def __str__(self) -> str:
        return f"{self.config_key} = {self.config_value!r}"


def get_config_value(key: str, default=None):
    """Return the active value stored under `key`, or `default`."""
    config = SystemConfig.objects.filter(config_key=key, is_active=True).first()
    return config.config_value if config else default


def set_config_value(key: str, value, category: str = ConfigCategory.GENERAL, description: str = "") -> SystemConfig:
    """Create or replace the value stored under `key`."""
    config, _created = SystemConfig.objects.update_or_create(
        config_key=key,
        defaults={
            "config_value": value,
            "category": category,
            "description": description,
            "is_active": True,
        },
    )
    return config


def _degree_prefix(degree: str | None) -> str | None:
    if not degree:
        return None
    return degree.replace(".", "").replace(" ", "").lower()


def semester_param(name: str, semester: int, degree: str | None = None):
    """
    Resolve a per-semester parameter.

    Lookup order: '<degree>.sem<N>.<name>' (e.g. 'mtech.sem3.maxGroupMembers'),
    then 'sem<N>.<name>', then the built-in default.
    """
    prefix = _degree_prefix(degree)
    if prefix:
        value = get_config_value(f"{prefix}.sem{semester}.{name}")
        if value is not None:
            return value
    return get_config_value(f"sem{semester}.{name}", DEFAULTS.get(name))


def _parse_bound(value) -> datetime | None:
    if not value:
        return None
    parsed = parse_datetime(value) if isinstance(value, str) else value
    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def is_window_open(name: str, semester: int, degree: str | None = None, now: datetime | None = None) -> bool:
    """
    Check a configured time window ({"start": iso, "end": iso}).

    Windows that are not configured are always open.
    """
    window = semester_param(name, semester, degree)
    if not window:
        return True
    now = now or timezone.now()
    start = _parse_bound(window.get("start"))
    end = _parse_bound(window.get("end"))
    if start and now < start:
        return False
    if end and now > end:
        return False
    return True
