"""
Data migration to create the 3 role groups for ProjectFlow.

Groups:
- Student: forms groups, answers invitations, submits faculty preferences
- Faculty: claims or passes projects from the preference queue
- Admin: overrides allocations, disbands groups, promotes cohorts
"""

from django.db import migrations

ROLES = ["Student", "Faculty", "Admin"]


def create_role_groups(apps, schema_editor):
    """Create the 3 role groups."""
    Group = apps.get_model("auth", "Group")
    for role_name in ROLES:
        Group.objects.get_or_create(name=role_name)


def remove_role_groups(apps, schema_editor):
    """Remove the role groups (reverse migration)."""
    Group = apps.get_model("auth", "Group")
    Group.objects.filter(name__in=ROLES).delete()


class Migration(migrations.Migration):
    """Create role groups for ProjectFlow."""

    dependencies = [
        ("users", "0001_initial"),
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.RunPython(create_role_groups, remove_role_groups),
    ]
