import uuid

import django.db.models.deletion
import django.utils.timezone
import django_fsm
import model_utils.fields
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("academics", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Group",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(help_text="Group name chosen by the leader", max_length=200, verbose_name="name")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("forming", "Forming"),
                            ("invitations_sent", "Invitations sent"),
                            ("open", "Open"),
                            ("complete", "Complete"),
                            ("finalized", "Finalized"),
                            ("locked", "Locked"),
                            ("disbanded", "Disbanded"),
                        ],
                        default="forming",
                        max_length=50,
                        protected=True,
                        verbose_name="status",
                    ),
                ),
                ("min_members", models.PositiveSmallIntegerField(verbose_name="minimum members")),
                ("max_members", models.PositiveSmallIntegerField(verbose_name="maximum members")),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("academic_year", models.CharField(max_length=7, verbose_name="academic year")),
                ("finalized_at", models.DateTimeField(blank=True, null=True, verbose_name="finalized at")),
                ("locked_at", models.DateTimeField(blank=True, null=True, verbose_name="locked at")),
                ("disbanded_at", models.DateTimeField(blank=True, null=True, verbose_name="disbanded at")),
                (
                    "allocated_faculty",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="allocated_groups",
                        to="academics.faculty",
                        verbose_name="allocated faculty",
                    ),
                ),
                (
                    "disbanded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="disbanded by",
                    ),
                ),
                (
                    "finalized_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="finalized by",
                    ),
                ),
                (
                    "leader",
                    models.ForeignKey(
                        help_text="Must always be an active member",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="led_groups",
                        to="academics.student",
                        verbose_name="leader",
                    ),
                ),
            ],
            options={
                "verbose_name": "group",
                "verbose_name_plural": "groups",
                "ordering": ["-created"],
                "indexes": [
                    models.Index(fields=["semester", "academic_year", "status"], name="group_cohort_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="GroupMember",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("role", models.CharField(choices=[("leader", "Leader"), ("member", "Member")], default="member", max_length=10, verbose_name="role")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("joined_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="joined at")),
                ("left_at", models.DateTimeField(blank=True, null=True, verbose_name="left at")),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="groups.group",
                        verbose_name="group",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="roster_entries",
                        to="academics.student",
                        verbose_name="student",
                    ),
                ),
            ],
            options={
                "verbose_name": "group member",
                "verbose_name_plural": "group members",
                "ordering": ["joined_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("group", "student"),
                        name="unique_active_roster_entry",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SemesterMembership",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("role", models.CharField(choices=[("leader", "Leader"), ("member", "Member")], default="member", max_length=10, verbose_name="role")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("joined_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="joined at")),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="semester_memberships",
                        to="groups.group",
                        verbose_name="group",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="group_memberships",
                        to="academics.student",
                        verbose_name="student",
                    ),
                ),
            ],
            options={
                "verbose_name": "semester membership",
                "verbose_name_plural": "semester memberships",
                "ordering": ["student", "semester", "joined_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("student", "semester"),
                        name="unique_active_membership_per_semester",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="GroupInvitation",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("role", models.CharField(choices=[("leader", "Leader"), ("member", "Member")], default="member", max_length=10, verbose_name="role")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                            ("auto-rejected", "Auto-rejected"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=50,
                        verbose_name="status",
                    ),
                ),
                (
                    "rejection_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("group_finalized", "The group was finalized"),
                            ("joined_another_group", "The student joined another group"),
                            ("group_full", "The group is full"),
                        ],
                        max_length=30,
                        verbose_name="rejection reason",
                    ),
                ),
                ("message", models.TextField(blank=True, help_text="Optional message from the leader", verbose_name="message")),
                (
                    "responded_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the invitation left the pending state",
                        null=True,
                        verbose_name="responded at",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invites",
                        to="groups.group",
                        verbose_name="group",
                    ),
                ),
                (
                    "invited_by",
                    models.ForeignKey(
                        help_text="The leader who sent the invitation",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sent_invitations",
                        to="academics.student",
                        verbose_name="invited by",
                    ),
                ),
                (
                    "invitee",
                    models.ForeignKey(
                        help_text="The student being invited",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invitations",
                        to="academics.student",
                        verbose_name="invitee",
                    ),
                ),
            ],
            options={
                "verbose_name": "group invitation",
                "verbose_name_plural": "group invitations",
                "ordering": ["-created"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "pending")),
                        fields=("group", "invitee"),
                        name="unique_pending_invitation",
                    ),
                ],
            },
        ),
    ]
