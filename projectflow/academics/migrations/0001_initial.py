import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import model_utils.fields
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Student",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("full_name", models.CharField(max_length=200, verbose_name="full name")),
                ("mis_number", models.CharField(help_text="Institutional student ID", max_length=20, unique=True, verbose_name="MIS number")),
                ("branch", models.CharField(blank=True, max_length=100, verbose_name="branch")),
                ("degree", models.CharField(choices=[("B.Tech", "B.Tech"), ("M.Tech", "M.Tech")], default="B.Tech", max_length=10, verbose_name="degree")),
                (
                    "semester",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(8),
                        ],
                        verbose_name="semester",
                    ),
                ),
                ("academic_year", models.CharField(help_text="Format: 2024-25", max_length=7, verbose_name="academic year")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="student_profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="user",
                    ),
                ),
            ],
            options={
                "verbose_name": "student",
                "verbose_name_plural": "students",
                "ordering": ["mis_number"],
                "indexes": [models.Index(fields=["degree", "semester"], name="student_degree_semester_idx")],
            },
        ),
        migrations.CreateModel(
            name="Faculty",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("full_name", models.CharField(max_length=200, verbose_name="full name")),
                ("department", models.CharField(blank=True, max_length=100, verbose_name="department")),
                ("designation", models.CharField(blank=True, max_length=100, verbose_name="designation")),
                (
                    "category",
                    models.CharField(
                        blank=True,
                        help_text="Checked against the allowed faculty categories of a semester",
                        max_length=50,
                        verbose_name="category",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="faculty_profile",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="user",
                    ),
                ),
            ],
            options={
                "verbose_name": "faculty",
                "verbose_name_plural": "faculty",
                "ordering": ["full_name"],
            },
        ),
        migrations.CreateModel(
            name="SemesterSelection",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("academic_year", models.CharField(max_length=7, verbose_name="academic year")),
                ("chosen_track", models.CharField(choices=[("internship", "Internship"), ("coursework", "Coursework")], max_length=20, verbose_name="chosen track")),
                ("finalized_track", models.CharField(blank=True, choices=[("internship", "Internship"), ("coursework", "Coursework")], max_length=20, verbose_name="finalized track")),
                (
                    "internship_outcome",
                    models.CharField(
                        choices=[
                            ("provisional", "Provisional"),
                            ("verified_pass", "Verified (pass)"),
                            ("verified_fail", "Verified (fail)"),
                            ("absent", "Absent"),
                        ],
                        default="provisional",
                        max_length=20,
                        verbose_name="internship outcome",
                    ),
                ),
                ("finalized_at", models.DateTimeField(blank=True, null=True, verbose_name="finalized at")),
                (
                    "auto_initialized",
                    models.BooleanField(
                        default=False,
                        help_text="Created by semester promotion rather than by the student",
                        verbose_name="auto-initialized",
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
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="semester_selections",
                        to="academics.student",
                        verbose_name="student",
                    ),
                ),
            ],
            options={
                "verbose_name": "semester selection",
                "verbose_name_plural": "semester selections",
                "ordering": ["student", "semester"],
                "constraints": [
                    models.UniqueConstraint(fields=("student", "semester"), name="unique_selection_per_semester"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InternshipApplication",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("academic_year", models.CharField(max_length=7, verbose_name="academic year")),
                ("type", models.CharField(choices=[("6month", "6-month internship"), ("summer", "Summer internship")], max_length=10, verbose_name="type")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("submitted", "Submitted"),
                            ("needs_info", "Needs information"),
                            ("pending_verification", "Pending verification"),
                            ("verified_pass", "Verified (pass)"),
                            ("verified_fail", "Verified (fail)"),
                            ("absent", "Absent"),
                        ],
                        default="submitted",
                        max_length=30,
                        verbose_name="status",
                    ),
                ),
                ("company", models.CharField(blank=True, max_length=200, verbose_name="company")),
                ("remarks", models.TextField(blank=True, verbose_name="remarks")),
                ("verified_at", models.DateTimeField(blank=True, null=True, verbose_name="verified at")),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="internship_applications",
                        to="academics.student",
                        verbose_name="student",
                    ),
                ),
                (
                    "verified_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="verified by",
                    ),
                ),
            ],
            options={
                "verbose_name": "internship application",
                "verbose_name_plural": "internship applications",
                "ordering": ["-created"],
                "indexes": [models.Index(fields=["status", "type"], name="application_status_type_idx")],
            },
        ),
    ]
