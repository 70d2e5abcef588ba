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
        ("groups", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=300, verbose_name="title")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("registered", "Registered"),
                            ("faculty_allocated", "Faculty allocated"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="registered",
                        max_length=50,
                        verbose_name="status",
                    ),
                ),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("academic_year", models.CharField(max_length=7, verbose_name="academic year")),
                (
                    "allocated_by",
                    models.CharField(
                        blank=True,
                        choices=[("faculty_choice", "Faculty choice"), ("admin_allocation", "Admin allocation")],
                        max_length=20,
                        verbose_name="allocated by",
                    ),
                ),
                ("allocated_at", models.DateTimeField(blank=True, null=True, verbose_name="allocated at")),
                (
                    "faculty",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="allocated_projects",
                        to="academics.faculty",
                        verbose_name="allocated faculty",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        help_text="Owner of a group project",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="projects",
                        to="groups.group",
                        verbose_name="group",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        blank=True,
                        help_text="Owner of a solo project",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="solo_projects",
                        to="academics.student",
                        verbose_name="student",
                    ),
                ),
            ],
            options={
                "verbose_name": "project",
                "verbose_name_plural": "projects",
                "ordering": ["-created"],
                "indexes": [
                    models.Index(fields=["semester", "academic_year", "status"], name="project_cohort_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("group__isnull", False), ("student__isnull", False), _negated=True),
                        name="project_owner_exclusive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="FacultyPreference",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("priority", models.PositiveSmallIntegerField(help_text="1 is the first choice", verbose_name="priority")),
                (
                    "passed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the faculty declined the project",
                        null=True,
                        verbose_name="passed at",
                    ),
                ),
                (
                    "faculty",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="preferences",
                        to="academics.faculty",
                        verbose_name="faculty",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="faculty_preferences",
                        to="projects.project",
                        verbose_name="project",
                    ),
                ),
            ],
            options={
                "verbose_name": "faculty preference",
                "verbose_name_plural": "faculty preferences",
                "ordering": ["project", "priority"],
                "constraints": [
                    models.UniqueConstraint(fields=("project", "faculty"), name="unique_faculty_per_project"),
                    models.UniqueConstraint(fields=("project", "priority"), name="unique_priority_per_project"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StudentProject",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("role", models.CharField(choices=[("leader", "Leader"), ("member", "Member"), ("solo", "Solo")], max_length=10, verbose_name="role")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("registered", "Registered"),
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="registered",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="student_entries",
                        to="projects.project",
                        verbose_name="project",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="current_projects",
                        to="academics.student",
                        verbose_name="student",
                    ),
                ),
            ],
            options={
                "verbose_name": "student project",
                "verbose_name_plural": "student projects",
                "ordering": ["student", "semester"],
                "constraints": [
                    models.UniqueConstraint(fields=("student", "project"), name="unique_student_project"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FacultyAllocationRecord",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("allocated", "Allocated"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "allocated_by",
                    models.CharField(
                        blank=True,
                        choices=[("faculty_choice", "Faculty choice"), ("admin_allocation", "Admin allocation")],
                        max_length=20,
                        verbose_name="allocated by",
                    ),
                ),
                ("allocated_at", models.DateTimeField(blank=True, null=True, verbose_name="allocated at")),
                ("semester", models.PositiveSmallIntegerField(verbose_name="semester")),
                ("academic_year", models.CharField(max_length=7, verbose_name="academic year")),
                (
                    "allocated_faculty",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="allocation_records",
                        to="academics.faculty",
                        verbose_name="allocated faculty",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="allocation_records",
                        to="groups.group",
                        verbose_name="group",
                    ),
                ),
                (
                    "project",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocation_record",
                        to="projects.project",
                        verbose_name="project",
                    ),
                ),
            ],
            options={
                "verbose_name": "faculty allocation record",
                "verbose_name_plural": "faculty allocation records",
                "ordering": ["-created"],
                "indexes": [
                    models.Index(fields=["status", "semester"], name="allocation_status_sem_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AllocationEvent",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("presented", "Presented"),
                            ("passed", "Passed"),
                            ("chosen", "Chosen"),
                            ("admin_allocated", "Admin allocated"),
                            ("reallocated", "Reallocated"),
                            ("cancelled", "Cancelled"),
                        ],
                        max_length=20,
                        verbose_name="action",
                    ),
                ),
                ("comments", models.TextField(blank=True, verbose_name="comments")),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="actor",
                    ),
                ),
                (
                    "faculty",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="academics.faculty",
                        verbose_name="faculty",
                    ),
                ),
                (
                    "previous_faculty",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="academics.faculty",
                        verbose_name="previous faculty",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocation_events",
                        to="projects.project",
                        verbose_name="project",
                    ),
                ),
            ],
            options={
                "verbose_name": "allocation event",
                "verbose_name_plural": "allocation events",
                "ordering": ["created"],
            },
        ),
    ]
