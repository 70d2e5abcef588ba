import uuid

import django.utils.timezone
import model_utils.fields
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SystemConfig",
            fields=[
                ("created", model_utils.fields.AutoCreatedField(default=django.utils.timezone.now, editable=False, verbose_name="created")),
                ("modified", model_utils.fields.AutoLastModifiedField(default=django.utils.timezone.now, editable=False, verbose_name="modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("config_key", models.CharField(max_length=150, unique=True, verbose_name="key")),
                ("config_value", models.JSONField(blank=True, null=True, verbose_name="value")),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("general", "General"),
                            ("academic", "Academic"),
                            ("groups", "Groups"),
                            ("allocation", "Allocation"),
                            ("promotion", "Promotion"),
                        ],
                        default="general",
                        max_length=20,
                        verbose_name="category",
                    ),
                ),
                ("description", models.TextField(blank=True, verbose_name="description")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
            ],
            options={
                "verbose_name": "system configuration",
                "verbose_name_plural": "system configuration",
                "ordering": ["config_key"],
            },
        ),
    ]
