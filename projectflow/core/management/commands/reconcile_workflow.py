"""
Repair broken group, membership and project references.

Usage:
    python manage.py reconcile_workflow
    python manage.py reconcile_workflow --dry-run  # Report without writing
"""

from django.core.management.base import BaseCommand

from projectflow.groups.reconcile import reconcile_references


class Command(BaseCommand):
    help = "Repair dangling references between groups, memberships and projects"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report repairs and roll them back",
        )

    def handle(self, *args, **options):
        counts = reconcile_references(dry_run=options["dry_run"])
        for kind, count in counts.items():
            self.stdout.write(f"  {kind}: {count}")

        total = sum(counts.values())
        if options["dry_run"]:
            self.stdout.write(self.style.WARNING(f"\n{total} repair(s) found (dry run, nothing written)"))
        else:
            self.stdout.write(self.style.SUCCESS(f"\n{total} repair(s) applied"))
