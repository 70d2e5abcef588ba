"""
Consistency repair for group, membership and project references.

Every repair is idempotent and logged at WARNING. Meant to run
periodically (Celery beat) or by hand (`manage.py reconcile_workflow`).
"""

import logging

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from projectflow.groups.models import (
    TERMINAL_STATUSES,
    Group,
    GroupMember,
    GroupStatus,
    MemberRole,
    SemesterMembership,
)
from projectflow.groups.services import apply_disband
from projectflow.projects.models import Project, ProjectStatus

logger = logging.getLogger(__name__)


def _clear_dangling_projects() -> int:
    """Null Group.project where the project is cancelled or owned elsewhere."""
    dangling = Group.objects.filter(project__isnull=False).filter(
        Q(project__status=ProjectStatus.CANCELLED) | ~Q(project__group_id=F("pk"))
    )
    count = 0
    for group in dangling:
        logger.warning("RECONCILE: Group '%s' pointed at foreign project %s", group.name, group.project_id)
        count += 1
    if count:
        dangling.update(project=None, modified=timezone.now())
    return count


def _repair_leaders() -> int:
    """Give every live group an active-member leader, or disband it if empty."""
    repaired = 0
    for group_id in Group.objects.exclude(status__in=TERMINAL_STATUSES).values_list("pk", flat=True):
        group = Group.objects.select_for_update().get(pk=group_id)
        if group.leader_id and group.active_members().filter(student_id=group.leader_id).exists():
            continue

        successor = group.active_members().first()
        if successor is None:
            logger.warning("RECONCILE: Group '%s' has no active members, disbanding", group.name)
            apply_disband(group)
        else:
            logger.warning(
                "RECONCILE: Group '%s' leader %s is not an active member, promoting %s",
                group.name,
                group.leader_id,
                successor.student_id,
            )
            GroupMember.objects.filter(pk=successor.pk).update(role=MemberRole.LEADER)
            SemesterMembership.objects.filter(
                group=group, student_id=successor.student_id, is_active=True
            ).update(role=MemberRole.LEADER)
            Group.objects.filter(pk=group.pk).update(leader_id=successor.student_id, modified=timezone.now())
        repaired += 1
    return repaired


def _release_disbanded_memberships() -> int:
    now = timezone.now()
    ledger = SemesterMembership.objects.filter(is_active=True, group__status=GroupStatus.DISBANDED)
    roster = GroupMember.objects.filter(is_active=True, group__status=GroupStatus.DISBANDED)
    count = ledger.update(is_active=False, modified=now)
    count += roster.update(is_active=False, left_at=now, modified=now)
    if count:
        logger.warning("RECONCILE: %d membership(s) of disbanded groups deactivated", count)
    return count


def _delete_orphan_projects() -> int:
    orphans = list(Project.objects.filter(student__isnull=True, group__isnull=True))
    for project in orphans:
        logger.warning("RECONCILE: Project '%s' has no owner, deleting", project.title)
        project.delete()
    return len(orphans)


def reconcile_references(dry_run: bool = False) -> dict[str, int]:
    """
    Repair broken references in one transaction.

    With `dry_run` the repairs are computed and logged, then rolled back.
    Returns the number of repairs per kind.
    """
    with transaction.atomic():
        counts = {
            "dangling_projects": _clear_dangling_projects(),
            "leaders": _repair_leaders(),
            "disbanded_memberships": _release_disbanded_memberships(),
            "orphan_projects": _delete_orphan_projects(),
        }
        if dry_run:
            transaction.set_rollback(True)

    logger.info("RECONCILE: %s%s", counts, " (dry run)" if dry_run else "")
    return counts
