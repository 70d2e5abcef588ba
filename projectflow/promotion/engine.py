"""
Semester promotion engine.

Moves a cohort from one semester to the next in three phases:

1. Validation: every selected student is checked against the rule for
   (degree, from, to). With `validate_prerequisites` a single ineligible
   student aborts the batch before anything is written.
2. Students: each eligible student is promoted in its own transaction.
3. Groups: once every student is done, each affected group is locked
   (carry-forward), disbanded, or has its status recomputed.

A failing unit is logged and reported in `errors`; it never stops the
batch. All writes set absolute values, so re-running a batch after a
partial failure is safe.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from projectflow.academics.models import (
    ApplicationStatus,
    InternshipApplication,
    InternshipOutcome,
    SemesterSelection,
    Student,
    Track,
)
from projectflow.core import events
from projectflow.groups.models import (
    FROZEN_STATUSES,
    TERMINAL_STATUSES,
    Group,
    GroupMember,
    GroupStatus,
    SemesterMembership,
)
from projectflow.groups.services import apply_disband, recompute_status
from projectflow.projects.models import (
    TERMINAL_PROJECT_STATUSES,
    Project,
    ProjectStatus,
    StudentProject,
    StudentProjectStatus,
)
from projectflow.promotion.rules import PromotionRule, get_rule

logger = logging.getLogger(__name__)


@dataclass
class PromotionRequest:
    from_semester: int
    to_semester: int
    student_ids: list[UUID] | None = None
    degree: str | None = None
    validate_prerequisites: bool = False
    academic_year: str | None = None


@dataclass
class Ineligibility:
    student_id: UUID
    code: str
    message: str


@dataclass
class PromotionResult:
    """Outcome of a promotion batch."""

    eligible: list[UUID] = field(default_factory=list)
    ineligible: list[Ineligibility] = field(default_factory=list)
    promoted: list[UUID] = field(default_factory=list)
    groups_locked: list[UUID] = field(default_factory=list)
    groups_disbanded: list[UUID] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)
    # False when validation aborted the batch before any write
    committed: bool = False


# Validation


def _check_group_project(student: Student, from_semester: int) -> Ineligibility | None:
    membership = (
        SemesterMembership.objects.filter(student=student, semester=from_semester, is_active=True)
        .select_related("group")
        .first()
    )
    if membership is None:
        return Ineligibility(student.pk, "NO_GROUP", f"No active group for semester {from_semester}.")

    group = membership.group
    if group.status != GroupStatus.FINALIZED:
        return Ineligibility(
            student.pk,
            "GROUP_NOT_FINALIZED",
            f"Group '{group.name}' is {group.status}, not finalized.",
        )
    if group.allocated_faculty_id is None:
        return Ineligibility(student.pk, "NO_FACULTY", f"Group '{group.name}' has no allocated faculty.")

    has_project = (
        Project.objects.filter(group=group, semester=from_semester)
        .exclude(status=ProjectStatus.CANCELLED)
        .exists()
    )
    if not has_project:
        return Ineligibility(
            student.pk,
            "NO_PROJECT",
            f"Group '{group.name}' has no project for semester {from_semester}.",
        )
    return None


def _check_track(student: Student, from_semester: int) -> Ineligibility | None:
    selection = student.get_semester_selection(from_semester)
    if selection is None or not selection.is_finalized:
        return Ineligibility(
            student.pk,
            "TRACK_NOT_FINALIZED",
            f"No finalized track selection for semester {from_semester}.",
        )
    if selection.finalized_track != Track.INTERNSHIP:
        return None

    verified = InternshipApplication.objects.filter(
        student=student,
        semester=from_semester,
        status=ApplicationStatus.VERIFIED_PASS,
    ).exists()
    if not verified:
        return Ineligibility(
            student.pk,
            "INTERNSHIP_NOT_VERIFIED",
            f"Internship for semester {from_semester} is not verified as passed "
            f"(outcome: {selection.internship_outcome}).",
        )
    return None


def check_eligibility(student: Student, rule: PromotionRule, from_semester: int) -> Ineligibility | None:
    """Return the first unmet prerequisite of `rule`, or None."""
    if student.semester != from_semester:
        return Ineligibility(
            student.pk,
            "WRONG_SEMESTER",
            f"Student is in semester {student.semester}, not {from_semester}.",
        )
    if rule.requires_group_project:
        return _check_group_project(student, from_semester)
    if rule.requires_track:
        return _check_track(student, from_semester)
    return None


# Side effects


def _promote_student(student: Student, request: PromotionRequest, rule: PromotionRule) -> list[UUID]:
    """
    Promote one student. Runs inside the caller's transaction.

    Returns the ids of the groups the student left behind.
    """
    from_semester, to_semester = request.from_semester, request.to_semester
    now = timezone.now()

    # 1. Previous-semester projects and current-project entries are completed
    Project.objects.filter(
        Q(student=student) | Q(student_entries__student=student),
        semester=from_semester,
    ).exclude(status__in=TERMINAL_PROJECT_STATUSES).update(status=ProjectStatus.COMPLETED, modified=now)
    StudentProject.objects.filter(student=student, semester=from_semester).exclude(
        status__in=[StudentProjectStatus.COMPLETED, StudentProjectStatus.CANCELLED]
    ).update(status=StudentProjectStatus.COMPLETED, modified=now)

    # 2. Previous-semester memberships are deactivated
    previous = list(
        SemesterMembership.objects.filter(student=student, semester=from_semester, is_active=True).select_related(
            "group"
        )
    )
    SemesterMembership.objects.filter(pk__in=[m.pk for m in previous]).update(is_active=False, modified=now)
    group_ids = [m.group_id for m in previous]

    # 3. Carry-forward keeps the same group for the new semester
    if rule.carry_forward:
        for membership in previous:
            if membership.group.status not in FROZEN_STATUSES:
                continue
            already = SemesterMembership.objects.filter(
                student=student,
                semester=to_semester,
                is_active=True,
            ).exists()
            if not already:
                SemesterMembership.objects.create(
                    student=student,
                    group=membership.group,
                    semester=to_semester,
                    role=membership.role,
                    joined_at=now,
                )

    # 4. Semester (and cohort) move forward
    updates = {"semester": to_semester, "modified": now}
    if request.academic_year:
        updates["academic_year"] = request.academic_year
    Student.objects.filter(pk=student.pk).update(**updates)

    # 5. Coursework is initialized after a verified internship
    if rule.auto_initialize_track:
        selection = student.get_semester_selection(from_semester)
        if selection is not None and selection.internship_outcome == InternshipOutcome.VERIFIED_PASS:
            _selection, created = SemesterSelection.objects.get_or_create(
                student=student,
                semester=to_semester,
                defaults={
                    "academic_year": request.academic_year or student.academic_year,
                    "chosen_track": Track.COURSEWORK,
                    "finalized_track": Track.COURSEWORK,
                    "finalized_at": now,
                    "auto_initialized": True,
                },
            )
            if created:
                logger.info("PROMOTION: coursework initialized for %s in semester %d", student, to_semester)

    return group_ids


def _affected_groups(request: PromotionRequest, promoted_ids: list[UUID], touched_ids: set[UUID]) -> list[UUID]:
    """
    Groups of the from-semester that still need a decision.

    Includes groups whose members were promoted by an earlier run of the
    same batch, so a re-run finishes what a partial run left behind.
    """
    members_moved = GroupMember.objects.filter(is_active=True).filter(
        Q(student_id__in=promoted_ids) | Q(student__semester__gte=request.to_semester)
    )
    groups = (
        Group.objects.filter(semester=request.from_semester)
        .exclude(status__in=TERMINAL_STATUSES)
        .filter(Q(pk__in=touched_ids) | Q(pk__in=members_moved.values("group_id")))
    )
    return list(groups.values_list("pk", flat=True).distinct())


def _settle_group(group_id: UUID, from_semester: int, rule: PromotionRule, result: PromotionResult) -> None:
    """Lock, disband or recompute a group once its members are processed."""
    group = Group.objects.select_for_update().get(pk=group_id)
    if group.status in TERMINAL_STATUSES:
        return

    active = list(group.active_members().select_related("student"))
    all_past = bool(active) and all(m.student.semester > group.semester for m in active)

    if rule.carry_forward and group.status == GroupStatus.FINALIZED:
        if all_past:
            group.lock()
            group.save()
            result.groups_locked.append(group.pk)
            events.publish(events.GROUP_LOCKED, group_id=str(group.pk), semester=from_semester)
            logger.info("AUTO-TRANSITION: Group '%s' locked for semester %d", group.name, group.semester)
        return

    if all_past:
        apply_disband(group)
        result.groups_disbanded.append(group.pk)
    else:
        recompute_status(group)
        if group.status == GroupStatus.DISBANDED:
            result.groups_disbanded.append(group.pk)


def promote_cohort(request: PromotionRequest) -> PromotionResult:
    """Run a promotion batch. See the module docstring for the phases."""
    result = PromotionResult()

    students = Student.objects.filter(semester=request.from_semester)
    if request.student_ids is not None:
        students = Student.objects.filter(pk__in=request.student_ids)
    if request.degree:
        students = students.filter(degree=request.degree)
    students = list(students.order_by("mis_number"))

    logger.info(
        "PROMOTION: semester %d -> %d, %d student(s) selected",
        request.from_semester,
        request.to_semester,
        len(students),
    )

    # Phase 1: validation
    eligible = []
    for student in students:
        if student.semester == request.to_semester:
            # Promoted by an earlier run of this batch
            continue
        rule = get_rule(student.degree, request.from_semester, request.to_semester)
        reason = check_eligibility(student, rule, request.from_semester)
        if reason is None:
            eligible.append((student, rule))
            result.eligible.append(student.pk)
        else:
            result.ineligible.append(reason)

    if request.validate_prerequisites and result.ineligible:
        logger.warning(
            "PROMOTION: aborted, %d of %d student(s) ineligible",
            len(result.ineligible),
            len(students),
        )
        return result

    # Phase 2: students
    result.committed = True
    touched_groups: dict[UUID, PromotionRule] = {}
    for student, rule in eligible:
        try:
            with transaction.atomic():
                for group_id in _promote_student(student, request, rule):
                    touched_groups[group_id] = rule
            result.promoted.append(student.pk)
        except Exception as exc:
            logger.exception("PROMOTION: student %s skipped", student.pk)
            result.errors.append({"student_id": str(student.pk), "error": str(exc)})

    # Phase 3: groups
    for group_id in _affected_groups(request, result.promoted, set(touched_groups)):
        rule = touched_groups.get(group_id) or _rule_for_group(group_id, request)
        try:
            with transaction.atomic():
                _settle_group(group_id, request.from_semester, rule, result)
        except Exception as exc:
            logger.exception("PROMOTION: group %s skipped", group_id)
            result.errors.append({"group_id": str(group_id), "error": str(exc)})

    events.publish(
        events.PROMOTION_COMPLETED,
        from_semester=request.from_semester,
        to_semester=request.to_semester,
        promoted=len(result.promoted),
        errors=len(result.errors),
    )
    logger.info(
        "PROMOTION: semester %d -> %d done: %d promoted, %d ineligible, %d locked, %d disbanded, %d error(s)",
        request.from_semester,
        request.to_semester,
        len(result.promoted),
        len(result.ineligible),
        len(result.groups_locked),
        len(result.groups_disbanded),
        len(result.errors),
    )
    return result


def _rule_for_group(group_id: UUID, request: PromotionRequest) -> PromotionRule:
    leader_degree = Group.objects.filter(pk=group_id).values_list("leader__degree", flat=True).first()
    return get_rule(leader_degree, request.from_semester, request.to_semester)
