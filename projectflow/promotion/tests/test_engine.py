"""
Tests for the semester promotion engine.
"""

import pytest
from django.utils import timezone

from projectflow.academics.models import (
    ApplicationStatus,
    InternshipApplication,
    InternshipOutcome,
    SemesterSelection,
    Student,
    Track,
)
from projectflow.academics.tests.factories import FacultyFactory, StudentFactory
from projectflow.groups.models import Group, GroupMember, GroupStatus, SemesterMembership
from projectflow.groups.tests.factories import make_group
from projectflow.projects.models import Project, ProjectStatus, StudentProject, StudentProjectRole, StudentProjectStatus
from projectflow.projects.tests.factories import ProjectFactory
from projectflow.promotion import engine
from projectflow.promotion.engine import PromotionRequest, promote_cohort


def semester_of(student) -> int:
    return Student.objects.values_list("semester", flat=True).get(pk=student.pk)


@pytest.fixture
def allocated_group(db):
    """A finalized Sem 5 group of five with a faculty and a registered project."""
    group = make_group(GroupStatus.FINALIZED, size=5, min_members=4, max_members=5)
    faculty = FacultyFactory()
    Group.objects.filter(pk=group.pk).update(allocated_faculty=faculty)
    project = ProjectFactory(group=group, semester=5, faculty=faculty, status=ProjectStatus.FACULTY_ALLOCATED)
    for member in group.active_members():
        StudentProject.objects.create(
            student=member.student,
            project=project,
            semester=5,
            role=StudentProjectRole.MEMBER,
            status=StudentProjectStatus.ACTIVE,
        )
    return Group.objects.get(pk=group.pk)


def track_student(outcome: str, track: str = Track.INTERNSHIP, **kwargs):
    """A Sem 7 student with a finalized track and, for internships, a reviewed application."""
    student = StudentFactory(semester=7, **kwargs)
    SemesterSelection.objects.create(
        student=student,
        semester=7,
        academic_year=student.academic_year,
        chosen_track=track,
        finalized_track=track,
        internship_outcome=outcome,
        finalized_at=timezone.now(),
    )
    if track == Track.INTERNSHIP:
        InternshipApplication.objects.create(
            student=student,
            semester=7,
            academic_year=student.academic_year,
            type="6month",
            status=outcome if outcome != InternshipOutcome.PROVISIONAL else ApplicationStatus.SUBMITTED,
        )
    return student


@pytest.mark.django_db
class TestScenarioD:
    """Sem 5 -> 6 carries the group forward and locks it."""

    def test_group_locked_and_members_carried(self, allocated_group):
        members = [m.student for m in allocated_group.active_members()]

        result = promote_cohort(PromotionRequest(from_semester=5, to_semester=6))

        assert result.committed
        assert sorted(result.promoted) == sorted(s.pk for s in members)
        assert result.groups_locked == [allocated_group.pk]
        assert result.errors == []

        group = Group.objects.get(pk=allocated_group.pk)
        assert group.status == GroupStatus.LOCKED
        assert group.semester == 5
        for student in members:
            assert semester_of(student) == 6
            active = SemesterMembership.objects.filter(student=student, is_active=True)
            assert [(m.semester, m.group_id) for m in active] == [(6, group.pk)]

    def test_projects_completed(self, allocated_group):
        promote_cohort(PromotionRequest(from_semester=5, to_semester=6))

        project = Project.objects.get(group=allocated_group)
        assert project.status == ProjectStatus.COMPLETED
        assert set(StudentProject.objects.values_list("status", flat=True)) == {StudentProjectStatus.COMPLETED}

    def test_new_cohort_year(self, allocated_group):
        promote_cohort(PromotionRequest(from_semester=5, to_semester=6, academic_year="2025-26"))
        assert set(Student.objects.values_list("academic_year", flat=True)) == {"2025-26"}

    def test_group_without_faculty_ineligible(self, allocated_group):
        Group.objects.filter(pk=allocated_group.pk).update(allocated_faculty=None)

        result = promote_cohort(PromotionRequest(from_semester=5, to_semester=6))

        assert result.promoted == []
        assert {i.code for i in result.ineligible} == {"NO_FACULTY"}
        assert Group.objects.get(pk=allocated_group.pk).status == GroupStatus.FINALIZED

    def test_ungrouped_student_ineligible(self, db):
        loner = StudentFactory(semester=5)
        result = promote_cohort(PromotionRequest(from_semester=5, to_semester=6))
        assert [(i.student_id, i.code) for i in result.ineligible] == [(loner.pk, "NO_GROUP")]
        assert semester_of(loner) == 5

    def test_open_group_ineligible(self, db):
        group = make_group(GroupStatus.OPEN, size=2)
        result = promote_cohort(PromotionRequest(from_semester=5, to_semester=6))
        assert {i.code for i in result.ineligible} == {"GROUP_NOT_FINALIZED"}
        assert semester_of(group.leader) == 5


@pytest.mark.django_db
class TestScenarioE:
    """Sem 7 -> 8 requires a verified internship."""

    def test_failed_internship_ineligible(self):
        s2 = track_student(InternshipOutcome.VERIFIED_FAIL)

        result = promote_cohort(PromotionRequest(from_semester=7, to_semester=8))

        assert result.promoted == []
        assert len(result.ineligible) == 1
        reason = result.ineligible[0]
        assert reason.student_id == s2.pk
        assert reason.code == "INTERNSHIP_NOT_VERIFIED"
        assert "verified_fail" in reason.message
        assert semester_of(s2) == 7
        assert not SemesterSelection.objects.filter(student=s2, semester=8).exists()

    def test_verified_internship_initializes_coursework(self):
        student = track_student(InternshipOutcome.VERIFIED_PASS)

        result = promote_cohort(PromotionRequest(from_semester=7, to_semester=8))

        assert result.promoted == [student.pk]
        assert semester_of(student) == 8
        selection = SemesterSelection.objects.get(student=student, semester=8)
        assert selection.finalized_track == Track.COURSEWORK
        assert selection.auto_initialized

    def test_coursework_track_promoted(self):
        student = track_student(InternshipOutcome.PROVISIONAL, track=Track.COURSEWORK)
        result = promote_cohort(PromotionRequest(from_semester=7, to_semester=8))
        assert result.promoted == [student.pk]
        assert not SemesterSelection.objects.filter(student=student, semester=8).exists()

    def test_unfinalized_track_ineligible(self):
        student = StudentFactory(semester=7)
        result = promote_cohort(PromotionRequest(from_semester=7, to_semester=8))
        assert [(i.student_id, i.code) for i in result.ineligible] == [(student.pk, "TRACK_NOT_FINALIZED")]

    def test_mtech_track_rule(self):
        student = track_student(InternshipOutcome.VERIFIED_PASS, degree="M.Tech")
        SemesterSelection.objects.filter(student=student).update(semester=3)
        InternshipApplication.objects.filter(student=student).update(semester=3)
        Student.objects.filter(pk=student.pk).update(semester=3)

        result = promote_cohort(PromotionRequest(from_semester=3, to_semester=4, degree="M.Tech"))

        assert result.promoted == [student.pk]
        assert not SemesterSelection.objects.filter(student=student, semester=4).exists()


@pytest.mark.django_db
class TestValidatePrerequisites:
    def test_any_ineligible_aborts_batch(self):
        passing = track_student(InternshipOutcome.VERIFIED_PASS)
        failing = track_student(InternshipOutcome.VERIFIED_FAIL)

        result = promote_cohort(PromotionRequest(from_semester=7, to_semester=8, validate_prerequisites=True))

        assert not result.committed
        assert result.eligible == [passing.pk]
        assert [i.student_id for i in result.ineligible] == [failing.pk]
        assert result.promoted == []
        assert semester_of(passing) == 7
        assert not SemesterSelection.objects.filter(semester=8).exists()

    def test_without_flag_eligible_students_proceed(self):
        passing = track_student(InternshipOutcome.VERIFIED_PASS)
        failing = track_student(InternshipOutcome.VERIFIED_FAIL)

        result = promote_cohort(PromotionRequest(from_semester=7, to_semester=8))

        assert result.committed
        assert result.promoted == [passing.pk]
        assert semester_of(passing) == 8
        assert semester_of(failing) == 7


@pytest.mark.django_db
class TestGenericTransition:
    def test_fully_promoted_group_disbanded(self):
        leader = StudentFactory(semester=3)
        group = make_group(GroupStatus.OPEN, size=2, leader=leader)

        result = promote_cohort(PromotionRequest(from_semester=3, to_semester=4))

        assert result.groups_disbanded == [group.pk]
        group = Group.objects.get(pk=group.pk)
        assert group.status == GroupStatus.DISBANDED
        assert not GroupMember.objects.filter(group=group, is_active=True).exists()

    def test_partial_batch_then_rerun(self):
        leader = StudentFactory(semester=3)
        group = make_group(GroupStatus.OPEN, size=2, leader=leader)
        other = group.active_members().exclude(student=leader).get().student

        first = promote_cohort(PromotionRequest(from_semester=3, to_semester=4, student_ids=[leader.pk]))
        assert first.promoted == [leader.pk]
        assert first.groups_disbanded == []
        assert Group.objects.get(pk=group.pk).status == GroupStatus.OPEN

        second = promote_cohort(
            PromotionRequest(from_semester=3, to_semester=4, student_ids=[leader.pk, other.pk])
        )
        assert second.promoted == [other.pk]
        assert second.ineligible == []
        assert second.groups_disbanded == [group.pk]

    def test_rerun_is_noop(self, allocated_group):
        promote_cohort(PromotionRequest(from_semester=5, to_semester=6))
        again = promote_cohort(PromotionRequest(from_semester=5, to_semester=6))

        assert again.promoted == []
        assert again.groups_locked == []
        assert again.errors == []
        assert SemesterMembership.objects.filter(semester=6, is_active=True).count() == 5

    def test_student_in_wrong_semester(self):
        student = StudentFactory(semester=2)
        result = promote_cohort(PromotionRequest(from_semester=3, to_semester=4, student_ids=[student.pk]))
        assert [(i.student_id, i.code) for i in result.ineligible] == [(student.pk, "WRONG_SEMESTER")]

    def test_degree_filter(self):
        btech = StudentFactory(semester=1)
        mtech = StudentFactory(semester=1, degree="M.Tech")
        result = promote_cohort(PromotionRequest(from_semester=1, to_semester=2, degree="M.Tech"))
        assert result.promoted == [mtech.pk]
        assert semester_of(btech) == 1


@pytest.mark.django_db
class TestBestEffort:
    """A failing unit is reported and the rest of the batch still runs."""

    def test_failing_student_skipped(self, monkeypatch):
        students = StudentFactory.create_batch(3, semester=3)
        broken = students[1]
        promote_student = engine._promote_student

        def flaky(student, request, rule):
            if student.pk == broken.pk:
                raise RuntimeError("database hiccup")
            return promote_student(student, request, rule)

        monkeypatch.setattr(engine, "_promote_student", flaky)

        result = promote_cohort(PromotionRequest(from_semester=3, to_semester=4))

        assert result.committed
        assert sorted(result.promoted) == sorted([students[0].pk, students[2].pk])
        assert result.errors == [{"student_id": str(broken.pk), "error": "database hiccup"}]
        assert semester_of(broken) == 3
        assert semester_of(students[0]) == semester_of(students[2]) == 4

    def test_failing_group_skipped(self, monkeypatch):
        stuck = make_group(GroupStatus.OPEN, size=2, leader=StudentFactory(semester=3))
        settled = make_group(GroupStatus.OPEN, size=2, leader=StudentFactory(semester=3))
        settle_group = engine._settle_group

        def flaky(group_id, from_semester, rule, result):
            if group_id == stuck.pk:
                raise RuntimeError("lock timeout")
            return settle_group(group_id, from_semester, rule, result)

        monkeypatch.setattr(engine, "_settle_group", flaky)

        result = promote_cohort(PromotionRequest(from_semester=3, to_semester=4))

        assert result.committed
        assert len(result.promoted) == 4
        assert result.groups_disbanded == [settled.pk]
        assert result.errors == [{"group_id": str(stuck.pk), "error": "lock timeout"}]
        assert Group.objects.get(pk=stuck.pk).status == GroupStatus.OPEN
        assert Group.objects.get(pk=settled.pk).status == GroupStatus.DISBANDED
