import factory
from factory.django import DjangoModelFactory

from projectflow.academics.tests.factories import StudentFactory
from projectflow.groups.models import Group, GroupMember, GroupStatus, MemberRole, SemesterMembership


class GroupFactory(DjangoModelFactory):
    name = factory.Sequence(lambda n: f"Group {n}")
    leader = factory.SubFactory(StudentFactory)
    status = GroupStatus.FORMING
    min_members = 2
    max_members = 3
    semester = factory.LazyAttribute(lambda o: o.leader.semester)
    academic_year = factory.LazyAttribute(lambda o: o.leader.academic_year)

    class Meta:
        model = Group

    @factory.post_generation
    def with_leader(self, create, extracted, **kwargs):
        """Seat the leader as the first active member unless with_leader=False."""
        if not create or extracted is False:
            return
        add_member(self, self.leader, MemberRole.LEADER)


def add_member(group: Group, student, role: str = MemberRole.MEMBER) -> GroupMember:
    """Seat a student on the roster and the semester ledger of a group."""
    SemesterMembership.objects.create(student=student, group=group, semester=group.semester, role=role)
    return GroupMember.objects.create(group=group, student=student, role=role)


def make_group(status: str = GroupStatus.OPEN, size: int = 3, **kwargs) -> Group:
    """A group with `size` active members (leader included) in the given status."""
    group = GroupFactory(status=status, **kwargs)
    for _ in range(size - 1):
        add_member(group, StudentFactory(semester=group.semester, degree=group.leader.degree))
    return group
