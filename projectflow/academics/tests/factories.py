import factory
from factory.django import DjangoModelFactory

from projectflow.academics.models import Degree, Faculty, Student
from projectflow.core.roles import Role
from projectflow.users.tests.factories import UserFactory


class StudentFactory(DjangoModelFactory):
    user = factory.SubFactory(UserFactory, roles=[Role.STUDENT])
    full_name = factory.LazyAttribute(lambda o: o.user.get_full_name())
    mis_number = factory.Sequence(lambda n: f"MIS{n:06d}")
    branch = "Computer Engineering"
    degree = Degree.BTECH
    semester = 5
    academic_year = "2024-25"

    class Meta:
        model = Student


class FacultyFactory(DjangoModelFactory):
    user = factory.SubFactory(UserFactory, roles=[Role.FACULTY])
    full_name = factory.LazyAttribute(lambda o: o.user.get_full_name())
    department = "Computer Engineering"
    designation = "Assistant Professor"
    category = "regular"

    class Meta:
        model = Faculty
