import factory
from django.contrib.auth.models import Group as AuthGroup
from factory.django import DjangoModelFactory

from projectflow.core.roles import Role
from projectflow.users.models import User


class UserFactory(DjangoModelFactory):
    email = factory.Sequence(lambda n: f"user{n}@college.edu")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    password = factory.django.Password("testpass123")

    class Meta:
        model = User
        django_get_or_create = ["email"]

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        """Attach role groups: UserFactory(roles=[Role.ADMIN])."""
        if not create or not extracted:
            return
        for role in extracted:
            name = role.value if isinstance(role, Role) else role
            self.groups.add(AuthGroup.objects.get_or_create(name=name)[0])
