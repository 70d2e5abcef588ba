from projectflow.core.api.base import BaseAPI
from projectflow.core.api.permissions import IsAdmin
from projectflow.core.api.permissions import IsAuthenticated
from projectflow.core.api.permissions import IsFaculty
from projectflow.core.api.permissions import IsStudent

__all__ = ["BaseAPI", "IsAuthenticated", "IsAdmin", "IsFaculty", "IsStudent"]
