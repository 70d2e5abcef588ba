"""
Project API controllers.

- ProjectController: registration and preferences (/api/projects/)
- AllocationController: faculty queue, claims, admin allocation (/api/allocation/)
"""

from projectflow.projects.api.projects import AllocationController, ProjectController

__all__ = [
    "ProjectController",
    "AllocationController",
]
