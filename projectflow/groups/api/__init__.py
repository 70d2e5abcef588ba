from projectflow.groups.api.groups import GroupController

__all__ = ["GroupController"]
