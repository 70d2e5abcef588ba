"""
Main API configuration for Django Ninja Extra.
All API controllers are automatically registered here.
"""

import importlib
import inspect
import logging

from ninja_extra import NinjaExtraAPI

from projectflow.core.api.base import BaseAPI

logger = logging.getLogger(__name__)

api = NinjaExtraAPI(
    title="ProjectFlow API",
    version="1.0.0",
    description="Group formation, faculty allocation and semester promotion",
    docs_url="/docs",
    openapi_url="/openapi.json",
)


def register_controllers_from_module(api_instance: NinjaExtraAPI, module_path: str) -> None:
    """
    Dynamically import and register API controllers from a module.

    Controllers must inherit from BaseAPI to be registered.
    """
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError:
        logger.debug("Module %s not found, skipping", module_path)
        return

    for attr_name in dir(module):
        attr = getattr(module, attr_name)
        if inspect.isclass(attr) and issubclass(attr, BaseAPI) and attr is not BaseAPI:
            logger.debug("Registering controller: %s.%s", module_path, attr_name)
            api_instance.register_controllers(attr)


# Apps exposing controllers from their `api` package
API_APPS = [
    "projectflow.academics",
    "projectflow.groups",
    "projectflow.projects",
    "projectflow.promotion",
]

for app in API_APPS:
    register_controllers_from_module(api, f"{app}.api")
