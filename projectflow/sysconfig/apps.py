from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class SysconfigConfig(AppConfig):
    name = "projectflow.sysconfig"
    verbose_name = _("System Configuration")
