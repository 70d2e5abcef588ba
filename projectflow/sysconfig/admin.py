from django.contrib import admin

from .models import SystemConfig


@admin.register(SystemConfig)
class SystemConfigAdmin(admin.ModelAdmin):
    list_display = ["config_key", "config_value", "category", "is_active", "modified"]
    list_filter = ["category", "is_active"]
    search_fields = ["config_key", "description"]
    ordering = ["config_key"]
