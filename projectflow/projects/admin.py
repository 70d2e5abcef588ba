from django.contrib import admin

from .models import AllocationEvent, FacultyAllocationRecord, FacultyPreference, Project, StudentProject


class FacultyPreferenceInline(admin.TabularInline):
    model = FacultyPreference
    extra = 0
    ordering = ["priority"]


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ["title", "group", "student", "faculty", "status", "semester", "academic_year", "allocated_by"]
    list_filter = ["status", "semester", "academic_year", "allocated_by"]
    search_fields = ["title", "group__name", "student__mis_number", "faculty__full_name"]
    ordering = ["-created"]
    # Allocation goes through the workflow services so it is audited
    readonly_fields = ["faculty", "status", "allocated_by", "allocated_at"]
    inlines = [FacultyPreferenceInline]


@admin.register(StudentProject)
class StudentProjectAdmin(admin.ModelAdmin):
    list_display = ["student", "project", "semester", "role", "status"]
    list_filter = ["semester", "role", "status"]
    search_fields = ["student__mis_number", "project__title"]


@admin.register(FacultyAllocationRecord)
class FacultyAllocationRecordAdmin(admin.ModelAdmin):
    list_display = ["project", "group", "status", "allocated_faculty", "allocated_by", "allocated_at"]
    list_filter = ["status", "allocated_by", "semester"]
    search_fields = ["project__title", "group__name"]


@admin.register(AllocationEvent)
class AllocationEventAdmin(admin.ModelAdmin):
    list_display = ["project", "action", "faculty", "previous_faculty", "actor", "created"]
    list_filter = ["action"]
    search_fields = ["project__title"]

    def has_change_permission(self, request, obj=None):
        return False
