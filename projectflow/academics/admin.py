from django.contrib import admin

from .models import Faculty, InternshipApplication, SemesterSelection, Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ["mis_number", "full_name", "degree", "branch", "semester", "academic_year"]
    list_filter = ["degree", "semester", "academic_year"]
    search_fields = ["mis_number", "full_name", "user__email"]
    ordering = ["mis_number"]


@admin.register(Faculty)
class FacultyAdmin(admin.ModelAdmin):
    list_display = ["full_name", "department", "designation", "category"]
    list_filter = ["department", "category"]
    search_fields = ["full_name", "user__email"]


@admin.register(SemesterSelection)
class SemesterSelectionAdmin(admin.ModelAdmin):
    list_display = ["student", "semester", "chosen_track", "finalized_track", "internship_outcome"]
    list_filter = ["semester", "finalized_track", "internship_outcome"]
    search_fields = ["student__mis_number", "student__full_name"]


@admin.register(InternshipApplication)
class InternshipApplicationAdmin(admin.ModelAdmin):
    list_display = ["student", "semester", "type", "status", "verified_at"]
    list_filter = ["type", "status", "semester"]
    search_fields = ["student__mis_number", "company"]
