from django.contrib import admin

from .models import Group, GroupInvitation, GroupMember, SemesterMembership


class GroupMemberInline(admin.TabularInline):
    model = GroupMember
    extra = 0
    fields = ["student", "role", "is_active", "joined_at", "left_at"]
    readonly_fields = ["joined_at", "left_at"]


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ["name", "leader", "status", "semester", "academic_year", "member_count", "created"]
    list_filter = ["status", "semester", "academic_year"]
    search_fields = ["name", "leader__full_name", "leader__mis_number"]
    ordering = ["-created"]
    # Status changes go through the workflow services
    readonly_fields = ["status", "finalized_at", "locked_at", "disbanded_at"]
    inlines = [GroupMemberInline]

    def member_count(self, obj):
        return obj.members.filter(is_active=True).count()
    member_count.short_description = "Members"


@admin.register(SemesterMembership)
class SemesterMembershipAdmin(admin.ModelAdmin):
    list_display = ["student", "group", "semester", "role", "is_active", "joined_at"]
    list_filter = ["semester", "role", "is_active"]
    search_fields = ["student__mis_number", "student__full_name", "group__name"]


@admin.register(GroupInvitation)
class GroupInvitationAdmin(admin.ModelAdmin):
    list_display = ["group", "invitee", "invited_by", "status", "rejection_reason", "created"]
    list_filter = ["status", "rejection_reason"]
    search_fields = ["group__name", "invitee__mis_number", "invited_by__mis_number"]
    ordering = ["-created"]
