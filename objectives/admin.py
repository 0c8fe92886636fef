from django.contrib import admin

from .models import ApprovalHistoryEntry, Contributor, KeyResult, Objective, ProgressHistoryEntry


class ReadOnlyAdminMixin:
    """Changes to these rows go through ObjectiveLifecycle so history and progress stay in step."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class KeyResultInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = KeyResult
    extra = 0
    fields = ("description", "metric_type", "start_value", "target_value", "current_value", "unit", "confidence")


class ContributorInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = Contributor
    extra = 0


@admin.register(Objective)
class ObjectiveAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("title", "company_id", "level", "period", "owner_id", "progress", "status", "approval_status", "due_date")
    list_filter = ("level", "status", "approval_status", "period")
    search_fields = ("title", "description")
    inlines = [KeyResultInline, ContributorInline]


@admin.register(KeyResult)
class KeyResultAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("description", "objective", "metric_type", "start_value", "target_value", "current_value", "confidence")
    list_filter = ("metric_type", "confidence", "status")
    search_fields = ("description", "objective__title")


@admin.register(ProgressHistoryEntry)
class ProgressHistoryEntryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("objective", "key_result", "previous_value", "new_value", "changed_by", "created_at")
    search_fields = ("objective__title",)


@admin.register(ApprovalHistoryEntry)
class ApprovalHistoryEntryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("objective", "action", "from_status", "to_status", "actor_id", "created_at")
    list_filter = ("action",)
    search_fields = ("objective__title", "comment")
