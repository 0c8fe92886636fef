from django.contrib import admin

from .models import CompanySubscription


@admin.register(CompanySubscription)
class CompanySubscriptionAdmin(admin.ModelAdmin):
    list_display = ("company_id", "tier", "created_at", "updated_at")
    list_filter = ("tier",)
    search_fields = ("company_id",)
    readonly_fields = ("created_at", "updated_at")
