from django.contrib import admin

from .models import SiteStatus


@admin.register(SiteStatus)
class SiteStatusAdmin(admin.ModelAdmin):
    list_display = ("last_updated", "is_temporarily_closed", "reason", "updated_by")
    list_filter = ("is_temporarily_closed",)
    readonly_fields = ("last_updated",)
