from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import Account


@admin.register(Account)
class AccountAdmin(UserAdmin):
    list_display = ("username", "email", "role", "total_purchases", "total_spent", "is_active")
    list_filter = ("role", "is_active")
    readonly_fields = ("total_purchases", "total_spent")
    fieldsets = UserAdmin.fieldsets + (
        ("Shop", {"fields": ("role", "phone_number", "hostel_room", "total_purchases", "total_spent")}),
    )
