from django.contrib import admin

from .models import Item


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "price", "quantity", "low_stock_threshold", "sales", "revenue", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name", "description", "barcode")
    readonly_fields = ("sales", "revenue", "created_at", "updated_at")
