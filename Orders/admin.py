from django.contrib import admin

from .models import Order, OrderLine


class OrderLineInline(admin.TabularInline):
    model = OrderLine
    extra = 0
    readonly_fields = ("item", "item_name", "quantity", "unit_price", "cost_price", "line_total")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Read-mostly: status changes must go through Orders.services so stock stays consistent."""
    list_display = ("order_number", "customer_name", "total_amount", "status", "payment_status", "created_at")
    list_filter = ("status", "payment_status", "payment_method")
    search_fields = ("order_number", "customer_name")
    inlines = [OrderLineInline]
    readonly_fields = [f.name for f in Order._meta.fields]

    def has_add_permission(self, request):
        return False
