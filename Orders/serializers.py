from rest_framework import serializers

from .models import Order, OrderLine


class OrderLineSerializer(serializers.ModelSerializer):
    item_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderLine
        fields = ("item_id", "item_name", "quantity", "unit_price", "line_total")
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    order_id = serializers.CharField(source="order_number", read_only=True)
    lines = OrderLineSerializer(many=True, read_only=True)
    total_items = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = (
            "id", "order_id", "customer", "customer_name", "created_by", "lines", "total_items",
            "subtotal", "discount_percentage", "discount_amount", "tax_percentage", "tax_amount",
            "total_amount", "total_cost", "profit", "refund_amount", "status", "payment_method",
            "payment_status", "notes", "location", "cancellation_reason", "refund_reason",
            "created_at", "updated_at", "completed_at", "cancelled_at",
        )
        read_only_fields = fields


class CustomerOrderSerializer(OrderSerializer):
    """Order as shown to customers: no cost or profit figures."""

    class Meta(OrderSerializer.Meta):
        fields = tuple(f for f in OrderSerializer.Meta.fields if f not in ("total_cost", "profit"))
        read_only_fields = fields


# ---- request bodies ----

class RequestedLineSerializer(serializers.Serializer):
    item = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class LocationSerializer(serializers.Serializer):
    room = serializers.CharField(max_length=50, required=False, allow_blank=True)
    hostel = serializers.CharField(max_length=100, required=False, allow_blank=True)
    building = serializers.CharField(max_length=100, required=False, allow_blank=True)


class PlaceOrderSerializer(serializers.Serializer):
    """
    Body: {"lines": [{"item": 3, "quantity": 2}], "payment_method": "cash",
           "notes": "", "location": {"room": "12"}, "customer": 7, "discount_percentage": 0}
    Any price or name sent with a line is dropped; prices come from the catalog.
    """
    lines = RequestedLineSerializer(many=True, allow_empty=False)
    customer = serializers.IntegerField(required=False, min_value=1)
    payment_method = serializers.ChoiceField(choices=Order.PaymentMethod.choices, default=Order.PaymentMethod.CASH)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    location = LocationSerializer(required=False)
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, default=0
    )


class StatusChangeSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")


class RefundSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(max_length=200)
