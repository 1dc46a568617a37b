import logging

import requests
from django.conf import settings
from rest_framework import serializers

from .models import Item

logger = logging.getLogger(__name__)


class ItemSerializer(serializers.ModelSerializer):
    stock_status = serializers.CharField(read_only=True)
    profit_margin = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Item
        fields = (
            "id", "name", "description", "category", "price", "cost_price", "quantity",
            "low_stock_threshold", "image_url", "barcode", "tags", "is_active", "sales",
            "revenue", "stock_status", "profit_margin", "created_by", "created_at", "updated_at",
        )
        read_only_fields = ("id", "is_active", "sales", "revenue", "created_by", "created_at", "updated_at")

    def validate(self, attrs):
        # initial stock is set on create; afterwards only restock/update-stock and orders move it
        if self.instance is not None and "quantity" in attrs:
            raise serializers.ValidationError({"quantity": "Use restock or update-stock to change stock"})
        return attrs

    def update(self, instance, validated_data):
        """Write only the edited columns so concurrent stock and sales updates survive."""
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save(update_fields=[*validated_data, "updated_at"])
        instance.refresh_from_db()
        return instance

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_tags(self, value):
        return [t.strip().lower() for t in value if t.strip()]

    def validate_barcode(self, value):
        # blank barcode is stored as NULL so the unique constraint ignores it
        if value is None:
            return None
        return value.strip() or None

    def validate_image_url(self, value):
        """
        Optional: verify the URL handed out by the media store is reachable.
        Only the URL is stored, the image itself is never downloaded.
        """
        if not value:
            return value
        validate = getattr(settings, "INVENTORY_VALIDATE_IMAGE_URL", False)
        if not validate:
            return value

        timeout = getattr(settings, "MEDIA_SERVICE_TIMEOUT", 5)
        try:
            r = requests.head(value, timeout=timeout, allow_redirects=True)
        except requests.RequestException as exc:
            logger.warning("media store unreachable for %s: %s", value, exc)
            raise serializers.ValidationError("Could not verify image URL with the media store (unavailable)")
        if r.status_code >= 400:
            raise serializers.ValidationError(f"Image URL not found in media store (HTTP {r.status_code})")
        return value


class StockUpdateSerializer(serializers.Serializer):
    stock = serializers.IntegerField(min_value=0, required=False)
    threshold = serializers.IntegerField(min_value=0, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("stock or threshold required")
        return attrs


class RestockSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
