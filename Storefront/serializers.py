from rest_framework import serializers

from .models import SiteStatus


class SiteStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteStatus
        fields = ("is_temporarily_closed", "last_updated", "reason")
        read_only_fields = fields


class SiteStatusHistorySerializer(serializers.ModelSerializer):
    updated_by = serializers.SerializerMethodField()

    class Meta:
        model = SiteStatus
        fields = ("id", "is_temporarily_closed", "reason", "last_updated", "updated_by")
        read_only_fields = fields

    def get_updated_by(self, obj):
        if obj.updated_by is None:
            return None
        return {"id": obj.updated_by_id, "name": obj.updated_by.display_name, "email": obj.updated_by.email}


class SiteStatusUpdateSerializer(serializers.Serializer):
    is_temporarily_closed = serializers.BooleanField()
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")

    def to_internal_value(self, data):
        # strict boolean; "false" or 0 would otherwise be coerced
        value = data.get("is_temporarily_closed") if hasattr(data, "get") else None
        if not isinstance(value, bool):
            raise serializers.ValidationError({"is_temporarily_closed": "Must be a boolean"})
        return super().to_internal_value(data)
