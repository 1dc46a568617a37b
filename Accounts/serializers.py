from rest_framework import serializers

from .models import Account


class AccountSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = Account
        fields = (
            "id", "username", "email", "name", "first_name", "last_name", "role",
            "phone_number", "hostel_room", "is_active", "total_purchases",
            "total_spent", "date_joined", "last_login",
        )
        read_only_fields = fields


class BulkAccountActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["activate", "deactivate", "delete"])
    account_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
