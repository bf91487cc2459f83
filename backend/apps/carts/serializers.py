from rest_framework import serializers


class CartProductSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.CharField()


class CartItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    product = CartProductSerializer()
    quantity = serializers.IntegerField()


class CartReadSerializer(serializers.Serializer):
    id = serializers.CharField()
    userId = serializers.IntegerField(source="user_id")
    createdAt = serializers.CharField(source="created_at")
    items = CartItemSerializer(many=True)


class CartItemAddSerializer(serializers.Serializer):
    productId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class CartItemQuantitySerializer(serializers.Serializer):
    # 0 removes the item
    quantity = serializers.IntegerField(min_value=0)


class GuestCartEntrySerializer(serializers.Serializer):
    productId = serializers.CharField(source="product_id", allow_null=True)
    quantity = serializers.JSONField(allow_null=True)


class GuestMergeRequestSerializer(serializers.Serializer):
    # Entries are validated one by one during the merge, not up front
    items = serializers.ListField(child=serializers.JSONField(), allow_empty=True)


class GuestMergeFailureSerializer(serializers.Serializer):
    position = serializers.IntegerField()
    entry = GuestCartEntrySerializer()
    code = serializers.CharField()
    message = serializers.CharField()
    details = serializers.JSONField(allow_null=True)


class GuestMergeReportSerializer(serializers.Serializer):
    complete = serializers.BooleanField()
    applied = CartItemSerializer(many=True)
    failed = GuestMergeFailureSerializer(allow_null=True)
    remaining = serializers.SerializerMethodField()

    def get_remaining(self, report):
        return report.remaining.to_raw()
