from rest_framework import serializers

from .models import ProductTag
from .query import SORT_KEYS


class CategorySerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField()
    slug = serializers.CharField(read_only=True)

    def to_representation(self, instance):
        # Support dataclass DTO or dict
        if instance is None:
            return None
        if hasattr(instance, "__dataclass_fields__"):
            return {
                "id": getattr(instance, "id"),
                "name": getattr(instance, "name"),
                "slug": getattr(instance, "slug"),
            }
        return super().to_representation(instance)


class ProductReadSerializer(serializers.Serializer):
    # Matches ProductDTO shapes used for responses
    id = serializers.UUIDField()
    name = serializers.CharField()
    slug = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    price = serializers.CharField()
    stock = serializers.IntegerField()
    imageUrl = serializers.CharField(allow_null=True)
    tag = serializers.CharField(allow_null=True)
    category = CategorySerializer(allow_null=True)
    createdAt = serializers.CharField()
    updatedAt = serializers.CharField()

    def to_representation(self, instance):
        if instance is None:
            return None
        if hasattr(instance, "__dataclass_fields__"):
            category = getattr(instance, "category")
            return {
                "id": getattr(instance, "id"),
                "name": getattr(instance, "name"),
                "slug": getattr(instance, "slug"),
                "description": getattr(instance, "description"),
                "price": getattr(instance, "price"),
                "stock": getattr(instance, "stock"),
                "imageUrl": getattr(instance, "image_url"),
                "tag": getattr(instance, "tag"),
                "category": CategorySerializer(category).data if category else None,
                "createdAt": getattr(instance, "created_at"),
                "updatedAt": getattr(instance, "updated_at"),
            }
        return super().to_representation(instance)


class ProductPageSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    perPage = serializers.IntegerField(source="per_page")
    total = serializers.IntegerField()
    items = ProductReadSerializer(many=True)


class ProductWriteSerializer(serializers.Serializer):
    # 'id' and 'slug' are server-assigned and MUST NOT be provided by clients.
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    description = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    stock = serializers.IntegerField(required=False, min_value=0)
    imageUrl = serializers.URLField(
        source="image_url", required=False, allow_blank=True, allow_null=True
    )
    tag = serializers.ChoiceField(
        choices=ProductTag.choices, required=False, allow_null=True
    )
    # Free text, resolved (or created) by name or slug
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)


class ProductListQuerySerializer(serializers.Serializer):
    """Documents the listing parameters. Values are normalized, never rejected."""

    search = serializers.CharField(required=False)
    category = serializers.CharField(required=False)
    sort = serializers.ChoiceField(choices=SORT_KEYS, required=False)
    page = serializers.IntegerField(required=False)
    perPage = serializers.IntegerField(required=False)
