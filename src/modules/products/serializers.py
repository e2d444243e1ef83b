"""Product DRF serializers for API output."""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    inStock = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "category",
            "price",
            "image",
            "stock",
            "inStock",
            "status",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    def get_inStock(self, obj: Product) -> bool:
        return obj.stock > 0


class UpdateStockSerializer(serializers.Serializer):
    stock = serializers.IntegerField(min_value=0)
