from decimal import Decimal
from rest_framework import serializers
from feedtrade.catalog.models import FeedType
from feedtrade.locations.models import Warehouse
from .models import InventoryMovement


class InventorySummarySerializer(serializers.Serializer):
    inventory_id = serializers.IntegerField()
    warehouse_id = serializers.IntegerField()
    feed_type_id = serializers.IntegerField()
    warehouse_name = serializers.CharField()
    feed_type_name = serializers.CharField()
    quantity_kg = serializers.DecimalField(max_digits=14, decimal_places=2)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_value = serializers.DecimalField(max_digits=20, decimal_places=2)
    last_updated = serializers.DateTimeField(allow_null=True)


class InventoryMovementSerializer(serializers.ModelSerializer):
    warehouse_name = serializers.CharField(source='inventory.warehouse.name', read_only=True)
    feed_type_name = serializers.CharField(source='inventory.feed_type.name', read_only=True)

    class Meta:
        model = InventoryMovement
        fields = [
            'id', 'inventory', 'warehouse_name', 'feed_type_name', 'movement_type',
            'quantity_change', 'unit_cost', 'reference_type', 'reference_id', 'notes', 'created_at'
        ]
        read_only_fields = fields


class AdjustmentSerializer(serializers.Serializer):
    """Manual stock correction"""
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    feed_type = serializers.PrimaryKeyRelatedField(queryset=FeedType.objects.all())
    quantity_change = serializers.DecimalField(max_digits=14, decimal_places=2)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'), required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_quantity_change(self, value):
        if value == 0:
            raise serializers.ValidationError('Quantity change cannot be zero')
        return value
