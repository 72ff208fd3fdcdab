from decimal import Decimal
from rest_framework import serializers
from .models import Purchase


class PurchaseSerializer(serializers.ModelSerializer):
    contact_name = serializers.CharField(source='contact.name', read_only=True)
    feed_type_name = serializers.CharField(source='feed_type.name', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    total_amount = serializers.DecimalField(max_digits=20, decimal_places=2, read_only=True)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))

    class Meta:
        model = Purchase
        fields = [
            'id', 'purchase_no', 'contact', 'contact_name', 'feed_type', 'feed_type_name',
            'warehouse', 'warehouse_name', 'quantity', 'unit', 'unit_price', 'total_amount',
            'status', 'purchase_date', 'due_date', 'pricing_model', 'season', 'notes',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['purchase_no', 'created_at', 'updated_at']
