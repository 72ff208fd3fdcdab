from decimal import Decimal
from rest_framework import serializers
from .models import Sale


class SaleSerializer(serializers.ModelSerializer):
    contact_name = serializers.CharField(source='contact.name', read_only=True)
    feed_type_name = serializers.CharField(source='feed_type.name', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    total_amount = serializers.DecimalField(max_digits=20, decimal_places=2, read_only=True)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))

    class Meta:
        model = Sale
        fields = [
            'id', 'sale_no', 'contact', 'contact_name', 'feed_type', 'feed_type_name',
            'warehouse', 'warehouse_name', 'quantity', 'unit', 'unit_price', 'total_amount',
            'delivered_quantity', 'is_freight_deducted', 'status', 'sale_date', 'due_date',
            'season', 'notes', 'created_at', 'updated_at'
        ]
        read_only_fields = ['sale_no', 'delivered_quantity', 'created_at', 'updated_at']

    def validate(self, attrs):
        sale_date = attrs.get('sale_date', getattr(self.instance, 'sale_date', None))
        due_date = attrs.get('due_date', getattr(self.instance, 'due_date', None))
        if sale_date and due_date and due_date < sale_date:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the sale date'})
        return attrs
