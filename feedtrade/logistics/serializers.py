from decimal import Decimal
from rest_framework import serializers
from feedtrade.parties.models import Contact
from feedtrade.purchasing.models import Purchase
from feedtrade.sales.models import Sale
from feedtrade.seasons.models import Season
from .models import Carrier, Vehicle, Delivery, CarrierTransaction


class CarrierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Carrier
        fields = ['id', 'name', 'phone', 'city', 'notes', 'is_active', 'created_at']
        read_only_fields = ['created_at']


class VehicleSerializer(serializers.ModelSerializer):
    carrier_name = serializers.CharField(source='carrier.name', read_only=True)

    class Meta:
        model = Vehicle
        fields = ['id', 'plate', 'carrier', 'carrier_name', 'driver_name', 'driver_phone', 'vehicle_type', 'is_active', 'created_at']
        read_only_fields = ['created_at']

    def validate_plate(self, value):
        return value.strip().upper()


class DeliverySerializer(serializers.ModelSerializer):
    sale_no = serializers.CharField(source='sale.sale_no', read_only=True)
    purchase_no = serializers.CharField(source='purchase.purchase_no', read_only=True)
    net_weight = serializers.DecimalField(max_digits=14, decimal_places=2)
    freight_cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.00'), required=False)

    class Meta:
        model = Delivery
        fields = [
            'id', 'sale', 'sale_no', 'purchase', 'purchase_no', 'delivery_date', 'ticket_no',
            'gross_weight', 'tare_weight', 'net_weight', 'vehicle_plate', 'driver_name',
            'carrier_name', 'carrier_phone', 'freight_cost', 'freight_payer', 'notes', 'season',
            'created_at', 'deleted_at'
        ]
        read_only_fields = ['created_at', 'deleted_at']

    def validate(self, attrs):
        sale = attrs.get('sale', getattr(self.instance, 'sale', None))
        purchase = attrs.get('purchase', getattr(self.instance, 'purchase', None))
        if sale is not None and purchase is not None:
            raise serializers.ValidationError('A delivery belongs to a sale or a purchase, not both')
        if self.instance is None and attrs.get('net_weight') is not None and attrs['net_weight'] <= 0:
            raise serializers.ValidationError({'net_weight': 'Net weight must be greater than zero'})
        return attrs


class DeliveryUpdateSerializer(serializers.ModelSerializer):
    """Editable delivery fields; the linked document cannot change"""
    net_weight = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'), required=False)
    freight_cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.00'), required=False)

    class Meta:
        model = Delivery
        fields = [
            'delivery_date', 'ticket_no', 'gross_weight', 'tare_weight', 'net_weight',
            'vehicle_plate', 'driver_name', 'carrier_name', 'carrier_phone', 'freight_cost',
            'freight_payer', 'notes', 'season'
        ]


class QuickShipmentSerializer(serializers.Serializer):
    """Delivery on a sale with its customer, supplier and carrier postings"""
    RECENT_FIELDS = [
        'supplier', 'supplier_price', 'customer_price', 'pricing_model', 'vehicle_plate',
        'driver_name', 'carrier_name', 'carrier_phone', 'freight_payer',
    ]

    sale = serializers.PrimaryKeyRelatedField(queryset=Sale.objects.all())
    supplier = serializers.PrimaryKeyRelatedField(queryset=Contact.objects.all(), required=False, allow_null=True)
    supplier_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'), required=False, allow_null=True)
    customer_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'), required=False, allow_null=True)
    pricing_model = serializers.ChoiceField(choices=Purchase.PRICING_MODEL_CHOICES, required=False, allow_null=True)
    delivery_date = serializers.DateField(required=False)
    ticket_no = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    gross_weight = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    tare_weight = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    net_weight = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    vehicle_plate = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    driver_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    carrier_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    carrier_phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    freight_cost = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.00'), required=False)
    freight_payer = serializers.ChoiceField(choices=Delivery.FREIGHT_PAYER_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    season = serializers.PrimaryKeyRelatedField(queryset=Season.objects.all(), required=False, allow_null=True)

    def validate_sale(self, value):
        if value.status == 'cancelled':
            raise serializers.ValidationError('Cannot ship against a cancelled sale')
        return value

    def validate(self, attrs):
        if attrs.get('supplier') is not None and attrs.get('supplier_price') is None:
            raise serializers.ValidationError({'supplier_price': 'Supplier price is required when a supplier is given'})
        return attrs

    def recent_payload(self):
        """Form values worth prefilling next time, as plain JSON"""
        payload = {}
        for name in self.RECENT_FIELDS:
            value = self.validated_data.get(name)
            if value is None or value == '':
                continue
            if isinstance(value, Contact):
                value = value.pk
            elif isinstance(value, Decimal):
                value = str(value)
            payload[name] = value
        return payload


class PricedDeliverySerializer(serializers.Serializer):
    delivery = DeliverySerializer()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    total_amount = serializers.DecimalField(max_digits=20, decimal_places=2)
    price_source = serializers.CharField(allow_null=True)
    is_priced = serializers.BooleanField()


class ReturnDeliverySerializer(serializers.Serializer):
    return_kg = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    return_date = serializers.DateField(required=False)


class CarrierTransactionSerializer(serializers.ModelSerializer):
    carrier_name = serializers.CharField(source='carrier.name', read_only=True)

    class Meta:
        model = CarrierTransaction
        fields = [
            'id', 'carrier', 'carrier_name', 'type', 'amount', 'description', 'reference_id',
            'transaction_date', 'season', 'created_at', 'deleted_at'
        ]
        read_only_fields = fields


class CarrierTransactionCreateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=CarrierTransaction.TYPE_CHOICES, default='payment')
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0.01'))
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    transaction_date = serializers.DateField(required=False)
    season = serializers.PrimaryKeyRelatedField(queryset=Season.objects.all(), required=False, allow_null=True)


class CarrierBalanceSerializer(serializers.Serializer):
    carrier_id = serializers.IntegerField()
    carrier_name = serializers.CharField()
    phone = serializers.CharField(allow_null=True)
    total_freight = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=16, decimal_places=2)
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)


class CarrierLedgerSerializer(serializers.Serializer):
    balance = CarrierBalanceSerializer()
    transactions = CarrierTransactionSerializer(many=True)


class PhotoSerializer(serializers.Serializer):
    name = serializers.CharField()
    url = serializers.CharField()
