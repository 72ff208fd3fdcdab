from django.db import models
from django.db.models import Q
from django.utils import timezone
from decimal import Decimal
from feedtrade.core.models import User, SoftDeleteModel


class Carrier(models.Model):
    """Freight provider with its own cost ledger"""
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'carriers'
        ordering = ['name']


class Vehicle(models.Model):
    plate = models.CharField(max_length=20, unique=True)
    carrier = models.ForeignKey(Carrier, on_delete=models.SET_NULL, null=True, blank=True, related_name='vehicles')
    driver_name = models.CharField(max_length=200, blank=True, null=True)
    driver_phone = models.CharField(max_length=20, blank=True, null=True)
    vehicle_type = models.CharField(max_length=50, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.plate

    class Meta:
        db_table = 'vehicles'
        ordering = ['plate']


class Delivery(SoftDeleteModel):
    """Weigh-ticket event, linked to a sale or a purchase but never both"""
    FREIGHT_PAYER_CHOICES = [
        ('customer', 'Customer'),
        ('me', 'Me'),
        ('supplier', 'Supplier'),
    ]

    sale = models.ForeignKey('sales.Sale', on_delete=models.PROTECT, null=True, blank=True, related_name='deliveries')
    purchase = models.ForeignKey('purchasing.Purchase', on_delete=models.PROTECT, null=True, blank=True, related_name='deliveries')
    delivery_date = models.DateField(default=timezone.localdate)
    ticket_no = models.CharField(max_length=50, blank=True, null=True)
    gross_weight = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    tare_weight = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    net_weight = models.DecimalField(max_digits=14, decimal_places=2)
    vehicle_plate = models.CharField(max_length=20, blank=True, null=True)
    driver_name = models.CharField(max_length=200, blank=True, null=True)
    carrier_name = models.CharField(max_length=200, blank=True, null=True)
    carrier_phone = models.CharField(max_length=20, blank=True, null=True)
    freight_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    freight_payer = models.CharField(max_length=20, choices=FREIGHT_PAYER_CHOICES, default='me')
    notes = models.TextField(blank=True, null=True)
    season = models.ForeignKey('seasons.Season', on_delete=models.SET_NULL, null=True, blank=True, related_name='deliveries')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='deliveries')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.delivery_date} - {self.net_weight} kg"

    class Meta:
        db_table = 'deliveries'
        ordering = ['-delivery_date', '-id']
        constraints = [
            models.CheckConstraint(
                condition=~(Q(sale__isnull=False) & Q(purchase__isnull=False)),
                name='delivery_sale_xor_purchase',
            ),
        ]


class CarrierTransaction(SoftDeleteModel):
    """Freight charge or payment on a carrier's ledger"""
    TYPE_CHOICES = [
        ('freight_charge', 'Freight Charge'),
        ('payment', 'Payment'),
    ]

    carrier = models.ForeignKey(Carrier, on_delete=models.PROTECT, related_name='transactions')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.TextField(blank=True, null=True)
    # Delivery id for freight charges; not a foreign key
    reference_id = models.BigIntegerField(blank=True, null=True, db_index=True)
    transaction_date = models.DateField(default=timezone.localdate)
    season = models.ForeignKey('seasons.Season', on_delete=models.SET_NULL, null=True, blank=True, related_name='carrier_transactions')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='carrier_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.carrier.name} - {self.type} - {self.amount}"

    class Meta:
        db_table = 'carrier_transactions'
        ordering = ['-transaction_date', '-id']


class CarrierBalance(models.Model):
    """Read-only rows of the v_carrier_balance view"""
    carrier_id = models.BigIntegerField(primary_key=True)
    carrier_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, null=True)
    total_freight = models.DecimalField(max_digits=16, decimal_places=2)
    total_paid = models.DecimalField(max_digits=16, decimal_places=2)
    balance = models.DecimalField(max_digits=16, decimal_places=2)

    class Meta:
        managed = False
        db_table = 'v_carrier_balance'
