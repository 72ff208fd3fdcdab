from django.db import models
from decimal import Decimal
from feedtrade.core.models import User


class InventoryItem(models.Model):
    """Stock on hand per warehouse and feed type"""
    warehouse = models.ForeignKey('locations.Warehouse', on_delete=models.CASCADE, related_name='inventory_items')
    feed_type = models.ForeignKey('catalog.FeedType', on_delete=models.PROTECT, related_name='inventory_items')
    quantity_kg = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    last_updated = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.warehouse.name} - {self.feed_type.name}: {self.quantity_kg} kg"

    class Meta:
        db_table = 'inventory'
        unique_together = [['warehouse', 'feed_type']]


class InventoryMovement(models.Model):
    """Signed stock delta on an inventory item"""
    MOVEMENT_TYPE_CHOICES = [
        ('purchase_in', 'Purchase In'),
        ('sale_out', 'Sale Out'),
        ('adjustment', 'Adjustment'),
        ('return', 'Return'),
    ]

    inventory = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity_change = models.DecimalField(max_digits=14, decimal_places=2)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    reference_type = models.CharField(max_length=20, blank=True, null=True)
    reference_id = models.BigIntegerField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_movements')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'inventory_movements'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['reference_type', 'reference_id'], name='inv_mov_reference_idx'),
        ]


class InventorySummary(models.Model):
    """Read-only rows of the v_inventory_summary view"""
    inventory_id = models.BigIntegerField(primary_key=True)
    warehouse_id = models.BigIntegerField()
    feed_type_id = models.BigIntegerField()
    warehouse_name = models.CharField(max_length=200)
    feed_type_name = models.CharField(max_length=200)
    quantity_kg = models.DecimalField(max_digits=14, decimal_places=2)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    total_value = models.DecimalField(max_digits=20, decimal_places=4)
    last_updated = models.DateTimeField()

    class Meta:
        managed = False
        db_table = 'v_inventory_summary'
