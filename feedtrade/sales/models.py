from django.db import models
from django.db.models import F
from django.utils import timezone
from decimal import Decimal
import uuid
from feedtrade.core.models import User


class Sale(models.Model):
    """Sales order to a customer"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('confirmed', 'Confirmed'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    sale_no = models.CharField(max_length=50, unique=True, blank=True)
    contact = models.ForeignKey('parties.Contact', on_delete=models.PROTECT, related_name='sales')
    feed_type = models.ForeignKey('catalog.FeedType', on_delete=models.PROTECT, related_name='sales')
    warehouse = models.ForeignKey('locations.Warehouse', on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    quantity = models.DecimalField(max_digits=14, decimal_places=2)
    unit = models.CharField(max_length=10, default='kg')
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    # Computed by the database, never written by the application
    total_amount = models.GeneratedField(
        expression=F('quantity') * F('unit_price'),
        output_field=models.DecimalField(max_digits=20, decimal_places=4),
        db_persist=True,
    )
    delivered_quantity = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    is_freight_deducted = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    sale_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    season = models.ForeignKey('seasons.Season', on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.sale_no:
            self.sale_no = f"SAL-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
        super().save(*args, **kwargs)

    def __str__(self):
        return self.sale_no

    class Meta:
        db_table = 'sales'
        ordering = ['-sale_date', '-id']
