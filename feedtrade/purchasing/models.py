from django.db import models
from django.db.models import F
from django.utils import timezone
import uuid
from feedtrade.core.models import User


class Purchase(models.Model):
    """Purchase order from a supplier"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('confirmed', 'Confirmed'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]
    PRICING_MODEL_CHOICES = [
        ('freight_included', 'Freight Included'),  # delivered price, freight comes out of the supplier's amount
        ('on_truck', 'On Truck'),  # loaded price, buyer arranges freight
    ]

    purchase_no = models.CharField(max_length=50, unique=True, blank=True)
    contact = models.ForeignKey('parties.Contact', on_delete=models.PROTECT, related_name='purchases')
    feed_type = models.ForeignKey('catalog.FeedType', on_delete=models.PROTECT, related_name='purchases')
    warehouse = models.ForeignKey('locations.Warehouse', on_delete=models.SET_NULL, null=True, blank=True, related_name='purchases')
    quantity = models.DecimalField(max_digits=14, decimal_places=2)
    unit = models.CharField(max_length=10, default='kg')
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    # Computed by the database, never written by the application
    total_amount = models.GeneratedField(
        expression=F('quantity') * F('unit_price'),
        output_field=models.DecimalField(max_digits=20, decimal_places=4),
        db_persist=True,
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    purchase_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    pricing_model = models.CharField(max_length=20, choices=PRICING_MODEL_CHOICES, null=True, blank=True)
    season = models.ForeignKey('seasons.Season', on_delete=models.SET_NULL, null=True, blank=True, related_name='purchases')
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchases')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if not self.purchase_no:
            self.purchase_no = f"PUR-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
        super().save(*args, **kwargs)

    def __str__(self):
        return self.purchase_no

    class Meta:
        db_table = 'purchases'
        ordering = ['-purchase_date', '-id']
