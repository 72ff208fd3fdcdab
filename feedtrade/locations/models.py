from django.db import models


class Warehouse(models.Model):
    """Storage locations holding feed stock"""
    name = models.CharField(max_length=200, unique=True)
    location = models.CharField(max_length=255, blank=True, null=True)
    capacity = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True, help_text="Capacity in kg")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'warehouses'
        ordering = ['name']
