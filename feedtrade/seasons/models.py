from django.db import models
from django.db.models import Q


class Season(models.Model):
    """Operating period used to scope deliveries, transactions and reports"""
    name = models.CharField(max_length=100)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=False)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'seasons'
        ordering = ['-start_date', '-id']
        constraints = [
            # At most one active season
            models.UniqueConstraint(fields=['is_active'], condition=Q(is_active=True), name='one_active_season'),
        ]
