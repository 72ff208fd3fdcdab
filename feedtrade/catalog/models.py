from django.db import models


class FeedType(models.Model):
    """Traded feed products (straw, alfalfa, silage, ...)"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'feed_types'
        ordering = ['name']
