from django.contrib import admin
from .models import InventoryItem, InventoryMovement


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['warehouse', 'feed_type', 'quantity_kg', 'unit_cost', 'last_updated']
    list_filter = ['warehouse', 'feed_type']


@admin.register(InventoryMovement)
class InventoryMovementAdmin(admin.ModelAdmin):
    list_display = ['inventory', 'movement_type', 'quantity_change', 'reference_type', 'reference_id', 'created_at']
    list_filter = ['movement_type', 'created_at']
    ordering = ['-created_at']
