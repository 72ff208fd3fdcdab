from django.contrib import admin
from .models import Purchase


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ['purchase_no', 'contact', 'feed_type', 'quantity', 'unit_price', 'total_amount', 'pricing_model', 'status', 'purchase_date']
    list_filter = ['status', 'pricing_model', 'purchase_date', 'season']
    search_fields = ['purchase_no', 'contact__name']
    ordering = ['-purchase_date']
    readonly_fields = ['purchase_no', 'total_amount']
