from django.contrib import admin
from .models import Sale


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ['sale_no', 'contact', 'feed_type', 'quantity', 'unit_price', 'total_amount', 'status', 'sale_date']
    list_filter = ['status', 'sale_date', 'season']
    search_fields = ['sale_no', 'contact__name']
    ordering = ['-sale_date']
    readonly_fields = ['sale_no', 'total_amount']
