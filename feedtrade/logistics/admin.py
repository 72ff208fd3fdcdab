from django.contrib import admin
from .models import Carrier, Vehicle, Delivery, CarrierTransaction


@admin.register(Carrier)
class CarrierAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'city', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'phone']


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['plate', 'carrier', 'driver_name', 'vehicle_type', 'is_active']
    list_filter = ['is_active', 'vehicle_type']
    search_fields = ['plate', 'driver_name']


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = ['id', 'delivery_date', 'sale', 'purchase', 'net_weight', 'vehicle_plate', 'freight_cost', 'freight_payer', 'deleted_at']
    list_filter = ['freight_payer', 'delivery_date', 'season']
    search_fields = ['ticket_no', 'vehicle_plate', 'carrier_name']
    ordering = ['-delivery_date']

    def get_queryset(self, request):
        return Delivery.all_objects.select_related('sale', 'purchase')


@admin.register(CarrierTransaction)
class CarrierTransactionAdmin(admin.ModelAdmin):
    list_display = ['carrier', 'type', 'amount', 'reference_id', 'transaction_date', 'deleted_at']
    list_filter = ['type', 'transaction_date']
    search_fields = ['carrier__name', 'description']

    def get_queryset(self, request):
        return CarrierTransaction.all_objects.select_related('carrier')
