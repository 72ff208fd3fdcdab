from django.urls import path
from .views import inventory_summary, inventory_movements, inventory_adjust

urlpatterns = [
    path('inventory/summary/', inventory_summary, name='inventory-summary'),
    path('inventory/movements/', inventory_movements, name='inventory-movements'),
    path('inventory/adjust/', inventory_adjust, name='inventory-adjust'),
]
