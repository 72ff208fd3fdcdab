from django.urls import path
from .views import (
    carrier_list_create, carrier_detail, carrier_balance_list, carrier_ledger,
    carrier_transaction_create, carrier_transaction_detail, carrier_transaction_restore,
    vehicle_list_create, vehicle_detail,
    delivery_list_create, delivery_detail, delivery_restore, delivery_return,
    quick_shipment, contact_deliveries, delivery_photos, delivery_photo_delete,
)

urlpatterns = [
    # Carrier endpoints
    path('carriers/', carrier_list_create, name='carrier-list-create'),
    path('carriers/balances/', carrier_balance_list, name='carrier-balance-list'),
    path('carriers/<int:pk>/', carrier_detail, name='carrier-detail'),
    path('carriers/<int:pk>/ledger/', carrier_ledger, name='carrier-ledger'),
    path('carriers/<int:pk>/transactions/', carrier_transaction_create, name='carrier-transaction-create'),
    path('carrier-transactions/<int:pk>/', carrier_transaction_detail, name='carrier-transaction-detail'),
    path('carrier-transactions/<int:pk>/restore/', carrier_transaction_restore, name='carrier-transaction-restore'),

    # Vehicle endpoints
    path('vehicles/', vehicle_list_create, name='vehicle-list-create'),
    path('vehicles/<int:pk>/', vehicle_detail, name='vehicle-detail'),

    # Delivery endpoints
    path('deliveries/', delivery_list_create, name='delivery-list-create'),
    path('deliveries/quick/', quick_shipment, name='quick-shipment'),
    path('deliveries/<int:pk>/', delivery_detail, name='delivery-detail'),
    path('deliveries/<int:pk>/restore/', delivery_restore, name='delivery-restore'),
    path('deliveries/<int:pk>/return/', delivery_return, name='delivery-return'),
    path('deliveries/<int:pk>/photos/', delivery_photos, name='delivery-photos'),
    path('deliveries/<int:pk>/photos/<str:name>/', delivery_photo_delete, name='delivery-photo-delete'),
    path('contacts/<int:contact_id>/deliveries/', contact_deliveries, name='contact-deliveries'),
]
