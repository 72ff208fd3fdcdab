from django.urls import path
from .views import sale_list_create, sale_detail, sale_cancel

urlpatterns = [
    path('sales/', sale_list_create, name='sale-list-create'),
    path('sales/<int:pk>/', sale_detail, name='sale-detail'),
    path('sales/<int:pk>/cancel/', sale_cancel, name='sale-cancel'),
]
