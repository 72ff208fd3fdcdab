from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    user_list_create, user_detail, preferences,
    template_list, template_detail, recent_shipments,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail,
    trash_list, trash_restore,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/me/preferences/', preferences, name='user-preferences'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Templates and recents
    path('templates/<str:kind>/', template_list, name='template-list'),
    path('templates/<str:kind>/<str:name>/', template_detail, name='template-detail'),
    path('shipments/recent/', recent_shipments, name='recent-shipments'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    # Trash endpoints
    path('trash/', trash_list, name='trash-list'),
    path('trash/<str:kind>/<int:pk>/restore/', trash_restore, name='trash-restore'),
]
