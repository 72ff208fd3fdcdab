"""
URL configuration for the feedtrade project.

Every app mounts its function views under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Feed Trade Admin Panel"
admin.site.site_title = "Feed Trade Admin Portal"
admin.site.index_title = "Feed trading ledger administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('feedtrade.core.urls')),
    path('api/v1/', include('feedtrade.catalog.urls')),
    path('api/v1/', include('feedtrade.locations.urls')),
    path('api/v1/', include('feedtrade.seasons.urls')),
    path('api/v1/', include('feedtrade.parties.urls')),
    path('api/v1/', include('feedtrade.sales.urls')),
    path('api/v1/', include('feedtrade.purchasing.urls')),
    path('api/v1/', include('feedtrade.logistics.urls')),
    path('api/v1/', include('feedtrade.inventory.urls')),
    path('api/v1/', include('feedtrade.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
