from django.urls import path
from .views import season_list_create, season_detail, season_active, season_start, season_close

urlpatterns = [
    path('seasons/', season_list_create, name='season-list-create'),
    path('seasons/active/', season_active, name='season-active'),
    path('seasons/start/', season_start, name='season-start'),
    path('seasons/<int:pk>/', season_detail, name='season-detail'),
    path('seasons/<int:pk>/close/', season_close, name='season-close'),
]
