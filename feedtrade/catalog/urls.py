from django.urls import path
from .views import feed_type_list_create, feed_type_detail

urlpatterns = [
    path('feed-types/', feed_type_list_create, name='feed-type-list-create'),
    path('feed-types/<int:pk>/', feed_type_detail, name='feed-type-detail'),
]
