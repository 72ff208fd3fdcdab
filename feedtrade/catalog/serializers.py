from rest_framework import serializers
from .models import FeedType


class FeedTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = FeedType
        fields = ['id', 'name', 'description', 'is_active', 'created_at']
        read_only_fields = ['created_at']
