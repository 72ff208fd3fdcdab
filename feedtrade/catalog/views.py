import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from feedtrade.core.utils import CanWrite
from .models import FeedType
from .serializers import FeedTypeSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def feed_type_list_create(request):
    """List feed types (active only unless ?all=true) or create one"""
    if request.method == 'GET':
        queryset = FeedType.objects.all()
        if request.query_params.get('all', '').lower() != 'true':
            queryset = queryset.filter(is_active=True)
        serializer = FeedTypeSerializer(queryset, many=True)
        return Response(serializer.data)

    serializer = FeedTypeSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def feed_type_detail(request, pk):
    """Retrieve, update or delete a feed type"""
    feed_type = get_object_or_404(FeedType, pk=pk)

    if request.method == 'GET':
        return Response(FeedTypeSerializer(feed_type).data)
    elif request.method == 'PATCH':
        serializer = FeedTypeSerializer(feed_type, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            feed_type.delete()
        except ProtectedError:
            # Referenced by sales/purchases: deactivate instead
            feed_type.is_active = False
            feed_type.save(update_fields=['is_active'])
            logger.info(f"Feed type {feed_type.pk} is in use; deactivated instead of deleted")
            return Response(FeedTypeSerializer(feed_type).data)
        return Response(status=status.HTTP_204_NO_CONTENT)
