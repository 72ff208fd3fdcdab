import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from feedtrade.core.utils import CanWrite
from .models import Warehouse
from .serializers import WarehouseSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def warehouse_list_create(request):
    """List all warehouses or create a new warehouse"""
    if request.method == 'GET':
        queryset = Warehouse.objects.all()
        if request.query_params.get('all', '').lower() != 'true':
            queryset = queryset.filter(is_active=True)
        return Response(WarehouseSerializer(queryset, many=True).data)

    serializer = WarehouseSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def warehouse_detail(request, pk):
    """Retrieve, update or delete a warehouse"""
    warehouse = get_object_or_404(Warehouse, pk=pk)

    if request.method == 'GET':
        return Response(WarehouseSerializer(warehouse).data)
    elif request.method == 'PATCH':
        serializer = WarehouseSerializer(warehouse, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            warehouse.delete()
        except ProtectedError:
            return Response(
                {'error': 'Warehouse still holds stock or documents; deactivate it instead'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
