import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from feedtrade.core.utils import CanWrite, create_audit_log
from . import services
from .serializers import InventorySummarySerializer, InventoryMovementSerializer, AdjustmentSerializer

logger = logging.getLogger(__name__)

MAX_MOVEMENTS = 200


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_summary(request):
    """Stock on hand per warehouse and feed type"""
    rows = services.inventory_summary()
    warehouse_id = request.query_params.get('warehouse')
    if warehouse_id:
        rows = [r for r in rows if str(r.warehouse_id) == warehouse_id]
    return Response(InventorySummarySerializer(rows, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_movements(request):
    """Latest stock movements (?limit=, default 20)"""
    try:
        limit = min(int(request.query_params.get('limit', 20)), MAX_MOVEMENTS)
    except ValueError:
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    movements = services.recent_movements(limit=limit, warehouse_id=request.query_params.get('warehouse'))
    return Response(InventoryMovementSerializer(movements, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def inventory_adjust(request):
    """Book a manual stock adjustment"""
    serializer = AdjustmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    movement = services.record_movement(
        warehouse=data['warehouse'],
        feed_type=data['feed_type'],
        movement_type='adjustment',
        quantity_change=data['quantity_change'],
        unit_cost=data.get('unit_cost'),
        notes=data.get('notes'),
        user=request.user,
    )
    create_audit_log(request=request, action='create', model_name='InventoryMovement',
                     object_id=movement.pk, changes={'quantity_change': str(movement.quantity_change)})
    return Response(InventoryMovementSerializer(movement).data, status=status.HTTP_201_CREATED)
