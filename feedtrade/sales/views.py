import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from feedtrade.core.utils import CanWrite, create_audit_log
from feedtrade.logistics.services.shipments import cancel_sale
from feedtrade.seasons.services import resolve_season
from .models import Sale
from .serializers import SaleSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def sale_list_create(request):
    """List sales with filters or create a sale"""
    if request.method == 'GET':
        queryset = Sale.objects.select_related('contact', 'feed_type', 'warehouse')
        contact_id = request.query_params.get('contact')
        if contact_id:
            queryset = queryset.filter(contact_id=contact_id)
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        season_id = request.query_params.get('season')
        if season_id:
            queryset = queryset.filter(season_id=season_id)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(sale_no__icontains=search) | Q(contact__name__icontains=search))
        return Response(SaleSerializer(queryset.order_by('-sale_date', '-id'), many=True).data)

    serializer = SaleSerializer(data=request.data)
    if serializer.is_valid():
        sale = serializer.save(
            created_by=request.user,
            season=resolve_season(serializer.validated_data.get('season')),
        )
        create_audit_log(request=request, action='create', model_name='Sale',
                         object_id=sale.pk, object_name=sale.sale_no)
        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def sale_detail(request, pk):
    """Retrieve, update or delete a sale"""
    sale = get_object_or_404(Sale.objects.select_related('contact', 'feed_type', 'warehouse'), pk=pk)

    if request.method == 'GET':
        return Response(SaleSerializer(sale).data)
    elif request.method == 'PATCH':
        if sale.status == 'cancelled':
            return Response({'error': 'Cancelled sales cannot be edited'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = SaleSerializer(sale, data=request.data, partial=True)
        if serializer.is_valid():
            sale = serializer.save()
            sale.refresh_from_db()
            create_audit_log(request=request, action='update', model_name='Sale',
                             object_id=sale.pk, object_name=sale.sale_no, changes=request.data)
            return Response(SaleSerializer(sale).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            sale.delete()
        except ProtectedError:
            return Response(
                {'error': 'Sale has deliveries; cancel it instead'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        create_audit_log(request=request, action='delete', model_name='Sale',
                         object_id=pk, object_name=sale.sale_no)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def sale_cancel(request, pk):
    """Cancel a sale and reverse its ledger effects"""
    sale = get_object_or_404(Sale, pk=pk)
    note = request.data.get('note') or None
    sale = cancel_sale(sale, note=note, user=request.user)
    create_audit_log(request=request, action='sale_cancel', model_name='Sale',
                     object_id=sale.pk, object_name=sale.sale_no, changes={'note': note})
    return Response(SaleSerializer(sale).data)
