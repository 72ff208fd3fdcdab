import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from feedtrade.core.utils import CanWrite, create_audit_log
from feedtrade.seasons.services import resolve_season
from .models import Purchase
from .serializers import PurchaseSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def purchase_list_create(request):
    """List purchases with filters or create a purchase"""
    if request.method == 'GET':
        queryset = Purchase.objects.select_related('contact', 'feed_type', 'warehouse')
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
            queryset = queryset.filter(Q(purchase_no__icontains=search) | Q(contact__name__icontains=search))
        return Response(PurchaseSerializer(queryset.order_by('-purchase_date', '-id'), many=True).data)

    serializer = PurchaseSerializer(data=request.data)
    if serializer.is_valid():
        purchase = serializer.save(
            created_by=request.user,
            season=resolve_season(serializer.validated_data.get('season')),
        )
        create_audit_log(request=request, action='create', model_name='Purchase',
                         object_id=purchase.pk, object_name=purchase.purchase_no)
        return Response(PurchaseSerializer(purchase).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def purchase_detail(request, pk):
    """Retrieve, update or delete a purchase"""
    purchase = get_object_or_404(Purchase.objects.select_related('contact', 'feed_type', 'warehouse'), pk=pk)

    if request.method == 'GET':
        return Response(PurchaseSerializer(purchase).data)
    elif request.method == 'PATCH':
        serializer = PurchaseSerializer(purchase, data=request.data, partial=True)
        if serializer.is_valid():
            purchase = serializer.save()
            purchase.refresh_from_db()
            create_audit_log(request=request, action='update', model_name='Purchase',
                             object_id=purchase.pk, object_name=purchase.purchase_no, changes=request.data)
            return Response(PurchaseSerializer(purchase).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            purchase.delete()
        except ProtectedError:
            return Response(
                {'error': 'Purchase has deliveries and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        create_audit_log(request=request, action='delete', model_name='Purchase',
                         object_id=pk, object_name=purchase.purchase_no)
        return Response(status=status.HTTP_204_NO_CONTENT)
