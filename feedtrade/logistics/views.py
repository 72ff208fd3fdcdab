import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from feedtrade.core import kv_store
from feedtrade.core.utils import CanWrite, create_audit_log
from feedtrade.parties.models import Contact
from . import photos
from .models import Carrier, Vehicle, Delivery, CarrierTransaction
from .serializers import (
    CarrierSerializer, VehicleSerializer, DeliverySerializer, DeliveryUpdateSerializer,
    QuickShipmentSerializer, PricedDeliverySerializer, ReturnDeliverySerializer,
    CarrierTransactionSerializer, CarrierTransactionCreateSerializer,
    CarrierBalanceSerializer, CarrierLedgerSerializer, PhotoSerializer,
)
from .services import carriers, shipments
from .services.reconciler import deliveries_for_contact

logger = logging.getLogger(__name__)


# Carrier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def carrier_list_create(request):
    """List carriers (active only unless ?all=true) or create one"""
    if request.method == 'GET':
        queryset = Carrier.objects.all()
        if request.query_params.get('all', '').lower() != 'true':
            queryset = queryset.filter(is_active=True)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search))
        return Response(CarrierSerializer(queryset, many=True).data)

    serializer = CarrierSerializer(data=request.data)
    if serializer.is_valid():
        carrier = serializer.save()
        create_audit_log(request=request, action='create', model_name='Carrier',
                         object_id=carrier.pk, object_name=carrier.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def carrier_detail(request, pk):
    """Retrieve, update or delete a carrier; carriers with transactions are deactivated instead"""
    carrier = get_object_or_404(Carrier, pk=pk)

    if request.method == 'GET':
        return Response(CarrierSerializer(carrier).data)
    elif request.method == 'PATCH':
        serializer = CarrierSerializer(carrier, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            carrier.delete()
        except ProtectedError:
            carrier.is_active = False
            carrier.save(update_fields=['is_active'])
            return Response({'message': 'Carrier has transactions and was deactivated'})
        create_audit_log(request=request, action='delete', model_name='Carrier',
                         object_id=pk, object_name=carrier.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def carrier_balance_list(request):
    """Freight owed to every carrier, largest first"""
    return Response(CarrierBalanceSerializer(carriers.carrier_balances(), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def carrier_ledger(request, pk):
    ledger = carriers.carrier_ledger(pk)
    if ledger is None:
        return Response({'error': 'Carrier not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(CarrierLedgerSerializer(ledger).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def carrier_transaction_create(request, pk):
    """Record a payment (or manual freight charge) for a carrier"""
    carrier = get_object_or_404(Carrier, pk=pk)
    serializer = CarrierTransactionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    tx = carriers.record_carrier_transaction(
        carrier,
        data['type'],
        data['amount'],
        description=data.get('description'),
        transaction_date=data.get('transaction_date'),
        season=data.get('season'),
        user=request.user,
    )
    create_audit_log(request=request, action='create', model_name='CarrierTransaction',
                     object_id=tx.pk, object_name=carrier.name,
                     changes={'type': tx.type, 'amount': str(tx.amount)})
    return Response(CarrierTransactionSerializer(tx).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def carrier_transaction_detail(request, pk):
    tx = get_object_or_404(CarrierTransaction, pk=pk)
    tx.soft_delete()
    create_audit_log(request=request, action='delete', model_name='CarrierTransaction',
                     object_id=pk, object_name=tx.carrier.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def carrier_transaction_restore(request, pk):
    tx = get_object_or_404(CarrierTransaction.all_objects.filter(deleted_at__isnull=False), pk=pk)
    tx.restore()
    create_audit_log(request=request, action='restore', model_name='CarrierTransaction',
                     object_id=pk, object_name=tx.carrier.name)
    return Response(CarrierTransactionSerializer(tx).data)


# Vehicle views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def vehicle_list_create(request):
    if request.method == 'GET':
        queryset = Vehicle.objects.select_related('carrier')
        carrier_id = request.query_params.get('carrier')
        if carrier_id:
            queryset = queryset.filter(carrier_id=carrier_id)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(plate__icontains=search) | Q(driver_name__icontains=search))
        return Response(VehicleSerializer(queryset, many=True).data)

    serializer = VehicleSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def vehicle_detail(request, pk):
    vehicle = get_object_or_404(Vehicle.objects.select_related('carrier'), pk=pk)

    if request.method == 'GET':
        return Response(VehicleSerializer(vehicle).data)
    elif request.method == 'PATCH':
        serializer = VehicleSerializer(vehicle, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        vehicle.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Delivery views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def delivery_list_create(request):
    """List live deliveries (filter by sale/purchase/season/date) or record one"""
    if request.method == 'GET':
        queryset = Delivery.objects.select_related('sale', 'purchase')
        for param in ('sale', 'purchase', 'season'):
            value = request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{f'{param}_id': value})
        date_from = request.query_params.get('date_from')
        if date_from:
            queryset = queryset.filter(delivery_date__gte=date_from)
        date_to = request.query_params.get('date_to')
        if date_to:
            queryset = queryset.filter(delivery_date__lte=date_to)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(vehicle_plate__icontains=search) |
                Q(ticket_no__icontains=search) |
                Q(carrier_name__icontains=search)
            )
        return Response(DeliverySerializer(queryset.order_by('-delivery_date', '-id'), many=True).data)

    serializer = DeliverySerializer(data=request.data)
    if serializer.is_valid():
        delivery = shipments.record_delivery(user=request.user, **serializer.validated_data)
        create_audit_log(request=request, action='create', model_name='Delivery',
                         object_id=delivery.pk, object_name=f"{delivery.net_weight} kg")
        return Response(DeliverySerializer(delivery).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def delivery_detail(request, pk):
    """Retrieve, update (with carrier charge sync) or trash a delivery"""
    delivery = get_object_or_404(Delivery.objects.select_related('sale', 'purchase'), pk=pk)

    if request.method == 'GET':
        return Response(DeliverySerializer(delivery).data)
    elif request.method == 'PATCH':
        serializer = DeliveryUpdateSerializer(delivery, data=request.data, partial=True)
        if serializer.is_valid():
            delivery = shipments.update_delivery(delivery, user=request.user, **serializer.validated_data)
            create_audit_log(request=request, action='update', model_name='Delivery',
                             object_id=delivery.pk, changes=request.data)
            return Response(DeliverySerializer(delivery).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        shipments.delete_delivery(delivery, user=request.user)
        create_audit_log(request=request, action='delete', model_name='Delivery',
                         object_id=pk, object_name=f"{delivery.net_weight} kg")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def delivery_restore(request, pk):
    delivery = get_object_or_404(Delivery.all_objects.filter(deleted_at__isnull=False), pk=pk)
    delivery = shipments.restore_delivery(delivery, user=request.user)
    create_audit_log(request=request, action='restore', model_name='Delivery',
                     object_id=pk, object_name=f"{delivery.net_weight} kg")
    return Response(DeliverySerializer(delivery).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def delivery_return(request, pk):
    """Book a customer return against a delivery"""
    delivery = get_object_or_404(Delivery.objects.select_related('sale'), pk=pk)
    serializer = ReturnDeliverySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    returned = shipments.return_delivery(
        delivery,
        data['return_kg'],
        note=data.get('note') or None,
        return_date=data.get('return_date'),
        user=request.user,
    )
    create_audit_log(request=request, action='create', model_name='Delivery',
                     object_id=returned.pk, object_name=f"Return of delivery {pk}",
                     changes={'return_kg': str(data['return_kg'])})
    return Response(DeliverySerializer(returned).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def quick_shipment(request):
    """Create a delivery on a sale together with its ledger postings"""
    serializer = QuickShipmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    values = dict(serializer.validated_data)
    delivery = shipments.create_delivery_with_transactions(
        values.pop('sale'),
        supplier=values.pop('supplier', None),
        supplier_price=values.pop('supplier_price', None),
        pricing_model=values.pop('pricing_model', None),
        customer_price=values.pop('customer_price', None),
        user=request.user,
        **values
    )
    kv_store.push_recent_shipment(request.user.pk, serializer.recent_payload())
    create_audit_log(request=request, action='shipment_create', model_name='Delivery',
                     object_id=delivery.pk, object_name=delivery.sale.sale_no,
                     changes={'net_weight': str(delivery.net_weight)})
    return Response(DeliverySerializer(delivery).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def contact_deliveries(request, contact_id):
    """Deliveries attributable to a contact with their resolved prices"""
    get_object_or_404(Contact, pk=contact_id)
    priced = deliveries_for_contact(contact_id)
    return Response(PricedDeliverySerializer(priced, many=True).data)


# Photo views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
@parser_classes([MultiPartParser, FormParser])
def delivery_photos(request, pk):
    delivery = get_object_or_404(Delivery, pk=pk)

    if request.method == 'GET':
        return Response(PhotoSerializer(photos.list_photos(delivery.pk), many=True).data)

    uploaded = request.FILES.get('file')
    if uploaded is None:
        return Response({'error': 'No file uploaded'}, status=status.HTTP_400_BAD_REQUEST)
    photo = photos.upload_photo(delivery.pk, uploaded)
    return Response(PhotoSerializer(photo).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def delivery_photo_delete(request, pk, name):
    delivery = get_object_or_404(Delivery, pk=pk)
    if not photos.delete_photo(delivery.pk, name):
        return Response({'error': 'Photo not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(status=status.HTTP_204_NO_CONTENT)
