import logging
from decimal import Decimal
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from feedtrade.core import kv_store
from feedtrade.core.utils import CanWrite, IsAdminRole, create_audit_log
from feedtrade.seasons.services import resolve_season
from .models import Contact, Account, AccountTransaction, Payment, Check
from .serializers import (
    ContactSerializer, AccountTransactionSerializer, TransactionCreateSerializer,
    PaymentSerializer, PaymentCreateSerializer, AccountSummarySerializer, ContactLedgerSerializer,
    CheckSerializer, CheckCreateSerializer, CheckStatusSerializer, CheckEndorseSerializer, DueCheckSerializer,
)
from .services import checks, ledger, payments
from .services.reconciliation import check_account

logger = logging.getLogger(__name__)


def _season_filter(request):
    """Explicit ?season= wins; otherwise the user's selected season preference (if any)"""
    season_id = request.query_params.get('season')
    if season_id == 'all':
        return None
    if season_id:
        return season_id
    return kv_store.get_preferences(request.user.pk).get('selected_season_id')


# Contact views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def contact_list_create(request):
    """List contacts (filter by type/search) or create one; the account is created automatically"""
    if request.method == 'GET':
        queryset = Contact.objects.select_related('account')
        contact_type = request.query_params.get('type')
        if contact_type in ('customer', 'supplier'):
            queryset = queryset.filter(type__in=[contact_type, 'both'])
        elif contact_type:
            queryset = queryset.filter(type=contact_type)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(phone__icontains=search) |
                Q(city__icontains=search)
            )
        return Response(ContactSerializer(queryset.order_by('name', 'id'), many=True).data)

    serializer = ContactSerializer(data=request.data)
    if serializer.is_valid():
        contact = serializer.save()
        create_audit_log(request=request, action='create', model_name='Contact',
                         object_id=contact.pk, object_name=contact.name)
        return Response(ContactSerializer(contact).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def contact_detail(request, pk):
    """Retrieve, update or delete a contact"""
    contact = get_object_or_404(Contact.objects.select_related('account'), pk=pk)

    if request.method == 'GET':
        return Response(ContactSerializer(contact).data)
    elif request.method == 'PATCH':
        serializer = ContactSerializer(contact, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Contact',
                             object_id=contact.pk, object_name=contact.name, changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            contact.delete()
        except ProtectedError:
            return Response(
                {'error': 'Contact has ledger transactions, sales, purchases, payments or checks and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        create_audit_log(request=request, action='delete', model_name='Contact',
                         object_id=pk, object_name=contact.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Ledger views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def contact_ledger(request, contact_id):
    """Balance, totals and transactions of a contact; ledger is null when no account exists yet"""
    contact = get_object_or_404(Contact, pk=contact_id)
    result = ledger.get_contact_ledger(contact.pk)
    return Response({
        'contact': {'id': contact.id, 'name': contact.name, 'type': contact.type},
        'ledger': ContactLedgerSerializer(result).data if result else None,
        'balance_visible': kv_store.get_preferences(request.user.pk)['balance_visible'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_summary_list(request):
    """All accounts with live totals, sorted by contact name"""
    rows = ledger.account_summaries()
    contact_type = request.query_params.get('type')
    if contact_type:
        rows = [r for r in rows if r.contact_type in (contact_type, 'both')]
    return Response({
        'accounts': AccountSummarySerializer(rows, many=True).data,
        'balance_visible': kv_store.get_preferences(request.user.pk)['balance_visible'],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def account_check(request, pk):
    """Compare stored running totals with live transactions"""
    account = get_object_or_404(Account.objects.select_related('contact'), pk=pk)
    result = check_account(account)
    return Response({
        'account_id': result.account_id,
        'contact_name': result.contact_name,
        'stored_balance': str(result.stored_balance),
        'stored_debit': str(result.stored_debit),
        'stored_credit': str(result.stored_credit),
        'live_debit': str(result.live_debit),
        'live_credit': str(result.live_credit),
        'live_balance': str(result.live_balance),
        'is_consistent': result.is_consistent,
    })


# Transaction views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def transaction_list_create(request):
    """List live transactions with filters or post a manual one"""
    if request.method == 'GET':
        queryset = AccountTransaction.objects.select_related('account__contact', 'created_by')
        contact_id = request.query_params.get('contact')
        if contact_id:
            queryset = queryset.filter(account__contact_id=contact_id)
        tx_type = request.query_params.get('type')
        if tx_type:
            queryset = queryset.filter(type=tx_type)
        reference_type = request.query_params.get('reference_type')
        if reference_type:
            queryset = queryset.filter(reference_type=reference_type)
        season_id = _season_filter(request)
        if season_id:
            queryset = queryset.filter(season_id=season_id)
        date_from = request.query_params.get('date_from')
        date_to = request.query_params.get('date_to')
        if date_from:
            queryset = queryset.filter(transaction_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(transaction_date__lte=date_to)
        queryset = queryset.order_by('-transaction_date', '-created_at', '-id')
        return Response(AccountTransactionSerializer(queryset, many=True).data)

    serializer = TransactionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    tx = ledger.post_to_contact(
        data['contact'].pk,
        data['type'],
        data['amount'],
        description=data.get('description'),
        reference_type=data.get('reference_type'),
        reference_id=data.get('reference_id'),
        transaction_date=data.get('transaction_date'),
        season=resolve_season(data.get('season')),
        user=request.user,
    )
    create_audit_log(request=request, action='create', model_name='AccountTransaction',
                     object_id=tx.pk, object_name=data['contact'].name,
                     changes={'type': tx.type, 'amount': str(tx.amount)})
    return Response(AccountTransactionSerializer(tx).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def transaction_detail(request, pk):
    """Retrieve a transaction or void it (soft delete)"""
    tx = get_object_or_404(AccountTransaction.all_objects.select_related('account__contact'), pk=pk)
    if request.method == 'GET':
        return Response(AccountTransactionSerializer(tx).data)

    tx = ledger.void_transaction(tx)
    create_audit_log(request=request, action='delete', model_name='AccountTransaction',
                     object_id=tx.pk, object_name=tx.account.contact.name,
                     changes={'type': tx.type, 'amount': str(tx.amount)})
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def transaction_restore(request, pk):
    tx = get_object_or_404(AccountTransaction.all_objects.select_related('account__contact'), pk=pk)
    tx = ledger.restore_transaction(tx)
    create_audit_log(request=request, action='restore', model_name='AccountTransaction',
                     object_id=tx.pk, object_name=tx.account.contact.name)
    return Response(AccountTransactionSerializer(tx).data)


# Payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def payment_list_create(request):
    """List payments or record one together with its account transaction"""
    if request.method == 'GET':
        queryset = Payment.objects.select_related('contact')
        contact_id = request.query_params.get('contact')
        if contact_id:
            queryset = queryset.filter(contact_id=contact_id)
        direction = request.query_params.get('direction')
        if direction:
            queryset = queryset.filter(direction=direction)
        return Response(PaymentSerializer(queryset.order_by('-payment_date', '-id'), many=True).data)

    serializer = PaymentCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    payment = payments.record_payment(
        data['contact'],
        data['direction'],
        data['method'],
        data['amount'],
        payment_date=data.get('payment_date'),
        description=data.get('description'),
        season=data.get('season'),
        user=request.user,
    )
    create_audit_log(request=request, action='payment_add', model_name='Payment',
                     object_id=payment.pk, object_name=payment.contact.name,
                     changes={'direction': payment.direction, 'amount': str(payment.amount)})
    return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def payment_detail(request, pk):
    payment = get_object_or_404(Payment.all_objects.select_related('contact'), pk=pk)
    if request.method == 'GET':
        return Response(PaymentSerializer(payment).data)

    payments.delete_payment(payment)
    create_audit_log(request=request, action='delete', model_name='Payment',
                     object_id=payment.pk, object_name=payment.contact.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def payment_restore(request, pk):
    payment = get_object_or_404(Payment.all_objects.select_related('contact'), pk=pk)
    payments.restore_payment(payment)
    create_audit_log(request=request, action='restore', model_name='Payment',
                     object_id=payment.pk, object_name=payment.contact.name)
    return Response(PaymentSerializer(payment).data)


# Check views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanWrite])
def check_list_create(request):
    """List live checks by due date (filter by contact/direction/status) or record one with its transaction"""
    if request.method == 'GET':
        queryset = Check.objects.select_related('contact')
        contact_id = request.query_params.get('contact')
        if contact_id:
            queryset = queryset.filter(contact_id=contact_id)
        direction = request.query_params.get('direction')
        if direction:
            queryset = queryset.filter(direction=direction)
        check_status = request.query_params.get('status')
        if check_status:
            queryset = queryset.filter(status=check_status)
        return Response(CheckSerializer(queryset.order_by('due_date', 'id'), many=True).data)

    serializer = CheckCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    check = checks.record_check(
        data['contact'],
        data['direction'],
        data['amount'],
        data['due_date'],
        check_type=data['check_type'],
        serial_no=data.get('serial_no'),
        bank_name=data.get('bank_name'),
        branch_name=data.get('branch_name'),
        issue_date=data.get('issue_date'),
        notes=data.get('notes'),
        season=data.get('season'),
        user=request.user,
    )
    create_audit_log(request=request, action='create', model_name='Check',
                     object_id=check.pk, object_name=check.contact.name,
                     changes={'direction': check.direction, 'amount': str(check.amount)})
    return Response(CheckSerializer(check).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanWrite])
def check_detail(request, pk):
    """Retrieve a check, move it to another status, or trash it (voiding its transaction)"""
    check = get_object_or_404(Check.all_objects.select_related('contact'), pk=pk)
    if request.method == 'GET':
        return Response(CheckSerializer(check).data)
    elif request.method == 'PATCH':
        serializer = CheckStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        previous = check.status
        check = checks.update_status(check, serializer.validated_data['status'])
        create_audit_log(request=request, action='update', model_name='Check',
                         object_id=check.pk, object_name=check.contact.name,
                         changes={'status': [previous, check.status]})
        return Response(CheckSerializer(check).data)

    checks.delete_check(check)
    create_audit_log(request=request, action='delete', model_name='Check',
                     object_id=check.pk, object_name=check.contact.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanWrite])
def check_endorse(request, pk):
    """Endorse a received check to another contact"""
    check = get_object_or_404(Check.objects.select_related('contact'), pk=pk)
    serializer = CheckEndorseSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    original, endorsed = checks.endorse_check(
        check, data['contact'], endorse_date=data.get('endorse_date'), user=request.user,
    )
    create_audit_log(request=request, action='update', model_name='Check',
                     object_id=original.pk, object_name=original.contact.name,
                     changes={'endorsed_to': original.endorsed_to, 'endorsed_check': endorsed.pk})
    return Response({
        'original': CheckSerializer(original).data,
        'endorsed': CheckSerializer(endorsed).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def check_due_list(request):
    """Open checks due within ?days= (default 7), overdue ones first"""
    try:
        days = int(request.query_params.get('days', checks.DUE_WINDOW_DAYS))
    except ValueError:
        return Response({'error': 'days must be a whole number'}, status=status.HTTP_400_BAD_REQUEST)
    if days < 0:
        return Response({'error': 'days must not be negative'}, status=status.HTTP_400_BAD_REQUEST)
    items = checks.due_checks(days=days)
    return Response({
        'days': days,
        'count': len(items),
        'overdue_count': sum(1 for item in items if item.overdue),
        'total': str(sum((item.check.amount for item in items), Decimal('0.00'))),
        'checks': DueCheckSerializer(items, many=True).data,
    })
