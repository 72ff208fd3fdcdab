"""Carrier freight ledger: balances and payments"""
from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import List, Optional

from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce

from feedtrade.core.cache_utils import cached_query, CARRIER_BALANCES, CARRIER_BALANCE_CACHE_TTL
from feedtrade.core.capabilities import has_view, CARRIER_BALANCE_VIEW
from feedtrade.core.exceptions import InvalidOperation
from feedtrade.core.retry import with_db_retry
from feedtrade.logistics.models import Carrier, CarrierBalance, CarrierTransaction
from feedtrade.seasons.services import resolve_season

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
MONEY = DecimalField(max_digits=16, decimal_places=2)


@dataclass
class CarrierBalanceRow:
    carrier_id: int
    carrier_name: str
    phone: Optional[str]
    total_freight: Decimal
    total_paid: Decimal
    balance: Decimal


@dataclass
class CarrierLedger:
    balance: CarrierBalanceRow
    transactions: List[CarrierTransaction] = field(default_factory=list)


def _balance_rows(carrier_id=None):
    if has_view(CARRIER_BALANCE_VIEW):
        queryset = CarrierBalance.objects.all()
        if carrier_id is not None:
            queryset = queryset.filter(carrier_id=carrier_id)
        return [
            CarrierBalanceRow(
                carrier_id=row.carrier_id,
                carrier_name=row.carrier_name,
                phone=row.phone,
                total_freight=row.total_freight,
                total_paid=row.total_paid,
                balance=row.balance,
            )
            for row in queryset
        ]

    live = Q(transactions__deleted_at__isnull=True)
    zero = Value(ZERO, output_field=MONEY)
    queryset = Carrier.objects.annotate(
        freight=Coalesce(
            Sum('transactions__amount', filter=live & Q(transactions__type='freight_charge')), zero, output_field=MONEY
        ),
        paid=Coalesce(
            Sum('transactions__amount', filter=live & Q(transactions__type='payment')), zero, output_field=MONEY
        ),
    )
    if carrier_id is not None:
        queryset = queryset.filter(pk=carrier_id)
    return [
        CarrierBalanceRow(
            carrier_id=carrier.pk,
            carrier_name=carrier.name,
            phone=carrier.phone,
            total_freight=carrier.freight,
            total_paid=carrier.paid,
            balance=carrier.freight - carrier.paid,
        )
        for carrier in queryset
    ]


@with_db_retry
@cached_query(CARRIER_BALANCES, cache_ttl=CARRIER_BALANCE_CACHE_TTL)
def carrier_balances() -> List[CarrierBalanceRow]:
    """What we owe each carrier, largest balance first"""
    rows = _balance_rows()
    rows.sort(key=lambda r: (-r.balance, r.carrier_id))
    return rows


@with_db_retry
def carrier_ledger(carrier_id) -> Optional[CarrierLedger]:
    rows = _balance_rows(carrier_id=carrier_id)
    if not rows:
        return None
    transactions = list(
        CarrierTransaction.objects.filter(carrier_id=carrier_id)
        .select_related('created_by')
        .order_by('-transaction_date', '-created_at', '-id')
    )
    return CarrierLedger(balance=rows[0], transactions=transactions)


def record_carrier_transaction(carrier, tx_type, amount, description=None, transaction_date=None,
                               reference_id=None, season=None, user=None):
    if tx_type not in dict(CarrierTransaction.TYPE_CHOICES):
        raise InvalidOperation(f"Invalid carrier transaction type: {tx_type}")
    if amount is None or Decimal(amount) <= 0:
        raise InvalidOperation("Amount must be greater than zero")
    values = {
        'carrier': carrier,
        'type': tx_type,
        'amount': Decimal(amount),
        'description': description,
        'reference_id': reference_id,
        'season': resolve_season(season),
        'created_by': user if user is not None and user.is_authenticated else None,
    }
    if transaction_date is not None:
        values['transaction_date'] = transaction_date
    tx = CarrierTransaction.objects.create(**values)
    logger.info(f"Carrier {carrier.pk}: {tx_type} {tx.amount}")
    return tx
