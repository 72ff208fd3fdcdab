"""
Trash: soft-deleted rows from the last 30 days and their restoration.

Restoring goes through each kind's own restore routine so running totals,
freight charges and audit entries stay consistent.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from django.utils import timezone

from .exceptions import InvalidOperation

logger = logging.getLogger(__name__)

RETENTION_DAYS = 30

KINDS = ('deliveries', 'payments', 'checks', 'account_transactions', 'carrier_transactions')


@dataclass
class TrashedRecord:
    kind: str
    id: int
    deleted_at: datetime
    summary: str


def _model(kind):
    # Imported lazily: the trashed models live in apps that depend on core
    from feedtrade.logistics.models import CarrierTransaction, Delivery
    from feedtrade.parties.models import AccountTransaction, Check, Payment
    return {
        'deliveries': Delivery,
        'payments': Payment,
        'checks': Check,
        'account_transactions': AccountTransaction,
        'carrier_transactions': CarrierTransaction,
    }[kind]


def _summary(kind, obj):
    if kind == 'deliveries':
        parts = [f"Delivery: {obj.net_weight} kg"]
        if obj.vehicle_plate:
            parts.append(obj.vehicle_plate)
        if obj.ticket_no:
            parts.append(f"#{obj.ticket_no}")
        return ' · '.join(parts)
    if kind == 'payments':
        label = 'Collection' if obj.direction == 'inbound' else 'Payment'
        text = f"{label}: {obj.amount} ₺"
        return f"{text} · {obj.description}" if obj.description else text
    if kind == 'checks':
        return f"{obj.get_check_type_display()}: {obj.amount} ₺ · due {obj.due_date}"
    if kind == 'account_transactions':
        return f"{obj.account.contact.name}: {obj.type} {obj.amount} ₺"
    return f"{obj.carrier.name}: {obj.type} {obj.amount} ₺"


def list_trash(now=None):
    """Everything trashed within the retention window, most recently deleted first"""
    cutoff = (now or timezone.now()) - timedelta(days=RETENTION_DAYS)
    related = {
        'account_transactions': ('account__contact',),
        'carrier_transactions': ('carrier',),
    }
    records = []
    for kind in KINDS:
        queryset = _model(kind).all_objects.filter(deleted_at__isnull=False, deleted_at__gte=cutoff)
        if kind in related:
            queryset = queryset.select_related(*related[kind])
        for obj in queryset:
            records.append(TrashedRecord(kind=kind, id=obj.pk, deleted_at=obj.deleted_at, summary=_summary(kind, obj)))
    records.sort(key=lambda r: (r.deleted_at, r.id), reverse=True)
    return records


def restore(kind, pk, user=None):
    """Restore one trashed row; raises InvalidOperation for unknown kinds or live rows"""
    if kind not in KINDS:
        raise InvalidOperation(f"Unknown trash kind: {kind}")
    obj = _model(kind).all_objects.filter(pk=pk).first()
    if obj is None:
        raise InvalidOperation(f"No {kind} row with id {pk}")
    if not obj.is_deleted:
        raise InvalidOperation(f"{kind} {pk} is not in the trash")

    if kind == 'deliveries':
        from feedtrade.logistics.services.shipments import restore_delivery
        restore_delivery(obj, user=user)
    elif kind == 'payments':
        from feedtrade.parties.services.payments import restore_payment
        restore_payment(obj)
    elif kind == 'checks':
        from feedtrade.parties.services.checks import restore_check
        restore_check(obj)
    elif kind == 'account_transactions':
        from feedtrade.parties.services.ledger import restore_transaction
        restore_transaction(obj)
    else:
        obj.restore()

    logger.info(f"Restored {kind} {pk} from trash")
    return obj
