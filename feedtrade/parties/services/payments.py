"""Payments and their matching account transactions"""
import logging

from django.db import transaction

from feedtrade.core.exceptions import InvalidOperation
from feedtrade.parties.models import Payment
from feedtrade.seasons.services import resolve_season
from . import ledger

logger = logging.getLogger(__name__)

METHOD_LABELS = {
    'cash': 'Cash',
    'bank_transfer': 'Bank transfer',
    'check': 'Check',
    'promissory_note': 'Promissory note',
}


def transaction_type_for(direction):
    """Money in settles what the contact owes (credit); money out settles what we owe (debit)"""
    return 'credit' if direction == 'inbound' else 'debit'


def default_description(direction, method):
    label = METHOD_LABELS.get(method, method)
    return f"Collection - {label}" if direction == 'inbound' else f"Payment - {label}"


def record_payment(contact, direction, method, amount, payment_date=None, description=None, season=None, user=None):
    """Create a payment and post its account transaction in one database transaction"""
    account = ledger.get_account_for_contact(contact.pk)
    with transaction.atomic():
        tx = ledger.post_transaction(
            account,
            transaction_type_for(direction),
            amount,
            description=description or default_description(direction, method),
            reference_type='payment',
            transaction_date=payment_date,
            season=resolve_season(season),
            user=user,
        )
        payment = Payment.objects.create(
            contact=contact,
            account=account,
            direction=direction,
            method=method,
            amount=tx.amount,
            payment_date=tx.transaction_date,
            description=description,
            transaction=tx,
            created_by=tx.created_by,
        )
        tx.reference_id = payment.pk
        tx.save(update_fields=['reference_id'])
    logger.info(f"Recorded {direction} payment {payment.pk} of {payment.amount} for contact {contact.pk}")
    return payment


def delete_payment(payment):
    """Move a payment to the trash and void its transaction"""
    if payment.is_deleted:
        raise InvalidOperation(f"Payment {payment.pk} is already deleted")
    with transaction.atomic():
        if payment.transaction_id and not payment.transaction.is_deleted:
            ledger.void_transaction(payment.transaction)
        payment.soft_delete()
    return payment


def restore_payment(payment):
    if not payment.is_deleted:
        raise InvalidOperation(f"Payment {payment.pk} is not deleted")
    with transaction.atomic():
        if payment.transaction_id and payment.transaction.is_deleted:
            ledger.restore_transaction(payment.transaction)
        payment.restore()
    return payment
