"""
Checks and promissory notes.

Recording a check moves the contact's balance at once: a received check
credits the drawer (their debt to us shrinks), a given check debits the
payee (our debt to them shrinks). Endorsing a received check hands it on
to another contact as a given check and debits that contact.
"""
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
import logging

from django.db import transaction
from django.utils import timezone

from feedtrade.core.exceptions import InvalidOperation
from feedtrade.parties.models import Check
from feedtrade.seasons.services import resolve_season
from . import ledger

logger = logging.getLogger(__name__)

DUE_WINDOW_DAYS = 7

TYPE_LABELS = {
    'check': 'Check',
    'promissory_note': 'Promissory note',
}

# Statuses a check may be moved to by hand; endorsement has its own operation
STATUS_TRANSITIONS = {
    'pending': ('deposited', 'cleared', 'bounced', 'cancelled'),
    'deposited': ('cleared', 'bounced', 'pending'),
    'bounced': ('pending',),
    'cleared': (),
    'endorsed': (),
    'cancelled': (),
}


@dataclass
class DueCheck:
    check: Check
    days_left: int

    @property
    def overdue(self):
        return self.days_left < 0


def transaction_type_for(direction):
    return 'credit' if direction == 'received' else 'debit'


def _label(check_type, serial_no):
    label = TYPE_LABELS.get(check_type, check_type)
    return f"{label} No: {serial_no}" if serial_no else label


def default_description(direction, check_type, serial_no=None):
    action = 'collection' if direction == 'received' else 'payment'
    label = _label(check_type, serial_no)
    return f"{label} ({action})"


def record_check(contact, direction, amount, due_date, check_type='check', serial_no=None,
                 bank_name=None, branch_name=None, issue_date=None, notes=None, season=None, user=None):
    """Create a check and post its account transaction in one database transaction"""
    if amount is None or Decimal(amount) <= 0:
        raise InvalidOperation("Check amount must be greater than zero")
    issue_date = issue_date or timezone.localdate()
    if due_date < issue_date:
        raise InvalidOperation("Due date cannot be before the issue date")

    account = ledger.get_account_for_contact(contact.pk)
    with transaction.atomic():
        tx = ledger.post_transaction(
            account,
            transaction_type_for(direction),
            amount,
            description=default_description(direction, check_type, serial_no),
            reference_type='payment',
            transaction_date=issue_date,
            season=resolve_season(season),
            user=user,
        )
        check = Check.objects.create(
            contact=contact,
            check_type=check_type,
            direction=direction,
            serial_no=serial_no or None,
            bank_name=bank_name or None,
            branch_name=branch_name or None,
            amount=tx.amount,
            issue_date=issue_date,
            due_date=due_date,
            notes=notes,
            transaction=tx,
            created_by=tx.created_by,
        )
        tx.reference_id = check.pk
        tx.save(update_fields=['reference_id'])
    logger.info(f"Recorded {direction} {check_type} {check.pk} of {check.amount} for contact {contact.pk}")
    return check


def endorse_check(check, target_contact, endorse_date=None, user=None):
    """
    Hand a received check on to ``target_contact``.

    The original is marked endorsed; a new given check for the target carries
    the same paper and the debit that settles part of our debt to them.
    """
    if check.is_deleted:
        raise InvalidOperation(f"Check {check.pk} is deleted")
    if check.direction != 'received':
        raise InvalidOperation("Only received checks can be endorsed")
    if check.status != 'pending':
        raise InvalidOperation(f"Check {check.pk} is {check.status} and cannot be endorsed")
    if target_contact.pk == check.contact_id:
        raise InvalidOperation("A check cannot be endorsed back to its drawer")
    endorse_date = endorse_date or timezone.localdate()

    account = ledger.get_account_for_contact(target_contact.pk)
    with transaction.atomic():
        original = Check.objects.select_for_update().get(pk=check.pk)
        if original.status != 'pending':
            raise InvalidOperation(f"Check {original.pk} is {original.status} and cannot be endorsed")
        original.status = 'endorsed'
        original.endorsed_to = target_contact.name
        original.save(update_fields=['status', 'endorsed_to', 'updated_at'])

        tx = ledger.post_transaction(
            account,
            'debit',
            original.amount,
            description=f"{_label(original.check_type, original.serial_no)} (endorsement)",
            reference_type='payment',
            transaction_date=endorse_date,
            season=resolve_season(None),
            user=user,
        )
        endorsed = Check.objects.create(
            contact=target_contact,
            check_type=original.check_type,
            direction='given',
            serial_no=original.serial_no,
            bank_name=original.bank_name,
            branch_name=original.branch_name,
            amount=original.amount,
            issue_date=endorse_date,
            due_date=original.due_date,
            notes=f"Endorsed from {original.contact.name}",
            transaction=tx,
            created_by=tx.created_by,
        )
        tx.reference_id = endorsed.pk
        tx.save(update_fields=['reference_id'])
    logger.info(f"Endorsed check {original.pk} to contact {target_contact.pk} as check {endorsed.pk}")
    return original, endorsed


def update_status(check, status):
    if check.is_deleted:
        raise InvalidOperation(f"Check {check.pk} is deleted")
    allowed = STATUS_TRANSITIONS.get(check.status, ())
    if status not in allowed:
        raise InvalidOperation(f"Check {check.pk} cannot move from {check.status} to {status}")
    check.status = status
    check.save(update_fields=['status', 'updated_at'])
    logger.info(f"Check {check.pk} is now {status}")
    return check


def delete_check(check):
    """Move a check to the trash and void its transaction"""
    if check.is_deleted:
        raise InvalidOperation(f"Check {check.pk} is already deleted")
    if check.status == 'endorsed':
        raise InvalidOperation(f"Check {check.pk} has been endorsed and cannot be deleted")
    with transaction.atomic():
        if check.transaction_id and not check.transaction.is_deleted:
            ledger.void_transaction(check.transaction)
        check.soft_delete()
    return check


def restore_check(check):
    if not check.is_deleted:
        raise InvalidOperation(f"Check {check.pk} is not deleted")
    with transaction.atomic():
        if check.transaction_id and check.transaction.is_deleted:
            ledger.restore_transaction(check.transaction)
        check.restore()
    return check


def due_checks(days=DUE_WINDOW_DAYS, today=None, limit=None):
    """Open checks due within ``days`` of today, overdue ones included, earliest first"""
    today = today or timezone.localdate()
    horizon = today + timedelta(days=days)
    queryset = (
        Check.objects
        .filter(status__in=Check.OPEN_STATUSES, due_date__lte=horizon)
        .select_related('contact')
        .order_by('due_date', 'id')
    )
    if limit:
        queryset = queryset[:limit]
    return [DueCheck(check=check, days_left=(check.due_date - today).days) for check in queryset]

