"""
Account ledger reads and postings.

Balances are running totals on the account row. Reads prefer the
v_account_summary view and fall back to the equivalent join over
accounts, contacts and account_transactions when the view is missing.
"""
from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import List, Optional

from django.db import transaction
from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce

from feedtrade.core.cache_utils import (
    cached_query, LEDGER, ACCOUNT_SUMMARY, LEDGER_CACHE_TTL, ACCOUNT_SUMMARY_CACHE_TTL,
)
from feedtrade.core.capabilities import has_view, ACCOUNT_SUMMARY_VIEW
from feedtrade.core.exceptions import AccountNotFound, InvalidOperation
from feedtrade.core.retry import with_db_retry
from feedtrade.parties.models import Account, AccountSummary, AccountTransaction

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
CENT = Decimal('0.01')
MONEY = DecimalField(max_digits=16, decimal_places=2)


@dataclass
class AccountSummaryRow:
    account_id: int
    contact_id: int
    contact_name: str
    contact_type: str
    balance: Decimal
    total_debit: Decimal
    total_credit: Decimal


@dataclass
class ContactLedger:
    contact_id: int
    account_id: int
    balance: Decimal
    total_debit: Decimal
    total_credit: Decimal
    transactions: List[AccountTransaction] = field(default_factory=list)


def _live_totals(queryset, prefix=''):
    """Annotate live debit/credit sums, zero when an account has no transactions"""
    live = Q(**{f'{prefix}deleted_at__isnull': True})
    zero = Value(ZERO, output_field=MONEY)
    return queryset.annotate(
        live_debit=Coalesce(
            Sum(f'{prefix}amount', filter=live & Q(**{f'{prefix}type': 'debit'})), zero, output_field=MONEY
        ),
        live_credit=Coalesce(
            Sum(f'{prefix}amount', filter=live & Q(**{f'{prefix}type': 'credit'})), zero, output_field=MONEY
        ),
    )


def _summary_rows(contact_id=None):
    if has_view(ACCOUNT_SUMMARY_VIEW):
        queryset = AccountSummary.objects.all()
        if contact_id is not None:
            queryset = queryset.filter(contact_id=contact_id)
        return [
            AccountSummaryRow(
                account_id=row.account_id,
                contact_id=row.contact_id,
                contact_name=row.contact_name,
                contact_type=row.contact_type,
                balance=row.balance,
                total_debit=row.total_debit,
                total_credit=row.total_credit,
            )
            for row in queryset
        ]

    queryset = Account.objects.select_related('contact')
    if contact_id is not None:
        queryset = queryset.filter(contact_id=contact_id)
    queryset = _live_totals(queryset, prefix='transactions__')
    return [
        AccountSummaryRow(
            account_id=account.pk,
            contact_id=account.contact_id,
            contact_name=account.contact.name,
            contact_type=account.contact.type,
            balance=account.balance,
            total_debit=account.live_debit,
            total_credit=account.live_credit,
        )
        for account in queryset
    ]


@with_db_retry
@cached_query(LEDGER, cache_ttl=LEDGER_CACHE_TTL)
def get_contact_ledger(contact_id) -> Optional[ContactLedger]:
    """Balance, totals and live transactions (newest first); None when the contact has no account"""
    rows = _summary_rows(contact_id=contact_id)
    if not rows:
        return None
    summary = rows[0]
    transactions = list(
        AccountTransaction.objects
        .filter(account_id=summary.account_id)
        .select_related('account__contact', 'created_by')
        .order_by('-transaction_date', '-created_at', '-id')
    )
    # Stored balance_after goes stale once an earlier row is voided; recompute over live rows
    for tx, balance in running_balance(reversed(transactions)):
        tx.running_balance = balance
    return ContactLedger(
        contact_id=summary.contact_id,
        account_id=summary.account_id,
        balance=summary.balance,
        total_debit=summary.total_debit,
        total_credit=summary.total_credit,
        transactions=transactions,
    )


@with_db_retry
@cached_query(ACCOUNT_SUMMARY, cache_ttl=ACCOUNT_SUMMARY_CACHE_TTL)
def account_summaries() -> List[AccountSummaryRow]:
    """Every account with contact name/type and live totals, sorted by contact name"""
    rows = _summary_rows()
    rows.sort(key=lambda r: (r.contact_name.casefold(), r.account_id))
    return rows


def get_account_for_contact(contact_id):
    account = Account.objects.filter(contact_id=contact_id).first()
    if account is None:
        raise AccountNotFound(f"No account found for contact {contact_id}")
    return account


def _apply(account, tx_type, amount):
    """Apply a signed amount of the given type to the running totals"""
    if tx_type == 'debit':
        account.total_debit += amount
    else:
        account.total_credit += amount
    account.balance = account.total_debit - account.total_credit


def _validate(tx_type, amount):
    if tx_type not in ('debit', 'credit'):
        raise InvalidOperation(f"Invalid transaction type: {tx_type}")
    if amount is None or Decimal(amount) <= 0:
        raise InvalidOperation("Transaction amount must be greater than zero")


def post_transaction(account, tx_type, amount, description=None, reference_type=None,
                     reference_id=None, transaction_date=None, season=None, user=None):
    """Append a transaction and update the account's running totals under a row lock"""
    _validate(tx_type, amount)
    amount = Decimal(amount).quantize(CENT)

    with transaction.atomic():
        account = Account.objects.select_for_update().get(pk=account.pk)
        _apply(account, tx_type, amount)
        account.save(update_fields=['total_debit', 'total_credit', 'balance', 'updated_at'])

        values = {
            'account': account,
            'type': tx_type,
            'amount': amount,
            'balance_after': account.balance,
            'description': description,
            'reference_type': reference_type,
            'reference_id': reference_id,
            'season': season,
            'created_by': user if user is not None and user.is_authenticated else None,
        }
        if transaction_date is not None:
            values['transaction_date'] = transaction_date
        tx = AccountTransaction.objects.create(**values)

    logger.debug(f"Posted {tx_type} {amount} to account {account.pk}; balance now {account.balance}")
    return tx


def post_to_contact(contact_id, tx_type, amount, **kwargs):
    return post_transaction(get_account_for_contact(contact_id), tx_type, amount, **kwargs)


def void_transaction(tx):
    """Soft-delete a transaction and take it out of the running totals"""
    with transaction.atomic():
        tx = AccountTransaction.all_objects.select_for_update().get(pk=tx.pk)
        if tx.is_deleted:
            raise InvalidOperation(f"Transaction {tx.pk} is already voided")
        account = Account.objects.select_for_update().get(pk=tx.account_id)
        _apply(account, tx.type, -tx.amount)
        account.save(update_fields=['total_debit', 'total_credit', 'balance', 'updated_at'])
        tx.soft_delete()
    logger.info(f"Voided transaction {tx.pk} ({tx.type} {tx.amount}) on account {account.pk}")
    return tx


def restore_transaction(tx):
    """Bring a voided transaction back into the running totals"""
    with transaction.atomic():
        tx = AccountTransaction.all_objects.select_for_update().get(pk=tx.pk)
        if not tx.is_deleted:
            raise InvalidOperation(f"Transaction {tx.pk} is not voided")
        account = Account.objects.select_for_update().get(pk=tx.account_id)
        _apply(account, tx.type, tx.amount)
        account.save(update_fields=['total_debit', 'total_credit', 'balance', 'updated_at'])
        tx.restore()
    logger.info(f"Restored transaction {tx.pk} ({tx.type} {tx.amount}) on account {account.pk}")
    return tx


def running_balance(transactions):
    """Pair each transaction (oldest first) with the balance after it"""
    balance = ZERO
    rows = []
    for tx in transactions:
        balance += tx.signed_amount
        rows.append((tx, balance))
    return rows
