"""Checks that an account's running totals match its live transactions"""
from dataclasses import dataclass
from decimal import Decimal
import logging

from django.db import transaction
from django.db.models import Q, Sum

from feedtrade.parties.models import Account

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


@dataclass
class BalanceCheck:
    account_id: int
    contact_name: str
    stored_balance: Decimal
    stored_debit: Decimal
    stored_credit: Decimal
    live_debit: Decimal
    live_credit: Decimal

    @property
    def live_balance(self):
        return self.live_debit - self.live_credit

    @property
    def is_consistent(self):
        return (
            self.stored_debit == self.live_debit
            and self.stored_credit == self.live_credit
            and self.stored_balance == self.live_balance
        )


def check_account(account):
    totals = account.transactions.aggregate(
        debit=Sum('amount', filter=Q(type='debit')),
        credit=Sum('amount', filter=Q(type='credit')),
    )
    return BalanceCheck(
        account_id=account.pk,
        contact_name=account.contact.name,
        stored_balance=account.balance,
        stored_debit=account.total_debit,
        stored_credit=account.total_credit,
        live_debit=totals['debit'] or ZERO,
        live_credit=totals['credit'] or ZERO,
    )


def repair_account(account):
    """Reset the running totals of an account from its live transactions"""
    with transaction.atomic():
        account = Account.objects.select_for_update().select_related('contact').get(pk=account.pk)
        result = check_account(account)
        if not result.is_consistent:
            logger.warning(
                f"Repairing account {account.pk} ({result.contact_name}): "
                f"balance {result.stored_balance} -> {result.live_balance}"
            )
            account.total_debit = result.live_debit
            account.total_credit = result.live_credit
            account.balance = result.live_balance
            account.save(update_fields=['total_debit', 'total_credit', 'balance', 'updated_at'])
    return result
