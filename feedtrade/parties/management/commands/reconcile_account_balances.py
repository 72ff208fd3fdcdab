from django.core.management.base import BaseCommand
from django.db import transaction
from feedtrade.core.cache_signals import invalidate_for_model
from feedtrade.core.models import AuditLog
from feedtrade.parties.models import Account
from feedtrade.parties.services.reconciliation import check_account, repair_account


class Command(BaseCommand):
    help = 'Compares stored account totals with live transactions and repairs drift'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without saving changes',
        )
        parser.add_argument(
            '--account',
            type=int,
            help='Only check this account id',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        accounts = Account.objects.select_related('contact').order_by('id')
        if options.get('account'):
            accounts = accounts.filter(pk=options['account'])
        self.stdout.write(f"Checking {accounts.count()} accounts...")

        drifted = 0
        with transaction.atomic():
            for account in accounts:
                result = check_account(account)
                if result.is_consistent:
                    continue
                drifted += 1
                self.stdout.write(self.style.NOTICE(
                    f"  - {result.contact_name} (account {account.id}): "
                    f"debit {result.stored_debit} -> {result.live_debit}, "
                    f"credit {result.stored_credit} -> {result.live_credit}, "
                    f"balance {result.stored_balance} -> {result.live_balance}"
                ))
                if not dry_run:
                    repair_account(account)
                    AuditLog.objects.create(
                        action='balance_repair',
                        model_name='Account',
                        object_id=str(account.id),
                        object_name=result.contact_name,
                        changes={
                            'balance': [str(result.stored_balance), str(result.live_balance)],
                            'total_debit': [str(result.stored_debit), str(result.live_debit)],
                            'total_credit': [str(result.stored_credit), str(result.live_credit)],
                        },
                    )

            if dry_run:
                self.stdout.write(self.style.WARNING(f"\nDry run complete: {drifted} account(s) drifted. Rolling back."))
                transaction.set_rollback(True)
            else:
                self.stdout.write(self.style.SUCCESS(f"\nReconciliation complete: {drifted} account(s) repaired."))

        if drifted and not dry_run:
            invalidate_for_model('parties.Account')
