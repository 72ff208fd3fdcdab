"""
Test suite for parties module
Tests: contact accounts, contact deletion, ledger postings, payments, checks, balance reconciliation and view/fallback parity
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from feedtrade.core import trash
from feedtrade.core.capabilities import force_capability, ACCOUNT_SUMMARY_VIEW
from feedtrade.core.exceptions import AccountNotFound, InvalidOperation
from feedtrade.core.models import AuditLog
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.logistics.services.shipments import create_delivery_with_transactions
from feedtrade.parties.models import Account, AccountTransaction, Check, Contact, Payment
from feedtrade.parties.services import checks, ledger, payments
from feedtrade.parties.services.reconciliation import check_account
from feedtrade.reports.services.profit import profit_summary


class ContactAccountTests(TestCase):
    """Test automatic account creation"""

    def setUp(self):
        reset_read_state()

    def test_contact_gets_one_account(self):
        contact = TestDataFactory.create_customer()
        self.assertEqual(Account.objects.filter(contact=contact).count(), 1)
        self.assertEqual(contact.account.balance, Decimal('0.00'))

    def test_create_contact_via_api(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient().authenticate_user(user)
        response = client.post('/api/v1/contacts/', {'name': 'Mehmet Çiftlik', 'type': 'customer', 'city': 'Konya'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNotNone(response.data['account_id'])
        self.assertEqual(response.data['balance'], '0.00')

    def test_type_filter_includes_both(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient().authenticate_user(user)
        customer = TestDataFactory.create_contact(contact_type='customer')
        both = TestDataFactory.create_contact(contact_type='both')
        TestDataFactory.create_contact(contact_type='supplier')
        response = client.get('/api/v1/contacts/?type=customer')
        ids = {row['id'] for row in response.data}
        self.assertEqual(ids, {customer.pk, both.pk})


class ContactDeleteTests(TestCase):
    """Test that ledger history keeps a contact from being deleted"""

    def setUp(self):
        reset_read_state()
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        self.supplier = TestDataFactory.create_supplier(name='Veli Tarim')

    def test_supplier_booked_by_quick_shipment_is_kept(self):
        sale = TestDataFactory.create_sale(unit_price=Decimal('5.00'))
        create_delivery_with_transactions(
            sale, supplier=self.supplier, supplier_price=Decimal('3.00'), net_weight=Decimal('20000.00'),
        )
        today = timezone.localdate()
        cost_before = profit_summary(today, today).total_cost

        response = self.client.delete(f'/api/v1/contacts/{self.supplier.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertTrue(Contact.objects.filter(pk=self.supplier.pk).exists())
        self.assertEqual(AccountTransaction.objects.filter(account__contact=self.supplier).count(), 1)

        reset_read_state()
        self.assertEqual(cost_before, Decimal('60000.00'))
        self.assertEqual(profit_summary(today, today).total_cost, cost_before)

    def test_voided_transaction_still_blocks_delete(self):
        tx = ledger.post_to_contact(self.supplier.pk, 'credit', Decimal('100.00'))
        ledger.void_transaction(tx)
        response = self.client.delete(f'/api/v1/contacts/{self.supplier.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(AccountTransaction.all_objects.filter(pk=tx.pk).exists())

    def test_contact_without_history_is_deleted(self):
        response = self.client.delete(f'/api/v1/contacts/{self.supplier.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Contact.objects.filter(pk=self.supplier.pk).exists())
        self.assertFalse(Account.objects.filter(contact_id=self.supplier.pk).exists())


class LedgerTests(TestCase):
    """Test running totals and transaction postings"""

    def setUp(self):
        reset_read_state()
        self.contact = TestDataFactory.create_customer()
        self.account = self.contact.account

    def test_balance_is_debit_minus_credit(self):
        ledger.post_transaction(self.account, 'debit', Decimal('1000.00'))
        tx = ledger.post_transaction(self.account, 'credit', Decimal('250.00'))
        self.account.refresh_from_db()
        self.assertEqual(self.account.total_debit, Decimal('1000.00'))
        self.assertEqual(self.account.total_credit, Decimal('250.00'))
        self.assertEqual(self.account.balance, Decimal('750.00'))
        self.assertEqual(tx.balance_after, Decimal('750.00'))

    def test_amount_rounded_to_cents(self):
        tx = ledger.post_transaction(self.account, 'debit', Decimal('10.005'))
        self.assertEqual(tx.amount, Decimal('10.01'))

    def test_invalid_postings_rejected(self):
        with self.assertRaises(InvalidOperation):
            ledger.post_transaction(self.account, 'debit', Decimal('0'))
        with self.assertRaises(InvalidOperation):
            ledger.post_transaction(self.account, 'refund', Decimal('10'))

    def test_missing_account(self):
        with self.assertRaises(AccountNotFound):
            ledger.post_to_contact(999999, 'debit', Decimal('10'))

    def test_void_and_restore(self):
        tx = ledger.post_transaction(self.account, 'debit', Decimal('400.00'))
        ledger.void_transaction(tx)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('0.00'))
        self.assertFalse(AccountTransaction.objects.filter(pk=tx.pk).exists())
        with self.assertRaises(InvalidOperation):
            ledger.void_transaction(tx)

        ledger.restore_transaction(tx)
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('400.00'))

    def test_ledger_lists_live_transactions_newest_first(self):
        first = ledger.post_transaction(self.account, 'debit', Decimal('100.00'))
        second = ledger.post_transaction(self.account, 'debit', Decimal('200.00'))
        voided = ledger.post_transaction(self.account, 'credit', Decimal('50.00'))
        ledger.void_transaction(voided)

        result = ledger.get_contact_ledger(self.contact.pk)
        self.assertEqual([tx.pk for tx in result.transactions], [second.pk, first.pk])
        self.assertEqual(result.balance, Decimal('300.00'))
        self.assertEqual(result.total_credit, Decimal('0.00'))

    def test_running_balance(self):
        ledger.post_transaction(self.account, 'debit', Decimal('100.00'))
        ledger.post_transaction(self.account, 'credit', Decimal('30.00'))
        transactions = self.account.transactions.order_by('id')
        balances = [balance for _, balance in ledger.running_balance(transactions)]
        self.assertEqual(balances, [Decimal('100.00'), Decimal('70.00')])

    def test_ledger_rows_carry_running_balance(self):
        ledger.post_transaction(self.account, 'debit', Decimal('100.00'))
        voided = ledger.post_transaction(self.account, 'debit', Decimal('40.00'))
        ledger.post_transaction(self.account, 'credit', Decimal('30.00'))
        ledger.void_transaction(voided)

        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.get(f'/api/v1/contacts/{self.contact.pk}/ledger/')
        rows = response.data['ledger']['transactions']
        self.assertEqual([row['running_balance'] for row in rows], ['70.00', '100.00'])
        # The stored snapshot still counts the voided debit
        self.assertEqual(rows[0]['balance_after'], '110.00')


class SummaryParityTests(TestCase):
    """Test the summary view and the fallback join agree"""

    def setUp(self):
        reset_read_state()
        self.alpha = TestDataFactory.create_customer(name='Alpha')
        self.beta = TestDataFactory.create_supplier(name='beta')
        TestDataFactory.create_customer(name='Gamma')
        ledger.post_to_contact(self.alpha.pk, 'debit', Decimal('1200.00'))
        ledger.post_to_contact(self.alpha.pk, 'credit', Decimal('200.00'))
        ledger.post_to_contact(self.beta.pk, 'credit', Decimal('5000.00'))
        voided = ledger.post_to_contact(self.beta.pk, 'debit', Decimal('99.00'))
        ledger.void_transaction(voided)

    def _summaries(self, available):
        reset_read_state()
        with force_capability(ACCOUNT_SUMMARY_VIEW, available):
            return [
                (r.contact_name, r.balance, r.total_debit, r.total_credit)
                for r in ledger.account_summaries()
            ]

    def test_view_and_fallback_agree(self):
        self.assertEqual(self._summaries(True), self._summaries(False))

    def test_sorted_by_contact_name(self):
        names = [name for name, *_ in self._summaries(False)]
        self.assertEqual(names, ['Alpha', 'beta', 'Gamma'])

    def test_fallback_totals(self):
        rows = {name: (balance, debit, credit) for name, balance, debit, credit in self._summaries(False)}
        self.assertEqual(rows['Alpha'], (Decimal('1000.00'), Decimal('1200.00'), Decimal('200.00')))
        self.assertEqual(rows['beta'], (Decimal('-5000.00'), Decimal('0.00'), Decimal('5000.00')))
        self.assertEqual(rows['Gamma'], (Decimal('0.00'), Decimal('0.00'), Decimal('0.00')))

    def test_contact_ledger_parity(self):
        reset_read_state()
        with force_capability(ACCOUNT_SUMMARY_VIEW, True):
            from_view = ledger.get_contact_ledger(self.alpha.pk)
        reset_read_state()
        with force_capability(ACCOUNT_SUMMARY_VIEW, False):
            from_join = ledger.get_contact_ledger(self.alpha.pk)
        self.assertEqual(from_view.balance, from_join.balance)
        self.assertEqual(from_view.total_debit, from_join.total_debit)
        self.assertEqual(
            [tx.pk for tx in from_view.transactions],
            [tx.pk for tx in from_join.transactions],
        )


class PaymentTests(TestCase):
    """Test payments and their ledger transactions"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer()
        self.supplier = TestDataFactory.create_supplier()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_inbound_payment_credits_account(self):
        ledger.post_to_contact(self.customer.pk, 'debit', Decimal('3000.00'))
        payment = payments.record_payment(self.customer, 'inbound', 'cash', Decimal('1000.00'))
        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('2000.00'))
        self.assertEqual(payment.transaction.type, 'credit')
        self.assertEqual(payment.transaction.reference_type, 'payment')
        self.assertEqual(payment.transaction.reference_id, payment.pk)
        self.assertEqual(payment.transaction.description, 'Collection - Cash')

    def test_outbound_payment_debits_supplier(self):
        ledger.post_to_contact(self.supplier.pk, 'credit', Decimal('8000.00'))
        payment = payments.record_payment(self.supplier, 'outbound', 'bank_transfer', Decimal('8000.00'))
        self.supplier.account.refresh_from_db()
        self.assertEqual(self.supplier.account.balance, Decimal('0.00'))
        self.assertEqual(payment.transaction.type, 'debit')

    def test_payment_attached_to_active_season(self):
        season = TestDataFactory.create_season(is_active=True)
        payment = payments.record_payment(self.customer, 'inbound', 'cash', Decimal('10.00'))
        self.assertEqual(payment.transaction.season_id, season.pk)

    def test_delete_and_restore_payment(self):
        payment = payments.record_payment(self.customer, 'inbound', 'cash', Decimal('700.00'))
        payments.delete_payment(payment)
        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('0.00'))
        with self.assertRaises(InvalidOperation):
            payments.delete_payment(payment)

        payments.restore_payment(payment)
        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('-700.00'))

    def test_payment_endpoint(self):
        response = self.client.post('/api/v1/payments/', {
            'contact': self.customer.pk,
            'direction': 'inbound',
            'method': 'cash',
            'amount': '1250.00',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(AuditLog.objects.filter(action='payment_add').exists())
        self.assertEqual(Payment.objects.count(), 1)

    def test_payment_amount_must_be_positive(self):
        response = self.client.post('/api/v1/payments/', {
            'contact': self.customer.pk,
            'direction': 'inbound',
            'method': 'cash',
            'amount': '0',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_ledger_endpoint(self):
        ledger.post_to_contact(self.customer.pk, 'debit', Decimal('500.00'))
        response = self.client.get(f'/api/v1/contacts/{self.customer.pk}/ledger/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['ledger']['balance'], '500.00')
        self.assertEqual(len(response.data['ledger']['transactions']), 1)
        self.assertTrue(response.data['balance_visible'])

    def test_void_transaction_endpoint(self):
        tx = ledger.post_to_contact(self.customer.pk, 'debit', Decimal('500.00'))
        response = self.client.delete(f'/api/v1/transactions/{tx.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.delete(f'/api/v1/transactions/{tx.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)


class ReconcileCommandTests(TestCase):
    """Test the reconcile_account_balances management command"""

    def setUp(self):
        reset_read_state()
        self.contact = TestDataFactory.create_customer(name='Drifted')
        ledger.post_to_contact(self.contact.pk, 'debit', Decimal('900.00'))
        ledger.post_to_contact(self.contact.pk, 'credit', Decimal('100.00'))
        Account.objects.filter(pk=self.contact.account.pk).update(balance=Decimal('1.00'), total_debit=Decimal('1.00'))

    def test_check_detects_drift(self):
        account = Account.objects.select_related('contact').get(pk=self.contact.account.pk)
        result = check_account(account)
        self.assertFalse(result.is_consistent)
        self.assertEqual(result.live_balance, Decimal('800.00'))

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command('reconcile_account_balances', '--dry-run', stdout=out)
        self.assertIn('1 account(s) drifted', out.getvalue())
        self.contact.account.refresh_from_db()
        self.assertEqual(self.contact.account.balance, Decimal('1.00'))

    def test_repair(self):
        out = StringIO()
        call_command('reconcile_account_balances', stdout=out)
        self.assertIn('1 account(s) repaired', out.getvalue())
        self.contact.account.refresh_from_db()
        self.assertEqual(self.contact.account.balance, Decimal('800.00'))
        self.assertEqual(self.contact.account.total_debit, Decimal('900.00'))
        self.assertTrue(AuditLog.objects.filter(action='balance_repair').exists())


class CheckTests(TestCase):
    """Test checks and promissory notes with their ledger effect"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer(name='Ahmet Besi')
        self.supplier = TestDataFactory.create_supplier(name='Veli Tarim')
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.today = timezone.localdate()

    def test_received_check_credits_drawer(self):
        ledger.post_to_contact(self.customer.pk, 'debit', Decimal('5000.00'))
        check = checks.record_check(
            self.customer, 'received', Decimal('2000.00'), self.today + timedelta(days=30), serial_no='A-1001',
        )
        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('3000.00'))
        self.assertEqual(check.status, 'pending')
        self.assertEqual(check.transaction.type, 'credit')
        self.assertEqual(check.transaction.reference_type, 'payment')
        self.assertEqual(check.transaction.reference_id, check.pk)
        self.assertEqual(check.transaction.description, 'Check No: A-1001 (collection)')

    def test_given_note_debits_payee(self):
        ledger.post_to_contact(self.supplier.pk, 'credit', Decimal('8000.00'))
        note = checks.record_check(
            self.supplier, 'given', Decimal('8000.00'), self.today + timedelta(days=60), check_type='promissory_note',
        )
        self.supplier.account.refresh_from_db()
        self.assertEqual(self.supplier.account.balance, Decimal('0.00'))
        self.assertEqual(note.transaction.type, 'debit')
        self.assertEqual(note.transaction.transaction_date, self.today)

    def test_due_date_before_issue_rejected(self):
        with self.assertRaises(InvalidOperation):
            checks.record_check(self.customer, 'received', Decimal('10.00'), self.today - timedelta(days=1))

    def test_endorse_hands_check_to_supplier(self):
        ledger.post_to_contact(self.supplier.pk, 'credit', Decimal('2000.00'))
        check = checks.record_check(
            self.customer, 'received', Decimal('2000.00'), self.today + timedelta(days=30), serial_no='A-1001',
        )
        original, endorsed = checks.endorse_check(check, self.supplier)

        self.assertEqual(original.status, 'endorsed')
        self.assertEqual(original.endorsed_to, 'Veli Tarim')
        self.assertEqual(endorsed.contact, self.supplier)
        self.assertEqual(endorsed.direction, 'given')
        self.assertEqual(endorsed.status, 'pending')
        self.assertEqual(endorsed.due_date, check.due_date)
        self.assertEqual(endorsed.serial_no, 'A-1001')
        self.assertEqual(endorsed.transaction.type, 'debit')
        self.supplier.account.refresh_from_db()
        self.assertEqual(self.supplier.account.balance, Decimal('0.00'))

        with self.assertRaises(InvalidOperation):
            checks.endorse_check(original, self.supplier)

    def test_given_check_cannot_be_endorsed(self):
        check = checks.record_check(self.supplier, 'given', Decimal('100.00'), self.today)
        with self.assertRaises(InvalidOperation):
            checks.endorse_check(check, self.customer)

    def test_status_transitions(self):
        check = checks.record_check(self.customer, 'received', Decimal('100.00'), self.today)
        checks.update_status(check, 'deposited')
        checks.update_status(check, 'cleared')
        with self.assertRaises(InvalidOperation):
            checks.update_status(check, 'pending')

    def test_delete_voids_and_restore_reposts(self):
        check = checks.record_check(self.customer, 'received', Decimal('700.00'), self.today)
        checks.delete_check(check)
        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('0.00'))
        self.assertFalse(Check.objects.filter(pk=check.pk).exists())

        trash.restore('checks', check.pk)
        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('-700.00'))

    def test_due_checks_window(self):
        overdue = checks.record_check(
            self.customer, 'received', Decimal('100.00'), self.today - timedelta(days=2),
            issue_date=self.today - timedelta(days=10),
        )
        due_today = checks.record_check(self.customer, 'received', Decimal('200.00'), self.today)
        soon = checks.record_check(self.supplier, 'given', Decimal('300.00'), self.today + timedelta(days=7))
        checks.record_check(self.customer, 'received', Decimal('400.00'), self.today + timedelta(days=8))
        cleared = checks.record_check(self.customer, 'received', Decimal('500.00'), self.today)
        checks.update_status(cleared, 'cleared')

        items = checks.due_checks(today=self.today)
        self.assertEqual([item.check.pk for item in items], [overdue.pk, due_today.pk, soon.pk])
        self.assertEqual([item.days_left for item in items], [-2, 0, 7])
        self.assertEqual([item.overdue for item in items], [True, False, False])

    def test_check_endpoints(self):
        response = self.client.post('/api/v1/checks/', {
            'contact': self.customer.pk,
            'direction': 'received',
            'check_type': 'check',
            'serial_no': 'B-22',
            'bank_name': 'Ziraat',
            'amount': '1500.00',
            'due_date': (self.today + timedelta(days=3)).isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        check_id = response.data['id']
        self.assertTrue(AuditLog.objects.filter(model_name='Check', object_id=str(check_id)).exists())

        response = self.client.get('/api/v1/checks/due/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['total'], '1500.00')
        self.assertEqual(response.data['checks'][0]['contact_name'], 'Ahmet Besi')

        response = self.client.post(f'/api/v1/checks/{check_id}/endorse/', {'contact': self.supplier.pk})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['original']['status'], 'endorsed')

        response = self.client.patch(f'/api/v1/checks/{check_id}/', {'status': 'cleared'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

        response = self.client.get('/api/v1/checks/?direction=given')
        self.assertEqual([row['contact'] for row in response.data], [self.supplier.pk])

    def test_contact_with_checks_cannot_be_deleted(self):
        checks.record_check(self.customer, 'received', Decimal('100.00'), self.today)
        response = self.client.delete(f'/api/v1/contacts/{self.customer.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
