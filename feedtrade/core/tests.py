"""
Test suite for core module
Tests: authentication, key-value storage, query cache, capability probe, retry and trash
"""
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from feedtrade.core import kv_store, trash
from feedtrade.core.cache_utils import cached_query, get_namespace_version, invalidate_namespace, LEDGER
from feedtrade.core.capabilities import (
    has_view, force_capability, reset_capabilities, ACCOUNT_SUMMARY_VIEW,
)
from feedtrade.core.exceptions import AccountNotFound, InvalidOperation, api_exception_handler
from feedtrade.core.models import AuditLog, Setting
from feedtrade.core.retry import RetryConfig, with_db_retry
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.parties.models import AccountTransaction, Payment
from feedtrade.parties.services import ledger, payments


class AuthenticationTests(TestCase):
    """Test JWT login and role-based access"""

    def setUp(self):
        reset_read_state()
        self.client = APIClient()
        self.user = TestDataFactory.create_user(username='operator', password='testpass123')

    def test_login_returns_tokens(self):
        """Test login issues access and refresh tokens"""
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'operator',
            'password': 'testpass123',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'operator',
            'password': 'wrong',
        })
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/contacts/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_includes_preferences(self):
        """Test /auth/me/ reports role flags and default preferences"""
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'operator')
        self.assertTrue(response.data['can_write'])
        self.assertFalse(response.data['is_admin'])
        self.assertTrue(response.data['preferences']['balance_visible'])

    def test_viewer_cannot_write(self):
        """Test viewer role is read-only"""
        viewer = TestDataFactory.create_user(role='viewer')
        client = AuthenticatedAPIClient().authenticate_user(viewer)
        self.assertEqual(client.get('/api/v1/contacts/').status_code, status.HTTP_200_OK)
        response = client.post('/api/v1/contacts/', {'name': 'Blocked', 'type': 'customer'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_management_requires_admin(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.assertEqual(client.get('/api/v1/users/').status_code, status.HTTP_403_FORBIDDEN)

        admin = TestDataFactory.create_user(role='admin')
        client.authenticate_user(admin)
        self.assertEqual(client.get('/api/v1/users/').status_code, status.HTTP_200_OK)


class KeyValueStoreTests(TestCase):
    """Test namespaced settings storage"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_prefixes_do_not_collide(self):
        kv_store.message_templates.set('greeting', 'Hello')
        kv_store.shipment_templates.set('greeting', {'net_weight': 1000})
        self.assertEqual(kv_store.message_templates.get('greeting'), 'Hello')
        self.assertEqual(kv_store.shipment_templates.get('greeting'), {'net_weight': 1000})
        self.assertTrue(Setting.objects.filter(key='message_template:greeting').exists())
        self.assertTrue(Setting.objects.filter(key='shipment_template:greeting').exists())

    def test_missing_key_returns_default(self):
        self.assertIsNone(kv_store.message_templates.get('missing'))
        self.assertEqual(kv_store.message_templates.get('missing', 'x'), 'x')

    def test_delete(self):
        kv_store.message_templates.set('reminder', 'Pay up')
        self.assertTrue(kv_store.message_templates.delete('reminder'))
        self.assertFalse(kv_store.message_templates.delete('reminder'))

    def test_preferences_merge_defaults(self):
        """Test stored preferences override defaults and unknown keys are ignored"""
        prefs = kv_store.update_preferences(self.user.pk, {'balance_visible': False, 'unknown': 1})
        self.assertFalse(prefs['balance_visible'])
        self.assertIsNone(prefs['selected_season_id'])
        self.assertNotIn('unknown', prefs)

    def test_recent_shipments_capped_and_deduplicated(self):
        for i in range(7):
            kv_store.push_recent_shipment(self.user.pk, {'net_weight': i})
        kv_store.push_recent_shipment(self.user.pk, {'net_weight': 4})
        recents = kv_store.recent_shipments(self.user.pk)
        self.assertEqual(len(recents), kv_store.MAX_RECENT_SHIPMENTS)
        self.assertEqual(recents[0], {'net_weight': 4})
        self.assertEqual(recents.count({'net_weight': 4}), 1)

    def test_template_endpoints(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.post('/api/v1/templates/message/', {'name': 'due', 'value': 'Balance due'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = client.get('/api/v1/templates/message/due/')
        self.assertEqual(response.data['value'], 'Balance due')
        response = client.get('/api/v1/templates/unknown/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class QueryCacheTests(TestCase):
    """Test namespaced query cache and invalidation"""

    def setUp(self):
        cache.clear()
        self.calls = []

        @cached_query(LEDGER, cache_ttl=60)
        def lookup(key):
            self.calls.append(key)
            return {'key': key}

        self.lookup = lookup

    def test_second_read_is_cached(self):
        self.lookup(1)
        self.lookup(1)
        self.assertEqual(self.calls, [1])

    def test_invalidation_bumps_namespace(self):
        self.lookup(1)
        invalidate_namespace(LEDGER)
        self.lookup(1)
        self.assertEqual(self.calls, [1, 1])

    def test_model_save_invalidates(self):
        """Test posting a transaction invalidates cached ledger reads"""
        contact = TestDataFactory.create_customer()
        cache.clear()
        first = ledger.get_contact_ledger(contact.pk)
        self.assertEqual(first.balance, Decimal('0.00'))
        ledger.post_to_contact(contact.pk, 'debit', Decimal('150.00'))
        second = ledger.get_contact_ledger(contact.pk)
        self.assertEqual(second.balance, Decimal('150.00'))

    def test_invalidation_repeated_after_commit(self):
        """Test a read cached between a write and its commit is dropped when the commit lands"""
        contact = TestDataFactory.create_customer()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            ledger.post_to_contact(contact.pk, 'debit', Decimal('150.00'))
            version_before_commit = get_namespace_version(LEDGER)
            self.lookup(1)
        self.assertTrue(callbacks)
        self.assertGreater(get_namespace_version(LEDGER), version_before_commit)
        self.lookup(1)
        self.assertEqual(self.calls, [1, 1])


class CapabilityProbeTests(TestCase):
    """Test summary view probing"""

    def setUp(self):
        reset_capabilities()

    def tearDown(self):
        reset_capabilities()

    def test_migrated_view_is_found(self):
        self.assertTrue(has_view(ACCOUNT_SUMMARY_VIEW))

    def test_missing_view(self):
        self.assertFalse(has_view('v_does_not_exist'))

    @override_settings(USE_SUMMARY_VIEWS=False)
    def test_views_disabled_by_setting(self):
        self.assertFalse(has_view(ACCOUNT_SUMMARY_VIEW))

    def test_force_capability_restores_previous(self):
        self.assertTrue(has_view(ACCOUNT_SUMMARY_VIEW))
        with force_capability(ACCOUNT_SUMMARY_VIEW, False):
            self.assertFalse(has_view(ACCOUNT_SUMMARY_VIEW))
        self.assertTrue(has_view(ACCOUNT_SUMMARY_VIEW))


class RetryTests(TestCase):
    """Test exponential backoff on transient failures"""

    def setUp(self):
        self.delays = []
        self.config = RetryConfig(max_retries=3, base_delay=0.1, max_delay=0.3)
        patcher = mock.patch('feedtrade.core.retry.connection')
        patcher.start()
        self.addCleanup(patcher.stop)

    def _flaky(self, failures):
        state = {'calls': 0}

        @with_db_retry(config=self.config, sleep=self.delays.append)
        def read():
            state['calls'] += 1
            if state['calls'] <= failures:
                raise OperationalError('connection reset')
            return 'ok'

        return read, state

    def test_delay_is_capped(self):
        self.assertEqual(self.config.get_delay(0), 0.1)
        self.assertEqual(self.config.get_delay(1), 0.2)
        self.assertEqual(self.config.get_delay(5), 0.3)

    def test_recovers_after_transient_errors(self):
        read, state = self._flaky(failures=2)
        # TestCase wraps each test in an atomic block; retries apply outside it
        with mock.patch('feedtrade.core.retry.transaction.get_connection') as get_connection:
            get_connection.return_value.in_atomic_block = False
            self.assertEqual(read(), 'ok')
        self.assertEqual(state['calls'], 3)
        self.assertEqual(self.delays, [0.1, 0.2])

    def test_gives_up_after_max_retries(self):
        read, state = self._flaky(failures=10)
        with mock.patch('feedtrade.core.retry.transaction.get_connection') as get_connection:
            get_connection.return_value.in_atomic_block = False
            with self.assertRaises(OperationalError):
                read()
        self.assertEqual(state['calls'], 4)

    def test_no_retry_inside_atomic_block(self):
        read, state = self._flaky(failures=1)
        with transaction.atomic():
            with self.assertRaises(OperationalError):
                read()
        self.assertEqual(state['calls'], 1)
        self.assertEqual(self.delays, [])


class ExceptionHandlerTests(TestCase):
    """Test mapping of domain and storage errors to responses"""

    def test_invalid_operation_is_400(self):
        response = api_exception_handler(InvalidOperation('Sale is already cancelled'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Sale is already cancelled'})

    def test_account_not_found_is_404(self):
        response = api_exception_handler(AccountNotFound('No account'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_integrity_error_is_409(self):
        exc = IntegrityError('duplicate key value violates unique constraint "one_active_season"')
        response = api_exception_handler(exc, {'view': None})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)

    def test_database_error_is_503(self):
        response = api_exception_handler(DatabaseError('server closed the connection'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn('error', response.data)

    def test_unrelated_errors_pass_through(self):
        self.assertIsNone(api_exception_handler(KeyError('x'), {'view': None}))


class TrashTests(TestCase):
    """Test listing and restoring soft-deleted rows"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.contact = TestDataFactory.create_customer(name='Ahmet')
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_deleted_payment_listed_and_restored(self):
        payment = payments.record_payment(self.contact, 'inbound', 'cash', Decimal('500.00'))
        payments.delete_payment(payment)
        self.contact.account.refresh_from_db()
        self.assertEqual(self.contact.account.balance, Decimal('0.00'))

        records = trash.list_trash()
        kinds = {(r.kind, r.id) for r in records}
        self.assertIn(('payments', payment.pk), kinds)
        self.assertIn(('account_transactions', payment.transaction_id), kinds)

        trash.restore('payments', payment.pk, user=self.user)
        self.contact.account.refresh_from_db()
        self.assertEqual(self.contact.account.balance, Decimal('-500.00'))
        self.assertTrue(Payment.objects.filter(pk=payment.pk).exists())

    def test_rows_past_retention_are_hidden(self):
        tx = ledger.post_to_contact(self.contact.pk, 'debit', Decimal('100.00'))
        ledger.void_transaction(tx)
        AccountTransaction.all_objects.filter(pk=tx.pk).update(
            deleted_at=timezone.now() - timedelta(days=trash.RETENTION_DAYS + 1)
        )
        self.assertNotIn(tx.pk, [r.id for r in trash.list_trash() if r.kind == 'account_transactions'])

    def test_restore_live_row_rejected(self):
        tx = ledger.post_to_contact(self.contact.pk, 'debit', Decimal('100.00'))
        with self.assertRaises(InvalidOperation):
            trash.restore('account_transactions', tx.pk)

    def test_restore_endpoint(self):
        tx = ledger.post_to_contact(self.contact.pk, 'debit', Decimal('100.00'))
        ledger.void_transaction(tx)
        response = self.client.post(f'/api/v1/trash/account_transactions/{tx.pk}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action='restore', object_id=str(tx.pk)).exists())

        response = self.client.post('/api/v1/trash/invoices/1/restore/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
