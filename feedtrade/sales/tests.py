"""
Test suite for sales module
Tests: sale creation, computed totals, updates, deletion and cancellation
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from feedtrade.core.exceptions import InvalidOperation
from feedtrade.core.models import AuditLog
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.logistics.models import CarrierTransaction
from feedtrade.logistics.services.shipments import (
    cancel_sale, create_delivery_with_transactions, return_delivery,
)
from feedtrade.parties.models import AccountTransaction
from feedtrade.sales.models import Sale


class SaleModelTests(TestCase):
    """Test Sale model behaviour"""

    def setUp(self):
        reset_read_state()

    def test_total_amount_is_computed(self):
        """Test total_amount = quantity * unit_price"""
        sale = TestDataFactory.create_sale(quantity=Decimal('12500.00'), unit_price=Decimal('3.40'))
        sale.refresh_from_db()
        self.assertEqual(sale.total_amount, Decimal('42500.00'))

    def test_sale_no_generated(self):
        sale = TestDataFactory.create_sale()
        self.assertTrue(sale.sale_no.startswith('SAL-'))
        self.assertEqual(str(sale), sale.sale_no)


class SaleAPITests(TestCase):
    """Test sale endpoints"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.feed_type = TestDataFactory.create_feed_type(name='Alfalfa')

    def _payload(self, **overrides):
        payload = {
            'contact': self.customer.pk,
            'feed_type': self.feed_type.pk,
            'quantity': '20000.00',
            'unit_price': '3.50',
            'status': 'confirmed',
        }
        payload.update(overrides)
        return payload

    def test_create_sale(self):
        response = self.client.post('/api/v1/sales/', self._payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        sale = Sale.objects.get(pk=response.data['id'])
        sale.refresh_from_db()
        self.assertEqual(sale.total_amount, Decimal('70000.00'))
        self.assertEqual(sale.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Sale').exists())

    def test_create_sale_attaches_active_season(self):
        season = TestDataFactory.create_season(is_active=True)
        response = self.client.post('/api/v1/sales/', self._payload())
        self.assertEqual(response.data['season'], season.pk)

    def test_quantity_must_be_positive(self):
        response = self.client.post('/api/v1/sales/', self._payload(quantity='0'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_due_date_before_sale_date_rejected(self):
        response = self.client.post('/api/v1/sales/', self._payload(sale_date='2026-05-10', due_date='2026-05-01'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_filter_by_status(self):
        TestDataFactory.create_sale(contact=self.customer, status='draft')
        confirmed = TestDataFactory.create_sale(contact=self.customer, status='confirmed')
        response = self.client.get('/api/v1/sales/?status=confirmed')
        self.assertEqual([row['id'] for row in response.data], [confirmed.pk])

    def test_update_recomputes_total(self):
        sale = TestDataFactory.create_sale(contact=self.customer, quantity=Decimal('1000.00'), unit_price=Decimal('2.00'))
        response = self.client.patch(f'/api/v1/sales/{sale.pk}/', {'unit_price': '2.50'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('2500.00'))

    def test_delete_sale_with_deliveries_rejected(self):
        sale = TestDataFactory.create_sale(contact=self.customer)
        TestDataFactory.create_delivery(sale=sale)
        response = self.client.delete(f'/api/v1/sales/{sale.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Sale.objects.filter(pk=sale.pk).exists())

    def test_delete_sale_without_deliveries(self):
        sale = TestDataFactory.create_sale(contact=self.customer)
        response = self.client.delete(f'/api/v1/sales/{sale.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class SaleCancelTests(TestCase):
    """Test cancellation reverses customer, supplier and carrier effects"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        self.supplier = TestDataFactory.create_supplier()
        self.carrier = TestDataFactory.create_carrier(name='Yilmaz Nakliyat')
        self.sale = TestDataFactory.create_sale(
            contact=self.customer, quantity=Decimal('20000.00'), unit_price=Decimal('3.00'),
        )
        self.delivery = create_delivery_with_transactions(
            self.sale,
            supplier=self.supplier,
            supplier_price=Decimal('2.00'),
            net_weight=Decimal('10000.00'),
            freight_cost=Decimal('4000.00'),
            freight_payer='me',
            carrier_name='Yilmaz Nakliyat',
            vehicle_plate='42 ABC 123',
        )

    def _balance(self, contact):
        contact.account.refresh_from_db()
        return contact.account.balance

    def test_cancel_zeroes_balances(self):
        self.assertEqual(self._balance(self.customer), Decimal('30000.00'))
        self.assertEqual(self._balance(self.supplier), Decimal('-20000.00'))

        cancel_sale(self.sale, note='customer withdrew', user=self.user)

        self.assertEqual(self._balance(self.customer), Decimal('0.00'))
        self.assertEqual(self._balance(self.supplier), Decimal('0.00'))
        self.assertFalse(CarrierTransaction.objects.filter(reference_id=self.delivery.pk).exists())

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.status, 'cancelled')
        self.assertIn('CANCELLED: customer withdrew', self.sale.notes)

    def test_cancel_reversal_description(self):
        cancel_sale(self.sale, note='duplicate')
        reversal = AccountTransaction.objects.filter(
            account=self.customer.account, type='credit', reference_type='sale',
        ).get()
        self.assertEqual(reversal.description, f"Cancel - {self.sale.sale_no} (duplicate)")
        self.assertEqual(reversal.amount, Decimal('30000.00'))

    def test_cancel_after_return_does_not_double_credit(self):
        return_delivery(self.delivery, Decimal('1000.00'), note='wet bales')
        self.assertEqual(self._balance(self.customer), Decimal('27000.00'))
        self.assertEqual(self._balance(self.supplier), Decimal('-18000.00'))

        cancel_sale(self.sale)
        self.assertEqual(self._balance(self.customer), Decimal('0.00'))
        self.assertEqual(self._balance(self.supplier), Decimal('0.00'))

    def test_cancel_twice_rejected(self):
        cancel_sale(self.sale)
        with self.assertRaises(InvalidOperation):
            cancel_sale(self.sale)

    def test_cancel_endpoint(self):
        response = self.client.post(f'/api/v1/sales/{self.sale.pk}/cancel/', {'note': 'price dispute'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertTrue(AuditLog.objects.filter(action='sale_cancel', object_id=str(self.sale.pk)).exists())

        response = self.client.post(f'/api/v1/sales/{self.sale.pk}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_cancelled_sale_cannot_be_edited(self):
        cancel_sale(self.sale)
        response = self.client.patch(f'/api/v1/sales/{self.sale.pk}/', {'unit_price': '4.00'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
