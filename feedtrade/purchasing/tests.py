"""
Test suite for purchasing module
Tests: purchase creation, computed totals, pricing models and deletion rules
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.inventory.models import InventoryItem
from feedtrade.logistics.services.shipments import record_delivery
from feedtrade.purchasing.models import Purchase


class PurchaseModelTests(TestCase):
    """Test Purchase model behaviour"""

    def setUp(self):
        reset_read_state()

    def test_total_amount_is_computed(self):
        purchase = TestDataFactory.create_purchase(quantity=Decimal('8000.00'), unit_price=Decimal('2.25'))
        purchase.refresh_from_db()
        self.assertEqual(purchase.total_amount, Decimal('18000.00'))

    def test_purchase_no_generated(self):
        purchase = TestDataFactory.create_purchase()
        self.assertTrue(purchase.purchase_no.startswith('PUR-'))


class PurchaseAPITests(TestCase):
    """Test purchase endpoints"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier()
        self.feed_type = TestDataFactory.create_feed_type()

    def test_create_purchase(self):
        response = self.client.post('/api/v1/purchases/', {
            'contact': self.supplier.pk,
            'feed_type': self.feed_type.pk,
            'quantity': '15000.00',
            'unit_price': '2.10',
            'pricing_model': 'freight_included',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        purchase = Purchase.objects.get(pk=response.data['id'])
        self.assertEqual(purchase.pricing_model, 'freight_included')
        self.assertEqual(purchase.created_by, self.user)

    def test_invalid_pricing_model_rejected(self):
        response = self.client.post('/api/v1/purchases/', {
            'contact': self.supplier.pk,
            'feed_type': self.feed_type.pk,
            'quantity': '100.00',
            'unit_price': '2.10',
            'pricing_model': 'ex_works',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search(self):
        other = TestDataFactory.create_supplier(name='Kaya Tarim')
        TestDataFactory.create_purchase(contact=self.supplier, feed_type=self.feed_type)
        mine = TestDataFactory.create_purchase(contact=other, feed_type=self.feed_type)
        response = self.client.get('/api/v1/purchases/?search=kaya')
        self.assertEqual([row['id'] for row in response.data], [mine.pk])

    def test_delete_with_deliveries_rejected(self):
        purchase = TestDataFactory.create_purchase(contact=self.supplier, feed_type=self.feed_type)
        TestDataFactory.create_delivery(purchase=purchase)
        response = self.client.delete(f'/api/v1/purchases/{purchase.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PurchaseDeliveryStockTests(TestCase):
    """Test deliveries against warehoused purchases book stock in"""

    def setUp(self):
        reset_read_state()
        self.warehouse = TestDataFactory.create_warehouse()
        self.feed_type = TestDataFactory.create_feed_type()
        self.purchase = TestDataFactory.create_purchase(
            feed_type=self.feed_type, warehouse=self.warehouse, unit_price=Decimal('2.00'),
        )

    def test_delivery_books_stock_in(self):
        record_delivery(purchase=self.purchase, net_weight=Decimal('6000.00'))
        item = InventoryItem.objects.get(warehouse=self.warehouse, feed_type=self.feed_type)
        self.assertEqual(item.quantity_kg, Decimal('6000.00'))
        self.assertEqual(item.unit_cost, Decimal('2.00'))
