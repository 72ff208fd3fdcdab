"""
Test suite for inventory module
Tests: stock movements, weighted average cost, sale deliveries and summary view parity
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from feedtrade.core.capabilities import force_capability, INVENTORY_SUMMARY_VIEW
from feedtrade.core.exceptions import InvalidOperation
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.inventory.models import InventoryItem, InventoryMovement
from feedtrade.inventory.services import inventory_summary, record_movement
from feedtrade.logistics.services.shipments import delete_delivery, record_delivery


class StockMovementTests(TestCase):
    """Test record_movement bookkeeping"""

    def setUp(self):
        reset_read_state()
        self.warehouse = TestDataFactory.create_warehouse()
        self.feed_type = TestDataFactory.create_feed_type()

    def _item(self):
        return InventoryItem.objects.get(warehouse=self.warehouse, feed_type=self.feed_type)

    def test_first_movement_creates_item(self):
        record_movement(self.warehouse, self.feed_type, 'purchase_in', Decimal('5000'), unit_cost=Decimal('2.00'))
        item = self._item()
        self.assertEqual(item.quantity_kg, Decimal('5000.00'))
        self.assertEqual(item.unit_cost, Decimal('2.00'))
        self.assertEqual(item.movements.count(), 1)

    def test_weighted_average_cost(self):
        """Test incoming lots average the unit cost by weight"""
        record_movement(self.warehouse, self.feed_type, 'purchase_in', Decimal('1000'), unit_cost=Decimal('2.00'))
        record_movement(self.warehouse, self.feed_type, 'purchase_in', Decimal('3000'), unit_cost=Decimal('3.00'))
        self.assertEqual(self._item().unit_cost, Decimal('2.75'))

    def test_outgoing_keeps_cost(self):
        record_movement(self.warehouse, self.feed_type, 'purchase_in', Decimal('1000'), unit_cost=Decimal('2.00'))
        record_movement(self.warehouse, self.feed_type, 'sale_out', Decimal('-400'))
        item = self._item()
        self.assertEqual(item.quantity_kg, Decimal('600.00'))
        self.assertEqual(item.unit_cost, Decimal('2.00'))

    def test_negative_stock_allowed_with_warning(self):
        with self.assertLogs('feedtrade.inventory.services', level='WARNING'):
            record_movement(self.warehouse, self.feed_type, 'sale_out', Decimal('-250'))
        self.assertEqual(self._item().quantity_kg, Decimal('-250.00'))

    def test_invalid_movements_rejected(self):
        with self.assertRaises(InvalidOperation):
            record_movement(self.warehouse, self.feed_type, 'purchase_in', Decimal('0'))
        with self.assertRaises(InvalidOperation):
            record_movement(self.warehouse, self.feed_type, 'theft', Decimal('10'))


class SaleDeliveryStockTests(TestCase):
    """Test deliveries on warehoused sales book stock out and back"""

    def setUp(self):
        reset_read_state()
        self.warehouse = TestDataFactory.create_warehouse()
        self.feed_type = TestDataFactory.create_feed_type()
        record_movement(self.warehouse, self.feed_type, 'purchase_in', Decimal('10000'), unit_cost=Decimal('2.00'))
        self.sale = TestDataFactory.create_sale(feed_type=self.feed_type, warehouse=self.warehouse)

    def test_delivery_books_stock_out_and_delete_reverses(self):
        delivery = record_delivery(sale=self.sale, net_weight=Decimal('4000.00'))
        item = InventoryItem.objects.get(warehouse=self.warehouse, feed_type=self.feed_type)
        self.assertEqual(item.quantity_kg, Decimal('6000.00'))
        movement = InventoryMovement.objects.filter(movement_type='sale_out').get()
        self.assertEqual(movement.reference_type, 'sale')
        self.assertEqual(movement.reference_id, self.sale.pk)

        delete_delivery(delivery)
        item.refresh_from_db()
        self.assertEqual(item.quantity_kg, Decimal('10000.00'))

    def test_sale_without_warehouse_books_nothing(self):
        sale = TestDataFactory.create_sale(feed_type=self.feed_type)
        record_delivery(sale=sale, net_weight=Decimal('1000.00'))
        self.assertEqual(InventoryMovement.objects.filter(movement_type='sale_out').count(), 0)


class InventorySummaryTests(TestCase):
    """Test summary rows from the view and from the fallback join"""

    def setUp(self):
        reset_read_state()
        self.north = TestDataFactory.create_warehouse(name='North')
        self.south = TestDataFactory.create_warehouse(name='South')
        self.straw = TestDataFactory.create_feed_type(name='Straw')
        self.alfalfa = TestDataFactory.create_feed_type(name='Alfalfa')
        record_movement(self.south, self.straw, 'purchase_in', Decimal('2000'), unit_cost=Decimal('1.50'))
        record_movement(self.north, self.straw, 'purchase_in', Decimal('1000'), unit_cost=Decimal('1.60'))
        record_movement(self.north, self.alfalfa, 'purchase_in', Decimal('3000'), unit_cost=Decimal('4.00'))

    def _rows(self, available):
        reset_read_state()
        with force_capability(INVENTORY_SUMMARY_VIEW, available):
            return [
                (r.warehouse_name, r.feed_type_name, r.quantity_kg, r.unit_cost, r.total_value)
                for r in inventory_summary()
            ]

    def test_view_and_fallback_agree(self):
        self.assertEqual(self._rows(True), self._rows(False))

    def test_ordering_and_values(self):
        rows = self._rows(False)
        self.assertEqual([(w, f) for w, f, *_ in rows], [('North', 'Alfalfa'), ('North', 'Straw'), ('South', 'Straw')])
        self.assertEqual(rows[0][4], Decimal('12000.00'))

    def test_summary_endpoint(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient().authenticate_user(user)
        response = client.get(f'/api/v1/inventory/summary/?warehouse={self.north.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_adjust_endpoint(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient().authenticate_user(user)
        response = client.post('/api/v1/inventory/adjust/', {
            'warehouse': self.south.pk,
            'feed_type': self.straw.pk,
            'quantity_change': '-150.00',
            'notes': 'Spoiled bales',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = InventoryItem.objects.get(warehouse=self.south, feed_type=self.straw)
        self.assertEqual(item.quantity_kg, Decimal('1850.00'))

        response = client.get('/api/v1/inventory/movements/?limit=1')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['movement_type'], 'adjustment')
