"""
Test suite for locations module
Tests: warehouse CRUD
"""
from django.test import TestCase
from rest_framework import status

from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from feedtrade.locations.models import Warehouse


class WarehouseAPITests(TestCase):
    """Test warehouse endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_warehouse(self):
        response = self.client.post('/api/v1/warehouses/', {'name': 'Konya Depo', 'capacity': '500000.00'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Warehouse.objects.filter(name='Konya Depo').exists())

    def test_update_warehouse(self):
        warehouse = TestDataFactory.create_warehouse()
        response = self.client.patch(f'/api/v1/warehouses/{warehouse.pk}/', {'is_active': False})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/v1/warehouses/').data, [])

    def test_viewer_cannot_create(self):
        viewer = TestDataFactory.create_user(role='viewer')
        client = AuthenticatedAPIClient().authenticate_user(viewer)
        response = client.post('/api/v1/warehouses/', {'name': 'Blocked'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
