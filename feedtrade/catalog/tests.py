"""
Test suite for catalog module
Tests: feed type CRUD and deactivation of feed types in use
"""
from django.test import TestCase
from rest_framework import status

from feedtrade.catalog.models import FeedType
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class FeedTypeAPITests(TestCase):
    """Test feed type endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_create_feed_type(self):
        response = self.client.post('/api/v1/feed-types/', {'name': 'Wheat Straw'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(FeedType.objects.filter(name='Wheat Straw', is_active=True).exists())

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_feed_type(name='Silage')
        response = self.client.post('/api/v1/feed-types/', {'name': 'Silage'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_hides_inactive(self):
        TestDataFactory.create_feed_type(name='Alfalfa')
        retired = TestDataFactory.create_feed_type(name='Barley')
        retired.is_active = False
        retired.save()
        names = [row['name'] for row in self.client.get('/api/v1/feed-types/').data]
        self.assertEqual(names, ['Alfalfa'])
        names = [row['name'] for row in self.client.get('/api/v1/feed-types/?all=true').data]
        self.assertEqual(names, ['Alfalfa', 'Barley'])

    def test_delete_unused(self):
        feed_type = TestDataFactory.create_feed_type()
        response = self.client.delete(f'/api/v1/feed-types/{feed_type.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_delete_in_use_deactivates(self):
        """Test feed types referenced by a sale are deactivated instead of deleted"""
        feed_type = TestDataFactory.create_feed_type()
        TestDataFactory.create_sale(feed_type=feed_type)
        response = self.client.delete(f'/api/v1/feed-types/{feed_type.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        feed_type.refresh_from_db()
        self.assertFalse(feed_type.is_active)
