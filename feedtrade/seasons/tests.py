"""
Test suite for seasons module
Tests: active season resolution, rollover, closing and concurrent rollovers
"""
from datetime import date
import threading

from django.db import IntegrityError, connection, transaction
from django.test import TestCase, TransactionTestCase
from rest_framework import status

from feedtrade.core.models import AuditLog
from feedtrade.core.retry import RetryConfig
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from feedtrade.seasons.models import Season
from feedtrade.seasons.services import close_season, get_active_season, resolve_season, start_new_season


class SeasonServiceTests(TestCase):
    """Test season lifecycle services"""

    def test_no_active_season(self):
        self.assertIsNone(get_active_season())
        self.assertIsNone(resolve_season())

    def test_resolve_prefers_explicit_season(self):
        active = TestDataFactory.create_season(is_active=True)
        other = TestDataFactory.create_season()
        self.assertEqual(resolve_season(other), other)
        self.assertEqual(resolve_season(), active)

    def test_start_closes_previous(self):
        first = start_new_season('2025-2026', start_date=date(2025, 9, 1))
        second = start_new_season('2026-2027', start_date=date(2026, 9, 1))
        first.refresh_from_db()
        self.assertFalse(first.is_active)
        self.assertIsNotNone(first.end_date)
        self.assertTrue(second.is_active)
        self.assertEqual(Season.objects.filter(is_active=True).count(), 1)

    def test_close_keeps_existing_end_date(self):
        season = start_new_season('2026', end_date=date(2026, 12, 31))
        close_season(season)
        season.refresh_from_db()
        self.assertFalse(season.is_active)
        self.assertEqual(season.end_date, date(2026, 12, 31))

    def test_two_active_seasons_rejected_by_database(self):
        TestDataFactory.create_season(is_active=True)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                TestDataFactory.create_season(is_active=True)


class SeasonAPITests(TestCase):
    """Test season endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.staff = TestDataFactory.create_user(role='staff')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_start_requires_admin(self):
        client = AuthenticatedAPIClient().authenticate_user(self.staff)
        response = client.post('/api/v1/seasons/start/', {'name': '2026-2027'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_start_and_active(self):
        response = self.client.post('/api/v1/seasons/start/', {'name': '2026-2027', 'start_date': '2026-09-01'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_active'])
        self.assertTrue(AuditLog.objects.filter(action='season_start').exists())

        response = self.client.get('/api/v1/seasons/active/')
        self.assertEqual(response.data['season']['name'], '2026-2027')

    def test_close(self):
        season = start_new_season('2026')
        response = self.client.post(f'/api/v1/seasons/{season.pk}/close/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        response = self.client.post(f'/api/v1/seasons/{season.pk}/close/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/seasons/active/')
        self.assertIsNone(response.data['season'])

    def test_created_seasons_are_inactive(self):
        response = self.client.post('/api/v1/seasons/', {'name': 'Archive', 'start_date': '2024-09-01', 'is_active': True})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['is_active'])

    def test_active_season_cannot_be_deleted(self):
        season = start_new_season('2026')
        response = self.client.delete(f'/api/v1/seasons/{season.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_end_before_start_rejected(self):
        response = self.client.post('/api/v1/seasons/', {
            'name': 'Broken', 'start_date': '2026-09-01', 'end_date': '2026-08-01',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ConcurrentRolloverTests(TransactionTestCase):
    """Test concurrent rollovers leave exactly one active season"""

    def test_exactly_one_active_season(self):
        start_new_season('Initial')
        retry = RetryConfig(max_retries=20, base_delay=0.01, max_delay=0.2)
        errors = []
        barrier = threading.Barrier(3)

        def worker(n):
            try:
                barrier.wait()
                start_new_season(f'Season {n}', retry=retry)
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(Season.objects.filter(is_active=True).count(), 1)
        self.assertEqual(Season.objects.count(), 4)
