"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from feedtrade.catalog.models import FeedType
from feedtrade.core.capabilities import reset_capabilities
from feedtrade.locations.models import Warehouse
from feedtrade.logistics.models import Carrier, Vehicle, Delivery, CarrierTransaction
from feedtrade.parties.models import Contact
from feedtrade.purchasing.models import Purchase
from feedtrade.sales.models import Sale
from feedtrade.seasons.models import Season
from decimal import Decimal
import random
import string

User = get_user_model()


def reset_read_state():
    """Clear the query cache and capability probes between tests"""
    cache.clear()
    reset_capabilities()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='staff', is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_feed_type(name=None):
        if not name:
            name = f'Feed_{TestDataFactory.random_string(6)}'
        return FeedType.objects.create(name=name)

    @staticmethod
    def create_warehouse(name=None, location=None):
        """Create a test warehouse"""
        if not name:
            name = f'Warehouse_{TestDataFactory.random_string(6)}'
        return Warehouse.objects.create(name=name, location=location or f'Test location {name}')

    @staticmethod
    def create_contact(name=None, contact_type='customer', phone=None, city=None):
        """Create a test contact (its account is created automatically)"""
        if not name:
            name = f'Contact_{TestDataFactory.random_string(6)}'
        if not phone:
            phone = f'5{random.randint(100000000, 999999999)}'
        return Contact.objects.create(name=name, type=contact_type, phone=phone, city=city)

    @staticmethod
    def create_customer(name=None):
        return TestDataFactory.create_contact(name=name, contact_type='customer')

    @staticmethod
    def create_supplier(name=None):
        return TestDataFactory.create_contact(name=name, contact_type='supplier')

    @staticmethod
    def create_season(name=None, start_date=None, is_active=False):
        """Create a test season"""
        if not name:
            name = f'Season_{TestDataFactory.random_string(6)}'
        return Season.objects.create(
            name=name,
            start_date=start_date or timezone.localdate(),
            is_active=is_active,
        )

    @staticmethod
    def create_sale(contact=None, feed_type=None, quantity=Decimal('10000.00'), unit_price=Decimal('3.50'),
                    warehouse=None, season=None, status='confirmed', user=None):
        """Create a test sale"""
        if not contact:
            contact = TestDataFactory.create_customer()
        if not feed_type:
            feed_type = TestDataFactory.create_feed_type()
        return Sale.objects.create(
            contact=contact,
            feed_type=feed_type,
            warehouse=warehouse,
            quantity=quantity,
            unit_price=unit_price,
            season=season,
            status=status,
            created_by=user,
        )

    @staticmethod
    def create_purchase(contact=None, feed_type=None, quantity=Decimal('10000.00'), unit_price=Decimal('2.50'),
                        warehouse=None, season=None, pricing_model='on_truck', status='confirmed', user=None):
        """Create a test purchase"""
        if not contact:
            contact = TestDataFactory.create_supplier()
        if not feed_type:
            feed_type = TestDataFactory.create_feed_type()
        return Purchase.objects.create(
            contact=contact,
            feed_type=feed_type,
            warehouse=warehouse,
            quantity=quantity,
            unit_price=unit_price,
            season=season,
            pricing_model=pricing_model,
            status=status,
            created_by=user,
        )

    @staticmethod
    def create_delivery(sale=None, purchase=None, net_weight=Decimal('1000.00'), season=None,
                        delivery_date=None, **extra):
        """Create a bare delivery row (no ledger postings)"""
        return Delivery.objects.create(
            sale=sale,
            purchase=purchase,
            net_weight=net_weight,
            season=season,
            delivery_date=delivery_date or timezone.localdate(),
            **extra
        )

    @staticmethod
    def create_carrier(name=None, phone=None):
        if not name:
            name = f'Carrier_{TestDataFactory.random_string(6)}'
        return Carrier.objects.create(name=name, phone=phone)

    @staticmethod
    def create_vehicle(carrier=None, plate=None):
        if not plate:
            plate = f'06 {TestDataFactory.random_string(3).upper()} {random.randint(100, 999)}'
        return Vehicle.objects.create(plate=plate, carrier=carrier)

    @staticmethod
    def create_carrier_transaction(carrier, amount, tx_type='freight_charge', season=None, reference_id=None):
        return CarrierTransaction.objects.create(
            carrier=carrier,
            type=tx_type,
            amount=amount,
            season=season,
            reference_id=reference_id,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
