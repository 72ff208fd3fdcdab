"""
Test suite for logistics module
Tests: legacy price recovery, delivery reconciliation, quick shipments, carrier
freight sync, returns, photos and carrier balances
"""
from decimal import Decimal
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError, transaction
from django.test import TestCase, SimpleTestCase, override_settings
from rest_framework import status

from feedtrade.core import kv_store
from feedtrade.core.capabilities import force_capability, CARRIER_BALANCE_VIEW
from feedtrade.core.exceptions import InvalidOperation
from feedtrade.core.models import AuditLog
from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.logistics import photos
from feedtrade.logistics.legacy_pricing import (
    format_kg, format_price, format_tr_number, parse_tr_number, recover_unit_price,
)
from feedtrade.logistics.models import CarrierTransaction, Delivery
from feedtrade.logistics.services import carriers
from feedtrade.logistics.services.reconciler import (
    deliveries_for_contact, SOURCE_LEGACY, SOURCE_PURCHASE, SOURCE_SALE,
)
from feedtrade.logistics.services.shipments import (
    create_delivery_with_transactions, delete_delivery, find_carrier_id,
    record_delivery, restore_delivery, return_delivery, update_delivery,
)
from feedtrade.parties.models import AccountTransaction
from feedtrade.parties.services import ledger


class LegacyPricingTests(SimpleTestCase):
    """Test Turkish number formatting and description price recovery"""

    def test_parse_tr_number(self):
        self.assertEqual(parse_tr_number('12.500,75'), Decimal('12500.75'))
        self.assertEqual(parse_tr_number('3,5'), Decimal('3.5'))
        self.assertIsNone(parse_tr_number(''))
        self.assertIsNone(parse_tr_number('1,2,3'))

    def test_format_tr_number(self):
        self.assertEqual(format_tr_number(Decimal('12500.5')), '12.500,50')
        self.assertEqual(format_kg(Decimal('12500')), '12.500')
        self.assertEqual(format_kg(Decimal('12500.50')), '12.500,5')
        self.assertEqual(format_price(Decimal('3.5')), '3,50')

    def test_recover_unit_price(self):
        self.assertEqual(recover_unit_price('Purchase - 12.500 kg × 3,50 ₺/kg'), Decimal('3.50'))
        self.assertEqual(recover_unit_price('Purchase - 1.000 kg x 2,25 ₺ / KG (freight -500,00 ₺)'), Decimal('2.25'))

    def test_unrecoverable_descriptions(self):
        self.assertIsNone(recover_unit_price(None))
        self.assertIsNone(recover_unit_price('Manual correction'))
        self.assertIsNone(recover_unit_price('Purchase - 1.000 kg × 0,00 ₺/kg'))


class DeliveryReconcilerTests(TestCase):
    """Test deliveries_for_contact attribution and pricing"""

    def setUp(self):
        reset_read_state()
        self.customer = TestDataFactory.create_customer()
        self.supplier = TestDataFactory.create_supplier()

    def test_customer_deliveries_priced_from_sale(self):
        sale = TestDataFactory.create_sale(contact=self.customer, unit_price=Decimal('3.50'))
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('12500.50'))
        rows = deliveries_for_contact(self.customer.pk)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].price_source, SOURCE_SALE)
        self.assertEqual(rows[0].total_amount, Decimal('43751.75'))

    def test_supplier_deliveries_priced_from_purchase(self):
        purchase = TestDataFactory.create_purchase(contact=self.supplier, unit_price=Decimal('2.10'))
        TestDataFactory.create_delivery(purchase=purchase, net_weight=Decimal('1000.00'))
        rows = deliveries_for_contact(self.supplier.pk)
        self.assertEqual(rows[0].price_source, SOURCE_PURCHASE)
        self.assertEqual(rows[0].unit_price, Decimal('2.10'))

    def test_both_contact_uses_document_of_each_delivery(self):
        """Test a contact with sales and purchases prices each delivery from its own document"""
        both = TestDataFactory.create_contact(contact_type='both')
        sale = TestDataFactory.create_sale(contact=both, unit_price=Decimal('4.00'))
        purchase = TestDataFactory.create_purchase(contact=both, unit_price=Decimal('2.00'))
        sold = TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('100.00'))
        bought = TestDataFactory.create_delivery(purchase=purchase, net_weight=Decimal('100.00'))
        rows = {r.delivery.pk: r for r in deliveries_for_contact(both.pk)}
        self.assertEqual(rows[sold.pk].price_source, SOURCE_SALE)
        self.assertEqual(rows[bought.pk].price_source, SOURCE_PURCHASE)

    def test_quick_shipment_supplier_priced_from_description(self):
        sale = TestDataFactory.create_sale(contact=self.customer, unit_price=Decimal('3.00'))
        delivery = create_delivery_with_transactions(
            sale, supplier=self.supplier, supplier_price=Decimal('2.00'), net_weight=Decimal('10000.00'),
        )
        with self.assertLogs('feedtrade.logistics.services.reconciler', level='WARNING'):
            rows = deliveries_for_contact(self.supplier.pk)
        self.assertEqual([r.delivery.pk for r in rows], [delivery.pk])
        self.assertEqual(rows[0].price_source, SOURCE_LEGACY)
        self.assertEqual(rows[0].total_amount, Decimal('20000.00'))

    def test_unparsable_description_leaves_delivery_unpriced(self):
        delivery = TestDataFactory.create_delivery(net_weight=Decimal('500.00'))
        ledger.post_to_contact(
            self.supplier.pk, 'credit', Decimal('900.00'),
            description='Edited by hand', reference_type='purchase', reference_id=delivery.pk,
        )
        rows = deliveries_for_contact(self.supplier.pk)
        self.assertEqual(len(rows), 1)
        self.assertFalse(rows[0].is_priced)
        self.assertEqual(rows[0].total_amount, Decimal('0.00'))

    def test_contact_without_documents(self):
        self.assertEqual(deliveries_for_contact(self.customer.pk), [])

    def test_deleted_deliveries_excluded_and_newest_first(self):
        sale = TestDataFactory.create_sale(contact=self.customer)
        old = TestDataFactory.create_delivery(sale=sale, delivery_date='2026-03-01')
        new = TestDataFactory.create_delivery(sale=sale, delivery_date='2026-03-05')
        trashed = TestDataFactory.create_delivery(sale=sale, delivery_date='2026-03-07')
        trashed.soft_delete()
        rows = deliveries_for_contact(self.customer.pk)
        self.assertEqual([r.delivery.pk for r in rows], [new.pk, old.pk])


class DeliveryConstraintTests(TestCase):
    """Test a delivery links a sale or a purchase, never both"""

    def test_sale_and_purchase_rejected_by_database(self):
        sale = TestDataFactory.create_sale()
        purchase = TestDataFactory.create_purchase()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                TestDataFactory.create_delivery(sale=sale, purchase=purchase)

    def test_sale_and_purchase_rejected_by_service(self):
        with self.assertRaises(InvalidOperation):
            record_delivery(sale=TestDataFactory.create_sale(), purchase=TestDataFactory.create_purchase(),
                            net_weight=Decimal('10'))


class QuickShipmentTests(TestCase):
    """Test create_delivery_with_transactions postings"""

    def setUp(self):
        reset_read_state()
        self.user = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer()
        self.supplier = TestDataFactory.create_supplier()
        self.carrier = TestDataFactory.create_carrier(name='Demir Lojistik')
        self.season = TestDataFactory.create_season(is_active=True)
        self.sale = TestDataFactory.create_sale(
            contact=self.customer, quantity=Decimal('30000.00'), unit_price=Decimal('3.00'),
        )

    def _tx(self, contact, reference_type):
        return AccountTransaction.objects.get(account=contact.account, reference_type=reference_type)

    def test_postings_when_we_pay_freight(self):
        delivery = create_delivery_with_transactions(
            self.sale,
            supplier=self.supplier,
            supplier_price=Decimal('2.00'),
            pricing_model='freight_included',
            net_weight=Decimal('10000.00'),
            freight_cost=Decimal('4000.00'),
            freight_payer='me',
            carrier_name='Demir Lojistik',
            vehicle_plate='06 XYZ 42',
            user=self.user,
        )

        customer_tx = self._tx(self.customer, 'sale')
        self.assertEqual(customer_tx.type, 'debit')
        self.assertEqual(customer_tx.amount, Decimal('30000.00'))
        self.assertEqual(customer_tx.reference_id, self.sale.pk)
        self.assertEqual(customer_tx.description, 'Sale - 10.000 kg × 3,00 ₺/kg')

        supplier_tx = self._tx(self.supplier, 'purchase')
        self.assertEqual(supplier_tx.type, 'credit')
        self.assertEqual(supplier_tx.amount, Decimal('16000.00'))
        self.assertEqual(supplier_tx.reference_id, delivery.pk)
        self.assertEqual(supplier_tx.description, 'Purchase - 10.000 kg × 2,00 ₺/kg (freight -4.000,00 ₺)')

        charge = CarrierTransaction.objects.get(reference_id=delivery.pk)
        self.assertEqual(charge.carrier, self.carrier)
        self.assertEqual(charge.amount, Decimal('4000.00'))
        self.assertEqual(charge.description, 'Freight - 10.000 kg, 06 XYZ 42')

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.delivered_quantity, Decimal('10000.00'))
        self.assertEqual(delivery.season, self.season)
        self.assertEqual(customer_tx.season, self.season)

    def test_customer_pays_freight(self):
        """Test freight paid by the customer is deducted from their debit and not charged to a carrier"""
        delivery = create_delivery_with_transactions(
            self.sale,
            net_weight=Decimal('10000.00'),
            freight_cost=Decimal('2000.00'),
            freight_payer='customer',
            carrier_name='Demir Lojistik',
        )
        customer_tx = self._tx(self.customer, 'sale')
        self.assertEqual(customer_tx.amount, Decimal('28000.00'))
        self.assertEqual(customer_tx.description, 'Sale - 10.000 kg × 3,00 ₺/kg (freight -2.000,00 ₺)')
        self.assertFalse(CarrierTransaction.objects.filter(reference_id=delivery.pk).exists())

    def test_on_truck_supplier_not_reduced(self):
        create_delivery_with_transactions(
            self.sale,
            supplier=self.supplier,
            supplier_price=Decimal('2.00'),
            pricing_model='on_truck',
            net_weight=Decimal('10000.00'),
            freight_cost=Decimal('4000.00'),
            carrier_name='Demir Lojistik',
        )
        self.assertEqual(self._tx(self.supplier, 'purchase').amount, Decimal('20000.00'))

    def test_carrier_found_by_vehicle_plate(self):
        TestDataFactory.create_vehicle(carrier=self.carrier, plate='34 AB 1234')
        self.assertEqual(find_carrier_id('Unknown Carrier', '34 AB 1234'), self.carrier.pk)
        delivery = create_delivery_with_transactions(
            self.sale, net_weight=Decimal('1000.00'), freight_cost=Decimal('500.00'), vehicle_plate='34 AB 1234',
        )
        self.assertEqual(CarrierTransaction.objects.get(reference_id=delivery.pk).carrier, self.carrier)

    def test_unknown_carrier_logs_and_skips_charge(self):
        with self.assertLogs('feedtrade.logistics.services.shipments', level='WARNING'):
            delivery = create_delivery_with_transactions(
                self.sale, net_weight=Decimal('1000.00'), freight_cost=Decimal('500.00'), carrier_name='Nobody',
            )
        self.assertFalse(CarrierTransaction.objects.filter(reference_id=delivery.pk).exists())

    def test_supplier_without_price_rejected(self):
        with self.assertRaises(InvalidOperation):
            create_delivery_with_transactions(self.sale, supplier=self.supplier, net_weight=Decimal('10.00'))
        self.assertEqual(Delivery.objects.count(), 0)

    def test_failed_posting_rolls_back_everything(self):
        """Test freight larger than the customer amount aborts the whole shipment"""
        with self.assertRaises(InvalidOperation):
            create_delivery_with_transactions(
                self.sale,
                supplier=self.supplier,
                supplier_price=Decimal('2.00'),
                net_weight=Decimal('100.00'),
                freight_cost=Decimal('1000.00'),
                freight_payer='customer',
            )
        self.assertEqual(Delivery.objects.count(), 0)
        self.assertEqual(AccountTransaction.objects.count(), 0)

    def test_quick_shipment_endpoint(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.post('/api/v1/deliveries/quick/', {
            'sale': self.sale.pk,
            'supplier': self.supplier.pk,
            'supplier_price': '2.00',
            'net_weight': '5000.00',
            'freight_cost': '1500.00',
            'carrier_name': 'Demir Lojistik',
            'vehicle_plate': '06 XYZ 42',
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(AuditLog.objects.filter(action='shipment_create').exists())
        recents = kv_store.recent_shipments(self.user.pk)
        self.assertEqual(recents[0]['supplier'], self.supplier.pk)
        self.assertEqual(recents[0]['carrier_name'], 'Demir Lojistik')

    def test_quick_shipment_on_cancelled_sale_rejected(self):
        self.sale.status = 'cancelled'
        self.sale.save()
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.post('/api/v1/deliveries/quick/', {'sale': self.sale.pk, 'net_weight': '100.00'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DeliveryFreightSyncTests(TestCase):
    """Test carrier charges follow delivery updates, deletes and restores"""

    def setUp(self):
        reset_read_state()
        self.carrier = TestDataFactory.create_carrier(name='Ova Nakliyat')
        self.other_carrier = TestDataFactory.create_carrier(name='Dag Nakliyat')
        self.sale = TestDataFactory.create_sale(quantity=Decimal('20000.00'))
        self.delivery = record_delivery(
            sale=self.sale,
            net_weight=Decimal('8000.00'),
            freight_cost=Decimal('3000.00'),
            freight_payer='me',
            carrier_name='Ova Nakliyat',
            vehicle_plate='42 K 100',
        )

    def _charges(self):
        return list(CarrierTransaction.objects.filter(reference_id=self.delivery.pk))

    def test_record_delivery_charges_carrier(self):
        charges = self._charges()
        self.assertEqual(len(charges), 1)
        self.assertEqual(charges[0].amount, Decimal('3000.00'))
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.delivered_quantity, Decimal('8000.00'))

    def test_freight_change_updates_charge(self):
        update_delivery(self.delivery, freight_cost=Decimal('3500.00'), net_weight=Decimal('8500.00'))
        charge = self._charges()[0]
        self.assertEqual(charge.amount, Decimal('3500.00'))
        self.assertEqual(charge.description, 'Freight - 8.500 kg, 42 K 100')
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.delivered_quantity, Decimal('8500.00'))

    def test_customer_paying_voids_charge(self):
        update_delivery(self.delivery, freight_payer='customer')
        self.assertEqual(self._charges(), [])

    def test_carrier_change_moves_charge(self):
        update_delivery(self.delivery, carrier_name='Dag Nakliyat')
        charges = self._charges()
        self.assertEqual(len(charges), 1)
        self.assertEqual(charges[0].carrier, self.other_carrier)

    def test_adding_freight_creates_charge(self):
        delivery = record_delivery(sale=self.sale, net_weight=Decimal('100.00'), carrier_name='Ova Nakliyat')
        self.assertFalse(CarrierTransaction.objects.filter(reference_id=delivery.pk).exists())
        update_delivery(delivery, freight_cost=Decimal('250.00'))
        self.assertTrue(CarrierTransaction.objects.filter(reference_id=delivery.pk, amount=Decimal('250.00')).exists())

    def test_delete_and_restore(self):
        delete_delivery(self.delivery)
        self.assertEqual(self._charges(), [])
        self.assertFalse(Delivery.objects.filter(pk=self.delivery.pk).exists())
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.delivered_quantity, Decimal('0.00'))

        restore_delivery(self.delivery)
        self.assertEqual(len(self._charges()), 1)
        self.sale.refresh_from_db()
        self.assertEqual(self.sale.delivered_quantity, Decimal('8000.00'))

    def test_restore_live_delivery_rejected(self):
        with self.assertRaises(InvalidOperation):
            restore_delivery(self.delivery)

    def test_delivery_endpoints(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.patch(f'/api/v1/deliveries/{self.delivery.pk}/', {'freight_cost': '3200.00'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._charges()[0].amount, Decimal('3200.00'))

        response = client.delete(f'/api/v1/deliveries/{self.delivery.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = client.post(f'/api/v1/deliveries/{self.delivery.pk}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ReturnDeliveryTests(TestCase):
    """Test customer returns"""

    def setUp(self):
        reset_read_state()
        self.customer = TestDataFactory.create_customer()
        self.supplier = TestDataFactory.create_supplier()
        self.sale = TestDataFactory.create_sale(contact=self.customer, unit_price=Decimal('4.00'))
        self.delivery = create_delivery_with_transactions(
            self.sale, supplier=self.supplier, supplier_price=Decimal('2.50'), net_weight=Decimal('4000.00'),
        )

    def test_return_books_negative_delivery_and_credits(self):
        returned = return_delivery(self.delivery, Decimal('500.00'), note='moldy')
        self.assertEqual(returned.net_weight, Decimal('-500.00'))
        self.assertEqual(returned.sale_id, self.sale.pk)
        self.assertIsNone(returned.purchase_id)
        self.assertEqual(returned.notes, 'RETURN: moldy')

        self.customer.account.refresh_from_db()
        self.assertEqual(self.customer.account.balance, Decimal('14000.00'))
        self.supplier.account.refresh_from_db()
        self.assertEqual(self.supplier.account.balance, Decimal('-8750.00'))

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.delivered_quantity, Decimal('3500.00'))

    def test_return_more_than_delivered_rejected(self):
        with self.assertRaises(InvalidOperation):
            return_delivery(self.delivery, Decimal('4000.01'))

    def test_return_endpoint(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.post(f'/api/v1/deliveries/{self.delivery.pk}/return/', {'return_kg': '250.00'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['net_weight']), Decimal('-250.00'))


class DeliveryPhotoTests(TestCase):
    """Test delivery photo storage"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)
        settings_override = override_settings(MEDIA_ROOT=self.media_root)
        settings_override.enable()
        self.addCleanup(settings_override.disable)
        self.delivery = TestDataFactory.create_delivery()
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())

    def _image(self, name='truck.jpg'):
        return SimpleUploadedFile(name, b'\xff\xd8\xff\xe0fakejpeg', content_type='image/jpeg')

    def test_no_folder_means_no_photos(self):
        self.assertEqual(photos.list_photos(self.delivery.pk), [])

    def test_upload_list_delete(self):
        photo = photos.upload_photo(self.delivery.pk, self._image())
        self.assertTrue(photo['name'].endswith('.jpg'))
        listed = photos.list_photos(self.delivery.pk)
        self.assertEqual([p['name'] for p in listed], [photo['name']])
        self.assertTrue(photos.delete_photo(self.delivery.pk, photo['name']))
        self.assertFalse(photos.delete_photo(self.delivery.pk, photo['name']))

    def test_unsupported_type_rejected(self):
        with self.assertRaises(InvalidOperation):
            photos.upload_photo(self.delivery.pk, SimpleUploadedFile('notes.txt', b'hello'))

    def test_path_traversal_rejected(self):
        with self.assertRaises(InvalidOperation):
            photos.delete_photo(self.delivery.pk, '..secret')

    def test_photo_endpoints(self):
        response = self.client.post(
            f'/api/v1/deliveries/{self.delivery.pk}/photos/', {'file': self._image()}, format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        name = response.data['name']
        response = self.client.get(f'/api/v1/deliveries/{self.delivery.pk}/photos/')
        self.assertEqual(len(response.data), 1)
        response = self.client.delete(f'/api/v1/deliveries/{self.delivery.pk}/photos/{name}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class CarrierBalanceTests(TestCase):
    """Test carrier balances from the view and the fallback join"""

    def setUp(self):
        reset_read_state()
        self.first = TestDataFactory.create_carrier(name='Birinci')
        self.second = TestDataFactory.create_carrier(name='Ikinci')
        self.idle = TestDataFactory.create_carrier(name='Bos')
        TestDataFactory.create_carrier_transaction(self.first, Decimal('5000.00'))
        TestDataFactory.create_carrier_transaction(self.first, Decimal('2000.00'), tx_type='payment')
        TestDataFactory.create_carrier_transaction(self.second, Decimal('9000.00'))
        voided = TestDataFactory.create_carrier_transaction(self.second, Decimal('1000.00'))
        voided.soft_delete()

    def _rows(self, available):
        reset_read_state()
        with force_capability(CARRIER_BALANCE_VIEW, available):
            return [
                (r.carrier_id, r.total_freight, r.total_paid, r.balance)
                for r in carriers.carrier_balances()
            ]

    def test_view_and_fallback_agree(self):
        self.assertEqual(self._rows(True), self._rows(False))

    def test_largest_balance_first(self):
        rows = self._rows(False)
        self.assertEqual([r[0] for r in rows], [self.second.pk, self.first.pk, self.idle.pk])
        self.assertEqual(rows[1], (self.first.pk, Decimal('5000.00'), Decimal('2000.00'), Decimal('3000.00')))
        self.assertEqual(rows[2][3], Decimal('0.00'))

    def test_carrier_ledger(self):
        result = carriers.carrier_ledger(self.first.pk)
        self.assertEqual(result.balance.balance, Decimal('3000.00'))
        self.assertEqual(len(result.transactions), 2)
        self.assertIsNone(carriers.carrier_ledger(999999))

    def test_payment_endpoint(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.post(f'/api/v1/carriers/{self.first.pk}/transactions/', {'amount': '3000.00'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type'], 'payment')
        response = client.get(f'/api/v1/carriers/{self.first.pk}/ledger/')
        self.assertEqual(response.data['balance']['balance'], '0.00')

    def test_delete_carrier_with_transactions_deactivates(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.delete(f'/api/v1/carriers/{self.first.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertFalse(self.first.is_active)
        response = client.delete(f'/api/v1/carriers/{self.idle.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
