"""
Test suite for reports module
Tests: profit arithmetic, margin rounding, top-N ranking, season report aggregation, the profit endpoint and dashboard aggregates
"""
from datetime import date, timedelta
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status

from feedtrade.core.test_utils import TestDataFactory, AuthenticatedAPIClient, reset_read_state
from feedtrade.logistics.services.shipments import cancel_sale, create_delivery_with_transactions
from feedtrade.parties.services import checks, ledger
from feedtrade.reports.serializers import ProfitSummarySerializer
from feedtrade.reports.services.dashboard import dashboard_kpis, due_items, monthly_chart
from feedtrade.reports.services.profit import ProfitSummary, profit_summary
from feedtrade.reports.services.season_report import (
    build_season_report, compute_profit, top_n, OTHER_FEED_LABEL, TOP_N,
)
from feedtrade.sales.models import Sale


class ProfitArithmeticTests(SimpleTestCase):
    """Test compute_profit and top_n"""

    def test_net_profit_and_margin(self):
        net_profit, margin = compute_profit(Decimal('100000'), Decimal('60000'), Decimal('10000'))
        self.assertEqual(net_profit, Decimal('30000'))
        self.assertEqual(margin, Decimal('30.0'))

    def test_zero_revenue_margin(self):
        net_profit, margin = compute_profit(Decimal('0'), Decimal('500'), Decimal('100'))
        self.assertEqual(net_profit, Decimal('-600'))
        self.assertEqual(margin, Decimal('0'))

    def test_margin_kept_exact(self):
        _, margin = compute_profit(Decimal('3'), Decimal('1'), Decimal('0'))
        self.assertAlmostEqual(margin, Decimal('66.66666666'), places=6)
        self.assertNotEqual(margin, Decimal('66.67'))

    def test_margin_rounded_when_serialized(self):
        net_profit, margin = compute_profit(Decimal('3'), Decimal('1'), Decimal('0'))
        summary = ProfitSummary(
            date_from=date(2026, 3, 1), date_to=date(2026, 3, 31),
            total_revenue=Decimal('3'), total_cost=Decimal('1'), total_freight=Decimal('0'),
            net_profit=net_profit, margin=margin,
        )
        self.assertEqual(ProfitSummarySerializer(summary).data['margin'], '66.67')

    def test_top_n_capped_and_sorted(self):
        totals = {pk: Decimal(pk * 100) for pk in range(1, 9)}
        ranked = top_n(totals)
        self.assertEqual(len(ranked), TOP_N)
        self.assertEqual([pk for pk, _ in ranked], [8, 7, 6, 5, 4])

    def test_top_n_ties_stable(self):
        totals = {7: Decimal('10'), 3: Decimal('10'), 5: Decimal('10'), 1: Decimal('20')}
        self.assertEqual(top_n(totals), [(1, Decimal('20')), (3, Decimal('10')), (5, Decimal('10')), (7, Decimal('10'))])
        self.assertEqual(top_n(totals), top_n(dict(reversed(list(totals.items())))))


class SeasonReportTests(TestCase):
    """Test season report aggregation"""

    def setUp(self):
        reset_read_state()
        self.season = TestDataFactory.create_season(is_active=True)
        self.straw = TestDataFactory.create_feed_type(name='Straw')
        self.alfalfa = TestDataFactory.create_feed_type(name='Alfalfa')

    def test_total_tonnage(self):
        sale = TestDataFactory.create_sale(feed_type=self.straw)
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('1000'), season=self.season)
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('2500'), season=self.season)
        report = build_season_report(self.season.pk)
        self.assertEqual(report.total_deliveries, 2)
        self.assertEqual(report.total_tonnage, Decimal('3500'))

    def test_other_seasons_and_deleted_rows_excluded(self):
        other = TestDataFactory.create_season()
        sale = TestDataFactory.create_sale(feed_type=self.straw)
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('1000'), season=self.season)
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('9000'), season=other)
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('7000'), season=self.season).soft_delete()
        report = build_season_report(self.season.pk)
        self.assertEqual(report.total_tonnage, Decimal('1000'))

    def test_financials_from_quick_shipments(self):
        customer = TestDataFactory.create_customer(name='Ahmet Besi')
        supplier = TestDataFactory.create_supplier(name='Veli Tarim')
        carrier = TestDataFactory.create_carrier(name='Hizli Nakliyat')
        sale = TestDataFactory.create_sale(contact=customer, feed_type=self.straw, unit_price=Decimal('5.00'))
        create_delivery_with_transactions(
            sale,
            supplier=supplier,
            supplier_price=Decimal('3.00'),
            net_weight=Decimal('20000.00'),
            freight_cost=Decimal('10000.00'),
            carrier_name='Hizli Nakliyat',
        )

        report = build_season_report(self.season.pk)
        self.assertEqual(report.total_revenue, Decimal('100000.00'))
        self.assertEqual(report.total_cost, Decimal('60000.00'))
        self.assertEqual(report.total_freight, Decimal('10000.00'))
        self.assertEqual(report.net_profit, Decimal('30000.00'))
        self.assertEqual(report.margin, Decimal('30.00'))

        self.assertEqual([(e.id, e.name) for e in report.top_customers], [(sale.pk, 'Ahmet Besi')])
        # A quick shipment books the supplier without a purchase document
        self.assertEqual(report.top_suppliers, [])
        self.assertEqual([(e.id, e.value) for e in report.top_carriers], [(carrier.pk, Decimal('10000.00'))])

    def test_no_revenue_season(self):
        report = build_season_report(self.season.pk)
        self.assertEqual(report.total_deliveries, 0)
        self.assertEqual(report.margin, Decimal('0'))
        self.assertEqual(report.top_customers, [])

    def test_top_customers_capped(self):
        for n in range(7):
            sale = TestDataFactory.create_sale(feed_type=self.straw)
            TestDataFactory.create_delivery(sale=sale, net_weight=Decimal(1000 + n), season=self.season)
        report = build_season_report(self.season.pk)
        self.assertEqual(len(report.top_customers), TOP_N)
        values = [e.value for e in report.top_customers]
        self.assertEqual(values, sorted(values, reverse=True))
        self.assertEqual(values[0], Decimal('1006'))

    def test_customers_ranked_per_sale(self):
        customer = TestDataFactory.create_customer(name='Ahmet Besi')
        small = TestDataFactory.create_sale(contact=customer, feed_type=self.straw)
        large = TestDataFactory.create_sale(contact=customer, feed_type=self.straw)
        TestDataFactory.create_delivery(sale=small, net_weight=Decimal('400'), season=self.season)
        TestDataFactory.create_delivery(sale=large, net_weight=Decimal('600'), season=self.season)
        report = build_season_report(self.season.pk)
        self.assertEqual(
            [(e.id, e.name, e.value) for e in report.top_customers],
            [(large.pk, 'Ahmet Besi', Decimal('600')), (small.pk, 'Ahmet Besi', Decimal('400'))],
        )

    def test_suppliers_ranked_per_purchase(self):
        supplier = TestDataFactory.create_supplier(name='Veli Tarim')
        purchase = TestDataFactory.create_purchase(contact=supplier, feed_type=self.alfalfa)
        TestDataFactory.create_delivery(purchase=purchase, net_weight=Decimal('700'), season=self.season)
        TestDataFactory.create_delivery(purchase=purchase, net_weight=Decimal('300'), season=self.season)
        report = build_season_report(self.season.pk)
        self.assertEqual(
            [(e.id, e.name, e.value) for e in report.top_suppliers],
            [(purchase.pk, 'Veli Tarim', Decimal('1000'))],
        )

    def test_feed_distribution(self):
        straw_sale = TestDataFactory.create_sale(feed_type=self.straw)
        alfalfa_purchase = TestDataFactory.create_purchase(feed_type=self.alfalfa)
        TestDataFactory.create_delivery(sale=straw_sale, net_weight=Decimal('1000'), season=self.season)
        TestDataFactory.create_delivery(purchase=alfalfa_purchase, net_weight=Decimal('3000'), season=self.season)
        TestDataFactory.create_delivery(net_weight=Decimal('500'), season=self.season)
        report = build_season_report(self.season.pk)
        self.assertEqual(
            [(share.name, share.tonnage) for share in report.feed_distribution],
            [('Alfalfa', Decimal('3000')), ('Straw', Decimal('1000')), (OTHER_FEED_LABEL, Decimal('500'))],
        )

    def test_report_refreshes_after_writes(self):
        sale = TestDataFactory.create_sale(feed_type=self.straw)
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('1000'), season=self.season)
        self.assertEqual(build_season_report(self.season.pk).total_tonnage, Decimal('1000'))
        TestDataFactory.create_delivery(sale=sale, net_weight=Decimal('500'), season=self.season)
        self.assertEqual(build_season_report(self.season.pk).total_tonnage, Decimal('1500'))

    def test_season_report_endpoint(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.get(f'/api/v1/seasons/{self.season.pk}/report/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['season_name'], self.season.name)
        self.assertEqual(response.data['margin'], '0.00')
        response = client.get('/api/v1/seasons/999999/report/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ProfitReportTests(TestCase):
    """Test profit over a date range"""

    def setUp(self):
        reset_read_state()
        self.customer = TestDataFactory.create_customer()
        self.supplier = TestDataFactory.create_supplier()
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())

    def test_range_filters_transactions(self):
        ledger.post_to_contact(self.customer.pk, 'debit', Decimal('1000.00'), reference_type='sale',
                               transaction_date=date(2026, 3, 10))
        ledger.post_to_contact(self.customer.pk, 'debit', Decimal('5000.00'), reference_type='sale',
                               transaction_date=date(2026, 5, 10))
        ledger.post_to_contact(self.supplier.pk, 'credit', Decimal('600.00'), reference_type='purchase',
                               transaction_date=date(2026, 3, 11))
        summary = profit_summary(date(2026, 3, 1), date(2026, 3, 31))
        self.assertEqual(summary.total_revenue, Decimal('1000.00'))
        self.assertEqual(summary.total_cost, Decimal('600.00'))
        self.assertEqual(summary.net_profit, Decimal('400.00'))
        self.assertEqual(summary.margin, Decimal('40.00'))

    def test_payments_are_not_revenue(self):
        ledger.post_to_contact(self.customer.pk, 'credit', Decimal('800.00'), reference_type='payment')
        today = timezone.localdate()
        summary = profit_summary(today - timedelta(days=1), today)
        self.assertEqual(summary.total_revenue, Decimal('0.00'))
        self.assertEqual(summary.total_cost, Decimal('0.00'))

    def test_cancelled_sale_reversal_is_not_cost(self):
        sale = TestDataFactory.create_sale(contact=self.customer, unit_price=Decimal('2.00'))
        create_delivery_with_transactions(sale, net_weight=Decimal('1000.00'))
        cancel_sale(sale)
        today = timezone.localdate()
        summary = profit_summary(today, today)
        self.assertEqual(summary.total_revenue, Decimal('2000.00'))
        self.assertEqual(summary.total_cost, Decimal('0.00'))

    def test_endpoint_defaults_to_last_30_days(self):
        response = self.client.get('/api/v1/reports/profit/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['date_to'], timezone.localdate().isoformat())

    def test_endpoint_rejects_bad_dates(self):
        response = self.client.get('/api/v1/reports/profit/?date_from=10-03-2026')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/reports/profit/?date_from=2026-04-01&date_to=2026-03-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardTests(TestCase):
    """Test dashboard KPIs, due items and the monthly trend"""

    def setUp(self):
        reset_read_state()
        self.today = timezone.localdate()
        self.customer = TestDataFactory.create_customer(name='Ahmet Besi')
        self.supplier = TestDataFactory.create_supplier(name='Veli Tarim')
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())

    def _quick_shipment(self):
        TestDataFactory.create_carrier(name='Hizli Nakliyat')
        sale = TestDataFactory.create_sale(contact=self.customer, unit_price=Decimal('5.00'))
        create_delivery_with_transactions(
            sale,
            supplier=self.supplier,
            supplier_price=Decimal('3.00'),
            net_weight=Decimal('20000.00'),
            freight_cost=Decimal('10000.00'),
            carrier_name='Hizli Nakliyat',
        )
        return sale

    def test_today_and_month_figures(self):
        self._quick_shipment()
        kpis = dashboard_kpis(self.today)
        self.assertEqual(kpis.today_truck_count, 1)
        self.assertEqual(kpis.today_tonnage, Decimal('20000.00'))
        self.assertEqual(kpis.today_profit, Decimal('30000.00'))
        self.assertEqual(kpis.month_profit, Decimal('30000.00'))
        self.assertEqual(kpis.monthly_revenue, Decimal('100000.00'))
        self.assertEqual(kpis.monthly_tonnage, Decimal('20000.00'))
        self.assertEqual(kpis.monthly_freight, Decimal('10000.00'))

    def test_open_balances(self):
        self._quick_shipment()
        TestDataFactory.create_customer(name='Settled')
        kpis = dashboard_kpis(self.today)
        self.assertEqual(kpis.pending_receivables, Decimal('100000.00'))
        self.assertEqual(kpis.pending_payables, Decimal('60000.00'))
        self.assertEqual([(b.name, b.amount) for b in kpis.customer_balances], [('Ahmet Besi', Decimal('100000.00'))])
        self.assertEqual([(b.name, b.amount) for b in kpis.supplier_balances], [('Veli Tarim', Decimal('60000.00'))])

    def test_due_checks_counted(self):
        checks.record_check(self.customer, 'received', Decimal('2000.00'), self.today + timedelta(days=3))
        checks.record_check(
            self.customer, 'received', Decimal('500.00'), self.today - timedelta(days=1),
            issue_date=self.today - timedelta(days=10),
        )
        checks.record_check(self.customer, 'received', Decimal('900.00'), self.today + timedelta(days=20))
        kpis = dashboard_kpis(self.today)
        self.assertEqual(kpis.due_check_count, 2)
        self.assertEqual(kpis.due_check_total, Decimal('2500.00'))
        self.assertEqual(kpis.overdue_check_count, 1)

        items = due_items(self.today)
        self.assertEqual([item.check.amount for item in items], [Decimal('500.00'), Decimal('2000.00'), Decimal('900.00')])
        self.assertTrue(items[0].overdue)

    def test_due_items_capped(self):
        for n in range(12):
            checks.record_check(self.customer, 'received', Decimal('10.00'), self.today + timedelta(days=n))
        self.assertEqual(len(due_items(self.today)), 10)

    def test_kpis_refresh_after_writes(self):
        self.assertEqual(dashboard_kpis(self.today).today_truck_count, 0)
        self._quick_shipment()
        self.assertEqual(dashboard_kpis(self.today).today_truck_count, 1)

    def test_monthly_chart(self):
        TestDataFactory.create_sale(quantity=Decimal('10000.00'), unit_price=Decimal('3.50'))
        TestDataFactory.create_sale(quantity=Decimal('500.00'), unit_price=Decimal('1.00'), status='cancelled')
        old = TestDataFactory.create_sale(quantity=Decimal('100.00'), unit_price=Decimal('1.00'))
        Sale.objects.filter(pk=old.pk).update(sale_date=self.today - timedelta(days=400))
        TestDataFactory.create_purchase(quantity=Decimal('10000.00'), unit_price=Decimal('2.50'))

        months = monthly_chart(self.today)
        self.assertEqual(len(months), 6)
        self.assertEqual(months[-1].month, self.today.replace(day=1))
        self.assertEqual(months[-1].sales, Decimal('35000'))
        self.assertEqual(months[-1].purchases, Decimal('25000'))
        self.assertEqual(sum((m.sales for m in months[:-1]), Decimal('0')), Decimal('0'))
        self.assertLess(months[0].month, months[-1].month)

    def test_dashboard_endpoints(self):
        self._quick_shipment()
        checks.record_check(self.customer, 'received', Decimal('2000.00'), self.today + timedelta(days=3))

        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['today_truck_count'], 1)
        self.assertEqual(response.data['pending_receivables'], '98000.00')
        self.assertEqual(response.data['due_check_count'], 1)
        self.assertTrue(response.data['balance_visible'])

        response = self.client.get('/api/v1/reports/due-items/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['contact_name'], 'Ahmet Besi')
        self.assertFalse(response.data[0]['overdue'])

        response = self.client.get('/api/v1/reports/monthly/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 6)

    def test_dashboard_requires_login(self):
        self.client.logout()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
