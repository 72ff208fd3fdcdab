"""
Dashboard aggregates: today's and this month's trading, open balances,
checks coming due and the six-month sales/purchases trend.

Profit figures reuse the profit report over a date range so the dashboard
and the profit page always agree.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
import logging
from typing import List

from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from feedtrade.core.cache_utils import cached_query, DASHBOARD, DASHBOARD_CACHE_TTL
from feedtrade.core.retry import with_db_retry
from feedtrade.logistics.models import Delivery
from feedtrade.parties.models import Account
from feedtrade.parties.services.checks import due_checks, DUE_WINDOW_DAYS
from feedtrade.purchasing.models import Purchase
from feedtrade.sales.models import Sale
from .profit import profit_summary

logger = logging.getLogger('feedtrade.reports')

ZERO = Decimal('0.00')
CHART_MONTHS = 6
DUE_ITEMS_DAYS = 30
DUE_ITEMS_LIMIT = 10

CUSTOMER_TYPES = ('customer', 'both')
SUPPLIER_TYPES = ('supplier', 'both')


@dataclass
class ContactBalance:
    contact_id: int
    name: str
    phone: str
    type: str
    amount: Decimal
    credit_limit: Decimal


@dataclass
class DashboardKpis:
    as_of: date
    today_truck_count: int
    today_tonnage: Decimal
    today_profit: Decimal
    month_profit: Decimal
    monthly_revenue: Decimal
    monthly_tonnage: Decimal
    monthly_freight: Decimal
    pending_receivables: Decimal
    pending_payables: Decimal
    due_check_count: int
    due_check_total: Decimal
    overdue_check_count: int
    customer_balances: List[ContactBalance] = field(default_factory=list)
    supplier_balances: List[ContactBalance] = field(default_factory=list)


@dataclass
class MonthTotals:
    month: date
    sales: Decimal
    purchases: Decimal


def _delivery_totals(date_from, date_to):
    row = Delivery.objects.filter(delivery_date__range=(date_from, date_to)).aggregate(
        count=Count('id'), tonnage=Sum('net_weight'),
    )
    return row['count'], row['tonnage'] or ZERO


def open_balances():
    """
    (customer balances, supplier balances), largest first.

    A customer with a positive balance owes us; a supplier with a negative
    balance is owed by us. Contacts of type "both" land on whichever side
    their balance puts them.
    """
    customers, suppliers = [], []
    accounts = Account.objects.select_related('contact').exclude(balance=0)
    for account in accounts:
        contact = account.contact
        if account.balance > 0 and contact.type in CUSTOMER_TYPES:
            side, amount = customers, account.balance
        elif account.balance < 0 and contact.type in SUPPLIER_TYPES:
            side, amount = suppliers, -account.balance
        else:
            continue
        side.append(ContactBalance(
            contact_id=contact.pk,
            name=contact.name,
            phone=contact.phone,
            type=contact.type,
            amount=amount,
            credit_limit=contact.credit_limit,
        ))
    for side in (customers, suppliers):
        side.sort(key=lambda b: (-b.amount, b.contact_id))
    return customers, suppliers


@with_db_retry
@cached_query(DASHBOARD, cache_ttl=DASHBOARD_CACHE_TTL)
def dashboard_kpis(today=None) -> DashboardKpis:
    today = today or timezone.localdate()
    month_start = today.replace(day=1)

    truck_count, tonnage = _delivery_totals(today, today)
    _, monthly_tonnage = _delivery_totals(month_start, today)
    day = profit_summary(today, today)
    month = profit_summary(month_start, today)

    customers, suppliers = open_balances()
    due = due_checks(days=DUE_WINDOW_DAYS, today=today)

    kpis = DashboardKpis(
        as_of=today,
        today_truck_count=truck_count,
        today_tonnage=tonnage,
        today_profit=day.net_profit,
        month_profit=month.net_profit,
        monthly_revenue=month.total_revenue,
        monthly_tonnage=monthly_tonnage,
        monthly_freight=month.total_freight,
        pending_receivables=sum((b.amount for b in customers), ZERO),
        pending_payables=sum((b.amount for b in suppliers), ZERO),
        due_check_count=len(due),
        due_check_total=sum((item.check.amount for item in due), ZERO),
        overdue_check_count=sum(1 for item in due if item.overdue),
        customer_balances=customers,
        supplier_balances=suppliers,
    )
    logger.debug(f"Dashboard {today}: {truck_count} trucks, month profit {kpis.month_profit}")
    return kpis


def due_items(today=None, days=DUE_ITEMS_DAYS, limit=DUE_ITEMS_LIMIT):
    """The next open checks coming due, overdue ones first"""
    return due_checks(days=days, today=today, limit=limit)


def _month_start(day, months_back):
    month_index = day.year * 12 + day.month - 1 - months_back
    return date(month_index // 12, month_index % 12 + 1, 1)


def _monthly_sums(queryset, date_field, start):
    rows = (
        queryset.exclude(status='cancelled')
        .filter(**{f'{date_field}__gte': start})
        .annotate(month=TruncMonth(date_field))
        .values('month')
        .annotate(total=Sum('total_amount'))
        .order_by('month')
    )
    return {row['month']: row['total'] or ZERO for row in rows}


@with_db_retry
@cached_query(DASHBOARD, cache_ttl=DASHBOARD_CACHE_TTL)
def monthly_chart(today=None, months=CHART_MONTHS) -> List[MonthTotals]:
    """Sales and purchase totals per month, oldest first, cancelled documents excluded"""
    today = today or timezone.localdate()
    starts = [_month_start(today, back) for back in range(months - 1, -1, -1)]
    sales = _monthly_sums(Sale.objects.all(), 'sale_date', starts[0])
    purchases = _monthly_sums(Purchase.objects.all(), 'purchase_date', starts[0])
    return [
        MonthTotals(month=start, sales=sales.get(start, ZERO), purchases=purchases.get(start, ZERO))
        for start in starts
    ]
