"""
Season report aggregation.

Revenue is the sum of live sale-referenced debits, cost the sum of live
purchase-referenced credits, freight the sum of live carrier freight charges.
Money stays Decimal throughout. Any failing query fails the whole report.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import List

from django.db.models import Sum

from feedtrade.core.cache_utils import cached_query, SEASON_REPORT, SEASON_REPORT_CACHE_TTL
from feedtrade.core.retry import with_db_retry
from feedtrade.logistics.models import Carrier, CarrierTransaction, Delivery
from feedtrade.parties.models import AccountTransaction
from feedtrade.purchasing.models import Purchase
from feedtrade.sales.models import Sale

logger = logging.getLogger('feedtrade.reports')

ZERO = Decimal('0.00')
HUNDRED = Decimal('100')

TOP_N = 5
OTHER_FEED_LABEL = 'Other'
UNKNOWN_NAME = '-'


@dataclass
class RankedEntry:
    id: int
    name: str
    value: Decimal


@dataclass
class FeedShare:
    name: str
    tonnage: Decimal


@dataclass
class SeasonReport:
    season_id: int
    total_deliveries: int
    total_tonnage: Decimal
    total_revenue: Decimal
    total_cost: Decimal
    total_freight: Decimal
    net_profit: Decimal
    margin: Decimal
    top_customers: List[RankedEntry] = field(default_factory=list)
    top_suppliers: List[RankedEntry] = field(default_factory=list)
    top_carriers: List[RankedEntry] = field(default_factory=list)
    feed_distribution: List[FeedShare] = field(default_factory=list)


def compute_profit(revenue, cost, freight):
    """(net_profit, margin %) with margin 0 when there is no revenue; serializers round the margin"""
    net_profit = revenue - cost - freight
    if revenue > 0:
        margin = net_profit / revenue * HUNDRED
    else:
        margin = Decimal('0')
    return net_profit, margin


def top_n(totals, n=TOP_N):
    """[(id, value)] sorted by value descending, ties by id, at most n"""
    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:n]


def _ranked(totals, names):
    return [
        RankedEntry(id=pk, name=names.get(pk, UNKNOWN_NAME), value=value)
        for pk, value in top_n(totals)
    ]


def _document_contact_names(model, ids):
    """Contact name per sale/purchase id, looked up for the given ids only"""
    return dict(model.objects.filter(pk__in=ids).values_list('id', 'contact__name'))


def _sum(queryset, column='amount'):
    return queryset.aggregate(total=Sum(column))['total'] or ZERO


def ledger_totals(transactions, carrier_transactions):
    """Revenue, cost and freight from already scoped transaction querysets"""
    revenue = _sum(transactions.filter(reference_type='sale', type='debit'))
    cost = _sum(transactions.filter(reference_type='purchase', type='credit'))
    freight = _sum(carrier_transactions.filter(type='freight_charge'))
    return revenue, cost, freight


@with_db_retry
@cached_query(SEASON_REPORT, cache_ttl=SEASON_REPORT_CACHE_TTL)
def build_season_report(season_id) -> SeasonReport:
    deliveries = list(
        Delivery.objects.filter(season_id=season_id).values(
            'id', 'net_weight', 'sale_id', 'purchase_id',
            'sale__feed_type__name', 'purchase__feed_type__name',
        )
    )
    total_tonnage = sum((d['net_weight'] for d in deliveries), ZERO)

    revenue, cost, freight = ledger_totals(
        AccountTransaction.objects.filter(season_id=season_id),
        CarrierTransaction.objects.filter(season_id=season_id),
    )
    net_profit, margin = compute_profit(revenue, cost, freight)

    # Ranked per sale and per purchase; a contact with several documents appears once per document
    sale_tonnage = defaultdict(lambda: ZERO)
    purchase_tonnage = defaultdict(lambda: ZERO)
    for d in deliveries:
        if d['sale_id'] is not None:
            sale_tonnage[d['sale_id']] += d['net_weight']
        if d['purchase_id'] is not None:
            purchase_tonnage[d['purchase_id']] += d['net_weight']

    sale_names = _document_contact_names(Sale, [pk for pk, _ in top_n(sale_tonnage)])
    purchase_names = _document_contact_names(Purchase, [pk for pk, _ in top_n(purchase_tonnage)])

    carrier_freight = {
        row['carrier_id']: row['total']
        for row in CarrierTransaction.objects
        .filter(season_id=season_id, type='freight_charge')
        .values('carrier_id')
        .annotate(total=Sum('amount'))
    }
    top_carrier_ids = [pk for pk, _ in top_n(carrier_freight)]
    carrier_names = dict(Carrier.objects.filter(pk__in=top_carrier_ids).values_list('id', 'name'))

    feed_tonnage = defaultdict(lambda: ZERO)
    for d in deliveries:
        label = d['sale__feed_type__name'] or d['purchase__feed_type__name'] or OTHER_FEED_LABEL
        feed_tonnage[label] += d['net_weight']
    feed_distribution = [
        FeedShare(name=name, tonnage=tonnage)
        for name, tonnage in sorted(feed_tonnage.items(), key=lambda item: (-item[1], item[0]))
    ]

    report = SeasonReport(
        season_id=int(season_id),
        total_deliveries=len(deliveries),
        total_tonnage=total_tonnage,
        total_revenue=revenue,
        total_cost=cost,
        total_freight=freight,
        net_profit=net_profit,
        margin=margin,
        top_customers=_ranked(sale_tonnage, sale_names),
        top_suppliers=_ranked(purchase_tonnage, purchase_names),
        top_carriers=_ranked(carrier_freight, carrier_names),
        feed_distribution=feed_distribution,
    )
    logger.info(
        f"Season {season_id} report: {report.total_deliveries} deliveries, "
        f"{report.total_tonnage} kg, net profit {report.net_profit}"
    )
    return report
