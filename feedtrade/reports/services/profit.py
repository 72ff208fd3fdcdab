"""Profit over a transaction-date range"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging

from feedtrade.core.cache_utils import cached_query, PROFIT, PROFIT_CACHE_TTL
from feedtrade.core.retry import with_db_retry
from feedtrade.logistics.models import CarrierTransaction
from feedtrade.parties.models import AccountTransaction
from .season_report import compute_profit, ledger_totals

logger = logging.getLogger('feedtrade.reports')


@dataclass
class ProfitSummary:
    date_from: date
    date_to: date
    total_revenue: Decimal
    total_cost: Decimal
    total_freight: Decimal
    net_profit: Decimal
    margin: Decimal


@with_db_retry
@cached_query(PROFIT, cache_ttl=PROFIT_CACHE_TTL)
def profit_summary(date_from, date_to) -> ProfitSummary:
    """Revenue, cost, freight and margin for transactions dated within [date_from, date_to]"""
    revenue, cost, freight = ledger_totals(
        AccountTransaction.objects.filter(transaction_date__range=(date_from, date_to)),
        CarrierTransaction.objects.filter(transaction_date__range=(date_from, date_to)),
    )
    net_profit, margin = compute_profit(revenue, cost, freight)
    logger.debug(f"Profit {date_from}..{date_to}: revenue {revenue}, net {net_profit}")
    return ProfitSummary(
        date_from=date_from,
        date_to=date_to,
        total_revenue=revenue,
        total_cost=cost,
        total_freight=freight,
        net_profit=net_profit,
        margin=margin,
    )
