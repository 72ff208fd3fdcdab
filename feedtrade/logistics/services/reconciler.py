"""
Delivery-to-transaction reconciler.

Deliveries carry no price. A contact's deliveries are found through its sales
and purchases and priced from those documents. Suppliers booked only through
quick shipments have neither: their deliveries are found through the
reference ids of their purchase-side account transactions, and priced with
the legacy description recovery.
"""
from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import List, Optional

from django.db.models import Q

from feedtrade.core.cache_utils import cached_query, DELIVERIES, DELIVERIES_CACHE_TTL
from feedtrade.core.retry import with_db_retry
from feedtrade.logistics.legacy_pricing import recover_unit_price
from feedtrade.logistics.models import Delivery
from feedtrade.parties.models import AccountTransaction
from feedtrade.purchasing.models import Purchase
from feedtrade.sales.models import Sale

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

SOURCE_SALE = 'sale'
SOURCE_PURCHASE = 'purchase'
SOURCE_LEGACY = 'legacy_description'


@dataclass
class PricedDelivery:
    delivery: Delivery
    unit_price: Optional[Decimal]
    total_amount: Decimal
    price_source: Optional[str]

    @property
    def is_priced(self):
        return self.unit_price is not None


def _fallback_references(contact_id):
    """Delivery ids and the contact-wide legacy price from purchase-side transactions"""
    rows = list(
        AccountTransaction.objects
        .filter(account__contact_id=contact_id, reference_type='purchase', reference_id__isnull=False)
        .order_by('transaction_date', 'id')
        .values_list('reference_id', 'description')
    )
    delivery_ids = {reference_id for reference_id, _ in rows}
    price = None
    for _, description in rows:
        price = recover_unit_price(description)
        if price is not None:
            break
    return delivery_ids, price


def _price(delivery, sale_prices, purchase_prices, fallback_ids, fallback_price):
    if delivery.sale_id in sale_prices:
        return sale_prices[delivery.sale_id], SOURCE_SALE
    if delivery.purchase_id in purchase_prices:
        return purchase_prices[delivery.purchase_id], SOURCE_PURCHASE
    if delivery.pk in fallback_ids and fallback_price is not None:
        return fallback_price, SOURCE_LEGACY
    return None, None


@with_db_retry
@cached_query(DELIVERIES, cache_ttl=DELIVERIES_CACHE_TTL)
def deliveries_for_contact(contact_id) -> List[PricedDelivery]:
    """Live deliveries attributable to a contact, newest first, each with its resolved price"""
    sale_prices = dict(Sale.objects.filter(contact_id=contact_id).values_list('id', 'unit_price'))
    purchase_prices = dict(Purchase.objects.filter(contact_id=contact_id).values_list('id', 'unit_price'))

    fallback_ids, fallback_price = set(), None
    if not sale_prices and not purchase_prices:
        fallback_ids, fallback_price = _fallback_references(contact_id)
        if not fallback_ids:
            return []

    condition = Q()
    if sale_prices:
        condition |= Q(sale_id__in=list(sale_prices))
    if purchase_prices:
        condition |= Q(purchase_id__in=list(purchase_prices))
    if fallback_ids:
        condition |= Q(pk__in=list(fallback_ids))

    deliveries = Delivery.objects.filter(condition).order_by('-delivery_date', '-id')

    result = []
    for delivery in deliveries:
        unit_price, source = _price(delivery, sale_prices, purchase_prices, fallback_ids, fallback_price)
        total = delivery.net_weight * unit_price if unit_price is not None else ZERO
        result.append(PricedDelivery(
            delivery=delivery,
            unit_price=unit_price,
            total_amount=total,
            price_source=source,
        ))

    legacy_count = sum(1 for r in result if r.price_source == SOURCE_LEGACY)
    if legacy_count:
        logger.warning(
            f"Contact {contact_id}: priced {legacy_count} deliveries from one legacy description price "
            f"({fallback_price}/kg)"
        )
    unpriced = sum(1 for r in result if not r.is_priced)
    if unpriced:
        logger.info(f"Contact {contact_id}: {unpriced} deliveries have no resolvable price")
    return result
