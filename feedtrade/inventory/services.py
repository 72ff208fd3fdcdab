"""Stock bookkeeping and the inventory summary read"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional

from django.db import transaction

from feedtrade.core.cache_utils import cached_query, INVENTORY, INVENTORY_CACHE_TTL
from feedtrade.core.capabilities import has_view, INVENTORY_SUMMARY_VIEW
from feedtrade.core.exceptions import InvalidOperation
from feedtrade.core.retry import with_db_retry
from .models import InventoryItem, InventoryMovement, InventorySummary

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
CENT = Decimal('0.01')


@dataclass
class InventorySummaryRow:
    inventory_id: int
    warehouse_id: int
    feed_type_id: int
    warehouse_name: str
    feed_type_name: str
    quantity_kg: Decimal
    unit_cost: Decimal
    total_value: Decimal
    last_updated: Optional[datetime]


def _average_cost(item, quantity_in, unit_cost):
    """Weighted average of the stock on hand and an incoming lot"""
    on_hand = max(item.quantity_kg, ZERO)
    total = on_hand + quantity_in
    if total <= 0:
        return unit_cost
    value = on_hand * item.unit_cost + quantity_in * unit_cost
    return (value / total).quantize(CENT)


def record_movement(warehouse, feed_type, movement_type, quantity_change, unit_cost=None,
                    reference_type=None, reference_id=None, notes=None, user=None):
    """Apply a signed quantity change to a warehouse/feed type and log it"""
    if movement_type not in dict(InventoryMovement.MOVEMENT_TYPE_CHOICES):
        raise InvalidOperation(f"Invalid movement type: {movement_type}")
    quantity_change = Decimal(quantity_change)
    if quantity_change == 0:
        raise InvalidOperation("Movement quantity cannot be zero")

    with transaction.atomic():
        item, _ = InventoryItem.objects.select_for_update().get_or_create(
            warehouse=warehouse, feed_type=feed_type,
        )
        if unit_cost is not None and quantity_change > 0:
            item.unit_cost = _average_cost(item, quantity_change, Decimal(unit_cost))
        item.quantity_kg += quantity_change
        item.save(update_fields=['quantity_kg', 'unit_cost', 'last_updated'])

        movement = InventoryMovement.objects.create(
            inventory=item,
            movement_type=movement_type,
            quantity_change=quantity_change,
            unit_cost=unit_cost,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
            created_by=user if user is not None and user.is_authenticated else None,
        )

    if item.quantity_kg < 0:
        logger.warning(
            f"Negative stock for {feed_type} in {warehouse}: {item.quantity_kg} kg after {movement_type}"
        )
    return movement


def _summary_rows():
    if has_view(INVENTORY_SUMMARY_VIEW):
        return [
            InventorySummaryRow(
                inventory_id=row.inventory_id,
                warehouse_id=row.warehouse_id,
                feed_type_id=row.feed_type_id,
                warehouse_name=row.warehouse_name,
                feed_type_name=row.feed_type_name,
                quantity_kg=row.quantity_kg,
                unit_cost=row.unit_cost,
                total_value=row.total_value,
                last_updated=row.last_updated,
            )
            for row in InventorySummary.objects.all()
        ]

    return [
        InventorySummaryRow(
            inventory_id=item.pk,
            warehouse_id=item.warehouse_id,
            feed_type_id=item.feed_type_id,
            warehouse_name=item.warehouse.name,
            feed_type_name=item.feed_type.name,
            quantity_kg=item.quantity_kg,
            unit_cost=item.unit_cost,
            total_value=item.quantity_kg * item.unit_cost,
            last_updated=item.last_updated,
        )
        for item in InventoryItem.objects.select_related('warehouse', 'feed_type')
    ]


@with_db_retry
@cached_query(INVENTORY, cache_ttl=INVENTORY_CACHE_TTL)
def inventory_summary() -> List[InventorySummaryRow]:
    """Stock on hand per warehouse and feed type, ordered by warehouse then feed type name"""
    rows = _summary_rows()
    rows.sort(key=lambda r: (r.warehouse_name.casefold(), r.feed_type_name.casefold(), r.inventory_id))
    return rows


def recent_movements(limit=20, warehouse_id=None):
    queryset = InventoryMovement.objects.select_related('inventory__warehouse', 'inventory__feed_type')
    if warehouse_id:
        queryset = queryset.filter(inventory__warehouse_id=warehouse_id)
    return list(queryset.order_by('-created_at', '-id')[:limit])
