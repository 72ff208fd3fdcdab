"""
Cache invalidation signals
Automatically invalidate cached reads when the underlying rows change
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
import logging

from .cache_utils import (
    invalidate_namespaces,
    LEDGER, ACCOUNT_SUMMARY, DELIVERIES, SEASON_REPORT, PROFIT, CARRIER_BALANCES, INVENTORY, DASHBOARD,
)

logger = logging.getLogger(__name__)

# Which cached namespaces depend on which models
MODEL_NAMESPACES = {
    'parties.Contact': (LEDGER, ACCOUNT_SUMMARY, DELIVERIES, SEASON_REPORT, DASHBOARD),
    'parties.Account': (LEDGER, ACCOUNT_SUMMARY, DASHBOARD),
    'parties.AccountTransaction': (LEDGER, ACCOUNT_SUMMARY, DELIVERIES, SEASON_REPORT, PROFIT, DASHBOARD),
    'parties.Check': (DASHBOARD,),
    'sales.Sale': (DELIVERIES, SEASON_REPORT, DASHBOARD),
    'purchasing.Purchase': (DELIVERIES, SEASON_REPORT, DASHBOARD),
    'catalog.FeedType': (SEASON_REPORT, INVENTORY),
    'logistics.Delivery': (DELIVERIES, SEASON_REPORT, DASHBOARD),
    'logistics.Carrier': (CARRIER_BALANCES, SEASON_REPORT),
    'logistics.CarrierTransaction': (CARRIER_BALANCES, SEASON_REPORT, PROFIT, DASHBOARD),
    'seasons.Season': (SEASON_REPORT,),
    'inventory.InventoryItem': (INVENTORY,),
    'locations.Warehouse': (INVENTORY,),
}


def invalidate_for_model(label):
    namespaces = MODEL_NAMESPACES.get(label, ())
    invalidate_namespaces(*namespaces)
    return namespaces


def _handle_change(sender, **kwargs):
    label = f"{sender._meta.app_label}.{sender.__name__}"
    # Bump now so reads later in the same transaction miss, and again after
    # commit so nothing a concurrent reader cached from pre-commit rows survives
    namespaces = invalidate_for_model(label)
    transaction.on_commit(lambda: invalidate_namespaces(*namespaces), using=kwargs.get('using'))
    logger.debug(f"Cache invalidation for {label}: {', '.join(namespaces)}")


def _connect():
    for label in MODEL_NAMESPACES:
        post_save.connect(_handle_change, sender=label, dispatch_uid=f'cache_save:{label}')
        post_delete.connect(_handle_change, sender=label, dispatch_uid=f'cache_delete:{label}')


_connect()
