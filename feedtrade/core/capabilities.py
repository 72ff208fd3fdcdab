"""
Capability probe for optional summary views.

The first lookup per database alias asks the schema whether the view exists and
remembers the answer for the life of the process. Services then dispatch to the
view-backed query or to the equivalent base-table join.
"""
from contextlib import contextmanager
import logging
import threading

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, connections

logger = logging.getLogger(__name__)

ACCOUNT_SUMMARY_VIEW = 'v_account_summary'
CARRIER_BALANCE_VIEW = 'v_carrier_balance'
INVENTORY_SUMMARY_VIEW = 'v_inventory_summary'

_lock = threading.Lock()
_probed = {}


def _probe(name, using):
    connection = connections[using]
    with connection.cursor() as cursor:
        names = connection.introspection.table_names(cursor, include_views=True)
    return name in names


def has_view(name, using=DEFAULT_DB_ALIAS):
    """Return True when the summary view ``name`` exists and views are enabled"""
    if not getattr(settings, 'USE_SUMMARY_VIEWS', True):
        return False
    key = (using, name)
    if key not in _probed:
        with _lock:
            if key not in _probed:
                _probed[key] = _probe(name, using)
                logger.info(
                    f"Summary view {name} {'found' if _probed[key] else 'missing'} on '{using}'; "
                    f"using {'view' if _probed[key] else 'fallback join'} path"
                )
    return _probed[key]


def reset_capabilities():
    """Forget probe results (after migrations, or between tests)"""
    with _lock:
        _probed.clear()


@contextmanager
def force_capability(name, available, using=DEFAULT_DB_ALIAS):
    """Pin a probe result for the duration of the block"""
    key = (using, name)
    with _lock:
        previous = _probed.get(key)
        _probed[key] = available
    try:
        yield
    finally:
        with _lock:
            if previous is None:
                _probed.pop(key, None)
            else:
                _probed[key] = previous
