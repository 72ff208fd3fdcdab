"""
Query cache for ledger and report reads.

Results are cached under a namespace (e.g. "ledger", "season_report") and keyed by
the logical identity of the query (contact id, season id, date range). Every namespace
carries a version number; invalidating a namespace bumps the version so all keys
written under the old version stop being read. This works the same on Redis and on
the local-memory backend used in development and tests.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

NAMESPACE_VERSION_PREFIX = 'nsver:'

# Cache TTLs (in seconds)
LEDGER_CACHE_TTL = 120  # 2 minutes
ACCOUNT_SUMMARY_CACHE_TTL = 120
DELIVERIES_CACHE_TTL = 180  # 3 minutes
SEASON_REPORT_CACHE_TTL = 600  # 10 minutes
PROFIT_CACHE_TTL = 300  # 5 minutes
CARRIER_BALANCE_CACHE_TTL = 300
INVENTORY_CACHE_TTL = 180
DASHBOARD_CACHE_TTL = 60

# Namespaces
LEDGER = 'ledger'
ACCOUNT_SUMMARY = 'account_summary'
DELIVERIES = 'deliveries'
SEASON_REPORT = 'season_report'
PROFIT = 'profit'
CARRIER_BALANCES = 'carrier_balances'
INVENTORY = 'inventory'
DASHBOARD = 'dashboard'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_namespace_version(namespace):
    key = f"{NAMESPACE_VERSION_PREFIX}{namespace}"
    version = cache.get(key)
    if version is None:
        cache.add(key, 1, None)
        version = cache.get(key) or 1
    return version


def invalidate_namespace(namespace):
    """Invalidate every cached query in a namespace"""
    key = f"{NAMESPACE_VERSION_PREFIX}{namespace}"
    try:
        cache.incr(key)
    except ValueError:
        # Key expired or never written
        cache.set(key, 2, None)
    logger.debug(f"Invalidated cache namespace: {namespace}")


def invalidate_namespaces(*namespaces):
    for namespace in namespaces:
        invalidate_namespace(namespace)


def cached_query(namespace, cache_ttl=60):
    """
    Decorator to cache expensive reads under a namespace

    Usage:
        @cached_query(SEASON_REPORT, cache_ttl=600)
        def build_season_report(season_id):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            version = get_namespace_version(namespace)
            cache_key = make_cache_key(f"{namespace}:v{version}", func.__name__, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {namespace}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {namespace}: {cache_key}")
            result = func(*args, **kwargs)
            if result is not None:
                cache.set(cache_key, result, cache_ttl)
            return result

        wrapper.uncached = func
        return wrapper
    return decorator
