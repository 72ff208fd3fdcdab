"""Retry with exponential backoff for transient database failures on read paths."""
from dataclasses import dataclass
from functools import wraps
import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError, connection, transaction

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 0.2  # seconds
    max_delay: float = 2.0  # seconds
    exponential_base: float = 2.0

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)

    @classmethod
    def from_settings(cls):
        return cls(
            max_retries=getattr(settings, 'DB_RETRY_ATTEMPTS', 3),
            base_delay=getattr(settings, 'DB_RETRY_BASE_DELAY', 0.2),
            max_delay=getattr(settings, 'DB_RETRY_MAX_DELAY', 2.0),
        )


def with_db_retry(func=None, *, config=None, sleep=time.sleep):
    """
    Retry a read-only operation when the database connection fails transiently.

    Never retries inside an open atomic block: the outer transaction is already
    broken and has to be handled by its owner.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            retry_config = config or RetryConfig.from_settings()
            for attempt in range(retry_config.max_retries + 1):
                try:
                    return f(*args, **kwargs)
                except TRANSIENT_DB_ERRORS as e:
                    if attempt >= retry_config.max_retries or transaction.get_connection().in_atomic_block:
                        raise
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"Transient database error in {f.__name__}: {e}; "
                        f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                    )
                    # Drop the broken connection so the next attempt reconnects
                    connection.close_if_unusable_or_obsolete()
                    sleep(delay)
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
