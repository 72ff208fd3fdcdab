"""Season lifecycle: the active season and atomic season rollover"""
import logging
import time

from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from feedtrade.core.retry import RetryConfig
from .models import Season

logger = logging.getLogger(__name__)

# Rollover races are retried quickly; the loser sees the winner's season on its next attempt
ROLLOVER_RETRY = RetryConfig(max_retries=5, base_delay=0.05, max_delay=0.5)


def get_active_season():
    return Season.objects.filter(is_active=True).first()


def resolve_season(season=None):
    """The given season, else the active one (may be None)"""
    return season if season is not None else get_active_season()


def _close(season, end_date):
    season.is_active = False
    if season.end_date is None:
        season.end_date = end_date
    season.save(update_fields=['is_active', 'end_date'])


def start_new_season(name, start_date=None, end_date=None, notes=None, retry=ROLLOVER_RETRY, sleep=time.sleep):
    """
    Close the active season and open a new active one in a single transaction.

    Concurrent callers race on the partial unique index; whoever loses retries
    against the new state, so exactly one season is active afterwards.
    """
    today = timezone.localdate()
    start_date = start_date or today

    for attempt in range(retry.max_retries + 1):
        try:
            with transaction.atomic():
                for season in Season.objects.select_for_update().filter(is_active=True):
                    _close(season, today)
                    logger.info(f"Closed season {season.pk} ({season.name})")
                season = Season.objects.create(
                    name=name,
                    start_date=start_date,
                    end_date=end_date,
                    notes=notes,
                    is_active=True,
                )
            logger.info(f"Started season {season.pk} ({season.name})")
            return season
        except (IntegrityError, OperationalError) as e:
            if attempt >= retry.max_retries:
                logger.error(f"Could not start season '{name}' after {attempt + 1} attempts: {e}")
                raise
            delay = retry.get_delay(attempt)
            logger.warning(f"Season rollover conflict ({e}); retrying in {delay:.2f}s")
            sleep(delay)


def close_season(season):
    """Deactivate a season and stamp its end date"""
    with transaction.atomic():
        season = Season.objects.select_for_update().get(pk=season.pk)
        _close(season, timezone.localdate())
    logger.info(f"Closed season {season.pk} ({season.name})")
    return season
