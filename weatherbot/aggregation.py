import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from .models import DailyAggregate, WeatherSample

logger = logging.getLogger(__name__)


def local_datetime(sample: WeatherSample, tz: tzinfo = timezone.utc) -> datetime:
    return datetime.fromtimestamp(sample.dt, tz)


def _distance_from_noon(moment: datetime) -> int:
    return abs(moment.hour - 12)


def group_forecast_by_day(
    samples: Iterable[WeatherSample],
    max_days: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: tzinfo = timezone.utc,
) -> List[DailyAggregate]:
    """
    Collapse 3-hour forecast slots into one entry per calendar day.

    Days keep the order in which they first appear. Each day's high/low
    widen across every slot, while description, humidity and wind come from
    the slot closest to midday. Days past `max_days` are dropped.

    With both bounds, only slots on days within [start_date, end_date] count;
    with just a start bound, slots before start_date are skipped.
    """
    daily: Dict[date, DailyAggregate] = {}

    for sample in samples:
        moment = local_datetime(sample, tz)
        day = moment.date()

        if start_date and day < start_date:
            continue
        if start_date and end_date and day > end_date:
            continue

        existing = daily.get(day)
        if existing is not None:
            existing.temp_max = max(existing.temp_max, sample.temp_max)
            existing.temp_min = min(existing.temp_min, sample.temp_min)
            current = local_datetime(existing.representative, tz)
            if _distance_from_noon(moment) < _distance_from_noon(current):
                existing.representative = sample
        elif len(daily) < max_days:
            daily[day] = DailyAggregate(
                day=day,
                representative=sample,
                temp_max=sample.temp_max,
                temp_min=sample.temp_min,
            )

    logger.info(f"Grouped forecast into {len(daily)} day(s) (max {max_days})")
    return list(daily.values())
