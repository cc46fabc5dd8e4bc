"""
Turn the dialogue platform's date parameters into a concrete forecast window.

The platform may send a point in time (`date-time`), a period (`date-period`,
either a keyword phrase or a {startDate, endDate} object), both, or neither.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

from dateutil.parser import isoparse

from .config import get_settings
from .models import MAX_FORECAST_DAYS, ForecastWindow, RangeWindow, SingleDayWindow

logger = logging.getLogger(__name__)


RANGE_FROM = re.compile(r"\b(from|starting|beginning|since)\b")
FORECAST_FROM = re.compile(r"forecast.*from")
DAY_COUNT = re.compile(r"(\d+)\s*day")

RELATIVE_DAY_LABELS = {0: "today", 1: "tomorrow", 2: "day after tomorrow"}


def long_date_label(day: date) -> str:
    """e.g. 'Monday, Jan 5'"""
    return f"{day:%A}, {day:%b} {day.day}"


def parse_date_value(value: Any) -> Optional[date]:
    """
    Extract the calendar date from an ISO-8601 date/time parameter.

    The date as written is kept (no timezone conversion), so
    '2024-01-05T23:00:00-05:00' is January 5th.
    """
    if isinstance(value, dict):
        value = value.get("date_time") or value.get("startDateTime") or value.get("startDate")
    if not value or not isinstance(value, str):
        return None
    try:
        return isoparse(value).date()
    except ValueError:
        logger.warning(f"Ignoring unparseable date value: {value!r}")
        return None


def has_period(date_period: Any) -> bool:
    if isinstance(date_period, str):
        return bool(date_period.strip())
    if isinstance(date_period, dict):
        return bool(date_period.get("startDate") or date_period.get("endDate"))
    return False


def _clamp_days(days: int) -> int:
    return max(1, min(days, MAX_FORECAST_DAYS))


def _period_bounds(date_period: Any):
    if not isinstance(date_period, dict):
        return None
    start = parse_date_value(date_period.get("startDate"))
    end = parse_date_value(date_period.get("endDate"))
    if start is None or end is None:
        return None
    if start > end:
        start, end = end, start
    return start, end


def _span_window(start: date, end: date, allow_daily: bool) -> RangeWindow:
    span = (end - start).days + 1
    days = _clamp_days(span)
    if span >= 7:
        label = "weekly"
    elif allow_daily and span == 1:
        label = "daily"
    else:
        label = f"{days}-day"
    return RangeWindow(days=days, label=label, start_date=start, end_date=end)


def _keyword_window(phrase: str) -> RangeWindow:
    phrase = phrase.lower()
    if "week" in phrase:
        return RangeWindow(days=MAX_FORECAST_DAYS, label="5-day weekly")
    match = DAY_COUNT.search(phrase)
    if match:
        days = _clamp_days(int(match.group(1)))
        return RangeWindow(days=days, label=f"{days}-day")
    return RangeWindow()


def _period_window(date_period: Any, query_text: str, anchored: bool) -> RangeWindow:
    bounds = _period_bounds(date_period)
    if bounds:
        # A one-day span only reads as "daily" when no point in time came with it.
        return _span_window(*bounds, allow_daily=not anchored)
    if isinstance(date_period, str):
        return _keyword_window(date_period)
    if anchored and "week" in (query_text or "").lower():
        return RangeWindow(days=MAX_FORECAST_DAYS, label="5-day weekly")
    return RangeWindow()


def _single_day_window(target: date, today: date) -> SingleDayWindow:
    offset = (target - today).days
    label = RELATIVE_DAY_LABELS.get(offset) or long_date_label(target)
    return SingleDayWindow(target_date=target, label=label)


def resolve_forecast_window(
    date_time: Any,
    date_period: Any,
    query_text: str,
    today: Optional[date] = None,
) -> ForecastWindow:
    """
    Decide how many days to forecast and how to label them.

    Args:
        date_time: point-in-time parameter (ISO string, {"date_time": ...} or empty)
        date_period: keyword phrase, {"startDate", "endDate"} object, or empty
        query_text: the raw user utterance
        today: reference day for relative labels (defaults to now in the configured timezone)

    Returns:
        RangeWindow or SingleDayWindow; day counts never exceed the 5-day horizon.
    """
    if today is None:
        today = datetime.now(get_settings().tzinfo).date()

    point = parse_date_value(date_time)
    period = has_period(date_period)
    query = (query_text or "").lower()
    logger.info(f"Resolving forecast window: date_time={date_time!r} date_period={date_period!r}")

    if point and period:
        window = _period_window(date_period, query, anchored=True)
    elif point:
        if RANGE_FROM.search(query) or FORECAST_FROM.search(query):
            window = RangeWindow(start_date=point)
        else:
            window = _single_day_window(point, today)
    elif period:
        window = _period_window(date_period, query, anchored=False)
    else:
        window = RangeWindow()

    logger.info(f"Forecast window: {window!r}")
    return window
