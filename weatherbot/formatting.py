import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import List, Optional, Sequence

from .aggregation import group_forecast_by_day, local_datetime
from .forecast_window import long_date_label
from .models import CurrentWeather, DailyAggregate, ForecastWindow, QueryIntent, WeatherSample


def _deg(value: float) -> int:
    """Round half up to whole degrees (round() would use banker's rounding)."""
    return math.floor(value + 0.5)


def _num(value: float) -> str:
    return f"{value:g}"


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _clock(moment: datetime) -> str:
    return moment.strftime("%I:%M:%S %p").lstrip("0")


def day_name(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return long_date_label(day)


# ---------------------------- Current weather -------------------------

def format_current_weather(
    current: CurrentWeather,
    intent: QueryIntent,
    now: Optional[datetime] = None,
) -> str:
    """Render a one-line attribute answer or the full current-conditions summary."""
    s = current.sample
    place = f"{current.city}, {current.country}"
    attribute = intent.requested_attribute()

    if attribute == "temperature":
        return f"Temperature in {place}: {_deg(s.temp)}°C (feels like {_deg(s.feels_like)}°C)"
    if attribute == "humidity":
        return f"Humidity in {place}: {s.humidity}%"
    if attribute == "wind":
        return f"Wind in {place}: {_num(s.wind_speed)} m/s"
    if attribute == "pressure":
        return f"Pressure in {place}: {_num(s.pressure)} hPa"

    now = now or datetime.now()
    parts = [
        f"Current weather in {place}: {_capitalize(s.description)}.",
        f"Temperature: {_deg(s.temp)}°C (feels like {_deg(s.feels_like)}°C).",
        f"Humidity: {s.humidity}%.",
        f"Wind: {_num(s.wind_speed)} m/s.",
    ]
    if s.visibility is not None:
        parts.append(f"Visibility: {s.visibility / 1000:.1f} km.")
    parts.append(f"Pressure: {_num(s.pressure)} hPa.")
    parts.append(f"Last updated: {_clock(now)}.")
    return " ".join(parts)


# ---------------------------- Forecasts -------------------------------

def find_day_sample(
    samples: Sequence[WeatherSample],
    target: date,
    tz: tzinfo = timezone.utc,
) -> Optional[WeatherSample]:
    """First slot on `target` between 12:00 and 15:00, else the first slot of that day."""
    found = None
    for sample in samples:
        moment = local_datetime(sample, tz)
        if moment.date() != target:
            continue
        if 12 <= moment.hour <= 15:
            return sample
        if found is None:
            found = sample
    return found


def _format_single_day(samples, city, country, window, tz) -> str:
    sample = find_day_sample(samples, window.specific_date, tz)
    if sample is None:
        return f"Sorry, I don't have weather data for {window.period_label} in {city}."

    return (
        f"Weather {window.period_label} in {city}, {country}: "
        f"{_capitalize(sample.description)}, "
        f"Temperature: {_deg(sample.temp)}°C (feels like {_deg(sample.feels_like)}°C), "
        f"Humidity: {sample.humidity}%, Wind: {_num(sample.wind_speed)} m/s."
    )


def _format_day(day: DailyAggregate, today: date) -> str:
    return (
        f"{day_name(day.day, today)}: {day.description}, "
        f"High: {_deg(day.temp_max)}°C, Low: {_deg(day.temp_min)}°C, "
        f"Humidity: {day.humidity}%, Wind: {_num(day.wind_speed)} m/s. "
    )


def format_forecast(
    samples: List[WeatherSample],
    city: str,
    country: str,
    window: ForecastWindow,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> str:
    """
    Render a forecast for the resolved window.

    Single-day windows pick one representative slot from the raw samples;
    range windows are grouped into daily highs/lows first.
    """
    now = now or datetime.now(tz)
    today = today or now.date()

    if window.single_day_only:
        return _format_single_day(samples, city, country, window, tz)

    days = group_forecast_by_day(samples, window.day_count, window.start_date, window.end_date, tz)
    if not days:
        return f"Sorry, I don't have weather data for the {window.period_label} forecast in {city}."

    text = f"{_capitalize(window.period_label)} weather forecast for {city}, {country}: "
    text += "".join(_format_day(day, today) for day in days)
    text += f"Forecast updated: {_clock(now)}."
    return text
