from datetime import datetime, timedelta, timezone

import pytest

from weatherbot.models import CurrentWeather, GeoLocation, WeatherSample


UTC = timezone.utc


def _make_sample(when: datetime, temp: float = 10.0, **overrides) -> WeatherSample:
    fields = dict(
        dt=int(when.timestamp()),
        temp=temp,
        feels_like=temp - 1,
        humidity=60,
        pressure=1012,
        wind_speed=3.5,
        description="scattered clouds",
    )
    fields.update(overrides)
    return WeatherSample(**fields)


def _three_hourly(start: datetime, count: int):
    """`count` 3-hour slots from `start`, temperatures cycling 10..17."""
    return [_make_sample(start + timedelta(hours=3 * i), temp=10.0 + i % 8) for i in range(count)]


@pytest.fixture
def make_sample():
    return _make_sample


@pytest.fixture
def three_hourly():
    return _three_hourly


class FakeGateway:
    """Stands in for OpenWeatherGateway; records calls, optionally raises `error`."""

    def __init__(self):
        self.current = CurrentWeather(
            city="London",
            country="GB",
            sample=_make_sample(datetime(2024, 1, 1, 12, tzinfo=UTC), temp=15.5,
                                feels_like=14.4, humidity=80, wind_speed=4.1,
                                description="light rain", visibility=10000),
        )
        self.place = GeoLocation(lat=51.5073, lon=-0.1276, name="London", country="GB")
        self.samples = _three_hourly(datetime(2024, 1, 1, tzinfo=UTC), 40)
        self.error = None
        self.calls = []

    async def current_weather(self, city):
        self.calls.append(("current_weather", city))
        if self.error:
            raise self.error
        return self.current

    async def geocode(self, city):
        self.calls.append(("geocode", city))
        if self.error:
            raise self.error
        return self.place

    async def forecast(self, lat, lon):
        self.calls.append(("forecast", lat, lon))
        return self.samples


@pytest.fixture
def fake_gateway():
    return FakeGateway()
