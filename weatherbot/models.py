from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------- Weather data ----------------------------

class WeatherSample(BaseModel):
    """One provider reading: a current-weather observation or a 3-hour forecast slot."""
    model_config = ConfigDict(frozen=True)

    dt: int  # epoch seconds
    temp: float
    feels_like: float
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    humidity: int
    pressure: float
    wind_speed: float
    description: str = ""
    visibility: Optional[float] = None  # metres

    @model_validator(mode="before")
    @classmethod
    def _default_extremes(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if data.get("temp_min") is None:
                data["temp_min"] = data.get("temp")
            if data.get("temp_max") is None:
                data["temp_max"] = data.get("temp")
        return data

    @classmethod
    def from_openweather(cls, item: Dict[str, Any]) -> "WeatherSample":
        """Build a sample from an OpenWeatherMap `weather` body or `forecast` list item."""
        main = item["main"]
        weather = (item.get("weather") or [{}])[0]
        wind = item.get("wind") or {}
        return cls(
            dt=item["dt"],
            temp=main["temp"],
            feels_like=main.get("feels_like", main["temp"]),
            temp_min=main.get("temp_min"),
            temp_max=main.get("temp_max"),
            humidity=main["humidity"],
            pressure=main["pressure"],
            wind_speed=wind.get("speed", 0),
            description=weather.get("description", ""),
            visibility=item.get("visibility"),
        )


class CurrentWeather(BaseModel):
    city: str
    country: str
    sample: WeatherSample


class GeoLocation(BaseModel):
    lat: float
    lon: float
    name: str
    country: str = ""


class DailyAggregate(BaseModel):
    """Per-day summary: running temperature extremes plus the sample closest to midday."""
    day: date
    representative: WeatherSample
    temp_max: float
    temp_min: float

    @property
    def dt(self) -> int:
        return self.representative.dt

    @property
    def description(self) -> str:
        return self.representative.description

    @property
    def humidity(self) -> int:
        return self.representative.humidity

    @property
    def wind_speed(self) -> float:
        return self.representative.wind_speed


# ---------------------------- Query analysis --------------------------

ATTRIBUTES = ("temperature", "humidity", "wind", "pressure")


class QueryIntent(BaseModel):
    temperature: bool = False
    humidity: bool = False
    wind: bool = False
    pressure: bool = False
    full: bool = True

    def requested_attribute(self) -> Optional[str]:
        """
        The single attribute the user asked for, or None for a full summary.

        A lone specific flag always wins over `full`; two or more specific
        flags fall back to the full summary.
        """
        flags = [name for name in ATTRIBUTES if getattr(self, name)]
        if len(flags) == 1:
            return flags[0]
        return None


# ---------------------------- Forecast windows ------------------------

MAX_FORECAST_DAYS = 5  # OpenWeatherMap 5-day / 3-hour horizon


class RangeWindow(BaseModel):
    """A multi-day forecast, optionally bounded by explicit dates."""
    kind: Literal["range"] = "range"
    days: int = Field(MAX_FORECAST_DAYS, ge=1, le=MAX_FORECAST_DAYS)
    label: str = "5-day"
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def _ordered_bounds(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @property
    def day_count(self) -> int:
        return self.days

    @property
    def period_label(self) -> str:
        return self.label

    @property
    def specific_date(self) -> Optional[date]:
        return None

    @property
    def wants_specific_day(self) -> bool:
        return False

    @property
    def single_day_only(self) -> bool:
        return False


class SingleDayWindow(BaseModel):
    """A forecast for exactly one calendar day."""
    kind: Literal["single_day"] = "single_day"
    target_date: date
    label: str

    @property
    def day_count(self) -> int:
        return 1

    @property
    def period_label(self) -> str:
        return self.label

    @property
    def specific_date(self) -> date:
        return self.target_date

    @property
    def wants_specific_day(self) -> bool:
        return True

    @property
    def single_day_only(self) -> bool:
        return True

    @property
    def start_date(self) -> Optional[date]:
        return None

    @property
    def end_date(self) -> Optional[date]:
        return None


ForecastWindow = Annotated[Union[RangeWindow, SingleDayWindow], Field(discriminator="kind")]


# ---------------------------- Webhook payloads ------------------------

class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Intent(_Camel):
    display_name: str = Field("", alias="displayName")


class OutputContext(_Camel):
    name: str
    lifespan_count: Optional[int] = Field(None, alias="lifespanCount")
    parameters: Dict[str, Any] = Field(default_factory=dict)


class QueryResult(_Camel):
    intent: Intent = Field(default_factory=Intent)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    query_text: str = Field("", alias="queryText")
    output_contexts: List[OutputContext] = Field(default_factory=list, alias="outputContexts")


class WebhookRequest(_Camel):
    query_result: QueryResult = Field(alias="queryResult")
    session: str = ""


class WebhookResponse(_Camel):
    fulfillment_text: str = Field(alias="fulfillmentText")
    output_contexts: Optional[List[OutputContext]] = Field(None, alias="outputContexts")
