"""
Intent handlers for the dialogue platform webhook.

Each handler turns one intent's parameters into a WebhookResponse. Missing
or unknown cities become friendly text here; provider failures
(UpstreamError) propagate to the web layer.
"""

import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Optional

from .city import validate_city
from .config import get_settings
from .errors import CityNotFoundError, ValidationError
from .forecast_window import resolve_forecast_window
from .formatting import format_current_weather, format_forecast
from .intent import analyze_query
from .models import OutputContext, WebhookRequest, WebhookResponse
from .services import OpenWeatherGateway

logger = logging.getLogger(__name__)


# ---------------------------- Canned replies --------------------------

THANKS_RESPONSES = [
    "You're welcome! Is there anything else I can help you with regarding weather information?",
    "Glad I could help! Do you need weather information for any other locations?",
    "Happy to assist! Would you like to check weather for another city or date?",
    "You're welcome! Any other weather questions I can answer for you?",
    "My pleasure! Is there anything else weather-related you'd like to know?",
]

GOODBYE_RESPONSES = [
    "Thanks for using the Weather Bot! Stay safe and have a great day!",
    "You're all set! Thanks for using our weather service. Take care!",
    "Perfect! Thanks for choosing our weather bot. Have a wonderful day!",
    "Great! Thanks for using the weather service. Stay dry and stay safe!",
    "Awesome! Thanks for using our weather bot. Have a fantastic day ahead!",
]

HELP_TEXT = (
    "I can help you with weather information! Try asking: What's the weather in London? "
    "or Show me forecast for New York or Weather in your city."
)
ASK_CITY_CURRENT = (
    "Which city would you like to know the weather for? "
    "Just tell me any city name like London, New York, or Karachi."
)
ASK_CITY_FORECAST = "Which city would you like the weather forecast for? Just tell me any city name."
ASK_CITY_FOLLOWUP = "Please tell me a city name so I can get the weather information for you."
NOT_FOUND_TEXT = (
    'Sorry, I couldn\'t find weather data for "{city}". '
    "Please check the spelling or try a nearby major city."
)

# Output context names (suffixes of "<session>/contexts/<name>")
CURRENT_CITY_MISSING = "weather-city-missing"
FORECAST_CITY_MISSING = "weather-forecast-missing"
AWAITING_FINAL = "awaiting-final-response"

CURRENT_INTENTS = ("Current-Weather", "weather.current")
FORECAST_INTENTS = ("Forecast-Weather", "weather.forecast")
CURRENT_FOLLOWUP_INTENTS = ("Current-Weather-City-Followup", "weather.current.city-followup")
FORECAST_FOLLOWUP_INTENTS = ("Weather-Forecast-City-Followup", "weather.forecast.city-followup")


# ---------------------------- Helpers ---------------------------------

def _context(session: str, name: str, lifespan: int, parameters: Dict[str, Any]) -> OutputContext:
    return OutputContext(name=f"{session}/contexts/{name}", lifespan_count=lifespan, parameters=parameters)


def _find_context(contexts: List[OutputContext], name: str) -> Optional[OutputContext]:
    for ctx in contexts:
        if ctx.name.endswith(f"/contexts/{name}"):
            return ctx
    return None


def _city_param(parameters: Dict[str, Any]) -> str:
    city = parameters.get("city")
    return city if isinstance(city, str) else ""


def _not_found(city: str) -> WebhookResponse:
    return WebhookResponse(fulfillment_text=NOT_FOUND_TEXT.format(city=city))


# ---------------------------- Weather lookups -------------------------

async def get_current_weather(
    gateway: OpenWeatherGateway, city: str, query_text: str, now: datetime
) -> str:
    clean_city = validate_city(city)
    current = await gateway.current_weather(clean_city)
    return format_current_weather(current, analyze_query(query_text), now)


async def get_weather_forecast(
    gateway: OpenWeatherGateway,
    city: str,
    date_time: Any,
    date_period: Any,
    query_text: str,
    now: datetime,
) -> str:
    clean_city = validate_city(city)
    place = await gateway.geocode(clean_city)
    window = resolve_forecast_window(date_time, date_period, query_text, today=now.date())
    samples = await gateway.forecast(place.lat, place.lon)
    return format_forecast(
        samples, place.name, place.country, window,
        today=now.date(), now=now, tz=now.tzinfo or get_settings().tzinfo,
    )


# ---------------------------- Intent handlers -------------------------

async def handle_current_weather(
    parameters: Dict[str, Any], session: str, query_text: str,
    gateway: OpenWeatherGateway, now: datetime,
) -> WebhookResponse:
    city = _city_param(parameters)
    if not city.strip():
        return WebhookResponse(
            fulfillment_text=ASK_CITY_CURRENT,
            output_contexts=[_context(session, CURRENT_CITY_MISSING, 3, {
                "requestType": "current",
                "originalQuery": query_text,
            })],
        )

    try:
        text = await get_current_weather(gateway, city, query_text, now)
    except (ValidationError, CityNotFoundError) as e:
        logger.info(f"Current weather lookup rejected for {city!r}: {e}")
        return _not_found(city)
    return WebhookResponse(fulfillment_text=text)


async def handle_weather_forecast(
    parameters: Dict[str, Any], session: str, query_text: str,
    gateway: OpenWeatherGateway, now: datetime,
) -> WebhookResponse:
    city = _city_param(parameters)
    date_time = parameters.get("date-time")
    date_period = parameters.get("date-period")

    if not city.strip():
        return WebhookResponse(
            fulfillment_text=ASK_CITY_FORECAST,
            output_contexts=[_context(session, FORECAST_CITY_MISSING, 3, {
                "requestType": "forecast",
                "originalQuery": query_text,
                "dateTime": date_time,
                "datePeriod": date_period,
            })],
        )

    try:
        text = await get_weather_forecast(gateway, city, date_time, date_period, query_text, now)
    except (ValidationError, CityNotFoundError) as e:
        logger.info(f"Forecast lookup rejected for {city!r}: {e}")
        return _not_found(city)
    return WebhookResponse(fulfillment_text=text)


async def handle_city_followup(
    parameters: Dict[str, Any], contexts: List[OutputContext], request_type: str,
    gateway: OpenWeatherGateway, now: datetime,
) -> WebhookResponse:
    """Answer the request that was parked while we asked the user for a city."""
    city = _city_param(parameters)
    if not city.strip():
        return WebhookResponse(fulfillment_text=ASK_CITY_FOLLOWUP)

    try:
        if request_type == "forecast":
            ctx = _find_context(contexts, FORECAST_CITY_MISSING)
            saved = ctx.parameters if ctx else {}
            text = await get_weather_forecast(
                gateway, city,
                saved.get("dateTime"), saved.get("datePeriod"), saved.get("originalQuery") or "",
                now,
            )
        else:
            ctx = _find_context(contexts, CURRENT_CITY_MISSING)
            saved = ctx.parameters if ctx else {}
            text = await get_current_weather(gateway, city, saved.get("originalQuery") or "", now)
    except (ValidationError, CityNotFoundError) as e:
        logger.info(f"Follow-up lookup rejected for {city!r}: {e}")
        return _not_found(city)
    return WebhookResponse(fulfillment_text=text)


def handle_thanks_goodbye(session: str, rng: random.Random) -> WebhookResponse:
    return WebhookResponse(
        fulfillment_text=rng.choice(THANKS_RESPONSES),
        output_contexts=[_context(session, AWAITING_FINAL, 2, {})],
    )


def handle_final_goodbye(rng: random.Random) -> WebhookResponse:
    return WebhookResponse(fulfillment_text=rng.choice(GOODBYE_RESPONSES))


# ---------------------------- Routing ---------------------------------

async def dispatch(
    request: WebhookRequest,
    gateway: OpenWeatherGateway,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> WebhookResponse:
    """Route a webhook request to its intent handler."""
    result = request.query_result
    intent = result.intent.display_name
    rng = rng or random.Random()
    now = now or datetime.now(get_settings().tzinfo)

    logger.info(f"Intent: {intent}")
    logger.info(f"Parameters: {result.parameters}")
    logger.info(f"Query: {result.query_text}")
    logger.info(f"Session: {request.session}")

    if intent in CURRENT_INTENTS:
        return await handle_current_weather(result.parameters, request.session, result.query_text, gateway, now)
    if intent in FORECAST_INTENTS:
        return await handle_weather_forecast(result.parameters, request.session, result.query_text, gateway, now)
    if intent == "Thanks-Goodbye":
        return handle_thanks_goodbye(request.session, rng)
    if intent == "Final-Goodbye":
        return handle_final_goodbye(rng)
    if intent in CURRENT_FOLLOWUP_INTENTS:
        return await handle_city_followup(result.parameters, result.output_contexts, "current", gateway, now)
    if intent in FORECAST_FOLLOWUP_INTENTS:
        return await handle_city_followup(result.parameters, result.output_contexts, "forecast", gateway, now)
    return WebhookResponse(fulfillment_text=HELP_TEXT)
