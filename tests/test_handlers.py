import random
from datetime import datetime, timezone

import pytest

from weatherbot.errors import CityNotFoundError, UpstreamError
from weatherbot.handlers import GOODBYE_RESPONSES, HELP_TEXT, THANKS_RESPONSES, dispatch
from weatherbot.models import WebhookRequest


SESSION = "projects/weather-bot/agent/sessions/abc123"
NOW = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


def webhook_request(intent, parameters=None, query="", contexts=None):
    return WebhookRequest.model_validate({
        "session": SESSION,
        "queryResult": {
            "intent": {"displayName": intent},
            "parameters": parameters or {},
            "queryText": query,
            "outputContexts": contexts or [],
        },
    })


@pytest.mark.anyio
async def test_current_weather(fake_gateway):
    request = webhook_request("Current-Weather", {"city": " London "}, "weather in London")
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text.startswith("Current weather in London, GB: Light rain.")
    assert fake_gateway.calls == [("current_weather", "London")]


@pytest.mark.anyio
async def test_current_weather_single_attribute(fake_gateway):
    request = webhook_request("weather.current", {"city": "London"}, "just tell me the humidity in London")
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text == "Humidity in London, GB: 80%"


@pytest.mark.anyio
async def test_missing_city_prompts_before_any_lookup(fake_gateway):
    request = webhook_request("Current-Weather", {"city": ""}, "what's the weather like")
    response = await dispatch(request, fake_gateway, now=NOW)

    assert response.fulfillment_text.startswith("Which city would you like to know the weather for?")
    [ctx] = response.output_contexts
    assert ctx.name == f"{SESSION}/contexts/weather-city-missing"
    assert ctx.lifespan_count == 3
    assert ctx.parameters == {"requestType": "current", "originalQuery": "what's the weather like"}
    assert fake_gateway.calls == []


@pytest.mark.anyio
async def test_missing_city_for_forecast_keeps_dates(fake_gateway):
    params = {"city": "", "date-time": "2024-01-02T12:00:00Z", "date-period": ""}
    request = webhook_request("Forecast-Weather", params, "forecast for tomorrow")
    response = await dispatch(request, fake_gateway, now=NOW)

    [ctx] = response.output_contexts
    assert ctx.name == f"{SESSION}/contexts/weather-forecast-missing"
    assert ctx.parameters["requestType"] == "forecast"
    assert ctx.parameters["dateTime"] == "2024-01-02T12:00:00Z"
    assert ctx.parameters["originalQuery"] == "forecast for tomorrow"
    assert fake_gateway.calls == []


@pytest.mark.anyio
async def test_unknown_city_apology(fake_gateway):
    fake_gateway.error = CityNotFoundError("Atlantis")
    request = webhook_request("Current-Weather", {"city": "Atlantis"})
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text == (
        'Sorry, I couldn\'t find weather data for "Atlantis". '
        "Please check the spelling or try a nearby major city."
    )


@pytest.mark.anyio
async def test_malformed_city_apology_without_lookup(fake_gateway):
    request = webhook_request("Current-Weather", {"city": "InvalidCity123"})
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text.startswith('Sorry, I couldn\'t find weather data for "InvalidCity123"')
    assert fake_gateway.calls == []


@pytest.mark.anyio
async def test_default_forecast_end_to_end(fake_gateway):
    request = webhook_request("Forecast-Weather", {"city": "London", "date-time": "", "date-period": ""},
                              "forecast for London")
    response = await dispatch(request, fake_gateway, now=NOW)

    assert response.fulfillment_text.startswith("5-day weather forecast for London, GB: Today: ")
    assert response.fulfillment_text.count("High: ") == 5
    assert fake_gateway.calls == [("geocode", "London"), ("forecast", 51.5073, -0.1276)]


@pytest.mark.anyio
async def test_single_day_forecast(fake_gateway):
    params = {"city": "London", "date-time": "2024-01-02T12:00:00+00:00", "date-period": ""}
    request = webhook_request("weather.forecast", params, "weather tomorrow in London")
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text.startswith("Weather tomorrow in London, GB: Scattered clouds, Temperature: ")


@pytest.mark.anyio
async def test_forecast_unknown_city(fake_gateway):
    fake_gateway.error = CityNotFoundError("Atlantis")
    request = webhook_request("Forecast-Weather", {"city": "Atlantis"})
    response = await dispatch(request, fake_gateway, now=NOW)
    assert '"Atlantis"' in response.fulfillment_text


@pytest.mark.anyio
async def test_upstream_failure_propagates(fake_gateway):
    fake_gateway.error = UpstreamError("HTTP 500")
    request = webhook_request("Current-Weather", {"city": "London"})
    with pytest.raises(UpstreamError):
        await dispatch(request, fake_gateway, now=NOW)


@pytest.mark.anyio
async def test_forecast_followup_resumes_parked_request(fake_gateway):
    parked = {
        "name": f"{SESSION}/contexts/weather-forecast-missing",
        "lifespanCount": 2,
        "parameters": {"requestType": "forecast", "originalQuery": "forecast for tomorrow",
                       "dateTime": "2024-01-02T12:00:00+00:00", "datePeriod": ""},
    }
    request = webhook_request("Weather-Forecast-City-Followup", {"city": "London"}, "London", [parked])
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text.startswith("Weather tomorrow in London, GB:")


@pytest.mark.anyio
async def test_forecast_followup_without_context_gives_default_forecast(fake_gateway):
    request = webhook_request("weather.forecast.city-followup", {"city": "London"}, "London")
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text.startswith("5-day weather forecast for London, GB:")


@pytest.mark.anyio
async def test_current_followup(fake_gateway):
    request = webhook_request("Current-Weather-City-Followup", {"city": "London"}, "London")
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text.startswith("Current weather in London, GB:")


@pytest.mark.anyio
async def test_followup_without_city(fake_gateway):
    request = webhook_request("Current-Weather-City-Followup", {"city": ""})
    response = await dispatch(request, fake_gateway, now=NOW)
    assert response.fulfillment_text == "Please tell me a city name so I can get the weather information for you."


@pytest.mark.anyio
async def test_thanks_uses_injected_random(fake_gateway):
    rng = random.Random(7)
    expected = random.Random(7).choice(THANKS_RESPONSES)

    response = await dispatch(webhook_request("Thanks-Goodbye"), fake_gateway, rng=rng, now=NOW)

    assert response.fulfillment_text == expected
    [ctx] = response.output_contexts
    assert ctx.name == f"{SESSION}/contexts/awaiting-final-response"
    assert ctx.lifespan_count == 2


@pytest.mark.anyio
async def test_final_goodbye(fake_gateway):
    response = await dispatch(webhook_request("Final-Goodbye"), fake_gateway, rng=random.Random(1), now=NOW)
    assert response.fulfillment_text in GOODBYE_RESPONSES
    assert response.output_contexts is None


@pytest.mark.anyio
async def test_unknown_intent_gets_help(fake_gateway):
    response = await dispatch(webhook_request("Default Welcome Intent"), fake_gateway, now=NOW)
    assert response.fulfillment_text == HELP_TEXT
