"""
Weather Bot Webhook
Fulfillment webhook for a dialogue platform (Dialogflow-style payloads).

Usage:
    python -m weatherbot.app [port]

Endpoints:
    POST /webhook  - Intent fulfillment
    GET  /health   - Health check
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .errors import UpstreamError
from .handlers import dispatch
from .models import WebhookRequest, WebhookResponse
from .services import OpenWeatherGateway, get_gateway

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Weather Bot Webhook"
AVAILABLE_ENDPOINTS = ["/webhook", "/health"]

TROUBLE_TEXT = "Sorry, I'm having trouble getting weather information right now. Please try again in a moment."
TECHNICAL_DIFFICULTIES_TEXT = "I'm experiencing technical difficulties. Please try again later."


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not get_settings().openweather_api_key:
        logger.warning("OPENWEATHER_API_KEY not found in environment variables!")
    else:
        logger.info("OpenWeather API key configured")
    yield


app = FastAPI(title=SERVICE_NAME, version="1.0.0", lifespan=lifespan)


@app.get("/health")
async def health_check():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }


@app.post(
    "/webhook",
    response_model=WebhookResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def webhook(body: WebhookRequest, gateway: OpenWeatherGateway = Depends(get_gateway)):
    try:
        response = await dispatch(body, gateway)
    except UpstreamError as ue:
        logger.error(f"Error: {ue}")
        response = WebhookResponse(fulfillment_text=TROUBLE_TEXT)

    logger.info(f"Response: {response.fulfillment_text[:100]}...")
    return response


# ---- Error handling: the platform must always get fulfillment text ----

@app.exception_handler(RequestValidationError)
async def invalid_payload(request: Request, exc: RequestValidationError):
    logger.error(f"Malformed webhook payload: {exc.errors()}")
    return JSONResponse({"fulfillmentText": TECHNICAL_DIFFICULTIES_TEXT}, status_code=500)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            {"error": "Endpoint not found", "availableEndpoints": AVAILABLE_ENDPOINTS},
            status_code=404,
        )
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled Error: {exc}")
    return JSONResponse({"fulfillmentText": TECHNICAL_DIFFICULTIES_TEXT}, status_code=500)


def main():
    """Main entry point."""
    import uvicorn

    settings = get_settings()
    port = settings.port
    if len(sys.argv) > 1:
        try:
            port = int(sys.argv[1])
        except ValueError:
            logger.error(f"Invalid port: {sys.argv[1]}")
            sys.exit(1)

    logger.info(f"Starting {SERVICE_NAME} on port {port}")
    logger.info(f"Health check: http://localhost:{port}/health")
    logger.info(f"Webhook endpoint: http://localhost:{port}/webhook")

    uvicorn.run(app, host=settings.host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
