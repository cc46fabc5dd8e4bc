class ValidationError(Exception):
    """Raised when user-supplied input (e.g. a city name) is malformed or missing."""


class CityNotFoundError(Exception):
    """Raised when the weather provider does not recognise the requested city."""

    def __init__(self, city: str):
        super().__init__(f"city not found: {city}")
        self.city = city


class UpstreamError(Exception):
    """Raised for any other weather provider failure (network, HTTP, bad payload)."""
