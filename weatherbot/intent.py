import re

from .models import QueryIntent


EXCLUSIVE = re.compile(r"\b(only|just|tell me)\b")

KEYWORDS = {
    "temperature": re.compile(r"\b(temperature|temp|hot|cold|degree|celsius|fahrenheit)\b"),
    "humidity": re.compile(r"\b(humidity|humid|moisture)\b"),
    "wind": re.compile(r"\b(wind|breeze|gust)\b"),
    "pressure": re.compile(r"\b(pressure|atmospheric)\b"),
}


def analyze_query(query_text: str) -> QueryIntent:
    """
    Detect whether the user asked for a single weather attribute
    ("just the temperature please") rather than a full summary.

    `full` stays True; QueryIntent.requested_attribute() decides precedence.
    """
    if not query_text:
        return QueryIntent(full=True)

    query = query_text.lower()
    exclusive = bool(EXCLUSIVE.search(query))
    flags = {name: exclusive and bool(rx.search(query)) for name, rx in KEYWORDS.items()}
    return QueryIntent(full=True, **flags)
