import re

from .errors import ValidationError


# Latin (incl. Latin-1 supplement / Extended-A), CJK ideographs, Cyrillic,
# whitespace and the punctuation found in place names.
CITY_PATTERN = re.compile(r"^[a-zA-Z\u00C0-\u017F\u4e00-\u9fff\u0400-\u04FF\s,.\-']+$")


def validate_city(raw) -> str:
    """Return the trimmed city name, or raise ValidationError if it is empty or malformed."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("City name is required.")

    city = raw.strip()
    if not CITY_PATTERN.match(city):
        raise ValidationError("Invalid city name format.")
    return city
