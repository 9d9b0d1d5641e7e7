"""Display helpers shared by the trip board, detail and admin pages."""

from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from config import PLACEHOLDER_IMAGE

LOCATION_LABELS = {
    "united_states": "United States",
    "international": "International",
    "israel": "Israel",
}

GENDER_LABELS = {
    "mixed": "Co-ed",
    "male": "Men",
    "female": "Women",
}

GENDER_DETAIL_LABELS = {
    "mixed": "Co-ed",
    "male": "Men Only",
    "female": "Women Only",
}

STATUS_ICONS = {
    "Show": "🟢",
    "Hidden": "🟡",
    "Deleted": "🔴",
}

DateLike = Union[str, date, datetime, None]


def location_label(location: Optional[str]) -> str:
    return LOCATION_LABELS.get(location or "", "Israel")


def gender_label(gender: Optional[str], detail: bool = False) -> str:
    """Gender composition label; the detail page spells out single-gender trips."""
    labels = GENDER_DETAIL_LABELS if detail else GENDER_LABELS
    return labels.get(gender or "mixed", labels["mixed"])


def parse_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def format_date(value: DateLike) -> str:
    """``MMM d, yyyy``, e.g. ``Dec 20, 2026``."""
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_date_range(start: DateLike, end: DateLike, compact: bool = False) -> str:
    """Date range for cards; ``compact`` drops the start year as on the detail page."""
    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date is None or end_date is None:
        return format_date(start_date or end_date)
    if compact:
        return f"{start_date:%b} {start_date.day} - {format_date(end_date)}"
    return f"{format_date(start_date)} - {format_date(end_date)}"


def format_price(price: Optional[str]) -> Optional[str]:
    """Prices are free-form display strings; blank means no price is shown."""
    if price is None:
        return None
    price = str(price).strip()
    return price or None


def format_spots(spots: Optional[int], detail: bool = False) -> Optional[str]:
    if not spots:
        return None
    return f"{spots} Available Spots" if detail else f"{spots} spots"


def card_image(trip: Dict[str, Any]) -> str:
    """The resolved card image, swapping the API placeholder for a fetchable one."""
    url = trip.get("cardImage") or ""
    if not url or url.startswith("/"):
        return PLACEHOLDER_IMAGE
    return url


def image_url(image: Optional[Dict[str, Any]]) -> str:
    if not image:
        return PLACEHOLDER_IMAGE
    url = image.get("url") or ""
    if not url or url.startswith("/"):
        return PLACEHOLDER_IMAGE
    return url


def status_label(status: Optional[str]) -> str:
    return f"{STATUS_ICONS.get(status or '', '⚪')} {status or 'Unknown'}"
