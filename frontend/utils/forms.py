"""Validation of the admin add/edit trip form before anything is sent."""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

REQUIRED_FIELDS = {
    "name": "Trip name",
    "organizer_name": "Organizer name",
    "organizer_contact": "Organizer contact",
}


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def parse_video_links(text: Optional[str]) -> List[str]:
    """One link per line; blank lines are ignored."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def build_trip_payload(values: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Turn raw form values into an API payload and a list of error messages.

    The payload must not be sent when any error is returned.
    """
    errors = []
    payload = {key: _clean(value) for key, value in values.items()}

    for field, label in REQUIRED_FIELDS.items():
        if not payload.get(field):
            errors.append(f"{label} is required.")

    start_date = payload.get("start_date")
    end_date = payload.get("end_date")
    if not isinstance(start_date, date) or not isinstance(end_date, date):
        errors.append("Start and end dates are required.")
    elif end_date < start_date:
        errors.append("End date cannot be before the start date.")
    else:
        payload["start_date"] = start_date.isoformat()
        payload["end_date"] = end_date.isoformat()

    spots = payload.get("spots")
    if spots in (0, None):
        payload["spots"] = None
    elif spots < 0:
        errors.append("Spots cannot be negative.")

    payload["is_internship"] = bool(payload.get("is_internship"))
    return payload, errors
