# challengeboard/validation.py
"""
Request payload helpers shared by the route modules.

Bodies and query strings are accepted in snake_case and in the camelCase
form the web client sends (e.g. `user_id` / `userId`).
"""
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from flask import request

from .errors import ValidationError


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def get_field(data, name: str, alias: Optional[str] = None) -> Any:
    value = data.get(name)
    if value is None and alias:
        value = data.get(alias)
    return value


def safe_int_or_none(v: Any) -> Optional[int]:
    """Whole ints and digit strings only; floats such as 1.9 are not ids."""
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v.strip())
    return None


def query_int(args, name: str, alias: Optional[str] = None) -> Optional[int]:
    """Optional integer query parameter; present but malformed is a 400."""
    raw = get_field(args, name, alias)
    if raw is None or raw == "":
        return None
    value = safe_int_or_none(raw)
    if value is None:
        raise ValidationError({name: f"{name} must be an integer"})
    return value


def parse_datetime(raw: Any) -> datetime:
    """
    ISO-8601 string (or datetime/date) -> naive UTC datetime.
    Aware values are converted to UTC before the tzinfo is dropped.
    Raises ValueError on anything unparseable.
    """
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, date):
        dt = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"invalid datetime: {raw!r}")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_day(raw: Any) -> date:
    """Calendar day of `raw`, time of day stripped (UTC)."""
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    return parse_datetime(raw).date()


def parse_number(raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            raise ValueError(f"number out of range: {raw!r}")
        if math.isfinite(value):
            return value
    raise ValueError(f"invalid number: {raw!r}")


def check_text(
    errors: Dict[str, str],
    field: str,
    value: Any,
    label: str,
    max_length: Optional[int] = None,
) -> Optional[str]:
    """Validates a required string, recording a message under `field` on failure."""
    if not isinstance(value, str) or not value.strip():
        errors[field] = f"{label} is required"
        return None
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        errors[field] = f"{label} must be at most {max_length} characters"
        return None
    return value


def validate_name(data, max_length: int = 100) -> str:
    errors: Dict[str, str] = {}
    name = check_text(errors, "name", data.get("name"), "Name", max_length)
    if errors:
        raise ValidationError(errors)
    return name


def validate_challenge(data) -> Dict[str, Any]:
    """
    Body for create/update:
    {
      "title": "10k steps a day",
      "description": "...",
      "start_date": "2024-01-01",
      "end_date": "2024-01-07"
    }
    """
    errors: Dict[str, str] = {}

    title = check_text(errors, "title", data.get("title"), "Title", 200)
    description = check_text(
        errors, "description", data.get("description"), "Description"
    )

    start_date = end_date = None
    try:
        start_date = parse_datetime(get_field(data, "start_date", "startDate"))
    except ValueError:
        errors["start_date"] = "Start date must be an ISO-8601 date"
    try:
        end_date = parse_datetime(get_field(data, "end_date", "endDate"))
    except ValueError:
        errors["end_date"] = "End date must be an ISO-8601 date"

    if start_date and end_date and end_date <= start_date:
        errors["end_date"] = "End date must be after start date"

    if errors:
        raise ValidationError(errors)

    return {
        "title": title,
        "description": description,
        "start_date": start_date,
        "end_date": end_date,
    }
