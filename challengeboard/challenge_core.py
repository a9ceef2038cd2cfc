# challengeboard/challenge_core.py
from datetime import datetime
from typing import Optional

from sqlalchemy import and_

from .errors import ValidationError
from .models.challenge import Challenge

UPCOMING = "upcoming"
ACTIVE = "active"
PAST = "past"

STATUSES = (UPCOMING, ACTIVE, PAST)


def challenge_status(start_date: datetime, end_date: datetime, now: datetime) -> str:
    """
    upcoming: now < start_date
    active:   start_date <= now <= end_date
    past:     now > end_date
    """
    if now < start_date:
        return UPCOMING
    if now > end_date:
        return PAST
    return ACTIVE


def challenge_filter(category: Optional[str], now: datetime):
    """
    Store-level predicate selecting challenges in `category` at `now`.
    Returns None when no filtering applies. Bounds match challenge_status.
    """
    if category in (None, "", "all"):
        return None
    if category == ACTIVE:
        return and_(Challenge.start_date <= now, Challenge.end_date >= now)
    if category == PAST:
        return Challenge.end_date < now
    if category == UPCOMING:
        return Challenge.start_date > now
    raise ValidationError(
        {"filter": "filter must be one of active, past, upcoming"}
    )


def challenge_to_dict(challenge: Challenge, now: datetime):
    data = challenge.to_dict()
    data["status"] = challenge_status(challenge.start_date, challenge.end_date, now)
    return data
