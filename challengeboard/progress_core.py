# challengeboard/progress_core.py
from typing import Any, List, Optional

from flask import current_app
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import joinedload

from .errors import NotFound, StoreError, ValidationError
from .models.challenge import Challenge, ProgressLog
from .models.user import User
from .validation import parse_day, parse_number

DEFAULT_ACTIVITY_LIMIT = 10


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _increment_upsert(session, values):
    """
    INSERT a progress row, or add `value` onto the existing row for the same
    (user_id, challenge_id, date). One statement, so the database serializes
    concurrent increments on the unique key.
    """
    table = ProgressLog.__table__
    dialect = session.get_bind().dialect.name

    if dialect == "mysql":
        stmt = mysql_insert(table).values(**values)
        return stmt.on_duplicate_key_update(value=table.c["value"] + stmt.inserted["value"])

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite_insert if dialect == "sqlite" else postgresql_insert
        stmt = insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.challenge_id, table.c.date],
            set_={"value": table.c["value"] + stmt.excluded["value"]},
        )

    current_app.logger.error(f"[progress] increment upsert unsupported on dialect={dialect}")
    raise StoreError()


def _with_relations(query):
    return query.options(
        joinedload(ProgressLog.user),
        joinedload(ProgressLog.challenge),
    )


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def record_progress(session, user_id: int, challenge_id: int, day: Any, value: Any) -> ProgressLog:
    """
    Adds `value` to the user's entry for `day` in the challenge.

    The first log for a (user, challenge, day) creates the row; later logs
    for the same day increment it. `day` must fall inside the challenge's
    calendar days, start and end inclusive.
    """
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    challenge = session.get(Challenge, challenge_id)
    if not challenge:
        raise NotFound("Challenge not found")

    try:
        log_day = parse_day(day)
    except ValueError:
        raise ValidationError({"date": "Date must be an ISO-8601 date"})

    if not (challenge.start_date.date() <= log_day <= challenge.end_date.date()):
        raise ValidationError(
            {"date": "Date must be within the challenge date range"}
        )

    try:
        amount = parse_number(value)
    except ValueError:
        raise ValidationError({"value": "Value must be a number"})
    if amount < 0:
        raise ValidationError({"value": "Value must be non-negative"})

    session.execute(
        _increment_upsert(
            session,
            {
                "user_id": user.id,
                "challenge_id": challenge.id,
                "date": log_day,
                "value": amount,
            },
        )
    )
    session.commit()

    # populate_existing: the row may already sit in the identity map with the
    # pre-increment value
    return (
        _with_relations(session.query(ProgressLog))
        .filter(
            ProgressLog.user_id == user.id,
            ProgressLog.challenge_id == challenge.id,
            ProgressLog.date == log_day,
        )
        .populate_existing()
        .one()
    )


def delete_progress(session, log_id: int) -> None:
    log = session.get(ProgressLog, log_id)
    if not log:
        raise NotFound("Progress log not found")

    session.delete(log)
    session.commit()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_progress(
    session,
    user_id: Optional[int] = None,
    challenge_id: Optional[int] = None,
) -> List[ProgressLog]:
    if user_id is None and challenge_id is None:
        raise ValidationError(
            {"user_id": "Either user_id or challenge_id is required"}
        )

    query = _with_relations(session.query(ProgressLog))
    if user_id is not None:
        query = query.filter(ProgressLog.user_id == user_id)
    if challenge_id is not None:
        query = query.filter(ProgressLog.challenge_id == challenge_id)

    return query.order_by(ProgressLog.date.desc(), ProgressLog.id.desc()).all()


def recent_activity(
    session,
    challenge_id: Optional[int] = None,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
):
    """
    Latest progress logs, newest first:
    [
      {
        "id": 12,
        "user_id": 3,
        "user_name": "Alice",
        "challenge_id": 1,
        "challenge_title": "10k steps",
        "value": 8000.0,
        "created_at": "2024-01-03T08:12:00"
      },
      ...
    ]
    """
    rows = (
        session.query(ProgressLog, User, Challenge)
        .join(User, ProgressLog.user_id == User.id)
        .join(Challenge, ProgressLog.challenge_id == Challenge.id)
    )
    if challenge_id is not None:
        rows = rows.filter(ProgressLog.challenge_id == challenge_id)

    rows = (
        rows.order_by(ProgressLog.created_at.desc(), ProgressLog.id.desc())
        .limit(limit)
        .all()
    )

    activity = []
    for log, user, challenge in rows:
        activity.append(
            {
                "id": log.id,
                "user_id": user.id,
                "user_name": user.name,
                "challenge_id": challenge.id,
                "challenge_title": challenge.title,
                "value": float(log.value or 0),
                "created_at": log.created_at.isoformat() if log.created_at else None,
            }
        )
    return activity
