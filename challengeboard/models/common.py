# challengeboard/models/common.py
from datetime import datetime, timezone

from .. import db

# BIGINT ids on MySQL, INTEGER on SQLite so rowid autoincrement still works
BigIntId = db.BigInteger().with_variant(db.Integer(), "sqlite")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value):
    return value.isoformat() if value else None
