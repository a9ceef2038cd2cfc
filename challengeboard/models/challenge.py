# challengeboard/models/challenge.py
from .. import db
from .common import BigIntId, iso, utcnow


class Challenge(db.Model):
    __tablename__ = "challenges"

    id = db.Column(BigIntId, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    # naive UTC instants
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    progress_logs = db.relationship(
        "ProgressLog",
        back_populates="challenge",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "created_at": iso(self.created_at),
        }


class ProgressLog(db.Model):
    __tablename__ = "progress_logs"
    __table_args__ = (
        db.UniqueConstraint(
            "user_id",
            "challenge_id",
            "date",
            name="uq_progress_logs_user_challenge_date",
        ),
    )

    id = db.Column(BigIntId, primary_key=True)
    user_id = db.Column(
        BigIntId, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id = db.Column(
        BigIntId, db.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    date = db.Column(db.Date, nullable=False)
    value = db.Column(db.Float, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", back_populates="progress_logs")
    challenge = db.relationship("Challenge", back_populates="progress_logs")

    def to_dict(self, include_relations=False):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "challenge_id": self.challenge_id,
            "date": iso(self.date),
            "value": float(self.value or 0),
            "created_at": iso(self.created_at),
        }
        if include_relations:
            data["user"] = self.user.to_dict() if self.user else None
            data["challenge"] = self.challenge.to_dict() if self.challenge else None
        return data
