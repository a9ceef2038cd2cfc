# challengeboard/models/user.py
from .. import db
from .common import BigIntId, iso, utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(BigIntId, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    memberships = db.relationship(
        "TeamMember",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    progress_logs = db.relationship(
        "ProgressLog",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "created_at": iso(self.created_at),
        }
