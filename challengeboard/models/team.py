# challengeboard/models/team.py
from .. import db
from .common import BigIntId, iso, utcnow


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(BigIntId, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    members = db.relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TeamMember.joined_at",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "created_at": iso(self.created_at),
        }


class TeamMember(db.Model):
    __tablename__ = "team_members"
    __table_args__ = (
        db.UniqueConstraint("user_id", "team_id", name="uq_team_members_user_team"),
    )

    id = db.Column(BigIntId, primary_key=True)
    user_id = db.Column(
        BigIntId, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    team_id = db.Column(
        BigIntId, db.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    joined_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", back_populates="memberships")
    team = db.relationship("Team", back_populates="members")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "team_id": self.team_id,
            "joined_at": iso(self.joined_at),
        }
