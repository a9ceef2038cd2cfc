# challengeboard/routes/team_routes.py
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from .. import db
from ..errors import ConflictError, NotFound, ValidationError
from ..leaderboard_core import team_member_leaderboard
from ..models.team import Team, TeamMember
from ..models.user import User
from ..validation import get_field, json_body, safe_int_or_none, validate_name

teams_bp = Blueprint("teams", __name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_team_or_404(team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if not team:
        raise NotFound("Team not found")
    return team


def _team_dict(team: Team):
    data = team.to_dict()
    members = []
    for m in team.members:
        member = m.to_dict()
        member["user"] = m.user.to_dict() if m.user else None
        members.append(member)
    data["members"] = members
    data["member_count"] = len(members)
    return data


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

@teams_bp.route("", methods=["GET"])
def list_teams():
    teams = (
        Team.query.options(selectinload(Team.members).joinedload(TeamMember.user))
        .order_by(Team.created_at.desc(), Team.id.desc())
        .all()
    )
    return jsonify({"teams": [_team_dict(t) for t in teams]}), 200


@teams_bp.route("", methods=["POST"])
def create_team():
    name = validate_name(json_body())

    team = Team(name=name)
    db.session.add(team)
    db.session.commit()

    current_app.logger.info(f"[teams] created team_id={team.id}")
    return jsonify({"team": team.to_dict()}), 201


@teams_bp.route("/<int:team_id>", methods=["GET"])
def get_team(team_id: int):
    team = _get_team_or_404(team_id)
    return jsonify({"team": _team_dict(team)}), 200


@teams_bp.route("/<int:team_id>", methods=["PUT"])
def update_team(team_id: int):
    team = _get_team_or_404(team_id)

    team.name = validate_name(json_body())
    db.session.commit()

    return jsonify({"team": team.to_dict()}), 200


@teams_bp.route("/<int:team_id>", methods=["DELETE"])
def delete_team(team_id: int):
    """Removes the team and its memberships; the users stay."""
    team = _get_team_or_404(team_id)

    db.session.delete(team)
    db.session.commit()

    current_app.logger.info(f"[teams] deleted team_id={team_id}")
    return jsonify({"success": True}), 200


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@teams_bp.route("/<int:team_id>/members", methods=["POST"])
def add_member(team_id: int):
    """
    Body:
    {
      "user_id": 2
    }
    """
    data = json_body()
    user_id = safe_int_or_none(get_field(data, "user_id", "userId"))
    if user_id is None:
        raise ValidationError({"user_id": "User ID is required"})

    team = _get_team_or_404(team_id)
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    existing = TeamMember.query.filter_by(user_id=user.id, team_id=team.id).first()
    if existing:
        raise ConflictError("User is already a member of this team")

    membership = TeamMember(user_id=user.id, team_id=team.id)
    try:
        db.session.add(membership)
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent add of the same pair
        db.session.rollback()
        raise ConflictError("User is already a member of this team")

    data = membership.to_dict()
    data["user"] = user.to_dict()
    data["team"] = team.to_dict()
    return jsonify({"membership": data}), 201


@teams_bp.route("/<int:team_id>/members/<int:user_id>", methods=["DELETE"])
def remove_member(team_id: int, user_id: int):
    membership = TeamMember.query.filter_by(user_id=user_id, team_id=team_id).first()
    if not membership:
        raise NotFound("Membership not found")

    db.session.delete(membership)
    db.session.commit()

    return jsonify({"success": True}), 200


# ---------------------------------------------------------------------------
# Team-internal leaderboard
# ---------------------------------------------------------------------------

@teams_bp.route("/<int:team_id>/leaderboard", methods=["GET"])
def get_team_leaderboard(team_id: int):
    """
    GET /api/teams/<team_id>/leaderboard?challenge_id=1

    Returns:
    {
      "team_id": 2,
      "team_name": "Night Owls",
      "challenge_id": 1,
      "challenge_title": "10k steps",
      "leaderboard": [
        {"rank": 1, "user_id": 4, "user_name": "Bob", "total_value": 52000.0},
        {"rank": 2, "user_id": 7, "user_name": "Eve", "total_value": 0.0}
      ]
    }
    """
    challenge_id = safe_int_or_none(get_field(request.args, "challenge_id", "challengeId"))
    if challenge_id is None:
        raise ValidationError(
            {"challenge_id": "challenge_id query parameter is required"}
        )

    team, challenge, leaderboard = team_member_leaderboard(
        db.session, team_id, challenge_id
    )

    return jsonify(
        {
            "team_id": team.id,
            "team_name": team.name,
            "challenge_id": challenge.id,
            "challenge_title": challenge.title,
            "leaderboard": leaderboard,
        }
    ), 200
