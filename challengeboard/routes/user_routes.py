# challengeboard/routes/user_routes.py
from flask import Blueprint, current_app, jsonify
from sqlalchemy import func
from sqlalchemy.orm import joinedload, selectinload

from .. import db
from ..errors import NotFound
from ..models.challenge import ProgressLog
from ..models.team import TeamMember
from ..models.user import User
from ..validation import json_body, validate_name

users_bp = Blueprint("users", __name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _membership_dict(m: TeamMember):
    data = m.to_dict()
    data["team"] = m.team.to_dict() if m.team else None
    return data


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@users_bp.route("", methods=["GET"])
def list_users():
    """
    Returns:
    {
      "users": [
        {
          "id": 1,
          "name": "Alice",
          "created_at": "...",
          "memberships": [{"id": 3, "team_id": 2, "team": {...}, ...}],
          "progress_log_count": 12
        },
        ...
      ]
    }
    """
    users = (
        User.query.options(
            selectinload(User.memberships).joinedload(TeamMember.team)
        )
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )

    counts = dict(
        db.session.query(ProgressLog.user_id, func.count(ProgressLog.id))
        .group_by(ProgressLog.user_id)
        .all()
    )

    payload = []
    for u in users:
        data = u.to_dict()
        data["memberships"] = [_membership_dict(m) for m in u.memberships]
        data["progress_log_count"] = int(counts.get(u.id, 0))
        payload.append(data)

    return jsonify({"users": payload}), 200


@users_bp.route("", methods=["POST"])
def create_user():
    data = json_body()
    name = validate_name(data)

    user = User(name=name)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info(f"[users] created user_id={user.id}")
    return jsonify({"user": user.to_dict()}), 201


@users_bp.route("/<int:user_id>", methods=["GET"])
def get_user(user_id: int):
    user = _get_user_or_404(user_id)

    logs = (
        ProgressLog.query.options(joinedload(ProgressLog.challenge))
        .filter(ProgressLog.user_id == user.id)
        .order_by(ProgressLog.date.desc(), ProgressLog.id.desc())
        .all()
    )

    data = user.to_dict()
    data["memberships"] = [_membership_dict(m) for m in user.memberships]
    data["progress_logs"] = []
    for log in logs:
        entry = log.to_dict()
        entry["challenge_title"] = log.challenge.title
        data["progress_logs"].append(entry)

    return jsonify({"user": data}), 200


@users_bp.route("/<int:user_id>", methods=["PUT"])
def update_user(user_id: int):
    user = _get_user_or_404(user_id)
    data = json_body()

    user.name = validate_name(data)
    db.session.commit()

    return jsonify({"user": user.to_dict()}), 200


@users_bp.route("/<int:user_id>", methods=["DELETE"])
def delete_user(user_id: int):
    """Memberships and progress logs of the user go with it."""
    user = _get_user_or_404(user_id)

    db.session.delete(user)
    db.session.commit()

    current_app.logger.info(f"[users] deleted user_id={user_id}")
    return jsonify({"success": True}), 200
