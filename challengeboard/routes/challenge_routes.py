# challengeboard/routes/challenge_routes.py
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func

from .. import db
from ..challenge_core import challenge_filter, challenge_to_dict
from ..errors import NotFound
from ..leaderboard_core import (
    individual_leaderboard,
    participant_count,
    team_leaderboard,
)
from ..models.challenge import Challenge, ProgressLog
from ..models.common import utcnow
from ..validation import json_body, validate_challenge

challenges_bp = Blueprint("challenges", __name__)


def _get_challenge_or_404(challenge_id: int) -> Challenge:
    challenge = db.session.get(Challenge, challenge_id)
    if not challenge:
        raise NotFound("Challenge not found")
    return challenge


def _log_count(challenge_id: int) -> int:
    return (
        db.session.query(func.count(ProgressLog.id))
        .filter(ProgressLog.challenge_id == challenge_id)
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@challenges_bp.route("", methods=["GET"])
def list_challenges():
    """
    GET /api/challenges?filter=active|past|upcoming

    Returns:
    {
      "challenges": [
        {
          "id": 1,
          "title": "10k steps",
          "description": "...",
          "start_date": "2024-01-01T00:00:00",
          "end_date": "2024-01-07T00:00:00",
          "created_at": "...",
          "status": "active",
          "log_count": 42
        },
        ...
      ]
    }
    """
    now = utcnow()
    predicate = challenge_filter(request.args.get("filter"), now)

    query = Challenge.query
    if predicate is not None:
        query = query.filter(predicate)
    challenges = query.order_by(Challenge.start_date.desc(), Challenge.id.desc()).all()

    counts = dict(
        db.session.query(ProgressLog.challenge_id, func.count(ProgressLog.id))
        .group_by(ProgressLog.challenge_id)
        .all()
    )

    payload = []
    for c in challenges:
        data = challenge_to_dict(c, now)
        data["log_count"] = int(counts.get(c.id, 0))
        payload.append(data)

    return jsonify({"challenges": payload}), 200


@challenges_bp.route("", methods=["POST"])
def create_challenge():
    fields = validate_challenge(json_body())

    challenge = Challenge(**fields)
    db.session.add(challenge)
    db.session.commit()

    current_app.logger.info(f"[challenges] created challenge_id={challenge.id}")
    return jsonify({"challenge": challenge_to_dict(challenge, utcnow())}), 201


@challenges_bp.route("/<int:challenge_id>", methods=["GET"])
def get_challenge(challenge_id: int):
    challenge = _get_challenge_or_404(challenge_id)

    data = challenge_to_dict(challenge, utcnow())
    data["participant_count"] = participant_count(db.session, challenge.id)
    data["log_count"] = _log_count(challenge.id)

    return jsonify({"challenge": data}), 200


@challenges_bp.route("/<int:challenge_id>", methods=["PUT"])
def update_challenge(challenge_id: int):
    challenge = _get_challenge_or_404(challenge_id)
    fields = validate_challenge(json_body())

    for key, value in fields.items():
        setattr(challenge, key, value)
    db.session.commit()

    return jsonify({"challenge": challenge_to_dict(challenge, utcnow())}), 200


@challenges_bp.route("/<int:challenge_id>", methods=["DELETE"])
def delete_challenge(challenge_id: int):
    """Progress logs of the challenge are deleted with it."""
    challenge = _get_challenge_or_404(challenge_id)

    db.session.delete(challenge)
    db.session.commit()

    current_app.logger.info(f"[challenges] deleted challenge_id={challenge_id}")
    return jsonify({"success": True}), 200


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------

@challenges_bp.route("/<int:challenge_id>/leaderboard/individual", methods=["GET"])
def get_individual_leaderboard(challenge_id: int):
    """
    Returns:
    {
      "challenge_id": 1,
      "challenge_title": "10k steps",
      "leaderboard": [
        {"rank": 1, "user_id": 3, "user_name": "Alice", "total_value": 150.0},
        ...
      ]
    }
    """
    challenge = _get_challenge_or_404(challenge_id)
    leaderboard = individual_leaderboard(db.session, challenge.id)

    return jsonify(
        {
            "challenge_id": challenge.id,
            "challenge_title": challenge.title,
            "leaderboard": leaderboard,
        }
    ), 200


@challenges_bp.route("/<int:challenge_id>/leaderboard/teams", methods=["GET"])
def get_team_leaderboard(challenge_id: int):
    """
    Entries carry rank, team_id, team_name, member_count, average_value
    (the ranking key) and total_value.
    """
    challenge = _get_challenge_or_404(challenge_id)
    leaderboard = team_leaderboard(db.session, challenge.id)

    return jsonify(
        {
            "challenge_id": challenge.id,
            "challenge_title": challenge.title,
            "leaderboard": leaderboard,
        }
    ), 200
