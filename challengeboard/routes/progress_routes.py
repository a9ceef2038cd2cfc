# challengeboard/routes/progress_routes.py
from flask import Blueprint, current_app, jsonify, request

from .. import db
from ..errors import ValidationError
from ..progress_core import delete_progress, list_progress, record_progress
from ..validation import get_field, json_body, query_int, safe_int_or_none

progress_bp = Blueprint("progress", __name__)


@progress_bp.route("", methods=["GET"])
def get_progress():
    """GET /api/progress?user_id=1&challenge_id=2 (at least one of the two)"""
    user_id = query_int(request.args, "user_id", "userId")
    challenge_id = query_int(request.args, "challenge_id", "challengeId")

    logs = list_progress(db.session, user_id=user_id, challenge_id=challenge_id)
    return jsonify({"progress": [log.to_dict(include_relations=True) for log in logs]}), 200


@progress_bp.route("", methods=["POST"])
def log_progress():
    """
    Body:
    {
      "user_id": 1,
      "challenge_id": 2,
      "date": "2024-01-03",
      "value": 100
    }

    A second post for the same user, challenge and day adds to the stored
    value instead of replacing it.
    """
    data = json_body()

    raw_user_id = get_field(data, "user_id", "userId")
    raw_challenge_id = get_field(data, "challenge_id", "challengeId")
    user_id = safe_int_or_none(raw_user_id)
    challenge_id = safe_int_or_none(raw_challenge_id)
    day = data.get("date")
    value = data.get("value")

    errors = {}
    if user_id is None:
        errors["user_id"] = "User ID is required" if raw_user_id is None else "User ID must be an integer"
    if challenge_id is None:
        errors["challenge_id"] = (
            "Challenge ID is required" if raw_challenge_id is None else "Challenge ID must be an integer"
        )
    if day is None:
        errors["date"] = "Date is required"
    if value is None:
        errors["value"] = "Value is required"
    if errors:
        raise ValidationError(errors)

    log = record_progress(db.session, user_id, challenge_id, day, value)

    current_app.logger.info(
        f"[progress] user_id={user_id} challenge_id={challenge_id} "
        f"date={log.date.isoformat()} value={log.value}"
    )
    return jsonify({"progress": log.to_dict(include_relations=True)}), 201


@progress_bp.route("", methods=["DELETE"])
def remove_progress():
    """DELETE /api/progress?id=5"""
    log_id = safe_int_or_none(request.args.get("id"))
    if log_id is None:
        raise ValidationError({"id": "Progress log ID is required"})

    delete_progress(db.session, log_id)
    return jsonify({"success": True}), 200
