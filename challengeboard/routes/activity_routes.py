# challengeboard/routes/activity_routes.py
from flask import Blueprint, current_app, jsonify, request

from .. import db
from ..progress_core import recent_activity
from ..validation import query_int

activity_bp = Blueprint("activity", __name__)


@activity_bp.route("", methods=["GET"])
def get_activity():
    """
    Latest progress logs across all users, optionally for one challenge.
    GET /api/activity?challenge_id=1
    """
    challenge_id = query_int(request.args, "challenge_id", "challengeId")
    limit = current_app.config.get("ACTIVITY_FEED_LIMIT", 10)
    activity = recent_activity(db.session, challenge_id=challenge_id, limit=limit)
    return jsonify({"activity": activity}), 200
