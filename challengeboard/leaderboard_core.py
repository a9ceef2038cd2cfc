# challengeboard/leaderboard_core.py
from typing import Dict, List

from sqlalchemy import distinct, func
from sqlalchemy.orm import selectinload

from .errors import NotFound
from .models.challenge import Challenge, ProgressLog
from .models.team import Team, TeamMember
from .models.user import User

# Ties on the aggregate are broken by id ascending; rank is the 1-based
# position after sorting, so tied entries still get distinct ranks.


def _get_challenge(session, challenge_id: int) -> Challenge:
    challenge = session.get(Challenge, challenge_id)
    if not challenge:
        raise NotFound("Challenge not found")
    return challenge


def _user_totals(session, challenge_id: int) -> Dict[int, float]:
    """user_id -> summed progress for the challenge (users with logs only)."""
    rows = (
        session.query(ProgressLog.user_id, func.sum(ProgressLog.value))
        .filter(ProgressLog.challenge_id == challenge_id)
        .group_by(ProgressLog.user_id)
        .all()
    )
    return {user_id: float(total or 0) for user_id, total in rows}


def _ranked(entries: List[dict]) -> List[dict]:
    return [{"rank": i, **entry} for i, entry in enumerate(entries, start=1)]


def participant_count(session, challenge_id: int) -> int:
    """Distinct users with at least one progress log for the challenge."""
    return (
        session.query(func.count(distinct(ProgressLog.user_id)))
        .filter(ProgressLog.challenge_id == challenge_id)
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# Individual
# ---------------------------------------------------------------------------

def individual_leaderboard(session, challenge_id: int) -> List[dict]:
    """
    Users ranked by their summed progress for the challenge.
    Users who never logged for it are left out.
    """
    _get_challenge(session, challenge_id)

    total = func.sum(ProgressLog.value).label("total_value")
    rows = (
        session.query(User.id, User.name, total)
        .join(ProgressLog, ProgressLog.user_id == User.id)
        .filter(ProgressLog.challenge_id == challenge_id)
        .group_by(User.id, User.name)
        .order_by(total.desc(), User.id.asc())
        .all()
    )

    return _ranked(
        [
            {
                "user_id": user_id,
                "user_name": name,
                "total_value": float(value or 0),
            }
            for user_id, name, value in rows
        ]
    )


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

def team_leaderboard(session, challenge_id: int) -> List[dict]:
    """
    Teams ranked by the mean of their members' totals (members without logs
    count as 0). Teams without members are not ranked.
    """
    _get_challenge(session, challenge_id)
    totals = _user_totals(session, challenge_id)

    teams = session.query(Team).options(selectinload(Team.members)).all()

    stats = []
    for team in teams:
        if not team.members:
            continue

        member_totals = [totals.get(m.user_id, 0.0) for m in team.members]
        team_total = sum(member_totals)
        stats.append(
            {
                "team_id": team.id,
                "team_name": team.name,
                "member_count": len(member_totals),
                "average_value": team_total / len(member_totals),
                "total_value": team_total,
            }
        )

    stats.sort(key=lambda s: (-s["average_value"], s["team_id"]))
    return _ranked(stats)


def team_member_leaderboard(session, team_id: int, challenge_id: int):
    """
    Every member of the team ranked by total for the challenge, including
    members who have not logged anything (total 0).

    Returns (team, challenge, leaderboard).
    """
    team = (
        session.query(Team)
        .options(selectinload(Team.members).joinedload(TeamMember.user))
        .filter(Team.id == team_id)
        .first()
    )
    if not team:
        raise NotFound("Team not found")

    challenge = _get_challenge(session, challenge_id)

    if not team.members:
        return team, challenge, []

    totals = _user_totals(session, challenge_id)
    members = [
        {
            "user_id": m.user_id,
            "user_name": m.user.name,
            "total_value": totals.get(m.user_id, 0.0),
        }
        for m in team.members
    ]
    members.sort(key=lambda m: (-m["total_value"], m["user_id"]))

    return team, challenge, _ranked(members)
