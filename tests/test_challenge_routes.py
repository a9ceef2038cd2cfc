"""Tests for /api/challenges endpoints."""
from datetime import timedelta

import pytest

from challengeboard.models.common import utcnow


def _payload(**overrides):
    data = {
        "title": "10k steps",
        "description": "Walk every day",
        "start_date": "2024-01-01",
        "end_date": "2024-01-07",
    }
    data.update(overrides)
    return data


def test_create_challenge(client):
    r = client.post("/api/challenges", json=_payload())
    assert r.status_code == 201

    challenge = r.get_json()["challenge"]
    assert challenge["title"] == "10k steps"
    assert challenge["start_date"] == "2024-01-01T00:00:00"
    assert challenge["status"] == "past"


def test_create_challenge_accepts_camel_case_dates(client):
    r = client.post(
        "/api/challenges",
        json={
            "title": "t",
            "description": "d",
            "startDate": "2024-01-01T00:00:00.000Z",
            "endDate": "2024-01-07T00:00:00.000Z",
        },
    )
    assert r.status_code == 201


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"title": ""}, "title"),
        ({"title": "x" * 201}, "title"),
        ({"description": "  "}, "description"),
        ({"start_date": "not a date"}, "start_date"),
        ({"end_date": "2024-01-01"}, "end_date"),
        ({"end_date": "2023-12-01"}, "end_date"),
    ],
)
def test_create_challenge_validation(client, overrides, field):
    r = client.post("/api/challenges", json=_payload(**overrides))
    assert r.status_code == 400
    body = r.get_json()
    assert field in body["errors"]


def test_validation_reports_every_failing_field(client):
    r = client.post("/api/challenges", json={})
    assert r.status_code == 400
    assert set(r.get_json()["errors"]) == {
        "title",
        "description",
        "start_date",
        "end_date",
    }


def test_list_challenges_with_status_and_filter(client, make_challenge):
    now = utcnow()
    make_challenge("past", now - timedelta(days=30), now - timedelta(days=20))
    make_challenge("active", now - timedelta(days=1), now + timedelta(days=1))
    make_challenge("upcoming", now + timedelta(days=5), now + timedelta(days=9))

    r = client.get("/api/challenges")
    assert r.status_code == 200
    statuses = {c["title"]: c["status"] for c in r.get_json()["challenges"]}
    assert statuses == {"past": "past", "active": "active", "upcoming": "upcoming"}

    for category in ("past", "active", "upcoming"):
        r = client.get(f"/api/challenges?filter={category}")
        titles = [c["title"] for c in r.get_json()["challenges"]]
        assert titles == [category]


def test_list_challenges_rejects_unknown_filter(client):
    r = client.get("/api/challenges?filter=soon")
    assert r.status_code == 400
    assert "filter" in r.get_json()["errors"]


def test_get_challenge_with_participant_count(client, make_user, make_challenge):
    challenge = make_challenge()
    alice, bob = make_user("Alice"), make_user("Bob")
    for user, day in [(alice, "2024-01-02"), (alice, "2024-01-03"), (bob, "2024-01-03")]:
        client.post(
            "/api/progress",
            json={"user_id": user.id, "challenge_id": challenge.id, "date": day, "value": 1},
        )

    r = client.get(f"/api/challenges/{challenge.id}")
    assert r.status_code == 200
    data = r.get_json()["challenge"]
    assert data["participant_count"] == 2
    assert data["log_count"] == 3


def test_get_missing_challenge(client):
    assert client.get("/api/challenges/999").status_code == 404


def test_update_challenge(client, make_challenge):
    challenge = make_challenge()
    r = client.put(
        f"/api/challenges/{challenge.id}",
        json=_payload(title="Renamed", end_date="2024-01-14"),
    )
    assert r.status_code == 200
    data = r.get_json()["challenge"]
    assert data["title"] == "Renamed"
    assert data["end_date"] == "2024-01-14T00:00:00"


def test_update_challenge_validation_and_missing(client, make_challenge):
    challenge = make_challenge()
    r = client.put(f"/api/challenges/{challenge.id}", json=_payload(end_date="2023-01-01"))
    assert r.status_code == 400
    assert client.put("/api/challenges/999", json=_payload()).status_code == 404


def test_delete_challenge_cascades_progress(client, make_user, make_challenge, count_logs):
    challenge = make_challenge()
    keep = make_challenge("keep")
    alice = make_user()
    for c in (challenge, keep):
        client.post(
            "/api/progress",
            json={"user_id": alice.id, "challenge_id": c.id, "date": "2024-01-02", "value": 3},
        )
    challenge_id = challenge.id

    r = client.delete(f"/api/challenges/{challenge_id}")
    assert r.status_code == 200
    assert r.get_json() == {"success": True}

    assert count_logs(challenge_id=challenge_id) == 0
    assert count_logs(challenge_id=keep.id) == 1
    assert client.get(f"/api/challenges/{challenge_id}").status_code == 404


def test_delete_missing_challenge(client):
    assert client.delete("/api/challenges/999").status_code == 404


def test_individual_leaderboard_endpoint(client, make_user, make_challenge):
    challenge = make_challenge()
    alice, bob = make_user("Alice"), make_user("Bob")
    for user, value in [(alice, 5), (bob, 8), (alice, 4)]:
        client.post(
            "/api/progress",
            json={"userId": user.id, "challengeId": challenge.id, "date": "2024-01-02", "value": value},
        )

    r = client.get(f"/api/challenges/{challenge.id}/leaderboard/individual")
    assert r.status_code == 200
    body = r.get_json()
    assert body["challenge_id"] == challenge.id
    assert body["challenge_title"] == "10k steps"
    assert [(e["rank"], e["user_name"], e["total_value"]) for e in body["leaderboard"]] == [
        (1, "Alice", 9.0),
        (2, "Bob", 8.0),
    ]


def test_team_leaderboard_endpoint(client, make_user, make_team, make_challenge):
    challenge = make_challenge()
    alice, bob = make_user("Alice"), make_user("Bob")
    team = make_team("Crew", members=[alice, bob])
    make_team("Empty")
    client.post(
        "/api/progress",
        json={"user_id": alice.id, "challenge_id": challenge.id, "date": "2024-01-02", "value": 10},
    )

    r = client.get(f"/api/challenges/{challenge.id}/leaderboard/teams")
    assert r.status_code == 200
    board = r.get_json()["leaderboard"]
    assert board == [
        {
            "rank": 1,
            "team_id": team.id,
            "team_name": "Crew",
            "member_count": 2,
            "average_value": 5.0,
            "total_value": 10.0,
        }
    ]


@pytest.mark.parametrize("kind", ["individual", "teams"])
def test_leaderboards_for_missing_challenge(client, kind):
    assert client.get(f"/api/challenges/999/leaderboard/{kind}").status_code == 404


def test_created_challenge_status_tracks_clock(client):
    start = (utcnow() - timedelta(days=1)).isoformat()
    end = (utcnow() + timedelta(days=1)).isoformat()
    r = client.post("/api/challenges", json=_payload(start_date=start, end_date=end))
    assert r.get_json()["challenge"]["status"] == "active"
