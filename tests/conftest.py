"""
Pytest configuration and fixtures for the challengeboard API tests.

Every test gets a fresh in-memory SQLite database through TestConfig.
"""
from datetime import datetime
from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from challengeboard import create_app, db
from challengeboard.models.challenge import Challenge, ProgressLog
from challengeboard.models.team import Team, TeamMember
from challengeboard.models.user import User
from config import TestConfig


@pytest.fixture
def app() -> Generator[Flask, None, None]:
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def session(app: Flask):
    return db.session


@pytest.fixture
def make_user(session):
    def _make(name: str = "Alice") -> User:
        user = User(name=name)
        session.add(user)
        session.commit()
        return user

    return _make


@pytest.fixture
def make_team(session):
    def _make(name: str = "Team", members=()) -> Team:
        team = Team(name=name)
        session.add(team)
        session.flush()
        for user in members:
            session.add(TeamMember(user_id=user.id, team_id=team.id))
        session.commit()
        return team

    return _make


@pytest.fixture
def make_challenge(session):
    def _make(
        title: str = "10k steps",
        start: datetime = datetime(2024, 1, 1),
        end: datetime = datetime(2024, 1, 7),
        description: str = "Walk every day",
    ) -> Challenge:
        challenge = Challenge(
            title=title, description=description, start_date=start, end_date=end
        )
        session.add(challenge)
        session.commit()
        return challenge

    return _make


@pytest.fixture
def count_logs(session):
    def _count(**filters) -> int:
        return session.query(ProgressLog).filter_by(**filters).count()

    return _count
