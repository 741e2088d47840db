"""
Pytest fixtures for CricTrack testing.
Provides reusable test fixtures for database, app, clients, and test data.
"""

import os
import sys
from datetime import datetime, timedelta

import pytest
import yaml

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

os.environ.setdefault("CRICTRACK_TEST_MODE", "1")

from app import create_app, db
from database.models import (
    Tournament,
    Team as DBTeam,
    Player as DBPlayer,
    Match as DBMatch,
)

# Fixed "now" used by every app instance under test
FROZEN_NOW = datetime(2024, 3, 15, 14, 0, 0)


# ==================== Application Fixtures ====================

@pytest.fixture(scope="function")
def test_config(tmp_path):
    """Create a temporary config file for testing."""
    config_path = tmp_path / "config.yaml"
    config_data = {
        "app": {
            "name": "CricTrackTest",
            "secret_key": "test-secret-key-for-testing-only-12345",
        },
        "database": {
            "uri": f"sqlite:///{(tmp_path / 'pytest_app.db').as_posix()}",
        },
        "logging": {
            "level": "DEBUG",
            "dir": str(tmp_path / "logs"),
        },
    }

    config_path.write_text(yaml.safe_dump(config_data, sort_keys=False), encoding="utf-8")
    return config_path


@pytest.fixture(scope="function")
def app(test_config, monkeypatch):
    """Create and configure a test Flask application instance."""
    monkeypatch.setenv("CRICTRACK_CONFIG_PATH", str(test_config))
    monkeypatch.delenv("CRICTRACK_DB_URI", raising=False)

    app = create_app()
    app.config.update({"TESTING": True})
    app.extensions["match_state_engine"].clock = lambda: FROZEN_NOW

    # Create application context
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture(scope="function")
def engine(app):
    return app.extensions["match_state_engine"]


# ==================== Data Fixtures ====================

@pytest.fixture(scope="function")
def test_tournament(app):
    tournament = Tournament(name="Test Premier League", date=datetime(2024, 3, 1))
    db.session.add(tournament)
    db.session.commit()
    return tournament


@pytest.fixture(scope="function")
def test_team(app):
    team = DBTeam(name="Test Warriors", address="1 Pavilion Road")
    db.session.add(team)
    db.session.commit()
    return team


@pytest.fixture(scope="function")
def test_team_2(app):
    team = DBTeam(name="Test Champions", address="22 Boundary Lane")
    db.session.add(team)
    db.session.commit()
    return team


@pytest.fixture(scope="function")
def test_player(app, test_team):
    player = DBPlayer(name="John Doe", age=27, team_id=test_team.id, mobile="555-0101")
    db.session.add(player)
    db.session.commit()
    return player


def _make_match(tournament, team_a, team_b, date, status):
    match = DBMatch(
        tournament_id=tournament.id,
        team_a_id=team_a.id,
        team_b_id=team_b.id,
        date=date,
        match_status=status,
    )
    db.session.add(match)
    db.session.commit()
    return match


@pytest.fixture(scope="function")
def past_match(app, test_tournament, test_team, test_team_2):
    """A match scheduled two hours before FROZEN_NOW."""
    return _make_match(test_tournament, test_team, test_team_2, FROZEN_NOW - timedelta(hours=2), "completed")


@pytest.fixture(scope="function")
def future_match(app, test_tournament, test_team, test_team_2):
    """A match scheduled a day after FROZEN_NOW."""
    return _make_match(test_tournament, test_team, test_team_2, FROZEN_NOW + timedelta(days=1), "upcoming")


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
