"""
Shared pytest fixtures for league fixture scheduler tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import datetime
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Fixture


UTC = datetime.timezone.utc


def at(text):
    """Shorthand for an aware UTC datetime from 'YYYY-MM-DD HH:MM'."""
    return datetime.datetime.strptime(text, '%Y-%m-%d %H:%M').replace(tzinfo=UTC)


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at a temporary data directory with four teams."""
    import app as app_module

    teams_file = tmp_path / "teams.yaml"
    fixtures_file = tmp_path / "fixtures.yaml"
    league_file = tmp_path / "league.yaml"

    teams_file.write_text(yaml.dump({
        'ars': 'Arsenal',
        'bur': 'Burnley',
        'che': 'Chelsea',
        'der': 'Derby',
    }, default_flow_style=False))
    league_file.write_text(yaml.dump({
        'league_name': 'Test League',
        'season': '2025',
        'league_start_date': '2025-01-01',
        'league_end_date': '2025-03-01',
        'first_kickoff_time': '14:00',
    }, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TEAMS_FILE', str(teams_file))
    monkeypatch.setattr(app_module, 'FIXTURES_FILE', str(fixtures_file))
    monkeypatch.setattr(app_module, 'LEAGUE_FILE', str(league_file))

    return str(tmp_path)


@pytest.fixture
def morning_fixture():
    """Team A at 2025-01-01 10:00Z against Team B."""
    return Fixture(id="f1", home_team_id="A", away_team_id="B", kickoff_at=at("2025-01-01 10:00"))


@pytest.fixture
def sample_fixtures(morning_fixture):
    """A small matchday with one unscheduled fixture."""
    return [
        morning_fixture,
        Fixture(id="f2", home_team_id="C", away_team_id="D", kickoff_at=at("2025-01-01 14:00")),
        Fixture(id="f3", home_team_id="A", away_team_id="C", kickoff_at=at("2025-01-02 18:00")),
        Fixture(id="f4", home_team_id="B", away_team_id="D"),
    ]
