"""
League configuration defaults and YAML data files (teams, fixtures, league settings).

Loaders raise yaml.YAMLError for unparseable files and ValueError for files
with the wrong shape; callers decide whether to fall back or stop.
"""
import os
from datetime import date, timedelta
import yaml
from core.models import Fixture

LEAGUE_PERIOD_DAYS = 60


def get_default_league_config():
    """Return default league configuration."""
    today = date.today()
    return {
        'league_name': 'Default League',
        'season': str(today.year),
        'league_start_date': today.isoformat(),
        'league_end_date': (today + timedelta(days=LEAGUE_PERIOD_DAYS)).isoformat(),
        'first_kickoff_time': '14:00',
        'generation_increment_minutes': 120,
        'match_duration_minutes': 120,
        'slot_increment_minutes': 15,
        'search_horizon_hours': 48,
    }


def scheduling_constraints(config):
    """The subset of league settings the fixture scheduler reads."""
    return {
        'match_duration_minutes': config['match_duration_minutes'],
        'slot_increment_minutes': config['slot_increment_minutes'],
        'search_horizon_hours': config['search_horizon_hours'],
    }


def _read_yaml(path):
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def load_league_config(path):
    """Load league configuration, merging with defaults."""
    defaults = get_default_league_config()
    data = _read_yaml(path)
    if not data:
        return defaults
    if not isinstance(data, dict):
        raise ValueError(f'{path}: expected a mapping of league settings')
    return {**defaults, **data}


def load_teams(path) -> dict:
    """Load teams as {team_id: name}."""
    data = _read_yaml(path)
    if not data:
        return {}
    if isinstance(data, list):
        # Plain list of names: the name doubles as the id
        return {str(name): str(name) for name in data}
    if not isinstance(data, dict):
        raise ValueError(f'{path}: expected a mapping of team ids to names')
    return {str(team_id): str(name) for team_id, name in data.items()}


def save_teams(path, teams: dict):
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(teams, f, default_flow_style=False)


def load_fixtures(path) -> list:
    """Load fixtures stored under a top-level 'fixtures' list."""
    data = _read_yaml(path)
    if not data:
        return []
    if not isinstance(data, dict) or not isinstance(data.get('fixtures', []), list):
        raise ValueError(f'{path}: expected a mapping with a fixtures list')
    fixtures = []
    for item in data.get('fixtures', []):
        if not isinstance(item, dict) or 'id' not in item:
            raise ValueError(f'{path}: fixture entry without an id: {item!r}')
        fixtures.append(Fixture.from_dict(item))
    return fixtures


def save_fixtures(path, fixtures: list):
    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump({'fixtures': [fixture.to_dict() for fixture in fixtures]}, f,
                  default_flow_style=False, sort_keys=False)
