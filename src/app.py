"""
Flask web application for the League Fixture Scheduler.
"""
import os
import uuid
import yaml
from datetime import datetime, timezone
from filelock import FileLock
from flask import Flask, request, jsonify
from core import league_data
from core.league_data import get_default_league_config, scheduling_constraints
from core.models import Fixture, parse_kickoff, format_kickoff, EVENT_TYPES, EVENT_SIDES, MAX_EVENT_MINUTE
from core.scheduling import FixtureScheduler
from core.round_robin import generate_round_robin_pairings, assign_league_kickoffs, LeagueScheduleError
from core.league_table import build_standings
from core.playoffs import advance_playoffs, match_winner

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('LEAGUE_DATA_DIR', os.path.join(BASE_DIR, 'data'))

TEAMS_FILE = os.path.join(DATA_DIR, 'teams.yaml')
FIXTURES_FILE = os.path.join(DATA_DIR, 'fixtures.yaml')
LEAGUE_FILE = os.path.join(DATA_DIR, 'league.yaml')

STATUS_PRIORITY = {'live': 1, 'finished': 4}


def _data_lock() -> FileLock:
    """Lock guarding read-modify-write cycles on the data files."""
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)


def load_league_config():
    """Load league configuration, falling back to defaults if the file is unusable."""
    try:
        return league_data.load_league_config(LEAGUE_FILE)
    except (yaml.YAMLError, ValueError) as e:
        app.logger.warning(f'Failed to parse {LEAGUE_FILE}: {e}')
        return get_default_league_config()


def load_teams() -> dict:
    """Load teams as {team_id: name}."""
    try:
        return league_data.load_teams(TEAMS_FILE)
    except (yaml.YAMLError, ValueError) as e:
        app.logger.warning(f'Failed to parse {TEAMS_FILE}: {e}')
        return {}


def save_teams(teams: dict):
    league_data.save_teams(TEAMS_FILE, teams)


def load_fixtures() -> list:
    """Load fixtures; an unusable file counts as no fixtures."""
    try:
        return league_data.load_fixtures(FIXTURES_FILE)
    except (yaml.YAMLError, ValueError) as e:
        app.logger.warning(f'Failed to parse {FIXTURES_FILE}: {e}')
        return []


def save_fixtures(fixtures: list):
    league_data.save_fixtures(FIXTURES_FILE, fixtures)


def _find_fixture(fixtures, fixture_id):
    for fixture in fixtures:
        if fixture.id == fixture_id:
            return fixture
    return None


def build_scheduler(fixtures, config=None) -> FixtureScheduler:
    """Create a scheduler over a fixture snapshot using the league's scheduling settings."""
    config = config or load_league_config()
    return FixtureScheduler(fixtures, scheduling_constraints(config))


def sort_fixtures(fixtures):
    """Order fixtures live, ready, unready, finished; then by kickoff; then newest first."""
    def priority(fixture):
        if fixture.status == 'scheduled':
            return 2 if fixture.is_scheduled else 3
        return STATUS_PRIORITY.get(fixture.status, 5)

    def kickoff_key(fixture):
        return fixture.kickoff_at.timestamp() if fixture.kickoff_at else 0

    def created_key(fixture):
        return fixture.created_at.timestamp() if fixture.created_at else 0

    ordered = sorted(fixtures, key=created_key, reverse=True)
    return sorted(ordered, key=lambda fx: (priority(fx), kickoff_key(fx)))


def _error(message, status):
    return jsonify({'success': False, 'message': message}), status


def _no_free_slot_message(decision):
    return (f"Could not find a non-conflicting kickoff within the search window "
            f"starting {format_kickoff(decision.proposed_kickoff)}.")


@app.route('/api/fixtures', methods=['GET'])
def list_fixtures():
    """List all fixtures in display order."""
    fixtures = sort_fixtures(load_fixtures())
    return jsonify({'success': True, 'data': [fixture.to_dict() for fixture in fixtures]})


@app.route('/api/fixtures/generate', methods=['POST'])
def generate_fixtures():
    """Replace league fixtures with a freshly generated round robin."""
    teams = load_teams()
    if len(teams) < 2:
        return _error('At least 2 teams are required', 400)
    config = load_league_config()

    with _data_lock():
        kept = [fixture for fixture in load_fixtures() if fixture.is_final]
        pairings = generate_round_robin_pairings(sorted(teams, key=lambda t: teams[t]))
        try:
            generated = assign_league_kickoffs(
                pairings,
                config['league_start_date'],
                config['league_end_date'],
                first_kickoff=config['first_kickoff_time'],
                increment_minutes=config['generation_increment_minutes'],
                existing=kept,
            )
        except LeagueScheduleError as e:
            app.logger.warning(f'Fixture generation failed: {e}')
            return _error(str(e), 400)
        save_fixtures(kept + generated)

    app.logger.info(f'Generated {len(generated)} fixtures for {len(teams)} teams')
    return jsonify({
        'success': True,
        'message': 'Fixtures generated',
        'data': [fixture.to_dict() for fixture in generated]
    }), 201


@app.route('/api/fixtures/conflicts', methods=['POST'])
def check_conflict():
    """Report whether a team already plays around a proposed kickoff."""
    data = request.get_json(silent=True) or {}
    scheduler = build_scheduler(load_fixtures())
    conflict = scheduler.has_conflict(
        data.get('teamId'),
        data.get('kickoffAt'),
        data.get('excludeFixtureId'),
    )
    return jsonify({'success': True, 'data': {'conflict': conflict}})


@app.route('/api/fixtures/next-slot', methods=['POST'])
def next_free_slot():
    """Find the next kickoff at or after the proposed one that suits both teams."""
    data = request.get_json(silent=True) or {}
    scheduler = build_scheduler(load_fixtures())
    slot = scheduler.find_next_free_slot(
        data.get('teamAId'),
        data.get('teamBId'),
        data.get('kickoffAt'),
        data.get('excludeFixtureId'),
    )
    return jsonify({'success': True, 'data': {'kickoffAt': format_kickoff(slot)}})


@app.route('/api/fixtures/<fixture_id>/schedule', methods=['PUT'])
def schedule_fixture(fixture_id):
    """Set kickoff, venue and teams; a clashing kickoff is moved to the next free slot."""
    data = request.get_json(silent=True) or {}

    with _data_lock():
        fixtures = load_fixtures()
        fixture = _find_fixture(fixtures, fixture_id)
        if fixture is None:
            return _error('Match not found', 404)

        home = data.get('homeTeamId') or fixture.home_team_id
        away = data.get('awayTeamId') or fixture.away_team_id
        if home and away and str(home) == str(away):
            return _error('Home and away teams must be different', 400)

        proposed = data.get('kickoffAt') or fixture.kickoff_at
        if data.get('kickoffAt') and parse_kickoff(data['kickoffAt']) is None:
            return _error('Invalid kickoff time', 400)

        decision = build_scheduler(fixtures).plan_kickoff(fixture.id, home, away, proposed)
        if not decision.ok:
            app.logger.warning(f'No free slot for fixture {fixture.id} ({home} vs {away})')
            return _error(_no_free_slot_message(decision), 409)

        fixture.home_team_id = home
        fixture.away_team_id = away
        fixture.kickoff_at = decision.kickoff_at
        if 'venueName' in data:
            fixture.venue_name = data['venueName']
        save_fixtures(fixtures)

    if decision.auto_rescheduled:
        app.logger.info(f'Fixture {fixture.id} auto-rescheduled from '
                        f'{format_kickoff(decision.proposed_kickoff)} to {format_kickoff(decision.kickoff_at)}')
    return jsonify({
        'success': True,
        'data': fixture.to_dict(),
        'autoRescheduled': decision.auto_rescheduled,
    })


@app.route('/api/fixtures/<fixture_id>/teams', methods=['PUT'])
def update_teams(fixture_id):
    """Swap or reassign the teams of a scheduled fixture."""
    data = request.get_json(silent=True) or {}
    home = data.get('homeTeamId')
    away = data.get('awayTeamId')
    if not home or not away or home == away:
        return _error('Invalid team selection', 400)

    teams = load_teams()
    if home not in teams or away not in teams:
        return _error('Team not found', 400)

    with _data_lock():
        fixtures = load_fixtures()
        fixture = _find_fixture(fixtures, fixture_id)
        if fixture is None:
            return _error('Match not found', 404)
        if fixture.status != 'scheduled':
            return _error('Teams can only be changed for scheduled matches', 400)

        decision = build_scheduler(fixtures).plan_kickoff(fixture.id, home, away, fixture.kickoff_at)
        if not decision.ok:
            app.logger.warning(f'Team change for fixture {fixture.id} aborted: no free slot')
            return _error(_no_free_slot_message(decision), 409)

        fixture.home_team_id = home
        fixture.away_team_id = away
        fixture.kickoff_at = decision.kickoff_at
        save_fixtures(fixtures)

    return jsonify({
        'success': True,
        'data': fixture.to_dict(),
        'autoRescheduled': decision.auto_rescheduled,
    })


def _score_value(data, side):
    """A submitted goal count: a non-negative whole number, never a bool or float."""
    value = data.get(side, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


@app.route('/api/fixtures/<fixture_id>/start', methods=['PUT'])
def start_fixture(fixture_id):
    """Move a ready scheduled fixture to live."""
    with _data_lock():
        fixtures = load_fixtures()
        fixture = _find_fixture(fixtures, fixture_id)
        if fixture is None:
            return _error('Match not found', 404)
        if fixture.status != 'scheduled':
            return _error('Only scheduled matches can be started', 400)
        if not fixture.is_scheduled:
            return _error('Set teams, kickoff and venue before starting the match', 400)
        fixture.status = 'live'
        save_fixtures(fixtures)

    app.logger.info(f'Fixture {fixture.id} started')
    return jsonify({'success': True, 'data': fixture.to_dict()})


@app.route('/api/fixtures/<fixture_id>/event', methods=['PUT'])
def add_fixture_event(fixture_id):
    """Record a goal, card or foul in a live fixture."""
    data = request.get_json(silent=True) or {}
    minute = data.get('minute')
    if isinstance(minute, bool) or not isinstance(minute, int) or not 0 <= minute <= MAX_EVENT_MINUTE:
        return _error(f'Minute must be a whole number between 0 and {MAX_EVENT_MINUTE}', 400)
    if data.get('type') not in EVENT_TYPES:
        return _error(f"Event type must be one of {', '.join(EVENT_TYPES)}", 400)
    if data.get('team') not in EVENT_SIDES:
        return _error("Event team must be 'home' or 'away'", 400)

    with _data_lock():
        fixtures = load_fixtures()
        fixture = _find_fixture(fixtures, fixture_id)
        if fixture is None:
            return _error('Match not found', 404)
        if fixture.status != 'live':
            return _error('Match not live', 400)
        player = data.get('player')
        fixture.add_event(minute, data['type'], data['team'], player.strip() if isinstance(player, str) else None)
        save_fixtures(fixtures)

    return jsonify({'success': True, 'data': fixture.to_dict()})


@app.route('/api/fixtures/<fixture_id>/finish', methods=['PUT'])
def finish_fixture(fixture_id):
    """Finish a fixture, optionally overriding its score, and seed any playoffs now due."""
    data = request.get_json(silent=True) or {}
    score = None
    if 'home' in data or 'away' in data:
        home_goals = _score_value(data, 'home')
        away_goals = _score_value(data, 'away')
        if home_goals is None or away_goals is None:
            return _error('Scores must be non-negative whole numbers', 400)
        score = {'home': home_goals, 'away': away_goals}

    teams = load_teams()
    config = load_league_config()
    with _data_lock():
        fixtures = load_fixtures()
        fixture = _find_fixture(fixtures, fixture_id)
        if fixture is None:
            return _error('Match not found', 404)
        if score is not None:
            fixture.score = score
        fixture.status = 'finished'
        fixture.finished_at = datetime.now(timezone.utc)

        playoffs = advance_playoffs(fixtures, teams, scheduling_constraints(config))
        fixtures.extend(playoffs)
        save_fixtures(fixtures)

    for created in playoffs:
        app.logger.info(f'Created {created.stage} {created.home_team_id} vs {created.away_team_id} '
                        f'at {format_kickoff(created.kickoff_at)}')
    standings = build_standings([f for f in fixtures if f.stage == 'league'], teams)
    return jsonify({'success': True, 'data': {
        'match': fixture.to_dict(),
        'table': standings,
        'playoffs': [created.to_dict() for created in playoffs],
    }})


@app.route('/api/fixtures/final/<fixture_id>/finish-and-declare', methods=['PUT'])
def finish_final(fixture_id):
    """Finish the final and name the champion; a drawn final has none."""
    with _data_lock():
        fixtures = load_fixtures()
        fixture = _find_fixture(fixtures, fixture_id)
        if fixture is None or not fixture.is_final:
            return _error('Final match not found', 404)
        fixture.status = 'finished'
        fixture.finished_at = datetime.now(timezone.utc)
        save_fixtures(fixtures)

    champion = match_winner(fixture)
    if champion:
        app.logger.info(f'League champion: {champion}')
    return jsonify({'success': True, 'data': {'final': fixture.to_dict(), 'championTeamId': champion}})


@app.route('/api/table', methods=['GET'])
def league_table():
    """Current league standings."""
    league = [f for f in load_fixtures() if f.stage == 'league']
    standings = build_standings(league, load_teams())
    return jsonify({'success': True, 'data': standings})


@app.route('/api/fixtures/reset', methods=['POST'])
def reset_league():
    """Remove every fixture."""
    with _data_lock():
        save_fixtures([])
    app.logger.info('League reset: fixtures cleared')
    return jsonify({'success': True, 'message': 'League reset: fixtures cleared'})


@app.route('/api/fixtures', methods=['POST'])
def create_fixture():
    """Create a single unscheduled fixture between two teams."""
    data = request.get_json(silent=True) or {}
    home = data.get('homeTeamId')
    away = data.get('awayTeamId')
    if not home or not away or home == away:
        return _error('Invalid team selection', 400)

    teams = load_teams()
    if home not in teams or away not in teams:
        return _error('Team not found', 400)

    with _data_lock():
        fixtures = load_fixtures()
        fixture = Fixture(
            id=uuid.uuid4().hex,
            home_team_id=home,
            away_team_id=away,
            stage=data.get('stage', 'league'),
            is_final=data.get('stage') == 'final',
            created_at=datetime.now(timezone.utc),
        )
        fixtures.append(fixture)
        save_fixtures(fixtures)
    return jsonify({'success': True, 'data': fixture.to_dict()}), 201


if __name__ == '__main__':
    app.run(debug=True)
