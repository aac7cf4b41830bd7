import datetime
import uuid
from core.models import Fixture
from core.league_table import build_standings, pick_top
from core.scheduling import FixtureScheduler

SEMI_KICKOFF = datetime.time(18, 0)
FINAL_KICKOFF = datetime.time(20, 0)
SEMI_GAP = datetime.timedelta(hours=2)


def match_winner(fixture):
    """Winning team id of a fixture, or None on a draw."""
    home_goals = fixture.score.get('home', 0)
    away_goals = fixture.score.get('away', 0)
    if home_goals == away_goals:
        return None
    return fixture.home_team_id if home_goals > away_goals else fixture.away_team_id


def semi_winner(fixture):
    # A level semi sends the away side through
    winner = match_winner(fixture)
    return winner if winner is not None else fixture.away_team_id


def _schedule(fixtures, constraints, pairings, stage, now):
    """Create one fixture per (home, away, proposed_kickoff), each planned against everything so far."""
    created = []
    for home, away, proposed in pairings:
        fixture = Fixture(
            id=uuid.uuid4().hex,
            home_team_id=home,
            away_team_id=away,
            stage=stage,
            is_final=stage == 'final',
            created_at=now,
        )
        scheduler = FixtureScheduler(list(fixtures) + created, constraints)
        # A failed plan leaves the fixture unscheduled for the operator to place
        fixture.kickoff_at = scheduler.plan_kickoff(fixture.id, home, away, proposed).kickoff_at
        created.append(fixture)
    return created


def advance_playoffs(fixtures, teams, constraints=None, now=None):
    """
    Return the playoff fixtures that become due given the current results.

    - Every league fixture finished and no semis yet: the top four of the league
      table meet 1 v 4 and 2 v 3, at 18:00 and 20:00 on the current day.
    - Both semis finished and no final yet: the winners meet at 20:00.

    Kickoffs go through FixtureScheduler.plan_kickoff, so a clash moves the
    fixture to the next free slot. Nothing in fixtures is modified.
    """
    now = now or datetime.datetime.now(datetime.timezone.utc)
    if any(f.stage == 'final' for f in fixtures):
        return []

    league = [f for f in fixtures if f.stage == 'league']
    semis = [f for f in fixtures if f.stage == 'semi']

    if not semis:
        if not league or any(f.status != 'finished' for f in league):
            return []
        seeds = pick_top(build_standings(league, teams), 4)
        if len(seeds) < 4:
            return []
        base = datetime.datetime.combine(now.date(), SEMI_KICKOFF, tzinfo=datetime.timezone.utc)
        pairings = [
            (seeds[0], seeds[3], base),
            (seeds[1], seeds[2], base + SEMI_GAP),
        ]
        return _schedule(fixtures, constraints, pairings, 'semi', now)

    if len(semis) == 2 and all(f.status == 'finished' for f in semis):
        kickoff = datetime.datetime.combine(now.date(), FINAL_KICKOFF, tzinfo=datetime.timezone.utc)
        pairings = [(semi_winner(semis[0]), semi_winner(semis[1]), kickoff)]
        return _schedule(fixtures, constraints, pairings, 'final', now)

    return []
