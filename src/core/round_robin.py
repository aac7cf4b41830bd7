import datetime
import uuid
from core.models import Fixture


class LeagueScheduleError(ValueError):
    """Raised when a league schedule cannot fit inside its configured period."""


def generate_round_robin_pairings(team_ids):
    """Pair every team with every other team once using the circle method.

    Returns a flat list of (home, away) tuples ordered round by round. With an
    odd number of teams one team sits out each round.
    """
    ids = list(team_ids)
    if len(ids) < 2:
        return []
    if len(ids) % 2 == 1:
        ids.append(None)

    rounds = len(ids) - 1
    half = len(ids) // 2
    pairings = []
    for _ in range(rounds):
        for i in range(half):
            home = ids[i]
            away = ids[len(ids) - 1 - i]
            if home is not None and away is not None:
                pairings.append((home, away))
        # Keep the first team fixed and rotate the rest one place clockwise
        ids = [ids[0], ids[-1]] + ids[1:-1]
    return pairings


def _parse_time(time_str):
    if isinstance(time_str, int):
        # YAML 1.1 reads an unquoted 14:00 as sexagesimal minutes (840)
        return datetime.time(time_str // 60, time_str % 60)
    return datetime.datetime.strptime(time_str, '%H:%M').time()


def _as_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value))


def assign_league_kickoffs(pairings, league_start, league_end, first_kickoff='14:00',
                           increment_minutes=120, existing=()):
    """Give each pairing a kickoff inside the league period.

    A slot is taken when no other fixture kicks off at that exact instant and
    neither team already plays that calendar day. The cursor moves forward by
    increment_minutes after every attempt, taken or not.
    """
    start_date = _as_date(league_start)
    # The end date closes the period: only its midnight slot is still playable
    period_end = datetime.datetime.combine(_as_date(league_end), datetime.time(0, 0),
                                           tzinfo=datetime.timezone.utc)
    increment = datetime.timedelta(minutes=increment_minutes)
    slot = datetime.datetime.combine(start_date, _parse_time(first_kickoff), tzinfo=datetime.timezone.utc)

    taken_kickoffs = set()
    team_days = set()
    for fixture in existing:
        if fixture.kickoff_at is None:
            continue
        taken_kickoffs.add(fixture.kickoff_at)
        team_days.add((fixture.home_team_id, fixture.kickoff_at.date()))
        team_days.add((fixture.away_team_id, fixture.kickoff_at.date()))

    fixtures = []
    for home, away in pairings:
        while True:
            if slot > period_end:
                raise LeagueScheduleError(
                    f"Cannot schedule all matches within league period "
                    f"({start_date.isoformat()} - {_as_date(league_end).isoformat()}). "
                    f"Please extend the league period or reduce the number of teams.")
            day = slot.date()
            free = (slot not in taken_kickoffs
                    and (home, day) not in team_days
                    and (away, day) not in team_days)
            kickoff = slot
            slot += increment
            if free:
                break

        fixtures.append(Fixture(
            id=uuid.uuid4().hex,
            home_team_id=home,
            away_team_id=away,
            kickoff_at=kickoff,
            created_at=datetime.datetime.now(datetime.timezone.utc),
        ))
        taken_kickoffs.add(kickoff)
        team_days.add((home, kickoff.date()))
        team_days.add((away, kickoff.date()))
    return fixtures
