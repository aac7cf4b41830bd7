import datetime
from core.models import parse_kickoff, format_kickoff

MATCH_DURATION_MINUTES = 120
SLOT_INCREMENT_MINUTES = 15
SEARCH_HORIZON_HOURS = 48


class ScheduleDecision:
    """Outcome of planning a kickoff for a fixture.

    status is one of:
        'unscheduled' - no kickoff was proposed
        'unchanged'   - the proposed kickoff is free for both teams
        'rescheduled' - the proposed kickoff clashed; kickoff_at is the next free slot
        'failed'      - the proposed kickoff clashed and no free slot exists in the horizon
    """

    def __init__(self, status, kickoff_at=None, proposed_kickoff=None):
        self.status = status
        self.kickoff_at = kickoff_at
        self.proposed_kickoff = proposed_kickoff

    @property
    def ok(self):
        return self.status != 'failed'

    @property
    def auto_rescheduled(self):
        return self.status == 'rescheduled'

    def __repr__(self):
        return (f"ScheduleDecision(status={self.status}, kickoff_at={format_kickoff(self.kickoff_at)}, "
                f"proposed_kickoff={format_kickoff(self.proposed_kickoff)})")


class FixtureScheduler:
    """Answers per-team overlap and next-free-slot queries over a fixture snapshot.

    The scheduler never mutates the fixtures it is given; callers apply the
    instants it returns through their own update path.
    """

    def __init__(self, fixtures, constraints=None):
        self.fixtures = list(fixtures)
        self.constraints = constraints if constraints else {}

    @property
    def match_duration(self):
        return datetime.timedelta(minutes=self.constraints.get('match_duration_minutes', MATCH_DURATION_MINUTES))

    @property
    def slot_increment(self):
        return datetime.timedelta(minutes=self.constraints.get('slot_increment_minutes', SLOT_INCREMENT_MINUTES))

    @property
    def search_horizon(self):
        return datetime.timedelta(hours=self.constraints.get('search_horizon_hours', SEARCH_HORIZON_HOURS))

    def _team_commitments(self, team_id, exclude_fixture_id=None):
        for fixture in self.fixtures:
            if exclude_fixture_id is not None and fixture.id == exclude_fixture_id:
                continue
            if fixture.kickoff_at is None:
                continue
            if fixture.involves(team_id):
                yield fixture

    def has_conflict(self, team_id, proposed_kickoff, exclude_fixture_id=None, debug=False):
        """Return True if team_id already plays during [proposed_kickoff, proposed_kickoff + duration)."""
        match_start_time = parse_kickoff(proposed_kickoff)
        if not team_id or match_start_time is None:
            return False
        match_end_time = match_start_time + self.match_duration

        for fixture in self._team_commitments(team_id, exclude_fixture_id):
            existing_start = fixture.kickoff_at
            existing_end = existing_start + self.match_duration
            if max(existing_start, match_start_time) < min(existing_end, match_end_time):
                if debug:
                    print(f"      ✗ {team_id} overlapping fixture {fixture.id}: "
                          f"{existing_start.strftime('%Y-%m-%d %H:%M')}-{existing_end.strftime('%H:%M')} overlaps "
                          f"{match_start_time.strftime('%Y-%m-%d %H:%M')}-{match_end_time.strftime('%H:%M')}")
                return True
        return False

    def find_next_free_slot(self, team_a_id, team_b_id, proposed_kickoff, exclude_fixture_id=None, debug=False):
        """Step forward from proposed_kickoff until both teams are free.

        The proposed instant is the first candidate. Returns None when nothing
        is free within the search horizon.
        """
        start = parse_kickoff(proposed_kickoff)
        if start is None:
            return None
        horizon_end = start + self.search_horizon

        current_time = start
        while current_time <= horizon_end:
            if (not self.has_conflict(team_a_id, current_time, exclude_fixture_id, debug=debug)
                    and not self.has_conflict(team_b_id, current_time, exclude_fixture_id, debug=debug)):
                return current_time
            current_time += self.slot_increment

        if debug:
            print(f"    No free slot for {team_a_id} vs {team_b_id} within "
                  f"{self.search_horizon} of {start.strftime('%Y-%m-%d %H:%M')}")
        return None

    def plan_kickoff(self, fixture_id, home_team_id, away_team_id, proposed_kickoff):
        """Decide the kickoff to commit for a fixture being scheduled or reassigned."""
        proposed = parse_kickoff(proposed_kickoff)
        if proposed is None:
            return ScheduleDecision('unscheduled')

        clash = (self.has_conflict(home_team_id, proposed, fixture_id)
                 or self.has_conflict(away_team_id, proposed, fixture_id))
        if not clash:
            return ScheduleDecision('unchanged', proposed, proposed)

        free_slot = self.find_next_free_slot(home_team_id, away_team_id, proposed, fixture_id)
        if free_slot is None:
            return ScheduleDecision('failed', None, proposed)
        return ScheduleDecision('rescheduled', free_slot, proposed)
