"""
Unit tests for the FixtureScheduler class.
"""
import pytest
import datetime
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Fixture
from core.scheduling import FixtureScheduler, ScheduleDecision


UTC = datetime.timezone.utc


def at(text):
    return datetime.datetime.strptime(text, '%Y-%m-%d %H:%M').replace(tzinfo=UTC)


class TestSchedulerSettings:
    """Tests for scheduler constants and overrides."""

    def test_default_windows(self):
        scheduler = FixtureScheduler([])
        assert scheduler.match_duration == datetime.timedelta(hours=2)
        assert scheduler.slot_increment == datetime.timedelta(minutes=15)
        assert scheduler.search_horizon == datetime.timedelta(hours=48)

    def test_constraints_override_defaults(self):
        scheduler = FixtureScheduler([], {'match_duration_minutes': 90, 'slot_increment_minutes': 30})
        assert scheduler.match_duration == datetime.timedelta(minutes=90)
        assert scheduler.slot_increment == datetime.timedelta(minutes=30)
        assert scheduler.search_horizon == datetime.timedelta(hours=48)

    def test_scheduler_copies_fixture_list(self, sample_fixtures):
        scheduler = FixtureScheduler(sample_fixtures)
        sample_fixtures.append(Fixture(id="late", home_team_id="A", away_team_id="D",
                                       kickoff_at=at("2025-01-01 11:00")))
        assert scheduler.has_conflict("D", "2025-01-01T11:00:00Z") is False


class TestHasConflict:
    """Tests for per-team overlap detection."""

    def test_overlap_is_a_conflict(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 11:00")) is True

    def test_away_team_is_checked_too(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("B", at("2025-01-01 09:00")) is True

    def test_same_kickoff_is_a_conflict(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 10:00")) is True

    def test_iso_string_kickoff(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", "2025-01-01T11:00:00Z") is True

    def test_non_overlapping_fixtures(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 15:00")) is False
        assert scheduler.has_conflict("A", at("2025-01-01 06:00")) is False

    def test_touching_after_is_not_a_conflict(self, morning_fixture):
        """A kickoff exactly when the existing window ends does not overlap."""
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 12:00")) is False

    def test_touching_before_is_not_a_conflict(self, morning_fixture):
        """A window that ends exactly at the existing kickoff does not overlap."""
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 08:00")) is False

    def test_one_minute_inside_boundary_conflicts(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 11:59")) is True
        assert scheduler.has_conflict("A", at("2025-01-01 08:01")) is True

    def test_other_teams_are_ignored(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("C", at("2025-01-01 10:00")) is False

    def test_unscheduled_fixtures_are_ignored(self):
        scheduler = FixtureScheduler([Fixture(id="f1", home_team_id="A", away_team_id="B")])
        assert scheduler.has_conflict("A", at("2025-01-01 10:00")) is False

    def test_excluded_fixture_is_ignored(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict("A", at("2025-01-01 11:00"), exclude_fixture_id="f1") is False

    def test_exclusion_only_skips_that_fixture(self, morning_fixture):
        other = Fixture(id="f9", home_team_id="C", away_team_id="A", kickoff_at=at("2025-01-01 10:30"))
        scheduler = FixtureScheduler([morning_fixture, other])
        assert scheduler.has_conflict("A", at("2025-01-01 11:00"), exclude_fixture_id="f1") is True

    @pytest.mark.parametrize("team_id, kickoff", [
        (None, "2025-01-01T11:00:00Z"),
        ("", "2025-01-01T11:00:00Z"),
        ("A", None),
        ("A", ""),
        ("A", "not-a-time"),
    ])
    def test_missing_inputs_mean_no_conflict(self, morning_fixture, team_id, kickoff):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.has_conflict(team_id, kickoff) is False

    def test_debug_trace_names_the_clash(self, morning_fixture, capsys):
        scheduler = FixtureScheduler([morning_fixture])
        scheduler.has_conflict("A", at("2025-01-01 11:00"), debug=True)
        assert "overlapping fixture f1" in capsys.readouterr().out

    def test_custom_duration_shrinks_window(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture], {'match_duration_minutes': 60})
        assert scheduler.has_conflict("A", at("2025-01-01 11:00")) is False
        assert scheduler.has_conflict("A", at("2025-01-01 10:45")) is True


class TestFindNextFreeSlot:
    """Tests for the forward slot search."""

    def test_free_instant_is_returned_unchanged(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        proposed = at("2025-01-01 15:07")
        assert scheduler.find_next_free_slot("A", "C", proposed) == proposed

    def test_worked_example_lands_on_boundary(self, morning_fixture):
        """Team A busy 10:00-12:00; searching from 11:00 gives 12:00."""
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.find_next_free_slot("A", "C", "2025-01-01T11:00:00Z") == at("2025-01-01 12:00")

    def test_rounds_forward_to_next_increment(self):
        """Busy until 12:10, so the first 15-minute step that clears it is 12:15."""
        busy = Fixture(id="f1", home_team_id="A", away_team_id="B", kickoff_at=at("2025-01-01 10:10"))
        scheduler = FixtureScheduler([busy])
        assert scheduler.find_next_free_slot("A", "C", at("2025-01-01 10:00")) == at("2025-01-01 12:15")

    def test_gap_ninety_minutes_after_proposal(self):
        busy = Fixture(id="f1", home_team_id="A", away_team_id="B", kickoff_at=at("2025-01-01 10:00"))
        scheduler = FixtureScheduler([busy])
        result = scheduler.find_next_free_slot("A", "C", at("2025-01-01 10:30"))
        assert result == at("2025-01-01 12:00")
        assert result - at("2025-01-01 10:30") == datetime.timedelta(minutes=90)

    def test_both_teams_must_be_free(self):
        fixtures = [
            Fixture(id="f1", home_team_id="A", away_team_id="X", kickoff_at=at("2025-01-01 10:00")),
            Fixture(id="f2", home_team_id="Y", away_team_id="B", kickoff_at=at("2025-01-01 12:00")),
        ]
        scheduler = FixtureScheduler(fixtures)
        assert scheduler.find_next_free_slot("A", "B", at("2025-01-01 11:00")) == at("2025-01-01 14:00")

    def test_densely_packed_horizon_returns_none(self):
        start = at("2025-01-01 00:00")
        fixtures = [
            Fixture(id=f"f{i}", home_team_id="A", away_team_id=f"opp{i}",
                    kickoff_at=start + datetime.timedelta(hours=2 * i))
            for i in range(26)
        ]
        scheduler = FixtureScheduler(fixtures)
        assert scheduler.find_next_free_slot("A", "B", at("2025-01-01 01:00")) is None

    def test_slot_just_inside_horizon_is_found(self):
        """Busy until exactly 48h after the proposal: the horizon edge itself is tested."""
        start = at("2025-01-01 00:00")
        fixtures = [
            Fixture(id=f"f{i}", home_team_id="A", away_team_id=f"opp{i}",
                    kickoff_at=start + datetime.timedelta(hours=2 * i))
            for i in range(24)
        ]
        scheduler = FixtureScheduler(fixtures)
        assert scheduler.find_next_free_slot("A", "B", start) == at("2025-01-03 00:00")

    def test_missing_kickoff_returns_none(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        assert scheduler.find_next_free_slot("A", "B", None) is None
        assert scheduler.find_next_free_slot("A", "B", "") is None
        assert scheduler.find_next_free_slot("A", "B", "garbage") is None

    def test_excluded_fixture_does_not_push_the_slot(self, morning_fixture):
        scheduler = FixtureScheduler([morning_fixture])
        proposed = at("2025-01-01 11:00")
        assert scheduler.find_next_free_slot("A", "B", proposed, exclude_fixture_id="f1") == proposed

    def test_search_is_deterministic(self, sample_fixtures):
        scheduler = FixtureScheduler(sample_fixtures)
        first = scheduler.find_next_free_slot("A", "D", at("2025-01-01 13:00"))
        second = scheduler.find_next_free_slot("A", "D", at("2025-01-01 13:00"))
        assert first == second == at("2025-01-01 16:00")

    def test_search_does_not_mutate_fixtures(self, sample_fixtures):
        before = [(f.id, f.kickoff_at) for f in sample_fixtures]
        FixtureScheduler(sample_fixtures).find_next_free_slot("A", "C", at("2025-01-01 11:00"))
        assert [(f.id, f.kickoff_at) for f in sample_fixtures] == before


class TestPlanKickoff:
    """Tests for the schedule decision used when committing an update."""

    def test_no_kickoff_is_unscheduled(self, morning_fixture):
        decision = FixtureScheduler([morning_fixture]).plan_kickoff("f2", "A", "C", None)
        assert decision.status == 'unscheduled'
        assert decision.kickoff_at is None
        assert decision.ok

    def test_free_kickoff_is_unchanged(self, morning_fixture):
        decision = FixtureScheduler([morning_fixture]).plan_kickoff("f2", "A", "C", "2025-01-01T15:00:00Z")
        assert decision.status == 'unchanged'
        assert decision.kickoff_at == at("2025-01-01 15:00")
        assert not decision.auto_rescheduled

    def test_clash_is_rescheduled(self, morning_fixture):
        decision = FixtureScheduler([morning_fixture]).plan_kickoff("f2", "C", "A", at("2025-01-01 11:00"))
        assert decision.status == 'rescheduled'
        assert decision.auto_rescheduled
        assert decision.kickoff_at == at("2025-01-01 12:00")
        assert decision.proposed_kickoff == at("2025-01-01 11:00")

    def test_fixture_does_not_clash_with_itself(self, morning_fixture):
        decision = FixtureScheduler([morning_fixture]).plan_kickoff("f1", "A", "B", at("2025-01-01 10:30"))
        assert decision.status == 'unchanged'

    def test_no_free_slot_fails(self):
        start = at("2025-01-01 00:00")
        fixtures = [
            Fixture(id=f"f{i}", home_team_id="A", away_team_id=f"opp{i}",
                    kickoff_at=start + datetime.timedelta(hours=2 * i))
            for i in range(26)
        ]
        decision = FixtureScheduler(fixtures).plan_kickoff("new", "A", "B", at("2025-01-01 01:00"))
        assert decision.status == 'failed'
        assert not decision.ok
        assert decision.kickoff_at is None

    def test_decision_repr(self):
        decision = ScheduleDecision('rescheduled', at("2025-01-01 12:00"), at("2025-01-01 11:00"))
        assert "rescheduled" in repr(decision)
        assert "2025-01-01T12:00:00Z" in repr(decision)
