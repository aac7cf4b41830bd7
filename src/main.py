# Entry point for printing a generated league schedule

import os
import sys
from collections import defaultdict
import yaml
from core.league_data import load_teams, load_league_config
from core.round_robin import generate_round_robin_pairings, assign_league_kickoffs, LeagueScheduleError
from core.scheduling import FixtureScheduler


def main():
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    # Use command line argument if provided, otherwise use default path
    teams_file = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base_dir, 'data', 'teams.yaml')
    league_file = os.path.join(os.path.dirname(teams_file), 'league.yaml')

    try:
        teams = load_teams(teams_file)
        config = load_league_config(league_file)
    except (OSError, yaml.YAMLError, ValueError) as e:
        print(f"Error: could not read league data: {e}", file=sys.stderr)
        return 1
    if len(teams) < 2:
        print(f"At least 2 teams are required. Check {teams_file}", file=sys.stderr)
        return 1

    pairings = generate_round_robin_pairings(sorted(teams, key=lambda t: teams[t]))
    try:
        fixtures = assign_league_kickoffs(
            pairings,
            config['league_start_date'],
            config['league_end_date'],
            first_kickoff=config['first_kickoff_time'],
            increment_minutes=config['generation_increment_minutes'],
        )
    except LeagueScheduleError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Generation keeps one match per team per day; report anything that still overlaps
    scheduler = FixtureScheduler(fixtures, config)
    for fixture in fixtures:
        for team_id in (fixture.home_team_id, fixture.away_team_id):
            if scheduler.has_conflict(team_id, fixture.kickoff_at, fixture.id):
                print(f"WARNING: {teams[team_id]} has overlapping fixtures around "
                      f"{fixture.kickoff_at.strftime('%Y-%m-%d %H:%M')}", file=sys.stderr)

    days = defaultdict(list)
    for fixture in fixtures:
        days[fixture.kickoff_at.date()].append(fixture)

    print(f"# {config['league_name']} {config['season']}")
    for day in sorted(days):
        print(f"\n## {day.isoformat()}")
        for fixture in sorted(days[day], key=lambda f: f.kickoff_at):
            print(f"  {fixture.kickoff_at.strftime('%H:%M')}: "
                  f"{teams[fixture.home_team_id]} vs {teams[fixture.away_team_id]}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
