def calculate_points(home_goals, away_goals):
    """Return (home_points, away_points) for a final score."""
    if home_goals > away_goals:
        return 3, 0
    if home_goals < away_goals:
        return 0, 3
    return 1, 1


def build_standings(fixtures, teams):
    """
    Calculate league standings from finished fixtures.

    teams maps team id -> display name.

    Returns: [{'team_id': id, 'team': name, 'played': n, 'won': n, 'drawn': n,
               'lost': n, 'gf': n, 'ga': n, 'gd': n, 'points': n}, ...]

    Ranking: points -> goal difference -> goals for -> name
    """
    rows = {}
    for team_id, name in teams.items():
        rows[team_id] = {
            'team_id': team_id,
            'team': name,
            'played': 0,
            'won': 0,
            'drawn': 0,
            'lost': 0,
            'gf': 0,
            'ga': 0,
            'points': 0,
        }

    for fixture in fixtures:
        if fixture.status != 'finished':
            continue
        home = rows.get(fixture.home_team_id)
        away = rows.get(fixture.away_team_id)
        # Fixtures for teams that have since been removed do not count
        if home is None or away is None:
            continue

        home_goals = fixture.score.get('home', 0)
        away_goals = fixture.score.get('away', 0)

        home['played'] += 1
        away['played'] += 1
        home['gf'] += home_goals
        home['ga'] += away_goals
        away['gf'] += away_goals
        away['ga'] += home_goals

        if home_goals > away_goals:
            home['won'] += 1
            away['lost'] += 1
        elif home_goals < away_goals:
            away['won'] += 1
            home['lost'] += 1
        else:
            home['drawn'] += 1
            away['drawn'] += 1

        home_points, away_points = calculate_points(home_goals, away_goals)
        home['points'] += home_points
        away['points'] += away_points

    for row in rows.values():
        row['gd'] = row['gf'] - row['ga']

    return sorted(
        rows.values(),
        key=lambda x: (-x['points'], -x['gd'], -x['gf'], x['team'])
    )


def pick_top(standings, n):
    return [row['team_id'] for row in standings[:n]]
