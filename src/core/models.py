import datetime


def parse_kickoff(value):
    """Parse a kickoff value into an aware UTC datetime, or None if unusable."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def format_kickoff(dt):
    if dt is None:
        return None
    return dt.astimezone(datetime.timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


EVENT_TYPES = ('goal', 'yellow_card', 'red_card', 'foul')
EVENT_SIDES = ('home', 'away')
MAX_EVENT_MINUTE = 120


class Fixture:
    def __init__(self, id, home_team_id, away_team_id, kickoff_at=None, status='scheduled',
                 stage='league', is_final=False, venue_name=None, score=None,
                 events=None, created_at=None, finished_at=None):
        self.id = id
        self.home_team_id = home_team_id
        self.away_team_id = away_team_id
        self.kickoff_at = parse_kickoff(kickoff_at)
        self.status = status
        self.stage = stage
        self.is_final = is_final
        self.venue_name = venue_name
        self.score = score if score else {'home': 0, 'away': 0}
        self.events = list(events) if events else []
        self.created_at = parse_kickoff(created_at)
        self.finished_at = parse_kickoff(finished_at)

    @property
    def is_scheduled(self):
        """Ready to play: both teams, a kickoff and a venue are set."""
        return bool(self.home_team_id and self.away_team_id and self.kickoff_at and self.venue_name)

    def involves(self, team_id):
        return team_id in (self.home_team_id, self.away_team_id)

    def add_event(self, minute, type, team, player=None):
        """Append a match event; a goal also raises that side's score."""
        event = {'minute': minute, 'type': type, 'team': team}
        if player:
            event['player'] = player
        self.events.append(event)
        if type == 'goal':
            self.score[team] = self.score.get(team, 0) + 1
        return event

    def to_dict(self):
        return {
            'id': self.id,
            'homeTeamId': self.home_team_id,
            'awayTeamId': self.away_team_id,
            'kickoffAt': format_kickoff(self.kickoff_at),
            'status': self.status,
            'stage': self.stage,
            'isFinal': self.is_final,
            'venueName': self.venue_name,
            'score': dict(self.score),
            'events': [dict(event) for event in self.events],
            'isScheduled': self.is_scheduled,
            'createdAt': format_kickoff(self.created_at),
            'finishedAt': format_kickoff(self.finished_at),
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            home_team_id=data.get('homeTeamId'),
            away_team_id=data.get('awayTeamId'),
            kickoff_at=data.get('kickoffAt'),
            status=data.get('status', 'scheduled'),
            stage=data.get('stage', 'league'),
            is_final=data.get('isFinal', False),
            venue_name=data.get('venueName'),
            score=data.get('score'),
            events=data.get('events'),
            created_at=data.get('createdAt'),
            finished_at=data.get('finishedAt'),
        )

    def __repr__(self):
        return (f"Fixture(id={self.id}, home={self.home_team_id}, away={self.away_team_id}, "
                f"kickoff_at={format_kickoff(self.kickoff_at)}, status={self.status})")
