from datetime import datetime
from sqlalchemy.orm import relationship
from database import db

# Dismissal kinds accepted on a wicket event
WICKET_KINDS = (
    'bowled',
    'caught',
    'lbw',
    'run out',
    'stumped',
    'hit wicket',
    'retired hurt',
    'obstructing the field',
)

MATCH_STATUSES = ('upcoming', 'started', 'completed')


class Tournament(db.Model):
    """Tournament / League Container"""
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    matches = relationship('Match', backref='tournament', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "date": _iso(self.date),
            "created_at": _iso(self.created_at),
        }


class Team(db.Model):
    """Cricket Team"""
    __tablename__ = 'teams'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    players = relationship('Player', backref='team', lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "created_at": _iso(self.created_at),
        }


class Player(db.Model):
    """Player identity and per-match individual scores"""
    __tablename__ = 'players'

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=True, index=True)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer)
    mobile = db.Column(db.String(30))
    image = db.Column(db.String(255))  # URL or path
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    scores = relationship('PlayerMatchScore', backref='player', cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "team_id": self.team_id,
            "mobile": self.mobile,
            "image": self.image,
            "scores": [s.to_dict() for s in self.scores],
        }


class PlayerMatchScore(db.Model):
    """A player's individual score in a specific match"""
    __tablename__ = 'player_match_scores'

    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id', ondelete='CASCADE'), nullable=False, index=True)
    match_id = db.Column(db.Integer, db.ForeignKey('matches.id'), nullable=False, index=True)
    score = db.Column(db.Integer, default=0, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('player_id', 'match_id', name='uq_player_match_score'),
    )

    def to_dict(self):
        return {"match_id": self.match_id, "score": self.score}


class Match(db.Model):
    """Scheduled match between exactly two teams.

    winner_team_id and match_status are derived from the score history by
    engine.match_state_engine.MatchStateEngine; the routes never write them
    from request input.
    """
    __tablename__ = 'matches'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id'), nullable=False, index=True)

    team_a_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False, index=True)
    team_b_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False, index=True)

    date = db.Column(db.DateTime, nullable=False)

    # Derived state
    match_status = db.Column(db.String(20), default='upcoming', nullable=False)
    winner_team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=True)

    # Bumped on every derived-state write; see SqlScoreStore.update_derived_fields
    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint('team_a_id != team_b_id', name='ck_match_distinct_teams'),
        db.CheckConstraint(
            "match_status IN ('upcoming', 'started', 'completed')",
            name='ck_match_status',
        ),
    )

    # Relationships
    team_a = relationship('Team', foreign_keys=[team_a_id])
    team_b = relationship('Team', foreign_keys=[team_b_id])
    winner = relationship('Team', foreign_keys=[winner_team_id])
    scores = relationship(
        'ScoreEntry',
        backref='match',
        order_by='ScoreEntry.id',
        cascade="all, delete-orphan",
    )

    @property
    def team_ids(self):
        return (self.team_a_id, self.team_b_id)

    def to_dict(self, include_scores=True):
        data = {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "teams": [self.team_a_id, self.team_b_id],
            "date": _iso(self.date),
            "match_status": self.match_status,
            "winner": self.winner_team_id,
        }
        if include_scores:
            data["scores"] = [s.to_dict() for s in self.scores]
        return data


class ScoreEntry(db.Model):
    """One team's innings score in a match"""
    __tablename__ = 'score_entries'

    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey('matches.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False, index=True)

    score = db.Column(db.Float, nullable=False)
    overs = db.Column(db.Float, nullable=False)
    run_rate = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    team = relationship('Team')
    wickets = relationship(
        'Wicket',
        backref='score_entry',
        order_by='Wicket.id',
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.Index('ix_score_entry_match_team', 'match_id', 'team_id'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "match_id": self.match_id,
            "team_id": self.team_id,
            "score": self.score,
            "overs": self.overs,
            "run_rate": self.run_rate,
            "wickets": [w.to_dict() for w in self.wickets],
            "created_at": _iso(self.created_at),
        }


class Wicket(db.Model):
    """Dismissal event recorded against a score entry"""
    __tablename__ = 'wickets'

    id = db.Column(db.Integer, primary_key=True)
    score_entry_id = db.Column(
        db.Integer,
        db.ForeignKey('score_entries.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    kind = db.Column(db.String(30), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('players.id'), nullable=True)

    player = relationship('Player')

    def to_dict(self):
        return {"type": self.kind, "player_id": self.player_id}


def _iso(value):
    return value.isoformat() if value else None
