"""Storage collaborator used by MatchStateEngine."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update

from database.models import Match, ScoreEntry, Wicket
from engine.exceptions import ConcurrentUpdate, MatchNotFound

logger = logging.getLogger(__name__)


@dataclass
class WicketEvent:
    kind: str
    player_id: Optional[int] = None


@dataclass
class ScoreSubmission:
    """Incoming innings score; run_rate is filled in by the engine."""
    team_id: int
    score: float
    overs: float
    wickets: List[WicketEvent] = field(default_factory=list)
    run_rate: Optional[float] = None


@dataclass
class MatchSnapshot:
    id: int
    team_a_id: int
    team_b_id: int
    date: datetime
    scores: list
    winner_team_id: Optional[int] = None
    match_status: Optional[str] = None
    version: int = 1

    @property
    def team_ids(self):
        return (self.team_a_id, self.team_b_id)


class ScoreStore(ABC):
    """
    Interface the engine needs from persistence.

    Each call must be atomic for a single match.
    """

    @abstractmethod
    def load_match(self, match_id) -> MatchSnapshot:
        raise NotImplementedError

    @abstractmethod
    def append_score(self, match_id, submission: ScoreSubmission):
        raise NotImplementedError

    @abstractmethod
    def update_derived_fields(self, match_id, winner, status, expected_version=None):
        raise NotImplementedError


class SqlScoreStore(ScoreStore):
    """ScoreStore backed by the Flask-SQLAlchemy session."""

    def __init__(self, db):
        self.db = db

    def load_match(self, match_id):
        match = self.db.session.execute(
            select(Match)
            .filter_by(id=match_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if match is None:
            raise MatchNotFound(match_id)

        scores = self.db.session.execute(
            select(ScoreEntry)
            .filter_by(match_id=match_id)
            .order_by(ScoreEntry.id)
        ).scalars().all()

        return MatchSnapshot(
            id=match.id,
            team_a_id=match.team_a_id,
            team_b_id=match.team_b_id,
            date=match.date,
            scores=list(scores),
            winner_team_id=match.winner_team_id,
            match_status=match.match_status,
            version=match.version,
        )

    def append_score(self, match_id, submission):
        entry = ScoreEntry(
            match_id=match_id,
            team_id=submission.team_id,
            score=submission.score,
            overs=submission.overs,
            run_rate=submission.run_rate,
        )
        for w in submission.wickets:
            entry.wickets.append(Wicket(kind=w.kind, player_id=w.player_id))

        try:
            self.db.session.add(entry)
            self.db.session.commit()
        except Exception:
            self.db.session.rollback()
            raise

        logger.info(f"Score appended to match {match_id}: team {submission.team_id} "
                    f"{submission.score}/{submission.overs} ov (RR {submission.run_rate})")
        return entry

    def update_derived_fields(self, match_id, winner, status, expected_version=None):
        """
        Write winner and status together in a single UPDATE.

        When expected_version is given the row is only touched if nobody
        else wrote derived fields since it was read.
        """
        stmt = (
            update(Match)
            .where(Match.id == match_id)
            .values(
                winner_team_id=winner,
                match_status=status,
                version=Match.version + 1,
            )
        )
        if expected_version is not None:
            stmt = stmt.where(Match.version == expected_version)

        try:
            result = self.db.session.execute(stmt)
        except Exception:
            self.db.session.rollback()
            raise

        if result.rowcount == 0:
            self.db.session.rollback()
            if expected_version is not None:
                raise ConcurrentUpdate(match_id)
            raise MatchNotFound(match_id)

        self.db.session.commit()
        logger.info(f"Match {match_id} derived state: winner={winner}, status={status}")
