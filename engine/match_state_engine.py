import logging
import math
import threading
from collections import namedtuple
from contextlib import contextmanager
from datetime import datetime, timezone

from engine.exceptions import ConcurrentUpdate, InvalidScoreData, MissingScoreData
from engine.scoring_rules import compute_run_rate, resolve_status, resolve_winner

logger = logging.getLogger(__name__)

MatchState = namedtuple("MatchState", ["winner", "match_status", "entry"], defaults=[None])


def utc_now():
    """Naive UTC timestamp, matching how match dates are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MatchLockRegistry:
    """
    Hands out one lock per match id so submissions for a match run one at a time.

    An entry lives only while some caller holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}  # match_id -> [lock, holders]

    def __len__(self):
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, match_id):
        with self._guard:
            slot = self._locks.setdefault(match_id, [threading.Lock(), 0])
            slot[1] += 1
        try:
            with slot[0]:
                yield
        finally:
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[match_id]


class MatchStateEngine:
    """
    Re-derives a match's winner and status every time a score is submitted.

    The read-modify-write runs under a per-match lock. The derived write is
    also version-checked, so a writer outside this process (another worker)
    forces a re-read instead of persisting a stale pair.
    """

    MAX_WRITE_ATTEMPTS = 3

    def __init__(self, store, clock=utc_now, locks=None):
        self.store = store
        self.clock = clock
        self.locks = locks if locks is not None else MatchLockRegistry()

    @staticmethod
    def _require_number(submission, field):
        value = getattr(submission, field, None)
        if value is None:
            raise InvalidScoreData(field, f"Invalid score data: '{field}' is required.")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidScoreData(field)
        if not math.isfinite(value):
            raise InvalidScoreData(field, f"Invalid score data: '{field}' must be a finite number.")
        return value

    def on_score_submitted(self, match_id, submission):
        """
        Record a score and return the freshly derived MatchState.

        Raises:
            InvalidScoreData: score/overs missing or non-numeric, or the team
                is not playing in this match. Nothing is written.
            MatchNotFound: No such match.
            MissingScoreData: Only one team has a score so far. The entry is
                kept (attached as `entry`); winner and status are left as they were.
        """
        score = self._require_number(submission, "score")
        overs = self._require_number(submission, "overs")
        submission.run_rate = compute_run_rate(score, overs)

        with self.locks.hold(match_id):
            match = self.store.load_match(match_id)
            if submission.team_id not in match.team_ids:
                raise InvalidScoreData(
                    "team",
                    f"Invalid score data: team {submission.team_id} is not playing in match {match_id}.",
                )

            entry = self.store.append_score(match_id, submission)

            for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
                match = self.store.load_match(match_id)
                # MissingScoreData propagates before anything derived is written
                try:
                    winner = resolve_winner(match.scores, match.team_a_id, match.team_b_id, match_id=match_id)
                except MissingScoreData as e:
                    e.entry = entry
                    raise
                status = resolve_status(match.date, self.clock())
                try:
                    self.store.update_derived_fields(
                        match_id, winner, status, expected_version=match.version
                    )
                    break
                except ConcurrentUpdate:
                    if attempt == self.MAX_WRITE_ATTEMPTS:
                        raise
                    logger.warning(f"Match {match_id}: derived state changed underneath us, "
                                   f"retrying ({attempt}/{self.MAX_WRITE_ATTEMPTS})")

        logger.info(f"Match {match_id}: score entry {getattr(entry, 'id', None)} processed, "
                    f"winner={winner}, status={status}")
        return MatchState(winner=winner, match_status=status, entry=entry)
