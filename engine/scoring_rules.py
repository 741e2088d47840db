"""
Pure rules for derived match fields: run rate, lifecycle status and winner.

None of these touch storage; MatchStateEngine feeds them the match's
current score history.
"""

import logging

from engine.exceptions import MissingScoreData

logger = logging.getLogger(__name__)

STATUS_UPCOMING = 'upcoming'
STATUS_STARTED = 'started'
STATUS_COMPLETED = 'completed'


def compute_run_rate(score, overs):
    """
    Runs per over.

    Zero, negative or missing overs give 0 rather than an error.
    E.g., compute_run_rate(150, 20) -> 7.5
    """
    if overs is None or overs <= 0:
        return 0
    return score / overs


def resolve_status(match_date, now):
    """
    Lifecycle state of a match from its scheduled date.

    NOTE: 'started' is only returned on exact equality of the two
    timestamps. A real clock almost never hits that tick, so in practice
    a match flips straight from upcoming to completed.
    """
    if now < match_date:
        return STATUS_UPCOMING
    if now > match_date:
        return STATUS_COMPLETED
    return STATUS_STARTED


def _first_entry_for(scores, team_id):
    for entry in scores:
        if entry.team_id == team_id:
            return entry
    return None


def resolve_winner(scores, team_a, team_b, match_id=None):
    """
    Compare the first recorded innings of each team.

    Args:
        scores: Insertion-ordered score entries (anything with team_id and score)
        team_a: First participating team id
        team_b: Second participating team id
        match_id: Only used to label the error

    Returns:
        The id of the team with the strictly greater total, or None on a tie.

    Raises:
        MissingScoreData: If either team has no entry in scores
    """
    entry_a = _first_entry_for(scores, team_a)
    if entry_a is None:
        raise MissingScoreData(match_id, team_a)

    entry_b = _first_entry_for(scores, team_b)
    if entry_b is None:
        raise MissingScoreData(match_id, team_b)

    if entry_a.score > entry_b.score:
        return team_a
    if entry_b.score > entry_a.score:
        return team_b

    # Tie - no tie-break by run rate, wickets or overs
    logger.debug(f"Match {match_id}: scores level at {entry_a.score}")
    return None
