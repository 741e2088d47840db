"""Errors raised while deriving match state from submitted scores."""


class MatchStateError(Exception):
    """Base class for match-state derivation failures."""


class InvalidScoreData(MatchStateError):
    """A score submission carried a missing or non-numeric field."""

    def __init__(self, field, message=None):
        self.field = field
        super().__init__(message or f"Invalid score data: '{field}' must be a number.")


class MissingScoreData(MatchStateError):
    """Winner resolution needs an entry for both teams, and one is absent."""

    def __init__(self, match_id, team_id):
        self.match_id = match_id
        self.team_id = team_id
        # the stored entry that triggered the check, set by the engine
        self.entry = None
        super().__init__(
            f"Team {team_id} has not recorded a score for match {match_id} yet; "
            f"winner cannot be determined."
        )


class MatchNotFound(MatchStateError):
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found.")


class ConcurrentUpdate(MatchStateError):
    """The match changed between reading its history and writing derived fields."""

    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} was modified concurrently.")
