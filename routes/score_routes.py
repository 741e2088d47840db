"""Score submission route registration."""

from flask import jsonify, request

from engine.exceptions import InvalidScoreData
from engine.score_store import ScoreSubmission, WicketEvent


def register_score_routes(app, *, db, ScoreEntry, DBPlayer, WICKET_KINDS, match_state_engine):

    def _parse_id(data, *keys):
        for key in keys:
            if key in data:
                value = data[key]
                if isinstance(value, bool):
                    raise InvalidScoreData(keys[0], f"Invalid score data: '{keys[0]}' must be an integer id.")
                try:
                    return int(value)
                except (TypeError, ValueError, OverflowError):
                    raise InvalidScoreData(keys[0], f"Invalid score data: '{keys[0]}' must be an integer id.")
        raise InvalidScoreData(keys[0], f"Invalid score data: '{keys[0]}' is required.")

    def _parse_wickets(raw):
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise InvalidScoreData("wickets", "Invalid score data: 'wickets' must be a list.")
        wickets = []
        for idx, item in enumerate(raw, start=1):
            if not isinstance(item, dict):
                raise InvalidScoreData("wickets", f"Invalid score data: wicket {idx} must be an object.")
            kind = str(item.get("type", "")).strip().lower()
            if kind not in WICKET_KINDS:
                raise InvalidScoreData(
                    "wickets",
                    f"Invalid score data: wicket {idx} has unknown dismissal type '{item.get('type')}'.",
                )
            player = item.get("player_id", item.get("player"))
            if player is not None:
                if isinstance(player, bool):
                    raise InvalidScoreData("wickets", f"Invalid score data: wicket {idx} player must be an id.")
                try:
                    player = int(player)
                except (TypeError, ValueError, OverflowError):
                    raise InvalidScoreData("wickets", f"Invalid score data: wicket {idx} player must be an id.")
                if db.session.get(DBPlayer, player) is None:
                    raise InvalidScoreData("wickets", f"Invalid score data: wicket {idx} player {player} does not exist.")
            wickets.append(WicketEvent(kind=kind, player_id=player))
        return wickets

    @app.route("/scores", methods=["POST"])
    def submit_score():
        """Record an innings score; winner and status are re-derived by the engine."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid or missing JSON body"}), 400

        match_id = _parse_id(data, "match_id", "match")
        submission = ScoreSubmission(
            team_id=_parse_id(data, "team_id", "team"),
            score=data.get("score"),
            overs=data.get("overs"),
            wickets=_parse_wickets(data.get("wickets")),
        )
        if "runRate" in data or "run_rate" in data:
            app.logger.info(f"Ignoring client-supplied run rate for match {match_id}")

        state = match_state_engine.on_score_submitted(match_id, submission)

        return jsonify({
            "score": state.entry.to_dict(),
            "winner": state.winner,
            "matchStatus": state.match_status,
        }), 201

    @app.route("/scores", methods=["GET"])
    def list_scores():
        query = db.select(ScoreEntry).order_by(ScoreEntry.id)
        match_id = request.args.get("match_id", type=int)
        team_id = request.args.get("team_id", type=int)
        if match_id is not None:
            query = query.filter_by(match_id=match_id)
        if team_id is not None:
            query = query.filter_by(team_id=team_id)
        entries = db.session.execute(query).scalars().all()
        return jsonify([e.to_dict() for e in entries])
