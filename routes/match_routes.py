"""Match route registration and derived-state query endpoints."""

from flask import jsonify, request
from sqlalchemy.orm import selectinload

from utils.helpers import parse_datetime


def register_match_routes(
    app,
    *,
    db,
    DBMatch,
    DBTeam,
    Tournament,
    ScoreEntry,
    compute_run_rate,
    resolve_status,
    clock,
):
    def _parse_teams(data):
        """
        Accept either {"teams": [a, b]} or {"team_a_id": a, "team_b_id": b}.
        Returns ((team_a, team_b), error_str|None).
        """
        if "teams" in data:
            raw = data.get("teams")
        else:
            raw = [data.get("team_a_id"), data.get("team_b_id")]
        if not isinstance(raw, list) or len(raw) != 2:
            return None, "A match needs exactly two teams"
        try:
            ids = tuple(int(t) for t in raw if not isinstance(t, bool))
        except (TypeError, ValueError):
            return None, "Invalid team selection"
        if len(ids) != 2:
            return None, "Invalid team selection"
        if ids[0] == ids[1]:
            return None, "Please select two different teams"
        return ids, None

    def _get_match_or_404(match_id):
        match = db.session.get(DBMatch, match_id)
        if match is None:
            return None, (jsonify({"error": f"Match {match_id} not found"}), 404)
        return match, None

    @app.route("/matches", methods=["GET"])
    def list_matches():
        query = db.select(DBMatch).options(selectinload(DBMatch.scores)).order_by(DBMatch.date, DBMatch.id)
        tournament_id = request.args.get("tournament_id", type=int)
        if tournament_id is not None:
            query = query.filter_by(tournament_id=tournament_id)
        matches = db.session.execute(query).scalars().all()
        return jsonify([m.to_dict() for m in matches])

    @app.route("/matches", methods=["POST"])
    def create_match():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid or missing JSON body"}), 400

        # winner / matchStatus / scores are derived; ignore anything the client sends
        ignored = [k for k in ("winner", "matchStatus", "match_status", "scores") if k in data]
        if ignored:
            app.logger.info(f"Ignoring derived fields on match create: {ignored}")

        tournament_key = "tournament_id" if "tournament_id" in data else "tournament"
        try:
            tournament_id = int(data.get(tournament_key))
        except (TypeError, ValueError):
            return jsonify({"error": "Invalid tournament"}), 400
        if db.session.get(Tournament, tournament_id) is None:
            return jsonify({"error": f"Tournament {tournament_id} not found"}), 404

        team_ids, err = _parse_teams(data)
        if err:
            return jsonify({"error": err}), 400
        found = db.session.execute(
            db.select(DBTeam.id).filter(DBTeam.id.in_(team_ids))
        ).scalars().all()
        if len(set(found)) != 2:
            return jsonify({"error": "One or more teams not found"}), 404

        try:
            date = parse_datetime(data.get("date"))
        except ValueError:
            return jsonify({"error": "Invalid or missing match date"}), 400

        try:
            match = DBMatch(
                tournament_id=tournament_id,
                team_a_id=team_ids[0],
                team_b_id=team_ids[1],
                date=date,
                match_status=resolve_status(date, clock()),
                winner_team_id=None,
            )
            db.session.add(match)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            app.logger.error(f"Error creating match: {e}", exc_info=True)
            return jsonify({"error": "Could not create match"}), 500

        app.logger.info(f"Match {match.id} created: {team_ids[0]} vs {team_ids[1]} on {date.isoformat()} "
                        f"({match.match_status})")
        return jsonify(match.to_dict()), 201

    @app.route("/matches/<int:match_id>", methods=["GET"])
    def match_detail(match_id):
        match, error = _get_match_or_404(match_id)
        if error:
            return error
        return jsonify(match.to_dict())

    @app.route("/matches/<int:match_id>/winner", methods=["GET"])
    def match_winner(match_id):
        match, error = _get_match_or_404(match_id)
        if error:
            return error
        winner = match.winner.to_dict() if match.winner else None
        return jsonify({"winner": winner})

    @app.route("/matches/<int:match_id>/status", methods=["GET"])
    def match_status(match_id):
        match, error = _get_match_or_404(match_id)
        if error:
            return error
        # status moves with the clock, not only when a score arrives
        return jsonify({"matchStatus": resolve_status(match.date, clock())})

    @app.route("/matches/<int:match_id>/runrate/<int:team_id>", methods=["GET"])
    def match_run_rate(match_id, team_id):
        match, error = _get_match_or_404(match_id)
        if error:
            return error

        entry = db.session.execute(
            db.select(ScoreEntry)
            .filter_by(match_id=match_id, team_id=team_id)
            .order_by(ScoreEntry.id)
            .limit(1)
        ).scalar_one_or_none()
        if entry is None:
            return jsonify({"error": f"Team {team_id} has no score recorded in match {match_id}"}), 404

        # Recompute rather than trust the stored value
        return jsonify({"runRate": compute_run_rate(entry.score, entry.overs)})
