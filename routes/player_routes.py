"""Player route registration, including per-match individual scores."""

import math

from flask import jsonify, request


def register_player_routes(app, *, db, DBPlayer, DBTeam, DBMatch, PlayerMatchScore):

    def _optional_int(data, key):
        value = data.get(key)
        if value is None:
            return None, None
        if isinstance(value, bool):
            return None, f"'{key}' must be an integer"
        try:
            return int(value), None
        except (TypeError, ValueError):
            return None, f"'{key}' must be an integer"

    @app.route("/players", methods=["GET"])
    def list_players():
        query = db.select(DBPlayer).order_by(DBPlayer.id)
        team_id = request.args.get("team_id", type=int)
        if team_id is not None:
            query = query.filter_by(team_id=team_id)
        players = db.session.execute(query).scalars().all()
        return jsonify([p.to_dict() for p in players])

    @app.route("/players", methods=["POST"])
    def create_player():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid or missing JSON body"}), 400

        name = str(data.get("name") or "").strip()
        if not name:
            return jsonify({"error": "Player name is required"}), 400

        age, err = _optional_int(data, "age")
        if err:
            return jsonify({"error": err}), 400
        if age is not None and age < 0:
            return jsonify({"error": "'age' must not be negative"}), 400

        # The original API called this field "team"
        team_key = "team_id" if "team_id" in data else "team"
        team_id, err = _optional_int(data, team_key)
        if err:
            return jsonify({"error": err}), 400
        if team_id is not None and db.session.get(DBTeam, team_id) is None:
            return jsonify({"error": f"Team {team_id} not found"}), 404

        try:
            player = DBPlayer(
                name=name,
                age=age,
                team_id=team_id,
                mobile=(str(data["mobile"]).strip() if data.get("mobile") else None),
                image=(str(data["image"]).strip() if data.get("image") else None),
            )
            db.session.add(player)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            app.logger.error(f"Error creating player: {e}", exc_info=True)
            return jsonify({"error": "Could not create player"}), 500

        app.logger.info(f"Player '{name}' created (id={player.id}, team={team_id})")
        return jsonify(player.to_dict()), 201

    @app.route("/players/<int:player_id>/score/<int:match_id>", methods=["PUT"])
    def update_player_score(player_id, match_id):
        """Create or replace the player's individual score for a match."""
        player = db.session.get(DBPlayer, player_id)
        match = db.session.get(DBMatch, match_id)
        if not player or not match:
            return jsonify({"error": "Player or match not found"}), 404

        data = request.get_json(silent=True) or {}
        new_score = data.get("newScore", data.get("score"))
        if isinstance(new_score, bool) or not isinstance(new_score, (int, float)):
            return jsonify({"error": "'newScore' must be a number"}), 400
        if not math.isfinite(new_score) or new_score != int(new_score):
            return jsonify({"error": "'newScore' must be a whole number of runs"}), 400
        new_score = int(new_score)

        try:
            existing = db.session.execute(
                db.select(PlayerMatchScore).filter_by(player_id=player_id, match_id=match_id)
            ).scalar_one_or_none()
            if existing:
                existing.score = new_score
            else:
                db.session.add(PlayerMatchScore(player_id=player_id, match_id=match_id, score=new_score))
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            app.logger.error(f"Error updating player score: {e}", exc_info=True)
            return jsonify({"error": "Could not update player score"}), 500

        app.logger.info(f"Player {player_id} score for match {match_id} set to {new_score}")
        return jsonify({"success": True, "message": "Player score updated successfully"})
