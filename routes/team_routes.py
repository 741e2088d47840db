"""Team management route registration."""

from flask import jsonify, request


def register_team_routes(app, *, db, DBTeam):
    @app.route("/teams", methods=["GET"])
    def list_teams():
        teams = db.session.execute(db.select(DBTeam).order_by(DBTeam.id)).scalars().all()
        return jsonify([t.to_dict() for t in teams])

    @app.route("/teams", methods=["POST"])
    def create_team():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid or missing JSON body"}), 400

        name = str(data.get("name") or "").strip()
        address = str(data.get("address") or "").strip() or None
        if not name:
            return jsonify({"error": "Team name is required"}), 400
        if len(name) > 100:
            return jsonify({"error": "Team name must be at most 100 characters"}), 400

        try:
            team = DBTeam(name=name, address=address)
            db.session.add(team)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            app.logger.error(f"Error creating team: {e}", exc_info=True)
            return jsonify({"error": "Could not create team"}), 500

        app.logger.info(f"Team '{name}' created (id={team.id})")
        return jsonify(team.to_dict()), 201
