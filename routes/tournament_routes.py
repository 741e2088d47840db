"""Tournament route registration."""

from flask import jsonify, request

from utils.helpers import parse_datetime


def register_tournament_routes(app, *, db, Tournament):
    @app.route("/tournaments", methods=["GET"])
    def list_tournaments():
        tournaments = db.session.execute(
            db.select(Tournament).order_by(Tournament.created_at.desc(), Tournament.id.desc())
        ).scalars().all()
        return jsonify([t.to_dict() for t in tournaments])

    @app.route("/tournaments", methods=["POST"])
    def create_tournament():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid or missing JSON body"}), 400

        name = str(data.get("name") or "").strip()
        if not name:
            return jsonify({"error": "Tournament name is required"}), 400

        date = None
        if data.get("date") is not None:
            try:
                date = parse_datetime(data["date"])
            except ValueError:
                return jsonify({"error": "Invalid tournament date"}), 400

        try:
            t = Tournament(name=name, date=date)
            db.session.add(t)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            app.logger.error(f"Error creating tournament: {e}", exc_info=True)
            return jsonify({"error": "Could not create tournament"}), 500

        app.logger.info(f"Tournament '{name}' created (id={t.id})")
        return jsonify(t.to_dict()), 201
