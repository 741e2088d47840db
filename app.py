import os
import logging
import traceback
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from utils.helpers import load_config, PROJECT_ROOT
from database import db
from database.models import (
    Tournament,
    Team as DBTeam,
    Player as DBPlayer,
    PlayerMatchScore,
    Match as DBMatch,
    ScoreEntry,
    WICKET_KINDS,
)
from engine.exceptions import (
    ConcurrentUpdate,
    InvalidScoreData,
    MatchNotFound,
    MissingScoreData,
)
from engine.match_state_engine import MatchStateEngine, utc_now
from engine.score_store import SqlScoreStore
from engine.scoring_rules import compute_run_rate, resolve_status
from routes.tournament_routes import register_tournament_routes
from routes.team_routes import register_team_routes
from routes.player_routes import register_player_routes
from routes.match_routes import register_match_routes
from routes.score_routes import register_score_routes


def _resolve_database_uri(config):
    """Env override first, then config. Relative sqlite paths are anchored at PROJECT_ROOT."""
    uri = os.getenv("CRICTRACK_DB_URI") or config.get("database", {}).get("uri")
    prefix = "sqlite:///"
    if uri.startswith(prefix) and uri != "sqlite:///:memory:":
        path = uri[len(prefix):]
        if not os.path.isabs(path):
            path = os.path.join(PROJECT_ROOT, path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        uri = prefix + path
    return uri


def _setup_logging(app, config):
    log_cfg = config.get("logging", {})
    log_dir = log_cfg.get("dir") or "logs"
    if not os.path.isabs(log_dir):
        log_dir = os.path.join(PROJECT_ROOT, log_dir)
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "execution.log")
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)

    # Clear existing handlers to avoid duplicates
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=int(log_cfg.get("max_bytes", 10 * 1024 * 1024)),
        backupCount=int(log_cfg.get("backup_count", 5)),
        encoding='utf-8'
    )
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[file_handler, console_handler])

    app.logger = logging.getLogger(config.get("app", {}).get("name") or "CricTrack")
    app.logger.setLevel(level)


def _register_error_handlers(app):
    @app.errorhandler(InvalidScoreData)
    def handle_invalid_score(e):
        app.logger.info(f"Rejected score submission: {e}")
        return jsonify({"error": str(e), "field": e.field}), 400

    @app.errorhandler(MissingScoreData)
    def handle_missing_score(e):
        app.logger.info(f"Winner not resolvable yet: {e}")
        body = {"error": str(e), "match_id": e.match_id, "team_id": e.team_id, "score": None}
        if e.entry is not None:
            body["score"] = e.entry.to_dict()
        return jsonify(body), 409

    @app.errorhandler(MatchNotFound)
    def handle_match_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(ConcurrentUpdate)
    def handle_concurrent_update(e):
        app.logger.warning(str(e))
        return jsonify({"error": f"{e} Please retry."}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


# ────── App Factory ──────
def create_app(config=None):
    # --- Flask setup ---
    app = Flask(__name__)
    config = config or load_config()

    # --- Secret key setup ---
    secret = config.get("app", {}).get("secret_key")
    if not secret or not isinstance(secret, str):
        secret = os.getenv("FLASK_SECRET_KEY", None)
        if not secret:
            secret = os.urandom(24).hex()
            print("[WARN] Using random Flask SECRET_KEY; sessions won't persist across restarts")
    app.config["SECRET_KEY"] = secret

    # --- Logging setup (logs to file + terminal) ---
    _setup_logging(app, config)

    # --- Database ---
    app.config["SQLALCHEMY_DATABASE_URI"] = _resolve_database_uri(config)
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["TESTING"] = os.getenv("CRICTRACK_TEST_MODE") == "1"
    db.init_app(app)
    with app.app_context():
        db.create_all()

    # --- Match-state engine (one per app; store uses the app's db session) ---
    engine = MatchStateEngine(SqlScoreStore(db), clock=utc_now)
    app.extensions["match_state_engine"] = engine

    # --- Request logging ---
    @app.before_request
    def log_request():
        app.logger.info(f"{request.remote_addr} {request.method} {request.path}")

    @app.route("/health")
    def health_check():
        return jsonify({"status": "ok", "time": utc_now().isoformat() + "Z"})

    register_tournament_routes(app, db=db, Tournament=Tournament)
    register_team_routes(app, db=db, DBTeam=DBTeam)
    register_player_routes(
        app,
        db=db,
        DBPlayer=DBPlayer,
        DBTeam=DBTeam,
        DBMatch=DBMatch,
        PlayerMatchScore=PlayerMatchScore,
    )
    register_match_routes(
        app,
        db=db,
        DBMatch=DBMatch,
        DBTeam=DBTeam,
        Tournament=Tournament,
        ScoreEntry=ScoreEntry,
        compute_run_rate=compute_run_rate,
        resolve_status=resolve_status,
        clock=lambda: engine.clock(),
    )
    register_score_routes(
        app,
        db=db,
        ScoreEntry=ScoreEntry,
        DBPlayer=DBPlayer,
        WICKET_KINDS=WICKET_KINDS,
        match_state_engine=engine,
    )

    _register_error_handlers(app)

    return app


# ────── Run Server ──────
if __name__ == "__main__":
    try:
        app_config = load_config()
        app = create_app(app_config)

        HOST = app_config["server"]["host"]
        PORT = int(app_config["server"]["port"])

        print("✅ CricTrack is up and running!")
        print(f"🌐 API at: http://{HOST}:{PORT}")
        print("🔐 Press Ctrl+C to stop the server.\n")

        app.run(host=HOST, port=PORT, debug=False, use_reloader=False)

    except Exception:
        print("❌ Failed to start CricTrack:")
        traceback.print_exc()
