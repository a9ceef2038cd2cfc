# challengeboard/__init__.py
import sqlite3

from flask import Flask, current_app, jsonify
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from config import Config

from .errors import ApiError, StoreError

db = SQLAlchemy()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Init extensions
    db.init_app(app)

    origins = app.config.get("CORS_ORIGINS", "*")
    if origins != "*":
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins}})

    # -----------------------------
    # Error handlers
    # -----------------------------
    @app.errorhandler(ApiError)
    def api_error_callback(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(SQLAlchemyError)
    def store_error_callback(err):
        db.session.rollback()
        current_app.logger.exception(f"Store error: {err}")
        store_err = StoreError()
        return jsonify(store_err.to_dict()), store_err.status_code

    @app.errorhandler(404)
    def not_found_callback(err):
        return jsonify({"message": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed_callback(err):
        return jsonify({"message": "Method not allowed"}), 405

    # -----------------------------
    # IMPORT BLUEPRINTS (all routes)
    # -----------------------------
    from .routes.user_routes import users_bp
    from .routes.team_routes import teams_bp
    from .routes.challenge_routes import challenges_bp
    from .routes.progress_routes import progress_bp
    from .routes.activity_routes import activity_bp

    # -----------------------------
    # REGISTER BLUEPRINTS
    # -----------------------------
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(teams_bp, url_prefix="/api/teams")
    app.register_blueprint(challenges_bp, url_prefix="/api/challenges")
    app.register_blueprint(progress_bp, url_prefix="/api/progress")
    app.register_blueprint(activity_bp, url_prefix="/api/activity")

    @app.route("/api/health")
    def health():
        return {"status": "ok"}

    # -----------------------------
    # DB init
    # -----------------------------
    from .models import user, team, challenge  # noqa: F401  register tables

    with app.app_context():
        db.create_all()

    return app
