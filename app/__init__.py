import os

from flask import Flask, g, jsonify
from flask_login import current_user

from database import SessionLocal, init_db
from extensions import login_manager
from app.blueprints.admin import admin_bp
from app.blueprints.auth import auth_bp
from app.blueprints.main import main_bp
from app.blueprints.products import products_bp
from app.config import load_config
from app.services.bulk_reindex import schedule_search_index
from app.services.index_tasks import init_index_tasks
from app.services.product_service import ResourceNotFound


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.secret_key = os.environ.get("STOREFRONT_SECRET_KEY", "change-me")
    load_config(app, config_overrides)
    app.logger.setLevel(str(app.config.get("LOG_LEVEL") or "INFO").upper())

    login_manager.init_app(app)
    app.register_blueprint(products_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    init_db()

    @app.before_request
    def bind_db_session():
        g.db = SessionLocal()

    @app.before_request
    def attach_current_user():
        g.current_user = current_user

    @app.teardown_appcontext
    def remove_db_session(exception=None):
        SessionLocal.remove()

    @app.errorhandler(ResourceNotFound)
    def handle_not_found(exc):
        return jsonify({"error": str(exc)}), 404

    init_index_tasks(app)
    schedule_search_index(app)
    return app
