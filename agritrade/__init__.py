# agritrade/__init__.py
import os
import logging
from pathlib import Path

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from sqlalchemy import MetaData

# ----------------- Logging -----------------
log = logging.getLogger(__name__)

# ----------------- SQLAlchemy naming (portable across engines) -----------------
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# ----------------- Extensions -----------------
db = SQLAlchemy(metadata=MetaData(naming_convention=NAMING_CONVENTION))
login_manager = LoginManager()
migrate = Migrate()


def _resolve_config(config):
    """Accept a config class, a short name ("dev", "prod", "test") or None."""
    from agritrade import config as config_module

    if config is None:
        config = os.environ.get("AGRITRADE_CONFIG", "dev")
    if isinstance(config, str):
        return config_module.CONFIGS[config.lower()]
    return config


# ----------------- App Factory -----------------
def create_app(config=None, **overrides) -> Flask:
    app = Flask(__name__, instance_relative_config=True)

    # Instance path (allow override via env)
    custom_instance = os.environ.get("FLASK_INSTANCE_PATH")
    if custom_instance:
        app.instance_path = custom_instance
    os.makedirs(app.instance_path, exist_ok=True)

    app.config.from_object(_resolve_config(config))

    # Resolve DB URI: prefer SQLALCHEMY_DATABASE_URI, then DATABASE_URL, else SQLite
    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or os.environ.get("DATABASE_URL")
    if not uri:
        db_path = Path(app.instance_path) / "agritrade.db"
        uri = f"sqlite:///{db_path}"
    if uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    app.config["SQLALCHEMY_DATABASE_URI"] = uri

    app.config.update(overrides)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    # Init extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    from agritrade import auth as auth_module
    auth_module.init_login_manager(login_manager)

    from agritrade.errors import register_error_handlers
    register_error_handlers(app)

    # ----------------- Blueprints (register each independently) -----------------
    try:
        from agritrade.routes import auth
        app.register_blueprint(auth.bp)
    except Exception as e:
        app.logger.exception("Auth blueprint not registered: %s", e)

    # Master data
    try:
        from agritrade.routes import crops
        app.register_blueprint(crops.bp)
    except Exception as e:
        app.logger.exception("Crops blueprint failed: %s", e)
    try:
        from agritrade.routes import farmers
        app.register_blueprint(farmers.bp)
    except Exception as e:
        app.logger.exception("Farmers blueprint failed: %s", e)

    # Transactions
    try:
        from agritrade.routes import purchases
        app.register_blueprint(purchases.bp)
    except Exception as e:
        app.logger.exception("Purchases blueprint failed: %s", e)
    try:
        from agritrade.routes import sales
        app.register_blueprint(sales.bp)
    except Exception as e:
        app.logger.exception("Sales blueprint failed: %s", e)
    try:
        from agritrade.routes import expenses
        app.register_blueprint(expenses.bp)
    except Exception as e:
        app.logger.exception("Expenses blueprint failed: %s", e)

    # Stock, dashboard and reports
    try:
        from agritrade.routes import stock
        app.register_blueprint(stock.bp)
    except Exception as e:
        app.logger.exception("Stock blueprint failed: %s", e)
    try:
        from agritrade.routes import dashboard
        app.register_blueprint(dashboard.bp)
    except Exception as e:
        app.logger.exception("Dashboard blueprint failed: %s", e)
    try:
        from agritrade.routes import reports
        app.register_blueprint(reports.bp)
    except Exception as e:
        app.logger.exception("Reports blueprint failed: %s", e)

    # ----------------- CLI -----------------
    from agritrade.seed import seed_command
    app.cli.add_command(seed_command)

    # ----------------- DB bootstrap (DEV only) -----------------
    # In production, prefer migrations. For local dev convenience:
    if app.config.get("CREATE_TABLES_ON_START"):
        with app.app_context():
            from agritrade import models  # ensure models are imported
            db.create_all()

    # ----------------- Health -----------------
    @app.get("/api/health")
    def __health():
        return {"message": "AgriTrade API is running", "ok": True}, 200

    return app
