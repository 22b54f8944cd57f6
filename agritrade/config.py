# config.py
import os


def _flag(name, default="0"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", os.getenv("SECRET_KEY", "dev"))
    JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "720"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # good for noisy networks / restarts
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
    }
    SESSION_COOKIE_SAMESITE = "Lax"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CREATE_TABLES_ON_START = _flag("CREATE_TABLES_ON_START")
    STOCK_HISTORY_LIMIT = 30


class DevConfig(BaseConfig):
    # falls back to instance/agritrade.db when unset
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI")


class ProdConfig(BaseConfig):
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI")  # must be set


class TestConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test"
    JWT_SECRET_KEY = "test-jwt"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CREATE_TABLES_ON_START = False
    LOG_LEVEL = "DEBUG"


CONFIGS = {
    "dev": DevConfig,
    "prod": ProdConfig,
    "test": TestConfig,
}
