# config.py
import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "mysql+pymysql://root:@localhost/challengeboard"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # comma separated, "*" allows any origin
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    ACTIVITY_FEED_LIMIT = int(os.environ.get("ACTIVITY_FEED_LIMIT", 10))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"
