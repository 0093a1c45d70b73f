import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as courtslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "courtslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Every wall-clock question ("today", default dates) uses this zone
    SCHEDULE_TIMEZONE = os.getenv("SCHEDULE_TIMEZONE", "Asia/Karachi")

    # Default slot template for newly created courts
    DEFAULT_OPENING_TIME = os.getenv("DEFAULT_OPENING_TIME", "09:00:00")
    DEFAULT_CLOSING_TIME = os.getenv("DEFAULT_CLOSING_TIME", "23:00:00")
    DEFAULT_SLOT_MINUTES = int(os.getenv("DEFAULT_SLOT_MINUTES", "60"))

    # Cancellation codes
    CANCELLATION_CODE_LENGTH = int(os.getenv("CANCELLATION_CODE_LENGTH", "6"))
    CANCELLATION_CODE_TTL_SECONDS = int(os.getenv("CANCELLATION_CODE_TTL_SECONDS", "600"))  # 10 minutes
    CANCELLATION_MAX_ATTEMPTS = int(os.getenv("CANCELLATION_MAX_ATTEMPTS", "5"))
    CANCELLATION_NOTIFY_EMAIL = os.getenv("CANCELLATION_NOTIFY_EMAIL")

    # Dashboard
    RECENT_BOOKINGS_LIMIT = int(os.getenv("RECENT_BOOKINGS_LIMIT", "5"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SMTP_HOST = None
