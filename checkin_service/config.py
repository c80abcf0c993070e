"""
Check-in Service: Configuration
Settings come from the environment (a local .env file is loaded first).
create_app() takes this mapping and lets callers override any key.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def database_uri():
    url = os.environ.get("DATABASE_URL")
    if url:
        return url

    db_user = os.environ.get("DB_USER", "checkin_svc_user")
    db_pass = os.environ.get("DB_PASS", "password")
    db_host = os.environ.get("DB_HOST", "checkin-db")
    db_name = os.environ.get("DB_NAME", "checkin_db")
    return f"postgresql://{db_user}:{db_pass}@{db_host}/{db_name}"


def load_config():
    return {
        "SQLALCHEMY_DATABASE_URI": database_uri(),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        # Shared admin secret, compared on every admin request
        "ADMIN_TOKEN": os.environ.get("ADMIN_TOKEN", "dev-admin-token-change-me"),
        "JWT_SECRET_KEY": os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        "ADMIN_TOKEN_EXPIRES_MINUTES": _int_env("ADMIN_TOKEN_EXPIRES_MINUTES", 60),
        "CORS_ORIGIN": os.environ.get("CORS_ORIGIN", "*"),
        "CODE_LENGTH": _int_env("CODE_LENGTH", 6),
        "MAX_BATCH_SIZE": _int_env("MAX_BATCH_SIZE", 100),
        "ISSUE_MAX_ATTEMPTS": _int_env("ISSUE_MAX_ATTEMPTS", 10),
        # 0 means unlimited re-entry
        "MAX_ENTRIES_PER_CODE": _int_env("MAX_ENTRIES_PER_CODE", 0),
        "PORT": _int_env("PORT", 5000),
    }
