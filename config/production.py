import os

from config.log_settings import build_logging

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "carecheck_db"),
}

DEFAULT_FALLBACK_RATE = float(os.getenv("DEFAULT_FALLBACK_RATE", "15.0"))

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "https://carecheck.example.org")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LOGGING = build_logging(os.getenv("LOG_LEVEL", "INFO"))
