import os

from .config import *  # noqa: F401,F403

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "staff_admin_test"),
}

DEBUG = False
TESTING = True

MICROSOFT_AUTH_ENABLED = False
REPLIT_AUTH_ENABLED = False

AUTO_INIT_DB = False
