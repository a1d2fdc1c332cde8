import os

from .config import *  # noqa: F401,F403

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, the app applies database/schema.sql on startup (CREATE TABLE IF NOT EXISTS).
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
