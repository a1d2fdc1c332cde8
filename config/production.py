import os

from .config import *  # noqa: F401,F403

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DEBUG = False
SESSION_COOKIE_SECURE = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
