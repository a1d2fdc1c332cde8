import os


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or os.environ.get("SESSION_SECRET") or "staff-management-session-secret"

    # MySQL
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "staff_admin")

    # Server-side session cookie
    SESSION_COOKIE_NAME = os.environ.get("SESSION_COOKIE_NAME", "staff_mgmt_sid")
    SESSION_LIFETIME_DAYS = int(os.environ.get("SESSION_LIFETIME_DAYS", "7"))

    # Microsoft Entra ID (MSAL)
    MICROSOFT_AUTH_ENABLED = _flag("MICROSOFT_AUTH_ENABLED")
    MICROSOFT_CLIENT_ID = os.environ.get("MICROSOFT_CLIENT_ID", "")
    MICROSOFT_CLIENT_SECRET = os.environ.get("MICROSOFT_CLIENT_SECRET", "")
    MICROSOFT_TENANT_ID = os.environ.get("MICROSOFT_TENANT_ID", "")
    MICROSOFT_REDIRECT_URI = os.environ.get("MICROSOFT_REDIRECT_URI", "")

    # Replit OIDC
    REPLIT_AUTH_ENABLED = _flag("REPLIT_AUTH_ENABLED", "1" if os.environ.get("REPLIT_DOMAINS") else "0")
    REPLIT_ISSUER_URL = os.environ.get("ISSUER_URL", "https://replit.com/oidc")
    REPL_ID = os.environ.get("REPL_ID", "")
    REPLIT_DOMAINS = [d.strip() for d in os.environ.get("REPLIT_DOMAINS", "").split(",") if d.strip()]
    REPLIT_REDIRECT_URI = os.environ.get(
        "REPLIT_REDIRECT_URI",
        f"https://{REPLIT_DOMAINS[0]}/api/replit/callback" if REPLIT_DOMAINS else "",
    )

    # Seconds before an identity-provider HTTP call is abandoned.
    UPSTREAM_HTTP_TIMEOUT = float(os.environ.get("UPSTREAM_HTTP_TIMEOUT", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

SESSION_COOKIE_NAME = Config.SESSION_COOKIE_NAME
SESSION_LIFETIME_DAYS = Config.SESSION_LIFETIME_DAYS
SESSION_COOKIE_SECURE = False

MICROSOFT_AUTH_ENABLED = Config.MICROSOFT_AUTH_ENABLED
MICROSOFT_CLIENT_ID = Config.MICROSOFT_CLIENT_ID
MICROSOFT_CLIENT_SECRET = Config.MICROSOFT_CLIENT_SECRET
MICROSOFT_TENANT_ID = Config.MICROSOFT_TENANT_ID
MICROSOFT_REDIRECT_URI = Config.MICROSOFT_REDIRECT_URI

REPLIT_AUTH_ENABLED = Config.REPLIT_AUTH_ENABLED
REPLIT_ISSUER_URL = Config.REPLIT_ISSUER_URL
REPL_ID = Config.REPL_ID
REPLIT_REDIRECT_URI = Config.REPLIT_REDIRECT_URI

UPSTREAM_HTTP_TIMEOUT = Config.UPSTREAM_HTTP_TIMEOUT
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = _flag("DEBUG", "1")
AUTO_INIT_DB = _flag("AUTO_INIT_DB")
