"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

API_PREFIX = "/api"

DEFAULT_SESSION_DAYS = 7
SESSION_COOKIE_NAME = "staff_mgmt_sid"

MIN_PASSWORD_LENGTH = 8

# argon2id baseline: 19 MiB memory, 2 passes, single lane.
ARGON2_TIME_COST = 2
ARGON2_MEMORY_COST_KIB = 19 * 1024
ARGON2_PARALLELISM = 1

OIDC_METADATA_TTL_SECONDS = 3600
# used when a token response carries no lifetime
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

MICROSOFT_SCOPES = ["User.Read"]
REPLIT_SCOPE = "openid email profile offline_access"

MANAGER_ROLE = "manager"
ADMIN_ROLE = "admin"

GENERIC_LOGIN_ERROR = "Invalid username or password"
