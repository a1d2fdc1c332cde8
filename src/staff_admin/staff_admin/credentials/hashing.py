from __future__ import annotations

from passlib.context import CryptContext
from werkzeug.security import check_password_hash

from ..core.constants import ARGON2_MEMORY_COST_KIB, ARGON2_PARALLELISM, ARGON2_TIME_COST

# Hashes written by Werkzeug's generate_password_hash; passlib does not know this format.
_WERKZEUG_PREFIXES = ("pbkdf2:", "scrypt:")


def build_context(
    *,
    time_cost: int = ARGON2_TIME_COST,
    memory_cost: int = ARGON2_MEMORY_COST_KIB,
    parallelism: int = ARGON2_PARALLELISM,
) -> CryptContext:
    return CryptContext(
        schemes=["argon2", "bcrypt"],
        deprecated="auto",
        argon2__type="ID",
        argon2__time_cost=time_cost,
        argon2__memory_cost=memory_cost,
        argon2__parallelism=parallelism,
    )


class PasswordHashing:
    """argon2id for new hashes; bcrypt and Werkzeug hashes are still verifiable.

    Anything that is not an argon2id hash with the current parameters reports
    ``needs_rehash`` so callers can upgrade it after a successful login.
    """

    def __init__(self, context: CryptContext | None = None):
        self._context = context or build_context()

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password_hash: str, password: str) -> bool:
        if not password_hash or password is None:
            return False

        if password_hash.startswith(_WERKZEUG_PREFIXES):
            try:
                return check_password_hash(password_hash, password)
            except ValueError:
                return False

        if self._context.identify(password_hash) is None:
            return False
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            # malformed hash, or a password past bcrypt's 72-byte limit
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        if password_hash.startswith(_WERKZEUG_PREFIXES) or self._context.identify(password_hash) is None:
            return True
        return self._context.needs_update(password_hash)
