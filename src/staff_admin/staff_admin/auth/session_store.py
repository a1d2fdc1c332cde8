from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol, Tuple

from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from werkzeug.datastructures import CallbackDict

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_SESSION_DAYS
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_json, to_json

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def get(self, sid: str, *, now: datetime) -> Optional[Tuple[dict, datetime]]:
        """Return ``(data, expires_at)`` for a live session, or None."""
        raise NotImplementedError

    def set(self, sid: str, data: dict, *, expires_at: datetime) -> None:
        raise NotImplementedError

    def delete(self, sid: str) -> None:
        raise NotImplementedError

    def purge_expired(self, *, now: datetime) -> int:
        raise NotImplementedError


class MySQLSessionStore(SessionStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, sid: str, *, now: datetime) -> Optional[Tuple[dict, datetime]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT sess, expires_at FROM sessions WHERE sid=%s AND expires_at > %s", (sid, now))
            row = fetchone(cur)
        if not row:
            return None
        return from_json(row["sess"]) or {}, row["expires_at"]

    def set(self, sid: str, data: dict, *, expires_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sessions(sid, sess, expires_at) VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE sess=VALUES(sess), expires_at=VALUES(expires_at)
                """,
                (sid, to_json(data), expires_at),
            )

    def delete(self, sid: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sessions WHERE sid=%s", (sid,))

    def purge_expired(self, *, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sessions WHERE expires_at <= %s", (now,))
            return cur.rowcount


class ServerSideSession(CallbackDict, SessionMixin):
    """Session data held in the store; the cookie only carries the signed id."""

    def __init__(self, initial=None, *, sid: str, new: bool = False, expires_at: Optional[datetime] = None):
        def on_update(this):
            this.modified = True

        super().__init__(initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False
        self.expires_at = expires_at
        self.previous_sid: Optional[str] = None

    def regenerate(self) -> None:
        """Issue a fresh session id on save; call when privileges change (login)."""
        if self.previous_sid is None and not self.new:
            self.previous_sid = self.sid
        self.sid = secrets.token_urlsafe(32)
        self.expires_at = None
        self.modified = True


class ServerSideSessionInterface(SessionInterface):
    """Flask session interface over a SessionStore with a fixed absolute lifetime."""

    salt = "staff-admin-session"

    def __init__(
        self,
        store: SessionStore,
        *,
        lifetime_days: int = DEFAULT_SESSION_DAYS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._lifetime = timedelta(days=int(lifetime_days))
        self._clock = clock

    def _signer(self, app) -> Signer:
        return Signer(app.secret_key, salt=self.salt, key_derivation="hmac")

    def open_session(self, app, request) -> ServerSideSession:
        cookie = request.cookies.get(self.get_cookie_name(app))
        if cookie and app.secret_key:
            try:
                sid = self._signer(app).unsign(cookie).decode("utf-8")
            except BadSignature:
                logger.info("Ignoring session cookie with a bad signature")
                sid = None
            if sid:
                found = self._store.get(sid, now=self._clock())
                if found is not None:
                    data, expires_at = found
                    return ServerSideSession(data, sid=sid, expires_at=expires_at)

        return ServerSideSession(sid=secrets.token_urlsafe(32), new=True)

    def save_session(self, app, session: ServerSideSession, response) -> None:
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if session.previous_sid:
            self._store.delete(session.previous_sid)

        if not session:
            if session.modified and not session.new:
                self._store.delete(session.sid)
                response.delete_cookie(name, domain=domain, path=path)
            return

        issue_cookie = session.new or session.previous_sid is not None or session.expires_at is None
        if session.expires_at is None:
            session.expires_at = self._clock() + self._lifetime

        if session.modified or issue_cookie:
            self._store.set(session.sid, dict(session), expires_at=session.expires_at)

        if issue_cookie:
            expires = session.expires_at.replace(tzinfo=timezone.utc)
            response.set_cookie(
                name,
                self._signer(app).sign(session.sid.encode("utf-8")).decode("utf-8"),
                expires=expires,
                max_age=int(self._lifetime.total_seconds()),
                httponly=self.get_cookie_httponly(app),
                domain=domain,
                path=path,
                secure=self.get_cookie_secure(app),
                samesite=self.get_cookie_samesite(app),
            )
