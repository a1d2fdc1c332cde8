from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, redirect, request

from config import get_settings_module

from .auth.controller import register as register_auth
from .auth.session_store import ServerSideSessionInterface
from .change_requests.controller import register as register_change_requests
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS, SESSION_COOKIE_NAME
from .core.exceptions import DomainError, ReauthenticationRequired
from .core.logging import setup_logging
from .database.bootstrap import apply_schema, list_tables
from .permissions.controller import register as register_permissions
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ReauthenticationRequired)
    def _reauthenticate(e: ReauthenticationRequired):
        if request.accept_mimetypes.accept_json and not request.accept_mimetypes.accept_html:
            return jsonify({"message": e.message, "redirectTo": e.location}), 401
        return redirect(e.location)

    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        if e.status_code >= 500:
            logger.error("%s on %s %s", type(e).__name__, request.method, request.path)
        return jsonify({"message": e.message}), e.status_code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        # let Flask render its own HTTP errors (404, 405, ...)
        if hasattr(e, "code") and hasattr(e, "get_response"):
            return e
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"message": "Internal server error"}), 500


def create_app(container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates")

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_COOKIE_NAME"] = getattr(settings, "SESSION_COOKIE_NAME", SESSION_COOKIE_NAME)
    app.config["SESSION_COOKIE_HTTPONLY"] = True
    app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    app.config["SESSION_COOKIE_SECURE"] = bool(getattr(settings, "SESSION_COOKIE_SECURE", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, settings=settings)

    app.session_interface = ServerSideSessionInterface(
        container.session_store,
        lifetime_days=int(getattr(settings, "SESSION_LIFETIME_DAYS", DEFAULT_SESSION_DAYS)),
    )
    app.extensions["staff_admin.container"] = container

    _register_error_handlers(app)
    register_auth(app, container)
    register_users(app, container)
    register_permissions(app, container)
    register_change_requests(app, container)

    return app
