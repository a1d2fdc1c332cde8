from __future__ import annotations

import logging
from urllib.parse import urlencode

from flask import Flask, jsonify, redirect, render_template, request, session

from ..container import Container
from ..core.constants import API_PREFIX, GENERIC_LOGIN_ERROR
from ..core.exceptions import AuthenticationError, BadRequest, DomainError, ProviderDisabled
from .current_user import is_admin
from .session_identity import DIRECT_SESSION_KEY

logger = logging.getLogger(__name__)


def _body() -> dict:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    def _regenerate_session() -> None:
        regenerate = getattr(session, "regenerate", None)
        if regenerate is not None:
            regenerate()

    @app.route(f"{API_PREFIX}/login/direct", methods=["POST"], endpoint="login_direct")
    def login_direct():
        data = _body()
        try:
            _regenerate_session()
            user = container.direct_adapter.begin_login(
                session,
                username=str(data.get("username") or ""),
                password=str(data.get("password") or ""),
            )
        except BadRequest as e:
            return jsonify({"message": e.message}), 400
        except AuthenticationError:
            return jsonify({"message": GENERIC_LOGIN_ERROR}), 401

        return jsonify(
            {
                "message": "Logged in successfully",
                "user": {
                    "id": user.user_id,
                    "firstName": user.first_name,
                    "lastName": user.last_name,
                    "email": user.email,
                    "isAdmin": user.is_admin is True,
                    "authProvider": user.auth_provider.value,
                },
                "redirectTo": "/",
            }
        )

    @app.route(f"{API_PREFIX}/login/microsoft", methods=["GET"], endpoint="login_microsoft")
    def login_microsoft():
        if container.microsoft_adapter is None:
            raise ProviderDisabled("Microsoft login is not configured")
        return redirect(container.microsoft_adapter.begin_login(session))

    @app.route(f"{API_PREFIX}/auth/microsoft/callback", methods=["POST"], endpoint="microsoft_callback")
    def microsoft_callback():
        if container.microsoft_adapter is None:
            raise ProviderDisabled("Microsoft login is not configured")
        _regenerate_session()
        container.microsoft_adapter.complete_login(session, request.form)
        return redirect("/")

    @app.route(f"{API_PREFIX}/replit/login", methods=["GET"], endpoint="replit_login")
    def replit_login():
        if container.replit_adapter is None:
            raise ProviderDisabled("Replit login is not configured")
        return redirect(container.replit_adapter.begin_login(session))

    @app.route(f"{API_PREFIX}/replit/callback", methods=["GET"], endpoint="replit_callback")
    def replit_callback():
        if container.replit_adapter is None:
            raise ProviderDisabled("Replit login is not configured")
        _regenerate_session()
        container.replit_adapter.complete_login(session, request.args)
        return redirect("/")

    @app.route(f"{API_PREFIX}/replit/logout", methods=["GET"], endpoint="replit_logout")
    def replit_logout():
        session.clear()
        if container.replit_adapter is None:
            return redirect("/")
        return redirect(container.replit_adapter.logout_url(post_logout_redirect_uri=request.host_url))

    @app.route(f"{API_PREFIX}/logout", methods=["GET"], endpoint="logout")
    def logout():
        session.clear()
        return redirect("/login")

    @app.route(f"{API_PREFIX}/auth/user", methods=["GET"], endpoint="auth_user")
    @guards.login_required
    def auth_user():
        cu = guards.current_user()
        payload = {
            "id": cu.user_id,
            "firstName": cu.first_name,
            "lastName": cu.last_name,
            "email": cu.email,
            "isAdmin": is_admin(cu),
            "authProvider": cu.auth_provider.value,
            "employeeId": cu.employee_id,
            "roles": sorted(cu.roles),
        }
        if cu.employee_id is not None:
            employee = container.employees_repo.get_by_id(cu.employee_id)
            if employee:
                payload["department"] = employee.department_name
                payload["position"] = employee.position
        return jsonify(payload)

    @app.route(f"{API_PREFIX}/auth/settings", methods=["GET"], endpoint="auth_settings_get")
    @guards.admin_required
    def auth_settings_get():
        return jsonify(container.auth_settings_service.current().to_dict())

    @app.route(f"{API_PREFIX}/auth/settings", methods=["POST"], endpoint="auth_settings_update")
    @guards.admin_required
    def auth_settings_update():
        data = request.get_json(silent=True) or {}
        saved = container.auth_settings_service.replace(
            direct=data.get("directLoginEnabled"),
            microsoft=data.get("microsoftLoginEnabled"),
            replit=data.get("replitLoginEnabled"),
            updated_by=guards.current_user().user_id,
        )
        return jsonify({"message": "Authentication settings updated successfully", "settings": saved.to_dict()})

    # Server-rendered fallback login, usable when the UI bundle is unavailable.

    @app.route("/auth/emergency", methods=["GET"], endpoint="emergency_login")
    def emergency_login():
        if session.get(DIRECT_SESSION_KEY):
            return redirect("/")
        return render_template("emergency_login.html", error=request.args.get("error", ""))

    @app.route("/auth/login-handler", methods=["POST"], endpoint="emergency_login_handler")
    def emergency_login_handler():
        def back(message: str):
            return redirect("/auth/emergency?" + urlencode({"error": message}))

        try:
            _regenerate_session()
            container.direct_adapter.begin_login(
                session,
                username=request.form.get("username", ""),
                password=request.form.get("password", ""),
            )
        except BadRequest as e:
            return back(e.message)
        except AuthenticationError:
            return back(GENERIC_LOGIN_ERROR)
        except DomainError as e:
            return back(e.message)
        except Exception:
            logger.exception("Emergency login failed")
            return back("An unexpected error occurred")

        return redirect("/")
