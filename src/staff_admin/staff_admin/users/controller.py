from __future__ import annotations

from flask import Flask, jsonify, request

from ..auth.current_user import is_admin
from ..container import Container
from ..core.constants import API_PREFIX
from ..core.exceptions import BadRequest


def _optional_bool(data: dict, key: str):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise BadRequest(f"{key} must be true or false")
    return value


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    service = container.user_admin_service

    @app.route(f"{API_PREFIX}/users/create", methods=["POST"], endpoint="create_user")
    @guards.admin_required
    def create_user():
        data = request.get_json(silent=True) or {}
        created = service.create_direct_user(
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            email=data.get("email", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            is_admin=data.get("isAdmin") is True,
        )
        return jsonify({"message": "User created successfully", "user": created}), 201

    @app.route(f"{API_PREFIX}/admin/users", methods=["GET"], endpoint="admin_users")
    @guards.admin_required
    def admin_users():
        return jsonify(list(service.list_users()))

    @app.route(f"{API_PREFIX}/admin/users/<user_id>", methods=["PUT"], endpoint="admin_update_user")
    @guards.admin_required
    def admin_update_user(user_id: str):
        data = request.get_json(silent=True) or {}
        user = service.update_user(
            user_id=user_id,
            is_admin=_optional_bool(data, "isAdmin"),
            is_enabled=_optional_bool(data, "isEnabled"),
        )
        return jsonify({"message": "User updated successfully", "user": user.to_dict()})

    @app.route(f"{API_PREFIX}/admin/users/<user_id>", methods=["DELETE"], endpoint="admin_delete_user")
    @guards.admin_required
    def admin_delete_user(user_id: str):
        service.delete_user(actor_id=guards.current_user().user_id, user_id=user_id)
        return jsonify({"message": "User successfully deleted from the system"})

    @app.route(f"{API_PREFIX}/admin/users/<user_id>/pass", methods=["POST"], endpoint="admin_set_password")
    @guards.admin_required
    def admin_set_password(user_id: str):
        data = request.get_json(silent=True) or {}
        service.set_password(user_id=user_id, new_password=data.get("newPassword") or "")
        return jsonify({"message": "Password updated successfully"})

    @app.route(f"{API_PREFIX}/users/<user_id>/change-password", methods=["POST"], endpoint="change_password")
    @guards.login_required
    def change_password(user_id: str):
        cu = guards.current_user()
        data = request.get_json(silent=True) or {}
        service.change_password(
            actor_id=cu.user_id,
            actor_is_admin=is_admin(cu),
            user_id=user_id,
            current_password=data.get("currentPassword") or "",
            new_password=data.get("newPassword") or "",
        )
        return jsonify({"message": "Password updated successfully"})

    @app.route(f"{API_PREFIX}/users/<user_id>/toggle-status", methods=["POST"], endpoint="toggle_user_status")
    @guards.admin_required
    def toggle_user_status(user_id: str):
        data = request.get_json(silent=True) or {}
        enabled = _optional_bool(data, "isEnabled")
        if enabled is None:
            raise BadRequest("isEnabled field is required")
        service.set_enabled(user_id=user_id, enabled=enabled)
        return jsonify({"message": f"User {'enabled' if enabled else 'disabled'} successfully"})
