from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..core.constants import API_PREFIX
from ..core.exceptions import BadRequest


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    roles = container.role_resolver

    @app.route(f"{API_PREFIX}/roles", methods=["GET"], endpoint="list_roles")
    @guards.login_required
    def list_roles():
        return jsonify([r.to_dict() for r in roles.list_roles()])

    @app.route(f"{API_PREFIX}/permissions", methods=["GET"], endpoint="list_permissions")
    @guards.admin_required
    def list_permissions():
        return jsonify([p.to_dict() for p in roles.list_permissions()])

    @app.route(f"{API_PREFIX}/me/permissions", methods=["GET"], endpoint="my_permissions")
    @guards.login_required
    def my_permissions():
        cu = guards.current_user()
        summary = roles.summary_for(cu)
        resource = request.args.get("resource")
        if resource:
            summary["resource"] = resource
            summary["fieldLevel"] = roles.field_level_permissions(cu.employee_id, resource)
        return jsonify(summary)

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/roles", methods=["GET"], endpoint="employee_roles")
    @guards.admin_required
    def employee_roles(employee_id: int):
        return jsonify([r.to_dict() for r in roles.roles_for_employee(employee_id)])

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/roles", methods=["POST"], endpoint="assign_employee_role")
    @guards.admin_required
    def assign_employee_role(employee_id: int):
        data = request.get_json(silent=True) or {}
        try:
            role_id = int(data.get("roleId"))
        except (TypeError, ValueError):
            raise BadRequest("roleId is required")
        role = roles.assign_role(
            employee_id=employee_id,
            role_id=role_id,
            assigned_by=guards.current_user().user_id,
        )
        return jsonify({"message": "Role assigned", "role": role.to_dict()}), 201

    @app.route(
        f"{API_PREFIX}/employees/<int:employee_id>/roles/<int:role_id>",
        methods=["DELETE"],
        endpoint="remove_employee_role",
    )
    @guards.admin_required
    def remove_employee_role(employee_id: int, role_id: int):
        roles.remove_role(employee_id=employee_id, role_id=role_id)
        return jsonify({"message": "Role removed"})
