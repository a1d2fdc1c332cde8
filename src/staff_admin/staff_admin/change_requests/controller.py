from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..core.constants import ADMIN_ROLE, API_PREFIX


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    service = container.change_request_service

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/requests", methods=["POST"], endpoint="submit_change_request")
    @guards.login_required
    def submit_change_request(employee_id: int):
        data = request.get_json(silent=True) or {}
        req = service.submit(
            current_user=guards.current_user(),
            target_employee_id=employee_id,
            payload=data.get("payload"),
        )
        return jsonify(req.to_dict()), 201

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/requests", methods=["GET"], endpoint="employee_change_requests")
    @guards.login_required
    def employee_change_requests(employee_id: int):
        rows = service.list_for_employee(current_user=guards.current_user(), employee_id=employee_id)
        return jsonify([r.to_dict() for r in rows])

    @app.route(f"{API_PREFIX}/change_requests", methods=["GET"], endpoint="pending_change_requests")
    @guards.role_required(ADMIN_ROLE)
    def pending_change_requests():
        rows = service.list_pending(current_user=guards.current_user())
        return jsonify([r.to_dict() for r in rows])

    @app.route(f"{API_PREFIX}/change_requests/<int:request_id>", methods=["PATCH"], endpoint="decide_change_request")
    @guards.role_required(ADMIN_ROLE)
    def decide_change_request(request_id: int):
        data = request.get_json(silent=True) or {}
        req = service.decide(
            current_user=guards.current_user(),
            request_id=request_id,
            status=str(data.get("status") or ""),
        )
        return jsonify(req.to_dict())

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/audit", methods=["GET"], endpoint="employee_audit")
    @guards.role_required(ADMIN_ROLE)
    def employee_audit(employee_id: int):
        rows = service.audit_for_employee(current_user=guards.current_user(), employee_id=employee_id)
        return jsonify([a.to_dict() for a in rows])
