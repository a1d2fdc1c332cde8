import pytest

from src.staff_admin.staff_admin.auth.current_user import CurrentUser
from src.staff_admin.staff_admin.change_requests.model import ChangeRequest
from src.staff_admin.staff_admin.change_requests.service import ChangeRequestService, validate_payload
from src.staff_admin.staff_admin.core.enums import AuthProvider, ChangeRequestStatus, EmployeeStatus
from src.staff_admin.staff_admin.core.exceptions import BadRequest, Forbidden, InvalidTransition, NotFound
from tests.fakes import FIXED_NOW, build_world, seed_employee


@pytest.fixture
def world():
    w = build_world()
    seed_employee(w.employees, 1, email="admin@example.com")
    seed_employee(w.employees, 3, email="manager@example.com")
    seed_employee(w.employees, 5, email="alex@example.com")
    seed_employee(w.employees, 9, email="sam@example.com", manager_id=3)
    w.permissions.add_role(1, "admin")
    w.permissions.add_role(2, "manager")
    w.permissions.assign_role(employee_id=3, role_id=2, assigned_by=None)
    return w


@pytest.fixture
def service(world):
    return ChangeRequestService(
        world.change_requests,
        world.employees,
        world.container.role_resolver,
        world.audit,
        clock=lambda: FIXED_NOW,
    )


def _user(employee_id=None, *, admin=False, email=None, user_id=None):
    return CurrentUser(
        user_id=user_id or f"direct_e{employee_id}_1",
        is_admin=admin,
        auth_provider=AuthProvider.DIRECT,
        employee_id=employee_id,
        email=email,
    )


def _pending(world, request_id=42, target=9, payload=None):
    return world.change_requests.add(
        ChangeRequest(
            request_id=request_id,
            target_employee_id=target,
            requester_employee_id=target,
            payload=payload or {"departmentId": 7},
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
    )


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "departmentId=7",
        [],
        {"salary": 1},
        {"departmentId": "7"},
        {"departmentId": True},
        {"firstName": "   "},
        {"status": "retired"},
        {"managerId": "3"},
        {"phone": 5},
    ],
)
def test_invalid_payloads(payload):
    with pytest.raises(BadRequest):
        validate_payload(payload)


def test_valid_payload_passes_through():
    payload = {"phone": None, "managerId": None, "status": "onboarding", "position": "Lead"}
    assert validate_payload(payload) is payload


def test_employee_can_submit_for_self(world, service):
    req = service.submit(current_user=_user(5), target_employee_id=5, payload={"phone": "555-0100"})

    assert req.status == ChangeRequestStatus.PENDING
    assert req.requester_employee_id == 5
    assert world.employees.get_by_id(5).phone is None


def test_requester_found_by_email_when_unlinked(service):
    req = service.submit(
        current_user=_user(None, email="alex@example.com"),
        target_employee_id=5,
        payload={"phone": "555-0100"},
    )
    assert req.requester_employee_id == 5


def test_unlinked_user_cannot_submit(service):
    with pytest.raises(Forbidden):
        service.submit(current_user=_user(None, email="who@example.com"), target_employee_id=5, payload={"phone": "1"})


def test_unrelated_employee_is_forbidden(world, service):
    with pytest.raises(Forbidden):
        service.submit(current_user=_user(5), target_employee_id=9, payload={"departmentId": 7})
    assert world.change_requests.rows == {}


def test_manager_can_submit_for_report_only(service):
    req = service.submit(current_user=_user(3), target_employee_id=9, payload={"departmentId": 7})
    assert req.target_employee_id == 9

    with pytest.raises(Forbidden):
        service.submit(current_user=_user(3), target_employee_id=5, payload={"departmentId": 7})


def test_admin_can_submit_for_anyone(service):
    req = service.submit(current_user=_user(1, admin=True), target_employee_id=5, payload={"position": "Lead"})
    assert req.requester_employee_id == 1


def test_unknown_target(service):
    with pytest.raises(NotFound):
        service.submit(current_user=_user(5), target_employee_id=404, payload={"phone": "1"})


def test_approve_applies_payload_and_writes_one_audit_row(world, service):
    _pending(world)
    admin = _user(1, admin=True, user_id="direct_admin_1")

    decided = service.decide(current_user=admin, request_id=42, status="approved")

    assert decided.status == ChangeRequestStatus.APPROVED
    assert decided.approved_by_id == 1
    assert world.employees.get_by_id(9).department_id == 7
    assert len(world.audit.rows) == 1
    entry = world.audit.rows[0]
    assert (entry.table_name, entry.row_id, entry.action) == ("employees", 9, "update")
    assert entry.diff == {"departmentId": 7}
    assert entry.acted_by == "direct_admin_1"


def test_approve_status_change(world, service):
    _pending(world, payload={"status": "inactive"})

    service.decide(current_user=_user(1, admin=True), request_id=42, status="approved")

    assert world.employees.get_by_id(9).status == EmployeeStatus.INACTIVE


def test_reject_changes_nothing(world, service):
    _pending(world)

    decided = service.decide(current_user=_user(1, admin=True), request_id=42, status="rejected")

    assert decided.status == ChangeRequestStatus.REJECTED
    assert world.employees.get_by_id(9).department_id == 1
    assert world.audit.rows == []


def test_decided_request_cannot_be_decided_again(world, service):
    _pending(world)
    admin = _user(1, admin=True)
    service.decide(current_user=admin, request_id=42, status="approved")

    with pytest.raises(InvalidTransition):
        service.decide(current_user=admin, request_id=42, status="rejected")
    assert len(world.audit.rows) == 1


def test_approval_of_vanished_employee_rolls_back(world, service):
    _pending(world, target=77)

    with pytest.raises(NotFound):
        service.decide(current_user=_user(1, admin=True), request_id=42, status="approved")

    assert world.change_requests.get_by_id(42).is_pending
    assert world.audit.rows == []


def test_decide_validation(world, service):
    _pending(world)

    with pytest.raises(Forbidden):
        service.decide(current_user=_user(3), request_id=42, status="approved")
    with pytest.raises(BadRequest):
        service.decide(current_user=_user(1, admin=True), request_id=42, status="pending")
    with pytest.raises(NotFound):
        service.decide(current_user=_user(1, admin=True), request_id=404, status="approved")


def test_admin_role_may_decide_without_admin_flag(world, service):
    _pending(world)
    world.permissions.assign_role(employee_id=1, role_id=1, assigned_by=None)

    decided = service.decide(current_user=_user(1), request_id=42, status="rejected")

    assert decided.status == ChangeRequestStatus.REJECTED


def test_listing_rules(world, service):
    _pending(world, request_id=42, target=9)
    _pending(world, request_id=43, target=5)

    assert [r.request_id for r in service.list_for_employee(current_user=_user(5), employee_id=5)] == [43]
    with pytest.raises(Forbidden):
        service.list_for_employee(current_user=_user(5), employee_id=9)
    assert len(service.list_pending(current_user=_user(1, admin=True))) == 2
    with pytest.raises(Forbidden):
        service.list_pending(current_user=_user(5))


def test_empty_object_payload_is_accepted(world, service):
    req = service.submit(current_user=_user(5), target_employee_id=5, payload={})

    assert req.payload == {}
    decided = service.decide(current_user=_user(1, admin=True), request_id=req.request_id, status="approved")

    assert decided.status == ChangeRequestStatus.APPROVED
    assert world.employees.get_by_id(5).department_id == 1
    assert [a.diff for a in world.audit.rows] == [{}]
