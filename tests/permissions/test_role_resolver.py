import pytest

from src.staff_admin.staff_admin.auth.current_user import CurrentUser
from src.staff_admin.staff_admin.core.enums import AuthProvider
from src.staff_admin.staff_admin.core.exceptions import BadRequest, Forbidden, NotFound
from src.staff_admin.staff_admin.permissions.model import Permission
from src.staff_admin.staff_admin.permissions.service import RoleResolver
from tests.fakes import InMemoryEmployees, InMemoryPermissions, seed_employee


@pytest.fixture
def perms():
    repo = InMemoryPermissions()
    repo.add_role(1, "admin")
    repo.add_role(2, "manager")
    repo.add_role(3, "employee")
    repo.add_permission(
        Permission(1, "employees.read", "employees", "read", field_level={"salary": True, "phone": True}),
        role_ids=(2,),
    )
    repo.add_permission(
        Permission(2, "employees.read.self", "employees", "read", scope="self", field_level={"salary": False}),
        role_ids=(3,),
    )
    repo.add_permission(Permission(3, "requests.approve", "change_requests", "approve"), role_ids=(1,))
    return repo


@pytest.fixture
def resolver(perms):
    employees = InMemoryEmployees()
    for employee_id in (3, 5):
        seed_employee(employees, employee_id)
    return RoleResolver(perms, employees)


def _user(employee_id=None, *, admin=False, roles=()):
    return CurrentUser(
        user_id="u",
        is_admin=admin,
        auth_provider=AuthProvider.DIRECT,
        employee_id=employee_id,
        roles=frozenset(roles),
    )


def test_admin_flag_bypasses_role_checks(resolver):
    resolver.require_role(_user(admin=True), "manager")


def test_missing_role_is_forbidden(resolver):
    with pytest.raises(Forbidden) as exc:
        resolver.require_role(_user(5, roles={"employee"}), "manager")
    assert "manager" in exc.value.message

    with pytest.raises(Forbidden):
        resolver.require_role(None, "employee")


def test_roles_looked_up_when_not_cached(resolver, perms):
    perms.assign_role(employee_id=3, role_id=2, assigned_by=None)

    resolver.require_role(_user(3), "manager")
    assert resolver.roles_of(3) == frozenset({"manager"})
    assert resolver.roles_of(None) == frozenset()


def test_has_permission_needs_exact_resource_and_action(resolver, perms):
    perms.assign_role(employee_id=3, role_id=2, assigned_by=None)

    assert resolver.has_permission(3, "employees", "read")
    assert not resolver.has_permission(3, "employees", "write")
    assert not resolver.has_permission(3, "change_requests", "read")
    assert not resolver.has_permission(None, "employees", "read")


def test_field_level_most_restrictive_wins(resolver, perms):
    perms.assign_role(employee_id=3, role_id=2, assigned_by=None)
    assert resolver.field_level_permissions(3, "employees") == {"salary": True, "phone": True}

    perms.assign_role(employee_id=3, role_id=3, assigned_by=None)
    assert resolver.field_level_permissions(3, "employees") == {"salary": False, "phone": True}


def test_assign_and_remove_role(resolver, perms):
    role = resolver.assign_role(employee_id=5, role_id=2, assigned_by="direct_admin_1")
    assert role.name == "manager"
    assert [r.name for r in resolver.roles_for_employee(5)] == ["manager"]

    with pytest.raises(BadRequest):
        resolver.assign_role(employee_id=5, role_id=2, assigned_by="direct_admin_1")
    with pytest.raises(NotFound):
        resolver.assign_role(employee_id=5, role_id=99, assigned_by=None)
    with pytest.raises(NotFound):
        resolver.assign_role(employee_id=404, role_id=2, assigned_by=None)

    resolver.remove_role(employee_id=5, role_id=2)
    with pytest.raises(NotFound):
        resolver.remove_role(employee_id=5, role_id=2)


def test_summary_lists_distinct_grants(resolver, perms):
    perms.assign_role(employee_id=3, role_id=2, assigned_by=None)
    perms.assign_role(employee_id=3, role_id=1, assigned_by=None)

    summary = resolver.summary_for(resolver.enrich(_user(3)))

    assert summary["isAdmin"] is False
    assert summary["roles"] == ["admin", "manager"]
    assert {"resource": "change_requests", "action": "approve", "scope": "all"} in summary["permissions"]
