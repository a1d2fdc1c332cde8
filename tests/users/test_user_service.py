import pytest

from src.staff_admin.staff_admin.auth.claims import NormalizedClaims
from src.staff_admin.staff_admin.core.enums import AuthProvider
from src.staff_admin.staff_admin.core.exceptions import BadRequest, DuplicateUsername, Forbidden, InvalidCredentials, NotFound
from tests.fakes import build_world, seed_direct_user, seed_employee


@pytest.fixture
def world():
    return build_world()


def _replit_claims(**overrides):
    data = dict(provider=AuthProvider.REPLIT, subject="42", email="riley@example.com", first_name="Riley", last_name="Park")
    data.update(overrides)
    return NormalizedClaims.build(**data)


def test_resolve_creates_non_admin_user_once(world):
    resolver = world.container.identity_resolver

    first = resolver.resolve(_replit_claims())
    second = resolver.resolve(_replit_claims())

    assert first.user_id == "replit_42"
    assert first.is_admin is False
    assert second.user_id == first.user_id
    assert len(world.users.rows) == 1


def test_resolve_matches_existing_user_by_email_before_id(world):
    existing = seed_direct_user(world, username="riley", password="password1", email="riley@example.com")

    user = world.container.identity_resolver.resolve(_replit_claims(subject="999"))

    assert user.user_id == existing.user_id
    assert "replit_999" not in world.users.rows


def test_resolve_uses_provider_default_names(world):
    user = world.container.identity_resolver.resolve(
        NormalizedClaims.build(provider=AuthProvider.MICROSOFT, subject="oid-1", email=None)
    )

    assert (user.first_name, user.last_name) == ("Microsoft", "User")


def test_resolve_never_changes_admin_flag(world):
    admin = seed_direct_user(world, username="boss", password="password1", is_admin=True, email="riley@example.com")

    user = world.container.identity_resolver.resolve(_replit_claims())

    assert user.user_id == admin.user_id
    assert world.users.get_by_id(admin.user_id).is_admin is True


def test_sync_copies_employee_profile_by_email(world):
    seed_employee(world.employees, 7, email="riley@example.com", first_name="Riley", last_name="Park-Lee")

    user = world.container.identity_resolver.resolve(_replit_claims())

    stored = world.users.get_by_id(user.user_id)
    assert stored.employee_id == 7
    assert stored.last_name == "Park-Lee"


def test_sync_writes_nothing_when_already_in_step(world):
    seed_employee(world.employees, 7, email="riley@example.com", first_name="Riley", last_name="Park")
    resolver = world.container.identity_resolver
    user = resolver.resolve(_replit_claims())
    writes = world.users.writes

    resolver.sync_with_employee(world.users.get_by_id(user.user_id))

    assert world.users.writes == writes


def test_create_direct_user_returns_admin_view(world):
    created = world.container.user_admin_service.create_direct_user(
        first_name="Dana",
        last_name="Lee",
        email="dana@example.com",
        username="dana",
        password="long enough",
        is_admin=True,
    )

    assert created["id"].startswith("direct_dana_")
    assert created["isAdmin"] is True
    assert created["username"] == "dana"
    assert world.container.credential_store.verify("dana", "long enough") == created["id"]


def test_create_direct_user_rejects_taken_username_and_email(world):
    seed_direct_user(world, username="dana", password="password1", email="dana@example.com")
    service = world.container.user_admin_service

    with pytest.raises(DuplicateUsername):
        service.create_direct_user(
            first_name="D", last_name="L", email="other@example.com", username="dana", password="long enough"
        )
    with pytest.raises(BadRequest):
        service.create_direct_user(
            first_name="D", last_name="L", email="dana@example.com", username="dana2", password="long enough"
        )


def test_create_direct_user_rolls_back_user_when_password_rejected(world):
    with pytest.raises(BadRequest):
        world.container.user_admin_service.create_direct_user(
            first_name="D", last_name="L", email="d@example.com", username="dana", password="short"
        )

    assert world.users.rows == {}


def test_update_user_requires_some_change(world):
    user = seed_direct_user(world, username="dana", password="password1")

    with pytest.raises(BadRequest):
        world.container.user_admin_service.update_user(user_id=user.user_id)


def test_update_user_toggles_admin_and_enabled(world):
    user = seed_direct_user(world, username="dana", password="password1")

    updated = world.container.user_admin_service.update_user(user_id=user.user_id, is_admin=True, is_enabled=False)

    assert updated.is_admin is True
    assert world.credentials.get_by_user_id(user.user_id).is_enabled is False


def test_delete_self_is_refused(world):
    admin = seed_direct_user(world, username="boss", password="password1", is_admin=True)

    with pytest.raises(BadRequest):
        world.container.user_admin_service.delete_user(actor_id=admin.user_id, user_id=admin.user_id)
    assert admin.user_id in world.users.rows


def test_delete_removes_user_and_credentials(world):
    admin = seed_direct_user(world, username="boss", password="password1", is_admin=True)
    victim = seed_direct_user(world, username="dana", password="password1")
    service = world.container.user_admin_service

    service.delete_user(actor_id=admin.user_id, user_id=victim.user_id)

    assert victim.user_id not in world.users.rows
    assert world.credentials.get_by_username("dana") is None
    with pytest.raises(NotFound):
        service.delete_user(actor_id=admin.user_id, user_id=victim.user_id)


def test_change_password_rules(world):
    alice = seed_direct_user(world, username="alice", password="password1")
    bob = seed_direct_user(world, username="bob", password="password2")
    service = world.container.user_admin_service

    with pytest.raises(Forbidden):
        service.change_password(
            actor_id=bob.user_id, actor_is_admin=False, user_id=alice.user_id,
            current_password="password2", new_password="new password",
        )
    with pytest.raises(InvalidCredentials):
        service.change_password(
            actor_id=alice.user_id, actor_is_admin=False, user_id=alice.user_id,
            current_password="wrong", new_password="new password",
        )

    service.change_password(
        actor_id=alice.user_id, actor_is_admin=False, user_id=alice.user_id,
        current_password="password1", new_password="new password",
    )
    assert world.container.credential_store.verify("alice", "new password") == alice.user_id


def test_resolve_refreshes_unlinked_user_from_new_claims(world):
    resolver = world.container.identity_resolver
    resolver.resolve(_replit_claims(email=None, last_name="Old"))

    resolver.resolve(_replit_claims(email=None, last_name="New", profile_image_url="https://img.example/42.png"))

    stored = world.users.get_by_id("replit_42")
    assert stored.last_name == "New"
    assert stored.profile_image_url == "https://img.example/42.png"
    assert len(world.users.rows) == 1


def test_resolve_keeps_employee_profile_over_claims(world):
    seed_employee(world.employees, 7, email="riley@example.com", first_name="Riley", last_name="Park-Lee")
    resolver = world.container.identity_resolver
    resolver.resolve(_replit_claims())

    resolver.resolve(_replit_claims(last_name="Somebody"))

    assert world.users.get_by_id("replit_42").last_name == "Park-Lee"


def test_sync_keeps_own_email_when_employee_email_is_taken(world, caplog):
    seed_employee(world.employees, 7, email="shared@example.com", first_name="Riley", last_name="Park")
    seed_direct_user(world, username="other", password="password1", email="shared@example.com")
    riley = seed_direct_user(world, username="riley", password="password1", email="riley@example.com", employee_id=7)

    with caplog.at_level("WARNING"):
        synced = world.container.identity_resolver.sync_with_employee(riley)

    stored = world.users.get_by_id(riley.user_id)
    assert synced.email == stored.email == "riley@example.com"
    assert (stored.first_name, stored.last_name) == ("Riley", "Park")
    assert "already belongs to user direct_other_1" in caplog.text
