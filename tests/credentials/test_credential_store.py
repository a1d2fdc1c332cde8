import bcrypt
import pytest
from werkzeug.security import generate_password_hash

from src.staff_admin.staff_admin.core.exceptions import (
    AccountDisabled,
    BadRequest,
    DuplicateUsername,
    InvalidCredentials,
    NotFound,
)
from src.staff_admin.staff_admin.credentials.hashing import PasswordHashing
from src.staff_admin.staff_admin.credentials.service import CredentialStore
from tests.fakes import FIXED_NOW, InMemoryCredentials, fast_hashing


@pytest.fixture
def store_and_repo():
    repo = InMemoryCredentials()
    store = CredentialStore(repo, fast_hashing(), clock=lambda: FIXED_NOW)
    return store, repo


def test_verify_returns_user_id_and_records_login(store_and_repo):
    store, repo = store_and_repo
    store.create(user_id="direct_admin_1", username="admin", password="admin123")

    assert store.verify("admin", "admin123") == "direct_admin_1"
    assert repo.get_by_username("admin").last_login_at == FIXED_NOW


def test_new_passwords_are_argon2id(store_and_repo):
    store, repo = store_and_repo
    store.create(user_id="u1", username="alice", password="correct horse")

    assert repo.get_by_username("alice").password_hash.startswith("$argon2id$")


def test_wrong_password_and_unknown_user_fail_the_same_way(store_and_repo):
    store, _ = store_and_repo
    store.create(user_id="u1", username="alice", password="correct horse")

    with pytest.raises(InvalidCredentials) as wrong:
        store.verify("alice", "battery staple")
    with pytest.raises(InvalidCredentials) as unknown:
        store.verify("nobody", "battery staple")

    assert wrong.value.message == unknown.value.message


def test_disabled_account_is_refused_even_with_right_password(store_and_repo):
    store, _ = store_and_repo
    store.create(user_id="u1", username="alice", password="correct horse")
    store.set_enabled(user_id="u1", enabled=False)

    with pytest.raises(AccountDisabled):
        store.verify("alice", "correct horse")


def test_create_rejects_duplicate_username_and_short_password(store_and_repo):
    store, _ = store_and_repo
    store.create(user_id="u1", username="alice", password="correct horse")

    with pytest.raises(DuplicateUsername):
        store.create(user_id="u2", username="alice", password="another password")
    with pytest.raises(BadRequest):
        store.create(user_id="u3", username="bob", password="short")


@pytest.mark.parametrize(
    "legacy_hash",
    [
        bcrypt.hashpw(b"legacy-pass", bcrypt.gensalt(rounds=4)).decode("utf-8"),
        generate_password_hash("legacy-pass"),
    ],
)
def test_legacy_hash_is_accepted_then_upgraded(store_and_repo, legacy_hash):
    store, repo = store_and_repo
    repo.create(user_id="u1", username="legacy", password_hash=legacy_hash)

    assert store.verify("legacy", "legacy-pass") == "u1"

    upgraded = repo.get_by_username("legacy").password_hash
    assert upgraded.startswith("$argon2id$")
    assert store.verify("legacy", "legacy-pass") == "u1"


def test_unrecognized_hash_format_never_verifies(store_and_repo):
    store, repo = store_and_repo
    repo.create(user_id="u1", username="plain", password_hash="legacy-pass")

    with pytest.raises(InvalidCredentials):
        store.verify("plain", "legacy-pass")


def test_change_password_and_set_enabled_need_existing_credentials(store_and_repo):
    store, _ = store_and_repo

    with pytest.raises(NotFound):
        store.change_password(user_id="ghost", new_password="long enough")
    with pytest.raises(NotFound):
        store.set_enabled(user_id="ghost", enabled=True)


def test_change_password_replaces_old_one(store_and_repo):
    store, _ = store_and_repo
    store.create(user_id="u1", username="alice", password="correct horse")

    store.change_password(user_id="u1", new_password="battery staple")

    assert store.verify("alice", "battery staple") == "u1"
    with pytest.raises(InvalidCredentials):
        store.verify("alice", "correct horse")


def test_confirm_password_rejects_wrong_current_password(store_and_repo):
    store, _ = store_and_repo
    store.create(user_id="u1", username="alice", password="correct horse")

    store.confirm_password(user_id="u1", password="correct horse")
    with pytest.raises(InvalidCredentials):
        store.confirm_password(user_id="u1", password="nope")


def test_default_policy_is_argon2id_with_configured_costs():
    hashing = PasswordHashing()
    password_hash = hashing.hash("correct horse")

    assert password_hash.startswith("$argon2id$")
    assert "m=19456,t=2,p=1" in password_hash
    assert hashing.verify(password_hash, "correct horse")
    assert not hashing.needs_rehash(password_hash)


def test_weaker_argon2_parameters_are_flagged_for_rehash():
    weak = fast_hashing().hash("correct horse")

    assert PasswordHashing().needs_rehash(weak)
    assert PasswordHashing().verify(weak, "correct horse")


def test_werkzeug_and_bcrypt_hashes_always_need_rehash():
    hashing = fast_hashing()

    assert hashing.needs_rehash(generate_password_hash("legacy-pass"))
    assert hashing.needs_rehash(bcrypt.hashpw(b"legacy-pass", bcrypt.gensalt(rounds=4)).decode("utf-8"))
