import base64
import hashlib

import pytest

from src.staff_admin.staff_admin.auth.providers.oidc_client import new_pkce_pair
from src.staff_admin.staff_admin.auth.session_identity import (
    DIRECT_SESSION_KEY,
    MICROSOFT_FLOW_KEY,
    MICROSOFT_SESSION_KEY,
    REPLIT_FLOW_KEY,
    REPLIT_SESSION_KEY,
)
from src.staff_admin.staff_admin.core.exceptions import (
    AccountDisabled,
    BadRequest,
    InvalidCredentials,
    InvalidState,
    ProviderDisabled,
    UpstreamAuthError,
)
from tests.fakes import FakeMsalClient, FakeOidcClient, build_world, seed_direct_user, seed_employee


@pytest.fixture
def world():
    return build_world(msal_client=FakeMsalClient(), oidc_client=FakeOidcClient())


# direct


def test_direct_login_writes_only_the_direct_identity(world):
    admin = seed_direct_user(world, username="admin", password="admin123", is_admin=True)
    session = {REPLIT_SESSION_KEY: {"id": "replit_1"}, MICROSOFT_FLOW_KEY: {"state": "x"}}

    user = world.container.direct_adapter.begin_login(session, username="admin", password="admin123")

    assert user.user_id == admin.user_id
    assert session == {DIRECT_SESSION_KEY: {"id": admin.user_id, "username": "admin", "is_admin": True}}


def test_direct_login_links_employee_by_email(world):
    seed_employee(world.employees, 5, email="dana@example.com")
    seed_direct_user(world, username="dana", password="password1", email="dana@example.com")

    user = world.container.direct_adapter.begin_login({}, username="dana", password="password1")

    assert user.employee_id == 5


def test_direct_login_requires_both_fields(world):
    with pytest.raises(BadRequest):
        world.container.direct_adapter.begin_login({}, username="admin", password="")


def test_direct_login_failures(world):
    seed_direct_user(world, username="dana", password="password1")
    adapter = world.container.direct_adapter

    with pytest.raises(InvalidCredentials):
        adapter.begin_login({}, username="dana", password="wrong-one")

    world.container.credential_store.set_enabled(user_id="direct_dana_1", enabled=False)
    session = {}
    with pytest.raises(AccountDisabled):
        adapter.begin_login(session, username="dana", password="password1")
    assert session == {}


def test_direct_login_refused_when_disabled(world):
    seed_direct_user(world, username="dana", password="password1")
    world.container.auth_settings_service.replace(direct=False)
    logins_before = world.credentials.get_by_username("dana").last_login_at

    with pytest.raises(ProviderDisabled):
        world.container.direct_adapter.begin_login({}, username="dana", password="password1")
    assert world.credentials.get_by_username("dana").last_login_at == logins_before


# microsoft


def test_microsoft_disabled_by_default_and_never_contacts_msal(world):
    with pytest.raises(ProviderDisabled):
        world.container.microsoft_adapter.begin_login({})
    assert world.msal.flows == []


def test_microsoft_login_round_trip(world):
    world.container.auth_settings_service.replace(microsoft=True)
    adapter = world.container.microsoft_adapter
    session = {}

    url = adapter.begin_login(session)
    assert url.startswith("https://login.microsoftonline.com/")
    assert world.msal.flows[0]["response_mode"] == "form_post"
    assert world.msal.flows[0]["prompt"] == "select_account"

    user = adapter.complete_login(session, {"state": "state-1", "code": "abc"})

    assert user.user_id == "microsoft_ms-oid-1"
    assert (user.first_name, user.last_name) == ("Casey", "Jordan Smith")
    assert user.email == "casey@example.com"
    assert MICROSOFT_FLOW_KEY not in session
    assert session[MICROSOFT_SESSION_KEY]["id"] == "microsoft_ms-oid-1"


def test_microsoft_callback_without_flow_is_invalid_state(world):
    world.container.auth_settings_service.replace(microsoft=True)

    with pytest.raises(InvalidState):
        world.container.microsoft_adapter.complete_login({}, {"state": "state-1", "code": "abc"})
    assert world.msal.exchanges == []


def test_microsoft_callback_state_mismatch(world):
    world.container.auth_settings_service.replace(microsoft=True)
    adapter = world.container.microsoft_adapter
    session = {}
    adapter.begin_login(session)

    with pytest.raises(InvalidState):
        adapter.complete_login(session, {"state": "forged", "code": "abc"})
    assert world.msal.exchanges == []


def test_microsoft_token_error_is_upstream_failure(world):
    world.container.auth_settings_service.replace(microsoft=True)
    world.msal.result = {"error": "invalid_grant", "error_description": "code expired"}
    adapter = world.container.microsoft_adapter
    session = {}
    adapter.begin_login(session)

    with pytest.raises(UpstreamAuthError):
        adapter.complete_login(session, {"state": "state-1", "code": "abc"})
    assert MICROSOFT_SESSION_KEY not in session


# replit


def test_replit_login_round_trip(world):
    adapter = world.container.replit_adapter
    session = {}

    url = adapter.begin_login(session)
    flow = session[REPLIT_FLOW_KEY]
    assert f"state={flow['state']}" in url
    assert "offline_access" in url

    user = adapter.complete_login(session, {"state": flow["state"], "code": "good"})

    assert user.user_id == "replit_42"
    assert world.oidc.last_nonce == flow["nonce"]
    assert REPLIT_FLOW_KEY not in session
    assert session[REPLIT_SESSION_KEY]["refresh_token"] == "rp-refresh"
    assert session[REPLIT_SESSION_KEY]["claims"]["email"] == "riley@example.com"


def test_replit_callback_state_mismatch(world):
    adapter = world.container.replit_adapter
    session = {}
    adapter.begin_login(session)

    with pytest.raises(InvalidState):
        adapter.complete_login(session, {"state": "forged", "code": "good"})


def test_replit_code_exchange_failure(world):
    adapter = world.container.replit_adapter
    session = {}
    adapter.begin_login(session)

    with pytest.raises(UpstreamAuthError):
        adapter.complete_login(session, {"state": session[REPLIT_FLOW_KEY]["state"], "code": "bad"})


def test_replit_disabled(world):
    world.container.auth_settings_service.replace(replit=False)
    session = {}

    with pytest.raises(ProviderDisabled):
        world.container.replit_adapter.begin_login(session)
    assert REPLIT_FLOW_KEY not in session


def test_pkce_challenge_is_s256_of_verifier():
    verifier, challenge = new_pkce_pair()

    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode("ascii")).digest()).rstrip(b"=").decode("ascii")
    assert challenge == expected
    assert 43 <= len(verifier) <= 128
