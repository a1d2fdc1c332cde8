import pytest

from src.staff_admin.staff_admin.auth_settings.service import AuthSettingsService
from src.staff_admin.staff_admin.core.enums import AuthProvider
from src.staff_admin.staff_admin.core.exceptions import ProviderDisabled
from tests.fakes import FIXED_NOW, InMemoryAuthSettings


@pytest.fixture
def service():
    return AuthSettingsService(InMemoryAuthSettings(), clock=lambda: FIXED_NOW)


def test_defaults_without_stored_row(service):
    current = service.current()

    assert current.direct_login_enabled is True
    assert current.microsoft_login_enabled is False
    assert current.replit_login_enabled is True


def test_latest_row_is_in_force(service):
    service.replace(microsoft=True, updated_by="direct_admin_1")
    service.replace(direct=False, updated_by="direct_admin_1")

    current = service.current()
    assert current.direct_login_enabled is False
    # unspecified toggles go back to their defaults
    assert current.microsoft_login_enabled is False
    assert current.updated_at == FIXED_NOW


def test_ensure_enabled(service):
    service.ensure_enabled(AuthProvider.DIRECT)

    with pytest.raises(ProviderDisabled) as exc:
        service.ensure_enabled(AuthProvider.MICROSOFT)
    assert "Microsoft" in exc.value.message
