import pytest

from tests.fakes import FakeMsalClient, FakeOidcClient, build_world


@pytest.fixture
def world():
    return build_world(msal_client=FakeMsalClient(), oidc_client=FakeOidcClient())


@pytest.fixture
def app(world):
    from src.staff_admin.staff_admin.main import create_app

    flask_app = create_app(container=world.container, settings_module="config.testing")
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
