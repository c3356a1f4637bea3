import os
from pathlib import Path

import pytest
from fake_backend import USER_ID

os.environ.setdefault("FESTCART_ENV", "test")


def pytest_configure(config):
    from shared.logging import configure_logging

    configure_logging()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def run_around_tests(monkeypatch):
    """Start every test from default settings and a fresh redirect gateway."""
    for name in list(os.environ):
        if name.startswith("FESTCART_") and name != "FESTCART_ENV":
            monkeypatch.delenv(name, raising=False)

    from payments.gateway import reset_gateway
    from shared.config import get_settings

    get_settings.cache_clear()
    reset_gateway()

    yield

    get_settings.cache_clear()
    reset_gateway()


# ---------------------------------------------------------------------------
# Shared fixtures: fake backend, client and controllers wired together
# ---------------------------------------------------------------------------
@pytest.fixture()
def backend():
    from fake_backend import FakeFestBackend

    return FakeFestBackend()


@pytest.fixture()
def http_client(backend):
    from fastapi.testclient import TestClient

    with TestClient(backend.app) as client:
        yield client


@pytest.fixture()
def api(http_client):
    from shared.api.client import FestApiClient

    return FestApiClient(base_url="http://testserver", http=http_client)


@pytest.fixture()
def settings():
    from shared.config import Settings

    return Settings(verify_max_attempts=3, verify_backoff_seconds=0.5)


@pytest.fixture()
def store():
    from cart.store import CartStore

    return CartStore()


@pytest.fixture()
def toasts():
    from shared.toasts import RecordingToasts

    return RecordingToasts()


@pytest.fixture()
def navigator():
    from shared.navigation import RecordingNavigator

    return RecordingNavigator()


@pytest.fixture()
def gateway():
    from payments.gateway.fake_adapter import FakeRedirectGateway

    return FakeRedirectGateway()


@pytest.fixture()
def sleeps():
    """Backoff delays requested by the payment bridge."""
    return []


@pytest.fixture()
def bridge(api, store, toasts, navigator, gateway, settings, sleeps):
    from payments.bridge import PaymentBridge

    return PaymentBridge(api, store, toasts, navigator, gateway=gateway, settings=settings, sleep=sleeps.append)


@pytest.fixture()
def host_user():
    from shared.identity import AuthenticatedUser

    return AuthenticatedUser(id=USER_ID, email="s190123@rgukt.ac.in", name="Ravi", affiliation="rgukt")


@pytest.fixture()
def guest_user():
    from shared.identity import AuthenticatedUser

    return AuthenticatedUser(id=USER_ID, email="meera@example.com", name="Meera")


@pytest.fixture()
def screen(api, store, toasts, bridge):
    from cart.screen import CartScreen

    return CartScreen(api, store, toasts, bridge)
