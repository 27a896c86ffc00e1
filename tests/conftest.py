import os

# Pas de Redis en test: le lifespan désactive proprement le rate limiting
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Generator, Dict, Any
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from storefront.app_setup import dependencies as deps
from storefront.app_setup.factory import create_app
from storefront.checkout.service import CheckoutService
from storefront.payments.webhook import PaymentReconciler
from storefront.stores.service import OnboardingService
from storefront.utils.security import get_current_user
from tests.fakes import FakeProcessor, Ledger

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return create_app()

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def ledger() -> Ledger:
    return Ledger()

@pytest.fixture()
def processor() -> FakeProcessor:
    return FakeProcessor()

# Aucun accès Supabase réel pendant les tests
@pytest.fixture(autouse=True)
def mock_supabase(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.health.service.get_service_supabase", lambda: MagicMock())

@pytest.fixture()
def merchant_user() -> Dict[str, Any]:
    return {"id": "merchant-1", "email": "merchant@example.com", "token": "fake-token"}

# Câble l'app sur les doubles en mémoire (repositories, processeur, notifier)
@pytest.fixture()
def wired_app(app, ledger, processor, merchant_user):
    app.dependency_overrides[deps.get_processor] = lambda: processor
    app.dependency_overrides[deps.get_store_repository] = lambda: ledger.stores
    app.dependency_overrides[deps.get_order_service] = lambda: ledger.service
    app.dependency_overrides[deps.get_checkout_service] = lambda: CheckoutService(processor, ledger.service)
    app.dependency_overrides[deps.get_onboarding_service] = lambda: OnboardingService(processor, ledger.stores)
    app.dependency_overrides[deps.get_reconciler] = lambda: PaymentReconciler(processor, ledger.service, ledger.stores)
    app.dependency_overrides[get_current_user] = lambda: merchant_user
    try:
        yield app
    finally:
        app.dependency_overrides.clear()

@pytest.fixture()
def api(wired_app) -> Generator[TestClient, None, None]:
    with TestClient(wired_app) as c:
        yield c
