from types import SimpleNamespace

from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from storefront.app_setup.dependencies import get_store_repository
from storefront.utils import security as security_mod
from storefront.utils.security import COOKIE_NAME, get_current_user, require_merchant
from tests.fakes import FakeStoreRepository, make_store


def _make_app(stores=None):
    app = FastAPI()

    @app.get("/me")
    def me(user=Depends(get_current_user)):
        return user

    @app.get("/store")
    def store(s=Depends(require_merchant)):
        return {"store_id": s.id}

    app.dependency_overrides[get_store_repository] = lambda: stores or FakeStoreRepository([make_store()])
    return app

def _fake_supabase(user_id="merchant-1", fail=False):
    def get_user(token):
        if fail:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email="m@example.com"))
    return SimpleNamespace(auth=SimpleNamespace(get_user=get_user))

def test_missing_token_is_401():
    client = TestClient(_make_app())
    res = client.get("/me")
    assert res.status_code == 401

def test_bearer_token_resolves_user(monkeypatch):
    monkeypatch.setattr(security_mod, "get_supabase", lambda: _fake_supabase())
    client = TestClient(_make_app())
    res = client.get("/me", headers={"Authorization": "Bearer abc"})
    assert res.status_code == 200
    assert res.json() == {"id": "merchant-1", "email": "m@example.com", "token": "abc"}

def test_cookie_fallback(monkeypatch):
    monkeypatch.setattr(security_mod, "get_supabase", lambda: _fake_supabase())
    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "cookie-token")
    assert client.get("/me").json()["token"] == "cookie-token"

def test_rejected_token_is_401(monkeypatch):
    monkeypatch.setattr(security_mod, "get_supabase", lambda: _fake_supabase(fail=True))
    client = TestClient(_make_app())
    assert client.get("/me", headers={"Authorization": "Bearer bad"}).status_code == 401

def test_require_merchant_resolves_owned_store(monkeypatch):
    monkeypatch.setattr(security_mod, "get_supabase", lambda: _fake_supabase())
    client = TestClient(_make_app())
    assert client.get("/store", headers={"Authorization": "Bearer abc"}).json() == {"store_id": "store-1"}

def test_require_merchant_forbidden_without_store(monkeypatch):
    monkeypatch.setattr(security_mod, "get_supabase", lambda: _fake_supabase(user_id="customer-9"))
    client = TestClient(_make_app())
    assert client.get("/store", headers={"Authorization": "Bearer abc"}).status_code == 403
