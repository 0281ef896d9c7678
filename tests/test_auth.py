"""
tests/test_auth.py — Role gating on the HTTP surface
"""
from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from order_api.config import Settings
from order_api.core.auth import Role, UnknownRoleError, require_role, role_secret


def test_role_secret_per_role(settings):
    assert role_secret(Role.CUSTOMER, settings) == settings.customer_token
    assert role_secret(Role.ADMIN, settings) == settings.admin_token
    assert role_secret("admin", settings) == settings.admin_token


def test_role_secret_unknown_role(settings):
    with pytest.raises(UnknownRoleError):
        role_secret("superuser", settings)


def test_missing_authorization_header_rejected(client):
    resp = client.get("/customer/orders", headers={"X-Customer-ID": "7"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Unauthorized"


def test_wrong_token_rejected(client):
    resp = client.get("/admin/orders", headers={"Authorization": "nope"})
    assert resp.status_code == 401


def test_admin_token_rejected_on_customer_route(client, admin_headers):
    resp = client.get("/customer/orders", headers={**admin_headers, "X-Customer-ID": "7"})
    assert resp.status_code == 401


def test_customer_token_rejected_on_admin_route(client, customer_headers):
    resp = client.get("/admin/orders", headers=customer_headers)
    assert resp.status_code == 401


def test_admin_token_accepted_on_admin_route(client, admin_headers):
    resp = client.get("/admin/orders", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == []


def test_unknown_role_is_server_fault_and_skips_handler(settings):
    calls = []
    app = FastAPI()
    app.state.settings = settings

    @app.get("/misconfigured", dependencies=[Depends(require_role("superuser"))])
    def handler():
        calls.append(1)
        return {"ok": True}

    resp = TestClient(app).get("/misconfigured", headers={"Authorization": settings.admin_token})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"
    assert calls == []


def test_secrets_come_from_settings(settings, session_factory):
    from order_api.main import create_app

    custom = Settings(_env_file=None, customer_token="rotated", reminder_enabled=False, report_path=None)
    client = TestClient(create_app(settings=custom, session_factory=session_factory))
    headers = {"X-Customer-ID": "7"}
    stale = settings.customer_token
    assert client.get("/customer/orders", headers={**headers, "Authorization": stale}).status_code == 401
    assert client.get("/customer/orders", headers={**headers, "Authorization": "rotated"}).status_code == 200
