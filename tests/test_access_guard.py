"""Tests for token issuance and the bearer-token access guard."""

from datetime import timedelta

import jwt
import pydantic
import pytest

from dental_api.auth.jwt import create_access_token, create_refresh_token, hash_refresh_token, verify_token
from dental_api.config.settings import Settings


def test_access_token_claims(settings):
    token = create_access_token(settings, "u-1", "alice", "dentist", timedelta(minutes=15))
    claims = verify_token(settings, token)
    assert claims["sub"] == "u-1"
    assert claims["username"] == "alice"
    assert claims["usertype"] == "dentist"
    assert claims["type"] == "access"


def test_refresh_tokens_are_random_hex():
    first, second = create_refresh_token(), create_refresh_token()
    assert len(first) == 128
    int(first, 16)
    assert first != second
    assert hash_refresh_token(first) != first


def test_weak_secret_rejected():
    with pytest.raises(pydantic.ValidationError):
        Settings(
            SUPABASE_URL="https://example.supabase.co",
            SUPABASE_SERVICE_ROLE_KEY="k",
            SUPABASE_ANON_KEY="k",
            JWT_SECRET="short",
        )


def test_missing_header(client):
    resp = client.get("/users/all")
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "authentication_error"


def test_malformed_header(client, admin, token_for):
    resp = client.get("/users/all", headers={"Authorization": f"Token {token_for(admin)}"})
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "authentication_error"


def test_bad_signature(client, admin):
    forged = jwt.encode(
        {"sub": admin["id"], "username": "clinicadmin", "usertype": "admin", "type": "access"},
        "some-other-secret-that-is-also-quite-long",
        algorithm="HS256",
    )
    resp = client.get("/users/all", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "invalid_token"


def test_expired_token(client, admin, token_for):
    expired = token_for(admin, lifetime=timedelta(seconds=-5))
    resp = client.get("/users/all", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "invalid_token"


def test_wrong_token_type(client, admin, settings):
    token = jwt.encode(
        {"sub": admin["id"], "usertype": "admin", "type": "refresh"},
        settings.JWT_SECRET,
        algorithm="HS256",
    )
    resp = client.get("/users/all", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "invalid_token"


def test_wrong_role(client, patient_header):
    resp = client.get("/users/all", headers=patient_header)
    assert resp.status_code == 403
    assert resp.json()["error"]["type"] == "forbidden"


def test_role_in_body_is_ignored(client, patient_header):
    resp = client.post(
        "/services/categories",
        json={"name": "Orthodontics", "usertype": "admin"},
        headers=patient_header,
    )
    assert resp.status_code == 403


def test_admin_allowed(client, admin_header):
    resp = client.get("/users/all", headers=admin_header)
    assert resp.status_code == 200
