"""Tests for /auth signup, login and profile routes."""

from datetime import timedelta

import pytest

from conftest import signup
from security import create_access_token


def test_signup_returns_bearer_token(client):
    resp = client.post("/auth/signup", json={"email": "carol@example.com", "password": "longenough"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]


def test_signup_stores_lowercased_email_and_hash(client, db):
    signup(client, email="Dave@Example.com")
    doc = db["authuser"].find_one({"email": "dave@example.com"})
    assert doc is not None
    assert doc["password_hash"] != "s3cret-pass"
    assert doc["is_active"] is True
    assert "created_at" in doc and "updated_at" in doc


def test_signup_rejects_duplicate_email_case_insensitively(client, alice):
    resp = client.post("/auth/signup", json={"email": "ALICE@example.com", "password": "another-pass"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email is already registered"


def test_signup_rejects_short_password(client):
    resp = client.post("/auth/signup", json={"email": "eve@example.com", "password": "short"})
    assert resp.status_code == 422


def test_signup_ignores_unknown_fields(client, db):
    resp = client.post(
        "/auth/signup",
        json={"email": "mallory@example.com", "password": "longenough", "is_admin": True},
    )
    assert resp.status_code == 201
    doc = db["authuser"].find_one({"email": "mallory@example.com"})
    assert "is_admin" not in doc


def test_login_and_me(client, alice):
    resp = client.post("/auth/login", json={"email": "alice@example.com", "password": "s3cret-pass"})
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "alice@example.com"
    assert body["name"] == "Alice"
    assert "password_hash" not in body


def test_login_wrong_password(client, alice):
    resp = client.post("/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


def test_login_unknown_email(client):
    resp = client.post("/auth/login", json={"email": "nobody@example.com", "password": "whatever"})
    assert resp.status_code == 401


@pytest.mark.parametrize(
    "body",
    [
        {"email": "", "password": "s3cret-pass"},
        {"email": "not-an-email", "password": "s3cret-pass"},
        {"password": "s3cret-pass"},
        {"email": "alice@example.com"},
        {"email": "alice@example.com", "password": ""},
    ],
)
def test_login_body_validation(client, body):
    resp = client.post("/auth/login", json=body)
    assert resp.status_code == 422


def test_login_inactive_user(client, db, alice):
    db["authuser"].update_one({"email": "alice@example.com"}, {"$set": {"is_active": False}})
    resp = client.post("/auth/login", json={"email": "alice@example.com", "password": "s3cret-pass"})
    assert resp.status_code == 403


def test_me_requires_token(client):
    resp = client.get("/auth/me")
    assert resp.status_code == 401


def test_me_rejects_garbage_token(client):
    resp = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_me_rejects_expired_token(client, db, alice):
    user_id = str(db["authuser"].find_one({"email": "alice@example.com"})["_id"])
    token = create_access_token({"sub": user_id}, expires_delta=timedelta(minutes=-1))
    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_me_rejects_token_for_unknown_user(client):
    token = create_access_token({"sub": "5f1d7f0e2a3b4c5d6e7f8a9b"})
    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
