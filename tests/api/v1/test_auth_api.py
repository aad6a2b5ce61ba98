# tests/api/v1/test_auth_api.py

from fastapi.testclient import TestClient

SIGNUP = {"name": "Ada Lovelace", "email": "Ada@Example.com", "password": "engine42"}


def test_signup_returns_token_and_user(test_client_e2e: TestClient):
    response = test_client_e2e.post("/api/v1/auth/signup", json=SIGNUP)

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["id"].startswith("usr_")
    assert "password" not in body["user"]
    assert "password_hash" not in body["user"]


def test_signup_duplicate_email_rejected(test_client_e2e: TestClient):
    test_client_e2e.post("/api/v1/auth/signup", json=SIGNUP)

    response = test_client_e2e.post(
        "/api/v1/auth/signup", json={**SIGNUP, "email": "ada@example.com"}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "User with this email already exists"


def test_signup_validation(test_client_e2e: TestClient):
    for bad in ({"email": "not-an-email"}, {"password": "short"}, {"name": ""}):
        response = test_client_e2e.post("/api/v1/auth/signup", json={**SIGNUP, **bad})
        assert response.status_code == 422, bad


def test_login_and_me(test_client_e2e: TestClient):
    signup = test_client_e2e.post("/api/v1/auth/signup", json=SIGNUP).json()

    response = test_client_e2e.post(
        "/api/v1/auth/login", json={"email": SIGNUP["email"], "password": SIGNUP["password"]}
    )
    assert response.status_code == 200
    token = response.json()["token"]

    response = test_client_e2e.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert response.json() == signup["user"]


def test_login_wrong_password(test_client_e2e: TestClient):
    test_client_e2e.post("/api/v1/auth/signup", json=SIGNUP)

    response = test_client_e2e.post(
        "/api/v1/auth/login", json={"email": SIGNUP["email"], "password": "wrong-one"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_me_requires_valid_token(test_client_e2e: TestClient):
    assert test_client_e2e.get("/api/v1/auth/me").status_code == 401

    response = test_client_e2e.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer garbage"}
    )
    assert response.status_code == 401
