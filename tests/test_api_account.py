from bookdash.config import settings


def register(client, username="dave", email="dave@example.com", password="Passw0rd!"):
    return client.post("/api/Account/register", json={"username": username, "email": email, "password": password})


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["db"] is True
    assert "timestamp" in body


def test_register_then_login(client):
    response = register(client)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Registration successful.", "errorCode": None, "data": None}

    response = client.post("/api/Account/login", json={"username": "dave", "password": "Passw0rd!"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "dave"
    assert data["roles"] == ["User"]
    assert data["token"].count(".") == 2
    assert data["expiration"]


def test_login_with_email(client):
    register(client)
    response = client.post("/api/Account/login", json={"username": "dave@example.com", "password": "Passw0rd!"})
    assert response.status_code == 200


def test_register_duplicate_username_is_case_insensitive(client):
    register(client)
    response = register(client, username="DAVE", email="other@example.com")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "username_exists"


def test_register_duplicate_email(client):
    register(client)
    response = register(client, username="someone", email="DAVE@example.com")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "email_exists"


def test_register_invalid_email_is_validation_error(client):
    response = register(client, email="not-an-email")
    assert response.status_code == 400
    assert response.json()["errorCode"] == "validation_error"


def test_register_weak_password_lists_errors(client):
    response = register(client, password="weak")
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["errorCode"] == "identity_error"
    assert len(body["data"]) >= 3


def test_register_missing_field_is_validation_error(client):
    response = client.post("/api/Account/register", json={"username": "dave"})
    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "validation_error"
    assert isinstance(body["data"], list) and body["data"]


def test_login_with_wrong_password(client):
    register(client)
    response = client.post("/api/Account/login", json={"username": "dave", "password": "Wrong0ne!"})
    assert response.status_code == 401
    assert response.json()["errorCode"] == "invalid_credentials"


def test_superadmin_is_seeded(client):
    response = client.post(
        "/api/Account/login",
        json={"username": settings.superadmin_email, "password": settings.superadmin_password},
    )
    assert response.status_code == 200
    assert settings.superadmin_role in response.json()["data"]["roles"]


def test_me_requires_token(client):
    response = client.get("/api/Account/me")
    assert response.status_code == 401
    assert response.json()["errorCode"] == "unauthorized"


def test_me_returns_current_user(client, user_headers):
    response = client.get("/api/Account/me", headers=user_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["userName"] == "bob_reader"
    assert data["roles"] == ["User"]


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/Account/me", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/Nothing")
    assert response.status_code == 404
    assert response.json()["success"] is False
