import pytest


@pytest.fixture
def reader(make_user):
    user, _ = make_user("dave_reader", role="User")
    return user


def role_id(client, headers, name):
    roles = client.get("/api/Roles", headers=headers).json()["data"]
    return next(r["id"] for r in roles if r["name"] == name)


# --- Roles ---

def test_seeded_roles(client, superadmin_headers):
    response = client.get("/api/Roles", headers=superadmin_headers)
    assert response.status_code == 200
    names = {r["name"] for r in response.json()["data"]}
    assert {"SuperAdmin", "Admin", "User"} <= names


def test_roles_need_superadmin(client, admin_headers, user_headers):
    assert client.get("/api/Roles", headers=admin_headers).status_code == 403
    assert client.get("/api/Roles", headers=user_headers).status_code == 403
    assert client.get("/api/Roles").status_code == 401


def test_create_update_delete_role(client, superadmin_headers):
    response = client.post("/api/Roles", json={"name": "Moderator"}, headers=superadmin_headers)
    assert response.status_code == 201
    created = response.json()["data"]
    assert created["normalizedName"] == "MODERATOR"

    response = client.put(f"/api/Roles/{created['id']}", json={"name": "Curator"}, headers=superadmin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Curator"

    assert client.delete(f"/api/Roles/{created['id']}", headers=superadmin_headers).status_code == 200
    response = client.get(f"/api/Roles/{created['id']}", headers=superadmin_headers)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "ROLE_NOT_FOUND"


def test_duplicate_role_conflicts(client, superadmin_headers):
    response = client.post("/api/Roles", json={"name": "admin"}, headers=superadmin_headers)
    assert response.status_code == 409
    assert response.json()["errorCode"] == "ROLE_EXISTS"


def test_role_name_length(client, superadmin_headers):
    response = client.post("/api/Roles", json={"name": " x "}, headers=superadmin_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_ROLE_NAME"


def test_role_in_use_cannot_be_deleted(client, superadmin_headers, reader):
    user_role = role_id(client, superadmin_headers, "User")
    response = client.delete(f"/api/Roles/{user_role}", headers=superadmin_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "ROLE_IN_USE"


# --- User roles ---

def test_users_with_roles(client, superadmin_headers, reader):
    response = client.get("/api/UserRoles/users-with-roles", headers=superadmin_headers)
    assert response.status_code == 200
    by_name = {u["userName"]: u for u in response.json()["data"]}
    assert by_name["dave_reader"]["roles"] == ["User"]
    assert "SuperAdmin" in by_name["superadmin"]["roles"]


def test_assign_and_remove_role(client, superadmin_headers, reader):
    payload = {"userId": reader.id, "roleIdOrName": "Admin"}
    response = client.post("/api/UserRoles/assign", json=payload, headers=superadmin_headers)
    assert response.status_code == 200
    assert sorted(response.json()["data"]["roles"]) == ["Admin", "User"]

    response = client.post("/api/UserRoles/assign", json=payload, headers=superadmin_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "ALREADY_IN_ROLE"

    response = client.post("/api/UserRoles/remove", json=payload, headers=superadmin_headers)
    assert response.json()["data"]["roles"] == ["User"]

    response = client.post("/api/UserRoles/remove", json=payload, headers=superadmin_headers)
    assert response.status_code == 400
    assert response.json()["errorCode"] == "NOT_IN_ROLE"


def test_assign_role_by_id(client, superadmin_headers, reader):
    admin_role = role_id(client, superadmin_headers, "Admin")
    response = client.post(
        "/api/UserRoles/assign", json={"userId": reader.id, "roleIdOrName": admin_role}, headers=superadmin_headers
    )
    assert "Admin" in response.json()["data"]["roles"]


def test_set_role_replaces_memberships(client, superadmin_headers, reader):
    response = client.post(
        "/api/UserRoles/set-role", json={"userId": reader.id, "roleName": "Admin"}, headers=superadmin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["roles"] == ["Admin"]

    response = client.get(f"/api/UserRoles/{reader.id}", headers=superadmin_headers)
    assert response.json()["data"]["roles"] == ["Admin"]


def test_unknown_user_or_role(client, superadmin_headers, reader):
    response = client.post(
        "/api/UserRoles/assign", json={"userId": "nobody", "roleIdOrName": "Admin"}, headers=superadmin_headers
    )
    assert response.status_code == 404
    assert response.json()["errorCode"] == "USER_NOT_FOUND"

    response = client.post(
        "/api/UserRoles/assign", json={"userId": reader.id, "roleIdOrName": "Ghost"}, headers=superadmin_headers
    )
    assert response.status_code == 404
    assert response.json()["errorCode"] == "ROLE_NOT_FOUND"


# --- Role claims ---

def test_role_claims(client, superadmin_headers):
    admin_role = role_id(client, superadmin_headers, "Admin")
    response = client.post(
        "/api/RoleClaims",
        json={"roleId": admin_role, "claimType": "permission", "claimValue": "books.write"},
        headers=superadmin_headers,
    )
    assert response.status_code == 201
    claim = response.json()["data"]

    claims = client.get(f"/api/RoleClaims/by-role/{admin_role}", headers=superadmin_headers).json()["data"]
    assert [(c["claimType"], c["claimValue"]) for c in claims] == [("permission", "books.write")]

    assert client.delete(f"/api/RoleClaims/{claim['id']}", headers=superadmin_headers).status_code == 200
    response = client.delete(f"/api/RoleClaims/{claim['id']}", headers=superadmin_headers)
    assert response.status_code == 404
    assert response.json()["errorCode"] == "ROLE_CLAIM_NOT_FOUND"


def test_role_claim_for_unknown_role(client, superadmin_headers):
    response = client.post(
        "/api/RoleClaims",
        json={"roleId": "missing", "claimType": "permission", "claimValue": "x"},
        headers=superadmin_headers,
    )
    assert response.status_code == 404
