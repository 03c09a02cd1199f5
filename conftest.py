import pytest
from fastapi.testclient import TestClient

from bookdash import database
from bookdash.config import settings
from bookdash.repositories import (
    AuthorRepository,
    BookRepository,
    GenreRepository,
    RoleRepository,
    UserRepository,
)
from bookdash.security import hash_password

DEFAULT_PASSWORD = "Passw0rd!"


@pytest.fixture
def db_file(tmp_path, monkeypatch):
    # Fresh database file per test
    path = str(tmp_path / "bookdash_test.db")
    monkeypatch.setattr(database, "DATABASE_FILE", path)
    database.initialize_database()
    return path


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
def session_dir(tmp_path):
    return str(tmp_path / "session")


@pytest.fixture
def client(db_file, upload_dir):
    from bookdash.api import app

    # Entering the context runs the lifespan: tables, roles and the SuperAdmin account
    with TestClient(app) as test_client:
        yield test_client


def login_headers(client, username, password=DEFAULT_PASSWORD):
    response = client.post("/api/Account/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


@pytest.fixture
def make_user(client):
    """Factory creating a user directly in the database, optionally in a role, and returning auth headers."""

    def _make(username, role="User", password=DEFAULT_PASSWORD):
        users = UserRepository()
        user = users.create(username, f"{username}@example.com", hash_password(password))
        if role:
            users.add_to_role(user.id, RoleRepository().get_by_name(role).id)
        return user, login_headers(client, username, password)

    return _make


@pytest.fixture
def superadmin_headers(client):
    return login_headers(client, settings.superadmin_email, settings.superadmin_password)


@pytest.fixture
def admin_headers(make_user):
    return make_user("alice_admin", role="Admin")[1]


@pytest.fixture
def user_headers(make_user):
    return make_user("bob_reader", role="User")[1]


@pytest.fixture
def other_user_headers(make_user):
    return make_user("carol_reader", role="User")[1]


@pytest.fixture
def author(db_file):
    return AuthorRepository().create("Ursula K. Le Guin", "American author")


@pytest.fixture
def genre(db_file):
    return GenreRepository().create("Science Fiction")


@pytest.fixture
def book(author, genre):
    return BookRepository().create("The Dispossessed", author.author_id, genre.genre_id, 1974, "An ambiguous utopia")
