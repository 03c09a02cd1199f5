from unittest.mock import patch

import httpx
import pytest
from typer.testing import CliRunner

from bookdash import cli
from bookdash.client.token_store import TokenStore

runner = CliRunner()

PASSWORD = "Passw0rd!"


@pytest.fixture
def store(session_dir):
    return TokenStore(session_dir)


@pytest.fixture
def wired(client, store, monkeypatch):
    """Point the CLI at the in-process API and a temporary session file."""
    monkeypatch.setattr(cli, "get_http_client", lambda: client)
    monkeypatch.setattr(cli, "get_token_store", lambda: store)
    return client


def test_init_db(db_file):
    result = runner.invoke(cli.app, ["init-db"])
    assert result.exit_code == 0
    assert "Database ready" in result.stdout


def test_seed(db_file):
    result = runner.invoke(cli.app, ["seed"])
    assert result.exit_code == 0
    assert "SuperAdmin" in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    result = runner.invoke(cli.app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    assert "Starting BookDash API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "bookdash.api:app" in args
    assert args[args.index("--port") + 1] == "9000"
    assert "--reload" not in args


def test_login_whoami_logout(wired, store, make_user):
    make_user("henry_reader", role="User")

    result = runner.invoke(cli.app, ["login", "henry_reader", "--password", PASSWORD])
    assert result.exit_code == 0
    assert "Logged in as henry_reader" in result.stdout
    assert store.get_token()

    result = runner.invoke(cli.app, ["whoami"])
    assert result.exit_code == 0
    assert "henry_reader" in result.stdout

    result = runner.invoke(cli.app, ["logout"])
    assert "Logged out." in result.stdout
    assert store.get_token() is None

    result = runner.invoke(cli.app, ["whoami"])
    assert "Not logged in." in result.stdout


def test_login_failure(wired, make_user):
    make_user("henry_reader", role="User")
    result = runner.invoke(cli.app, ["login", "henry_reader", "--password", "nope"])
    assert result.exit_code == 1
    assert "Login failed" in result.stdout


def test_books_lists_catalog(wired, book):
    result = runner.invoke(cli.app, ["books"])
    assert result.exit_code == 0
    assert "Dispossessed" in result.stdout
    assert "1974" in result.stdout


def test_books_empty(wired):
    result = runner.invoke(cli.app, ["books", "--search", "nothing-matches"])
    assert result.exit_code == 0
    assert "No books found." in result.stdout


def test_books_when_server_is_down(store, monkeypatch):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(base_url="http://bookdash.invalid", transport=httpx.MockTransport(refuse))
    monkeypatch.setattr(cli, "get_http_client", lambda: http)
    monkeypatch.setattr(cli, "get_token_store", lambda: store)

    result = runner.invoke(cli.app, ["books"])
    assert result.exit_code == 1
    assert "Could not load books" in result.stdout


def test_dashboard(wired, book):
    result = runner.invoke(cli.app, ["dashboard"])
    assert result.exit_code == 0
    assert "Books" in result.stdout
    assert "Genres" in result.stdout
