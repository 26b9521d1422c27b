import json
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

import readtrack.cli as cli
from readtrack.api import create_app
from readtrack.client import BookApiClient
from readtrack.config import Settings, settings
from readtrack.store import BookFormData

runner = CliRunner()


@pytest.fixture
def use_api(monkeypatch):
    """Route the CLI's client to an in-process app."""

    def _use(app):
        test_client = TestClient(app)
        monkeypatch.setattr(
            cli,
            "make_client",
            lambda base_url, api_key, timeout: BookApiClient(
                base_url="http://testserver", api_key=api_key, http_client=test_client
            ),
        )
        return test_client

    return _use


@pytest.fixture
def api(app, use_api):
    return use_api(app)


def _add(title="1984", author="George Orwell", description=""):
    return runner.invoke(cli.app, ["add", "--title", title, "--author", author, "--description", description])


def test_list_no_books(api):
    result = runner.invoke(cli.app, ["list"])
    assert result.exit_code == 0
    assert "No books yet." in result.stdout


def test_add_book_success(api):
    result = _add()
    assert result.exit_code == 0
    assert "✓ Book added successfully! (id 1)" in result.stdout

    result = runner.invoke(cli.app, ["list"])
    assert "1 - 1984 by George Orwell" in result.stdout


def test_add_book_with_prompts(api):
    result = runner.invoke(cli.app, ["add"], input="Dune\nFrank Herbert\nSpice\n")
    assert result.exit_code == 0
    assert "Book added successfully!" in result.stdout
    assert api.get("/api/books/1").json()["data"]["description"] == "Spice"


def test_add_book_form_errors_are_not_submitted(api):
    result = _add(title="", author="")
    assert result.exit_code == 1
    assert "Error: Please fix the errors below." in result.stdout
    assert "  - Title is required" in result.stdout
    assert "  - Author is required" in result.stdout
    assert api.get("/api/books").json()["data"] == []


def test_add_book_server_rejection_shows_error_toast(api, monkeypatch):
    # Bypass the form rules so the server's validation answers
    monkeypatch.setattr(cli, "prompt_book_form", lambda **kwargs: (BookFormData("", "x"), []))
    result = runner.invoke(cli.app, ["add"])
    assert result.exit_code == 1
    assert "✕ Validation errors occurred." in result.stdout
    assert "  - Title is required" in result.stdout


def test_show_book(api):
    _add(description="Big Brother is watching")
    result = runner.invoke(cli.app, ["show", "1"])
    assert result.exit_code == 0
    assert "Title: 1984" in result.stdout
    assert "Author: George Orwell" in result.stdout
    assert "Description: Big Brother is watching" in result.stdout


def test_show_book_not_found(api):
    result = runner.invoke(cli.app, ["show", "99"])
    assert result.exit_code == 1
    assert "Book with id 99 not found." in result.stdout


def test_list_search(api):
    _add("1984", "George Orwell")
    _add("Dune", "Frank Herbert")
    result = runner.invoke(cli.app, ["list", "--search", "herbert"])
    assert "2 - Dune by Frank Herbert" in result.stdout
    assert "1984" not in result.stdout

    result = runner.invoke(cli.app, ["list", "-s", "nothing-matches"])
    assert "No books match 'nothing-matches'." in result.stdout


def test_list_json_output(api):
    _add()
    result = runner.invoke(cli.app, ["--output", "json", "list"])
    assert json.loads(result.stdout) == [
        {"id": 1, "title": "1984", "author": "George Orwell", "description": None}
    ]


def test_edit_book(api):
    _add()
    result = runner.invoke(cli.app, ["edit", "1", "--title", "Nineteen Eighty-Four"], input="\n\n")
    assert result.exit_code == 0
    assert "✓ Book updated successfully!" in result.stdout
    data = api.get("/api/books/1").json()["data"]
    assert data["title"] == "Nineteen Eighty-Four"
    assert data["author"] == "George Orwell"


def test_edit_book_not_found(api):
    result = runner.invoke(cli.app, ["edit", "5", "--title", "X", "--author", "Y", "--description", ""])
    assert result.exit_code == 1
    assert "Book with id 5 not found." in result.stdout


def test_delete_book_with_yes(api):
    _add()
    result = runner.invoke(cli.app, ["delete", "1", "--yes"])
    assert result.exit_code == 0
    assert "✓ Book \"1984\" deleted successfully!" in result.stdout
    assert api.get("/api/books/1").status_code == 404


def test_delete_book_confirmation(api):
    _add()
    result = runner.invoke(cli.app, ["delete", "1"], input="n\n")
    assert "Are you sure you want to delete" in result.stdout
    assert "Deletion cancelled." in result.stdout
    assert result.exit_code == 0
    assert api.get("/api/books/1").status_code == 200

    result = runner.invoke(cli.app, ["delete", "1"], input="y\n")
    assert "deleted successfully!" in result.stdout
    assert api.get("/api/books/1").status_code == 404


def test_delete_without_confirmation_preference(api):
    _add()
    runner.invoke(cli.app, ["config", "set", "ui_settings.confirm_deletions", "false"])
    result = runner.invoke(cli.app, ["delete", "1"])
    assert "Are you sure" not in result.stdout
    assert "deleted successfully!" in result.stdout


def test_list_server_unreachable(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    monkeypatch.setattr(
        cli,
        "make_client",
        lambda base_url, api_key, timeout: BookApiClient(
            http_client=httpx.Client(transport=httpx.MockTransport(handler), base_url=base_url)
        ),
    )
    result = runner.invoke(cli.app, ["list"])
    assert result.exit_code == 1
    assert "Error: Unable to connect to server." in result.stdout
    assert "Run the command again to retry." in result.stdout


def test_auth_gate_blocks_data_views(api, monkeypatch):
    monkeypatch.setattr(settings, "require_auth", True)

    result = runner.invoke(cli.app, ["list"])
    assert result.exit_code == 1
    assert "You need to log in first." in result.stdout

    result = runner.invoke(cli.app, ["login", "--token", "abc"])
    assert "Logged in." in result.stdout

    result = runner.invoke(cli.app, ["list"])
    assert "No books yet." in result.stdout

    result = runner.invoke(cli.app, ["logout"])
    assert "Logged out." in result.stdout
    result = runner.invoke(cli.app, ["list"])
    assert "You need to log in first." in result.stdout


def test_login_prompts_for_token(api):
    with patch("webbrowser.open") as mock_open:
        result = runner.invoke(cli.app, ["login"], input="pasted-token\n")
    assert "Logged in." in result.stdout
    mock_open.assert_not_called()
    result = runner.invoke(cli.app, ["config", "get", "auth.access_token"])
    assert "auth.access_token: pasted-token" in result.stdout


def test_token_is_sent_as_api_key(db_file, use_api):
    use_api(create_app(Settings(database_file=db_file, require_api_key=True, api_key="test-key")))

    result = _add()
    assert result.exit_code == 1
    assert "✕ Could not validate credentials" in result.stdout

    runner.invoke(cli.app, ["login", "--token", "test-key"])
    result = _add()
    assert "✓ Book added successfully!" in result.stdout


def test_config_set_and_get(api):
    result = runner.invoke(cli.app, ["config", "set", "api_settings.timeout", "30"])
    assert "api_settings.timeout set to 30" in result.stdout
    result = runner.invoke(cli.app, ["config", "get", "api_settings.timeout"])
    assert "api_settings.timeout: 30" in result.stdout
    result = runner.invoke(cli.app, ["config", "get", "missing.key"])
    assert result.exit_code == 1
    assert "Key 'missing.key' not found" in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    result = runner.invoke(cli.app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    assert "Starting ReadTrack API on" in result.stdout
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "--factory" in args
    assert "readtrack.api:create_app" in args
    assert args[args.index("--port") + 1] == "9000"
