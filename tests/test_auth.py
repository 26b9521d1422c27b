from unittest.mock import patch

import pytest

from readtrack.auth import AuthenticationRequired, AuthSession
from readtrack.cli_config import CLIConfig
from readtrack.config import Settings


@pytest.fixture
def config(tmp_path):
    return CLIConfig(config_dir=tmp_path / "cfg")


def test_login_persists_token(config, tmp_path):
    session = AuthSession(config, Settings())
    assert session.is_authenticated is False

    session.login("  abc123 ")

    assert session.is_authenticated is True
    reloaded = AuthSession(CLIConfig(config_dir=tmp_path / "cfg"), Settings())
    assert reloaded.token == "abc123"


def test_login_rejects_empty_token(config):
    with pytest.raises(ValueError, match="Access token cannot be empty."):
        AuthSession(config, Settings()).login("  ")


@patch("webbrowser.open", return_value=True)
def test_logout_clears_token_and_redirects(mock_open, config):
    session = AuthSession(config, Settings(auth_logout_url="https://id.example.com/logout"))
    session.login("abc")

    session.logout()

    assert session.is_authenticated is False
    mock_open.assert_called_once_with("https://id.example.com/logout")


@patch("webbrowser.open", return_value=True)
def test_open_login_page(mock_open, config):
    assert AuthSession(config, Settings(auth_login_url=None)).open_login_page() is False
    mock_open.assert_not_called()

    assert AuthSession(config, Settings(auth_login_url="https://id.example.com/login")).open_login_page() is True
    mock_open.assert_called_once_with("https://id.example.com/login")


def test_require_blocks_until_authenticated(config):
    session = AuthSession(config, Settings(require_auth=True))
    with pytest.raises(AuthenticationRequired):
        session.require()

    session.login("abc")
    session.require()


def test_require_is_noop_when_gate_disabled(config):
    AuthSession(config, Settings(require_auth=False)).require()
