import pytest
from fastapi.testclient import TestClient

from readtrack.api import create_app
from readtrack.client import BookApiClient
from readtrack.config import Settings
from readtrack.library import Library


@pytest.fixture(autouse=True)
def isolated_cli_env(tmp_path, monkeypatch):
    # Keep CLI config and output mode out of the user's home directory
    monkeypatch.setenv("READTRACK_CONFIG_DIR", str(tmp_path / "cli-config"))
    monkeypatch.delenv("READTRACK_OUTPUT", raising=False)


@pytest.fixture
def db_file(tmp_path):
    return str(tmp_path / "library.db")


@pytest.fixture
def lib(db_file):
    return Library(db_file=db_file)


@pytest.fixture
def app_settings(db_file):
    return Settings(database_file=db_file, require_api_key=False, require_auth=False, debug=False)


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def api_client(client):
    """BookApiClient talking to the in-process API."""
    return BookApiClient(base_url="http://testserver", http_client=client)
