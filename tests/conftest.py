import pytest
from fastapi.testclient import TestClient

from apptracker.config import Settings
from apptracker.main import create_app
from apptracker.models.application import Application
from apptracker.store import ApplicationStore


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "data" / "applications.json"


@pytest.fixture
def store(data_path):
    s = ApplicationStore(data_path)
    s.initialize()
    return s


@pytest.fixture
def app(tmp_path):
    config = Settings(data_dir=tmp_path / "data", static_dir=tmp_path / "static")
    return create_app(config)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_app():
    """Factory for Application records with sensible defaults."""

    def _make(company="Acme", position="Engineer", description="", url="", tags=None, status=None):
        application = Application.new(company, position, description, url, tags)
        if status:
            application.update_status(status)
        return application

    return _make
