"""Fixtures wiring settings, services and the front ends against temporary paths."""
import pytest
from fastapi.testclient import TestClient

from interest_api.config.settings import Settings
from interest_api.dependencies import build_services
from interest_api.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / "interest.db"),
        storage_dir=str(tmp_path / "storage"),
        log_level="DEBUG",
    )


@pytest.fixture
def services(settings, http_session):
    return build_services(settings, http_session=http_session)


@pytest.fixture
def upload_folder_path(settings, tmp_path):
    """Directory on disk behind the default upload folder `1:/user_upload/`"""
    return tmp_path / "storage" / "1" / "user_upload"


@pytest.fixture
def client(services) -> TestClient:
    app = create_app(services=services)
    with TestClient(app) as client:
        yield client
