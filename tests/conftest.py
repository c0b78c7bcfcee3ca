"""
Shared fixtures
"""

import logging

import pytest
from fastapi.testclient import TestClient

from construction_stages.logging_config import PACKAGE_LOGGER, SERVER_LOGGERS
from construction_stages.repository import ConstructionStageRepository
from construction_stages.server import app, get_service
from construction_stages.service import ConstructionStagesService


@pytest.fixture
def repository(tmp_path):
    """Repository backed by a fresh SQLite file"""
    return ConstructionStageRepository(str(tmp_path / "stages.db"))


@pytest.fixture
def service(repository):
    return ConstructionStagesService(repository)


@pytest.fixture
def client(service):
    """Test client wired to the temporary database"""
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def stage_payload():
    """A valid stage payload"""
    return {
        "name": "Foundation",
        "startDate": "2024-01-01T00:00:00Z",
        "endDate": "2024-01-15T00:00:00Z",
        "durationUnit": "DAYS",
        "color": "#ff0000",
        "externalId": "EXT-1",
    }


@pytest.fixture(autouse=True)
def reset_loggers():
    """Undo setup_logging so handlers bound to captured streams do not leak"""
    yield
    for name in (PACKAGE_LOGGER, *SERVER_LOGGERS):
        target = logging.getLogger(name)
        target.handlers.clear()
        target.propagate = True
        target.setLevel(logging.NOTSET)
