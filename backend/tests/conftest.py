"""Pytest configuration and fixtures for the survey test suite."""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment BEFORE the app is imported
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from ndasurvey.client.api import SurveyApiClient  # noqa: E402
from ndasurvey.main import app  # noqa: E402
from ndasurvey.routers.surveys import get_repository  # noqa: E402
from ndasurvey.services.storage import LocalStorage  # noqa: E402
from ndasurvey.services.surveys import SurveyRepository  # noqa: E402
from ndasurvey.wizard.drafts import SurveyDraftStore  # noqa: E402


class FakeClock:
    """Deterministic clock for submission timestamps."""

    def __init__(self, start=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


NDA_VALUES = {
    "bankName": "Alpha Bank",
    "bankAddress": "1 Main Street, Skopje",
    "bankRegNumber": "MK-4002",
    "bankContactName": "Ana Petrova",
    "bankContactPosition": "CISO",
    "receiverName": "Intec Systems",
    "receiverAddress": "12 Partizanska, Skopje",
    "receiverRegNumber": "MK-7781",
    "receiverContactName": "Marko Iliev",
    "receiverContactPosition": "Director",
    "ndaPurpose": "ICT risk assessment",
    "ndaDurationYears": "3",
    "ndaEffectiveDate": "2024-01-10",
}


@pytest.fixture
def nda_values():
    return dict(NDA_VALUES)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    """Server-side document storage."""
    return LocalStorage(tmp_path / "server")


@pytest.fixture
def repo(storage, clock):
    return SurveyRepository(storage, clock=clock)


@pytest.fixture
def client(repo):
    """TestClient rooted at /api with the repository swapped for the temp one."""
    app.dependency_overrides[get_repository] = lambda: repo
    with TestClient(app, base_url="http://testserver/api") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    return SurveyApiClient(http=client)


@pytest.fixture
def draft_storage(tmp_path):
    """Client-local storage used for wizard drafts."""
    return LocalStorage(tmp_path / "client")


@pytest.fixture
def drafts(draft_storage):
    return SurveyDraftStore(draft_storage)
