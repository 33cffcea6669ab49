import sys
import os

import pytest

# project root = package root containing backend/
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
BACKEND_ROOT = os.path.join(PROJECT_ROOT, "backend")

# Add PROJECT_ROOT and BACKEND_ROOT to sys.path
for path in [PROJECT_ROOT, BACKEND_ROOT]:
    if path not in sys.path:
        sys.path.insert(0, path)

from backend.app.core.config import settings  # noqa: E402
from backend.app.services import registry  # noqa: E402
from backend.app.services.ai_client import get_ai_client  # noqa: E402

from fakes import SALES_CSV, FakeAI  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_registry(monkeypatch):
    monkeypatch.setattr(settings, "analysis_min_delay_seconds", 0.0)
    registry.clear()
    yield
    registry.clear()


@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def client(fake_ai):
    from fastapi.testclient import TestClient
    from backend.app.main import app

    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def uploaded(client):
    """Upload SALES_CSV through the API and return the dataset id."""
    r = client.post("/ingest/upload", files={"file": ("sales.csv", SALES_CSV.encode("utf-8"), "text/csv")})
    assert r.status_code == 200, r.text
    return r.json()["dataset_id"]
