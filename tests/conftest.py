import os

# Keep the default backend unconfigured so "auto" resolves to the heuristics
os.environ["GEMINI_API_KEY"] = ""
os.environ["ANALYSIS_ENGINE"] = "auto"
os.environ["FALLBACK_TO_HEURISTIC"] = "false"

import pytest
from fastapi.testclient import TestClient

from backend import app
from core.config import settings


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


@pytest.fixture
def heuristic_engine(monkeypatch):
    monkeypatch.setattr(settings, "ANALYSIS_ENGINE", "heuristic")


@pytest.fixture
def model_engine(monkeypatch):
    monkeypatch.setattr(settings, "ANALYSIS_ENGINE", "model")


@pytest.fixture
def js_payload():
    return {
        "language": "javascript",
        "code": "var x = 1; if (x == 1) { eval(y); }",
    }
