import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from tasklist_api.main import app  # noqa: E402
from tasklist_api.repositories import InMemoryRepository, get_repository  # noqa: E402


@pytest.fixture
def repo():
    """Fresh in-memory repository per test."""
    return InMemoryRepository()


@pytest.fixture
def client(repo):
    """TestClient whose requests share the per-test repository."""
    app.dependency_overrides[get_repository] = lambda: repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_repository, None)
