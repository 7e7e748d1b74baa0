from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.adapters.clock import FixedClock
from src.adapters.memory_remote import InMemoryContentRemote
from src.api.deps import get_circular_store, get_popup_store
from src.api.main import app
from src.components.lifecycle import CircularStore, PopupStore
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def rules() -> Rules:
    """The shipped rules.yaml."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def remote() -> InMemoryContentRemote:
    return InMemoryContentRemote(clock=FixedClock(datetime(2025, 1, 1, tzinfo=UTC)))


@pytest.fixture
def popup_store(remote: InMemoryContentRemote) -> PopupStore:
    return PopupStore(remote)


@pytest.fixture
def circular_store(remote: InMemoryContentRemote) -> CircularStore:
    return CircularStore(remote)


@pytest.fixture
def client(popup_store: PopupStore, circular_store: CircularStore) -> Iterator[TestClient]:
    """API client wired to stores over the in-memory remote."""
    app.dependency_overrides[get_popup_store] = lambda: popup_store
    app.dependency_overrides[get_circular_store] = lambda: circular_store
    yield TestClient(app)
    app.dependency_overrides.clear()
