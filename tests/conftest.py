"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from client_deployer.api.deps import get_storage_factory
from client_deployer.core.session import SessionManager, get_session_manager
from client_deployer.main import app
from tests.fakes import SITE_FILES, FakeStorage, FakeStorageFactory, write_tree


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def storage_factory() -> FakeStorageFactory:
    return FakeStorageFactory()


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A built site: index.html, error.html, assets/app.js."""
    return write_tree(tmp_path / "dist", SITE_FILES)


@pytest.fixture
def service_dir(tmp_path: Path) -> Path:
    """A service with the single-client layout (client/dist)."""
    service = tmp_path / "service"
    write_tree(service / "client" / "dist", SITE_FILES)
    return service


@pytest.fixture
def multi_client_service_dir(tmp_path: Path) -> Path:
    """A service with the multi-client layout (clients/<name>)."""
    service = tmp_path / "service"
    write_tree(service / "clients" / "admin", {"index.html": "admin"})
    write_tree(service / "clients" / "web", {"index.html": "web", "main.css": "body {}"})
    return service


@pytest.fixture
def session_manager() -> SessionManager:
    """Create a fresh session manager for tests."""
    return SessionManager()


@pytest.fixture
async def client(storage_factory: FakeStorageFactory) -> AsyncClient:
    """Async test client backed by fake storage and a fresh session manager."""
    manager = get_session_manager()
    manager._runs.clear()
    manager._cancel_events.clear()

    async def override_storage_factory() -> Any:
        return storage_factory

    app.dependency_overrides[get_storage_factory] = override_storage_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    manager._runs.clear()
    manager._cancel_events.clear()
