"""
Pytest fixtures for inventory tracker tests.

Provides an in-memory document store, users, seeding helpers and an API
client wired to the in-memory store.
"""

import pytest
from fastapi.testclient import TestClient

from inventory_tracker.core.config import settings
from inventory_tracker.core.security import create_session_token
from inventory_tracker.db.document_store import (
    ADDITION_REQUESTS_COLLECTION,
    INVENTORY_COLLECTION,
    REMOVAL_REQUESTS_COLLECTION,
)
from inventory_tracker.db.mongodb import get_document_store
from inventory_tracker.main import app
from inventory_tracker.models.inventory import normalize_name
from inventory_tracker.models.user import CurrentUser
from tests.memory_store import MemoryDocumentStore


@pytest.fixture
def store():
    """Fresh in-memory store for each test."""
    return MemoryDocumentStore()


@pytest.fixture
def admin():
    return CurrentUser(id="admin-1", name="Alice Admin", is_admin=True)


@pytest.fixture
def user():
    return CurrentUser(id="user-1", name="Sam Staff")


@pytest.fixture
def other_user():
    return CurrentUser(id="user-2", name="Olive Other")


@pytest.fixture
def seed_item(store):
    """Put an inventory item in the store and return its id."""

    def _seed(doc_id, name, quantity, unit, normalized=True, **extra):
        data = {"name": name, "quantity": quantity, "unit": unit, **extra}
        if normalized:
            data["normalized_name"] = normalize_name(name)
        store.seed(INVENTORY_COLLECTION, doc_id, data)
        return doc_id

    return _seed


@pytest.fixture
def seed_request(store, user):
    """Put a pending request in the store and return its id."""

    def _seed(request_id, kind, items, requester=None, **extra):
        requester = requester or user
        collection = ADDITION_REQUESTS_COLLECTION if kind == "addition" else REMOVAL_REQUESTS_COLLECTION
        data = {
            "user_id": requester.id,
            "user_name": requester.name,
            "requested_items": items,
            "status": "pending",
            **extra,
        }
        store.seed(collection, request_id, data)
        return request_id

    return _seed


@pytest.fixture
def client(store):
    """API client backed by the in-memory store. Startup events are not run."""
    app.dependency_overrides[get_document_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _login(client, current_user):
    client.cookies.set(
        settings.SESSION_COOKIE_NAME,
        create_session_token(current_user.id, current_user.name, is_admin=current_user.is_admin)
    )
    return client


@pytest.fixture
def user_client(client, user):
    return _login(client, user)


@pytest.fixture
def admin_client(store, admin):
    """Separate client so admin and user sessions can be used in one test."""
    app.dependency_overrides[get_document_store] = lambda: store
    yield _login(TestClient(app), admin)
    app.dependency_overrides.clear()
