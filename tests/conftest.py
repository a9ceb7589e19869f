"""
Shared fixtures.

Everything runs against the in-memory backend; no external services.
"""

import pytest
import pytest_asyncio

from src.models.ledger import (
    GlobalRole,
    LedgerCreate,
    PermissionGrant,
    RequestContext,
    User,
)
from src.orchestrator import build_components, memory_storage


@pytest.fixture
def components():
    return build_components(memory_storage())


@pytest.fixture
def storage(components):
    return components.storage


@pytest.fixture
def store(components):
    return components.store


async def _add_user(storage, name: str, email: str, role: GlobalRole = GlobalRole.USER) -> User:
    user = User(name=name, email=email, role=role)
    await storage.users.save_user(user)
    return user


@pytest_asyncio.fixture
async def admin_user(storage):
    return await _add_user(storage, "Platform Admin", "admin@example.com", GlobalRole.ADMIN)


@pytest_asyncio.fixture
async def ricky(storage):
    return await _add_user(storage, "Ricky", "ricky@example.com")


@pytest_asyncio.fixture
async def viewer_user(storage):
    return await _add_user(storage, "Val Viewer", "val@example.com")


@pytest_asyncio.fixture
async def stranger(storage):
    return await _add_user(storage, "Stan Stranger", "stan@example.com")


@pytest.fixture
def admin_ctx(admin_user):
    return RequestContext(user_id=admin_user.id, global_role=GlobalRole.ADMIN)


@pytest.fixture
def ricky_ctx(ricky):
    return RequestContext(user_id=ricky.id)


@pytest.fixture
def viewer_ctx(viewer_user):
    return RequestContext(user_id=viewer_user.id)


@pytest.fixture
def stranger_ctx(stranger):
    return RequestContext(user_id=stranger.id)


@pytest_asyncio.fixture
async def ricky_ledger(store, admin_ctx, ricky, viewer_user):
    """Ricky's ledger, shared read-only with the viewer."""
    return await store.create_ledger(admin_ctx, LedgerCreate(
        name="Ricky's Savings",
        owner_id=ricky.id,
        description="Household savings",
        permissions=[PermissionGrant(user=viewer_user.id)],
    ))


@pytest.fixture
def ricky_rows():
    """The three savings deposits, supplied out of date order."""
    return [
        {"date": "2023-08-02", "description": "Savings", "amount": "1500.00"},
        {"date": "2023-07-27", "description": "Savings", "amount": "500.00"},
        {"date": "2023-07-28", "description": "Savings", "amount": "1000.00"},
    ]
