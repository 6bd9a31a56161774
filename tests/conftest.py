"""Shared test fixtures for datastep tests."""

import pytest
import responses

from datastep import Client, LocalDatastore, LocalHost, PollConfig

USER_ID = 7
OTHER_USER_ID = 8


@pytest.fixture
def client() -> Client:
    """Create a test client."""
    return Client(base_url="http://localhost:8080/api", timeout=10)


@pytest.fixture
def mock_responses():
    """Enable responses mocking for HTTP requests."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def user_id() -> int:
    return USER_ID


@pytest.fixture
def fast_poll() -> PollConfig:
    return PollConfig(interval_ms=5)


@pytest.fixture
def import_store(tmp_path) -> LocalDatastore:
    """The test user's personal import datastore, initially empty."""
    return LocalDatastore(
        "My Files", tmp_path / "imports", is_import=True, owner=USER_ID
    )


@pytest.fixture
def sales_store(tmp_path) -> LocalDatastore:
    """A shared datastore holding an ``orders`` table."""
    root = tmp_path / "sales"
    root.mkdir()
    (root / "orders.csv").write_text(
        "id, customer, total\n1, acme, 10\n2, globex, 20\n", encoding="utf-8"
    )
    return LocalDatastore("Sales", root)


@pytest.fixture
def host(import_store, sales_store) -> LocalHost:
    return LocalHost([import_store, sales_store])
