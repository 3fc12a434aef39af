"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from expenses.repository import InMemoryExpenseRepository
from main import create_app

AUTH_TOKEN = "November 10, 2009"


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run tests that need a live PostgreSQL at DATABASE_URL",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration is provided."""
    if config.getoption("--integration"):
        return

    skip_integration = pytest.mark.skip(reason="Need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def repository() -> InMemoryExpenseRepository:
    return InMemoryExpenseRepository()


@pytest.fixture
def client(repository):
    app = create_app(repository, auth_token=AUTH_TOKEN)
    with TestClient(app, headers={"Authorization": AUTH_TOKEN}) as c:
        yield c


@pytest.fixture
def auth_token() -> str:
    return AUTH_TOKEN
