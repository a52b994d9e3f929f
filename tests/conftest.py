"""Test configuration for pytest."""

import logging

import pytest

from port_master.resolver import PortResolver
from port_master.storage import PortStorage


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from the real database and environment."""
    monkeypatch.setenv("PORT_MASTER_DB_PATH", str(tmp_path / "config" / "ports.db"))
    monkeypatch.delenv("PORT_MASTER_MAX_ALLOCATION_RETRIES", raising=False)
    monkeypatch.delenv("PORT_MASTER_ERROR_LOG_FILE", raising=False)
    monkeypatch.delenv("PORT_MASTER_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    return None


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh database file for one test."""
    return tmp_path / "db" / "ports.db"


@pytest.fixture
def storage(db_path):
    """Isolated store per test case."""
    with PortStorage(db_path) as store:
        yield store


@pytest.fixture
def resolver(storage):
    """Resolver over the isolated store."""
    return PortResolver(storage, max_retries=3)


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers bound to a previous test's captured streams."""
    yield
    logger = logging.getLogger("port_master")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
