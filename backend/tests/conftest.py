"""Shared fixtures."""
import pytest
from finsight.storage.database import SQLiteDocumentStore
from factories import FixedClock, at, make_rule


@pytest.fixture
def store(tmp_path):
    """Fresh SQLite document store per test."""
    return SQLiteDocumentStore(str(tmp_path / "finsight_test.db"))


@pytest.fixture
def clock():
    return FixedClock(at(2024, 3, 5))


@pytest.fixture
def rent_rule():
    return make_rule()
