"""
Pytest configuration and fixtures.

Database tests run against a throwaway SQLite file per test so that batch
worker threads can open their own connections. For seeding helpers see
tests/fixtures/matching_fixtures.py.
"""

import pytest

from database.database import build_engine, build_session_factory, init_db
from tests.fixtures.matching_fixtures import Seeder


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database with all tables."""
    engine = build_engine(f"sqlite:///{tmp_path / 'campus_match_test.db'}")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)
