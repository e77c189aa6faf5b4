"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from datetime import datetime
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from logos_core.core.models import CognitiveLoad, Construct, Item  # noqa: E402
from logos_core.db.database import get_session_factory, init_db  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory SQLite database)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed, naive reference time."""
    return datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections, with tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the in-memory engine."""
    return get_session_factory(engine)


@pytest.fixture
def sample_item():
    """Provide a sample vocabulary item."""
    return Item(
        item_id="lex-casa",
        frequency=0.8,
        relational_density=0.4,
        contextual_contribution=0.5,
        irt_difficulty=0.0,
        irt_discrimination=1.2,
        component="LEX",
    )


@pytest.fixture
def make_construct():
    """Factory for constructs with sensible defaults."""

    def _make(construct_id, complexity=0.5, frequency=0.5, prerequisites=(), is_core=False, load=2):
        return Construct(
            construct_id=construct_id,
            complexity=complexity,
            frequency=frequency,
            cognitive_load=CognitiveLoad(load, load, load, load, load),
            prerequisites=frozenset(prerequisites),
            is_core=is_core,
        )

    return _make
