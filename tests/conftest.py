import os
from pathlib import Path
import tempfile

# Must be set before crosswalk.config builds its settings singleton
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault(
    "LOGGING__LOG_FILE", str(Path(tempfile.gettempdir()) / "crosswalk-tests.log")
)

import pytest

from crosswalk.config.settings import MatchingConfig
from crosswalk.infrastructure.persistence.database.db_connection import (
    create_db_engine,
    create_session_factory,
)
from crosswalk.infrastructure.persistence.database.db_models import init_db
from crosswalk.infrastructure.persistence.repositories import MatchCache
from tests.fixtures.catalog import FakeCatalogClient


@pytest.fixture
async def db_engine():
    """Fresh in-memory database with the schema created."""
    engine = create_db_engine("sqlite+aiosqlite:///:memory:")
    try:
        await init_db(engine)
    except Exception as e:
        pytest.fail(f"Database initialization failed: {e}")
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def match_cache(session_factory):
    """Match cache backed by the in-memory database."""
    return MatchCache(session_factory)


@pytest.fixture
def catalog():
    """Empty fake catalog; tests populate the result lists they need."""
    return FakeCatalogClient()


@pytest.fixture
def matching_config():
    return MatchingConfig()
