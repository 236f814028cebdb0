"""
Test configuration and fixtures.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from catalog_service.database import create_engine, create_tables  # noqa: E402
from catalog_service.service import build_catalog_service  # noqa: E402


@pytest.fixture
def database_url(tmp_path):
    """A throwaway SQLite file; a file (not :memory:) so every session gets its own connection."""
    return f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = create_engine(database_url, echo=False)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def service(engine):
    return build_catalog_service(engine)


@pytest.fixture
def hotel_payload():
    """Factory for valid create payloads."""
    def make(**overrides):
        payload = {
            "name": "Hotel Paris Centrale",
            "location": {"address": "12 Rue de Rivoli", "city": "Paris", "country": "France"},
            "rating": 4.5,
            "description": "Close to the Louvre",
            "unit_price": 180.0,
            "available_units": 5,
            "image_ref": "images/paris-centrale.jpg",
        }
        location = overrides.pop("location", None)
        if location:
            payload["location"] = {**payload["location"], **location}
        payload.update(overrides)
        return payload
    return make
