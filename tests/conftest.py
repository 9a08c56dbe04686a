"""
Shared pytest fixtures: settings, an in-memory database and sample persons.
"""
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from person_registry.config.settings import (
    ApplicationSettings,
    DatabaseSettings,
    IngestionSettings,
    MonitoringSettings,
)
from person_registry.models.database import build_engine, create_tables
from person_registry.models.domain import Color, Person, PersonCreateRequest

IN_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================


@pytest.fixture
def test_settings():
    """Application settings on a private in-memory database, no ingestion"""
    return ApplicationSettings(
        database=DatabaseSettings(database_url=IN_MEMORY_URL),
        ingestion=IngestionSettings(enabled=False),
        monitoring=MonitoringSettings(log_level="WARNING", log_format="text"),
    )


@pytest.fixture
def source_file(tmp_path: Path):
    """Write a source file with the given lines and return its path"""

    def _write(lines: list[str], name: str = "persons.csv") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def db_engine():
    engine = build_engine(DatabaseSettings(database_url=IN_MEMORY_URL))
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def sample_person():
    return Person(
        first_name="John",
        last_name="Doe",
        zip_code="12345",
        city="Sample City",
        color=Color.BLUE,
    )


@pytest.fixture
def sample_persons():
    return [
        Person(first_name="Hans", last_name="Müller", zip_code="67742", city="Lauterecken", color=Color.BLUE),
        Person(first_name="Peter", last_name="Petersen", zip_code="18439", city="Stralsund", color=Color.GREEN),
        Person(first_name="Klaus", last_name="Klaussen", zip_code="43246", city="Hierach", color=Color.GREEN),
    ]


@pytest.fixture
def create_request():
    return PersonCreateRequest(
        name="Jane",
        lastname="Roe",
        zipcode="54321",
        city="Other Town",
        color="türkis",
    )
