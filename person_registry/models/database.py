"""
SQLAlchemy database models and engine construction.

The persons table stores the color by its canonical tag; identities are
assigned by the database on insert.
"""
from sqlalchemy import Column, Enum, Index, Integer, String
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from person_registry.config.settings import DatabaseSettings
from person_registry.models.domain import Color

Base = declarative_base()


class PersonTable(Base):
    """Persons ingested from the source file or created through the API"""

    __tablename__ = "persons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    zip_code = Column(String(5), nullable=False)
    city = Column(String(255), nullable=False)
    color = Column(Enum(Color, name="color"), nullable=False, index=True)

    __table_args__ = (Index("idx_persons_last_first", "last_name", "first_name"),)

    def __repr__(self) -> str:
        return (
            f"<Person(id={self.id}, last_name='{self.last_name}', "
            f"color={self.color})>"
        )


def build_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine described by the database settings"""
    url = settings.async_database_url()

    if settings.is_in_memory():
        # One shared connection, otherwise every checkout sees an empty database
        return create_async_engine(
            url,
            echo=settings.database_echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    if settings.is_sqlite():
        return create_async_engine(url, echo=settings.database_echo)

    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=True,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
