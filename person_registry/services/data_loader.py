"""
Startup ingestion: parse the configured source and bulk-save the result.

Best effort only. Nothing raised here may stop the application from starting.
"""
from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from person_registry.models.domain import Person
from person_registry.repositories.base import DatabaseSession
from person_registry.repositories.person_repository import PersonRepository
from person_registry.services.record_parser import DataSourceReader

logger = structlog.get_logger(__name__)


class DataLoader:
    """
    Loads persons from a data source reader into the person store.

    With `only_if_empty` the source seeds the store once: a store that already
    holds persons is left untouched, so restarts against a file database do
    not duplicate the source.
    """

    def __init__(
        self,
        reader: DataSourceReader,
        session_factory: Callable[[], AsyncSession],
        only_if_empty: bool = True,
    ) -> None:
        self.reader = reader
        self.session_factory = session_factory
        self.only_if_empty = only_if_empty
        self.logger = logger.bind(component="data_loader")

    async def load_data(self) -> list[Person]:
        """
        Read the source and save every parsed person in one transaction.

        Returns:
            The saved persons, or an empty list if nothing was loaded
        """
        try:
            async with DatabaseSession(self.session_factory()) as session:
                repository = PersonRepository(session)

                if self.only_if_empty:
                    existing = await repository.count()
                    if existing:
                        self.logger.info(
                            "Store already populated, skipping data load",
                            existing_records=existing,
                        )
                        return []

                persons = self.reader.read_data()
                if not persons:
                    self.logger.warning("No data to load, the person list is empty")
                    return []

                saved = await repository.save_all(persons)

            self.logger.info("Data successfully loaded", total_records=len(saved))
            return saved

        except Exception as e:
            self.logger.error(
                "Error occurred during data loading",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return []
