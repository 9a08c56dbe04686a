"""
Person repository: the record store behind the service and the ingestion.
"""
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from person_registry.models.database import PersonTable
from person_registry.models.domain import Color, Person
from person_registry.repositories.base import BaseRepository, RepositoryError

logger = structlog.get_logger(__name__)


class PersonRepository(BaseRepository[Person]):
    """Repository for person records"""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PersonTable, Person)
        self.logger = logger.bind(repository="person")

    async def find_all(self) -> list[Person]:
        """All persons in identity order"""
        return await self.list_all()

    async def find_by_id(self, person_id: int) -> Optional[Person]:
        return await self.get_by_id(person_id)

    async def find_by_color(self, color: Color) -> list[Person]:
        """All persons whose favourite color is `color`, in identity order"""
        return await self.list_all(filters={"color": color})

    async def save(self, person: Person) -> Person:
        """
        Persist a person.

        A person without identity is inserted and returned with the identity
        the database assigned. A person that already has one overwrites the
        stored row; its identity never changes.

        Raises:
            RepositoryError: If the write fails
        """
        if person.id is None:
            saved = await self.create(person)
            self.logger.info("Person created", person_id=saved.id)
            return saved

        try:
            db_person = await self.session.merge(self._to_database_model(person))
            await self.session.flush()
            return self._to_domain_model(db_person)

        except Exception as e:
            await self.session.rollback()
            self.logger.error("Failed to update person", person_id=person.id, error=str(e))
            raise RepositoryError(f"Failed to update person: {e}", e) from e

    async def save_all(self, persons: list[Person]) -> list[Person]:
        """
        Insert a batch of new persons in one flush.

        Returns:
            The persons with their assigned identities, in input order

        Raises:
            RepositoryError: If the batch cannot be written
        """
        try:
            db_persons = [self._to_database_model(person) for person in persons]
            self.session.add_all(db_persons)
            await self.session.flush()

            self.logger.info("Persons saved", count=len(db_persons))

            return [self._to_domain_model(db_person) for db_person in db_persons]

        except Exception as e:
            await self.session.rollback()
            self.logger.error("Failed to save persons", count=len(persons), error=str(e))
            raise RepositoryError(f"Failed to save persons: {e}", e) from e

    def _to_domain_model(self, db_entity: PersonTable) -> Person:
        return Person(
            id=db_entity.id,
            first_name=db_entity.first_name,
            last_name=db_entity.last_name,
            zip_code=db_entity.zip_code,
            city=db_entity.city,
            color=db_entity.color,
        )
