"""
Person use cases: list, lookup by identity, filter by color and create.

Every failure leaves this layer as a PersonRegistryError subclass so the API
can translate it to a status code in one place.
"""
import re
from typing import Optional

import structlog

from person_registry.models.domain import Color, PersonCreateRequest, PersonResponse
from person_registry.models.exceptions import (
    ColorLookupError,
    InvalidColorError,
    InvalidIdFormatError,
    MappingFailureError,
    NotFoundError,
)
from person_registry.repositories.person_repository import PersonRepository
from person_registry.services.person_mapper import PersonMapper

logger = structlog.get_logger(__name__)

ID_PATTERN = re.compile(r"[+-]?[0-9]+")
MAX_ID = 2**63 - 1
MIN_ID = -(2**63)


class PersonService:
    """Orchestrates person lookups and creation against the repository"""

    def __init__(
        self, repository: PersonRepository, mapper: Optional[PersonMapper] = None
    ) -> None:
        self.repository = repository
        self.mapper = mapper or PersonMapper()
        self.logger = logger.bind(service="person")

    async def get_all_persons(self) -> list[PersonResponse]:
        """All persons in store order"""
        persons = await self.repository.find_all()
        return [self._map_to_response(person) for person in persons]

    async def get_person_by_id(self, person_id: str) -> PersonResponse:
        """
        Raises:
            InvalidIdFormatError: If `person_id` is not a 64-bit integer
            NotFoundError: If no person has this identity
        """
        parsed_id = self._parse_id(person_id)
        person = await self.repository.find_by_id(parsed_id)
        if person is None:
            raise NotFoundError(
                f"Person not found with ID: {person_id}", details={"id": person_id}
            )
        return self._map_to_response(person)

    async def get_persons_by_color(self, color: str) -> list[PersonResponse]:
        """
        Raises:
            NotFoundError: If `color` is not a known display name
        """
        try:
            color_value = Color.from_display_name(color)
        except ColorLookupError as e:
            raise NotFoundError(
                f"Invalid color: {color}", details={"color": color}, original_exception=e
            ) from e

        persons = await self.repository.find_by_color(color_value)
        return [self._map_to_response(person) for person in persons]

    async def create_person(self, request: PersonCreateRequest) -> PersonResponse:
        """
        Validate, persist and return a new person.

        Raises:
            InvalidColorError: If the color is not a known display name
            InvalidPersonDataError: If another field is invalid
        """
        try:
            color_value = Color.from_display_name(request.color)
        except ColorLookupError as e:
            raise InvalidColorError(request.color, original_exception=e) from e

        person = self.mapper.to_domain(request)
        person.color = color_value
        saved = await self.repository.save(person)

        self.logger.info("Person created", person_id=saved.id, color=color_value.name)

        return self._map_to_response(saved)

    def _map_to_response(self, person) -> PersonResponse:
        try:
            return self.mapper.to_response(person)
        except Exception as e:
            self.logger.error("Failed to map person", person_id=person.id, error=str(e))
            raise MappingFailureError(
                "Failed to map person to response", original_exception=e
            ) from e

    @staticmethod
    def _parse_id(person_id: str) -> int:
        if not ID_PATTERN.fullmatch(person_id or ""):
            raise InvalidIdFormatError(person_id)
        parsed = int(person_id)
        if not MIN_ID <= parsed <= MAX_ID:
            raise InvalidIdFormatError(person_id)
        return parsed
