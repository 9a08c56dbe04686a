"""
Conversions between the HTTP request/response shapes and the Person entity.
"""
import structlog
from pydantic import ValidationError

from person_registry.models.domain import (
    Color,
    Person,
    PersonCreateRequest,
    PersonResponse,
)
from person_registry.models.exceptions import (
    ColorLookupError,
    InvalidColorError,
    InvalidPersonDataError,
)

logger = structlog.get_logger(__name__)


class PersonMapper:
    """Maps create requests to persons and persons to responses"""

    def to_domain(self, request: PersonCreateRequest) -> Person:
        """
        Convert a create request to an unsaved Person.

        Raises:
            InvalidColorError: If the color is not a known display name
            InvalidPersonDataError: If another field breaks a Person invariant
        """
        color = self._parse_color(request.color)

        try:
            return Person(
                first_name=request.first_name,
                last_name=request.last_name,
                zip_code=request.zip_code,
                city=request.city,
                color=color,
            )
        except ValidationError as e:
            raise InvalidPersonDataError(
                f"Invalid person data: {e.errors()[0]['msg']}",
                details={"errors": [error["msg"] for error in e.errors()]},
                original_exception=e,
            ) from e

    def to_response(self, person: Person) -> PersonResponse:
        """
        Convert a Person to its HTTP representation.

        Raises:
            InvalidColorError: If the person's color cannot be rendered
        """
        return PersonResponse(
            id=person.id,
            first_name=person.first_name,
            last_name=person.last_name,
            zip_code=person.zip_code,
            city=person.city,
            color=self._color_display_name(person.color),
        )

    def _parse_color(self, color: str) -> Color:
        try:
            return Color.from_display_name(color)
        except ColorLookupError as e:
            raise InvalidColorError(color, original_exception=e) from e

    def _color_display_name(self, color: Color) -> str:
        if not isinstance(color, Color):
            logger.error("Person has no valid color", color=repr(color))
            raise InvalidColorError(color)
        return color.display_name
