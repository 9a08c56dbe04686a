"""
Unit tests for PersonMapper conversions.
"""
import pytest

from person_registry.models.domain import Color, Person, PersonCreateRequest
from person_registry.models.exceptions import (
    BadRequestError,
    InvalidColorError,
    InvalidPersonDataError,
)
from person_registry.services.person_mapper import PersonMapper


@pytest.fixture
def mapper():
    return PersonMapper()


class TestToDomain:
    def test_maps_every_field(self, mapper, create_request):
        person = mapper.to_domain(create_request)

        assert person.id is None
        assert person.first_name == "Jane"
        assert person.last_name == "Roe"
        assert person.zip_code == "54321"
        assert person.city == "Other Town"
        assert person.color is Color.TURQUOISE

    def test_color_is_case_insensitive(self, mapper, create_request):
        create_request.color = "TÜRKIS"
        assert mapper.to_domain(create_request).color is Color.TURQUOISE

    def test_unknown_color(self, mapper, create_request):
        create_request.color = "neon"

        with pytest.raises(InvalidColorError) as exc_info:
            mapper.to_domain(create_request)

        assert exc_info.value.message == "Invalid color: neon"

    def test_invalid_zip_code(self, mapper):
        request = PersonCreateRequest(
            name="Jane", lastname="Roe", zipcode="5432", city="Other Town", color="rot"
        )

        with pytest.raises(InvalidPersonDataError) as exc_info:
            mapper.to_domain(request)

        assert isinstance(exc_info.value, BadRequestError)
        assert exc_info.value.message.startswith("Invalid person data")


class TestToResponse:
    def test_maps_every_field(self, mapper):
        person = Person(
            id=5,
            first_name="Jonas",
            last_name="Müller",
            zip_code="32323",
            city="Hansstadt",
            color=Color.YELLOW,
        )

        response = mapper.to_response(person)

        assert response.model_dump(by_alias=True) == {
            "id": 5,
            "name": "Jonas",
            "lastname": "Müller",
            "zipcode": "32323",
            "city": "Hansstadt",
            "color": "gelb",
        }

    def test_person_without_color_cannot_be_rendered(self, mapper, sample_person):
        broken = sample_person.model_construct(
            first_name="John",
            last_name="Doe",
            zip_code="12345",
            city="Sample City",
            color=None,
        )

        with pytest.raises(InvalidColorError):
            mapper.to_response(broken)
