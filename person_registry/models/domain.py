"""
Core domain models for the person registry.

The color enumeration, the validated Person entity and the request/response
shapes exposed over HTTP. Pydantic handles validation and serialization.
"""
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from person_registry.models.exceptions import (
    UnknownColorCodeError,
    UnknownColorNameError,
)

ZIP_CODE_PATTERN = re.compile(r"^[0-9]{5}$")
CITY_MARKER_SUFFIX = "-*"


class Color(Enum):
    """Closed set of favourite colors: numeric code and display name per tag"""

    BLUE = (1, "blau")
    GREEN = (2, "grün")
    PURPLE = (3, "violett")
    RED = (4, "rot")
    YELLOW = (5, "gelb")
    TURQUOISE = (6, "türkis")
    WHITE = (7, "weiß")

    def __init__(self, code: int, display_name: str) -> None:
        self.code = code
        self.display_name = display_name

    @classmethod
    def from_code(cls, code: int) -> "Color":
        """
        Look up a color by its numeric code.

        Raises:
            UnknownColorCodeError: If no color has this code
        """
        for color in cls:
            if color.code == code:
                return color
        raise UnknownColorCodeError(code)

    @classmethod
    def from_display_name(cls, name: str) -> "Color":
        """
        Look up a color by display name, ignoring case.

        Raises:
            UnknownColorNameError: If no color has this display name
        """
        if isinstance(name, str):
            wanted = name.lower()
            for color in cls:
                if color.display_name.lower() == wanted:
                    return color
        raise UnknownColorNameError(name)


def strip_city_marker(city: str) -> str:
    """Remove trailing "-*" markers and surrounding whitespace from a city"""
    city = city.strip()
    while city.endswith(CITY_MARKER_SUFFIX):
        city = city[: -len(CITY_MARKER_SUFFIX)].strip()
    return city


# ============================================================================
# Domain Entity
# ============================================================================


class Person(BaseModel):
    """Validated person record, as parsed from the source or created via API"""

    id: Optional[int] = Field(
        None, frozen=True, description="Store-assigned identity, absent until saved"
    )
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    zip_code: str = Field(..., description="Five digit zip code")
    city: str = Field(..., description="City name")
    color: Color = Field(..., description="Favourite color")

    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    @field_validator("zip_code")
    @classmethod
    def validate_zip_code(cls, v: str) -> str:
        """Zip codes are exactly five digits"""
        if not ZIP_CODE_PATTERN.match(v):
            raise ValueError("Zip code must be exactly 5 digits")
        return v

    @field_validator("city")
    @classmethod
    def normalize_city(cls, v: str) -> str:
        return strip_city_marker(v)


# ============================================================================
# API Models
# ============================================================================


class PersonCreateRequest(BaseModel):
    """Body of POST /persons; color is an unvalidated display name"""

    first_name: str = Field(..., alias="name")
    last_name: str = Field(..., alias="lastname")
    zip_code: str = Field(..., alias="zipcode")
    city: str
    color: str

    model_config = ConfigDict(populate_by_name=True)


class PersonResponse(BaseModel):
    """Person as returned over HTTP, color rendered as its display name"""

    id: Optional[int] = None
    first_name: str = Field(..., alias="name")
    last_name: str = Field(..., alias="lastname")
    zip_code: str = Field(..., alias="zipcode")
    city: str
    color: str

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error body shared by all failing requests"""

    message: str
    details: str


__all__ = [
    "Color",
    "Person",
    "PersonCreateRequest",
    "PersonResponse",
    "ErrorResponse",
    "strip_city_marker",
]
