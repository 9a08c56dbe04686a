"""
Exception classes for the person registry.

Lookup errors come from the color enumeration, parse errors are raised while
reading the ingestion source (and contained there), and the remaining classes
are raised by the service layer and translated to HTTP responses by the API.
"""
from typing import Any, Dict, Optional


class PersonRegistryError(Exception):
    """
    Base exception class for all person registry errors

    Attributes:
        message: Error message
        details: Additional error details
        original_exception: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.message = message
        self.details = details or {}
        self.original_exception = original_exception
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "original_exception": str(self.original_exception)
            if self.original_exception
            else None,
        }


# ============================================================================
# Color enumeration lookups
# ============================================================================


class ColorLookupError(PersonRegistryError, ValueError):
    """Value is not a member of the color enumeration"""


class UnknownColorCodeError(ColorLookupError):
    """No color has the requested numeric code"""

    def __init__(self, code: Any):
        super().__init__(f"Unknown color code: {code}", details={"code": code})


class UnknownColorNameError(ColorLookupError):
    """No color has the requested display name"""

    def __init__(self, name: Any):
        super().__init__(f"Unknown color display name: {name}", details={"name": name})


# ============================================================================
# Ingestion parse errors
# ============================================================================


class RecordParseError(PersonRegistryError, ValueError):
    """
    Raised when a single source record cannot be turned into a person.

    Never propagated out of a bulk parse: the offending record is logged and
    dropped.
    """


class InvalidZipCodeFormatError(RecordParseError):
    def __init__(self, value: str):
        super().__init__(f"Invalid zip code format: {value}", details={"value": value})


class InvalidCityFormatError(RecordParseError):
    def __init__(self, value: str):
        super().__init__(f"Invalid city format: {value}", details={"value": value})


class InvalidColorNumberError(RecordParseError):
    def __init__(self, value: str, original_exception: Optional[Exception] = None):
        super().__init__(
            f"Invalid color number: {value}",
            details={"value": value},
            original_exception=original_exception,
        )


# ============================================================================
# Service errors
# ============================================================================


class BadRequestError(PersonRegistryError):
    """Client supplied input that cannot be processed"""


class InvalidColorError(BadRequestError):
    def __init__(self, color: Any, original_exception: Optional[Exception] = None):
        super().__init__(
            f"Invalid color: {color}",
            details={"color": color},
            original_exception=original_exception,
        )


class InvalidIdFormatError(BadRequestError):
    def __init__(self, value: str, original_exception: Optional[Exception] = None):
        super().__init__(
            f"Invalid ID format: {value}",
            details={"id": value},
            original_exception=original_exception,
        )


class InvalidPersonDataError(BadRequestError):
    """Create request violates a person invariant other than the color"""


class MappingFailureError(BadRequestError):
    """Domain to response conversion failed"""


class NotFoundError(PersonRegistryError):
    """Requested identity or color is not present"""


__all__ = [
    "PersonRegistryError",
    "ColorLookupError",
    "UnknownColorCodeError",
    "UnknownColorNameError",
    "RecordParseError",
    "InvalidZipCodeFormatError",
    "InvalidCityFormatError",
    "InvalidColorNumberError",
    "BadRequestError",
    "InvalidColorError",
    "InvalidIdFormatError",
    "InvalidPersonDataError",
    "MappingFailureError",
    "NotFoundError",
]
