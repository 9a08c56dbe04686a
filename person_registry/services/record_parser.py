"""
Record parser for the delimited person source.

Each logical record has four fields:

    last name, first name, "<zip> <city>", color code

A record may be split over two physical lines. A line that looks incomplete
(blank, or fewer than four fields) is held back and joined with the next
line; the join is accepted as-is, so a record split over more than two lines
is lost. A held-back line still pending at end of input is dropped.
Malformed records are logged and skipped; parsing never fails as a whole.
"""
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from importlib import resources
from pathlib import Path
from typing import Iterable, Iterator, Optional

import structlog
from pydantic import ValidationError

from person_registry.config.settings import IngestionSettings
from person_registry.models.domain import Color, Person, strip_city_marker
from person_registry.models.exceptions import (
    ColorLookupError,
    InvalidCityFormatError,
    InvalidColorNumberError,
    InvalidZipCodeFormatError,
    RecordParseError,
)

logger = structlog.get_logger(__name__)

BUNDLED_SOURCE = "sample-input.csv"
CSV_DELIMITER = ","
EXPECTED_COLUMNS = 4
ZIP_CITY_PATTERN = re.compile(r"([0-9]{5})\s+(.+)")
COLOR_NUMBER_PATTERN = re.compile(r"[+-]?[0-9]+")


def split_fields(line: str, delimiter: str = CSV_DELIMITER) -> list[str]:
    """Split a line on the delimiter, dropping trailing empty fields"""
    fields = line.split(delimiter)
    while fields and fields[-1] == "":
        fields.pop()
    return fields


def merge_lines(
    line: str, previous_line: Optional[str], delimiter: str = CSV_DELIMITER
) -> Optional[str]:
    """
    Combine the current physical line with a held-back previous line.

    Args:
        line: Current physical line
        previous_line: Line held back on the previous call, if any
        delimiter: Field delimiter

    Returns:
        The complete logical line, or None when `line` looks incomplete and
        should be held back for the next call
    """
    if previous_line is not None:
        merged = f"{previous_line} {line.strip()}"
        head = previous_line.rstrip()
        if (
            head
            and not head.endswith(delimiter)
            and len(split_fields(merged, delimiter)) < EXPECTED_COLUMNS
        ):
            # The break fell on a field boundary without a trailing delimiter
            joined = f"{head}{delimiter}{line.strip()}"
            if len(split_fields(joined, delimiter)) == EXPECTED_COLUMNS:
                return joined
        return merged

    if not line.strip() or len(split_fields(line, delimiter)) < EXPECTED_COLUMNS:
        return None

    return line


class LineMerger:
    """
    Turns physical lines into logical lines for one pass over a source.

    Holds at most one pending line between calls. Use a new instance per
    source; instances must not be shared between concurrent parses.
    """

    def __init__(self, delimiter: str = CSV_DELIMITER) -> None:
        self.delimiter = delimiter
        self.pending: Optional[str] = None

    def feed(self, line: str) -> Optional[str]:
        """Return the next complete logical line, or None if `line` was held back"""
        logical = merge_lines(line, self.pending, self.delimiter)
        if logical is None:
            self.pending = line
            return None

        self.pending = None
        return logical

    def finish(self) -> Optional[str]:
        """End the pass, returning (and discarding) any line still pending"""
        residual, self.pending = self.pending, None
        return residual


def extract_zip_code(city_zip_code: str) -> str:
    """
    Zip code from a "<5 digits> <city>" field.

    Raises:
        InvalidZipCodeFormatError: If the field does not have that shape
    """
    match = ZIP_CITY_PATTERN.fullmatch(city_zip_code)
    if match:
        return match.group(1)
    raise InvalidZipCodeFormatError(city_zip_code)


def extract_city(city_zip_code: str) -> str:
    """
    City from a "<5 digits> <city>" field, without trailing "-*" markers.

    Raises:
        InvalidCityFormatError: If the field does not have that shape
    """
    match = ZIP_CITY_PATTERN.fullmatch(city_zip_code)
    if match:
        return strip_city_marker(match.group(2))
    raise InvalidCityFormatError(city_zip_code)


def parse_color(color_number: str) -> Color:
    """
    Color from its numeric code as text.

    Raises:
        InvalidColorNumberError: If the text is not an integer or no color has that code
    """
    if not COLOR_NUMBER_PATTERN.fullmatch(color_number):
        raise InvalidColorNumberError(color_number)
    try:
        return Color.from_code(int(color_number))
    except ColorLookupError as e:
        raise InvalidColorNumberError(color_number, original_exception=e) from e


def parse_person(fields: list[str]) -> Person:
    """
    Build a person from the four fields of a logical line.

    Raises:
        RecordParseError: If any field is malformed
    """
    last_name = fields[0].strip()
    first_name = fields[1].strip()
    city_zip_code = fields[2].strip()
    color_number = fields[3].strip()

    zip_code = extract_zip_code(city_zip_code)
    city = extract_city(city_zip_code)
    color = parse_color(color_number)

    return Person(
        first_name=first_name,
        last_name=last_name,
        zip_code=zip_code,
        city=city,
        color=color,
    )


class DataSourceReader(ABC):
    """Source of person records for the startup ingestion"""

    @abstractmethod
    def read_data(self) -> list[Person]:
        """Read every valid person from the source. Must not raise."""


class CsvRecordParser(DataSourceReader):
    """Reads persons from a delimited text file, the bundled sample by default"""

    def __init__(
        self,
        source: Optional[Path] = None,
        encoding: str = "utf-8",
        delimiter: str = CSV_DELIMITER,
    ) -> None:
        self.source = source
        self.encoding = encoding
        self.delimiter = delimiter
        self.logger = logger.bind(
            component="record_parser", source=str(source or BUNDLED_SOURCE)
        )

    @classmethod
    def from_settings(cls, settings: IngestionSettings) -> "CsvRecordParser":
        return cls(
            source=settings.source_file,
            encoding=settings.encoding,
            delimiter=settings.delimiter,
        )

    def read_data(self) -> list[Person]:
        """
        Parse the whole source.

        An unreadable source is logged; whatever was parsed before the
        failure is returned.
        """
        persons: list[Person] = []
        try:
            with self._open_source() as lines:
                for person in self.iter_persons(lines):
                    persons.append(person)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("Error reading source file", error=str(e))

        self.logger.info("Source parsed", persons=len(persons))
        return persons

    def parse_lines(self, lines: Iterable[str]) -> list[Person]:
        return list(self.iter_persons(lines))

    def iter_persons(self, lines: Iterable[str]) -> Iterator[Person]:
        """Yield a person for every valid logical line, in input order"""
        merger = LineMerger(self.delimiter)

        for raw_line in lines:
            line = raw_line.rstrip("\r\n")
            logical_line = merger.feed(line)
            if logical_line is None:
                self.logger.info("There is multiline data", line=line)
                continue

            fields = split_fields(logical_line, self.delimiter)
            if len(fields) != EXPECTED_COLUMNS:
                self.logger.warning(
                    "Invalid line format", line=logical_line, field_count=len(fields)
                )
                continue

            try:
                person = parse_person(fields)
            except (RecordParseError, ValidationError) as e:
                self.logger.warning(
                    "Failed to parse person data", line=logical_line, error=str(e)
                )
                continue

            yield person

        residual = merger.finish()
        if residual is not None:
            self.logger.debug("Dropping incomplete trailing record", line=residual)

    @contextmanager
    def _open_source(self) -> Iterator[Iterable[str]]:
        if self.source is not None:
            handle = self.source.open("r", encoding=self.encoding)
        else:
            bundled = resources.files("person_registry") / "data" / BUNDLED_SOURCE
            handle = bundled.open("r", encoding=self.encoding)

        with handle:
            yield handle
