"""
Document Tree Store

Navigation and mutation of a client's document tree:

    documents[year][month] -> MonthRecord -> category -> files -> notes

Nodes are created lazily and never removed. Everything here works on the
in-memory Client; persistence is the caller's concern.
"""

import logging
from typing import Iterable, Optional

from domain.aggregates import CategoryDocument, Client, MonthRecord, OtherCategory
from domain.value_objects import CategorySelector, FileRecord

from ..errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def validate_period(
    year: int,
    month: int,
    min_year: Optional[int] = None,
    max_year: Optional[int] = None,
) -> None:
    """Reject a month outside 1-12 or a year outside the optional window."""
    if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
        raise ValidationError(
            f"Invalid month: {month}. Must be between 1 and 12",
            details={"month": month},
        )
    if not isinstance(year, int) or isinstance(year, bool):
        raise ValidationError(f"Invalid year: {year}", details={"year": year})
    too_early = min_year is not None and year < min_year
    too_late = max_year is not None and year > max_year
    if too_early or too_late:
        raise ValidationError(
            f"Invalid year: {year}. Must be between {min_year} and {max_year}",
            details={"year": year, "min_year": min_year, "max_year": max_year},
        )


def get_month(client: Client, year: int, month: int) -> Optional[MonthRecord]:
    """Return the month node if it exists."""
    return client.get_month(year, month)


def get_or_create_month(client: Client, year: int, month: int) -> MonthRecord:
    """
    Return the month node, creating a zero-valued one if absent.

    The zero-valued record has three empty standard categories, no 'other'
    categories, no notes and is unlocked. The year level is allocated when
    missing. An existing record is always reused, never replaced.
    """
    validate_period(year, month)

    months = client.documents.setdefault(str(year), {})
    record = months.get(str(month))
    if record is None:
        record = MonthRecord()
        months[str(month)] = record
        logger.debug(f"Created month {year}-{month:02d} for client {client.client_id}")
    return record


def get_or_create_category(month_record: MonthRecord, selector: CategorySelector) -> CategoryDocument:
    """Return the addressed category, creating a missing 'other' entry."""
    category = month_record.get_category(selector)
    if category is None:
        entry = OtherCategory(category_name=selector.name)
        month_record.other.append(entry)
        category = entry.document
    return category


def attach_files(
    month_record: MonthRecord,
    selector: CategorySelector,
    files: Iterable[FileRecord],
) -> CategoryDocument:
    """Append files to a category. Existing files are never replaced."""
    category = get_or_create_category(month_record, selector)
    category.files.extend(files)
    return category


def remove_file(month_record: MonthRecord, selector: CategorySelector, file_name: str) -> FileRecord:
    """
    Remove a file by name and return its descriptor.

    The caller records the deletion reason and deletes the stored object.

    Raises:
        NotFoundError: no file with that name in the category
    """
    category = month_record.get_category(selector)
    if category is not None:
        for index, file in enumerate(category.files):
            if file.file_name == file_name:
                return category.files.pop(index)

    raise NotFoundError(
        f"File '{file_name}' not found in {selector.label}",
        details={"category": selector.label, "file_name": file_name},
    )


def find_file(month_record: MonthRecord, selector: CategorySelector, file_name: str) -> FileRecord:
    """Look up a file by name, raising NotFoundError when absent."""
    category = month_record.get_category(selector)
    file = category.find_file(file_name) if category is not None else None
    if file is None:
        raise NotFoundError(
            f"File '{file_name}' not found in {selector.label}",
            details={"category": selector.label, "file_name": file_name},
        )
    return file


def month_has_documents(client: Client, year: int, month: int) -> bool:
    """True when at least one category of the month holds a file."""
    record = client.get_month(year, month)
    return record is not None and record.has_files()
