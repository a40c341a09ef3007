"""Boundary to the spreadsheet parsers.

Parsing the binary file belongs to the parser implementations. This module
picks a parser for the upload and normalizes whatever it returns into a
``ValidationResult``.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from events.domain import Event, FormField

from batches.domain import RowError, StudentData, ValidationResult, ValidationSummary

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls")


@dataclass(frozen=True)
class UploadedSheet:
    """Raw uploaded roster file."""

    filename: str
    content: bytes
    content_type: str = ""

    @property
    def is_excel(self) -> bool:
        content_type = self.content_type.lower()
        return (
            "spreadsheet" in content_type
            or "excel" in content_type
            or self.filename.lower().endswith(EXCEL_EXTENSIONS)
        )


class SpreadsheetParser(ABC):
    """Interface for roster parsers (Excel, CSV)."""

    @abstractmethod
    def parse_and_validate(
        self, content: bytes, form_schema: tuple[FormField, ...]
    ) -> Mapping[str, Any]:
        """Parse ``content`` against the event's form schema.

        Returns a mapping with ``success``, ``rows`` (or ``data``), ``errors``
        as ``{row, field, message}`` items and ``summary`` as
        ``{valid, invalid}``.
        """
        ...


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def parse_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def normalize_row(row: Mapping[str, Any], form_schema: tuple[FormField, ...]) -> StudentData:
    field_ids = {field.field_id for field in form_schema}
    dynamic = row.get("dynamic_data") or {}
    email = _clean(row.get("student_email")).lower()
    return StudentData(
        student_name=_clean(row.get("student_name")),
        grade=_clean(row.get("grade")),
        section=_clean(row.get("section")),
        student_email=email or None,
        exam_date=parse_date(row.get("exam_date")),
        dynamic_data={key: value for key, value in dynamic.items() if key in field_ids},
    )


def _normalize_error(error: Mapping[str, Any]) -> RowError:
    return RowError(
        row=int(error.get("row", 0)),
        field=str(error.get("field", "")),
        message=str(error.get("message") or error.get("error") or "Invalid value"),
    )


class SpreadsheetValidator:
    """Runs the matching parser and normalizes its output."""

    def __init__(self, excel_parser: SpreadsheetParser, csv_parser: SpreadsheetParser) -> None:
        self._excel_parser = excel_parser
        self._csv_parser = csv_parser

    def parser_for(self, upload: UploadedSheet) -> SpreadsheetParser:
        return self._excel_parser if upload.is_excel else self._csv_parser

    def validate(self, upload: UploadedSheet, event: Event) -> ValidationResult:
        raw = self.parser_for(upload).parse_and_validate(upload.content, event.form_schema)

        errors = [_normalize_error(error) for error in raw.get("errors") or ()]
        rows = []
        for index, row in enumerate(raw.get("rows", raw.get("data")) or (), start=1):
            try:
                student = normalize_row(row, event.form_schema)
            except ValueError:
                errors.append(RowError(row=index, field="exam_date", message="Invalid date"))
                continue
            if not student.student_name:
                errors.append(RowError(row=index, field="student_name", message="Required"))
                continue
            if not student.grade:
                errors.append(RowError(row=index, field="grade", message="Required"))
                continue
            rows.append(student)

        reported_invalid = int((raw.get("summary") or {}).get("invalid", 0))
        result = ValidationResult(
            success=bool(raw.get("success")) and not errors and bool(rows),
            rows=tuple(rows),
            errors=tuple(errors),
            summary=ValidationSummary(
                valid=len(rows),
                invalid=max(len({error.row for error in errors}), reported_invalid),
            ),
        )
        logger.info(
            "Validated %s for event %s: %d valid, %d error(s)",
            upload.filename,
            event.slug,
            len(result.rows),
            len(result.errors),
        )
        return result
