"""Pytest configuration and shared fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from batches import models as batch_models
from batches.domain import SchoolId
from batches.services.container import build_batch_services
from batches.services.spreadsheet import SpreadsheetParser
from batches.services.storage import FileStorage
from events import models as event_models


class FakeParser(SpreadsheetParser):
    """Parser returning a canned result and counting calls."""

    def __init__(self) -> None:
        self.calls = 0
        self.result: dict = {"success": True, "rows": [], "errors": [], "summary": {}}

    def returns_students(self, count: int) -> None:
        self.result = {
            "success": True,
            "rows": [
                {
                    "student_name": f" Student {n} ",
                    "grade": str(5 + n % 3),
                    "section": "A",
                    "dynamic_data": {"tshirt": "M", "unknown": "dropped"},
                }
                for n in range(1, count + 1)
            ],
            "errors": [],
            "summary": {"valid": count, "invalid": 0},
        }

    def returns_errors(self, errors: list[dict]) -> None:
        self.result = {
            "success": False,
            "rows": [],
            "errors": errors,
            "summary": {"valid": 0, "invalid": len(errors)},
        }

    def parse_and_validate(self, content, form_schema):
        self.calls += 1
        return self.result


class FakeStorage(FileStorage):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.stored: list[tuple[str, str]] = []
        self.deleted: list[tuple[str, str]] = []

    def store(self, content, filename, batch_reference):
        if self.fail:
            raise OSError("storage unavailable")
        self.stored.append((filename, batch_reference))
        return f"https://files.example.com/{batch_reference}/{filename}"

    def delete(self, filename, batch_reference):
        self.deleted.append((filename, batch_reference))


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def school_row(db) -> batch_models.School:
    return batch_models.School.objects.create(
        name="Delhi Public School",
        school_code="DPS01",
        currency_pref="INR",
        is_verified=True,
    )


@pytest.fixture
def other_school_row(db) -> batch_models.School:
    return batch_models.School.objects.create(
        name="Greenwood High",
        school_code="GWH02",
        currency_pref="INR",
        is_verified=True,
    )


@pytest.fixture
def school_id(school_row) -> SchoolId:
    return SchoolId(value=school_row.id)


@pytest.fixture
def event_row(db) -> event_models.Event:
    event = event_models.Event.objects.create(
        slug="math-olympiad",
        title="Math Olympiad",
        status="active",
        schedule_type="date_range",
        event_start_date=date(2026, 12, 1),
        base_fee_inr=Decimal("100"),
        base_fee_usd=Decimal("5"),
        form_schema=[
            {"field_id": "tshirt", "field_label": "T-Shirt Size", "field_type": "select"},
        ],
    )
    event_models.DiscountRule.objects.create(
        event=event, min_students=3, discount_percentage=Decimal("10")
    )
    return event


@pytest.fixture
def excel_parser() -> FakeParser:
    parser = FakeParser()
    parser.returns_students(3)
    return parser


@pytest.fixture
def csv_parser() -> FakeParser:
    parser = FakeParser()
    parser.returns_students(2)
    return parser


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def services(excel_parser, csv_parser, storage):
    return build_batch_services(excel_parser, csv_parser, storage=storage)
