"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Self
from uuid import UUID

# Minor-unit precision per ISO currency code.
MINOR_UNITS = {
    "INR": 2,
    "USD": 2,
    "JPY": 0,
}


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Non-negative amount in a single currency."""

    amount: Decimal
    currency: str = "INR"

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")
        if self.currency not in MINOR_UNITS:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @property
    def exponent(self) -> Decimal:
        return Decimal(1).scaleb(-MINOR_UNITS[self.currency])

    def quantize(self, amount: Decimal) -> Decimal:
        """Round an amount in this currency to its minor unit."""
        return amount.quantize(self.exponent, rounding=ROUND_HALF_UP)

    def __str__(self) -> str:
        return f"{self.quantize(self.amount)} {self.currency}"


@dataclass(frozen=True)
class DiscountRule:
    """A bulk discount tier unlocked at ``min_students``."""

    min_students: int
    discount_percentage: Decimal

    def __post_init__(self) -> None:
        if self.min_students < 1:
            raise ValueError("Discount rule minimum students must be at least 1")
        if not Decimal(0) <= self.discount_percentage <= Decimal(100):
            raise ValueError("Discount percentage must be between 0 and 100")

    def applies_to(self, student_count: int) -> bool:
        return self.min_students <= student_count


@dataclass(frozen=True)
class FormField:
    """One event-specific column of the registration form."""

    field_id: str
    field_label: str
    field_type: str = "text"
    required: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        return cls(
            field_id=data["field_id"],
            field_label=data.get("field_label", data["field_id"]),
            field_type=data.get("field_type", "text"),
            required=bool(data.get("required", False)),
        )
