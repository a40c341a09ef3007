"""Tiered bulk-discount pricing.

Prices are always resolved from the current student count rather than
adjusted incrementally, so repeated add/remove edits never drift.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from events.domain import DiscountRule, Money

_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class PriceBreakdown:
    currency: str
    subtotal: Decimal
    discount_percentage: Decimal
    discount_amount: Decimal
    total: Decimal


def applicable_discount(student_count: int, rules: Iterable[DiscountRule]) -> Decimal:
    """Return the largest percentage among rules the count qualifies for.

    The winning tier is the one with the greatest percentage, not the one
    with the greatest threshold.
    """
    return max(
        (rule.discount_percentage for rule in rules if rule.applies_to(student_count)),
        default=Decimal(0),
    )


def resolve(
    base_fee: Money, student_count: int, rules: Iterable[DiscountRule] = ()
) -> PriceBreakdown:
    """Price ``student_count`` students at ``base_fee`` each."""
    if student_count < 1:
        raise ValueError("A batch must contain at least one student")

    subtotal = base_fee.quantize(base_fee.amount * student_count)
    percentage = applicable_discount(student_count, rules)
    discount_amount = base_fee.quantize(subtotal * percentage / _HUNDRED)
    return PriceBreakdown(
        currency=base_fee.currency,
        subtotal=subtotal,
        discount_percentage=percentage,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
    )
