"""Unit tests for tiered bulk-discount pricing.

Run with: pytest tests/test_pricing.py -v
"""

from decimal import Decimal

import pytest

from batches.domain.pricing import applicable_discount, resolve
from events.domain import DiscountRule, Money

INR_100 = Money(Decimal("100"), "INR")


def rules(*tiers: tuple[int, str]) -> tuple[DiscountRule, ...]:
    return tuple(
        DiscountRule(min_students=count, discount_percentage=Decimal(pct)) for count, pct in tiers
    )


class TestTierSelection:
    def test_highest_qualifying_tier_wins(self):
        """With tiers 5→10% and 10→20%, ten students get 20%."""
        price = resolve(INR_100, 10, rules((5, "10"), (10, "20")))
        assert price.discount_percentage == Decimal("20")

    def test_no_qualifying_rule_means_no_discount(self):
        price = resolve(INR_100, 2, rules((5, "10")))
        assert price.discount_percentage == 0
        assert price.total == price.subtotal == Decimal("200.00")

    def test_largest_percentage_beats_largest_threshold(self):
        """A lower threshold with a bigger percentage is preferred."""
        assert applicable_discount(12, rules((3, "25"), (10, "15"))) == Decimal("25")

    def test_duplicate_thresholds_take_maximum(self):
        assert applicable_discount(5, rules((5, "10"), (5, "12"))) == Decimal("12")

    def test_rule_order_does_not_matter(self):
        forward = resolve(INR_100, 10, rules((5, "10"), (10, "20")))
        backward = resolve(INR_100, 10, rules((10, "20"), (5, "10")))
        assert forward == backward


class TestArithmetic:
    def test_three_students_at_ten_percent(self):
        price = resolve(INR_100, 3, rules((3, "10")))
        assert price.subtotal == Decimal("300.00")
        assert price.discount_amount == Decimal("30.00")
        assert price.total == Decimal("270.00")
        assert price.currency == "INR"

    def test_discount_rounds_to_minor_unit(self):
        price = resolve(Money(Decimal("33.33"), "INR"), 3, rules((3, "12.5")))
        assert price.subtotal == Decimal("99.99")
        assert price.discount_amount == Decimal("12.50")
        assert price.total == Decimal("87.49")

    def test_total_is_subtotal_minus_discount_for_every_count(self):
        tiers = rules((3, "7.5"), (10, "12.25"), (25, "33.3"))
        fee = Money(Decimal("49.99"), "USD")
        for count in range(1, 60):
            price = resolve(fee, count, tiers)
            assert price.subtotal == fee.amount * count
            assert price.total == price.subtotal - price.discount_amount

    def test_rejects_empty_batch(self):
        with pytest.raises(ValueError):
            resolve(INR_100, 0, rules((3, "10")))


class TestMonotonicity:
    def test_discount_percentage_never_decreases_with_more_students(self):
        tiers = rules((20, "5"), (3, "10"), (10, "8"), (40, "30"))
        percentages = [applicable_discount(count, tiers) for count in range(1, 60)]
        assert percentages == sorted(percentages)
