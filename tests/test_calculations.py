from decimal import Decimal

from venue_crm.domain.proposals.calculations import (
    VenuePricing,
    commission,
    effective_rate,
    line_total,
    price_charge_lines,
    price_venue,
    summarise_proposal,
    venue_total,
)
from venue_crm.shared.money import quantize_money

LINES = [
    {"description": "Hall", "quantity": 2, "unitPrice": 2500, "category": "room_hire"},
    {"description": "Lunch", "quantity": 100, "unitPrice": 45, "category": "food_beverage"},
]


class TestLineArithmetic:
    def test_worked_example(self):
        assert line_total(2, 2500) == Decimal("5000.00")
        assert line_total(100, 45) == Decimal("4500.00")
        assert venue_total(LINES) == Decimal("9500.00")
        assert commission(Decimal("9500"), effective_rate(None, Decimal("10"))) == Decimal("950.00")

    def test_zero_quantity(self):
        assert line_total(0, 999) == Decimal("0.00")

    def test_rounding_is_half_up(self):
        assert quantize_money(Decimal("0.125")) == Decimal("0.13")
        assert line_total(Decimal("1.5"), Decimal("0.03")) == Decimal("0.05")

    def test_floats_do_not_leak_binary_error(self):
        assert line_total(3, 0.1) == Decimal("0.30")


class TestCommissionRates:
    def test_override_wins(self):
        assert effective_rate(Decimal("12.5"), Decimal("10")) == Decimal("12.5")

    def test_zero_override_is_honoured(self):
        assert effective_rate(Decimal("0"), Decimal("10")) == Decimal("0")

    def test_price_venue(self):
        pricing = price_venue(LINES, Decimal("15"), Decimal("10"))
        assert pricing == VenuePricing(Decimal("9500.00"), Decimal("15"), Decimal("1425.00"))


class TestChargeLineStorage:
    def test_lines_are_stored_as_strings_with_ids(self):
        stored = price_charge_lines(LINES)
        assert stored[0]["total"] == "5000.00"
        assert stored[0]["unitPrice"] == "2500.00"
        assert stored[1]["quantity"] == "100"
        assert all(line["id"] for line in stored)

    def test_existing_ids_are_kept(self):
        stored = price_charge_lines([{**LINES[0], "id": "line-1"}])
        assert stored[0]["id"] == "line-1"

    def test_missing_category_defaults_to_other(self):
        stored = price_charge_lines([{"description": "Misc", "quantity": 1, "unitPrice": 10}])
        assert stored[0]["category"] == "other"


class TestProposalSummary:
    def test_sums_each_venue_at_its_own_rate(self):
        summary = summarise_proposal(
            [
                price_venue(LINES, None, Decimal("10")),
                price_venue([{"quantity": 1, "unitPrice": 1000}], Decimal("5"), Decimal("20")),
            ]
        )
        assert summary.total_value == Decimal("10500.00")
        assert summary.expected_commission == Decimal("1000.00")

    def test_empty_proposal(self):
        summary = summarise_proposal([])
        assert summary.total_value == Decimal("0.00")
        assert summary.expected_commission == Decimal("0.00")
