"""
Charge-line and commission arithmetic for proposals

All values are Decimal and rounded to cents with ROUND_HALF_UP. Charge lines
are stored as JSON with numbers rendered as strings so no precision is lost
on the way through the database.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from ...shared.money import ZERO, Number, quantize_money, to_decimal

CHARGE_CATEGORIES = ("room_hire", "food_beverage", "av_equipment", "other")


@dataclass(frozen=True)
class VenuePricing:
    total_value: Decimal
    commission_rate: Decimal
    expected_commission: Decimal


@dataclass(frozen=True)
class ProposalSummary:
    total_value: Decimal
    expected_commission: Decimal


def line_total(quantity: Number, unit_price: Number) -> Decimal:
    return quantize_money(to_decimal(quantity) * to_decimal(unit_price))


def venue_total(lines: Iterable[dict[str, Any]]) -> Decimal:
    """Sum of the line totals, recomputed from quantity and unit price"""
    return quantize_money(
        sum((line_total(line["quantity"], line["unitPrice"]) for line in lines), ZERO)
    )


def effective_rate(override: Optional[Number], standard: Number) -> Decimal:
    """The per-proposal override wins over the venue's standard rate, even when it is 0"""
    return to_decimal(override) if override is not None else to_decimal(standard)


def commission(total: Number, rate: Number) -> Decimal:
    return quantize_money(to_decimal(total) * to_decimal(rate) / Decimal(100))


def price_charge_lines(lines: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Normalise charge lines for storage.

    Each line keeps its id (or gets a new one), and its quantity, unit price
    and computed total are stored as decimal strings.
    """
    priced = []
    for line in lines:
        quantity = to_decimal(line["quantity"])
        unit_price = quantize_money(line["unitPrice"])
        priced.append(
            {
                "id": line.get("id") or uuid.uuid4().hex,
                "description": line["description"],
                "quantity": str(quantity),
                "unitPrice": str(unit_price),
                "total": str(line_total(quantity, unit_price)),
                "category": line.get("category") or "other",
            }
        )
    return priced


def price_venue(
    lines: Iterable[dict[str, Any]], override: Optional[Number], standard: Number
) -> VenuePricing:
    total = venue_total(lines)
    rate = effective_rate(override, standard)
    return VenuePricing(total_value=total, commission_rate=rate, expected_commission=commission(total, rate))


def summarise_proposal(venues: Iterable) -> ProposalSummary:
    """
    Proposal totals: Σ venue totals and Σ per-venue commission at each venue's own rate.

    Accepts VenuePricing values or stored ProposalVenue rows.
    """
    total = ZERO
    expected = ZERO
    for venue in venues:
        total += venue.total_value
        expected += venue.expected_commission
    return ProposalSummary(total_value=quantize_money(total), expected_commission=quantize_money(expected))
