"""Offer-level totals from priced lines plus additional costs."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from quotedesk.services.line_pricing import LineAmounts
from quotedesk.utils.money import Number, round2, percent_of, to_decimal

# Additional costs are always taxed at this rate, whatever the line rates are.
ADDITIONAL_COSTS_VAT_RATE = Decimal('23')


@dataclass(frozen=True)
class QuoteTotals:
    total_net: Decimal
    total_vat: Decimal
    total_gross: Decimal
    additional_vat: Decimal


def additional_costs_vat(additional_costs_net: Number) -> Decimal:
    return round2(percent_of(additional_costs_net, ADDITIONAL_COSTS_VAT_RATE))


def aggregate(lines: Iterable[LineAmounts], additional_costs_net: Number = 0) -> QuoteTotals:
    """
    Sum already-rounded line amounts into offer totals.

    Plain sums of cent values, so the order of lines does not matter.
    An empty list is accepted here; rejecting empty offers is up to the
    creation flow.
    """
    lines = list(lines)
    additional_net = to_decimal(additional_costs_net)
    additional_vat = additional_costs_vat(additional_net)

    total_net = round2(sum((line.net for line in lines), Decimal('0')) + additional_net)
    total_vat = round2(sum((line.vat for line in lines), Decimal('0')) + additional_vat)
    total_gross = round2(total_net + total_vat)

    return QuoteTotals(
        total_net=total_net,
        total_vat=total_vat,
        total_gross=total_gross,
        additional_vat=additional_vat,
    )
