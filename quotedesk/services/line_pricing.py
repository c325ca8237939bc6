"""Net/VAT/gross amounts for a single offer line."""
from dataclasses import dataclass
from decimal import Decimal

from quotedesk.utils.money import Number, round2, percent_of, to_decimal


@dataclass(frozen=True)
class LineAmounts:
    net: Decimal
    vat: Decimal
    gross: Decimal


def compute_line(quantity: Number, unit_price: Number, vat_rate: Number) -> LineAmounts:
    """
    Price one line.

    Each amount is rounded on its own before it is reused, so
    gross == net + vat holds exactly for every line. Inputs are expected to
    be validated already (quantity > 0, unit_price >= 0, vat_rate >= 0).
    """
    net = round2(to_decimal(quantity) * to_decimal(unit_price))
    vat = round2(percent_of(net, vat_rate))
    gross = round2(net + vat)
    return LineAmounts(net=net, vat=vat, gross=gross)
