"""
Margin and discount rules.

Derives sale prices from cost price, configured margin and a client
discount, and polices the configured limits:

- the discount ceiling is blocking: a discount above it is rejected,
  never clamped
- the margin floor is advisory: a sale below it is flagged, never blocked
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from quotedesk.exceptions import DiscountLimitError
from quotedesk.utils.money import Number, HUNDRED, ZERO, round2, to_decimal

DEFAULT_MARGIN_PERCENT = Decimal('25')
DEFAULT_MIN_MARGIN_PERCENT = Decimal('10')
DEFAULT_MAX_DISCOUNT_PERCENT = Decimal('15')


@dataclass(frozen=True)
class MarginSettings:
    cost_price: Decimal
    margin_percent: Decimal
    min_margin_percent: Decimal
    max_discount_percent: Decimal
    configured: bool


@dataclass(frozen=True)
class DiscountResolution:
    accepted: bool
    effective_discount: Decimal
    max_discount: Decimal


@dataclass(frozen=True)
class MarginCheck:
    realized_margin: Decimal
    min_margin: Decimal
    below_floor: bool


def _has_cost(cost_price: Number) -> bool:
    return cost_price is not None and to_decimal(cost_price) > 0


def base_price(cost_price: Number, margin_percent: Number) -> Decimal:
    """Cost marked up by the margin. 0 means no cost data is configured."""
    if not _has_cost(cost_price):
        return ZERO
    return round2(to_decimal(cost_price) * (1 + to_decimal(margin_percent) / HUNDRED))


def final_price(base: Number, discount_percent: Number) -> Decimal:
    """Base price after a client discount."""
    return round2(to_decimal(base) * (1 - to_decimal(discount_percent) / HUNDRED))


def realized_margin(sale_price: Number, cost_price: Number) -> Decimal:
    """Profit over cost in percent; 0 when there is no cost to divide by."""
    if not _has_cost(cost_price):
        return ZERO
    cost = to_decimal(cost_price)
    return round2((to_decimal(sale_price) - cost) / cost * HUNDRED)


def _ceiling(max_discount: Optional[Number]) -> Decimal:
    if max_discount is None:
        return DEFAULT_MAX_DISCOUNT_PERCENT
    return to_decimal(max_discount)


def resolve_discount(requested_discount: Number,
                     max_discount: Optional[Number] = None) -> DiscountResolution:
    """Accept a discount up to and including the ceiling, reject anything above."""
    requested = to_decimal(requested_discount)
    ceiling = _ceiling(max_discount)
    if requested > ceiling:
        return DiscountResolution(accepted=False, effective_discount=ZERO, max_discount=ceiling)
    return DiscountResolution(accepted=True, effective_discount=requested, max_discount=ceiling)


def enforce_discount(requested_discount: Number,
                     max_discount: Optional[Number] = None) -> Decimal:
    """
    Return the accepted discount or raise DiscountLimitError.

    The error message names the ceiling so it can be shown as-is.
    """
    resolution = resolve_discount(requested_discount, max_discount)
    if not resolution.accepted:
        raise DiscountLimitError(to_decimal(requested_discount), resolution.max_discount)
    return resolution.effective_discount


def check_margin_floor(margin: Number, min_margin: Optional[Number] = None) -> MarginCheck:
    """Flag a realized margin below the floor. Never raises."""
    floor = DEFAULT_MIN_MARGIN_PERCENT if min_margin is None else to_decimal(min_margin)
    realized = to_decimal(margin)
    return MarginCheck(realized_margin=realized, min_margin=floor, below_floor=realized < floor)


def effective_margin_settings(margin_row=None) -> MarginSettings:
    """
    Merge a stored ProductMargin row (or None) with the system defaults.

    A missing row is not an error: pricing falls back to 25% margin,
    10% floor and 15% discount ceiling.
    """
    if margin_row is None:
        return MarginSettings(
            cost_price=ZERO,
            margin_percent=DEFAULT_MARGIN_PERCENT,
            min_margin_percent=DEFAULT_MIN_MARGIN_PERCENT,
            max_discount_percent=DEFAULT_MAX_DISCOUNT_PERCENT,
            configured=False,
        )

    def pick(value, default):
        return default if value is None else to_decimal(value)

    return MarginSettings(
        cost_price=pick(margin_row.cost_price, ZERO),
        margin_percent=pick(margin_row.margin_percent, DEFAULT_MARGIN_PERCENT),
        min_margin_percent=pick(margin_row.min_margin_percent, DEFAULT_MIN_MARGIN_PERCENT),
        max_discount_percent=pick(margin_row.max_discount_percent, DEFAULT_MAX_DISCOUNT_PERCENT),
        configured=True,
    )


def fill_pricing(cost_price: Number = None,
                 margin_percent: Number = None,
                 sale_price: Number = None):
    """
    Derive the missing one of (cost, margin, sale) from the other two.

    Returns a (cost_price, margin_percent, sale_price) tuple. Values that are
    None or zero count as missing; with fewer than two known values the
    inputs are returned unchanged.
    """
    cost = to_decimal(cost_price)
    margin = to_decimal(margin_percent)
    sale = to_decimal(sale_price)

    if cost and margin and not sale:
        sale = base_price(cost, margin)
    elif cost and sale and not margin:
        margin = realized_margin(sale, cost)
    elif sale and margin and not cost and margin > -HUNDRED:
        cost = round2(sale / (1 + margin / HUNDRED))

    return cost, margin, sale
